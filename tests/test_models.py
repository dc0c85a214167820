"""Tests for pastelcut.models — dataclasses and JSON round-tripping."""

import pytest
from pastelcut.models import (
    parse_time,
    format_time,
    AnimationPreset,
    Element,
    ElementType,
    ExportArtifact,
    Keyframe,
    ProjectState,
    PropertySet,
)
from pastelcut.errors import PastelCutError, ELEMENT_NOT_FOUND


# ---------------------------------------------------------------------------
# parse_time
# ---------------------------------------------------------------------------

class TestParseTime:
    def test_seconds_float(self):
        assert parse_time("1.5") == 1.5

    def test_mmss(self):
        assert parse_time("1:30") == 90.0

    def test_hhmmss_millis(self):
        assert parse_time("0:00:01.500") == 1.5

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid time format"):
            parse_time("not-a-time")


class TestFormatTime:
    def test_simple(self):
        assert format_time(90.0) == "00:01:30.000"

    def test_hours(self):
        assert format_time(3723.5) == "01:02:03.500"


# ---------------------------------------------------------------------------
# PropertySet
# ---------------------------------------------------------------------------

class TestPropertySet:
    def test_defaults(self):
        p = PropertySet()
        assert (p.scale_x, p.scale_y, p.opacity, p.z_index) == (1.0, 1.0, 1.0, 0)

    def test_with_overrides_returns_copy(self):
        p = PropertySet(x=1.0)
        q = p.with_overrides({"x": 5.0})
        assert q.x == 5.0
        assert p.x == 1.0

    def test_with_overrides_ignores_unknown_keys(self):
        p = PropertySet(x=1.0).with_overrides({"glow": 3, "y": 2.0})
        assert p.y == 2.0
        assert not hasattr(p, "glow")

    def test_get_unknown_key(self):
        assert PropertySet().get("glow", "missing") == "missing"

    def test_none_fields_excluded(self):
        d = PropertySet(fill="#fff").to_dict()
        assert d["fill"] == "#fff"
        assert "text" not in d
        assert "src" not in d

    def test_from_dict_drops_unknown(self):
        p = PropertySet.from_dict({"x": 3.0, "shadow": "big"})
        assert p.x == 3.0


# ---------------------------------------------------------------------------
# Element / Keyframe
# ---------------------------------------------------------------------------

class TestElement:
    def test_visibility_window_is_closed(self, rect):
        assert not rect.is_visible_at(0.99)
        assert rect.is_visible_at(1.0)
        assert rect.is_visible_at(5.0)
        assert not rect.is_visible_at(5.01)

    def test_end_time(self, rect):
        assert rect.end_time == 5.0

    @pytest.mark.parametrize("value", [0.0, -2.0, float("nan")])
    def test_non_positive_animation_duration_means_one_second(self, rect, value):
        rect.animation_duration = value
        assert rect.effective_animation_duration == 1.0

    def test_round_trip(self, keyed_rect):
        keyed_rect.animation_preset = AnimationPreset.POP
        d = keyed_rect.to_dict()
        assert d["type"] == "rect"
        assert d["animation_preset"] == "pop"
        again = Element.from_dict(d)
        assert again.props == keyed_rect.props
        assert [k.time for k in again.keyframes] == [2.0, 4.0]
        assert again.animation_preset == AnimationPreset.POP

    def test_from_dict_defaults(self):
        e = Element.from_dict({"id": "a", "type": "circle"})
        assert e.start_time == 0.0
        assert e.duration == 5.0
        assert e.animation_preset == AnimationPreset.NONE
        assert e.animation_duration == 1.0
        assert e.type == ElementType.CIRCLE

    def test_keyframe_gets_id(self):
        kf = Keyframe.from_dict({"time": 1, "props": {"x": 3}})
        assert kf.id
        assert kf.time == 1.0


class TestProjectState:
    def test_get_element_missing(self):
        with pytest.raises(PastelCutError) as exc_info:
            ProjectState().get_element("nope")
        assert exc_info.value.code == ELEMENT_NOT_FOUND
        assert "nope" in exc_info.value.recovery[0]

    def test_round_trip(self, project):
        again = ProjectState.from_dict(project.to_dict())
        assert again.duration == 10.0
        assert [e.id for e in again.elements] == ["r1", "t1", "c1"]


class TestExportArtifact:
    def test_to_dict_omits_data(self):
        a = ExportArtifact(data=b"abc", mime_type="application/json", fps=30,
                           width=10, height=20, frame_count=3, duration=1.5)
        d = a.to_dict()
        assert "data" not in d
        assert d["size_bytes"] == 3
        assert d["duration_formatted"] == "00:00:01.500"
