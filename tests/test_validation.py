"""Tests for pastelcut.validation — dry-run project checks."""

import json

from pastelcut.models import Keyframe
from pastelcut.validation import validate_project


def _codes(entries):
    return [e["code"] for e in entries]


class TestValidateProject:
    def test_valid_project(self, project):
        result = validate_project(project)
        assert result.valid
        assert result.errors == []
        d = result.to_dict()
        assert d["duration"] == 10.0
        assert d["duration_formatted"] == "00:00:10.000"
        assert d["export_frame_count"] == 301

    def test_accepts_json_text(self, project):
        result = validate_project(json.dumps(project.to_dict()))
        assert result.valid

    def test_parse_error_is_reported(self):
        result = validate_project("{broken")
        assert not result.valid
        assert _codes(result.errors) == ["INVALID_PROJECT"]

    def test_duplicate_ids(self, project):
        project.elements[2].id = "r1"
        result = validate_project(project)
        assert not result.valid
        assert "DUPLICATE_ELEMENT_ID" in _codes(result.errors)

    def test_negative_start(self, project):
        project.elements[0].start_time = -1.0
        result = validate_project(project)
        assert result.errors[0]["field"] == "start_time"

    def test_non_positive_durations_are_warnings(self, project):
        project.duration = 0
        project.elements[0].duration = -2
        project.elements[1].animation_duration = 0
        result = validate_project(project)
        assert result.valid
        fields = [w.get("field") for w in result.warnings if w["code"] == "CONFIG_ERROR"]
        assert fields == ["duration", "duration", "animation_duration"]
        assert result.duration == 1.0
        assert result.frame_count == 31

    def test_unknown_keyframe_key(self, project):
        project.elements[0].keyframes[0].props["glow"] = 1
        result = validate_project(project)
        assert result.valid
        warning = next(w for w in result.warnings if w.get("property") == "glow")
        assert warning["code"] == "UNRESOLVABLE_KEYFRAME_KEY"

    def test_key_missing_from_previous_keyframe(self, project):
        project.elements[0].keyframes[1].props["opacity"] = 0.2
        result = validate_project(project)
        warning = next(w for w in result.warnings if "properties" in w)
        assert warning["properties"] == ["opacity"]

    def test_non_numeric_value_for_numeric_property(self, project):
        project.elements[0].keyframes[0].props["x"] = "left"
        result = validate_project(project)
        assert "INVALID_PROPERTY" in _codes(result.warnings)

    def test_keyframe_outside_window(self, project):
        project.elements[2].keyframes.append(Keyframe(time=1.0, props={"x": 0.0}))
        result = validate_project(project)
        assert "KEYFRAME_OUTSIDE_WINDOW" in _codes(result.warnings)

    def test_element_after_end(self, project):
        project.elements[2].start_time = 12.0
        result = validate_project(project)
        assert "ELEMENT_AFTER_END" in _codes(result.warnings)

    def test_bad_background_color(self, project):
        project.background_color = "pink"
        assert "INVALID_COLOR" in _codes(validate_project(project).warnings)

    def test_image_without_src(self):
        doc = {"duration": 5, "elements": [{"id": "i", "type": "image"}]}
        result = validate_project(doc)
        assert "INVALID_PROPERTY" in _codes(result.warnings)

    def test_output_as_dict(self, project):
        d = validate_project(project).to_dict()
        assert set(d) >= {"valid", "errors", "warnings"}
