"""Tests for pastelcut.presets — procedural animation overlays."""

import pytest

from pastelcut.config import EngineConfig
from pastelcut.models import AnimationPreset
from pastelcut.presets import (
    BACK_C1,
    BACK_C3,
    PRESET_FUNCTIONS,
    apply_preset,
    ease_out_back,
    ease_out_cubic,
)
from pastelcut.resolver import resolve


def _apply(element, t, config=None):
    return apply_preset(element, resolve(element, t), t, config or EngineConfig())


class TestEasing:
    def test_cubic_endpoints(self):
        assert ease_out_cubic(0.0) == 0.0
        assert ease_out_cubic(1.0) == 1.0
        assert ease_out_cubic(0.5) == pytest.approx(0.875)

    def test_back_endpoints(self):
        assert ease_out_back(0.0) == pytest.approx(0.0)
        assert ease_out_back(1.0) == pytest.approx(1.0)

    def test_back_overshoots(self):
        assert ease_out_back(0.5) == pytest.approx(1 - BACK_C3 / 8 + BACK_C1 / 4)
        assert ease_out_back(0.5) > 1.0


class TestRegistry:
    def test_every_preset_except_none_has_a_function(self):
        expected = {p for p in AnimationPreset if p != AnimationPreset.NONE}
        assert set(PRESET_FUNCTIONS) == expected

    def test_none_returns_props_unchanged(self, rect):
        props = resolve(rect, 1.2)
        assert apply_preset(rect, props, 1.2) is props


class TestFadeIn:
    def test_starts_transparent(self, rect):
        rect.animation_preset = AnimationPreset.FADE_IN
        assert _apply(rect, 1.0).opacity == 0.0

    def test_halfway(self, rect):
        rect.animation_preset = AnimationPreset.FADE_IN
        assert _apply(rect, 1.5).opacity == pytest.approx(0.5)

    @pytest.mark.parametrize("t", [2.0, 3.0, 5.0])
    def test_base_opacity_after_duration(self, rect, t):
        rect.animation_preset = AnimationPreset.FADE_IN
        rect.props.opacity = 0.8
        assert _apply(rect, t).opacity == 0.8

    def test_scales_keyframed_opacity(self, rect):
        rect.animation_preset = AnimationPreset.FADE_IN
        rect.props.opacity = 0.5
        assert _apply(rect, 1.5).opacity == pytest.approx(0.25)

    def test_zero_duration_is_normalized(self, rect):
        rect.animation_preset = AnimationPreset.FADE_IN
        rect.animation_duration = 0.0
        assert _apply(rect, 1.5).opacity == pytest.approx(0.5)


class TestFadeOut:
    def test_halfway_through_last_second(self, rect):
        rect.animation_preset = AnimationPreset.FADE_OUT
        assert _apply(rect, 4.5).opacity == pytest.approx(0.5)

    def test_untouched_before_last_second(self, rect):
        rect.animation_preset = AnimationPreset.FADE_OUT
        assert _apply(rect, 3.0).opacity == 1.0

    def test_end_point_keeps_base_opacity(self, rect):
        # end_diff == 0 lies outside the open interval
        rect.animation_preset = AnimationPreset.FADE_OUT
        assert _apply(rect, 5.0).opacity == 1.0


class TestSlide:
    def test_slide_in_left_starts_offscreen(self, rect):
        rect.animation_preset = AnimationPreset.SLIDE_IN_LEFT
        assert _apply(rect, 1.0).x == pytest.approx(-300.0)

    def test_slide_in_left_eases(self, rect):
        rect.animation_preset = AnimationPreset.SLIDE_IN_LEFT
        assert _apply(rect, 1.5).x == pytest.approx(-300.0 + 310.0 * 0.875)

    def test_slide_in_right_uses_canvas_width(self, rect):
        rect.animation_preset = AnimationPreset.SLIDE_IN_RIGHT
        config = EngineConfig(canvas_width=500, canvas_height=500)
        assert _apply(rect, 1.0, config).x == pytest.approx(600.0)

    def test_lands_on_resolved_x(self, keyed_rect):
        keyed_rect.animation_preset = AnimationPreset.SLIDE_IN_LEFT
        keyed_rect.start_time = 2.0
        assert _apply(keyed_rect, 3.0).x == pytest.approx(50.0)

    def test_y_untouched(self, rect):
        rect.animation_preset = AnimationPreset.SLIDE_IN_RIGHT
        assert _apply(rect, 1.2).y == rect.props.y


class TestPop:
    def test_starts_at_zero_scale(self, rect):
        rect.animation_preset = AnimationPreset.POP
        out = _apply(rect, 1.0)
        assert out.scale_x == pytest.approx(0.0)
        assert out.scale_y == pytest.approx(0.0)

    def test_overshoot_is_not_clamped(self, rect):
        rect.animation_preset = AnimationPreset.POP
        assert _apply(rect, 1.25).scale_x > 1.0

    def test_done_after_half_duration(self, rect):
        rect.animation_preset = AnimationPreset.POP
        out = _apply(rect, 1.5)
        assert (out.scale_x, out.scale_y) == (1.0, 1.0)


class TestPulse:
    def test_peak_after_quarter_period(self, rect):
        rect.animation_preset = AnimationPreset.PULSE
        out = _apply(rect, 1.25)
        assert out.scale_x == pytest.approx(1.05)
        assert out.scale_y == pytest.approx(1.05)

    def test_period_follows_animation_duration(self, rect):
        rect.animation_preset = AnimationPreset.PULSE
        rect.animation_duration = 2.0
        assert _apply(rect, 1.5).scale_x == pytest.approx(1.05)

    def test_does_not_mutate_element(self, rect):
        rect.animation_preset = AnimationPreset.PULSE
        _apply(rect, 1.25)
        assert rect.props.scale_x == 1.0
