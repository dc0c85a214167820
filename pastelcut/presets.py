"""Procedural animation presets — parametric overlays on resolved properties.

Each preset is a pure function ``(element, props, t, config) -> PropertySet``
registered in PRESET_FUNCTIONS. Adding a preset means adding one
AnimationPreset member and one function here.

Easing helpers:
    ease_out_cubic, ease_out_back
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Callable

from pastelcut.config import EngineConfig
from pastelcut.models import AnimationPreset, Element, PropertySet
from pastelcut.resolver import clamp, lerp

# Horizontal distance past the canvas edge where slides begin
SLIDE_OFFSCREEN_MARGIN = 100.0

# Back-out overshoot constants
BACK_C1 = 1.70158
BACK_C3 = BACK_C1 + 1.0

PULSE_AMPLITUDE = 0.05


# ---------------------------------------------------------------------------
# Easing evaluation
# ---------------------------------------------------------------------------

def ease_out_cubic(u: float) -> float:
    return 1.0 - (1.0 - u) ** 3


def ease_out_back(u: float) -> float:
    """Back-out easing; overshoots 1.0 before settling at u=1."""
    return 1.0 + BACK_C3 * (u - 1.0) ** 3 + BACK_C1 * (u - 1.0) ** 2


# ---------------------------------------------------------------------------
# Preset functions
# ---------------------------------------------------------------------------

PresetFunction = Callable[[Element, PropertySet, float, EngineConfig], PropertySet]


def _fade_in(element: Element, props: PropertySet, t: float, config: EngineConfig) -> PropertySet:
    duration = element.effective_animation_duration
    relative = t - element.start_time
    if relative >= duration:
        return props
    return replace(props, opacity=lerp(0.0, props.opacity, clamp(relative / duration)))


def _fade_out(element: Element, props: PropertySet, t: float, config: EngineConfig) -> PropertySet:
    duration = element.effective_animation_duration
    end_diff = element.end_time - t
    if not 0.0 < end_diff < duration:
        return props
    return replace(props, opacity=lerp(0.0, props.opacity, end_diff / duration))


def _slide_in(start_x: Callable[[PropertySet, EngineConfig], float]) -> PresetFunction:
    def slide(element: Element, props: PropertySet, t: float, config: EngineConfig) -> PropertySet:
        duration = element.effective_animation_duration
        relative = t - element.start_time
        if relative >= duration:
            return props
        eased = ease_out_cubic(clamp(relative / duration))
        return replace(props, x=lerp(start_x(props, config), props.x, eased))
    return slide


def _pop(element: Element, props: PropertySet, t: float, config: EngineConfig) -> PropertySet:
    half = element.effective_animation_duration * 0.5
    relative = t - element.start_time
    if relative >= half:
        return props
    eased = ease_out_back(clamp(relative / half))
    return replace(
        props,
        scale_x=lerp(0.0, props.scale_x, eased),
        scale_y=lerp(0.0, props.scale_y, eased),
    )


def _pulse(element: Element, props: PropertySet, t: float, config: EngineConfig) -> PropertySet:
    speed = 2.0 / element.effective_animation_duration
    wave = math.sin((t - element.start_time) * math.pi * speed) * PULSE_AMPLITUDE
    return replace(props, scale_x=props.scale_x + wave, scale_y=props.scale_y + wave)


PRESET_FUNCTIONS: dict[AnimationPreset, PresetFunction] = {
    AnimationPreset.FADE_IN: _fade_in,
    AnimationPreset.FADE_OUT: _fade_out,
    AnimationPreset.SLIDE_IN_LEFT: _slide_in(
        lambda props, config: -props.width - SLIDE_OFFSCREEN_MARGIN
    ),
    AnimationPreset.SLIDE_IN_RIGHT: _slide_in(
        lambda props, config: config.canvas_width + SLIDE_OFFSCREEN_MARGIN
    ),
    AnimationPreset.POP: _pop,
    AnimationPreset.PULSE: _pulse,
}


def apply_preset(
    element: Element,
    props: PropertySet,
    t: float,
    config: EngineConfig | None = None,
) -> PropertySet:
    """Overlay the element's animation preset on already-resolved *props*.

    Returns *props* itself when the element has no preset.
    """
    fn = PRESET_FUNCTIONS.get(element.animation_preset)
    if fn is None:
        return props
    return fn(element, props, t, config or EngineConfig())
