"""Keyframe resolver — turns an element's keyframes into properties at time t.

Resolution is pure: the element is read, never mutated. Presets are applied
afterwards by pastelcut.presets; resolve_element() chains both, and
render_state() produces the paint-ordered scene for a whole project.
"""

from __future__ import annotations

from numbers import Real
from typing import Any, Iterator, Optional

from pastelcut.config import EngineConfig
from pastelcut.models import Element, Keyframe, ProjectState, PropertySet


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------

def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def lerp(start: float, end: float, u: float) -> float:
    """Linear interpolation without clamping *u*."""
    return start + (end - start) * u


def is_numeric(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Keyframe lookup
# ---------------------------------------------------------------------------

def sorted_keyframes(keyframes: list[Keyframe]) -> list[Keyframe]:
    """Keyframes ascending by time; equal times keep insertion order."""
    return sorted(keyframes, key=lambda k: k.time)


def surrounding_keyframes(
    keyframes: list[Keyframe],
    t: float,
) -> tuple[Optional[Keyframe], Optional[Keyframe]]:
    """Return (prev, next): last keyframe with time <= t and first with time > t."""
    prev: Optional[Keyframe] = None
    nxt: Optional[Keyframe] = None
    for kf in sorted_keyframes(keyframes):
        if kf.time <= t:
            prev = kf
        else:
            nxt = kf
            break
    return prev, nxt


def _blend(prev: Keyframe, nxt: Keyframe, t: float) -> dict[str, Any]:
    """Values for every key in *nxt* between the two anchors."""
    span = nxt.time - prev.time
    progress = None if span <= 0 else clamp((t - prev.time) / span)

    out: dict[str, Any] = {}
    for key, end_val in nxt.props.items():
        if key not in prev.props:
            out[key] = end_val
            continue
        start_val = prev.props[key]
        if progress is None:
            out[key] = end_val
        elif is_numeric(start_val) and is_numeric(end_val):
            out[key] = lerp(start_val, end_val, progress)
        else:
            out[key] = start_val
    return out


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def resolve(element: Element, t: float) -> PropertySet:
    """Compute the keyframed base properties of *element* at time *t*.

    Between two keyframes only the keys of the later one are blended; before
    the first keyframe the element is held at that keyframe's values, after
    the last it holds the last values. Keys that PropertySet does not know
    are ignored.
    """
    base = element.props.copy()
    if not element.keyframes:
        return base

    prev, nxt = surrounding_keyframes(element.keyframes, t)
    if prev is not None and nxt is not None:
        return base.with_overrides(_blend(prev, nxt, t))
    if prev is not None:
        return base.with_overrides(prev.props)
    if nxt is not None:
        return base.with_overrides(nxt.props)
    return base


def resolve_element(
    element: Element,
    t: float,
    config: EngineConfig | None = None,
) -> PropertySet:
    """Keyframe resolution followed by the element's animation preset."""
    from pastelcut.presets import apply_preset

    return apply_preset(element, resolve(element, t), t, config or EngineConfig())


def visible_elements(project: ProjectState, t: float) -> list[Element]:
    """Elements whose window contains *t*, ascending by base z_index (stable)."""
    return sorted(
        (e for e in project.elements if e.is_visible_at(t)),
        key=lambda e: e.props.z_index,
    )


def render_state(
    project: ProjectState,
    t: float,
    config: EngineConfig | None = None,
) -> Iterator[tuple[Element, PropertySet]]:
    """Yield (element, resolved props) in paint order for time *t*."""
    config = config or EngineConfig()
    for element in visible_elements(project, t):
        yield element, resolve_element(element, t, config)
