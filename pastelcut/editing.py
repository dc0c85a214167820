"""Edit operations — the only code that creates, changes or removes elements and keyframes.

All functions mutate the given ProjectState in place and return the affected
object. They are single-writer operations: callers must not run two edits on
the same element concurrently.
"""

from __future__ import annotations

import logging
from typing import Any

from pastelcut.config import EngineConfig
from pastelcut.errors import (
    PastelCutError,
    CONFIG_ERROR,
    INVALID_ELEMENT_TYPE,
    INVALID_PRESET,
    INVALID_PROPERTY,
    KEYFRAME_NOT_FOUND,
    recovery_hints,
)
from pastelcut.models import (
    AnimationPreset,
    Element,
    ElementType,
    Keyframe,
    ProjectState,
    PropertySet,
    ELEMENT_FIELDS,
    PROPERTY_NAMES,
)
from pastelcut.resolver import resolve

logger = logging.getLogger(__name__)

# Shortest clip the timeline allows when trimming an edge
MIN_ELEMENT_DURATION = 0.1
# Shortest project the toolbar allows
MIN_PROJECT_DURATION = 1.0

DEFAULT_FILL = "#A7F3D0"
DEFAULT_TEXT_FILL = "#1a1a1a"
DEFAULT_BOX_SIZE = 200.0


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _element_type(value: ElementType | str) -> ElementType:
    try:
        return ElementType(value)
    except ValueError as exc:
        raise PastelCutError(
            code=INVALID_ELEMENT_TYPE,
            message=f"Unknown element type: {value!r}",
            recovery=recovery_hints(INVALID_ELEMENT_TYPE),
            context={"type": value, "supported": [t.value for t in ElementType]},
        ) from exc


def _preset(value: AnimationPreset | str | None) -> AnimationPreset:
    if value is None:
        return AnimationPreset.NONE
    try:
        return AnimationPreset(value)
    except ValueError as exc:
        raise PastelCutError(
            code=INVALID_PRESET,
            message=f"Unknown animation preset: {value!r}",
            recovery=recovery_hints(INVALID_PRESET),
            context={"preset": value, "supported": [p.value for p in AnimationPreset]},
        ) from exc


def _check_property_keys(keys, allowed=PROPERTY_NAMES) -> None:
    unknown = sorted(k for k in keys if k not in allowed)
    if unknown:
        raise PastelCutError(
            code=INVALID_PROPERTY,
            message=f"Unknown properties: {', '.join(unknown)}",
            recovery=recovery_hints(INVALID_PROPERTY),
            context={"properties": unknown},
        )


def _require_positive(name: str, value: float) -> float:
    if value is None or value <= 0:
        raise PastelCutError(
            code=CONFIG_ERROR,
            message=f"{name} must be greater than 0, got {value!r}",
            recovery=recovery_hints(CONFIG_ERROR, {"field": name}),
            context={"field": name, "value": value},
        )
    return float(value)


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------

def add_element(
    project: ProjectState,
    element_type: ElementType | str,
    config: EngineConfig | None = None,
    **props: Any,
) -> Element:
    """Create an element with editor defaults, centred on the canvas.

    Keyword arguments override the default properties.
    """
    config = config or EngineConfig()
    kind = _element_type(element_type)
    _check_property_keys(props)

    base = PropertySet(
        x=config.canvas_width / 2,
        y=config.canvas_height / 2,
        width=DEFAULT_BOX_SIZE,
        height=DEFAULT_BOX_SIZE,
        z_index=len(project.elements),
        fill=DEFAULT_FILL,
    )

    if kind == ElementType.TEXT:
        font_size = 60
        base = base.with_overrides({
            "text": "Add a heading",
            "font_size": font_size,
            "font_family": "Inter",
            "font_style": "normal",
            "align": "left",
            "fill": DEFAULT_TEXT_FILL,
            "width": 400.0,
            "height": font_size * 1.2,
            "x": base.x - 200,
            "y": base.y - 30,
        })
    elif kind in (ElementType.RECT, ElementType.IMAGE):
        base = base.with_overrides({"x": base.x - 100, "y": base.y - 100})
    base = base.with_overrides(props)

    element = Element(
        type=kind,
        name=f"{kind.value.capitalize()} {len(project.elements) + 1}",
        props=base,
    )
    project.elements.append(element)
    logger.debug("Added %s element %s", kind.value, element.id)
    return element


def update_element(project: ProjectState, element_id: str, **changes: Any) -> Element:
    """Apply *changes* to an element.

    Property names go to the element's props; name, start_time, duration,
    animation_preset and animation_duration go to the element itself.
    """
    element = project.get_element(element_id)
    _check_property_keys(changes, PROPERTY_NAMES | ELEMENT_FIELDS)

    prop_changes = {k: v for k, v in changes.items() if k in PROPERTY_NAMES}
    if prop_changes:
        element.props = element.props.with_overrides(prop_changes)

    if "name" in changes:
        element.name = str(changes["name"])
    if "start_time" in changes:
        element.start_time = max(0.0, float(changes["start_time"]))
    if "duration" in changes:
        element.duration = _require_positive("duration", changes["duration"])
    if "animation_preset" in changes:
        element.animation_preset = _preset(changes["animation_preset"])
    if "animation_duration" in changes:
        # Stored as given; non-positive values resolve as 1.0
        element.animation_duration = float(changes["animation_duration"])

    logger.debug("Updated element %s: %s", element_id, sorted(changes))
    return element


def move_element(project: ProjectState, element_id: str, start_time: float) -> Element:
    """Move a clip along the timeline; it cannot start before 0."""
    element = project.get_element(element_id)
    element.start_time = max(0.0, float(start_time))
    return element


def resize_element(
    project: ProjectState,
    element_id: str,
    edge: str,
    delta: float,
) -> Element:
    """Drag the left or right edge of a clip by *delta* seconds.

    The right edge only changes the duration. The left edge moves the start
    and keeps the end fixed, stopping at 0 and at the minimum duration.
    """
    element = project.get_element(element_id)
    start, duration = element.start_time, element.duration

    if edge == "right":
        element.duration = max(MIN_ELEMENT_DURATION, duration + delta)
        return element
    if edge != "left":
        raise ValueError(f"edge must be 'left' or 'right', got {edge!r}")

    new_start = start + delta
    new_duration = duration - delta
    if new_start < 0:
        new_start = 0.0
        new_duration = start + duration
    if new_duration < MIN_ELEMENT_DURATION:
        new_duration = MIN_ELEMENT_DURATION
        new_start = start + duration - MIN_ELEMENT_DURATION

    element.start_time = new_start
    element.duration = new_duration
    return element


def delete_element(project: ProjectState, element_id: str) -> Element:
    element = project.get_element(element_id)
    project.elements = [e for e in project.elements if e.id != element_id]
    logger.debug("Deleted element %s", element_id)
    return element


def bring_forward(project: ProjectState, element_id: str) -> Element:
    element = project.get_element(element_id)
    element.props = element.props.with_overrides({"z_index": element.props.z_index + 1})
    return element


def send_backward(project: ProjectState, element_id: str) -> Element:
    element = project.get_element(element_id)
    element.props = element.props.with_overrides({"z_index": max(0, element.props.z_index - 1)})
    return element


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------

def set_project_duration(project: ProjectState, duration: float) -> ProjectState:
    """Set the timeline length, never shorter than one second."""
    project.duration = max(MIN_PROJECT_DURATION, float(duration))
    return project


def set_background_color(project: ProjectState, color: str) -> ProjectState:
    project.background_color = color
    return project


# ---------------------------------------------------------------------------
# Keyframes
# ---------------------------------------------------------------------------

def _get_keyframe(element: Element, keyframe_id: str) -> Keyframe:
    keyframe = element.get_keyframe(keyframe_id)
    if keyframe is None:
        raise PastelCutError(
            code=KEYFRAME_NOT_FOUND,
            message=f"Element {element.id!r} has no keyframe {keyframe_id!r}",
            recovery=recovery_hints(KEYFRAME_NOT_FOUND),
            context={"element_id": element.id, "keyframe_id": keyframe_id},
        )
    return keyframe


def add_keyframe(
    project: ProjectState,
    element_id: str,
    time: float,
    props: dict[str, Any],
) -> Keyframe:
    """Append a keyframe with explicit values at absolute *time*."""
    element = project.get_element(element_id)
    _check_property_keys(props)
    keyframe = Keyframe(time=float(time), props=dict(props))
    element.keyframes.append(keyframe)
    return keyframe


def update_keyframe(
    project: ProjectState,
    element_id: str,
    keyframe_id: str,
    time: float | None = None,
    props: dict[str, Any] | None = None,
) -> Keyframe:
    """Move a keyframe and/or merge *props* into its values."""
    element = project.get_element(element_id)
    keyframe = _get_keyframe(element, keyframe_id)
    if props is not None:
        _check_property_keys(props)
        keyframe.props.update(props)
    if time is not None:
        keyframe.time = float(time)
    return keyframe


def delete_keyframe(project: ProjectState, element_id: str, keyframe_id: str) -> Keyframe:
    element = project.get_element(element_id)
    keyframe = _get_keyframe(element, keyframe_id)
    element.keyframes = [k for k in element.keyframes if k.id != keyframe_id]
    return keyframe


def add_or_replace_keyframe(
    project: ProjectState,
    element_id: str,
    property_key: str,
    time: float,
    config: EngineConfig | None = None,
) -> Keyframe:
    """Record the property's current resolved value as a keyframe at *time*.

    Any keyframe that defines *property_key* within the tolerance window
    (0.05 s by default) is removed first, so exactly one anchor for that
    property survives near *time*.
    """
    config = config or EngineConfig()
    element = project.get_element(element_id)
    _check_property_keys([property_key])

    value = resolve(element, time).get(property_key)
    kept = [
        k for k in element.keyframes
        if abs(k.time - time) > config.keyframe_tolerance or property_key not in k.props
    ]
    replaced = len(element.keyframes) - len(kept)

    keyframe = Keyframe(time=float(time), props={property_key: value})
    element.keyframes = kept + [keyframe]
    logger.debug(
        "Recorded %s=%r on %s at %.3fs (replaced %d)",
        property_key, value, element_id, time, replaced,
    )
    return keyframe
