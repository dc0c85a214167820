"""Dry-run validation for project documents — checks timing, keyframes, and presets."""

from __future__ import annotations

import re
from typing import Optional

from pastelcut.config import EngineConfig
from pastelcut.document import parse_project
from pastelcut.errors import (
    PastelCutError,
    CONFIG_ERROR,
    DUPLICATE_ELEMENT_ID,
    INVALID_PROPERTY,
    KEYFRAME_OUTSIDE_WINDOW,
    UNRESOLVABLE_KEYFRAME_KEY,
)
from pastelcut.export import export_step_count
from pastelcut.models import (
    Element,
    ElementType,
    ProjectState,
    PROPERTY_NAMES,
    TEXT_ALIGNMENTS,
    format_time,
)
from pastelcut.resolver import is_numeric, sorted_keyframes

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


class ValidationResult:
    """Collects errors and warnings from a dry-run validation."""

    def __init__(self) -> None:
        self.errors: list[dict] = []
        self.warnings: list[dict] = []
        self.duration: Optional[float] = None
        self.frame_count: Optional[int] = None

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, code: str, message: str, **context) -> None:
        self.errors.append({"code": code, "message": message, **context})

    def add_warning(self, code: str, message: str, **context) -> None:
        self.warnings.append({"code": code, "message": message, **context})

    def to_dict(self) -> dict:
        d = {
            "valid": self.valid,
            "errors": self.errors,
            "warnings": self.warnings,
        }
        if self.duration is not None:
            d["duration"] = self.duration
            d["duration_formatted"] = format_time(self.duration)
        if self.frame_count is not None:
            d["export_frame_count"] = self.frame_count
        return d


def validate_project(
    raw: str | dict | ProjectState,
    config: EngineConfig | None = None,
) -> ValidationResult:
    """Validate a project without rendering or exporting it.

    Checks:
        - The document parses
        - Project and element durations are positive (non-positive values
          are normalized at resolution time, so they are warnings)
        - Element ids are unique and start times are not negative
        - Keyframe keys are known properties with sensible value types
        - Keyframes lie inside their element's visibility window

    Args:
        raw: JSON string, dict, or an already-built ProjectState.
        config: Engine config used to estimate the export frame count.

    Returns:
        ValidationResult with errors, warnings, duration and frame count.
    """
    config = config or EngineConfig()
    result = ValidationResult()

    if isinstance(raw, ProjectState):
        project = raw
    else:
        try:
            project = parse_project(raw)
        except PastelCutError as exc:
            result.add_error(exc.code, exc.message, **exc.context)
            return result

    if not project.duration > 0:
        result.add_warning(
            CONFIG_ERROR,
            f"Project duration {project.duration} is not positive; 1.0s is used instead",
            field="duration",
        )
    result.duration = project.effective_duration
    result.frame_count = export_step_count(project.effective_duration, config.fps)

    if not _HEX_COLOR_RE.match(project.background_color or ""):
        result.add_warning(
            "INVALID_COLOR",
            f"Background color {project.background_color!r} is not a hex color",
        )

    seen: dict[str, int] = {}
    for idx, element in enumerate(project.elements):
        if element.id in seen:
            result.add_error(
                DUPLICATE_ELEMENT_ID,
                f"Element {idx}: id {element.id!r} was already used by element {seen[element.id]}",
                element_index=idx,
            )
        seen.setdefault(element.id, idx)
        _validate_element(element, idx, project, result)

    return result


def _validate_element(
    element: Element,
    idx: int,
    project: ProjectState,
    result: ValidationResult,
) -> None:
    """Validate timing, keyframes and type-specific fields of one element."""
    if element.start_time < 0:
        result.add_error(
            CONFIG_ERROR,
            f"Element {idx}: start_time must be >= 0, got {element.start_time}",
            element_index=idx,
            field="start_time",
        )
    if not element.duration > 0:
        result.add_warning(
            CONFIG_ERROR,
            f"Element {idx}: duration {element.duration} is not positive; 1.0s is used instead",
            element_index=idx,
            field="duration",
        )
    if not element.animation_duration > 0:
        result.add_warning(
            CONFIG_ERROR,
            f"Element {idx}: animation_duration {element.animation_duration} "
            f"is not positive; 1.0s is used instead",
            element_index=idx,
            field="animation_duration",
        )
    if element.start_time >= project.effective_duration:
        result.add_warning(
            "ELEMENT_AFTER_END",
            f"Element {idx}: starts at {element.start_time}s, after the project ends",
            element_index=idx,
        )

    if element.type == ElementType.IMAGE and not element.props.src:
        result.add_warning(
            INVALID_PROPERTY,
            f"Element {idx}: image element has no 'src'",
            element_index=idx,
        )
    if element.props.align is not None and element.props.align not in TEXT_ALIGNMENTS:
        result.add_warning(
            INVALID_PROPERTY,
            f"Element {idx}: align {element.props.align!r} is not one of {sorted(TEXT_ALIGNMENTS)}",
            element_index=idx,
        )

    ordered = sorted_keyframes(element.keyframes)
    for kf_idx, keyframe in enumerate(ordered):
        for key, value in keyframe.props.items():
            if key not in PROPERTY_NAMES:
                result.add_warning(
                    UNRESOLVABLE_KEYFRAME_KEY,
                    f"Element {idx}: keyframe at {keyframe.time}s sets unknown property {key!r}",
                    element_index=idx,
                    keyframe_id=keyframe.id,
                    property=key,
                )
            elif key in _NUMERIC_KEYS and not is_numeric(value):
                result.add_warning(
                    INVALID_PROPERTY,
                    f"Element {idx}: keyframe at {keyframe.time}s gives {key!r} "
                    f"a non-numeric value; it will snap instead of interpolating",
                    element_index=idx,
                    keyframe_id=keyframe.id,
                    property=key,
                )

        if kf_idx > 0:
            before = ordered[kf_idx - 1]
            missing = sorted(k for k in keyframe.props if k in PROPERTY_NAMES and k not in before.props)
            if missing:
                result.add_warning(
                    UNRESOLVABLE_KEYFRAME_KEY,
                    f"Element {idx}: keyframe at {keyframe.time}s sets {', '.join(missing)} "
                    f"not set by the keyframe before it; the value snaps at {keyframe.time}s",
                    element_index=idx,
                    keyframe_id=keyframe.id,
                    properties=missing,
                )

        if not element.is_visible_at(keyframe.time):
            result.add_warning(
                KEYFRAME_OUTSIDE_WINDOW,
                f"Element {idx}: keyframe at {keyframe.time}s is outside "
                f"[{element.start_time}, {element.end_time}]",
                element_index=idx,
                keyframe_id=keyframe.id,
            )


_NUMERIC_KEYS = frozenset({
    "x", "y", "width", "height", "rotation", "scale_x", "scale_y",
    "opacity", "z_index", "font_size", "stroke_width",
})
