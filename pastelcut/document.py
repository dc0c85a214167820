"""Project document I/O — JSON parsing and writing of ProjectState."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pastelcut.errors import (
    PastelCutError,
    INVALID_PROJECT,
    INVALID_ELEMENT_TYPE,
    INVALID_PRESET,
    MISSING_FIELD,
    recovery_hints,
)
from pastelcut.models import AnimationPreset, ElementType, ProjectState

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = "1.0"


def _parse_element_enums(idx: int, data: dict) -> None:
    """Raise a structured error for an unknown element type or preset."""
    kind = data.get("type")
    if kind not in {t.value for t in ElementType}:
        raise PastelCutError(
            code=INVALID_ELEMENT_TYPE,
            message=f"Element {idx}: unknown type {kind!r}",
            recovery=recovery_hints(INVALID_ELEMENT_TYPE),
            context={"element_index": idx, "type": kind},
        )
    preset = data.get("animation_preset")
    if preset is not None and preset not in {p.value for p in AnimationPreset}:
        raise PastelCutError(
            code=INVALID_PRESET,
            message=f"Element {idx}: unknown animation preset {preset!r}",
            recovery=recovery_hints(INVALID_PRESET),
            context={"element_index": idx, "preset": preset},
        )


def parse_project(raw: str | bytes | dict) -> ProjectState:
    """Parse a JSON string or dict into a ProjectState.

    Unknown fields are ignored; keyframe property maps are kept verbatim.

    Raises:
        PastelCutError: If the document is malformed.
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PastelCutError(
                code=INVALID_PROJECT,
                message=f"Invalid JSON: {exc}",
                recovery=["Check JSON syntax — missing commas, brackets, or quotes"],
                context={"parse_error": str(exc)},
            ) from exc
    else:
        data = raw

    if not isinstance(data, dict):
        raise PastelCutError(
            code=INVALID_PROJECT,
            message=f"Project document must be a JSON object, got {type(data).__name__}",
            recovery=recovery_hints(INVALID_PROJECT),
        )

    if "duration" not in data:
        raise PastelCutError(
            code=MISSING_FIELD,
            message="Project missing required field: 'duration'",
            recovery=["Add 'duration' (seconds) to the top-level project object"],
            context={"missing_field": "duration"},
        )

    elements = data.get("elements", [])
    if not isinstance(elements, list):
        raise PastelCutError(
            code=INVALID_PROJECT,
            message="'elements' must be a list",
            recovery=recovery_hints(INVALID_PROJECT),
        )
    for idx, element in enumerate(elements):
        if not isinstance(element, dict):
            raise PastelCutError(
                code=INVALID_PROJECT,
                message=f"Element {idx} must be a JSON object",
                recovery=recovery_hints(INVALID_PROJECT),
                context={"element_index": idx},
            )
        _parse_element_enums(idx, element)

    try:
        return ProjectState.from_dict(data)
    except KeyError as exc:
        raise PastelCutError(
            code=MISSING_FIELD,
            message=f"Project document missing required field: {exc}",
            recovery=[
                "Elements need 'id' and 'type'; keyframes need 'time'",
                "Run 'pastelcut capabilities' to see the document schema",
            ],
            context={"missing_field": str(exc).strip("'")},
        ) from exc
    except (TypeError, ValueError) as exc:
        raise PastelCutError(
            code=INVALID_PROJECT,
            message=f"Invalid value in project document: {exc}",
            recovery=recovery_hints(INVALID_PROJECT),
            context={"parse_error": str(exc)},
        ) from exc


def dump_project(project: ProjectState, indent: int | None = 2) -> str:
    """Serialize a project; floats are written with full double precision."""
    data = {"version": DOCUMENT_VERSION, **project.to_dict()}
    return json.dumps(data, indent=indent)


def load_project(path: str | Path) -> ProjectState:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise PastelCutError(
            code=INVALID_PROJECT,
            message=f"Project file not found: {path}",
            recovery=["Check the file path for typos", "Use an absolute path"],
            context={"path": str(path)},
        ) from exc
    project = parse_project(text)
    logger.debug("Loaded %s (%d elements)", path, len(project.elements))
    return project


def save_project(project: ProjectState, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_project(project), encoding="utf-8")
    logger.debug("Saved %s (%d elements)", path, len(project.elements))
    return path
