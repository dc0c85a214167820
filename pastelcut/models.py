"""Data models for PastelCut — all JSON-serializable via to_dict / from_dict."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Optional

from pastelcut.config import normalize_duration


# ---------------------------------------------------------------------------
# Time parsing helper
# ---------------------------------------------------------------------------

_TIME_RE = re.compile(
    r"^(?:(\d+):)?(\d{1,2}):(\d{2})(?:\.(\d+))?$"
)


def parse_time(value: str) -> float:
    """Parse HH:MM:SS.ms or plain seconds into a float of seconds."""
    try:
        return float(value)
    except ValueError:
        pass
    m = _TIME_RE.match(value)
    if not m:
        raise ValueError(f"Invalid time format: {value!r} — use HH:MM:SS, MM:SS, or seconds")
    hours = int(m.group(1) or 0)
    minutes = int(m.group(2))
    seconds = int(m.group(3))
    frac = float(f"0.{m.group(4)}") if m.group(4) else 0.0
    return hours * 3600 + minutes * 60 + seconds + frac


def format_time(seconds: float) -> str:
    """Format seconds as HH:MM:SS.mmm."""
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    s = seconds % 60
    return f"{h:02d}:{m:02d}:{s:06.3f}"


def new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ElementType(str, Enum):
    """Kind of drawable element."""
    TEXT = "text"
    IMAGE = "image"
    RECT = "rect"
    CIRCLE = "circle"


class AnimationPreset(str, Enum):
    """Procedural animation overlays applied after keyframe resolution."""
    NONE = "none"
    FADE_IN = "fadeIn"
    FADE_OUT = "fadeOut"
    SLIDE_IN_LEFT = "slideInLeft"
    SLIDE_IN_RIGHT = "slideInRight"
    POP = "pop"
    PULSE = "pulse"


# ---------------------------------------------------------------------------
# Property set
# ---------------------------------------------------------------------------

NUMERIC_PROPERTIES = (
    "x", "y", "width", "height", "rotation", "scale_x", "scale_y",
    "opacity", "z_index", "font_size", "stroke_width",
)
CATEGORICAL_PROPERTIES = (
    "fill", "stroke", "text", "font_family", "font_style", "align", "src",
)
PROPERTY_NAMES = frozenset(NUMERIC_PROPERTIES + CATEGORICAL_PROPERTIES)
# Always populated on a PropertySet; null never replaces them
REQUIRED_PROPERTIES = frozenset(NUMERIC_PROPERTIES[:9])

# Keys that may be edited on the element itself rather than on its props
ELEMENT_FIELDS = frozenset({
    "name", "start_time", "duration", "animation_preset", "animation_duration",
})

TEXT_ALIGNMENTS = {"left", "center", "right", "justify"}


def _known_values(data: dict) -> dict[str, Any]:
    return {
        k: v for k, v in data.items()
        if k in PROPERTY_NAMES and not (v is None and k in REQUIRED_PROPERTIES)
    }


@dataclass
class PropertySet:
    """Complete visual state of an element at one instant.

    The first nine fields are always populated; the rest are optional and
    only meaningful for some element types (font_* for text, src for images).
    """
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    opacity: float = 1.0
    z_index: int = 0
    font_size: Optional[float] = None
    stroke_width: Optional[float] = None
    fill: Optional[str] = None
    stroke: Optional[str] = None
    text: Optional[str] = None
    font_family: Optional[str] = None
    font_style: Optional[str] = None
    align: Optional[str] = None
    src: Optional[str] = None

    def get(self, key: str, default: Any = None) -> Any:
        if key not in PROPERTY_NAMES:
            return default
        return getattr(self, key)

    def with_overrides(self, overrides: dict[str, Any]) -> PropertySet:
        """Return a copy with *overrides* applied; unknown keys are ignored."""
        known = _known_values(overrides)
        if not known:
            return replace(self)
        return replace(self, **known)

    def copy(self) -> PropertySet:
        return replace(self)

    def to_dict(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: dict) -> PropertySet:
        return cls(**_known_values(data))


# ---------------------------------------------------------------------------
# Keyframes and elements
# ---------------------------------------------------------------------------

@dataclass
class Keyframe:
    """Explicit property values at an absolute project time."""
    time: float
    props: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {"id": self.id, "time": self.time, "props": dict(self.props)}

    @classmethod
    def from_dict(cls, data: dict) -> Keyframe:
        return cls(
            id=str(data.get("id") or new_id()),
            time=float(data["time"]),
            props=dict(data.get("props", {})),
        )


@dataclass
class Element:
    """A timed, keyframed item on the canvas."""
    type: ElementType
    props: PropertySet = field(default_factory=PropertySet)
    id: str = field(default_factory=new_id)
    name: str = ""
    start_time: float = 0.0
    duration: float = 5.0
    keyframes: list[Keyframe] = field(default_factory=list)
    animation_preset: AnimationPreset = AnimationPreset.NONE
    animation_duration: float = 1.0

    @property
    def effective_duration(self) -> float:
        """Clip length in seconds; non-positive values mean 1.0."""
        return normalize_duration(self.duration)

    @property
    def end_time(self) -> float:
        return self.start_time + self.effective_duration

    @property
    def effective_animation_duration(self) -> float:
        """Preset length in seconds; unset or non-positive values mean 1.0."""
        return normalize_duration(self.animation_duration)

    def is_visible_at(self, t: float) -> bool:
        """True when *t* lies in the closed window [start_time, end_time]."""
        return self.start_time <= t <= self.end_time

    def get_keyframe(self, keyframe_id: str) -> Optional[Keyframe]:
        return next((k for k in self.keyframes if k.id == keyframe_id), None)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "start_time": self.start_time,
            "duration": self.duration,
            "props": self.props.to_dict(),
            "keyframes": [k.to_dict() for k in self.keyframes],
            "animation_preset": self.animation_preset.value,
            "animation_duration": self.animation_duration,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Element:
        preset = data.get("animation_preset") or AnimationPreset.NONE.value
        animation_duration = data.get("animation_duration")
        return cls(
            id=str(data["id"]),
            type=ElementType(data["type"]),
            name=data.get("name", ""),
            start_time=float(data.get("start_time", 0.0)),
            duration=float(data.get("duration", 5.0)),
            props=PropertySet.from_dict(data.get("props", {})),
            keyframes=[Keyframe.from_dict(k) for k in data.get("keyframes", [])],
            animation_preset=AnimationPreset(preset),
            animation_duration=1.0 if animation_duration is None else float(animation_duration),
        )


@dataclass
class ProjectState:
    """The whole composition: elements on a fixed-length timeline."""
    duration: float = 10.0
    background_color: str = "#FFFFFF"
    elements: list[Element] = field(default_factory=list)

    @property
    def effective_duration(self) -> float:
        return normalize_duration(self.duration)

    def find_element(self, element_id: str) -> Optional[Element]:
        return next((e for e in self.elements if e.id == element_id), None)

    def get_element(self, element_id: str) -> Element:
        """Return the element with *element_id* or raise ELEMENT_NOT_FOUND."""
        from pastelcut.errors import PastelCutError, ELEMENT_NOT_FOUND, recovery_hints

        element = self.find_element(element_id)
        if element is None:
            context = {"element_id": element_id}
            raise PastelCutError(
                code=ELEMENT_NOT_FOUND,
                message=f"Element {element_id!r} does not exist",
                recovery=recovery_hints(ELEMENT_NOT_FOUND, context),
                context=context,
            )
        return element

    def to_dict(self) -> dict:
        return {
            "duration": self.duration,
            "background_color": self.background_color,
            "elements": [e.to_dict() for e in self.elements],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ProjectState:
        return cls(
            duration=float(data["duration"]),
            background_color=data.get("background_color", "#FFFFFF"),
            elements=[Element.from_dict(e) for e in data.get("elements", [])],
        )


# ---------------------------------------------------------------------------
# Export result
# ---------------------------------------------------------------------------

@dataclass
class ExportArtifact:
    """Finished output of an export run."""
    data: bytes
    mime_type: str
    fps: int
    width: int
    height: int
    frame_count: int = 0
    duration: float = 0.0

    def to_dict(self) -> dict:
        return {
            "mime_type": self.mime_type,
            "fps": self.fps,
            "width": self.width,
            "height": self.height,
            "frame_count": self.frame_count,
            "duration": self.duration,
            "duration_formatted": format_time(self.duration),
            "size_bytes": len(self.data),
        }
