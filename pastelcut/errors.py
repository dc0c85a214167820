"""Structured error handling with error codes and recovery suggestions."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

# System
FFMPEG_NOT_FOUND = "FFMPEG_NOT_FOUND"
FFMPEG_TIMEOUT = "FFMPEG_TIMEOUT"
FFMPEG_FAILED = "FFMPEG_FAILED"

# Configuration
CONFIG_ERROR = "CONFIG_ERROR"

# Project document
INVALID_PROJECT = "INVALID_PROJECT"
MISSING_FIELD = "MISSING_FIELD"
INVALID_ELEMENT_TYPE = "INVALID_ELEMENT_TYPE"
INVALID_PRESET = "INVALID_PRESET"
INVALID_PROPERTY = "INVALID_PROPERTY"
DUPLICATE_ELEMENT_ID = "DUPLICATE_ELEMENT_ID"

# Editing
ELEMENT_NOT_FOUND = "ELEMENT_NOT_FOUND"
KEYFRAME_NOT_FOUND = "KEYFRAME_NOT_FOUND"

# Resolution (reported by validation only, never raised while resolving)
UNRESOLVABLE_KEYFRAME_KEY = "UNRESOLVABLE_KEYFRAME_KEY"
KEYFRAME_OUTSIDE_WINDOW = "KEYFRAME_OUTSIDE_WINDOW"

# Export
MISSING_CAPTURE_SURFACE = "MISSING_CAPTURE_SURFACE"
EXPORT_IN_PROGRESS = "EXPORT_IN_PROGRESS"
EXPORT_CANCELLED = "EXPORT_CANCELLED"
RECORDER_FAILED = "RECORDER_FAILED"

# Exit codes for CLI
EXIT_SUCCESS = 0
EXIT_VALIDATION = 1
EXIT_EXECUTION = 2
EXIT_SYSTEM = 3


# ---------------------------------------------------------------------------
# PastelCutError exception
# ---------------------------------------------------------------------------

@dataclass
class PastelCutError(Exception):
    """Structured error with code, message, recovery hints, and context."""
    code: str
    message: str
    recovery: list[str] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "recovery": self.recovery,
            "context": self.context,
        }


# ---------------------------------------------------------------------------
# Recovery hint factory
# ---------------------------------------------------------------------------

def _ffmpeg_install_hints() -> list[str]:
    """Return platform-specific FFmpeg install instructions."""
    hints = ["pip install 'pastelcut[ffmpeg]'  # bundles ffmpeg automatically"]
    if sys.platform == "darwin":
        hints.append("brew install ffmpeg")
    elif sys.platform == "win32":
        hints.append("winget install ffmpeg  OR  choco install ffmpeg")
    else:
        hints.append("sudo apt install ffmpeg  (Debian/Ubuntu)")
    hints.extend([
        "Or download from https://ffmpeg.org/download.html",
        "Set PASTELCUT_FFMPEG=/path/to/ffmpeg to override discovery",
        "Run 'pastelcut doctor' to diagnose setup issues",
        "The JSON frame-log export ('pastelcut export') does not need ffmpeg",
    ])
    return hints


_RECOVERY_MAP: dict[str, list[str]] = {
    CONFIG_ERROR: [
        "Durations must be positive numbers of seconds",
        "fps, canvas width and canvas height must be positive integers",
    ],
    INVALID_PROJECT: [
        "A project document is a JSON object with 'duration' and 'elements'",
        "Run 'pastelcut capabilities' to see the document schema",
    ],
    INVALID_ELEMENT_TYPE: [
        "Use one of: text, image, rect, circle",
    ],
    INVALID_PRESET: [
        "Use one of: none, fadeIn, fadeOut, slideInLeft, slideInRight, pop, pulse",
    ],
    INVALID_PROPERTY: [
        "Numeric properties: x, y, width, height, rotation, scale_x, scale_y, opacity, "
        "z_index, font_size, stroke_width",
        "Categorical properties: fill, stroke, text, font_family, font_style, align, src",
        "Element fields: name, start_time, duration, animation_preset, animation_duration",
    ],
    DUPLICATE_ELEMENT_ID: [
        "Element ids must be unique within a project",
    ],
    ELEMENT_NOT_FOUND: [
        "Check the element id for typos",
        "Run 'pastelcut resolve <project> --at <t>' to list visible element ids",
    ],
    KEYFRAME_NOT_FOUND: [
        "Check the keyframe id for typos",
    ],
    UNRESOLVABLE_KEYFRAME_KEY: [
        "The key is ignored when resolving; remove it from the keyframe or rename it",
    ],
    KEYFRAME_OUTSIDE_WINDOW: [
        "The keyframe still shapes interpolation but is never shown",
        "Move the keyframe inside [start_time, start_time + duration]",
    ],
    MISSING_CAPTURE_SURFACE: [
        "Pass a frame recorder (FrameLogRecorder or FFmpegRecorder) to the exporter",
        "Nothing was changed; retry once a capture surface is available",
    ],
    EXPORT_IN_PROGRESS: [
        "Wait for the running export to finish before seeking or starting playback",
    ],
    RECORDER_FAILED: [
        "The frame recorder raised while capturing; the clock was reset to 0",
    ],
}


def recovery_hints(code: str, context: dict[str, Any] | None = None) -> list[str]:
    """Return recovery suggestions for a given error code."""
    if code == FFMPEG_NOT_FOUND:
        return _ffmpeg_install_hints()

    hints = list(_RECOVERY_MAP.get(code, []))
    context = context or {}

    if code == ELEMENT_NOT_FOUND and "element_id" in context:
        hints.insert(0, f"No element with id {context['element_id']!r}")

    if code == CONFIG_ERROR and "field" in context:
        hints.insert(0, f"Set '{context['field']}' to a value greater than 0")

    return hints
