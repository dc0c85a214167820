"""PastelCut — keyframe animation timeline engine.

Public API:
    resolve, resolve_element, render_state, visible_elements — property resolution
    apply_preset                                             — entrance/exit/loop presets
    add_element, update_element, add_or_replace_keyframe ... — editing
    PlaybackClock                                            — preview and export timing
    Exporter, start_export                                   — frame-accurate export
    FrameLogRecorder, FFmpegRecorder                         — frame sinks
    parse_project, load_project, save_project, dump_project  — project documents
    validate_project                                         — dry-run validation
    PastelCutError                                           — structured errors
"""

from pastelcut.config import EngineConfig
from pastelcut.resolver import resolve, resolve_element, render_state, visible_elements
from pastelcut.presets import apply_preset
from pastelcut.editing import (
    add_element,
    update_element,
    move_element,
    resize_element,
    delete_element,
    bring_forward,
    send_backward,
    set_project_duration,
    set_background_color,
    add_keyframe,
    update_keyframe,
    delete_keyframe,
    add_or_replace_keyframe,
)
from pastelcut.clock import ClockMode, PlaybackClock
from pastelcut.export import Exporter, export_step_count, start_export
from pastelcut.recorders import FFmpegRecorder, FrameLogRecorder
from pastelcut.document import dump_project, load_project, parse_project, save_project
from pastelcut.validation import validate_project
from pastelcut.errors import PastelCutError
from pastelcut.models import (
    AnimationPreset,
    Element,
    ElementType,
    ExportArtifact,
    Keyframe,
    ProjectState,
    PropertySet,
)

__version__ = "0.1.0"

__all__ = [
    # Resolution
    "resolve",
    "resolve_element",
    "render_state",
    "visible_elements",
    "apply_preset",
    # Editing
    "add_element",
    "update_element",
    "move_element",
    "resize_element",
    "delete_element",
    "bring_forward",
    "send_backward",
    "set_project_duration",
    "set_background_color",
    "add_keyframe",
    "update_keyframe",
    "delete_keyframe",
    "add_or_replace_keyframe",
    # Playback and export
    "ClockMode",
    "PlaybackClock",
    "Exporter",
    "export_step_count",
    "start_export",
    "FrameLogRecorder",
    "FFmpegRecorder",
    # Documents
    "parse_project",
    "load_project",
    "save_project",
    "dump_project",
    "validate_project",
    # Types
    "EngineConfig",
    "AnimationPreset",
    "Element",
    "ElementType",
    "ExportArtifact",
    "Keyframe",
    "ProjectState",
    "PropertySet",
    "PastelCutError",
]
