"""Agent-friendly CLI — every command outputs JSON to stdout."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pastelcut.errors import PastelCutError, EXIT_SUCCESS, EXIT_VALIDATION, EXIT_EXECUTION, EXIT_SYSTEM

logger = logging.getLogger("pastelcut")


def _json_out(data: dict, exit_code: int = EXIT_SUCCESS) -> int:
    """Print JSON to stdout and return exit code."""
    print(json.dumps(data, indent=2))
    return exit_code


def _json_error(exc: PastelCutError, exit_code: int = EXIT_EXECUTION) -> int:
    """Print a PastelCutError as JSON and return the appropriate exit code."""
    return _json_out(exc.to_dict(), exit_code)


def _configure_logging(verbose: bool) -> None:
    """Send log records to stderr so stdout stays pure JSON."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _engine_config(args):
    """Build the engine config from the environment plus --fps/--width/--height."""
    from pastelcut.config import EngineConfig

    config = EngineConfig.from_env()
    overrides = {
        "fps": getattr(args, "fps", None),
        "canvas_width": getattr(args, "width", None),
        "canvas_height": getattr(args, "height", None),
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if not overrides:
        return config
    return EngineConfig(**{**config.to_dict(), **overrides})


def _read_project_input(project_arg: str | None = None, project_json: str | None = None) -> str:
    """Read a project from inline JSON, stdin (if '-'), or from a file path."""
    if project_json:
        return project_json
    if project_arg is None:
        raise PastelCutError(
            code="MISSING_FIELD",
            message="No project provided — pass a file path, use '-' for stdin, or use --project-json",
            recovery=[
                "Provide a project file path",
                "Use '-' to read from stdin",
                "Use --project-json '{...}'",
            ],
        )
    if project_arg == "-":
        return sys.stdin.read()
    try:
        return Path(project_arg).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Project file not found: {project_arg}")


def _input_not_found(args) -> int:
    return _json_out({
        "error": True, "code": "INPUT_NOT_FOUND",
        "message": f"Project file not found: {getattr(args, 'project', None)}",
        "recovery": ["Check the file path, or use '-' to read from stdin, or use --project-json"],
    }, EXIT_VALIDATION)


def _invalid_argument(exc: ValueError, hint: str) -> int:
    return _json_out({
        "error": True,
        "code": "INVALID_ARGUMENT",
        "message": str(exc),
        "recovery": [hint],
    }, EXIT_VALIDATION)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

def cmd_capabilities(_args) -> int:
    """Output machine-readable schema of the project document and commands."""
    from pastelcut.config import EngineConfig
    from pastelcut.models import (
        AnimationPreset,
        ElementType,
        CATEGORICAL_PROPERTIES,
        NUMERIC_PROPERTIES,
    )

    caps = {
        "version": "1.0",
        "element_types": [t.value for t in ElementType],
        "animation_presets": {
            "none": "No entrance or exit effect",
            "fadeIn": "Opacity 0 to full over the first animation_duration seconds",
            "fadeOut": "Opacity full to 0 over the last animation_duration seconds",
            "slideInLeft": "Enters from off-canvas left with cubic ease-out",
            "slideInRight": "Enters from off-canvas right with cubic ease-out",
            "pop": "Scales up from 0 with a back-ease overshoot in half the animation time",
            "pulse": "Continuous gentle scale oscillation (about 1Hz, +-5%)",
        },
        "animation_presets_supported": [p.value for p in AnimationPreset],
        "properties": {
            "numeric": list(NUMERIC_PROPERTIES),
            "categorical": list(CATEGORICAL_PROPERTIES),
            "_note": "Numeric properties interpolate linearly between keyframes; "
                     "categorical ones hold the earlier keyframe's value",
        },
        "project_format": {
            "version": "1.0",
            "duration": "float (seconds, > 0)",
            "background_color": "str (hex color)",
            "elements": {
                "id": "str (unique)",
                "type": "'text' | 'image' | 'rect' | 'circle'",
                "name": "str",
                "start_time": "float (seconds, >= 0)",
                "duration": "float (seconds, > 0)",
                "props": "object of property values",
                "keyframes": "list[{id, time (absolute seconds), props}]",
                "animation_preset": "preset name (default 'none')",
                "animation_duration": "float (seconds, default 1.0)",
            },
        },
        "default_config": EngineConfig().to_dict(),
        "commands": {
            "validate": "Dry-run checks for a project document",
            "resolve": "Resolved properties of every visible element at a time",
            "record": "Record a property's current value as a keyframe",
            "export": "Step through the project at the export frame rate into a frame log",
            "doctor": "Environment diagnostics",
        },
        "time_formats": ["HH:MM:SS", "HH:MM:SS.mmm", "MM:SS", "seconds"],
        "exit_codes": {"0": "success", "1": "validation_error", "2": "execution_error", "3": "system_error"},
        "progress_output": {
            "description": "During 'export', progress is emitted as JSONL on stderr",
            "format": {"progress": {"step": "int", "total": "int", "time": "float"}},
            "suppress": "Use --quiet / -q to suppress progress output",
        },
        "tips": [
            "Keyframe times are absolute project seconds, not relative to the element",
            "A property set by a keyframe but not by the one before it snaps at that keyframe",
            "Presets are applied after keyframes and never written back to the project",
            "Use 'record' at the playhead to add or replace a single-property keyframe",
        ],
    }
    return _json_out(caps)


def cmd_validate(args) -> int:
    """Validate a project without exporting."""
    from pastelcut.validation import validate_project
    try:
        text = _read_project_input(
            getattr(args, "project", None),
            getattr(args, "project_json", None),
        )
        result = validate_project(text, config=_engine_config(args))
        code = EXIT_SUCCESS if result.valid else EXIT_VALIDATION
        return _json_out(result.to_dict(), code)
    except PastelCutError as exc:
        return _json_error(exc, EXIT_VALIDATION)
    except FileNotFoundError:
        return _input_not_found(args)


def cmd_resolve(args) -> int:
    """Resolve visible elements at a single time."""
    from pastelcut.document import parse_project
    from pastelcut.models import parse_time
    from pastelcut.resolver import render_state, resolve_element
    try:
        project = parse_project(_read_project_input(args.project, args.project_json))
        t = parse_time(args.at)
        config = _engine_config(args)
        if args.element:
            element = project.get_element(args.element)
            elements = [{
                "id": element.id,
                "type": element.type.value,
                "visible": element.is_visible_at(t),
                "props": resolve_element(element, t, config).to_dict(),
            }]
        else:
            elements = [
                {"id": element.id, "type": element.type.value, "props": props.to_dict()}
                for element, props in render_state(project, t, config)
            ]
        return _json_out({"time": t, "elements": elements, "count": len(elements)})
    except PastelCutError as exc:
        return _json_error(exc, EXIT_VALIDATION)
    except FileNotFoundError:
        return _input_not_found(args)
    except ValueError as exc:
        return _invalid_argument(exc, "Use a valid timestamp in --at")


def cmd_record(args) -> int:
    """Record a property's current value as a keyframe and save the project."""
    from pastelcut.document import dump_project, parse_project, save_project
    from pastelcut.editing import add_or_replace_keyframe
    from pastelcut.models import parse_time
    try:
        project = parse_project(_read_project_input(args.project, args.project_json))
        t = parse_time(args.at)
        keyframe = add_or_replace_keyframe(
            project, args.element, args.property, t, config=_engine_config(args),
        )
        output = args.output or (args.project if args.project not in (None, "-") else None)
        result = {"keyframe": keyframe.to_dict(), "element_id": args.element}
        if output:
            result["output_path"] = str(save_project(project, output))
        else:
            result["project"] = json.loads(dump_project(project))
        return _json_out(result)
    except PastelCutError as exc:
        return _json_error(exc, EXIT_VALIDATION)
    except FileNotFoundError:
        return _input_not_found(args)
    except ValueError as exc:
        return _invalid_argument(exc, "Use a valid timestamp in --at")


def _make_progress_callback(quiet: bool):
    """Return a progress callback that writes JSONL to stderr, or None if quiet."""
    if quiet:
        return None

    def _progress(step: int, total: int, t: float) -> None:
        line = json.dumps({"progress": {"step": step, "total": total, "time": round(t, 6)}})
        print(line, file=sys.stderr, flush=True)

    return _progress


def cmd_export(args) -> int:
    """Export a project as a JSON frame log."""
    from pastelcut.clock import PlaybackClock
    from pastelcut.document import parse_project
    from pastelcut.export import Exporter
    from pastelcut.recorders import FrameLogRecorder
    try:
        project = parse_project(_read_project_input(args.project, args.project_json))
        config = _engine_config(args)
        clock = PlaybackClock(project, config=config)
        exporter = Exporter(
            clock,
            FrameLogRecorder(background_color=project.background_color),
            step_delay=0.0 if args.fast else None,
            progress_callback=_make_progress_callback(args.quiet),
        )
        artifact = exporter.run()
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(artifact.data)
        return _json_out({"success": True, "output_path": str(out), **artifact.to_dict()})
    except PastelCutError as exc:
        return _json_error(exc, EXIT_EXECUTION)
    except FileNotFoundError:
        return _input_not_found(args)


def cmd_doctor(_args) -> int:
    """Report environment diagnostics."""
    from pastelcut.doctor import run_doctor
    report = run_doctor()
    return _json_out(report, EXIT_SUCCESS if report["healthy"] else EXIT_SYSTEM)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _add_project_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("project", nargs="?", default=None,
                   help="Path to the project JSON file (or '-' for stdin)")
    p.add_argument("--project-json", dest="project_json", default=None,
                   help="Inline project JSON string (alternative to file path)")


def _add_config_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--fps", type=int, default=None, help="Export frame rate (default: 30)")
    p.add_argument("--width", type=int, default=None, help="Canvas width in pixels (default: 1080)")
    p.add_argument("--height", type=int, default=None, help="Canvas height in pixels (default: 1920)")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="pastelcut",
        description="Keyframe animation timeline engine — all output is JSON",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=False,
                        help="Write debug logs to stderr")
    sub = parser.add_subparsers(dest="command")

    # capabilities
    sub.add_parser("capabilities", help="Describe the project format and commands")

    # validate
    p = sub.add_parser("validate", help="Validate a project (dry-run)")
    _add_project_args(p)
    _add_config_args(p)

    # resolve
    p = sub.add_parser("resolve", help="Resolve element properties at a time")
    _add_project_args(p)
    _add_config_args(p)
    p.add_argument("--at", required=True, help="Project time")
    p.add_argument("--element", default=None, help="Only resolve this element id")

    # record
    p = sub.add_parser("record", help="Record a property's current value as a keyframe")
    _add_project_args(p)
    p.add_argument("--element", required=True, help="Element id")
    p.add_argument("--property", required=True, help="Property name (e.g. x, opacity)")
    p.add_argument("--at", required=True, help="Project time of the keyframe")
    p.add_argument("-o", "--output", default=None,
                   help="Where to save the project (default: overwrite the input file)")

    # export
    p = sub.add_parser("export", help="Export a project to a JSON frame log")
    _add_project_args(p)
    _add_config_args(p)
    p.add_argument("-o", "--output", required=True, help="Output file path")
    p.add_argument("--fast", action="store_true", default=False,
                   help="Do not wait between frames")
    p.add_argument("-q", "--quiet", action="store_true", default=False,
                   help="Suppress progress output on stderr")

    # doctor
    sub.add_parser("doctor", help="Check ffmpeg, config and temp directory")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_VALIDATION)

    handlers = {
        "capabilities": cmd_capabilities,
        "validate": cmd_validate,
        "resolve": cmd_resolve,
        "record": cmd_record,
        "export": cmd_export,
        "doctor": cmd_doctor,
    }

    try:
        exit_code = handlers[args.command](args)
    except PastelCutError as exc:
        exit_code = _json_error(exc, EXIT_SYSTEM)
    except Exception as exc:
        logger.debug("Unexpected error", exc_info=True)
        exit_code = _json_out({
            "error": True,
            "code": "UNEXPECTED_ERROR",
            "message": str(exc),
            "recovery": ["This is an unexpected error — please report it"],
        }, EXIT_SYSTEM)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
