"""Tests for pastelcut.cli — argument parsing and command handlers."""

from __future__ import annotations

import json
import subprocess
import sys
from typing import Optional

import pytest

from pastelcut.cli import build_parser, main


def _run_cli(*args: str, input_text: Optional[str] = None) -> subprocess.CompletedProcess:
    """Run pastelcut CLI as a subprocess and return the result."""
    cmd = [sys.executable, "-m", "pastelcut"] + list(args)
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        input=input_text,
        timeout=60,
    )


def _main_json(capsys, *argv: str) -> tuple[int, dict]:
    """Call main() in-process and return (exit code, parsed stdout)."""
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    return exc_info.value.code, json.loads(capsys.readouterr().out)


class TestParser:
    def test_subcommands(self):
        parser = build_parser()
        args = parser.parse_args(["resolve", "p.json", "--at", "1.5", "--element", "r1"])
        assert (args.command, args.project, args.at, args.element) == ("resolve", "p.json", "1.5", "r1")

    def test_export_flags(self):
        args = build_parser().parse_args(["export", "p.json", "-o", "out.json", "--fps", "24", "-q", "--fast"])
        assert (args.fps, args.quiet, args.fast) == (24, True, True)

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1


class TestCapabilities:
    def test_lists_presets_and_properties(self, capsys):
        code, data = _main_json(capsys, "capabilities")
        assert code == 0
        assert "pulse" in data["animation_presets_supported"]
        assert "opacity" in data["properties"]["numeric"]
        assert data["default_config"]["fps"] == 30


class TestValidate:
    def test_valid_file(self, capsys, project_file):
        code, data = _main_json(capsys, "validate", project_file)
        assert code == 0
        assert data["valid"] is True
        assert data["export_frame_count"] == 301

    def test_fps_override(self, capsys, project_file):
        _, data = _main_json(capsys, "validate", project_file, "--fps", "10")
        assert data["export_frame_count"] == 101

    def test_invalid_inline_json(self, capsys):
        code, data = _main_json(capsys, "validate", "--project-json", "{oops")
        assert code == 1
        assert data["valid"] is False

    def test_missing_file(self, capsys, tmp_path):
        code, data = _main_json(capsys, "validate", str(tmp_path / "nope.json"))
        assert code == 1
        assert data["code"] == "INPUT_NOT_FOUND"

    def test_stdin(self, project):
        result = _run_cli("validate", "-", input_text=json.dumps(project.to_dict()))
        assert result.returncode == 0
        assert json.loads(result.stdout)["valid"] is True


class TestResolve:
    def test_visible_elements(self, capsys, project_file):
        code, data = _main_json(capsys, "resolve", project_file, "--at", "3")
        assert code == 0
        assert [e["id"] for e in data["elements"]] == ["r1", "t1"]
        assert data["elements"][0]["props"]["x"] == pytest.approx(50.0)

    def test_single_element(self, capsys, project_file):
        _, data = _main_json(capsys, "resolve", project_file, "--at", "0:00:08", "--element", "r1")
        assert data["elements"][0]["visible"] is False
        assert data["elements"][0]["props"]["x"] == 100.0

    def test_unknown_element(self, capsys, project_file):
        code, data = _main_json(capsys, "resolve", project_file, "--at", "1", "--element", "zz")
        assert code == 1
        assert data["code"] == "ELEMENT_NOT_FOUND"

    def test_bad_time(self, capsys, project_file):
        code, data = _main_json(capsys, "resolve", project_file, "--at", "soon")
        assert code == 1
        assert data["code"] == "INVALID_ARGUMENT"


class TestRecord:
    def test_writes_keyframe_to_output(self, capsys, project_file, tmp_path):
        out = tmp_path / "recorded.json"
        code, data = _main_json(
            capsys, "record", project_file, "--element", "r1", "--property", "x",
            "--at", "3", "-o", str(out),
        )
        assert code == 0
        assert data["keyframe"]["props"]["x"] == pytest.approx(50.0)
        saved = json.loads(out.read_text())
        assert len(saved["elements"][0]["keyframes"]) == 3

    def test_overwrites_input_by_default(self, capsys, project_file):
        _main_json(capsys, "record", project_file, "--element", "r1", "--property", "x", "--at", "2.01")
        saved = json.loads(open(project_file).read())
        assert [k["time"] for k in saved["elements"][0]["keyframes"]] == [4.0, 2.01]

    def test_unknown_property(self, capsys, project_file):
        code, data = _main_json(
            capsys, "record", project_file, "--element", "r1", "--property", "glow", "--at", "1",
        )
        assert code == 1
        assert data["code"] == "INVALID_PROPERTY"


class TestExport:
    def test_frame_log(self, capsys, project_file, tmp_path):
        out = tmp_path / "frames.json"
        code, data = _main_json(capsys, "export", project_file, "-o", str(out), "--fast", "-q", "--fps", "5")
        assert code == 0
        assert data["success"] is True
        assert data["frame_count"] == 51
        doc = json.loads(out.read_text())
        assert doc["fps"] == 5
        assert len(doc["frames"]) == 51

    def test_progress_on_stderr(self, project_file, tmp_path):
        out = tmp_path / "frames.json"
        result = _run_cli("export", project_file, "-o", str(out), "--fast", "--fps", "2")
        assert result.returncode == 0
        lines = [json.loads(line) for line in result.stderr.splitlines() if line.startswith('{"progress"')]
        assert len(lines) == 21
        assert lines[-1]["progress"] == {"step": 21, "total": 21, "time": 10.0}


class TestDoctor:
    def test_doctor_reports(self, capsys):
        code, data = _main_json(capsys, "doctor")
        assert "checks" in data
        assert code in (0, 3)
