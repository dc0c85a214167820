"""Diagnostic checks for pastelcut prerequisites.

Every check returns ``(ok, detail)``. Only the config and temp-directory
checks decide overall health; ffmpeg is needed for video export alone, since
frame-log export and every editing command run without it.
"""

from __future__ import annotations

import importlib.util
import os
import shutil
import tempfile
from importlib import metadata

from pastelcut.config import ENV_CANVAS_HEIGHT, ENV_CANVAS_WIDTH, ENV_FPS, EngineConfig
from pastelcut.errors import PastelCutError
from pastelcut.ffmpeg import ENV_FFMPEG, ENV_FFMPEG_DIR, ffmpeg_source, find_ffmpeg, run_ffmpeg

OPTIONAL_PACKAGES = {"static_ffmpeg": "static-ffmpeg", "imageio_ffmpeg": "imageio-ffmpeg"}
ENV_VARS = (ENV_FFMPEG, ENV_FFMPEG_DIR, ENV_CANVAS_WIDTH, ENV_CANVAS_HEIGHT, ENV_FPS)
REQUIRED_CHECKS = ("config", "temp_directory")


def check_config() -> tuple[bool, dict]:
    try:
        config = EngineConfig.from_env()
    except PastelCutError as exc:
        return False, {"error": exc.to_dict()}
    return True, {"config": config.to_dict()}


def check_ffmpeg() -> tuple[bool, dict]:
    try:
        path = find_ffmpeg()
    except PastelCutError as exc:
        return False, {"path": None, "version": None, "source": None, "recovery": exc.recovery}
    return True, {"path": path, "version": _ffmpeg_version(), "source": ffmpeg_source()}


def _ffmpeg_version() -> str | None:
    try:
        result = run_ffmpeg(["-version"], timeout=10, check=False)
    except (PastelCutError, OSError):
        return None
    lines = (result.stdout or "").strip().splitlines()
    return lines[0] if lines else None


def check_package(module: str) -> tuple[bool, dict]:
    """Optional ffmpeg provider; absence is reported, not fatal."""
    if importlib.util.find_spec(module) is None:
        return False, {"installed": False, "version": None}
    try:
        version = metadata.version(OPTIONAL_PACKAGES.get(module, module))
    except metadata.PackageNotFoundError:
        version = "unknown"
    return True, {"installed": True, "version": version}


def check_temp_dir() -> tuple[bool, dict]:
    tmp = tempfile.gettempdir()
    writable = os.access(tmp, os.W_OK)
    try:
        free_mb = round(shutil.disk_usage(tmp).free / (1024 * 1024), 1)
    except OSError:
        free_mb = None
    return writable, {"path": tmp, "writable": writable, "free_mb": free_mb}


def check_env_vars() -> tuple[bool, dict]:
    return True, {name: os.environ.get(name) for name in ENV_VARS}


def run_doctor() -> dict:
    """Run all diagnostic checks and return a structured report."""
    registry = [("config", check_config), ("ffmpeg", check_ffmpeg)]
    registry += [(f"package:{mod}", lambda mod=mod: check_package(mod)) for mod in OPTIONAL_PACKAGES]
    registry += [("temp_directory", check_temp_dir), ("env_vars", check_env_vars)]

    checks = []
    for name, check in registry:
        ok, detail = check()
        checks.append({"name": name, "ok": ok, "detail": detail})

    status = {c["name"]: c["ok"] for c in checks}
    return {
        "healthy": all(status[name] for name in REQUIRED_CHECKS),
        "video_export": status["ffmpeg"],
        "checks": checks,
    }
