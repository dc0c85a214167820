"""FFmpeg discovery and subprocess runners for video export.

The binary is located once per process by walking ``DISCOVERY_CHAIN`` in
order; the winning path and the label of the source that produced it are
cached together so ``doctor`` can report where ffmpeg came from.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import subprocess
from pathlib import Path
from typing import IO, Callable, Optional

from pastelcut.errors import (
    PastelCutError,
    FFMPEG_NOT_FOUND,
    FFMPEG_TIMEOUT,
    FFMPEG_FAILED,
    recovery_hints,
)

DEFAULT_TIMEOUT = 300  # seconds
STDERR_TAIL = 2000

ENV_FFMPEG = "PASTELCUT_FFMPEG"
ENV_FFMPEG_DIR = "PASTELCUT_FFMPEG_DIR"


# ---------------------------------------------------------------------------
# Discovery sources
# ---------------------------------------------------------------------------

def from_env_binary() -> str | None:
    """PASTELCUT_FFMPEG names the binary itself."""
    value = os.environ.get(ENV_FFMPEG)
    if value and Path(value).is_file():
        return value
    return None


def from_env_dir() -> str | None:
    """PASTELCUT_FFMPEG_DIR names a directory holding ``ffmpeg`` or ``ffmpeg.exe``."""
    dir_path = os.environ.get(ENV_FFMPEG_DIR)
    if not dir_path:
        return None
    for name in ("ffmpeg", "ffmpeg.exe"):
        candidate = Path(dir_path) / name
        if candidate.is_file():
            return str(candidate)
    return None


def from_system_path() -> str | None:
    return shutil.which("ffmpeg")


def from_static_ffmpeg() -> str | None:
    """Binary bundled (or fetched on first use) by the static-ffmpeg package."""
    try:
        from static_ffmpeg.run import get_or_fetch_platform_executables_else_raise
        path, _ = get_or_fetch_platform_executables_else_raise()
        return path
    except Exception:
        return None


def from_imageio_ffmpeg() -> str | None:
    try:
        import imageio_ffmpeg
        return imageio_ffmpeg.get_ffmpeg_exe()
    except Exception:
        return None


DISCOVERY_CHAIN: list[tuple[str, Callable[[], Optional[str]]]] = [
    (f"{ENV_FFMPEG} env var", from_env_binary),
    (f"{ENV_FFMPEG_DIR} env var", from_env_dir),
    ("system PATH", from_system_path),
    ("static-ffmpeg package", from_static_ffmpeg),
    ("imageio-ffmpeg package", from_imageio_ffmpeg),
]

_located: tuple[str, str] | None = None


def reset_cache() -> None:
    """Forget the located binary so the next lookup walks the chain again."""
    global _located
    _located = None


def locate_ffmpeg() -> tuple[str, str] | None:
    """Walk the discovery chain uncached; return ``(path, source)`` or None."""
    for source, finder in DISCOVERY_CHAIN:
        path = finder()
        if path:
            return path, source
    return None


def _lookup() -> tuple[str, str]:
    global _located
    if _located is None:
        found = locate_ffmpeg()
        if found is None:
            raise PastelCutError(
                code=FFMPEG_NOT_FOUND,
                message="ffmpeg binary not found",
                recovery=recovery_hints(FFMPEG_NOT_FOUND),
                context={"searched": [source for source, _ in DISCOVERY_CHAIN]},
            )
        _located = found
    return _located


def find_ffmpeg() -> str:
    """Return the path to the ffmpeg binary, or raise PastelCutError."""
    return _lookup()[0]


def ffmpeg_source() -> str:
    """Label of the discovery source that produced :func:`find_ffmpeg`'s path."""
    return _lookup()[1]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

def _hints_from_stderr(stderr: str) -> list[str]:
    text = stderr.lower()
    if "unknown encoder" in text or "codec not found" in text:
        return [
            "This ffmpeg build lacks the requested encoder",
            f"Point {ENV_FFMPEG} at a fuller build, or run 'pastelcut doctor'",
            "A .webm output uses libvpx-vp9 instead of libx264",
        ]
    if "permission denied" in text:
        return ["Output path is not writable", "Choose another -o location"]
    if "broken pipe" in text or "invalid argument" in text:
        return [
            "ffmpeg rejected the raw frame stream",
            "Each rasterized frame must be width*height*4 RGBA bytes",
        ]
    return ["See context.stderr for the ffmpeg log"]


def _timeout_error(cmd, timeout: int) -> PastelCutError:
    return PastelCutError(
        code=FFMPEG_TIMEOUT,
        message=f"ffmpeg did not finish within {timeout}s",
        recovery=[f"Raise the timeout (currently {timeout}s) or export a shorter project"],
        context={"command": list(cmd), "timeout": timeout},
    )


def _exit_error(cmd, returncode: int, stderr: str) -> PastelCutError:
    tail = stderr[-STDERR_TAIL:]
    return PastelCutError(
        code=FFMPEG_FAILED,
        message=f"ffmpeg exited with code {returncode}",
        recovery=_hints_from_stderr(tail),
        context={"command": list(cmd), "returncode": returncode, "stderr": tail},
    )


# ---------------------------------------------------------------------------
# Runners
# ---------------------------------------------------------------------------

def run_ffmpeg(
    args: list[str],
    timeout: int = DEFAULT_TIMEOUT,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """Run a one-shot ffmpeg command (``args`` excludes the binary itself).

    With ``check`` a non-zero exit raises FFMPEG_FAILED.
    """
    cmd = [find_ffmpeg(), "-hide_banner", "-y"] + args
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        raise _timeout_error(cmd, timeout) from exc
    if check and result.returncode != 0:
        raise _exit_error(cmd, result.returncode, result.stderr or "")
    return result


def open_ffmpeg_pipe(args: list[str], stderr: Optional[IO[bytes]] = None) -> subprocess.Popen:
    """Start ffmpeg reading its input from stdin; the caller writes and closes it."""
    cmd = [find_ffmpeg(), "-hide_banner", "-loglevel", "error", "-y"] + args
    return subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE,
        stdout=subprocess.DEVNULL,
        stderr=stderr if stderr is not None else subprocess.DEVNULL,
    )


def wait_ffmpeg_pipe(
    proc: subprocess.Popen,
    stderr: Optional[IO[bytes]] = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> None:
    """Close stdin, wait for the encoder to exit, raise PastelCutError on failure."""
    if proc.stdin is not None and not proc.stdin.closed:
        with contextlib.suppress(BrokenPipeError):
            proc.stdin.close()
    try:
        returncode = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        proc.kill()
        proc.wait()
        raise _timeout_error(proc.args, timeout) from exc
    if returncode != 0:
        log = ""
        if stderr is not None:
            stderr.seek(0)
            log = stderr.read().decode("utf-8", errors="replace")
        raise _exit_error(proc.args, returncode, log)
