"""Frame sinks for the export loop.

FrameLogRecorder keeps every resolved frame as JSON; it needs nothing beyond
the standard library and is what the CLI exports by default.

FFmpegRecorder encodes a real video: a caller-supplied rasterizer turns each
resolved frame into raw RGBA bytes, which are piped into ffmpeg.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

from pastelcut.errors import PastelCutError, RECORDER_FAILED, recovery_hints
from pastelcut.ffmpeg import DEFAULT_TIMEOUT, find_ffmpeg, open_ffmpeg_pipe, wait_ffmpeg_pipe
from pastelcut.models import Element, ExportArtifact, PropertySet

logger = logging.getLogger(__name__)

Frame = Sequence[tuple[Element, PropertySet]]
Rasterizer = Callable[[float, Frame, int, int], bytes]


class FrameSink(Protocol):
    """What the export loop needs from a recorder."""

    def is_available(self) -> bool: ...

    def begin(self, fps: int, width: int, height: int) -> None: ...

    def capture_frame(self, time: float, frame: Frame) -> None: ...

    def finish(self) -> ExportArtifact: ...

    def abort(self) -> None: ...


# ---------------------------------------------------------------------------
# JSON frame log
# ---------------------------------------------------------------------------

class FrameLogRecorder:
    """Record each frame's visible elements and resolved properties."""

    mime_type = "application/json"

    def __init__(self, background_color: str = "#FFFFFF") -> None:
        self.background_color = background_color
        self.frames: list[dict] = []
        self.fps = 0
        self.width = 0
        self.height = 0

    def is_available(self) -> bool:
        return True

    def begin(self, fps: int, width: int, height: int) -> None:
        self.fps, self.width, self.height = fps, width, height
        self.frames = []

    def capture_frame(self, time: float, frame: Frame) -> None:
        self.frames.append({
            "index": len(self.frames),
            "time": time,
            "elements": [
                {"id": element.id, "type": element.type.value, "props": props.to_dict()}
                for element, props in frame
            ],
        })

    def finish(self) -> ExportArtifact:
        duration = self.frames[-1]["time"] if self.frames else 0.0
        document = {
            "fps": self.fps,
            "width": self.width,
            "height": self.height,
            "background_color": self.background_color,
            "frames": self.frames,
        }
        return ExportArtifact(
            data=json.dumps(document).encode("utf-8"),
            mime_type=self.mime_type,
            fps=self.fps,
            width=self.width,
            height=self.height,
            frame_count=len(self.frames),
            duration=duration,
        )

    def abort(self) -> None:
        self.frames = []


# ---------------------------------------------------------------------------
# FFmpeg video encoder
# ---------------------------------------------------------------------------

_CONTAINERS = {
    ".mp4": ("video/mp4", "libx264"),
    ".webm": ("video/webm", "libvpx-vp9"),
}


class FFmpegRecorder:
    """Pipe rasterized RGBA frames into ffmpeg and return the encoded file.

    Args:
        rasterize: ``rasterize(time, frame, width, height) -> bytes`` returning
            exactly ``width * height * 4`` RGBA bytes.
        output_path: Where to keep the video. When omitted the file lives in a
            temporary directory that is removed once its bytes are read.
        codec: Video encoder; defaults by container (.mp4 libx264, .webm vp9).
        timeout: Seconds to wait for ffmpeg to finalize after the last frame.
    """

    def __init__(
        self,
        rasterize: Rasterizer,
        output_path: Optional[str] = None,
        codec: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.rasterize = rasterize
        self.output_path = output_path
        suffix = Path(output_path).suffix.lower() if output_path else ".mp4"
        if suffix not in _CONTAINERS:
            raise ValueError(f"Unsupported container {suffix!r}; use one of {sorted(_CONTAINERS)}")
        self.mime_type, default_codec = _CONTAINERS[suffix]
        self.codec = codec or default_codec
        self.timeout = timeout
        self._suffix = suffix
        self._proc = None
        self._stderr = None
        self._temp_dir: Optional[str] = None
        self._target: Optional[str] = None
        self._frame_count = 0
        self._last_time = 0.0
        self.fps = 0
        self.width = 0
        self.height = 0

    def is_available(self) -> bool:
        try:
            find_ffmpeg()
        except PastelCutError:
            return False
        return True

    def begin(self, fps: int, width: int, height: int) -> None:
        self.fps, self.width, self.height = fps, width, height
        self._frame_count = 0
        if self.output_path:
            Path(self.output_path).parent.mkdir(parents=True, exist_ok=True)
            self._target = self.output_path
        else:
            self._temp_dir = tempfile.mkdtemp(prefix="pastelcut_")
            self._target = str(Path(self._temp_dir) / f"export{self._suffix}")

        self._stderr = tempfile.TemporaryFile()
        self._proc = open_ffmpeg_pipe([
            "-f", "rawvideo",
            "-pix_fmt", "rgba",
            "-s", f"{width}x{height}",
            "-r", str(fps),
            "-i", "-",
            "-c:v", self.codec,
            "-pix_fmt", "yuv420p",
            self._target,
        ], stderr=self._stderr)
        logger.info("Encoding %dx%d@%dfps to %s", width, height, fps, self._target)

    def capture_frame(self, time: float, frame: Frame) -> None:
        data = self.rasterize(time, frame, self.width, self.height)
        expected = self.width * self.height * 4
        if len(data) != expected:
            raise PastelCutError(
                code=RECORDER_FAILED,
                message=f"Rasterizer returned {len(data)} bytes, expected {expected}",
                recovery=recovery_hints(RECORDER_FAILED),
                context={"time": time, "expected": expected, "actual": len(data)},
            )
        try:
            self._proc.stdin.write(data)
        except BrokenPipeError as exc:
            # ffmpeg already died; wait_ffmpeg_pipe reports why
            wait_ffmpeg_pipe(self._proc, self._stderr, timeout=self.timeout)
            raise PastelCutError(
                code=RECORDER_FAILED,
                message="ffmpeg closed its input early",
                recovery=recovery_hints(RECORDER_FAILED),
                context={"time": time},
            ) from exc
        self._frame_count += 1
        self._last_time = time

    def finish(self) -> ExportArtifact:
        try:
            wait_ffmpeg_pipe(self._proc, self._stderr, timeout=self.timeout)
            data = Path(self._target).read_bytes()
        finally:
            self._cleanup()
        logger.info("Encoded %d frames (%d bytes)", self._frame_count, len(data))
        return ExportArtifact(
            data=data,
            mime_type=self.mime_type,
            fps=self.fps,
            width=self.width,
            height=self.height,
            frame_count=self._frame_count,
            duration=self._last_time,
        )

    def abort(self) -> None:
        if self._proc is not None and self._proc.poll() is None:
            self._proc.kill()
            self._proc.wait()
        if self.output_path and self._target and os.path.exists(self._target):
            os.remove(self._target)
        self._cleanup()

    def _cleanup(self) -> None:
        if self._proc is not None and self._proc.stdin is not None and not self._proc.stdin.closed:
            with contextlib.suppress(BrokenPipeError):
                self._proc.stdin.close()
        if self._stderr is not None:
            self._stderr.close()
            self._stderr = None
        if self._temp_dir is not None:
            shutil.rmtree(self._temp_dir, ignore_errors=True)
            self._temp_dir = None
        self._proc = None
