"""Export capture loop — steps the clock frame by frame into a recorder.

Frame times are ``index / fps`` for every index whose time does not exceed
the project duration, so the output never depends on how long capturing a
frame takes. The per-step delay only gives an external renderer time to
draw; it has no influence on which times are captured.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Iterator, Optional

from pastelcut.clock import PlaybackClock
from pastelcut.errors import (
    PastelCutError,
    EXPORT_CANCELLED,
    MISSING_CAPTURE_SURFACE,
    RECORDER_FAILED,
    recovery_hints,
)
from pastelcut.models import ExportArtifact
from pastelcut.recorders import FrameSink
from pastelcut.resolver import render_state

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, float], None]


def export_step_count(duration: float, fps: int) -> int:
    """Number of frames an export of *duration* seconds captures at *fps*."""
    count = int(duration * fps) + 1
    while count > 1 and (count - 1) / fps > duration:
        count -= 1
    while count / fps <= duration:
        count += 1
    return count


class Exporter:
    """Drive one PlaybackClock through an export into a frame sink.

    Args:
        clock: The clock to take over; preview is stopped for the duration.
        sink: Recorder that receives each frame. None means no capture surface.
        step_delay: Seconds to wait after each frame (defaults to 1 / fps).
        sleep: Blocking sleep used by run(); injectable for tests.
        progress_callback: Optional callable(step, total, time) after each frame.
    """

    def __init__(
        self,
        clock: PlaybackClock,
        sink: Optional[FrameSink],
        step_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        self.clock = clock
        self.sink = sink
        self.config = clock.config
        self.step_delay = self.config.frame_step if step_delay is None else step_delay
        self._sleep = sleep
        self.progress_callback = progress_callback
        self._cancel_requested = False
        self._artifact: Optional[ExportArtifact] = None

    def cancel(self) -> None:
        """Ask the running export to stop before its next frame.

        Has no effect when no export is running.
        """
        if self.clock.is_exporting:
            self._cancel_requested = True

    def _check_ready(self) -> None:
        if self.sink is None or not self.sink.is_available():
            raise PastelCutError(
                code=MISSING_CAPTURE_SURFACE,
                message="No capture surface is available; export not started",
                recovery=recovery_hints(MISSING_CAPTURE_SURFACE),
                context={"sink": type(self.sink).__name__ if self.sink is not None else None},
            )

    def _steps(self) -> Iterator[float]:
        """Capture frames one at a time, yielding each frame's time.

        The clock is always handed back (time 0, preview stopped) on exit.
        """
        project = self.clock.project
        fps = self.config.fps
        duration = project.effective_duration
        total = export_step_count(duration, fps)

        self._cancel_requested = False
        self.clock.begin_export()
        logger.info("Export started: %.3fs at %dfps (%d frames)", duration, fps, total)
        try:
            self.sink.begin(fps, self.config.canvas_width, self.config.canvas_height)
            index = 0
            while self.clock.step_time(index) <= duration:
                if self._cancel_requested:
                    raise PastelCutError(
                        code=EXPORT_CANCELLED,
                        message=f"Export cancelled after {index} frames",
                        recovery=["Start the export again to produce an artifact"],
                        context={"frames_captured": index},
                    )
                t = self.clock.export_step(index)
                frame = list(render_state(project, t, self.config))
                self.sink.capture_frame(t, frame)
                index += 1
                if self.progress_callback:
                    self.progress_callback(index, total, t)
                yield t
            self._artifact = self.sink.finish()
        except PastelCutError:
            self.sink.abort()
            raise
        except GeneratorExit:
            self.sink.abort()
            raise
        except Exception as exc:
            self.sink.abort()
            raise PastelCutError(
                code=RECORDER_FAILED,
                message=f"Export failed: {exc}",
                recovery=recovery_hints(RECORDER_FAILED),
                context={"time": self.clock.current_time},
            ) from exc
        finally:
            self.clock.end_export()
            self._cancel_requested = False

    def _complete(self, on_complete: Optional[Callable[[ExportArtifact], None]]) -> ExportArtifact:
        artifact = self._artifact
        self._artifact = None
        logger.info("Export finished: %d frames, %d bytes", artifact.frame_count, len(artifact.data))
        if on_complete is not None:
            on_complete(artifact)
        return artifact

    def run(self, on_complete: Optional[Callable[[ExportArtifact], None]] = None) -> ExportArtifact:
        """Export synchronously and return the finished artifact.

        Raises:
            PastelCutError: MISSING_CAPTURE_SURFACE before any state change,
                EXPORT_IN_PROGRESS if the clock is already exporting, or the
                recorder's failure after the clock has been reset.
        """
        self._check_ready()
        steps = self._steps()
        try:
            for _ in steps:
                self._sleep(self.step_delay)
        finally:
            steps.close()
        return self._complete(on_complete)

    async def run_async(
        self,
        on_complete: Optional[Callable[[ExportArtifact], None]] = None,
    ) -> ExportArtifact:
        """Like run(), but waits between frames with asyncio.sleep."""
        self._check_ready()
        steps = self._steps()
        try:
            for _ in steps:
                await asyncio.sleep(self.step_delay)
        finally:
            steps.close()
        return self._complete(on_complete)


def start_export(
    clock: PlaybackClock,
    sink: Optional[FrameSink],
    on_complete: Optional[Callable[[ExportArtifact], None]] = None,
    **kwargs,
) -> ExportArtifact:
    """Run a blocking export of the clock's project into *sink*."""
    return Exporter(clock, sink, **kwargs).run(on_complete=on_complete)
