"""Playback clock — the single owner of the project's current time.

Two drivers may advance the time, never both at once:

* preview: ``tick(elapsed)`` adds observed wall-clock time. When a scheduler
  is attached, each tick schedules the next one only after it has finished.
* export: ``export_step(index)`` jumps to ``index / fps``; wall-clock time is
  never consulted.

A scheduler is any object with ``call_later(delay, callback)`` returning a
handle with ``cancel()``; an asyncio event loop qualifies as-is. Every mode
switch bumps ``generation`` so a continuation scheduled under an older mode
cannot move the time after a reset.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from pastelcut.config import EngineConfig
from pastelcut.errors import PastelCutError, EXPORT_IN_PROGRESS, recovery_hints
from pastelcut.models import ProjectState

logger = logging.getLogger(__name__)


class ClockMode(str, Enum):
    IDLE = "idle"
    PREVIEW_PLAYING = "preview_playing"
    PREVIEW_STOPPED = "preview_stopped"
    EXPORT_RUNNING = "export_running"


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> Any: ...


TimeListener = Callable[[float, ClockMode], None]


class PlaybackClock:
    """Current time plus the mode tag that decides who may change it."""

    def __init__(
        self,
        project: ProjectState,
        config: EngineConfig | None = None,
        scheduler: Optional[Scheduler] = None,
        time_source: Callable[[], float] = time.monotonic,
        on_export_start: Optional[Callable[[], None]] = None,
    ) -> None:
        self.project = project
        self.config = config or EngineConfig()
        self.scheduler = scheduler
        self.on_export_start = on_export_start
        self._now = time_source
        self._mode = ClockMode.IDLE
        self._time = 0.0
        self._generation = 0
        self._pending: Any = None
        self._last_wall: Optional[float] = None
        self._listeners: list[TimeListener] = []

    # -- state -------------------------------------------------------------

    @property
    def mode(self) -> ClockMode:
        return self._mode

    @property
    def current_time(self) -> float:
        return self._time

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_playing(self) -> bool:
        return self._mode == ClockMode.PREVIEW_PLAYING

    @property
    def is_exporting(self) -> bool:
        return self._mode == ClockMode.EXPORT_RUNNING

    def subscribe(self, listener: TimeListener) -> Callable[[], None]:
        """Call *listener(time, mode)* after every time change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_time(self, value: float) -> None:
        self._time = value
        for listener in list(self._listeners):
            listener(value, self._mode)

    def _switch(self, mode: ClockMode) -> None:
        """Cancel the pending continuation, then change mode under a new generation."""
        self._cancel_pending()
        self._generation += 1
        logger.debug("Clock %s -> %s (generation %d)", self._mode.value, mode.value, self._generation)
        self._mode = mode

    def _guard_export(self, action: str) -> None:
        if self.is_exporting:
            raise PastelCutError(
                code=EXPORT_IN_PROGRESS,
                message=f"Cannot {action} while an export is running",
                recovery=recovery_hints(EXPORT_IN_PROGRESS),
                context={"action": action, "time": self._time},
            )

    # -- preview driver ----------------------------------------------------

    def start(self) -> None:
        """Begin real-time preview from the current time."""
        self._guard_export("start playback")
        if self.is_playing:
            return
        self._switch(ClockMode.PREVIEW_PLAYING)
        self._last_wall = self._now()
        self._schedule()

    def stop(self) -> None:
        """Pause preview; the current time is kept."""
        self._guard_export("stop playback")
        if self._mode == ClockMode.PREVIEW_STOPPED:
            return
        self._switch(ClockMode.PREVIEW_STOPPED)

    def toggle(self) -> None:
        if self.is_playing:
            self.stop()
        else:
            self.start()

    def seek(self, t: float) -> float:
        """Move the playhead, clamped to [0, duration]."""
        self._guard_export("seek")
        self._set_time(max(0.0, min(self.project.effective_duration, float(t))))
        return self._time

    def tick(self, elapsed: float) -> ClockMode:
        """Advance preview time by *elapsed* seconds and return the resulting mode.

        Reaching the project duration stops playback and rewinds to 0. Outside
        Preview-Playing the call has no effect.
        """
        if not self.is_playing:
            return self._mode
        nxt = self._time + max(0.0, elapsed)
        if nxt >= self.project.effective_duration:
            self._switch(ClockMode.PREVIEW_STOPPED)
            self._set_time(0.0)
            logger.debug("Preview reached the end at %.3fs", nxt)
        else:
            self._set_time(nxt)
        return self._mode

    def _schedule(self) -> None:
        if self.scheduler is None:
            return
        generation = self._generation
        self._pending = self.scheduler.call_later(
            self.config.preview_interval,
            lambda: self._on_frame(generation),
        )

    def _on_frame(self, generation: int) -> None:
        if generation != self._generation or not self.is_playing:
            return
        self._pending = None
        now = self._now()
        elapsed = now - (self._last_wall if self._last_wall is not None else now)
        self._last_wall = now
        self.tick(elapsed)
        if self.is_playing and generation == self._generation:
            self._schedule()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    # -- export driver -----------------------------------------------------

    def begin_export(self) -> None:
        """Take the time away from preview and rewind to 0 for frame stepping."""
        self._guard_export("start another export")
        self._switch(ClockMode.EXPORT_RUNNING)
        try:
            if self.on_export_start is not None:
                self.on_export_start()
            self._set_time(0.0)
        except BaseException:
            self.end_export()
            raise

    def step_time(self, index: int) -> float:
        """Project time of export frame *index*."""
        return index / self.config.fps

    def export_step(self, index: int) -> float:
        """Set the time to export frame *index* and return it."""
        if not self.is_exporting:
            raise RuntimeError("export_step() requires an export in progress")
        t = self.step_time(index)
        self._set_time(t)
        return t

    def end_export(self) -> None:
        """Leave export mode (finished or aborted): time 0, preview stopped."""
        if not self.is_exporting:
            return
        self._switch(ClockMode.PREVIEW_STOPPED)
        self._set_time(0.0)
