"""Shared test fixtures — small projects, a manual scheduler and a fake clock."""

from __future__ import annotations

import json

import pytest

from pastelcut.config import EngineConfig
from pastelcut.models import (
    AnimationPreset,
    Element,
    ElementType,
    Keyframe,
    ProjectState,
    PropertySet,
)


class FakeTime:
    """Monotonic time source that only moves when told to."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _Handle:
    def __init__(self, scheduler: "ManualScheduler", due: float, callback) -> None:
        self.scheduler = scheduler
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """call_later() implementation driven by advance(); moves a FakeTime with it."""

    def __init__(self, clock: FakeTime) -> None:
        self.clock = clock
        self.handles: list[_Handle] = []

    def call_later(self, delay, callback) -> _Handle:
        handle = _Handle(self, self.clock.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[_Handle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        """Move time forward, running every callback that falls due."""
        target = self.clock.now + seconds
        while True:
            due = sorted(
                (h for h in self.pending if h.due <= target),
                key=lambda h: h.due,
            )
            if not due:
                break
            handle = due[0]
            self.handles.remove(handle)
            self.clock.now = max(self.clock.now, handle.due)
            handle.callback()
        self.clock.now = target


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def scheduler(fake_time) -> ManualScheduler:
    return ManualScheduler(fake_time)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def rect() -> Element:
    """A 200x100 rect visible for [1, 5] with no keyframes."""
    return Element(
        id="r1",
        type=ElementType.RECT,
        name="Rect 1",
        start_time=1.0,
        duration=4.0,
        props=PropertySet(x=10.0, y=20.0, width=200.0, height=100.0, fill="#ff0000"),
    )


@pytest.fixture
def keyed_rect(rect) -> Element:
    """The rect with x keyframed from 0 at t=2 to 100 at t=4."""
    rect.keyframes = [
        Keyframe(id="k1", time=2.0, props={"x": 0.0}),
        Keyframe(id="k2", time=4.0, props={"x": 100.0}),
    ]
    return rect


@pytest.fixture
def project(keyed_rect) -> ProjectState:
    """Ten-second project: the keyed rect, a fading text and a late circle."""
    text = Element(
        id="t1",
        type=ElementType.TEXT,
        name="Title",
        start_time=0.0,
        duration=3.0,
        props=PropertySet(x=100.0, y=100.0, width=400.0, height=72.0, z_index=2,
                          text="Hello", font_size=60.0, fill="#111111"),
        animation_preset=AnimationPreset.FADE_IN,
        animation_duration=1.0,
    )
    circle = Element(
        id="c1",
        type=ElementType.CIRCLE,
        start_time=6.0,
        duration=4.0,
        props=PropertySet(x=500.0, y=500.0, width=80.0, height=80.0, z_index=1),
    )
    return ProjectState(duration=10.0, elements=[keyed_rect, text, circle])


@pytest.fixture
def project_file(tmp_path, project) -> str:
    """The project written to disk as a JSON document."""
    path = tmp_path / "project.json"
    path.write_text(json.dumps({"version": "1.0", **project.to_dict()}))
    return str(path)
