"""Engine configuration shared by the preset animator, clock and exporter."""

from __future__ import annotations

import math
import os
from dataclasses import asdict, dataclass

from pastelcut.errors import PastelCutError, CONFIG_ERROR, recovery_hints

DEFAULT_CANVAS_WIDTH = 1080
DEFAULT_CANVAS_HEIGHT = 1920
DEFAULT_FPS = 30

# Record-current-value replaces keyframes this close to the playhead
KEYFRAME_TOLERANCE = 0.05

ENV_CANVAS_WIDTH = "PASTELCUT_CANVAS_WIDTH"
ENV_CANVAS_HEIGHT = "PASTELCUT_CANVAS_HEIGHT"
ENV_FPS = "PASTELCUT_FPS"


@dataclass(frozen=True)
class EngineConfig:
    """Canvas geometry and timing constants."""
    canvas_width: int = DEFAULT_CANVAS_WIDTH
    canvas_height: int = DEFAULT_CANVAS_HEIGHT
    fps: int = DEFAULT_FPS
    keyframe_tolerance: float = KEYFRAME_TOLERANCE
    preview_interval: float = 1.0 / 60.0

    def __post_init__(self) -> None:
        for name in ("canvas_width", "canvas_height", "fps"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise PastelCutError(
                    code=CONFIG_ERROR,
                    message=f"{name} must be a positive integer, got {value!r}",
                    recovery=recovery_hints(CONFIG_ERROR, {"field": name}),
                    context={"field": name, "value": value},
                )
        if self.keyframe_tolerance < 0 or self.preview_interval <= 0:
            raise PastelCutError(
                code=CONFIG_ERROR,
                message="keyframe_tolerance must be >= 0 and preview_interval > 0",
                recovery=recovery_hints(CONFIG_ERROR),
                context={
                    "keyframe_tolerance": self.keyframe_tolerance,
                    "preview_interval": self.preview_interval,
                },
            )

    @property
    def frame_step(self) -> float:
        """Seconds between two export frames."""
        return 1.0 / self.fps

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> EngineConfig:
        """Build a config from PASTELCUT_* environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            canvas_width=_int_env(env, ENV_CANVAS_WIDTH, DEFAULT_CANVAS_WIDTH),
            canvas_height=_int_env(env, ENV_CANVAS_HEIGHT, DEFAULT_CANVAS_HEIGHT),
            fps=_int_env(env, ENV_FPS, DEFAULT_FPS),
        )


def _int_env(env, name: str, default: int) -> int:
    """Read an integer environment variable, falling back to *default* when unset."""
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise PastelCutError(
            code=CONFIG_ERROR,
            message=f"{name} must be an integer, got {raw!r}",
            recovery=[f"Unset {name} or set it to a positive integer"],
            context={"variable": name, "value": raw},
        ) from exc


def normalize_duration(value: float | None, default: float = 1.0) -> float:
    """Return *value* if it is a usable positive duration, else *default*."""
    if value is None or not math.isfinite(value) or value <= 0:
        return default
    return float(value)
