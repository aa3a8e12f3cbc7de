from __future__ import annotations

from datetime import datetime, timezone

DEFAULT_FPS = 30.0


def now_ms() -> float:
    return datetime.now(tz=timezone.utc).timestamp() * 1000.0


def effective_fps(fps_hint: float, default: float = DEFAULT_FPS) -> float:
    """Sources report 0 or negative rates when unknown; substitute ``default``."""
    fps = float(fps_hint or 0.0)
    return fps if fps > 0.0 else float(default)


def frames_for(seconds: float, fps: float) -> int:
    return int(round(float(fps) * float(seconds)))


def media_ms(frame_id: int, fps: float) -> float:
    return float(frame_id) * 1000.0 / effective_fps(fps)
