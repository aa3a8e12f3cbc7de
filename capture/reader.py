from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

import numpy as np

_LOG = logging.getLogger(__name__)


class SourceError(Exception):
    """Base class for frame-source errors."""


class SourceUnavailable(SourceError):
    """The frame source could not be opened."""


class FrameSource(Protocol):
    name: str

    def grab(self) -> bool: ...  # decode-free advance; False on end-of-stream
    def read(self) -> Optional[np.ndarray]: ...  # decoded frame; None on end-of-stream
    def fps_hint(self) -> float: ...  # <= 0 means "unknown"
    def close(self) -> None: ...


@dataclass
class ReaderStats:
    frames_grabbed: int = 0
    frames_read: int = 0


class NullSource:
    """A tiny source that synthesizes frames. Useful for tests/dev.

    By default it yields ``length`` black frames. ``frames`` replays an explicit
    sequence instead, and ``make_frame`` builds frame ``i`` (0-based) on demand.
    """

    def __init__(
        self,
        width: int = 640,
        height: int = 360,
        fps: float = 15.0,
        length: int = 300,
        frames: Optional[Sequence[np.ndarray]] = None,
        make_frame: Optional[Callable[[int], np.ndarray]] = None,
        name: str = "null",
    ) -> None:
        self.width, self.height, self.fps = width, height, fps
        self.name = name
        self._frames = list(frames) if frames is not None else None
        self._make_frame = make_frame
        self._length = len(self._frames) if self._frames is not None else int(length)
        self._pos = 0
        self._closed = False
        self._stats = ReaderStats()

    def _frame_at(self, i: int) -> np.ndarray:
        if self._frames is not None:
            return self._frames[i]
        if self._make_frame is not None:
            return self._make_frame(i)
        return np.zeros((self.height, self.width, 3), dtype=np.uint8)

    def grab(self) -> bool:
        if self._closed or self._pos >= self._length:
            return False
        self._pos += 1
        self._stats.frames_grabbed += 1
        return True

    def read(self) -> Optional[np.ndarray]:
        if self._closed or self._pos >= self._length:
            return None
        img = self._frame_at(self._pos)
        self._pos += 1
        self._stats.frames_read += 1
        return img

    def fps_hint(self) -> float:
        return float(self.fps)

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def stats(self) -> ReaderStats:
        return self._stats


# --- Discovery ---------------------------------------------------------------


@dataclass
class ReaderConfig:
    prefer: str = "cv2"  # or "null"
    path: str = "./input/1.mp4"
    null_length: int = 300
    null_size: tuple[int, int] = field(default=(640, 360))
    null_fps: float = 15.0


class ReaderFactory:
    @staticmethod
    def from_config(cfg: ReaderConfig) -> FrameSource:
        """Open the configured source.

        Raises
        ------
        SourceUnavailable
            If the OpenCV backend cannot open ``cfg.path``.
        """
        if cfg.prefer == "null":
            w, h = cfg.null_size
            _LOG.info("Using synthetic NullSource (%d frames, %dx%d)", cfg.null_length, w, h)
            return NullSource(
                width=w,
                height=h,
                fps=cfg.null_fps,
                length=cfg.null_length,
                name=Path(cfg.path).stem or "null",
            )
        if cfg.prefer != "cv2":
            raise ValueError(f"unknown reader backend: {cfg.prefer!r}")

        from .video_source import VideoSource

        return VideoSource.open(cfg.path)
