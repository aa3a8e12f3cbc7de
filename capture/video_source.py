from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from .reader import ReaderStats, SourceUnavailable

_LOG = logging.getLogger(__name__)


class VideoSource:
    """``cv2.VideoCapture`` wrapper exposing the FrameSource surface."""

    def __init__(self, cap: cv2.VideoCapture, name: str) -> None:
        self._cap = cap
        self.name = name
        self._stats = ReaderStats()

    @classmethod
    def open(cls, path: Union[str, int]) -> "VideoSource":
        """Open a file path or a numeric device index.

        Raises
        ------
        SourceUnavailable
            If OpenCV reports the capture as not opened.
        """
        target: Union[str, int] = path
        if isinstance(path, str) and path.isdigit():
            target = int(path)

        cap = cv2.VideoCapture(target)
        if not cap.isOpened():
            cap.release()
            raise SourceUnavailable(f"Cannot open video: {path}")

        name = f"cam{target}" if isinstance(target, int) else Path(target).stem
        src = cls(cap, name=name)
        _LOG.info(
            "Opened %s: %dx%d fps=%.2f",
            path,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            src.fps_hint(),
        )
        return src

    def grab(self) -> bool:
        ok = bool(self._cap.grab())
        if ok:
            self._stats.frames_grabbed += 1
        return ok

    def read(self) -> Optional[np.ndarray]:
        ok, img = self._cap.read()
        if not ok or img is None:
            return None
        self._stats.frames_read += 1
        return img

    def fps_hint(self) -> float:
        return float(self._cap.get(cv2.CAP_PROP_FPS) or 0.0)

    def close(self) -> None:
        self._cap.release()

    def stats(self) -> ReaderStats:
        return self._stats
