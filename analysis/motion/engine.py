"""Frame preprocessing and scoring engine.

The engine owns the only cross-cycle image state in the pipeline: the
previous preprocessed frame and the region of interest. Each call to
:meth:`MotionEngine.step`:

- Converts the frame to grayscale and downscales it (``INTER_AREA``).
- Initialises the ROI from the first preprocessed frame's dimensions.
- Applies a small Gaussian blur.
- Scores the result against the previous frame via :class:`MotionScorer`.
- Replaces the previous frame with the current one.

The first frame has nothing to compare against and yields ``None``.
"""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from common.frame import Frame

from .model import MotionConfig, MotionReading, Roi
from .scorer import MotionScorer

_LOG = logging.getLogger(__name__)


def preprocess(img: np.ndarray, config: MotionConfig) -> np.ndarray:
    """Grayscale + downscale. Blurring happens after ROI initialisation."""
    if img.ndim == 3 and img.shape[2] == 3:
        gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
    elif img.ndim == 3 and img.shape[2] == 4:
        gray = cv2.cvtColor(img, cv2.COLOR_BGRA2GRAY)
    else:
        gray = img

    scale = float(config.scale)
    if scale != 1.0 and gray.size > 0:
        gray = cv2.resize(gray, None, fx=scale, fy=scale, interpolation=cv2.INTER_AREA)
    return gray


def blur(gray: np.ndarray, config: MotionConfig) -> np.ndarray:
    k = int(config.blur_ksize)
    if k > 1 and gray.size > 0:
        k |= 1  # GaussianBlur needs an odd kernel
        return cv2.GaussianBlur(gray, (k, k), 0)
    return gray


class MotionEngine:
    """Stateful wrapper around preprocessing and :class:`MotionScorer`."""

    def __init__(
        self,
        config: Optional[MotionConfig] = None,
        scorer: Optional[MotionScorer] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cfg = config or MotionConfig()
        self._scorer = scorer or MotionScorer(self._cfg)
        self._log = logger or _LOG

        self._roi: Optional[Roi] = None
        self._previous: Optional[np.ndarray] = None

    @property
    def roi(self) -> Optional[Roi]:
        return self._roi

    @property
    def previous(self) -> Optional[np.ndarray]:
        return self._previous

    @property
    def bootstrapped(self) -> bool:
        return self._previous is not None

    def step(self, frame: Frame) -> Optional[MotionReading]:
        """Preprocess ``frame`` and score it against the previous one.

        Returns ``None`` on the bootstrap cycle (no previous frame yet).
        """
        small = preprocess(frame.img, self._cfg)

        if self._roi is None:
            h, w = small.shape[:2]
            self._roi = Roi.bottom_band(h, w, self._cfg.roi_height_frac)
            self._log.debug("ROI initialised at frame %d: %s", frame.frame_id, self._roi)

        current = blur(small, self._cfg)

        previous = self._previous
        if previous is None:
            self._previous = current
            return None

        if previous.shape != current.shape:
            # Source changed resolution mid-stream; re-seed instead of
            # comparing mismatched buffers.
            self._log.warning(
                "Frame %d shape %s differs from previous %s; re-seeding",
                frame.frame_id,
                current.shape,
                previous.shape,
            )
            self._previous = current
            return None

        reading = self._scorer.score(current, previous, self._roi)
        self._previous = current
        return reading
