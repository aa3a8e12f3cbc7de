"""Frame-difference motion scoring.

Compares two preprocessed grayscale frames and reports the fraction of
changed pixels inside the region of interest and, optionally, across the
whole frame. Scoring is a pure function of its inputs.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from .model import MotionConfig, MotionReading, Roi


def changed_mask(current: np.ndarray, previous: np.ndarray, threshold: int) -> np.ndarray:
    diff = cv2.absdiff(current, previous)
    _, mask = cv2.threshold(diff, int(threshold), 255, cv2.THRESH_BINARY)
    return mask


def nonzero_ratio(mask: np.ndarray) -> float:
    total_px = int(mask.size) if mask is not None else 0
    if total_px <= 0:
        return 0.0
    return float(cv2.countNonZero(mask)) / float(total_px)


class MotionScorer:
    """Turns a (current, previous) pair into a :class:`MotionReading`.

    ROI motion uses a morphological opening to drop isolated noisy pixels.
    The whole-frame ratio is left unfiltered so that large, possibly noisy
    changes (camera jolts, flashes) still register as shocks.
    """

    def __init__(self, config: Optional[MotionConfig] = None) -> None:
        self._cfg = config or MotionConfig()
        k = int(self._cfg.morph_kernel)
        self._kernel = cv2.getStructuringElement(cv2.MORPH_CROSS, (k, k)) if k > 1 else None

    def roi_ratio(self, current: np.ndarray, previous: np.ndarray, roi: Roi) -> float:
        if roi.area <= 0:
            return 0.0
        rows, cols = roi.slices
        cur, prev = current[rows, cols], previous[rows, cols]
        if cur.size == 0 or prev.size == 0:
            return 0.0

        mask = changed_mask(cur, prev, self._cfg.diff_threshold)
        if self._kernel is not None:
            mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, self._kernel)
        return nonzero_ratio(mask)

    def whole_ratio(self, current: np.ndarray, previous: np.ndarray) -> float:
        if current.size == 0 or previous.size == 0:
            return 0.0
        return nonzero_ratio(changed_mask(current, previous, self._cfg.diff_threshold))

    def score(self, current: np.ndarray, previous: np.ndarray, roi: Roi) -> MotionReading:
        whole: Optional[float] = None
        if self._cfg.shock_enabled:
            whole = self.whole_ratio(current, previous)
        return MotionReading(roi_ratio=self.roi_ratio(current, previous, roi), whole_ratio=whole)
