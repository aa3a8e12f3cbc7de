from __future__ import annotations

from typing import Optional

from record.recorder import Category

from .model import MotionConfig, MotionReading, Severity


class EventClassifier:
    """
    Map a MotionReading onto a Severity level.

    Decision order (first match wins):
        whole_ratio > shock_ratio         -> SHOCK
        roi_ratio   > huge_motion_ratio   -> HUGE_MOTION
        roi_ratio   > motion_ratio        -> MOTION
        otherwise                         -> NO_EVENT

    Thresholds are fixed for the lifetime of the classifier; they are not
    adapted to scene content.
    """

    def __init__(self, config: Optional[MotionConfig] = None) -> None:
        self._cfg = config or MotionConfig()

    def classify(self, reading: MotionReading) -> Severity:
        cfg = self._cfg
        whole = reading.whole_ratio
        if whole is not None and whole > cfg.shock_ratio:
            return Severity.SHOCK
        if reading.roi_ratio > cfg.huge_motion_ratio:
            return Severity.HUGE_MOTION
        if reading.roi_ratio > cfg.motion_ratio:
            return Severity.MOTION
        return Severity.NO_EVENT


def destination_for(severity: Severity) -> Category:
    """Recording bucket for an activation triggered at ``severity``."""
    if severity is Severity.SHOCK:
        return Category.SHOCK
    return Category.MOTION
