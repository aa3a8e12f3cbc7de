from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple


@dataclass
class MotionConfig:
    """
    Configuration knobs for preprocessing, scoring and classification.

    Values match the long-standing hard-coded behaviour; they are fixed for
    the lifetime of a run.
    """

    # Preprocessing
    scale: float = 0.5  # downscale factor applied to the grayscale frame
    blur_ksize: int = 3  # Gaussian kernel; <= 1 disables

    # Binary mask
    diff_threshold: int = 30  # on the 0-255 scale
    morph_kernel: int = 3  # cross-shaped opening on the ROI mask; <= 1 disables

    # Region of interest: bottom fraction of the frame, full width
    roi_height_frac: float = 0.3

    # Classification thresholds (strictly greater than)
    motion_ratio: float = 0.002
    huge_motion_ratio: float = 0.02
    shock_ratio: float = 0.30
    shock_enabled: bool = True

    # Scheduling
    idle_skip: int = 4  # decode-free grabs before each analysed frame while idle
    hold_seconds: float = 3.0  # hysteresis window and alert duration
    default_fps: float = 30.0


@dataclass(frozen=True)
class Roi:
    x: int
    y: int
    w: int
    h: int

    @property
    def area(self) -> int:
        return max(0, self.w) * max(0, self.h)

    @property
    def slices(self) -> Tuple[slice, slice]:
        return slice(self.y, self.y + self.h), slice(self.x, self.x + self.w)

    @classmethod
    def bottom_band(cls, height: int, width: int, frac: float) -> "Roi":
        """Bottom ``frac`` of a ``height`` x ``width`` frame."""
        # round() strips float noise (100 * 0.7 -> 69.999...) before truncating
        top = int(round(height * (1.0 - frac), 6))
        top = min(max(top, 0), height)
        return cls(x=0, y=top, w=int(width), h=int(height) - top)


@dataclass(frozen=True)
class MotionReading:
    roi_ratio: float  # changed-pixel fraction inside the ROI
    whole_ratio: Optional[float] = None  # changed-pixel fraction of the full frame


class Severity(IntEnum):
    NO_EVENT = 0
    MOTION = 1
    HUGE_MOTION = 2
    SHOCK = 3

    @property
    def triggered(self) -> bool:
        return self is not Severity.NO_EVENT

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def color(self) -> Tuple[int, int, int]:
        """BGR colour for status overlays."""
        return _COLORS[self]


_LABELS = {
    Severity.NO_EVENT: "NO MOTION",
    Severity.MOTION: "MOTION",
    Severity.HUGE_MOTION: "HUGE MOTION",
    Severity.SHOCK: "SHOCK",
}

_COLORS = {
    Severity.NO_EVENT: (0, 255, 0),
    Severity.MOTION: (0, 255, 255),
    Severity.HUGE_MOTION: (0, 0, 255),
    Severity.SHOCK: (255, 0, 255),
}
