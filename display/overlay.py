from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from analysis.motion.model import Severity
from record.recorder import Category

_LOG = logging.getLogger(__name__)

QUIT_KEYS = (27, ord("q"), ord("Q"))  # ESC, q, Q

ALERT_COLOR: Tuple[int, int, int] = (0, 0, 255)


def alert_label(category: Optional[Category]) -> str:
    if category is Category.SHOCK:
        return "SHOCK DETECT"
    return "MOTION DETECT"


@dataclass
class OverlayView:
    """Everything the renderer needs for one cycle. Read-only input."""

    severity: Optional[Severity]  # None on the bootstrap cycle
    active: bool
    overlay_frames_left: int
    category: Optional[Category] = None


def draw_status(img: np.ndarray, view: OverlayView) -> np.ndarray:
    out = img.copy()
    severity = view.severity
    if severity is None:
        return out
    cv2.putText(
        out, severity.label, (20, 40), cv2.FONT_HERSHEY_SIMPLEX, 1.0, severity.color, 2
    )
    return out


def draw_alert(img: np.ndarray, view: OverlayView) -> np.ndarray:
    """Live frame plus timed alert while active; black otherwise."""
    if not view.active:
        return np.zeros_like(img)
    out = img.copy()
    if view.overlay_frames_left > 0:
        cv2.putText(
            out,
            alert_label(view.category),
            (50, 80),
            cv2.FONT_HERSHEY_SIMPLEX,
            1.5,
            ALERT_COLOR,
            3,
        )
    return out


class OverlayRenderer:
    """Two OpenCV windows: raw + status ("Original") and alert ("Detection")."""

    def __init__(
        self,
        original_window: str = "Original",
        detection_window: str = "Detection",
        poll_ms: int = 1,
    ) -> None:
        self._original = original_window
        self._detection = detection_window
        self._poll_ms = max(1, int(poll_ms))
        self._opened = False

    def _ensure_windows(self) -> None:
        if self._opened:
            return
        cv2.namedWindow(self._original, cv2.WINDOW_NORMAL)
        cv2.namedWindow(self._detection, cv2.WINDOW_NORMAL)
        self._opened = True

    def show(self, img: np.ndarray, view: OverlayView) -> None:
        self._ensure_windows()
        cv2.imshow(self._original, draw_status(img, view))
        cv2.imshow(self._detection, draw_alert(img, view))

    def poll_quit(self) -> bool:
        key = cv2.waitKey(self._poll_ms)
        return key != -1 and (key & 0xFF) in QUIT_KEYS

    def close(self) -> None:
        if self._opened:
            cv2.destroyAllWindows()
            self._opened = False


class NullRenderer:
    """Headless renderer: draws nothing, never asks to quit."""

    def show(self, img: np.ndarray, view: OverlayView) -> None:
        pass

    def poll_quit(self) -> bool:
        return False

    def close(self) -> None:
        pass
