from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class Frame:
    img: np.ndarray  # BGR (H,W,3) or gray (H,W), uint8
    pts_ms: float  # media time derived from frame_id and stream fps
    frame_id: int  # 1-based stream position, skipped frames included

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) as expected by ``cv2.VideoWriter``."""
        h, w = self.img.shape[:2]
        return int(w), int(h)
