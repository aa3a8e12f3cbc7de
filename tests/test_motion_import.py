from __future__ import annotations

import numpy as np

from analysis.motion import MotionConfig, MotionEngine, MotionReading
from common.frame import Frame


def test_motion_smoke_run() -> None:
    # Construct an engine with default configuration and run two frames
    # through it to confirm we get a MotionReading back.
    eng = MotionEngine(MotionConfig())
    f0 = Frame(img=np.zeros((64, 64, 3), dtype=np.uint8), pts_ms=0.0, frame_id=1)
    f1 = Frame(img=np.zeros((64, 64, 3), dtype=np.uint8), pts_ms=33.3, frame_id=2)

    assert eng.step(f0) is None
    out = eng.step(f1)

    assert isinstance(out, MotionReading)
    assert 0.0 <= out.roi_ratio <= 1.0
    assert out.whole_ratio is not None and 0.0 <= out.whole_ratio <= 1.0
    assert f1.size == (64, 64)
