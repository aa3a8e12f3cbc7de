from __future__ import annotations

import numpy as np
import pytest

from analysis.motion import MotionConfig, MotionEngine, MotionReading
from analysis.motion.engine import preprocess
from common.frame import Frame


def _frame(img: np.ndarray, frame_id: int) -> Frame:
    return Frame(img=img, pts_ms=frame_id * 33.3, frame_id=frame_id)


def _bgr(h: int = 100, w: int = 200, value: int = 0) -> np.ndarray:
    return np.full((h, w, 3), value, dtype=np.uint8)


def test_preprocess_grayscale_and_downscale():
    small = preprocess(_bgr(100, 200), MotionConfig())
    assert small.ndim == 2
    assert small.shape == (50, 100)

    same = preprocess(np.zeros((40, 60), dtype=np.uint8), MotionConfig(scale=1.0))
    assert same.shape == (40, 60)


def test_first_frame_is_bootstrap():
    eng = MotionEngine()
    assert not eng.bootstrapped
    assert eng.step(_frame(_bgr(value=255), 1)) is None
    assert eng.bootstrapped

    # ROI is derived from the downscaled frame: 50 rows -> bottom 15.
    roi = eng.roi
    assert roi is not None
    assert (roi.x, roi.y, roi.w, roi.h) == (0, 35, 100, 15)


def test_static_scene_scores_zero():
    eng = MotionEngine()
    eng.step(_frame(_bgr(), 1))
    reading = eng.step(_frame(_bgr(), 2))
    assert isinstance(reading, MotionReading)
    assert reading.roi_ratio == 0.0
    assert reading.whole_ratio == 0.0


def test_full_frame_flash_is_scored_on_both_regions():
    eng = MotionEngine()
    eng.step(_frame(_bgr(value=0), 1))
    reading = eng.step(_frame(_bgr(value=255), 2))
    assert reading is not None
    assert reading.roi_ratio == pytest.approx(1.0)
    assert reading.whole_ratio == pytest.approx(1.0)


def test_previous_advances_every_scored_frame():
    eng = MotionEngine()
    eng.step(_frame(_bgr(value=0), 1))
    eng.step(_frame(_bgr(value=255), 2))
    # Same content as the frame before: nothing changed.
    reading = eng.step(_frame(_bgr(value=255), 3))
    assert reading is not None
    assert reading.whole_ratio == 0.0


def test_roi_is_fixed_after_first_frame():
    eng = MotionEngine()
    eng.step(_frame(_bgr(100, 200), 1))
    roi = eng.roi
    eng.step(_frame(_bgr(100, 200), 2))
    assert eng.roi is roi


def test_shape_change_reseeds_instead_of_scoring():
    eng = MotionEngine()
    eng.step(_frame(_bgr(100, 200), 1))
    assert eng.step(_frame(_bgr(60, 80, value=255), 2)) is None
    assert eng.previous is not None
    assert eng.previous.shape == (30, 40)


def test_grayscale_input_is_accepted():
    eng = MotionEngine()
    eng.step(_frame(np.zeros((100, 200), dtype=np.uint8), 1))
    reading = eng.step(_frame(np.full((100, 200), 255, dtype=np.uint8), 2))
    assert reading is not None
    assert reading.whole_ratio == pytest.approx(1.0)
