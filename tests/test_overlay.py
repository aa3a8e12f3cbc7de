from __future__ import annotations

import numpy as np

from analysis.motion import Severity
from display.overlay import NullRenderer, OverlayView, alert_label, draw_alert, draw_status
from record.recorder import Category


def _img() -> np.ndarray:
    return np.full((120, 240, 3), 50, dtype=np.uint8)


def test_alert_view_is_black_while_idle():
    view = OverlayView(severity=Severity.NO_EVENT, active=False, overlay_frames_left=0)
    out = draw_alert(_img(), view)
    assert out.shape == (120, 240, 3)
    assert not out.any()


def test_alert_view_is_live_while_active():
    img = _img()
    plain = draw_alert(img, OverlayView(Severity.MOTION, active=True, overlay_frames_left=0))
    assert np.array_equal(plain, img)

    labelled = draw_alert(img, OverlayView(Severity.MOTION, active=True, overlay_frames_left=5))
    assert not np.array_equal(labelled, img)
    # Source frame is never modified in place.
    assert (img == 50).all()


def test_status_label_skipped_on_bootstrap():
    img = _img()
    assert np.array_equal(draw_status(img, OverlayView(None, False, 0)), img)
    assert not np.array_equal(draw_status(img, OverlayView(Severity.NO_EVENT, False, 0)), img)


def test_alert_label_by_category():
    assert alert_label(Category.SHOCK) == "SHOCK DETECT"
    assert alert_label(Category.MOTION) == "MOTION DETECT"
    assert alert_label(None) == "MOTION DETECT"


def test_null_renderer_never_quits():
    r = NullRenderer()
    r.show(_img(), OverlayView(None, False, 0))
    assert r.poll_quit() is False
    r.close()
