from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from capture.reader import NullSource, ReaderConfig, ReaderFactory, SourceUnavailable


def test_null_source_grab_and_read_share_position():
    frames = [np.full((4, 4, 3), i, dtype=np.uint8) for i in range(6)]
    src = NullSource(frames=frames)

    assert src.grab() and src.grab()
    img = src.read()
    assert img is not None and int(img[0, 0, 0]) == 2

    assert src.grab() and src.grab()
    assert int(src.read()[0, 0, 0]) == 5
    assert src.grab() is False
    assert src.read() is None

    stats = src.stats()
    assert (stats.frames_grabbed, stats.frames_read) == (4, 2)


def test_null_source_close_ends_stream():
    src = NullSource(width=8, height=6, length=10)
    assert src.read().shape == (6, 8, 3)
    src.close()
    assert src.closed
    assert src.grab() is False and src.read() is None


def test_factory_null_backend():
    src = ReaderFactory.from_config(
        ReaderConfig(prefer="null", path="./input/gate.mp4", null_length=3, null_fps=12.0)
    )
    assert src.name == "gate"
    assert src.fps_hint() == 12.0
    assert [src.read() is not None for _ in range(4)] == [True, True, True, False]


def test_factory_cv2_missing_file(tmp_path: Path):
    with pytest.raises(SourceUnavailable):
        ReaderFactory.from_config(ReaderConfig(prefer="cv2", path=str(tmp_path / "none.mp4")))
