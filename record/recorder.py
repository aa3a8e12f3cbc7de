from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import cv2
import numpy as np

_LOG = logging.getLogger(__name__)


class Category(str, Enum):
    """Destination bucket for a recording."""

    MOTION = "motion"
    SHOCK = "shock"


@dataclass
class RecorderConfig:
    """Configuration for the file-backed recorder.

    Parameters
    ----------
    motion_dir:
        Directory receiving recordings triggered by ROI motion.
    shock_dir:
        Directory receiving recordings triggered by a whole-frame shock.
    fourcc:
        Four-character codec code passed to ``cv2.VideoWriter``.
    extension:
        Container file extension, including the dot.
    is_color:
        Whether frames are written as 3-channel BGR.
    """

    motion_dir: Path = Path("recorded_motion")
    shock_dir: Path = Path("recorded_shock")
    fourcc: str = "mp4v"
    extension: str = ".mp4"
    is_color: bool = True

    def dir_for(self, category: Category) -> Path:
        if category is Category.SHOCK:
            return Path(self.shock_dir)
        return Path(self.motion_dir)


@dataclass
class RecordingHandle:
    """An open recording bound to a destination path and category."""

    path: Path
    category: Category
    fps: float
    frame_size: Tuple[int, int]
    frames_written: int = 0
    is_open: bool = True
    _writer: Any = field(default=None, repr=False)


class RecordingError(Exception):
    """Base class for recorder-related errors."""


class RecordingOpenError(RecordingError):
    """The underlying writer could not be opened."""


class RecordingClosedError(RecordingError):
    """A write was attempted on a handle that has already been closed."""


class Recorder:
    """``cv2.VideoWriter`` backed recording sink.

    This helper abstracts away:

    - Creating the per-category output directories on demand.
    - Building unique output paths from source name and activation frame.
    - Tracking per-handle write counts and rejecting writes after close.
    """

    def __init__(
        self,
        cfg: Optional[RecorderConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cfg = cfg or RecorderConfig()
        self._log = logger or _LOG

    @property
    def config(self) -> RecorderConfig:
        return self._cfg

    # ----------------------------------------------------------------- main API

    def path_for(self, category: Category, source_name: str, frame_id: int) -> Path:
        """``<category dir>/<source name>_<frame id><ext>``, unique per activation."""
        filename = f"{source_name}_{int(frame_id)}{self._cfg.extension}"
        return self._cfg.dir_for(category) / filename

    def ensure_dirs(self) -> None:
        for category in Category:
            self._cfg.dir_for(category).mkdir(parents=True, exist_ok=True)

    def open(
        self,
        path: Path,
        fps: float,
        frame_size: Tuple[int, int],
        category: Category = Category.MOTION,
    ) -> RecordingHandle:
        """Open a writer at ``path``.

        Raises
        ------
        RecordingOpenError
            If the directory cannot be created or OpenCV refuses the writer.
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RecordingOpenError(f"cannot create {path.parent}: {exc}") from exc

        fourcc = cv2.VideoWriter_fourcc(*self._cfg.fourcc)
        writer = cv2.VideoWriter(
            str(path), fourcc, float(fps), tuple(int(v) for v in frame_size), self._cfg.is_color
        )
        if not writer.isOpened():
            writer.release()
            raise RecordingOpenError(
                f"VideoWriter refused {path} "
                f"(fourcc={self._cfg.fourcc!r} fps={fps} size={frame_size})"
            )

        self._log.info(">>> Start Recording: %s", path)
        return RecordingHandle(
            path=path,
            category=category,
            fps=float(fps),
            frame_size=(int(frame_size[0]), int(frame_size[1])),
            _writer=writer,
        )

    def write(self, handle: RecordingHandle, img: np.ndarray) -> None:
        if not handle.is_open or handle._writer is None:
            raise RecordingClosedError(f"write after close: {handle.path}")
        handle._writer.write(img)
        handle.frames_written += 1

    def close(self, handle: RecordingHandle) -> None:
        """Release the writer. Closing twice is a no-op."""
        if not handle.is_open:
            return
        handle.is_open = False
        writer, handle._writer = handle._writer, None
        if writer is not None:
            writer.release()
        self._log.info(
            ">>> Stop Recording: %s (%d frames)", handle.path, handle.frames_written
        )


def recorder_config_from_cfg(
    cfg_module: Any, base: Optional[RecorderConfig] = None
) -> RecorderConfig:
    """Build :class:`RecorderConfig` from an application config module.

    Recognised (all optional) attributes:

    - RECORD_MOTION_DIR
    - RECORD_SHOCK_DIR
    - RECORD_FOURCC
    - RECORD_EXTENSION
    """
    base = base or RecorderConfig()
    overrides: Dict[str, Any] = {}

    motion_dir = getattr(cfg_module, "RECORD_MOTION_DIR", None)
    if motion_dir:
        overrides["motion_dir"] = Path(motion_dir)
    shock_dir = getattr(cfg_module, "RECORD_SHOCK_DIR", None)
    if shock_dir:
        overrides["shock_dir"] = Path(shock_dir)

    return RecorderConfig(
        motion_dir=overrides.get("motion_dir", base.motion_dir),
        shock_dir=overrides.get("shock_dir", base.shock_dir),
        fourcc=str(getattr(cfg_module, "RECORD_FOURCC", base.fourcc)),
        extension=str(getattr(cfg_module, "RECORD_EXTENSION", base.extension)),
        is_color=base.is_color,
    )
