"""Idle/active detection lifecycle with hysteresis-gated recording.

One :meth:`DetectionStateMachine.step` call per analysed frame:

    IDLE   + event     -> ACTIVE, open one recording (bucket from severity)
    ACTIVE + event     -> stay ACTIVE, reset quiet counter, re-arm alert
    ACTIVE + no event  -> count quiet frames; past the hold window -> IDLE,
                          close the recording
    IDLE   + no event  -> nothing

The alert countdown (``overlay_frames_left``) only drives the on-screen
label. Recording lifetime depends solely on ``frames_since_last_event``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol, Tuple

import numpy as np

from common.frame import Frame
from common.time import effective_fps, frames_for
from record.recorder import Category, RecordingError, RecordingHandle

from .events import destination_for
from .model import Severity

_LOG = logging.getLogger(__name__)


class RecordingSink(Protocol):
    def path_for(self, category: Category, source_name: str, frame_id: int) -> Path: ...
    def open(
        self, path: Path, fps: float, frame_size: Tuple[int, int], category: Category = ...
    ) -> RecordingHandle: ...
    def write(self, handle: RecordingHandle, img: np.ndarray) -> None: ...
    def close(self, handle: RecordingHandle) -> None: ...


class Mode(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class DetectionState:
    mode: Mode = Mode.IDLE
    frames_since_last_event: int = 0
    overlay_frames_left: int = 0
    recording: Optional[RecordingHandle] = None
    category: Optional[Category] = None  # bucket of the current activation
    activated_at: Optional[int] = None  # frame_id that opened the activation

    @property
    def active(self) -> bool:
        return self.mode is Mode.ACTIVE


@dataclass(frozen=True)
class StepOutcome:
    """What a single step did; purely observational."""

    severity: Severity
    activated: bool = False
    deactivated: bool = False
    shock_during_recording: bool = False
    category: Optional[Category] = None  # bucket of the activation involved
    recording_path: Optional[Path] = None
    frames_recorded: int = 0  # set on deactivation


class DetectionStateMachine:
    """Owns :class:`DetectionState`; nothing else mutates it."""

    def __init__(
        self,
        sink: RecordingSink,
        fps: float,
        source_name: str,
        hold_seconds: float = 3.0,
        default_fps: float = 30.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._sink = sink
        self._fps = effective_fps(fps, default_fps)
        self._hold_frames = frames_for(hold_seconds, self._fps)
        self._source_name = source_name
        self._log = logger or _LOG
        self._state = DetectionState()

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> DetectionState:
        return self._state

    @property
    def fps(self) -> float:
        return self._fps

    @property
    def hold_frames(self) -> int:
        return self._hold_frames

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _activate(self, severity: Severity, frame: Frame) -> Optional[Path]:
        st = self._state
        category = destination_for(severity)

        st.mode = Mode.ACTIVE
        st.frames_since_last_event = 0
        st.overlay_frames_left = self._hold_frames
        st.category = category
        st.activated_at = frame.frame_id

        path = self._sink.path_for(category, self._source_name, frame.frame_id)
        try:
            st.recording = self._sink.open(path, self._fps, frame.size, category)
        except RecordingError as exc:
            # Detection carries on without a recording for this activation.
            st.recording = None
            self._log.warning(
                "Recording unavailable for activation at frame %d: %s", frame.frame_id, exc
            )
            return None
        return path

    def _reopen_for_size(self, frame: Frame) -> None:
        """Continue the activation in a new file sized for ``frame``.

        ``cv2.VideoWriter`` silently drops frames whose size differs from the
        one it was opened with.
        """
        st = self._state
        old = st.recording
        if old is None or st.category is None:
            return
        st.recording = None
        self._sink.close(old)

        path = self._sink.path_for(st.category, self._source_name, frame.frame_id)
        self._log.warning(
            "Frame %d size %s differs from recording %s (%s); continuing in %s",
            frame.frame_id,
            frame.size,
            old.path,
            old.frame_size,
            path,
        )
        try:
            st.recording = self._sink.open(path, self._fps, frame.size, st.category)
        except RecordingError as exc:
            self._log.warning(
                "Recording unavailable after resize at frame %d: %s", frame.frame_id, exc
            )

    def _deactivate(self) -> Tuple[Optional[Path], int]:
        st = self._state
        handle = st.recording
        path: Optional[Path] = None
        written = 0
        if handle is not None:
            path, written = handle.path, handle.frames_written
            self._sink.close(handle)

        st.mode = Mode.IDLE
        st.overlay_frames_left = 0
        st.recording = None
        st.category = None
        st.activated_at = None
        return path, written

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def step(self, severity: Severity, frame: Frame) -> StepOutcome:
        """Advance the lifecycle by one analysed frame.

        ``frame`` is the original, undownscaled frame; it is appended to the
        open recording whenever the machine ends the step ACTIVE.
        """
        st = self._state
        activated = deactivated = side_shock = False
        path: Optional[Path] = None
        recorded = 0
        category = st.category

        if severity.triggered:
            if not st.active:
                path = self._activate(severity, frame)
                activated = True
                category = st.category
                self._log.debug("Activated at frame %d (%s)", frame.frame_id, severity.name)
            else:
                st.frames_since_last_event = 0
                if st.overlay_frames_left <= 0:
                    st.overlay_frames_left = self._hold_frames
                if severity is Severity.SHOCK and st.category is not Category.SHOCK:
                    side_shock = True
                    self._log.info(
                        "Shock at frame %d during %s recording (kept in place)",
                        frame.frame_id,
                        st.category.value if st.category else "unrecorded",
                    )
        elif st.active:
            st.frames_since_last_event += 1
            if st.frames_since_last_event > self._hold_frames:
                path, recorded = self._deactivate()
                deactivated = True
                self._log.debug("Deactivated at frame %d", frame.frame_id)

        if st.overlay_frames_left > 0:
            st.overlay_frames_left -= 1

        if st.active and st.recording is not None:
            if tuple(st.recording.frame_size) != frame.size:
                self._reopen_for_size(frame)
        if st.active and st.recording is not None:
            self._sink.write(st.recording, frame.img)
            if path is None:
                path = st.recording.path

        return StepOutcome(
            severity=severity,
            activated=activated,
            deactivated=deactivated,
            shock_during_recording=side_shock,
            category=category,
            recording_path=path,
            frames_recorded=recorded,
        )

    def close(self) -> Optional[Path]:
        """Close any still-open recording; safe to call more than once."""
        st = self._state
        if st.recording is None:
            return None
        handle = st.recording
        st.recording = None
        self._sink.close(handle)
        return handle.path
