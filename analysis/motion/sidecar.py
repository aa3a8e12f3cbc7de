from __future__ import annotations

from pathlib import Path
from typing import Any

from common.frame import Frame
from common.time import now_ms
from sidecar.writer import SidecarWriter

from .state_machine import DetectionState, StepOutcome


class MotionSidecarWriter:
    """
    Thin wrapper around SidecarWriter for detection lifecycle records.

    Writes one JSON object per line with ``type`` set to ``"activation"``,
    ``"deactivation"`` or ``"shock_during_recording"``. Steps that change
    nothing produce no line.
    """

    def __init__(self, path: str | Path, source_name: str = "", append: bool = False):
        self._writer = SidecarWriter(path, append=append)
        self._source = source_name

    def __enter__(self) -> MotionSidecarWriter:
        self._writer.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._writer.__exit__(exc_type, exc, tb)

    def _base(self, kind: str, frame: Frame, outcome: StepOutcome) -> dict[str, Any]:
        return {
            "type": kind,
            "source": self._source,
            "frame_id": int(frame.frame_id),
            "pts_ms": float(frame.pts_ms),
            "wall_ms": now_ms(),
            "severity": outcome.severity.name,
            "category": outcome.category.value if outcome.category else None,
            "path": str(outcome.recording_path) if outcome.recording_path else None,
        }

    def write_outcome(
        self,
        frame: Frame,
        outcome: StepOutcome,
        state: DetectionState,
    ) -> int:
        """Record the lifecycle changes in ``outcome``; returns lines written."""
        written = 0
        if outcome.activated:
            payload = self._base("activation", frame, outcome)
            payload["recording"] = state.recording is not None
            self._writer.append(payload)
            written += 1
        if outcome.shock_during_recording:
            self._writer.append(self._base("shock_during_recording", frame, outcome))
            written += 1
        if outcome.deactivated:
            payload = self._base("deactivation", frame, outcome)
            payload["frames_recorded"] = int(outcome.frames_recorded)
            self._writer.append(payload)
            written += 1
        return written

    def flush(self) -> None:
        self._writer.flush()

    def close(self) -> None:
        self._writer.close()
