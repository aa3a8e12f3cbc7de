"""Single cooperative detection loop.

Per cycle: (idle-skip) -> read -> preprocess/score -> classify -> state
machine -> event log -> display -> quit poll. Everything runs on the calling
thread, in stream order.
"""

from __future__ import annotations

import contextlib
import logging
import signal
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Protocol, Sequence, Tuple

from capture.reader import FrameSource
from common.frame import Frame
from common.time import media_ms
from display.overlay import NullRenderer, OverlayView

from .engine import MotionEngine
from .events import EventClassifier
from .model import MotionConfig, MotionReading, Severity
from .sidecar import MotionSidecarWriter
from .state_machine import DetectionStateMachine, StepOutcome

_LOG = logging.getLogger(__name__)


class StepResult(str, Enum):
    CONTINUE = "continue"
    STOP = "stop"


class Renderer(Protocol):
    def show(self, img: Any, view: OverlayView) -> None: ...
    def poll_quit(self) -> bool: ...
    def close(self) -> None: ...


@dataclass
class LoopState:
    """Cross-cycle counters owned by the loop."""

    frame_id: int = 0  # last stream position consumed (grabbed or read)
    frames_read: int = 0
    frames_skipped: int = 0
    frames_analysed: int = 0  # bootstrap cycle included
    activations: int = 0
    shocks_during_recording: int = 0
    stop_reason: str = ""


@dataclass
class CycleReport:
    frame: Frame
    reading: Optional[MotionReading]
    severity: Optional[Severity]
    outcome: Optional[StepOutcome]


class MotionPipeline:
    """Wire a source, engine, classifier and state machine into one loop.

    The pipeline closes the open recording before releasing the source on
    every exit path (end-of-stream, quit key, ``max_frames``, interrupts,
    termination signals, exceptions).
    """

    def __init__(
        self,
        source: FrameSource,
        machine: DetectionStateMachine,
        engine: Optional[MotionEngine] = None,
        classifier: Optional[EventClassifier] = None,
        config: Optional[MotionConfig] = None,
        renderer: Optional[Renderer] = None,
        sidecar: Optional[MotionSidecarWriter] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cfg = config or MotionConfig()
        self._source = source
        self._machine = machine
        self._engine = engine or MotionEngine(self._cfg)
        self._classifier = classifier or EventClassifier(self._cfg)
        self._renderer: Renderer = renderer or NullRenderer()
        self._sidecar = sidecar
        self._log = logger or _LOG
        self._loop = LoopState()
        self._last: Optional[CycleReport] = None
        self._closed = False
        self._stop_requested: Optional[str] = None

    @property
    def loop(self) -> LoopState:
        return self._loop

    @property
    def machine(self) -> DetectionStateMachine:
        return self._machine

    @property
    def last_cycle(self) -> Optional[CycleReport]:
        return self._last

    # ------------------------------------------------------------------ #
    # Cycle pieces
    # ------------------------------------------------------------------ #

    def advance(self) -> Tuple[StepResult, Optional[Frame]]:
        """Idle-skip (when idle) then read one frame for analysis."""
        loop = self._loop
        if not self._machine.state.active:
            for _ in range(int(self._cfg.idle_skip)):
                if not self._source.grab():
                    loop.stop_reason = "end of stream"
                    return StepResult.STOP, None
                loop.frame_id += 1
                loop.frames_skipped += 1

        img = self._source.read()
        if img is None:
            loop.stop_reason = "end of stream"
            return StepResult.STOP, None
        loop.frame_id += 1
        loop.frames_read += 1

        frame = Frame(
            img=img,
            pts_ms=media_ms(loop.frame_id, self._machine.fps),
            frame_id=loop.frame_id,
        )
        return StepResult.CONTINUE, frame

    def _view(self, severity: Optional[Severity]) -> OverlayView:
        st = self._machine.state
        return OverlayView(
            severity=severity,
            active=st.active,
            overlay_frames_left=st.overlay_frames_left,
            category=st.category,
        )

    def run_once(self) -> StepResult:
        loop = self._loop
        if self._stop_requested is not None:
            loop.stop_reason = self._stop_requested
            return StepResult.STOP

        result, frame = self.advance()
        if result is StepResult.STOP or frame is None:
            return StepResult.STOP

        loop.frames_analysed += 1

        scored_before = self._engine.bootstrapped
        reading = self._engine.step(frame)
        severity: Optional[Severity] = None
        outcome: Optional[StepOutcome] = None

        if reading is not None:
            severity = self._classifier.classify(reading)
        elif scored_before:
            # Engine re-seeded (resolution change): the frame counts as quiet.
            severity = Severity.NO_EVENT

        if severity is not None:
            outcome = self._machine.step(severity, frame)
            if outcome.activated:
                loop.activations += 1
            if outcome.shock_during_recording:
                loop.shocks_during_recording += 1
            if self._sidecar is not None:
                self._sidecar.write_outcome(frame, outcome, self._machine.state)
            roi = whole = "-"
            if reading is not None:
                roi = f"{reading.roi_ratio:.5f}"
                if reading.whole_ratio is not None:
                    whole = f"{reading.whole_ratio:.4f}"
            self._log.debug(
                "frame=%d roi=%s whole=%s severity=%s mode=%s",
                frame.frame_id,
                roi,
                whole,
                severity.name,
                self._machine.state.mode.value,
            )

        self._last = CycleReport(frame=frame, reading=reading, severity=severity, outcome=outcome)

        self._renderer.show(frame.img, self._view(severity))
        if self._renderer.poll_quit():
            loop.stop_reason = "quit requested"
            return StepResult.STOP
        return StepResult.CONTINUE

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def request_stop(self, reason: str = "stop requested") -> None:
        """Stop at the next cycle boundary. Safe to call from a signal handler."""
        self._stop_requested = reason

    @contextlib.contextmanager
    def stop_on_signals(
        self, signals: Sequence[signal.Signals] = (signal.SIGTERM,)
    ) -> Iterator[None]:
        """Turn ``signals`` into a graceful stop for the duration of the block.

        Must be entered from the main thread. Previous handlers are restored
        on exit.
        """

        def _handle(signum: int, _frame: Any) -> None:
            self.request_stop("terminated")

        previous: Dict[int, Any] = {}
        try:
            for sig in signals:
                previous[sig] = signal.signal(sig, _handle)
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    def run(self, max_frames: int = 0) -> LoopState:
        """Loop until end-of-stream, quit, or ``max_frames`` analysed frames."""
        loop = self._loop
        try:
            while True:
                if self.run_once() is StepResult.STOP:
                    break
                if max_frames > 0 and loop.frames_analysed >= max_frames:
                    loop.stop_reason = f"max frames ({max_frames})"
                    break
        except KeyboardInterrupt:
            loop.stop_reason = "interrupted"
            self._log.info("KeyboardInterrupt received, closing recording and shutting down.")
        finally:
            self.close()

        self._log.info(
            "Stopped (%s): read=%d skipped=%d analysed=%d activations=%d "
            "shocks_during_recording=%d",
            loop.stop_reason or "unknown",
            loop.frames_read,
            loop.frames_skipped,
            loop.frames_analysed,
            loop.activations,
            loop.shocks_during_recording,
        )
        return loop

    def close(self) -> None:
        """Close recording, then source, then display. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            self._machine.close()
        finally:
            if self._sidecar is not None:
                with contextlib.suppress(Exception):
                    self._sidecar.flush()
            with contextlib.suppress(Exception):
                self._source.close()
            with contextlib.suppress(Exception):
                self._renderer.close()
