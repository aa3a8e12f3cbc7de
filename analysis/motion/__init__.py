"""Public exports for the motion analysis package.

The loop itself lives in :mod:`analysis.motion.pipeline`, which also pulls
in the display layer; import it explicitly.
"""

from __future__ import annotations

from .config import load_config_module, motion_config_from_cfg
from .engine import MotionEngine
from .events import EventClassifier, destination_for
from .model import MotionConfig, MotionReading, Roi, Severity
from .scorer import MotionScorer
from .sidecar import MotionSidecarWriter
from .state_machine import DetectionState, DetectionStateMachine, Mode, StepOutcome

__all__ = [
    "MotionEngine",
    "MotionScorer",
    "MotionConfig",
    "MotionReading",
    "Roi",
    "Severity",
    "EventClassifier",
    "destination_for",
    "DetectionState",
    "DetectionStateMachine",
    "Mode",
    "StepOutcome",
    "MotionSidecarWriter",
    "load_config_module",
    "motion_config_from_cfg",
]
