from __future__ import annotations

import argparse
import contextlib
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from analysis.motion.config import load_config_module, motion_config_from_cfg
from analysis.motion.engine import MotionEngine
from analysis.motion.events import EventClassifier
from analysis.motion.model import MotionConfig
from analysis.motion.pipeline import MotionPipeline
from analysis.motion.sidecar import MotionSidecarWriter
from analysis.motion.state_machine import DetectionStateMachine
from capture.reader import ReaderConfig, ReaderFactory, SourceUnavailable
from display.overlay import NullRenderer, OverlayRenderer
from record.recorder import Recorder, RecorderConfig, recorder_config_from_cfg

_LOG = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Run motion/shock detection with activation-gated recording.",
    )
    ap.add_argument(
        "source",
        nargs="?",
        default="./input/1.mp4",
        help="Video file path or numeric camera index.",
    )
    ap.add_argument(
        "--prefer",
        type=str,
        choices=["cv2", "null"],
        default="cv2",
        help='Reader backend ("cv2" for files/devices, "null" for synthetic frames).',
    )
    ap.add_argument(
        "--config-module",
        type=str,
        default=None,
        help="Importable Python module with upper-case overrides "
        "(defaults to $MOTION_CONFIG_MODULE).",
    )
    ap.add_argument(
        "--motion-dir",
        type=str,
        default=None,
        help="Directory for motion-triggered recordings (default: recorded_motion).",
    )
    ap.add_argument(
        "--shock-dir",
        type=str,
        default=None,
        help="Directory for shock-triggered recordings (default: recorded_shock).",
    )
    ap.add_argument(
        "--event-log",
        type=str,
        default=None,
        help="Optional JSONL path receiving activation/deactivation records.",
    )
    ap.add_argument(
        "--max-frames",
        type=int,
        default=0,
        help="If > 0, stop after this many analysed frames.",
    )
    ap.add_argument(
        "--headless",
        action="store_true",
        help="Do not open display windows.",
    )

    # Detection tuning (defaults live in MotionConfig)
    ap.add_argument("--scale", type=float, default=None, help="Downscale factor.")
    ap.add_argument("--diff-threshold", type=int, default=None, help="Pixel diff threshold.")
    ap.add_argument(
        "--motion-ratio", type=float, default=None, help="ROI ratio above which MOTION fires."
    )
    ap.add_argument(
        "--huge-motion-ratio",
        type=float,
        default=None,
        help="ROI ratio above which HUGE MOTION fires.",
    )
    ap.add_argument(
        "--shock-ratio",
        type=float,
        default=None,
        help="Whole-frame ratio above which SHOCK fires.",
    )
    ap.add_argument(
        "--no-shock",
        action="store_true",
        help="Disable whole-frame shock detection.",
    )
    ap.add_argument(
        "--roi-height-frac",
        type=float,
        default=None,
        help="Height fraction of the bottom ROI band.",
    )
    ap.add_argument(
        "--idle-skip", type=int, default=None, help="Frames grabbed without decoding while idle."
    )
    ap.add_argument(
        "--hold-seconds",
        type=float,
        default=None,
        help="Quiet time tolerated before a recording is closed.",
    )

    ap.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return ap


def motion_config_from_args(args: argparse.Namespace, base: MotionConfig) -> MotionConfig:
    overrides = {
        "scale": args.scale,
        "diff_threshold": args.diff_threshold,
        "motion_ratio": args.motion_ratio,
        "huge_motion_ratio": args.huge_motion_ratio,
        "shock_ratio": args.shock_ratio,
        "roi_height_frac": args.roi_height_frac,
        "idle_skip": args.idle_skip,
        "hold_seconds": args.hold_seconds,
    }
    cfg = replace(base, **{k: v for k, v in overrides.items() if v is not None})
    if args.no_shock:
        cfg = replace(cfg, shock_enabled=False)
    return cfg


def recorder_config_from_args(args: argparse.Namespace, base: RecorderConfig) -> RecorderConfig:
    cfg = base
    if args.motion_dir:
        cfg = replace(cfg, motion_dir=Path(args.motion_dir))
    if args.shock_dir:
        cfg = replace(cfg, shock_dir=Path(args.shock_dir))
    return cfg


def main(argv: Optional[list[str]] = None) -> int:
    ap = build_arg_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # ------------------------------------------------------------------ config

    cfg_module = load_config_module(args.config_module)
    motion_cfg = motion_config_from_args(args, motion_config_from_cfg(cfg_module))
    rec_cfg = recorder_config_from_args(args, recorder_config_from_cfg(cfg_module))

    # ------------------------------------------------------------------ source

    reader_cfg = ReaderConfig(prefer=args.prefer, path=args.source)
    if args.max_frames > 0:
        reader_cfg.null_length = args.max_frames * (motion_cfg.idle_skip + 1)
    try:
        source = ReaderFactory.from_config(reader_cfg)
    except SourceUnavailable as exc:
        _LOG.error("Error: %s", exc)
        return 1

    with contextlib.ExitStack() as stack:
        # Released even if setup below fails; closing twice is harmless.
        stack.callback(source.close)

        # -------------------------------------------------------------- detection stack

        recorder = Recorder(cfg=rec_cfg)
        recorder.ensure_dirs()

        machine = DetectionStateMachine(
            sink=recorder,
            fps=source.fps_hint(),
            source_name=source.name,
            hold_seconds=motion_cfg.hold_seconds,
            default_fps=motion_cfg.default_fps,
        )

        renderer = NullRenderer() if args.headless else OverlayRenderer()

        # -------------------------------------------------------------- main loop

        sidecar = None
        if args.event_log:
            sidecar = stack.enter_context(
                MotionSidecarWriter(Path(args.event_log), source_name=source.name)
            )
            _LOG.info("Writing detection events to %s", args.event_log)

        pipeline = MotionPipeline(
            source=source,
            machine=machine,
            engine=MotionEngine(motion_cfg),
            classifier=EventClassifier(motion_cfg),
            config=motion_cfg,
            renderer=renderer,
            sidecar=sidecar,
        )
        # SIGTERM (service stop) finishes the current cycle and closes the
        # recording like a quit key would.
        stack.enter_context(pipeline.stop_on_signals())

        _LOG.info(
            "Detecting on %s: fps=%.2f hold=%d frames idle_skip=%d shock=%s",
            args.source,
            machine.fps,
            machine.hold_frames,
            motion_cfg.idle_skip,
            "on" if motion_cfg.shock_enabled else "off",
        )
        pipeline.run(max_frames=args.max_frames)

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
