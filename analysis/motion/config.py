# analysis/motion/config.py
"""Optional runtime config module lookup.

Deployments may ship a plain Python module with upper-case constants
(``MOTION_RATIO_THRESH = 0.004`` ...). It is located through
``MOTION_CONFIG_MODULE`` or an explicit name; absent modules mean defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import fields, replace
from importlib import import_module
from types import ModuleType
from typing import Any, Dict, Optional

from .model import MotionConfig

_LOG = logging.getLogger(__name__)

ENV_VAR = "MOTION_CONFIG_MODULE"

# MotionConfig field -> config-module attribute
_ATTRS: Dict[str, str] = {
    "scale": "SCALE",
    "blur_ksize": "BLUR_KSIZE",
    "diff_threshold": "DIFF_THRESHOLD",
    "morph_kernel": "MORPH_KERNEL",
    "roi_height_frac": "ROI_HEIGHT_FRAC",
    "motion_ratio": "MOTION_RATIO_THRESH",
    "huge_motion_ratio": "HUGE_MOTION_RATIO_THRESH",
    "shock_ratio": "SHOCK_RATIO_THRESH",
    "shock_enabled": "SHOCK_ENABLED",
    "idle_skip": "IDLE_SKIP",
    "hold_seconds": "HOLD_SECONDS",
    "default_fps": "DEFAULT_FPS",
}


def load_config_module(name: Optional[str] = None) -> Optional[ModuleType]:
    """Import the first available of ``name``, ``$MOTION_CONFIG_MODULE``.

    An explicitly requested module that fails to import is an error; without
    any request the lookup quietly returns ``None``.
    """
    requested = name or os.environ.get(ENV_VAR)
    if not requested:
        return None
    try:
        mod = import_module(requested)
    except ImportError as exc:
        raise ImportError(
            f"Could not import config module {requested!r} "
            f"(set {ENV_VAR} or --config-module to an importable module)."
        ) from exc
    _LOG.info("Loaded config module %s", requested)
    return mod


_TRUE = ("1", "true", "yes", "on", "enabled")
_FALSE = ("", "0", "false", "no", "off", "none", "disabled")


def _as_bool(attr: str, value: Any) -> bool:
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in _TRUE:
            return True
        if raw in _FALSE:
            return False
        raise ValueError(f"{attr}={value!r} is not a boolean")
    return bool(value)


def motion_config_from_cfg(cfg_module: Any, base: Optional[MotionConfig] = None) -> MotionConfig:
    """Overlay upper-case attributes of ``cfg_module`` onto ``base``."""
    base = base or MotionConfig()
    if cfg_module is None:
        return base

    types = {f.name: type(getattr(base, f.name)) for f in fields(base)}
    overrides: Dict[str, Any] = {}
    for field_name, attr in _ATTRS.items():
        if not hasattr(cfg_module, attr):
            continue
        value = getattr(cfg_module, attr)
        if types[field_name] is bool:
            overrides[field_name] = _as_bool(attr, value)
        else:
            overrides[field_name] = types[field_name](value)
    return replace(base, **overrides)
