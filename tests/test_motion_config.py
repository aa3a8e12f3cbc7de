from __future__ import annotations

from types import SimpleNamespace

import pytest

from analysis.motion import MotionConfig, load_config_module, motion_config_from_cfg
from analysis.motion.config import ENV_VAR
from common.time import effective_fps, frames_for, media_ms


def test_defaults_match_reference_constants():
    cfg = MotionConfig()
    assert cfg.scale == 0.5
    assert cfg.blur_ksize == 3
    assert cfg.diff_threshold == 30
    assert cfg.roi_height_frac == 0.3
    assert (cfg.motion_ratio, cfg.huge_motion_ratio, cfg.shock_ratio) == (0.002, 0.02, 0.30)
    assert cfg.idle_skip == 4
    assert cfg.hold_seconds == 3.0


def test_motion_config_from_cfg_overrides_known_attrs():
    mod = SimpleNamespace(MOTION_RATIO_THRESH=0.004, IDLE_SKIP=2.0, SHOCK_ENABLED=False, OTHER=1)
    cfg = motion_config_from_cfg(mod)
    assert cfg.motion_ratio == 0.004
    assert cfg.idle_skip == 2 and isinstance(cfg.idle_skip, int)
    assert cfg.shock_enabled is False
    assert cfg.huge_motion_ratio == MotionConfig().huge_motion_ratio


def test_motion_config_from_none_is_base():
    base = MotionConfig(scale=1.0)
    assert motion_config_from_cfg(None, base) is base


def test_load_config_module_without_request(monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    assert load_config_module() is None


def test_load_config_module_from_env(monkeypatch):
    monkeypatch.setenv(ENV_VAR, "analysis.motion.model")
    mod = load_config_module()
    assert mod is not None and hasattr(mod, "MotionConfig")


def test_load_config_module_missing_raises(monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    with pytest.raises(ImportError):
        load_config_module("definitely_not_a_module_xyz")


def test_time_helpers():
    assert effective_fps(0.0) == 30.0
    assert effective_fps(-5.0) == 30.0
    assert effective_fps(12.5) == 12.5
    assert frames_for(3.0, 29.97) == 90
    assert media_ms(30, 30.0) == pytest.approx(1000.0)


@pytest.mark.parametrize(
    "raw, expected",
    [("false", False), ("Off", False), ("0", False), ("true", True), (" yes ", True), (0, False)],
)
def test_shock_enabled_parses_strings(raw, expected):
    cfg = motion_config_from_cfg(SimpleNamespace(SHOCK_ENABLED=raw))
    assert cfg.shock_enabled is expected


def test_shock_enabled_rejects_garbage():
    with pytest.raises(ValueError):
        motion_config_from_cfg(SimpleNamespace(SHOCK_ENABLED="maybe"))
