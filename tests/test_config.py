"""
Tests for environment-driven Settings.
"""

import json
import logging
import os

import pytest

from flashcrash.config.config import Settings, env_bool
from flashcrash.strategy.flashcrash_strategy import FlashCrashConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("FC_"):
            monkeypatch.delenv(key, raising=False)


def test_defaults():
    cfg = Settings.load()
    assert cfg.symbol == "BTCUSDT"
    assert cfg.interval.name == "1m"
    assert cfg.interval.seconds == 60
    assert cfg.grid_number == 5
    assert cfg.percentage == 0.5
    assert cfg.ewma_window == 25
    assert cfg.paper_mode is True


def test_overrides(monkeypatch):
    monkeypatch.setenv("FC_SYMBOL", "ETHUSDT")
    monkeypatch.setenv("FC_INTERVAL", "4h")
    monkeypatch.setenv("FC_GRID_NUMBER", "8")
    monkeypatch.setenv("FC_PERCENTAGE", "0.35")
    monkeypatch.setenv("FC_BASE_QUANTITY", "0.25")
    monkeypatch.setenv("FC_LOG_FILE", "")

    cfg = Settings.load()

    assert cfg.symbol == "ETHUSDT"
    assert cfg.interval.seconds == 4 * 3600
    assert cfg.grid_number == 8
    assert cfg.percentage == 0.35
    assert cfg.base_quantity == 0.25
    assert cfg.log_file is None


@pytest.mark.parametrize(
    "key,value",
    [
        ("FC_GRID_NUMBER", "0"),
        ("FC_PERCENTAGE", "1.0"),
        ("FC_PERCENTAGE", "0"),
        ("FC_BASE_QUANTITY", "-1"),
        ("FC_INTERVAL", "7m"),
        ("FC_LOG_LEVEL", "chatty"),
    ],
)
def test_invalid_values_rejected(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ValueError):
        Settings.load()


def test_percentage_outside_crash_band_warns(monkeypatch, caplog):
    monkeypatch.setenv("FC_PERCENTAGE", "0.9")
    logger = logging.getLogger("flashcrash")
    monkeypatch.setattr(logger, "propagate", True)
    with caplog.at_level(logging.WARNING, logger="flashcrash"):
        Settings.load()
    assert any("FC_PERCENTAGE" in r.getMessage() for r in caplog.records)


def test_strategy_config_from_settings(monkeypatch):
    monkeypatch.setenv("FC_INTERVAL", "15m")
    cfg = FlashCrashConfig.from_settings(Settings.load())
    assert cfg.interval == "15m"
    assert cfg.grid_number == 5
    assert cfg.base_quantity == 0.001


def test_config_loaded_logs_every_setting(monkeypatch, caplog):
    monkeypatch.setenv("FC_EWMA_WINDOW", "40")
    logger = logging.getLogger("flashcrash")
    monkeypatch.setattr(logger, "propagate", True)
    with caplog.at_level(logging.INFO, logger="flashcrash"):
        Settings.load()

    loaded = [json.loads(r.getMessage()) for r in caplog.records if "config_loaded" in r.getMessage()]
    assert len(loaded) == 1
    assert loaded[0]["interval"] == "1m"
    assert loaded[0]["ewma_window"] == 40
    assert loaded[0]["paper_mode"] is True


@pytest.mark.parametrize("raw,expected", [("1", True), ("yes", True), ("0", False), ("no", False)])
def test_env_bool(monkeypatch, raw, expected):
    monkeypatch.setenv("FC_FLAG", raw)
    assert env_bool("FC_FLAG", not expected) is expected


def test_env_bool_default(monkeypatch):
    assert env_bool("FC_MISSING", True) is True
