"""
Environment-driven configuration with validation.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from flashcrash.core.types import Interval, parse_interval

log = logging.getLogger("flashcrash")

# Ladder factors outside this band stop behaving like a crash catcher:
# higher sits too close to the market, lower rarely fills at all.
CRASH_BAND_LOW = 0.3
CRASH_BAND_HIGH = 0.5


def env_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class Settings:
    symbol: str
    interval: Interval
    grid_number: int       # Max simultaneous bid orders
    percentage: float      # Shrink factor between rungs
    base_quantity: float   # Quantity per order
    ewma_window: int       # Window of the EWMA the host feeds as reference price
    log_level: str
    log_file: str | None
    metrics_port: int
    paper_mode: bool
    paper_quote_balance: float
    paper_reference_price: float

    def dump(self) -> dict:
        """Return a dict of settings for sanity checks/logging."""
        out = self.__dict__.copy()
        out["interval"] = self.interval.name
        return out

    @classmethod
    def load(cls) -> "Settings":
        load_dotenv()

        def _int_env(key: str, default: int) -> int:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return int(raw)

        def _float_env(key: str, default: float) -> float:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return float(raw)

        cfg = cls(
            symbol=os.getenv("FC_SYMBOL", "BTCUSDT"),
            interval=parse_interval(os.getenv("FC_INTERVAL", "1m")),
            grid_number=_int_env("FC_GRID_NUMBER", 5),
            percentage=_float_env("FC_PERCENTAGE", 0.5),
            base_quantity=_float_env("FC_BASE_QUANTITY", 0.001),
            ewma_window=_int_env("FC_EWMA_WINDOW", 25),
            log_level=os.getenv("FC_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("FC_LOG_FILE", "flashcrash.log") or None,
            metrics_port=_int_env("FC_METRICS_PORT", 0),
            paper_mode=env_bool("FC_PAPER_MODE", True),
            paper_quote_balance=_float_env("FC_PAPER_QUOTE_BALANCE", 1000.0),
            paper_reference_price=_float_env("FC_PAPER_REFERENCE_PRICE", 30000.0),
        )
        cfg._validate()
        _sanity_check(cfg)
        return cfg

    def _validate(self) -> None:
        if not self.symbol:
            raise ValueError("FC_SYMBOL must be set")
        if self.grid_number <= 0:
            raise ValueError("FC_GRID_NUMBER must be > 0")
        if not 0 < self.percentage < 1:
            raise ValueError("FC_PERCENTAGE must be between 0 and 1 (exclusive)")
        if self.base_quantity <= 0:
            raise ValueError("FC_BASE_QUANTITY must be > 0")
        if self.ewma_window <= 0:
            raise ValueError("FC_EWMA_WINDOW must be > 0")
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"FC_LOG_LEVEL={self.log_level} is not a logging level")
        if self.metrics_port < 0:
            raise ValueError("FC_METRICS_PORT must be >= 0")

        if not CRASH_BAND_LOW <= self.percentage <= CRASH_BAND_HIGH:
            log.warning(
                f"WARNING: FC_PERCENTAGE is {self.percentage:.2f}, outside the "
                f"{CRASH_BAND_LOW:.1f}-{CRASH_BAND_HIGH:.1f} crash band. "
                "First rung may sit close to market or never fill."
            )


def _sanity_check(cfg: Settings) -> None:
    """
    Log critical settings once at startup so overrides are obvious.
    """
    payload = {"event": "config_loaded", **cfg.dump()}
    log.info(json.dumps(payload))
