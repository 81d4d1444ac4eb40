"""
Tests for logging helpers.
"""

import json
import logging

from flashcrash.infra.logging_cfg import JsonFormatter, ThrottledFilter, add_file_handler, log_event


def _record(msg, level=logging.INFO):
    return logging.LogRecord("flashcrash", level, __file__, 1, msg, None, None)


def test_json_formatter_fields():
    out = json.loads(JsonFormatter().format(_record('{"event":"x"}')))
    assert out["level"] == "INFO"
    assert out["name"] == "flashcrash"
    assert out["msg"] == '{"event":"x"}'
    assert "ts_iso" in out


def test_throttle_suppresses_repeats_per_symbol():
    f = ThrottledFilter(cooldown_sec=60.0)
    skip_btc = _record(json.dumps({"event": "refresh_skip_grid_full", "symbol": "BTCUSDT"}))
    skip_eth = _record(json.dumps({"event": "refresh_skip_grid_full", "symbol": "ETHUSDT"}))
    assert f.filter(skip_btc)
    assert not f.filter(skip_btc)
    assert f.filter(skip_eth)


def test_throttle_passes_other_events():
    f = ThrottledFilter(cooldown_sec=60.0)
    rec = _record(json.dumps({"event": "orders_submitted", "symbol": "BTCUSDT"}))
    assert f.filter(rec)
    assert f.filter(rec)
    assert f.filter(_record("plain text"))


def test_log_event_and_file_handler(tmp_path):
    logger = logging.getLogger("flashcrash.test_file")
    logger.propagate = False
    path = tmp_path / "out.log"
    handler = add_file_handler(logger, str(path), async_file=False)
    try:
        logger.setLevel(logging.INFO)
        log_event(logger, "orders_submitted", symbol="BTCUSDT", count=3)
        handler.flush()
    finally:
        logger.removeHandler(handler)
        handler.close()

    line = json.loads(path.read_text().strip())
    payload = json.loads(line["msg"])
    assert payload == {"event": "orders_submitted", "symbol": "BTCUSDT", "count": 3}
