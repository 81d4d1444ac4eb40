"""
Structured logging setup for the flash-crash strategy.

- Rich console handler for humans, JSON file handler for ingestion
- Non-blocking queue handler so file writes never stall the event loop
- Throttling for skip events that repeat on every bar in steady state
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import sys
import threading
import time
from datetime import datetime
from typing import Dict, Optional, Set

from rich.logging import RichHandler


class JsonFormatter(logging.Formatter):
    """Compact JSON formatter for structured log ingestion."""

    def format(self, record: logging.LogRecord) -> str:
        ts = record.created
        payload = {
            "ts": ts,
            "ts_iso": datetime.fromtimestamp(ts).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"))


class AsyncQueueHandler(logging.Handler):
    """
    Non-blocking handler that queues log records for a background writer thread.

    Records are dropped (and counted) when the queue is full.
    """

    def __init__(self, target_handler: logging.Handler, max_queue_size: int = 10000):
        super().__init__()
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._target = target_handler
        self._shutdown = False
        self._dropped = 0
        self._thread = threading.Thread(target=self._worker, daemon=True, name="log-writer")
        self._thread.start()
        atexit.register(self.close)

    def emit(self, record: logging.LogRecord) -> None:
        if self._shutdown:
            return
        try:
            self._queue.put_nowait(record)
        except queue.Full:
            self._dropped += 1

    def _worker(self) -> None:
        while not self._shutdown or not self._queue.empty():
            try:
                record = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            self._target.handle(record)
            self._queue.task_done()

    def close(self) -> None:
        if self._shutdown:
            return
        self._shutdown = True
        if self._thread.is_alive():
            self._thread.join(timeout=2.0)
        if self._dropped > 0:
            sys.stderr.write(f"[logging] Dropped {self._dropped} log records due to queue overflow\n")
        self._target.close()
        super().close()


class ThrottledFilter(logging.Filter):
    """
    Suppress repeats of selected JSON events for ``cooldown_sec``.

    A full grid or an empty wallet produces the same skip event on every
    bar; one line per cooldown is enough.
    """

    DEFAULT_EVENTS: Set[str] = {
        "refresh_skip_grid_full",
        "refresh_skip_balance",
        "refresh_skip_no_price",
    }

    def __init__(self, cooldown_sec: float = 300.0, throttled_events: Optional[Set[str]] = None):
        super().__init__()
        self._cooldown = cooldown_sec
        self._last_seen: Dict[str, float] = {}
        self._throttled_events = throttled_events or self.DEFAULT_EVENTS

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            data = json.loads(record.getMessage())
        except (json.JSONDecodeError, TypeError):
            return True  # Not JSON, allow through
        if not isinstance(data, dict):
            return True

        event = data.get("event", "")
        if event not in self._throttled_events:
            return True

        now = time.time()
        key = f"{event}:{data.get('symbol', '')}"
        if now - self._last_seen.get(key, 0.0) < self._cooldown:
            return False
        self._last_seen[key] = now
        return True


def build_logger(
    name: str = "flashcrash",
    level: int | str = logging.INFO,
    file_path: Optional[str] = "flashcrash.log",
    async_file: bool = True,
    throttle_skips: bool = True,
) -> logging.Logger:
    """
    Build the strategy logger.

    Args:
        name: Logger name
        level: Minimum log level (int or name)
        file_path: Path to JSON log file (None to disable file logging)
        async_file: Write the file through AsyncQueueHandler
        throttle_skips: Throttle repetitive refresh-skip events on the console

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Idempotent handler setup
    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        return logger

    stream_handler = RichHandler(
        rich_tracebacks=False,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
    )
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("%(message)s"))
    if throttle_skips:
        stream_handler.addFilter(ThrottledFilter())
    logger.addHandler(stream_handler)

    if file_path:
        add_file_handler(logger, file_path, level=level, async_file=async_file)

    logger.propagate = False
    return logger


def add_file_handler(
    logger: logging.Logger,
    file_path: str,
    level: int | str = logging.INFO,
    async_file: bool = True,
) -> logging.Handler:
    """Attach a JSON file handler, optionally behind AsyncQueueHandler."""
    file_handler = logging.FileHandler(file_path)
    file_handler.setFormatter(JsonFormatter())
    file_handler.setLevel(level)
    handler: logging.Handler = file_handler
    if async_file:
        handler = AsyncQueueHandler(file_handler)
        handler.setLevel(level)
    logger.addHandler(handler)
    return handler


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **data,
) -> None:
    """
    Log a structured event.

    Usage:
        log_event(log, "orders_submitted", symbol="BTCUSDT", count=3)
    """
    payload = {"event": event, **data}
    logger.log(level, json.dumps(payload, default=str))
