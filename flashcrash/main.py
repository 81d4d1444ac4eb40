"""
Entry point: load settings, configure logging/metrics, run the paper session.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from flashcrash.app import run_paper
from flashcrash.config.config import Settings
from flashcrash.infra.logging_cfg import add_file_handler, build_logger, log_event
from flashcrash.monitoring.metrics import StrategyMetrics, start_metrics_server

log = build_logger("flashcrash", file_path=None)


async def main() -> None:
    try:
        cfg = Settings.load()
    except ValueError as exc:
        log_event(log, "config_invalid", level=logging.ERROR, err=str(exc))
        sys.exit(1)

    build_logger("flashcrash", level=cfg.log_level)
    if cfg.log_file:
        add_file_handler(log, cfg.log_file, level=cfg.log_level)

    if not cfg.paper_mode:
        log_event(log, "live_mode_unsupported", level=logging.ERROR, hint="set FC_PAPER_MODE=1")
        sys.exit(1)

    metrics = StrategyMetrics()
    if cfg.metrics_port > 0:
        start_metrics_server(metrics, cfg.metrics_port)

    log_event(log, "startup", symbol=cfg.symbol, interval=cfg.interval.name, metrics_port=cfg.metrics_port)

    loop = asyncio.get_running_loop()
    run_task = asyncio.create_task(run_paper(cfg, metrics))

    def stop_all() -> None:
        # Cancellation lets the runner cancel its resting bids on the way out.
        if not run_task.done():
            run_task.cancel()

    # Windows doesn't support add_signal_handler, so rely on KeyboardInterrupt handling
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_all)
        except NotImplementedError:
            pass

    try:
        await run_task
    except asyncio.CancelledError:
        log_event(log, "shutdown", symbol=cfg.symbol)


def cli() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nStopped by user")
    sys.exit(0)


if __name__ == "__main__":
    cli()
