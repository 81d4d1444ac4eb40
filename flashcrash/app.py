"""
Composition root: registers strategies and wires one strategy to a session.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from flashcrash.config.config import Settings
from flashcrash.core.event_bus import MarketStream
from flashcrash.core.types import KLine, Market
from flashcrash.execution.paper_exchange import FixedPriceSignal, PaperExchange
from flashcrash.infra.logging_cfg import log_event
from flashcrash.monitoring.metrics import StrategyMetrics
from flashcrash.strategy.flashcrash_strategy import STRATEGY_ID, FlashCrashConfig, FlashCrashStrategy
from flashcrash.strategy.strategy_factory import StrategyFactory

log = logging.getLogger("flashcrash")


def register_strategies() -> None:
    StrategyFactory.register(STRATEGY_ID, FlashCrashStrategy)


def split_symbol(symbol: str, quote_currencies=("USDT", "USDC", "BUSD", "USD", "BTC", "ETH")) -> Market:
    """Best-effort market description for a concatenated symbol like ``BTCUSDT``."""
    for quote in quote_currencies:
        if symbol.endswith(quote) and len(symbol) > len(quote):
            return Market(symbol=symbol, base_currency=symbol[: -len(quote)], quote_currency=quote)
    raise ValueError(f"cannot infer quote currency for symbol {symbol!r}")


class StrategyRunner:
    """Runs one strategy against a session and stream, and stops it cleanly."""

    def __init__(self, strategy: FlashCrashStrategy, session, order_executor, stream: MarketStream) -> None:
        self.strategy = strategy
        self.session = session
        self.order_executor = order_executor
        self.stream = stream
        self.error: Exception | None = None

    async def start(self) -> None:
        self.strategy.subscribe(self.session)
        await self.strategy.run(self.order_executor, self.session, self.stream)

    async def stop(self) -> None:
        try:
            await self.strategy.shutdown()
        except Exception as exc:
            self.error = exc
            log_event(log, "strategy_stop_error", level=logging.ERROR, symbol=self.strategy.config.symbol, err=str(exc))


async def bar_clock(stream: MarketStream, symbol: str, interval: str, period_sec: float, price_signal=None) -> None:
    """Emit a closed bar for (symbol, interval) every ``period_sec`` seconds."""
    while True:
        await asyncio.sleep(period_sec)
        now_ms = int(time.time() * 1000)
        close = price_signal.last() if price_signal is not None else 0.0
        await stream.emit_kline_closed(
            KLine(
                symbol=symbol,
                interval=interval,
                open=close,
                high=close,
                low=close,
                close=close,
                start_time_ms=now_ms - int(period_sec * 1000),
                end_time_ms=now_ms,
            ),
            source="clock",
        )


def build_paper_runner(cfg: Settings, metrics: Optional[StrategyMetrics] = None) -> StrategyRunner:
    """Wire the flash-crash strategy to an in-memory paper session."""
    register_strategies()
    market = split_symbol(cfg.symbol)
    stream = MarketStream()
    exchange = PaperExchange(
        base_currency=market.base_currency,
        quote_currency=market.quote_currency,
        quote_balance=cfg.paper_quote_balance,
        stream=stream,
    )
    strategy = StrategyFactory.create(
        STRATEGY_ID,
        config=FlashCrashConfig.from_settings(cfg),
        market=market,
        price_signal=FixedPriceSignal(cfg.paper_reference_price),
        metrics=metrics,
    )
    return StrategyRunner(strategy, session=exchange, order_executor=exchange, stream=stream)


async def run_paper(cfg: Settings, metrics: Optional[StrategyMetrics] = None) -> None:
    runner = build_paper_runner(cfg, metrics)
    await runner.start()
    try:
        await bar_clock(
            runner.stream,
            cfg.symbol,
            cfg.interval.name,
            cfg.interval.seconds,
            price_signal=runner.strategy.price_signal,
        )
    finally:
        await runner.stop()
