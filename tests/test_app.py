"""
Tests for the composition root and strategy registry.
"""

import asyncio
import os

import pytest
from prometheus_client import CollectorRegistry

from flashcrash.app import StrategyRunner, bar_clock, build_paper_runner, register_strategies, split_symbol
from flashcrash.config.config import Settings
from flashcrash.core.event_bus import MarketStream
from flashcrash.core.ports import KLINE_CHANNEL
from flashcrash.monitoring.metrics import StrategyMetrics
from flashcrash.strategy.flashcrash_strategy import STRATEGY_ID, FlashCrashStrategy
from flashcrash.strategy.strategy_factory import StrategyFactory


@pytest.fixture(autouse=True)
def clean_registry():
    StrategyFactory.clear()
    yield
    StrategyFactory.clear()


@pytest.fixture
def settings(monkeypatch):
    for key in list(os.environ):
        if key.startswith("FC_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("FC_PAPER_REFERENCE_PRICE", "1000")
    return Settings.load()


class TestStrategyFactory:

    def test_nothing_registered_until_asked(self):
        assert StrategyFactory.registered() == []
        with pytest.raises(ValueError):
            StrategyFactory.create(STRATEGY_ID)

    def test_register_is_explicit_and_idempotent(self):
        register_strategies()
        register_strategies()
        assert StrategyFactory.registered() == [STRATEGY_ID]

    def test_conflicting_registration_rejected(self):
        register_strategies()
        with pytest.raises(ValueError):
            StrategyFactory.register(STRATEGY_ID, object)


class TestSplitSymbol:

    def test_known_quote(self):
        market = split_symbol("ETHUSDT")
        assert market.base_currency == "ETH"
        assert market.quote_currency == "USDT"

    def test_unknown_quote(self):
        with pytest.raises(ValueError):
            split_symbol("FOOBAR")


class TestPaperRunner:

    @pytest.mark.asyncio
    async def test_start_and_stop(self, settings):
        metrics = StrategyMetrics(registry=CollectorRegistry())
        runner = build_paper_runner(settings, metrics)
        assert isinstance(runner, StrategyRunner)
        assert isinstance(runner.strategy, FlashCrashStrategy)

        await runner.start()
        exchange = runner.session
        assert exchange.subscriptions == [(KLINE_CHANNEL, "BTCUSDT", "1m")]
        assert len(exchange.open_orders) == settings.grid_number
        assert max(o.price for o in exchange.open_orders.values()) == pytest.approx(500.0)

        await runner.stop()
        assert exchange.open_orders == {}
        assert runner.strategy.active_orders.num_of_bids() == 0
        assert runner.error is None


@pytest.mark.asyncio
async def test_bar_clock_emits_closed_bars():
    stream = MarketStream()
    bars = []
    stream.on_kline_closed(bars.append)

    task = asyncio.create_task(bar_clock(stream, "BTCUSDT", "1m", period_sec=0.01))
    for _ in range(100):
        if len(bars) >= 2:
            break
        await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(bars) >= 2
    assert all(b.symbol == "BTCUSDT" and b.interval == "1m" and b.closed for b in bars)
