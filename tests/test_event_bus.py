"""
Tests for MarketStream event delivery.
"""

import pytest

from flashcrash.core.event_bus import EventType, MarketStream
from flashcrash.core.types import KLine


@pytest.mark.asyncio
async def test_sync_and_async_handlers_receive_payload(make_order):
    stream = MarketStream()
    seen = []

    def sync_handler(order):
        seen.append(("sync", order.order_id))

    async def async_handler(order):
        seen.append(("async", order.order_id))

    stream.on_order_update(sync_handler)
    stream.on_order_update(async_handler)
    await stream.emit_order_update(make_order(1))

    assert seen == [("sync", 1), ("async", 1)]


@pytest.mark.asyncio
async def test_events_only_reach_their_type(make_order):
    stream = MarketStream()
    orders, bars = [], []
    stream.on_order_update(orders.append)
    stream.on_kline_closed(bars.append)

    await stream.emit_kline_closed(KLine(symbol="BTCUSDT", interval="1m"))

    assert orders == []
    assert len(bars) == 1
    assert stream.get_subscriber_count(EventType.KLINE_CLOSED) == 1


@pytest.mark.asyncio
async def test_handler_error_isolated(make_order):
    logged = []
    stream = MarketStream(log_event=lambda event, **kw: logged.append(event))
    seen = []

    def broken(order):
        raise ValueError("boom")

    stream.on_order_update(broken)
    stream.on_order_update(lambda o: seen.append(o.order_id))
    await stream.emit_order_update(make_order(2))

    assert seen == [2]
    assert stream.get_stats()["handler_errors"] == 1
    assert "stream_handler_error" in logged


@pytest.mark.asyncio
async def test_stats_count_by_type(make_order):
    stream = MarketStream()
    await stream.emit_order_update(make_order(1))
    await stream.emit_order_update(make_order(2))
    await stream.emit_kline_closed(KLine(symbol="BTCUSDT", interval="1m"))

    stats = stream.get_stats()
    assert stats["events_processed"] == 3
    assert stats["by_type"] == {"ORDER_UPDATED": 2, "KLINE_CLOSED": 1}
