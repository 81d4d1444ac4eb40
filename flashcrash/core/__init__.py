"""
Core package.

Domain types, host collaborator ports and the event stream.
"""

from flashcrash.core.event_bus import Event, EventType, MarketStream, Subscription
from flashcrash.core.ports import (
    KLINE_CHANNEL,
    ExchangeSession,
    OrderExecutor,
    OrderStream,
    PriceSignal,
)
from flashcrash.core.types import (
    TERMINAL_STATUSES,
    Balance,
    Interval,
    KLine,
    Market,
    Order,
    OrderStatus,
    OrderType,
    Side,
    SubmitOrder,
    TimeInForce,
    parse_interval,
)

__all__ = [
    "Event",
    "EventType",
    "MarketStream",
    "Subscription",
    "KLINE_CHANNEL",
    "ExchangeSession",
    "OrderExecutor",
    "OrderStream",
    "PriceSignal",
    "TERMINAL_STATUSES",
    "Balance",
    "Interval",
    "KLine",
    "Market",
    "Order",
    "OrderStatus",
    "OrderType",
    "Side",
    "SubmitOrder",
    "TimeInForce",
    "parse_interval",
]
