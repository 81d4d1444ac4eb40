"""
MarketStream: host-side event distribution for order updates and closed bars.

The strategy registers callbacks for two event types and the host (or the
paper session) pushes events in. Features:
- Sync or async handlers, called in registration order
- Error isolation (one handler failure doesn't stop others)
- Per-type statistics
"""

from __future__ import annotations

import inspect
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Union

from flashcrash.core.types import KLine, Order

log = logging.getLogger("flashcrash")


class EventType(Enum):
    ORDER_UPDATED = auto()   # Exchange reported an order status change
    KLINE_CLOSED = auto()    # A bar closed for a subscribed (symbol, interval)


@dataclass
class Event:
    type: EventType
    payload: Union[Order, KLine]
    timestamp_ms: int = field(default_factory=lambda: int(time.time() * 1000))
    source: Optional[str] = None

    def __str__(self) -> str:
        return f"Event({self.type.name}, ts={self.timestamp_ms}, source={self.source})"


Handler = Callable[[Any], Any]


@dataclass
class Subscription:
    """Internal subscription record."""
    handler: Handler
    name: Optional[str] = None


class MarketStream:
    """
    Event stream delivering order updates and closed bars to strategies.

    Usage:
        stream = MarketStream()
        stream.on_order_update(strategy.handle_order_update)
        stream.on_kline_closed(strategy.handle_kline_closed)

        await stream.emit_order_update(order)
    """

    def __init__(self, log_event: Optional[Callable[..., None]] = None) -> None:
        self._log = log_event or self._default_log
        self._subscribers: Dict[EventType, List[Subscription]] = {}

        self._stats = {
            "events_processed": 0,
            "handler_errors": 0,
        }
        self._by_type: Dict[str, int] = {t.name: 0 for t in EventType}

    def _default_log(self, event: str, **kwargs: Any) -> None:
        level = logging.ERROR if event.endswith("_error") else logging.DEBUG
        log.log(level, json.dumps({"event": event, **kwargs}, default=str))

    # -------------------------------------------------------------------------
    # Subscription Management
    # -------------------------------------------------------------------------

    def subscribe(self, event_type: EventType, handler: Handler, name: Optional[str] = None) -> Subscription:
        sub = Subscription(handler=handler, name=name)
        subs = self._subscribers.setdefault(event_type, [])
        subs.append(sub)

        self._log(
            "stream_subscribe",
            event_type=event_type.name,
            handler_name=name or getattr(handler, "__name__", repr(handler)),
            total_subscribers=len(subs),
        )
        return sub

    def on_order_update(self, handler: Handler) -> Subscription:
        return self.subscribe(EventType.ORDER_UPDATED, handler)

    def on_kline_closed(self, handler: Handler) -> Subscription:
        return self.subscribe(EventType.KLINE_CLOSED, handler)

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    async def emit_order_update(self, order: Order, source: Optional[str] = None) -> None:
        await self.dispatch(Event(EventType.ORDER_UPDATED, order, source=source))

    async def emit_kline_closed(self, kline: KLine, source: Optional[str] = None) -> None:
        await self.dispatch(Event(EventType.KLINE_CLOSED, kline, source=source))

    async def dispatch(self, event: Event) -> None:
        """Deliver an event to every handler of its type, isolating handler failures."""
        for sub in list(self._subscribers.get(event.type, [])):
            try:
                result = sub.handler(event.payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self._stats["handler_errors"] += 1
                self._log(
                    "stream_handler_error",
                    event_type=event.type.name,
                    source=event.source,
                    handler_name=sub.name or getattr(sub.handler, "__name__", "unknown"),
                    error=str(e),
                    error_type=type(e).__name__,
                )
        self._stats["events_processed"] += 1
        self._by_type[event.type.name] += 1

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self._stats,
            "by_type": dict(self._by_type),
            "subscriber_count": sum(len(s) for s in self._subscribers.values()),
        }

    def get_subscriber_count(self, event_type: EventType) -> int:
        return len(self._subscribers.get(event_type, []))
