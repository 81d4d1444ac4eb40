"""Host-owned collaborator shapes the strategy consumes."""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, List, Protocol, Union

from flashcrash.core.types import Balance, KLine, Order, SubmitOrder

OrderUpdateHandler = Callable[[Order], Union[Awaitable[None], None]]
KLineClosedHandler = Callable[[KLine], Union[Awaitable[None], None]]

KLINE_CHANNEL = "kline"


class PriceSignal(Protocol):
    def last(self) -> float:
        """Most recent reference price; 0 before the first data point."""


class OrderExecutor(Protocol):
    async def submit_orders(self, *requests: SubmitOrder) -> List[Order]:
        """Submit a batch all-or-nothing; raise on failure."""


class ExchangeSession(Protocol):
    async def cancel_orders(self, *orders: Order) -> None:
        """Best-effort bulk cancel; raise on failure."""

    async def balances(self) -> Dict[str, Balance]:
        """Current account snapshot keyed by currency."""

    def subscribe(self, channel: str, symbol: str, interval: str) -> None:
        """Register a market-data subscription."""


class OrderStream(Protocol):
    def on_order_update(self, handler: OrderUpdateHandler) -> None:
        ...

    def on_kline_closed(self, handler: KLineClosedHandler) -> None:
        ...
