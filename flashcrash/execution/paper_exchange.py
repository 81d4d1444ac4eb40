"""
PaperExchange: in-memory exchange session for dry runs.

Implements the host ports the strategy consumes (bulk cancel, balances,
batch submit, kline subscription) and pushes order-status events through
an attached MarketStream the way a live user-data stream would.

No network calls, no matching engine: orders rest until cancelled or
filled explicitly via fill()/partial_fill().
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from flashcrash.core.types import Balance, Order, OrderStatus, Side, SubmitOrder

if TYPE_CHECKING:
    from flashcrash.core.event_bus import MarketStream

log = logging.getLogger("flashcrash")


class PaperExchangeError(Exception):
    """Raised for rejected paper requests (insufficient balance, injected failures)."""


class PaperExchange:
    """
    Simulated exchange session.

    Submissions are all-or-nothing: the whole batch is rejected when its
    quote notional exceeds the available balance.
    """

    def __init__(
        self,
        base_currency: str,
        quote_currency: str,
        quote_balance: float,
        stream: Optional["MarketStream"] = None,
        latency_sec: float = 0.0,
        start_order_id: int = 1,
    ) -> None:
        self.base_currency = base_currency
        self.quote_currency = quote_currency
        self.stream = stream
        self.latency_sec = latency_sec

        self._balances: Dict[str, Balance] = {
            base_currency: Balance(base_currency),
            quote_currency: Balance(quote_currency, available=quote_balance),
        }
        self._ids = itertools.count(start_order_id)
        self.open_orders: Dict[int, Order] = {}
        self.subscriptions: List[Tuple[str, str, str]] = []

        # Request history for inspection
        self.submitted: List[SubmitOrder] = []
        self.cancel_requests: List[List[int]] = []

        # Failure injection: raised once by the next matching call
        self.fail_next_submit: Optional[Exception] = None
        self.fail_next_cancel: Optional[Exception] = None

    def _log_event(self, event: str, **kwargs) -> None:
        log.debug(json.dumps({"event": event, "venue": "paper", **kwargs}, default=str))

    async def _latency(self) -> None:
        if self.latency_sec > 0:
            await asyncio.sleep(self.latency_sec)

    async def _emit(self, order: Order) -> None:
        if self.stream is not None:
            await self.stream.emit_order_update(replace(order), source="paper")

    # ========== Session Port ==========

    def subscribe(self, channel: str, symbol: str, interval: str) -> None:
        self.subscriptions.append((channel, symbol, interval))
        self._log_event("subscribe", channel=channel, symbol=symbol, interval=interval)

    async def balances(self) -> Dict[str, Balance]:
        await self._latency()
        return {cur: replace(bal) for cur, bal in self._balances.items()}

    def set_balance(self, currency: str, available: float) -> None:
        bal = self._balances.setdefault(currency, Balance(currency))
        bal.available = available

    async def cancel_orders(self, *orders: Order) -> None:
        await self._latency()
        self.cancel_requests.append([o.order_id for o in orders])
        if self.fail_next_cancel is not None:
            err, self.fail_next_cancel = self.fail_next_cancel, None
            raise err

        for requested in orders:
            order = self.open_orders.pop(requested.order_id, None)
            if order is None:
                continue
            self._unlock(order, order.quantity - order.executed_quantity)
            order.status = OrderStatus.CANCELED
            self._log_event("order_canceled", order_id=order.order_id)
            await self._emit(order)

    # ========== Executor Port ==========

    async def submit_orders(self, *requests: SubmitOrder) -> List[Order]:
        await self._latency()
        if self.fail_next_submit is not None:
            err, self.fail_next_submit = self.fail_next_submit, None
            raise err

        quote = self._balances[self.quote_currency]
        notional = sum(req.price * req.quantity for req in requests if req.side == Side.BUY)
        if notional > quote.available:
            raise PaperExchangeError(
                f"insufficient {self.quote_currency}: need {notional:.8f}, available {quote.available:.8f}"
            )

        created: List[Order] = []
        for req in requests:
            order = Order.from_submit(req, order_id=next(self._ids))
            self.open_orders[order.order_id] = order
            self.submitted.append(req)
            if req.side == Side.BUY:
                quote.available -= req.price * req.quantity
                quote.locked += req.price * req.quantity
            created.append(replace(order))
        self._log_event("orders_accepted", count=len(created))
        return created

    # ========== Simulation ==========

    async def partial_fill(self, order_id: int, quantity: float) -> Order:
        """Execute part of a resting order and publish the update."""
        order = self.open_orders.get(order_id)
        if order is None:
            raise PaperExchangeError(f"unknown order: {order_id}")
        quantity = min(quantity, order.quantity - order.executed_quantity)
        order.executed_quantity += quantity
        self._settle(order, quantity)

        if order.executed_quantity >= order.quantity:
            order.status = OrderStatus.FILLED
            del self.open_orders[order_id]
        else:
            order.status = OrderStatus.PARTIALLY_FILLED
        await self._emit(order)
        return replace(order)

    async def fill(self, order_id: int) -> Order:
        """Execute the remainder of a resting order."""
        order = self.open_orders.get(order_id)
        if order is None:
            raise PaperExchangeError(f"unknown order: {order_id}")
        return await self.partial_fill(order_id, order.quantity - order.executed_quantity)

    def _settle(self, order: Order, quantity: float) -> None:
        if order.side != Side.BUY:
            return
        quote = self._balances[self.quote_currency]
        base = self._balances[self.base_currency]
        quote.locked -= order.price * quantity
        base.available += quantity

    def _unlock(self, order: Order, remaining: float) -> None:
        if order.side != Side.BUY:
            return
        quote = self._balances[self.quote_currency]
        quote.locked -= order.price * remaining
        quote.available += order.price * remaining


class FixedPriceSignal:
    """Reference price that only changes when told to. Used for paper runs."""

    def __init__(self, price: float = 0.0) -> None:
        self._price = price

    def last(self) -> float:
        return self._price

    def update(self, price: float) -> None:
        self._price = price
