"""
FlashCrashStrategy: keeps a deep bid ladder resting so a flash crash fills it.

On every closed bar (and once at start) the strategy:
1. cancels the bids it tracks (best effort),
2. checks the quote balance,
3. tops the ladder up to ``grid_number`` orders priced off the reference
   signal, and
4. records the orders the exchange confirmed.

Order-status events flow through handle_order_update() independently and
keep the local book in line with the exchange.

Thread Safety:
    The refresh sequence as a whole is not atomic; only book accesses are
    locked (see ActiveOrderSet). Overlapping refresh triggers are skipped.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, List, Optional, TYPE_CHECKING

from flashcrash.core.ports import KLINE_CHANNEL
from flashcrash.core.types import KLine, Market, Order, OrderStatus, SubmitOrder
from flashcrash.execution.active_order_book import LocalActiveOrderBook
from flashcrash.strategy.grid_planner import GridPlanner

if TYPE_CHECKING:
    from flashcrash.config.config import Settings
    from flashcrash.core.ports import ExchangeSession, OrderExecutor, OrderStream, PriceSignal
    from flashcrash.monitoring.metrics import StrategyMetrics

log = logging.getLogger("flashcrash")

STRATEGY_ID = "flashcrash"


class StrategyState(Enum):
    IDLE = auto()
    REFRESHING = auto()


@dataclass
class FlashCrashConfig:
    """Strategy parameters, fixed for the strategy's lifetime."""
    symbol: str
    interval: str
    grid_number: int
    percentage: float
    base_quantity: float
    ewma_window: int = 25

    @classmethod
    def from_settings(cls, cfg: "Settings") -> "FlashCrashConfig":
        return cls(
            symbol=cfg.symbol,
            interval=cfg.interval.name,
            grid_number=cfg.grid_number,
            percentage=cfg.percentage,
            base_quantity=cfg.base_quantity,
            ewma_window=cfg.ewma_window,
        )


@dataclass
class RefreshResult:
    """Outcome of one refresh cycle."""
    cancel_requested: int = 0
    submitted: int = 0
    reference_price: float = 0.0
    aborted_reason: Optional[str] = None

    @property
    def was_aborted(self) -> bool:
        return self.aborted_reason is not None


class FlashCrashStrategy:
    """
    Crash-catching bid grid.

    Market metadata and the reference price signal are injected at
    construction; the order executor, exchange session and event stream
    are handed over by the host in run().
    """

    def __init__(
        self,
        config: FlashCrashConfig,
        market: Market,
        price_signal: "PriceSignal",
        metrics: Optional["StrategyMetrics"] = None,
        planner: Optional[GridPlanner] = None,
        log_event: Optional[Callable[..., None]] = None,
    ) -> None:
        self.config = config
        self.market = market
        self.price_signal = price_signal
        self.metrics = metrics
        self.planner = planner or GridPlanner()
        self._log_event = log_event or self._default_log

        self.active_orders = LocalActiveOrderBook(config.symbol, log_event=self._log_event)
        self.order_executor: Optional["OrderExecutor"] = None
        self.session: Optional["ExchangeSession"] = None

        self._state = StrategyState.IDLE
        self._refresh_guard = asyncio.Lock()

    def _default_log(self, event: str, level: int = logging.INFO, **kwargs: Any) -> None:
        payload = {"event": event, "symbol": self.config.symbol, **kwargs}
        log.log(level, json.dumps(payload, default=str))

    @property
    def state(self) -> StrategyState:
        return self._state

    @property
    def id(self) -> str:
        return STRATEGY_ID

    # ========== Host Lifecycle ==========

    def subscribe(self, session: "ExchangeSession") -> None:
        """Ask the host for closed bars of the configured symbol and interval."""
        session.subscribe(KLINE_CHANNEL, self.config.symbol, self.config.interval)

    async def run(
        self,
        order_executor: "OrderExecutor",
        session: "ExchangeSession",
        stream: "OrderStream",
    ) -> RefreshResult:
        """
        Register event handlers and place the initial ladder.

        Orders are not persisted, so every run starts from an empty book.
        """
        self.order_executor = order_executor
        self.session = session
        self.active_orders = LocalActiveOrderBook(self.config.symbol, log_event=self._log_event)

        stream.on_order_update(self.handle_order_update)
        stream.on_kline_closed(self.handle_kline_closed)

        self._log_event(
            "strategy_started",
            interval=self.config.interval,
            grid_number=self.config.grid_number,
            percentage=self.config.percentage,
            base_quantity=self.config.base_quantity,
            ewma_window=self.config.ewma_window,
        )
        return await self.update_orders()

    async def shutdown(self) -> int:
        """
        Cancel every tracked order and forget them.

        Returns the number of orders a cancel was requested for.
        """
        orders = self.active_orders.orders()
        if orders and self.session is not None:
            await self._cancel(orders, reason="shutdown")
        self.active_orders.clear()
        self._update_gauges()
        self._log_event("strategy_stopped", cancel_requested=len(orders))
        return len(orders)

    # ========== Event Handlers ==========

    def handle_order_update(self, order: Order) -> None:
        """Reconcile one exchange order-status event into the local book."""
        if order.symbol != self.config.symbol:
            return

        status = order.status.value if isinstance(order.status, OrderStatus) else str(order.status)
        self._log_event(
            "order_update",
            order_id=order.order_id,
            side=getattr(order.side, "value", str(order.side)),
            status=status,
            price=order.price,
            quantity=order.quantity,
            executed_quantity=order.executed_quantity,
        )
        self.active_orders.reconcile(order)

        if self.metrics:
            self.metrics.order_events.labels(symbol=self.config.symbol, status=status).inc()
        self._update_gauges()

    async def handle_kline_closed(self, kline: KLine) -> Optional[RefreshResult]:
        if kline.symbol != self.config.symbol or kline.interval != self.config.interval:
            return None
        return await self.update_orders()

    # ========== Refresh Cycle ==========

    async def update_orders(self) -> RefreshResult:
        """
        Run one refresh cycle: cancel tracked bids, then top the ladder up.

        Never raises for exchange failures; the next trigger is the retry.
        """
        if self.order_executor is None or self.session is None:
            raise RuntimeError("strategy is not running: call run() first")

        if self._refresh_guard.locked():
            self._log_event("refresh_skip_in_progress", level=logging.DEBUG)
            return RefreshResult(aborted_reason="in_progress")

        async with self._refresh_guard:
            self._state = StrategyState.REFRESHING
            try:
                cancel_requested = 0
                bids = self.active_orders.bids.orders()
                if bids:
                    await self._cancel(bids, reason="refresh")
                    cancel_requested = len(bids)

                result = await self._update_bid_orders()
                result.cancel_requested = cancel_requested
            finally:
                self._state = StrategyState.IDLE

        if self.metrics:
            outcome = result.aborted_reason or "submitted"
            self.metrics.refresh_cycles.labels(symbol=self.config.symbol, outcome=outcome).inc()
        self._update_gauges()
        return result

    async def _cancel(self, orders: List[Order], reason: str) -> None:
        """Best-effort bulk cancel; failures are logged and swallowed."""
        if self.metrics:
            self.metrics.orders_cancel_requested.labels(symbol=self.config.symbol).inc(len(orders))
        try:
            await self.session.cancel_orders(*orders)
        except Exception as e:
            if self.metrics:
                self.metrics.cancel_errors.labels(symbol=self.config.symbol).inc()
            self._log_event(
                "cancel_orders_error",
                level=logging.ERROR,
                reason=reason,
                count=len(orders),
                err=str(e),
                error_type=type(e).__name__,
            )

    async def _update_bid_orders(self) -> RefreshResult:
        quote_currency = self.market.quote_currency
        try:
            balances = await self.session.balances()
        except Exception as e:
            self._log_event("balances_error", level=logging.ERROR, err=str(e), error_type=type(e).__name__)
            return RefreshResult(aborted_reason="balance_error")

        balance = balances.get(quote_currency)
        if balance is None or balance.available <= 0.0:
            self._log_event(
                "refresh_skip_balance",
                currency=quote_currency,
                available=balance.available if balance else None,
            )
            return RefreshResult(aborted_reason="no_balance")

        num_orders = self.config.grid_number - self.active_orders.num_of_bids()
        if num_orders <= 0:
            self._log_event("refresh_skip_grid_full", level=logging.DEBUG, grid_number=self.config.grid_number)
            return RefreshResult(aborted_reason="grid_full")

        reference_price = self.price_signal.last()
        if reference_price is None or not math.isfinite(reference_price) or reference_price <= 0:
            self._log_event("refresh_skip_no_price", reference_price=reference_price)
            return RefreshResult(aborted_reason="no_price")
        if self.metrics:
            self.metrics.reference_price.labels(symbol=self.config.symbol).set(reference_price)

        requests: List[SubmitOrder] = self.planner.plan(
            reference_price=reference_price,
            shrink_factor=self.config.percentage,
            rung_count=num_orders,
            quantity=self.config.base_quantity,
            symbol=self.config.symbol,
            market=self.market,
        )

        try:
            orders = await self.order_executor.submit_orders(*requests)
        except Exception as e:
            if self.metrics:
                self.metrics.submit_errors.labels(symbol=self.config.symbol).inc()
            self._log_event(
                "submit_orders_error",
                level=logging.ERROR,
                count=len(requests),
                err=str(e),
                error_type=type(e).__name__,
            )
            return RefreshResult(reference_price=reference_price, aborted_reason="submit_error")

        self.active_orders.add(*orders)
        if self.metrics:
            for order in orders:
                self.metrics.orders_submitted.labels(symbol=self.config.symbol, side=order.side.value).inc()

        self._log_event(
            "orders_submitted",
            reference_price=reference_price,
            count=len(orders),
            prices=[req.price for req in requests],
            active_bids=self.active_orders.num_of_bids(),
        )
        return RefreshResult(submitted=len(orders), reference_price=reference_price)

    def _update_gauges(self) -> None:
        if self.metrics:
            self.metrics.active_bids.labels(symbol=self.config.symbol).set(self.active_orders.num_of_bids())
