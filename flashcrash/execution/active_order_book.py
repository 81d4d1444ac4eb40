"""
ActiveOrderBook: local mirror of the strategy's outstanding maker orders.

Handles:
- Per-side order registry keyed by exchange order id
- Reconciliation against exchange order-status events
- Snapshot reads safe to hand to a bulk-cancel call

Order events and refresh cycles arrive from different tasks (and possibly
threads), so every read and write goes through one lock per side. The raw
mapping never leaves this module.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Callable, Dict, List, Optional

from flashcrash.core.types import Order, OrderStatus, Side

log = logging.getLogger("flashcrash")


class ActiveOrderSet:
    """
    Thread-safe registry of live orders for one side.

    Invariant: after reconcile() sees a terminal status for an id, that id
    is no longer tracked.
    """

    def __init__(self, side: Side, log_event: Optional[Callable[..., None]] = None) -> None:
        self.side = side
        self._orders: Dict[int, Order] = {}
        self._lock = threading.Lock()
        self._log_event = log_event or self._default_log

    def _default_log(self, event: str, **kwargs) -> None:
        log.info(json.dumps({"event": event, "side": self.side.value, **kwargs}, default=str))

    def add(self, *orders: Order) -> None:
        """Insert or overwrite by order id; the latest update wins."""
        with self._lock:
            for order in orders:
                self._orders[order.order_id] = order

    def delete(self, order: Order) -> bool:
        """Remove by order id. Returns False if the id was not tracked."""
        with self._lock:
            return self._orders.pop(order.order_id, None) is not None

    def exists(self, order: Order) -> bool:
        with self._lock:
            return order.order_id in self._orders

    def get(self, order_id: int) -> Optional[Order]:
        with self._lock:
            return self._orders.get(order_id)

    def count(self) -> int:
        with self._lock:
            return len(self._orders)

    def __len__(self) -> int:
        return self.count()

    def orders(self) -> List[Order]:
        """Snapshot of tracked orders, in no particular order."""
        with self._lock:
            return list(self._orders.values())

    def clear(self) -> None:
        with self._lock:
            self._orders.clear()

    def reconcile(self, order: Order) -> None:
        """
        Apply an exchange order-status event.

        FILLED, CANCELED and REJECTED drop the id. PARTIALLY_FILLED and NEW
        store the latest copy. Any status we don't recognise is kept as
        active so a live order is never silently forgotten.
        """
        status = order.status
        if not isinstance(status, OrderStatus):
            self._log_event("order_status_unknown", status=status, order_id=order.order_id)
            self.add(order)
            return

        if status.is_terminal:
            if status != OrderStatus.FILLED:
                self._log_event(
                    "order_removed",
                    status=status.value,
                    order_id=order.order_id,
                )
            self.delete(order)
        else:
            self.add(order)


class LocalActiveOrderBook:
    """
    Bid and ask ActiveOrderSets for one symbol.

    Routes by order side so callers can hand it any order event. The
    flash-crash strategy only ever places bids, but cancels and shutdown
    go through here so asks would be handled the same way.
    """

    def __init__(self, symbol: str, log_event: Optional[Callable[..., None]] = None) -> None:
        self.symbol = symbol
        self.bids = ActiveOrderSet(Side.BUY, log_event=log_event)
        self.asks = ActiveOrderSet(Side.SELL, log_event=log_event)

    def side_set(self, side: Side) -> ActiveOrderSet:
        return self.bids if side == Side.BUY else self.asks

    def add(self, *orders: Order) -> None:
        for order in orders:
            self.side_set(order.side).add(order)

    def delete(self, order: Order) -> bool:
        return self.side_set(order.side).delete(order)

    def exists(self, order: Order) -> bool:
        return self.side_set(order.side).exists(order)

    def reconcile(self, order: Order) -> None:
        self.side_set(order.side).reconcile(order)

    def num_of_bids(self) -> int:
        return self.bids.count()

    def num_of_asks(self) -> int:
        return self.asks.count()

    def orders(self) -> List[Order]:
        return self.bids.orders() + self.asks.orders()

    def clear(self) -> None:
        self.bids.clear()
        self.asks.clear()
