"""
Domain types shared by the strategy and its host collaborators.

Orders, order requests, balances, closed bars and the market description
all live here so the strategy, the paper session and the tests agree on
one shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def parse(cls, raw: Union[str, "Side"]) -> "Side":
        """Map a raw exchange side (any case) to a Side; unknown values raise ValueError."""
        if isinstance(raw, cls):
            return raw
        return cls(str(raw).upper())


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"


class TimeInForce(str, Enum):
    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"


class OrderStatus(str, Enum):
    """
    Exchange order status.

    FILLED, CANCELED and REJECTED are terminal: the exchange sends no
    further updates for the order id once one of them is reported.
    """
    NEW = "NEW"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELED = "CANCELED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @classmethod
    def parse(cls, raw: Union[str, "OrderStatus"]) -> Union["OrderStatus", str]:
        """Map a raw exchange string to a status; unknown values pass through as-is."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).upper())
        except ValueError:
            return raw


TERMINAL_STATUSES = frozenset({OrderStatus.FILLED, OrderStatus.CANCELED, OrderStatus.REJECTED})


@dataclass(frozen=True)
class Market:
    """Static description of a tradable instrument, supplied by the host."""
    symbol: str
    base_currency: str
    quote_currency: str
    price_precision: int = 2
    volume_precision: int = 8
    min_quantity: float = 0.0
    min_notional: float = 0.0
    tick_size: float = 0.01
    step_size: float = 0.0


@dataclass
class SubmitOrder:
    """Order request handed to the order-submission boundary."""
    symbol: str
    side: Side
    order_type: OrderType
    quantity: float
    price: float
    time_in_force: TimeInForce = TimeInForce.GTC
    market: Optional[Market] = None


@dataclass
class Order:
    """An order as reported by the exchange. Identity is ``order_id``."""
    order_id: int
    symbol: str
    side: Side
    order_type: OrderType
    price: float
    quantity: float
    time_in_force: TimeInForce = TimeInForce.GTC
    status: Union[OrderStatus, str] = OrderStatus.NEW
    executed_quantity: float = 0.0
    client_order_id: Optional[str] = None

    def __post_init__(self) -> None:
        self.side = Side.parse(self.side)
        self.status = OrderStatus.parse(self.status)

    @classmethod
    def from_submit(
        cls,
        req: SubmitOrder,
        order_id: int,
        status: Union[OrderStatus, str] = OrderStatus.NEW,
        client_order_id: Optional[str] = None,
    ) -> "Order":
        return cls(
            order_id=order_id,
            symbol=req.symbol,
            side=req.side,
            order_type=req.order_type,
            price=req.price,
            quantity=req.quantity,
            time_in_force=req.time_in_force,
            status=status,
            client_order_id=client_order_id,
        )


@dataclass
class Balance:
    currency: str
    available: float = 0.0
    locked: float = 0.0

    @property
    def total(self) -> float:
        return self.available + self.locked


BalanceMap = Dict[str, Balance]


@dataclass(frozen=True)
class Interval:
    """Kline interval such as ``1m`` or ``4h``."""
    name: str
    seconds: int

    def __str__(self) -> str:
        return self.name


_INTERVAL_SECONDS: Dict[str, int] = {
    "1m": 60,
    "3m": 180,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "2h": 7200,
    "4h": 14400,
    "6h": 21600,
    "12h": 43200,
    "1d": 86400,
}


def parse_interval(raw: str) -> Interval:
    name = raw.strip()
    seconds = _INTERVAL_SECONDS.get(name)
    if seconds is None:
        raise ValueError(f"unsupported interval: {raw!r} (expected one of {', '.join(_INTERVAL_SECONDS)})")
    return Interval(name, seconds)


@dataclass
class KLine:
    """A closed bar. The strategy only uses it as a trigger."""
    symbol: str
    interval: str
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0
    volume: float = 0.0
    start_time_ms: int = 0
    end_time_ms: int = 0
    closed: bool = True
