"""
Pytest configuration and fixtures.
Adds the repo root to sys.path so tests can import flashcrash without installing it.
"""

import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from flashcrash.core.types import Market, Order, OrderStatus, OrderType, Side, TimeInForce  # noqa: E402


@pytest.fixture
def market():
    return Market(symbol="BTCUSDT", base_currency="BTC", quote_currency="USDT")


@pytest.fixture
def make_order():
    """Factory for bid orders on BTCUSDT."""
    def _make(order_id, status=OrderStatus.NEW, price=100.0, quantity=1.0, symbol="BTCUSDT", side=Side.BUY, **kwargs):
        return Order(
            order_id=order_id,
            symbol=symbol,
            side=side,
            order_type=OrderType.LIMIT,
            price=price,
            quantity=quantity,
            time_in_force=TimeInForce.GTC,
            status=status,
            **kwargs,
        )
    return _make
