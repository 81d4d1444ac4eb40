"""
Tests for GridPlanner ladder computation.
"""

import pytest

from flashcrash.core.types import OrderType, Side, TimeInForce
from flashcrash.strategy.grid_planner import GridPlanner


@pytest.fixture
def planner():
    return GridPlanner()


def test_half_factor_ladder(planner):
    reqs = planner.plan(reference_price=100, shrink_factor=0.5, rung_count=3, quantity=1, symbol="BTCUSDT")
    assert [r.price for r in reqs] == [50, 25, 12.5]
    for r in reqs:
        assert r.side == Side.BUY
        assert r.order_type == OrderType.LIMIT
        assert r.time_in_force == TimeInForce.GTC
        assert r.quantity == 1
        assert r.symbol == "BTCUSDT"


def test_zero_rungs_is_empty(planner):
    assert planner.plan(reference_price=100, shrink_factor=0.4, rung_count=0, quantity=1, symbol="BTCUSDT") == []


def test_negative_rungs_rejected(planner):
    with pytest.raises(ValueError):
        planner.plan(reference_price=100, shrink_factor=0.4, rung_count=-1, quantity=1, symbol="BTCUSDT")


def test_ladder_is_strictly_decreasing(planner):
    prices = planner.ladder_prices(30000.0, 0.3, 6)
    assert len(prices) == 6
    assert all(a > b for a, b in zip(prices, prices[1:]))
    assert prices[0] == pytest.approx(9000.0)


def test_ladder_is_geometric_not_arithmetic(planner):
    prices = planner.ladder_prices(1000.0, 0.4, 4)
    ratios = [b / a for a, b in zip(prices, prices[1:])]
    assert ratios == pytest.approx([0.4, 0.4, 0.4])
    gaps = [a - b for a, b in zip(prices, prices[1:])]
    assert gaps[0] > gaps[1] > gaps[2]


def test_no_precision_clamping(planner):
    reqs = planner.plan(reference_price=123.456789, shrink_factor=0.3, rung_count=2, quantity=0.0012345, symbol="X")
    assert reqs[0].price == pytest.approx(123.456789 * 0.3)
    assert reqs[1].price == pytest.approx(123.456789 * 0.3 * 0.3)
    assert reqs[0].quantity == 0.0012345


def test_market_forwarded(planner, market):
    reqs = planner.plan(100, 0.5, 2, 1, "BTCUSDT", market=market)
    assert all(r.market is market for r in reqs)
