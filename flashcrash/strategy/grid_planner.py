"""
GridPlanner - bid ladder computation for the flash-crash grid.

Builds a geometric ladder of limit buys below a reference price:

    rung 0 = reference * factor
    rung k = rung (k-1) * factor

With a factor of 0.3-0.5 every rung sits far below the market, and each
deeper rung is further away than the last, so a continuing crash keeps
hitting orders.

This is a pure calculation module with no side effects. Price and size
rounding to exchange precision is left to the submission boundary.
"""

from __future__ import annotations

from typing import List, Optional

from flashcrash.core.types import Market, OrderType, Side, SubmitOrder, TimeInForce


class GridPlanner:
    """
    Stateless ladder planner.

    Thread-safety: holds no state; safe to share.
    """

    @staticmethod
    def ladder_prices(reference_price: float, shrink_factor: float, rung_count: int) -> List[float]:
        """
        Compute rung prices, highest first.

        Args:
            reference_price: Price the first rung is scaled from
            shrink_factor: Ratio between consecutive rungs (0 < factor < 1)
            rung_count: Number of rungs (>= 0)

        Returns:
            Strictly decreasing list of prices (empty for zero rungs)
        """
        if rung_count < 0:
            raise ValueError(f"rung_count must be >= 0, got {rung_count}")

        prices: List[float] = []
        px = reference_price * shrink_factor
        for _ in range(rung_count):
            prices.append(px)
            px *= shrink_factor
        return prices

    def plan(
        self,
        reference_price: float,
        shrink_factor: float,
        rung_count: int,
        quantity: float,
        symbol: str,
        market: Optional[Market] = None,
    ) -> List[SubmitOrder]:
        """
        Build one GTC limit buy of ``quantity`` per rung.

        Args:
            reference_price: Price the ladder hangs from
            shrink_factor: Ratio between consecutive rungs
            rung_count: Number of orders to plan
            quantity: Fixed size per order
            symbol: Trading symbol
            market: Market description forwarded to the submission boundary

        Returns:
            Order requests in rung order (empty for zero rungs)
        """
        return [
            SubmitOrder(
                symbol=symbol,
                side=Side.BUY,
                order_type=OrderType.LIMIT,
                quantity=quantity,
                price=px,
                time_in_force=TimeInForce.GTC,
                market=market,
            )
            for px in self.ladder_prices(reference_price, shrink_factor, rung_count)
        ]
