"""
Execution layer components.

- ActiveOrderSet / LocalActiveOrderBook: lock-guarded mirror of live orders
- PaperExchange: in-memory exchange session for dry runs and tests
"""

from flashcrash.execution.active_order_book import ActiveOrderSet, LocalActiveOrderBook
from flashcrash.execution.paper_exchange import FixedPriceSignal, PaperExchange, PaperExchangeError

__all__ = [
    "ActiveOrderSet",
    "LocalActiveOrderBook",
    "FixedPriceSignal",
    "PaperExchange",
    "PaperExchangeError",
]
