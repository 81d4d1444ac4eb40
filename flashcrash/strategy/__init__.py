"""
Strategy package - flash-crash bid grid.

Ladder planning, the refresh/reconcile controller and the strategy registry.
"""

from flashcrash.strategy.flashcrash_strategy import (
    STRATEGY_ID,
    FlashCrashConfig,
    FlashCrashStrategy,
    RefreshResult,
    StrategyState,
)
from flashcrash.strategy.grid_planner import GridPlanner
from flashcrash.strategy.strategy_factory import StrategyFactory

__all__ = [
    "STRATEGY_ID",
    "FlashCrashConfig",
    "FlashCrashStrategy",
    "RefreshResult",
    "StrategyState",
    "GridPlanner",
    "StrategyFactory",
]
