"""
Monitoring package.

Prometheus metrics for the strategy.
"""

from flashcrash.monitoring.metrics import StrategyMetrics, start_metrics_server

__all__ = [
    "StrategyMetrics",
    "start_metrics_server",
]
