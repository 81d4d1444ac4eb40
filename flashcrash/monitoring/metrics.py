"""
Prometheus metrics for the flash-crash strategy.

Organized into: refresh cycle, orders, order events, errors.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server


class StrategyMetrics:
    """Metrics for refresh cycles and the active bid ladder."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        reg = registry or CollectorRegistry()

        # === Refresh Cycle ===
        self.refresh_cycles = Counter(
            'refresh_cycles_total',
            'Refresh cycles by outcome',
            labelnames=['symbol', 'outcome'],
            registry=reg
        )
        self.reference_price = Gauge(
            'reference_price',
            'Reference price used for the last ladder',
            labelnames=['symbol'],
            registry=reg
        )

        # === Orders ===
        self.orders_submitted = Counter(
            'orders_submitted_total',
            'Ladder orders confirmed by the exchange',
            labelnames=['symbol', 'side'],
            registry=reg
        )
        self.orders_cancel_requested = Counter(
            'orders_cancel_requested_total',
            'Orders included in bulk cancel requests',
            labelnames=['symbol'],
            registry=reg
        )
        self.active_bids = Gauge(
            'active_bids',
            'Bids tracked in the local active order book',
            labelnames=['symbol'],
            registry=reg
        )

        # === Order Events ===
        self.order_events = Counter(
            'order_events_total',
            'Order status events reconciled',
            labelnames=['symbol', 'status'],
            registry=reg
        )

        # === Errors ===
        self.cancel_errors = Counter(
            'cancel_errors_total',
            'Bulk cancel failures',
            labelnames=['symbol'],
            registry=reg
        )
        self.submit_errors = Counter(
            'submit_errors_total',
            'Batch submit failures',
            labelnames=['symbol'],
            registry=reg
        )

        self.registry = reg

    def get_registry(self) -> CollectorRegistry:
        """Return the Prometheus registry for export."""
        return self.registry


def start_metrics_server(metrics: StrategyMetrics, port: int) -> None:
    """Expose ``/metrics`` on ``port`` from a background thread."""
    start_http_server(port, registry=metrics.get_registry())
