"""
Observability components for the gated reward ledger.

Provides Prometheus metrics fed by committed ledger notifications.
"""

from .metrics import LedgerMetrics, start_metrics_server

__all__ = [
    "LedgerMetrics",
    "start_metrics_server",
]
