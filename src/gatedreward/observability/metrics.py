# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Prometheus Metrics.

Turns committed ledger notifications into Prometheus metrics. Because
the ledger only delivers notifications for operations that committed,
rolled-back operations never show up here.
"""

from __future__ import annotations

import logging
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram
from prometheus_client import start_http_server

from gatedreward.events.bus import (
    EVENT_BASE_FEE_UPDATED,
    EVENT_DISTRIBUTION_COMPLETED,
    EVENT_HOLDER_ADDED,
    EVENT_HOLDER_REMOVED,
    EVENT_REWARD_POOL_WITHDRAWN,
    EVENT_REWARD_TOKEN_CHANGED,
    EVENT_TOKENS_DISTRIBUTED,
    Event,
    EventBus,
)

logger = logging.getLogger(__name__)


class LedgerMetrics:
    """Prometheus metrics for a gated reward ledger.

    Metrics exposed:

    * ``holders``: gauge of current gating-credential holders
    * ``holder_changes_total``: counter of directory changes by ``change``
    * ``distributions_total``: counter of completed distributions
    * ``distribution_recipients``: histogram of recipients per distribution
    * ``rewards_paid_total``: counter of reward units paid
    * ``credential_burned_total``: counter of credential units burned
    * ``withdrawals_total``: counter of reward units withdrawn
    * ``config_changes_total``: counter of settings changes by ``setting``

    Args:
        prefix: Metric name prefix. Defaults to ``gatedreward``.
        registry: Collector registry. Defaults to the global registry.
    """

    def __init__(
        self,
        prefix: str = "gatedreward",
        registry: Optional[CollectorRegistry] = None,
    ) -> None:
        self.registry = registry if registry is not None else REGISTRY
        self.holders = Gauge(
            f"{prefix}_holders",
            "Current number of gating-credential holders",
            registry=self.registry,
        )
        self.holder_changes_total = Counter(
            f"{prefix}_holder_changes_total",
            "Holder directory changes",
            ["change"],
            registry=self.registry,
        )
        self.distributions_total = Counter(
            f"{prefix}_distributions_total",
            "Completed distributions",
            registry=self.registry,
        )
        self.distribution_recipients = Histogram(
            f"{prefix}_distribution_recipients",
            "Recipients per distribution",
            buckets=(1, 5, 10, 50, 100, 500, 1000, 5000, 10000),
            registry=self.registry,
        )
        self.rewards_paid_total = Counter(
            f"{prefix}_rewards_paid_total",
            "Reward units paid to holders",
            registry=self.registry,
        )
        self.credential_burned_total = Counter(
            f"{prefix}_credential_burned_total",
            "Gating credential units burned by distributions",
            registry=self.registry,
        )
        self.withdrawals_total = Counter(
            f"{prefix}_withdrawals_total",
            "Reward units withdrawn by the administrator",
            registry=self.registry,
        )
        self.config_changes_total = Counter(
            f"{prefix}_config_changes_total",
            "Ledger settings changes",
            ["setting"],
            registry=self.registry,
        )

    def attach(self, bus: EventBus, holder_count: Optional[int] = None) -> None:
        """Subscribe to every notification on *bus*.

        Pass the ledger's current ``get_holder_count()`` as *holder_count*
        when attaching to a ledger that already has holders.
        """
        if holder_count is not None:
            self.holders.set(holder_count)
        bus.subscribe("*", self.handle)

    def handle(self, event: Event) -> None:
        """Update metrics for a single notification."""
        payload = event.payload
        if event.event_type == EVENT_HOLDER_ADDED:
            self.holders.set(payload["holder_count"])
            self.holder_changes_total.labels(change="added").inc()
        elif event.event_type == EVENT_HOLDER_REMOVED:
            self.holders.set(payload["holder_count"])
            self.holder_changes_total.labels(change="removed").inc()
        elif event.event_type == EVENT_TOKENS_DISTRIBUTED:
            self.rewards_paid_total.inc(payload.get("amount", 0))
            self.credential_burned_total.inc(payload.get("credential_burned", 0))
        elif event.event_type == EVENT_DISTRIBUTION_COMPLETED:
            self.distributions_total.inc()
            self.distribution_recipients.observe(len(payload.get("recipients", [])))
        elif event.event_type == EVENT_REWARD_POOL_WITHDRAWN:
            self.withdrawals_total.inc(payload.get("amount", 0))
        elif event.event_type == EVENT_BASE_FEE_UPDATED:
            self.config_changes_total.labels(setting="base_fee").inc()
        elif event.event_type == EVENT_REWARD_TOKEN_CHANGED:
            self.config_changes_total.labels(setting="reward_token").inc()


def start_metrics_server(port: int = 9090, registry: Optional[CollectorRegistry] = None) -> None:
    """Expose metrics over HTTP for Prometheus scraping."""
    start_http_server(port, registry=registry if registry is not None else REGISTRY)
    logger.info("Metrics server listening on port %d", port)
