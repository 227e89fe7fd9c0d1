"""Ledger notifications."""

from .bus import (
    ALL_EVENT_TYPES,
    EVENT_BASE_FEE_UPDATED,
    EVENT_DISTRIBUTION_COMPLETED,
    EVENT_HOLDER_ADDED,
    EVENT_HOLDER_REMOVED,
    EVENT_REWARD_POOL_WITHDRAWN,
    EVENT_REWARD_TOKEN_CHANGED,
    EVENT_TOKENS_DISTRIBUTED,
    Event,
    EventBus,
    EventHandler,
    InMemoryEventBus,
    TransactionalEventBus,
)

__all__ = [
    "Event",
    "EventBus",
    "EventHandler",
    "InMemoryEventBus",
    "TransactionalEventBus",
    "EVENT_HOLDER_ADDED",
    "EVENT_HOLDER_REMOVED",
    "EVENT_TOKENS_DISTRIBUTED",
    "EVENT_DISTRIBUTION_COMPLETED",
    "EVENT_REWARD_TOKEN_CHANGED",
    "EVENT_BASE_FEE_UPDATED",
    "EVENT_REWARD_POOL_WITHDRAWN",
    "ALL_EVENT_TYPES",
]
