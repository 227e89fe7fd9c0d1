# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Event bus for ledger notifications.

Provides an in-memory bus with glob-style pattern matching, plus a
transactional wrapper that holds back events until the operation that
produced them commits.
"""

from __future__ import annotations

import fnmatch
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)


# Standard event types
EVENT_HOLDER_ADDED = "holder.added"
EVENT_HOLDER_REMOVED = "holder.removed"
EVENT_TOKENS_DISTRIBUTED = "tokens.distributed"
EVENT_DISTRIBUTION_COMPLETED = "distribution.completed"
EVENT_REWARD_TOKEN_CHANGED = "reward_token.changed"
EVENT_BASE_FEE_UPDATED = "base_fee.updated"
EVENT_REWARD_POOL_WITHDRAWN = "reward_pool.withdrawn"

ALL_EVENT_TYPES = [
    EVENT_HOLDER_ADDED,
    EVENT_HOLDER_REMOVED,
    EVENT_TOKENS_DISTRIBUTED,
    EVENT_DISTRIBUTION_COMPLETED,
    EVENT_REWARD_TOKEN_CHANGED,
    EVENT_BASE_FEE_UPDATED,
    EVENT_REWARD_POOL_WITHDRAWN,
]


@dataclass
class Event:
    """A notification emitted by the ledger."""

    event_type: str
    source: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: f"evt-{time.monotonic_ns()}")


EventHandler = Callable[[Event], Any]


class EventBus(ABC):
    """Abstract base class for event bus implementations."""

    @abstractmethod
    def emit(self, event: Event) -> None:
        """Emit an event to all matching subscribers."""

    @abstractmethod
    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        """Subscribe a handler to events matching a glob-style pattern.

        Args:
            pattern: Glob-style pattern (e.g., ``holder.*``, ``*``).
            handler: Callable invoked with the matching Event.
        """

    @abstractmethod
    def unsubscribe(self, handler: EventHandler) -> None:
        """Remove a handler from all subscriptions."""


class InMemoryEventBus(EventBus):
    """Synchronous in-process event bus with glob-style pattern matching."""

    def __init__(self) -> None:
        self._subscriptions: list[tuple[str, EventHandler]] = []

    def emit(self, event: Event) -> None:
        """Deliver *event* to every matching handler.

        A failing handler is logged and skipped; it does not stop delivery
        to the remaining handlers or propagate to the emitter.
        """
        for pattern, handler in list(self._subscriptions):
            if fnmatch.fnmatch(event.event_type, pattern):
                try:
                    handler(event)
                except Exception:
                    logger.exception("Handler %r failed on %s", handler, event.event_type)

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._subscriptions.append((pattern, handler))

    def unsubscribe(self, handler: EventHandler) -> None:
        self._subscriptions = [
            (p, h) for p, h in self._subscriptions if h != handler
        ]


class TransactionalEventBus(EventBus):
    """Buffers events emitted inside a transaction.

    Outside a transaction events pass straight through to the wrapped
    bus. Between :meth:`begin` and :meth:`commit` they are queued and
    delivered in order on commit; :meth:`rollback` drops them.
    Transactions nest: only the outermost commit flushes.
    """

    def __init__(self, inner: EventBus | None = None) -> None:
        self._inner = inner if inner is not None else InMemoryEventBus()
        self._pending: list[Event] = []
        self._depth = 0

    @property
    def inner(self) -> EventBus:
        return self._inner

    @property
    def pending(self) -> list[Event]:
        """Events buffered by the open transaction."""
        return list(self._pending)

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def emit(self, event: Event) -> None:
        if self._depth:
            self._pending.append(event)
        else:
            self._inner.emit(event)

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._inner.subscribe(pattern, handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        self._inner.unsubscribe(handler)

    def begin(self) -> int:
        """Open a (possibly nested) transaction and return its buffer mark."""
        self._depth += 1
        return len(self._pending)

    def commit(self) -> None:
        if self._depth == 0:
            raise RuntimeError("commit() called outside a transaction")
        self._depth -= 1
        if self._depth == 0:
            events, self._pending = self._pending, []
            for event in events:
                # Already committed: a failing subscriber is logged, never raised.
                try:
                    self._inner.emit(event)
                except Exception:
                    logger.exception("Delivery of committed %s failed", event.event_type)

    def rollback(self, mark: int = 0) -> None:
        """Drop events buffered since *mark* and close the transaction."""
        if self._depth == 0:
            raise RuntimeError("rollback() called outside a transaction")
        self._depth -= 1
        del self._pending[mark:]
        if self._depth == 0:
            self._pending = []
