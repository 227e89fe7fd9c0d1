# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
All-or-nothing execution for ledger operations.

Every stateful component records an undo entry for each write while a
checkpoint is open. ``AtomicJournal`` opens a checkpoint on every
participant, buffers notifications, and on failure replays the undo
entries so the ledger ends up exactly as it was before the call.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Protocol, Sequence, runtime_checkable

from gatedreward.events.bus import TransactionalEventBus

logger = logging.getLogger(__name__)


@runtime_checkable
class Checkpointable(Protocol):
    """A component whose writes can be rolled back to a checkpoint."""

    def checkpoint(self) -> Any: ...

    def restore(self, mark: Any) -> None: ...

    def release(self, mark: Any) -> None: ...


class UndoLog:
    """Stack of undo callbacks recorded while at least one checkpoint is open.

    Checkpoints nest. ``restore`` undoes writes back to its mark;
    ``release`` keeps them. The log is cleared once the outermost
    checkpoint closes either way.
    """

    def __init__(self) -> None:
        self._entries: list[Callable[[], None]] = []
        self._open = 0

    @property
    def active(self) -> bool:
        return self._open > 0

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, undo: Callable[[], None]) -> None:
        if self._open:
            self._entries.append(undo)

    def checkpoint(self) -> int:
        self._open += 1
        return len(self._entries)

    def restore(self, mark: int) -> None:
        if not self._open:
            raise RuntimeError("restore() called without an open checkpoint")
        while len(self._entries) > mark:
            self._entries.pop()()
        self._close()

    def release(self, mark: int) -> None:
        if not self._open:
            raise RuntimeError("release() called without an open checkpoint")
        self._close()

    def _close(self) -> None:
        self._open -= 1
        if self._open == 0:
            self._entries.clear()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Undo this log's writes if the block raises."""
        mark = self.checkpoint()
        try:
            yield
        except BaseException:
            self.restore(mark)
            raise
        self.release(mark)


class AtomicJournal:
    """Serializes operations and makes each one all-or-nothing.

    Args:
        participants: Returns the components whose state must roll back
            together. Resolved at the start of every transaction, so a
            swapped collaborator takes part from the next operation on.
        events: Bus whose notifications are held until commit.
    """

    def __init__(
        self,
        participants: Callable[[], Sequence[Checkpointable]],
        events: TransactionalEventBus,
    ) -> None:
        self._participants = participants
        self._events = events
        self._lock = threading.RLock()

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the lock for a read-only operation; nothing is checkpointed."""
        with self._lock:
            yield

    @contextmanager
    def transaction(self, operation: str) -> Iterator[None]:
        with self._lock:
            participants = list(self._participants())
            marks = [p.checkpoint() for p in participants]
            event_mark = self._events.begin()
            try:
                yield
            except BaseException as exc:
                for participant, mark in reversed(list(zip(participants, marks))):
                    participant.restore(mark)
                self._events.rollback(event_mark)
                logger.warning("Rolled back %s: %s", operation, exc)
                raise
            for participant, mark in zip(participants, marks):
                participant.release(mark)
            self._events.commit()
