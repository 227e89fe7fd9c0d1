# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Holder Directory.

Tracks every account with a positive balance of the gating credential.
The directory is an array of holders plus a map from holder to its
array slot, so both membership changes are O(1):

- add: append and record the slot
- remove: move the last holder into the vacated slot, then pop

Order is not meaningful and is not preserved across removals.

The directory is only written by ``on_balance_changed``, which the
credential store calls after every balance mutation.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator

from gatedreward.constants import DEFAULT_GATING_ID, MAX_HOLDERS, ZERO_ADDRESS
from gatedreward.credential.store import BalanceChange, CredentialStore
from gatedreward.events.bus import (
    EVENT_HOLDER_ADDED,
    EVENT_HOLDER_REMOVED,
    Event,
    EventBus,
    InMemoryEventBus,
)
from gatedreward.exceptions import HolderCapacityExceededError
from gatedreward.journal import UndoLog

logger = logging.getLogger(__name__)


class HolderState(str, Enum):
    """Per-account membership state for the gating credential."""

    NON_HOLDER = "non_holder"
    HOLDER = "holder"


class HolderDirectory:
    """Set of current gating-credential holders with a hard size cap.

    Args:
        store: Credential store the directory reads live balances from.
        gating_id: Credential id whose holders are tracked.
        max_holders: Maximum number of distinct holders.
        events: Bus receiving ``holder.added`` / ``holder.removed``.
        source: Name placed on emitted events.
    """

    def __init__(
        self,
        store: CredentialStore,
        gating_id: int = DEFAULT_GATING_ID,
        max_holders: int = MAX_HOLDERS,
        events: EventBus | None = None,
        source: str = "holder-directory",
    ) -> None:
        if max_holders < 1:
            raise ValueError("max_holders must be at least 1")
        self._store = store
        self.gating_id = gating_id
        self.max_holders = max_holders
        self._events = events if events is not None else InMemoryEventBus()
        self._source = source
        self._holders: list[str] = []
        self._slots: dict[str, int] = {}
        self._undo = UndoLog()

    # -- reads -------------------------------------------------------------

    @property
    def count(self) -> int:
        return len(self._holders)

    def __len__(self) -> int:
        return len(self._holders)

    def __contains__(self, account: object) -> bool:
        return account in self._slots

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._holders))

    def holders(self) -> tuple[str, ...]:
        """Snapshot of the current holders."""
        return tuple(self._holders)

    def is_holder(self, account: str) -> bool:
        return account in self._slots

    def state(self, account: str) -> HolderState:
        return HolderState.HOLDER if account in self._slots else HolderState.NON_HOLDER

    @property
    def is_full(self) -> bool:
        return len(self._holders) >= self.max_holders

    # -- hook --------------------------------------------------------------

    def on_balance_changed(self, change: BalanceChange) -> None:
        """Bring membership of ``change.sender`` and ``change.recipient`` up to date.

        Ids other than the gating id are ignored. Raises
        :class:`HolderCapacityExceededError` when a new holder would not
        fit; the store then undoes the balance change that triggered it.
        """
        if self.gating_id not in change.ids:
            return
        sender, recipient = change.sender, change.recipient
        leaving = (
            sender != ZERO_ADDRESS
            and sender in self._slots
            and self._store.balance_of(sender, self.gating_id) == 0
        )
        joining = (
            recipient != ZERO_ADDRESS
            and recipient not in self._slots
            and self._store.balance_of(recipient, self.gating_id) > 0
        )
        # Capacity is checked before any write so a rejection leaves no trace.
        if joining and len(self._holders) >= self.max_holders:
            logger.warning(
                "Holder directory full (%d); rejecting %s", self.max_holders, recipient
            )
            raise HolderCapacityExceededError(recipient, self.max_holders)
        if joining:
            self._add(recipient)
        if leaving:
            self._remove(sender)

    # -- checkpointing -----------------------------------------------------

    def checkpoint(self) -> int:
        return self._undo.checkpoint()

    def restore(self, mark: int) -> None:
        self._undo.restore(mark)

    def release(self, mark: int) -> None:
        self._undo.release(mark)

    # -- internals ---------------------------------------------------------

    def _add(self, account: str) -> None:
        if len(self._holders) >= self.max_holders:
            raise HolderCapacityExceededError(account, self.max_holders)
        self._slots[account] = len(self._holders)
        self._holders.append(account)
        self._undo.record(lambda: self._undo_add(account))
        logger.info("Holder added: %s (%d holders)", account, len(self._holders))
        self._events.emit(
            Event(
                event_type=EVENT_HOLDER_ADDED,
                source=self._source,
                payload={"holder": account, "holder_count": len(self._holders)},
            )
        )

    def _remove(self, account: str) -> None:
        slot = self._slots.pop(account)
        last = self._holders.pop()
        if last != account:
            self._holders[slot] = last
            self._slots[last] = slot
        self._undo.record(lambda: self._undo_remove(account, slot, last))
        logger.info("Holder removed: %s (%d holders)", account, len(self._holders))
        self._events.emit(
            Event(
                event_type=EVENT_HOLDER_REMOVED,
                source=self._source,
                payload={"holder": account, "holder_count": len(self._holders)},
            )
        )

    def _undo_add(self, account: str) -> None:
        self._holders.pop()
        del self._slots[account]

    def _undo_remove(self, account: str, slot: int, last: str) -> None:
        if last != account:
            self._slots[last] = len(self._holders)
            self._holders.append(last)
            self._holders[slot] = account
        else:
            self._holders.append(account)
        self._slots[account] = slot
