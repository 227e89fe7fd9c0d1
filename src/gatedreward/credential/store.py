# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Credential Store.

Multi-id fungible balance ledger (account x credential id -> quantity).
Every mint, burn and transfer notifies registered observers after the
balances have been updated. If an observer raises, the mutation is
undone and the error propagates to the caller, so a rejected hook
rejects the whole balance change.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

from gatedreward.arithmetic import checked_add, checked_sub, require_uint256
from gatedreward.constants import ZERO_ADDRESS
from gatedreward.exceptions import (
    InsufficientBalanceError,
    InvalidRecipientError,
    NotApprovedError,
)
from gatedreward.journal import UndoLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceChange:
    """Post-mutation notification.

    ``sender`` is ``ZERO_ADDRESS`` for mints and ``recipient`` is
    ``ZERO_ADDRESS`` for burns. ``ids`` and ``amounts`` correspond by index.
    """

    operator: str
    sender: str
    recipient: str
    ids: tuple[int, ...]
    amounts: tuple[int, ...]

    @property
    def is_mint(self) -> bool:
        return self.sender == ZERO_ADDRESS

    @property
    def is_burn(self) -> bool:
        return self.recipient == ZERO_ADDRESS


BalanceObserver = Callable[[BalanceChange], None]


@runtime_checkable
class CredentialStore(Protocol):
    """What the ledger needs from a credential store."""

    def balance_of(self, account: str, token_id: int) -> int: ...

    def mint(self, to: str, token_id: int, amount: int, operator: Optional[str] = None) -> None: ...

    def mint_batch(
        self, to: str, ids: Sequence[int], amounts: Sequence[int], operator: Optional[str] = None
    ) -> None: ...

    def burn(self, from_: str, token_id: int, amount: int, operator: Optional[str] = None) -> None: ...

    def transfer(self, operator: str, sender: str, recipient: str, token_id: int, amount: int) -> None: ...

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None: ...

    def subscribe(self, observer: BalanceObserver) -> None: ...

    def checkpoint(self) -> Any: ...

    def restore(self, mark: Any) -> None: ...

    def release(self, mark: Any) -> None: ...


class MultiTokenStore:
    """In-memory credential store.

    Usage:
        store = MultiTokenStore()
        store.subscribe(directory.on_balance_changed)
        store.mint("alice", 0, 5)
        store.transfer("alice", "alice", "bob", 0, 2)
    """

    def __init__(self) -> None:
        self._balances: dict[int, dict[str, int]] = defaultdict(dict)
        self._supply: dict[int, int] = {}
        self._operators: dict[str, set[str]] = defaultdict(set)
        self._observers: list[BalanceObserver] = []
        self._undo = UndoLog()

    # -- observers ---------------------------------------------------------

    def subscribe(self, observer: BalanceObserver) -> None:
        """Register *observer* to run after every balance change."""
        self._observers.append(observer)

    def unsubscribe(self, observer: BalanceObserver) -> None:
        self._observers = [o for o in self._observers if o != observer]

    # -- reads -------------------------------------------------------------

    def balance_of(self, account: str, token_id: int) -> int:
        return self._balances.get(token_id, {}).get(account, 0)

    def balance_of_batch(self, accounts: Sequence[str], ids: Sequence[int]) -> list[int]:
        if len(accounts) != len(ids):
            raise ValueError("accounts and ids length mismatch")
        return [self.balance_of(a, i) for a, i in zip(accounts, ids)]

    def total_supply(self, token_id: int) -> int:
        return self._supply.get(token_id, 0)

    def accounts(self, token_id: int) -> list[str]:
        """Accounts currently holding a positive balance of *token_id*."""
        return list(self._balances.get(token_id, {}))

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return operator in self._operators.get(owner, ())

    # -- checkpointing -----------------------------------------------------

    def checkpoint(self) -> int:
        return self._undo.checkpoint()

    def restore(self, mark: int) -> None:
        self._undo.restore(mark)

    def release(self, mark: int) -> None:
        self._undo.release(mark)

    # -- mutations ---------------------------------------------------------

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        if owner == operator:
            raise ValueError("cannot set approval status for self")
        with self._undo.atomic():
            was_approved = operator in self._operators[owner]
            if approved:
                self._operators[owner].add(operator)
            else:
                self._operators[owner].discard(operator)
            self._undo.record(lambda: self._set_approval(owner, operator, was_approved))

    def mint(self, to: str, token_id: int, amount: int, operator: Optional[str] = None) -> None:
        self.mint_batch(to, [token_id], [amount], operator=operator)

    def mint_batch(
        self,
        to: str,
        ids: Sequence[int],
        amounts: Sequence[int],
        operator: Optional[str] = None,
    ) -> None:
        if to == ZERO_ADDRESS:
            raise InvalidRecipientError("cannot mint to the zero address")
        self._check_lengths(ids, amounts)
        with self._undo.atomic():
            for token_id, amount in zip(ids, amounts):
                require_uint256(amount, "amount")
                self._credit(to, token_id, amount)
                self._set_supply(token_id, checked_add(self.total_supply(token_id), amount))
            self._notify(BalanceChange(operator or to, ZERO_ADDRESS, to, tuple(ids), tuple(amounts)))

    def burn(self, from_: str, token_id: int, amount: int, operator: Optional[str] = None) -> None:
        self.burn_batch(from_, [token_id], [amount], operator=operator)

    def burn_batch(
        self,
        from_: str,
        ids: Sequence[int],
        amounts: Sequence[int],
        operator: Optional[str] = None,
    ) -> None:
        if from_ == ZERO_ADDRESS:
            raise InvalidRecipientError("cannot burn from the zero address")
        self._check_lengths(ids, amounts)
        with self._undo.atomic():
            for token_id, amount in zip(ids, amounts):
                require_uint256(amount, "amount")
                self._debit(from_, token_id, amount)
                self._set_supply(token_id, checked_sub(self.total_supply(token_id), amount))
            self._notify(BalanceChange(operator or from_, from_, ZERO_ADDRESS, tuple(ids), tuple(amounts)))

    def transfer(self, operator: str, sender: str, recipient: str, token_id: int, amount: int) -> None:
        """Move *amount* of *token_id* from *sender* to *recipient*.

        *operator* must be *sender* or an approved operator of *sender*.
        """
        self.batch_transfer(operator, sender, recipient, [token_id], [amount])

    def batch_transfer(
        self,
        operator: str,
        sender: str,
        recipient: str,
        ids: Sequence[int],
        amounts: Sequence[int],
    ) -> None:
        if operator != sender and not self.is_approved_for_all(sender, operator):
            raise NotApprovedError(operator, sender)
        if recipient == ZERO_ADDRESS:
            raise InvalidRecipientError("cannot transfer to the zero address")
        if sender == ZERO_ADDRESS:
            raise InvalidRecipientError("cannot transfer from the zero address")
        self._check_lengths(ids, amounts)
        with self._undo.atomic():
            for token_id, amount in zip(ids, amounts):
                require_uint256(amount, "amount")
                self._debit(sender, token_id, amount)
                self._credit(recipient, token_id, amount)
            self._notify(BalanceChange(operator, sender, recipient, tuple(ids), tuple(amounts)))

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _check_lengths(ids: Sequence[int], amounts: Sequence[int]) -> None:
        if len(ids) != len(amounts):
            raise ValueError("ids and amounts length mismatch")

    def _notify(self, change: BalanceChange) -> None:
        logger.debug("Balance change: %s", change)
        for observer in list(self._observers):
            observer(change)

    def _credit(self, account: str, token_id: int, amount: int) -> None:
        self._set_balance(account, token_id, checked_add(self.balance_of(account, token_id), amount))

    def _debit(self, account: str, token_id: int, amount: int) -> None:
        balance = self.balance_of(account, token_id)
        if balance < amount:
            raise InsufficientBalanceError(account, token_id, balance, amount)
        self._set_balance(account, token_id, balance - amount)

    def _set_balance(self, account: str, token_id: int, value: int) -> None:
        balances = self._balances[token_id]
        previous = balances.get(account)
        if value:
            balances[account] = value
        else:
            balances.pop(account, None)
        self._undo.record(lambda: self._put(balances, account, previous))

    def _set_supply(self, token_id: int, value: int) -> None:
        previous = self._supply.get(token_id)
        self._supply[token_id] = value
        self._undo.record(lambda: self._put(self._supply, token_id, previous))

    def _set_approval(self, owner: str, operator: str, approved: bool) -> None:
        if approved:
            self._operators[owner].add(operator)
        else:
            self._operators[owner].discard(operator)

    @staticmethod
    def _put(mapping: dict, key: Any, value: Optional[int]) -> None:
        if value is None:
            mapping.pop(key, None)
        else:
            mapping[key] = value
