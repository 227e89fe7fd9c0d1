# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Reward Token.

Single-id fungible asset the ledger pays rewards from. ``transfer``
reports failure by returning ``False`` rather than raising, so the
ledger decides how a failed payout is handled.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, runtime_checkable

from gatedreward.arithmetic import checked_add, require_uint256
from gatedreward.constants import ZERO_ADDRESS
from gatedreward.exceptions import InvalidRecipientError
from gatedreward.journal import UndoLog

logger = logging.getLogger(__name__)


@runtime_checkable
class RewardToken(Protocol):
    """What the ledger needs from the reward-pool asset."""

    @property
    def address(self) -> str: ...

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def checkpoint(self) -> Any: ...

    def restore(self, mark: Any) -> None: ...

    def release(self, mark: Any) -> None: ...


class InMemoryRewardToken:
    """In-memory fungible token used to fund and pay out reward pools."""

    def __init__(self, address: str, symbol: str = "RWD") -> None:
        if not address or address == ZERO_ADDRESS:
            raise InvalidRecipientError("reward token needs a non-zero address")
        self._address = address
        self.symbol = symbol
        self._balances: dict[str, int] = {}
        self._total_supply = 0
        self._undo = UndoLog()

    @property
    def address(self) -> str:
        return self._address

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def mint(self, to: str, amount: int) -> None:
        """Create *amount* new units for *to* (used to fund a reward pool)."""
        if to == ZERO_ADDRESS:
            raise InvalidRecipientError("cannot mint to the zero address")
        require_uint256(amount, "amount")
        with self._undo.atomic():
            self._set_balance(to, checked_add(self.balance_of(to), amount))
            self._set_supply(checked_add(self._total_supply, amount))

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move *amount* from *sender* to *recipient*; ``False`` if not possible."""
        require_uint256(amount, "amount")
        if recipient == ZERO_ADDRESS:
            logger.debug("Rejected %s transfer to the zero address", self.symbol)
            return False
        balance = self.balance_of(sender)
        if balance < amount:
            logger.debug(
                "Rejected %s transfer of %d from %s: balance %d",
                self.symbol, amount, sender, balance,
            )
            return False
        with self._undo.atomic():
            self._set_balance(sender, balance - amount)
            self._set_balance(recipient, checked_add(self.balance_of(recipient), amount))
        return True

    # -- checkpointing -----------------------------------------------------

    def checkpoint(self) -> int:
        return self._undo.checkpoint()

    def restore(self, mark: int) -> None:
        self._undo.restore(mark)

    def release(self, mark: int) -> None:
        self._undo.release(mark)

    # -- internals ---------------------------------------------------------

    def _set_balance(self, account: str, value: int) -> None:
        previous: Optional[int] = self._balances.get(account)
        if value:
            self._balances[account] = value
        else:
            self._balances.pop(account, None)
        self._undo.record(lambda: self._put(account, previous))

    def _put(self, account: str, value: Optional[int]) -> None:
        if value is None:
            self._balances.pop(account, None)
        else:
            self._balances[account] = value

    def _set_supply(self, value: int) -> None:
        previous = self._total_supply
        self._total_supply = value
        self._undo.record(lambda: setattr(self, "_total_supply", previous))
