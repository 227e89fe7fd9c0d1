# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Administrative Controls.

A single administrator, fixed at construction, is the only caller
allowed to mutate ledger settings, mint or burn the gating credential,
distribute or withdraw the reward pool.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from gatedreward.constants import (
    DEFAULT_GATING_ID,
    DEFAULT_LEDGER_ADDRESS,
    MAX_HOLDERS,
    UINT256_MAX,
    ZERO_ADDRESS,
)
from gatedreward.credential.reward_token import RewardToken
from gatedreward.events.bus import (
    EVENT_BASE_FEE_UPDATED,
    EVENT_REWARD_TOKEN_CHANGED,
    Event,
    EventBus,
)
from gatedreward.exceptions import (
    ConfigurationError,
    InvalidFeeError,
    InvalidTokenAddressError,
    UnauthorizedError,
)
from gatedreward.journal import UndoLog

logger = logging.getLogger(__name__)


class LedgerConfig(BaseModel):
    """Configuration for a gated reward ledger."""

    administrator: str = Field(..., description="Only account allowed to mutate the ledger")
    base_fee: int = Field(default=0, ge=0, le=UINT256_MAX, description="Reward units per credential unit")
    gating_id: int = Field(default=DEFAULT_GATING_ID, ge=0, description="Credential id that gates rewards")
    max_holders: int = Field(default=MAX_HOLDERS, ge=1, description="Holder directory cap")
    ledger_address: str = Field(
        default=DEFAULT_LEDGER_ADDRESS,
        description="Account that holds the reward pool",
    )

    @field_validator("administrator", "ledger_address")
    @classmethod
    def validate_account(cls, v: str) -> str:
        if not v or not v.strip():
            raise ConfigurationError("account must not be empty")
        if v == ZERO_ADDRESS:
            raise ConfigurationError("account must not be the zero address")
        return v


def validate_reward_token(token: Optional[RewardToken]) -> RewardToken:
    """Return *token* if it references a usable, non-zero address."""
    address = getattr(token, "address", None) if token is not None else None
    if not address or address == ZERO_ADDRESS:
        raise InvalidTokenAddressError(address)
    return token


class AdminControls:
    """Administrator capability check plus the mutable ledger settings.

    Setting changes are recorded in an undo log so they roll back with
    the rest of the ledger when an operation fails.
    """

    def __init__(
        self,
        administrator: str,
        reward_token: RewardToken,
        base_fee: int,
        events: EventBus,
        source: str,
    ) -> None:
        self._administrator = administrator
        self._reward_token = validate_reward_token(reward_token)
        self._base_fee = self._validate_fee(base_fee)
        self._events = events
        self._source = source
        self._undo = UndoLog()

    @property
    def administrator(self) -> str:
        return self._administrator

    @property
    def reward_token(self) -> RewardToken:
        return self._reward_token

    @property
    def base_fee(self) -> int:
        return self._base_fee

    def require_admin(self, caller: str, action: str) -> None:
        """Raise :class:`UnauthorizedError` unless *caller* is the administrator."""
        if caller != self._administrator:
            logger.warning("Rejected %s by non-administrator %s", action, caller)
            raise UnauthorizedError(caller, action)

    def set_reward_token(self, caller: str, token: Optional[RewardToken]) -> None:
        self.require_admin(caller, "set the reward token")
        token = validate_reward_token(token)
        previous = self._reward_token
        self._reward_token = token
        self._undo.record(lambda: setattr(self, "_reward_token", previous))
        logger.info("Reward token changed: %s -> %s", previous.address, token.address)
        self._events.emit(
            Event(
                event_type=EVENT_REWARD_TOKEN_CHANGED,
                source=self._source,
                payload={"old": previous.address, "new": token.address},
            )
        )

    def set_base_fee(self, caller: str, fee: int) -> None:
        self.require_admin(caller, "set the base fee")
        fee = self._validate_fee(fee)
        previous = self._base_fee
        self._base_fee = fee
        self._undo.record(lambda: setattr(self, "_base_fee", previous))
        logger.info("Base fee updated: %d -> %d", previous, fee)
        self._events.emit(
            Event(
                event_type=EVENT_BASE_FEE_UPDATED,
                source=self._source,
                payload={"old": previous, "new": fee},
            )
        )

    # -- checkpointing -----------------------------------------------------

    def checkpoint(self) -> int:
        return self._undo.checkpoint()

    def restore(self, mark: int) -> None:
        self._undo.restore(mark)

    def release(self, mark: int) -> None:
        self._undo.release(mark)

    @staticmethod
    def _validate_fee(fee: object) -> int:
        if isinstance(fee, bool) or not isinstance(fee, int):
            raise InvalidFeeError(fee)
        if fee < 0 or fee > UINT256_MAX:
            raise InvalidFeeError(fee)
        return fee
