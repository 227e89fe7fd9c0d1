# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Distribution Engine.

Pays every current holder ``balance * base_fee`` reward units and burns
the credential they were paid for. Runs in two phases:

1. ``plan`` reads the pool, the directory and live balances, computes
   the payouts and validates them. It writes nothing.
2. ``execute`` transfers each payout and burns the matching credential
   in plan order.

The ledger runs ``execute`` inside its atomic journal, so a collaborator
failing half way leaves no holder paid and no credential burned.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from gatedreward.arithmetic import checked_add, checked_mul
from gatedreward.credential.reward_token import RewardToken
from gatedreward.credential.store import CredentialStore
from gatedreward.events.bus import (
    EVENT_DISTRIBUTION_COMPLETED,
    EVENT_TOKENS_DISTRIBUTED,
    Event,
    EventBus,
)
from gatedreward.exceptions import (
    InsufficientFundsError,
    NoEligibleRecipientsError,
    NoFundsAvailableError,
    RewardTransferFailedError,
)
from gatedreward.ledger.directory import HolderDirectory

logger = logging.getLogger(__name__)


class Payout(BaseModel):
    """Payout for a single eligible holder."""

    recipient: str
    credential_balance: int = Field(gt=0, description="Gating credential burned")
    amount: int = Field(ge=0, description="Reward units paid")


class DistributionPlan(BaseModel):
    """Validated payouts computed before anything is moved."""

    gating_id: int
    base_fee: int
    pool_balance: int
    payouts: list[Payout]
    total_required: int

    @property
    def recipients(self) -> list[str]:
        return [p.recipient for p in self.payouts]

    @property
    def total_credential(self) -> int:
        return sum(p.credential_balance for p in self.payouts)


class DistributionRecord(BaseModel):
    """Outcome of a completed distribution. Returned, never stored."""

    distribution_id: str = Field(default_factory=lambda: f"dist_{uuid.uuid4().hex[:16]}")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    base_fee: int
    payouts: list[Payout]
    total_paid: int
    credential_burned: int
    remaining_pool: int


class DistributionEngine:
    """Plans and executes proportional payouts against the holder directory."""

    def __init__(
        self,
        store: CredentialStore,
        directory: HolderDirectory,
        events: EventBus,
        ledger_address: str,
        source: str,
    ) -> None:
        self._store = store
        self._directory = directory
        self._events = events
        self._ledger_address = ledger_address
        self._source = source

    @property
    def gating_id(self) -> int:
        return self._directory.gating_id

    def plan(self, reward_token: RewardToken, base_fee: int) -> DistributionPlan:
        """Compute and validate the payouts for the current holders.

        Raises:
            NoFundsAvailableError: The ledger holds no reward units.
            NoEligibleRecipientsError: No holder has a positive balance.
            InsufficientFundsError: The pool cannot cover every payout.
            ArithmeticOverflowError: A payout or the total leaves uint256.
        """
        pool_balance = reward_token.balance_of(self._ledger_address)
        if pool_balance == 0:
            raise NoFundsAvailableError()

        payouts: list[Payout] = []
        total_required = 0
        for holder in self._directory.holders():
            balance = self._store.balance_of(holder, self.gating_id)
            # Skip entries whose balance already reached zero.
            if balance <= 0:
                continue
            amount = checked_mul(balance, base_fee)
            total_required = checked_add(total_required, amount)
            payouts.append(Payout(recipient=holder, credential_balance=balance, amount=amount))

        if not payouts:
            raise NoEligibleRecipientsError()
        if pool_balance < total_required:
            raise InsufficientFundsError(total_required, pool_balance)

        logger.debug(
            "Planned distribution: %d recipients, %d required of %d pooled",
            len(payouts), total_required, pool_balance,
        )
        return DistributionPlan(
            gating_id=self.gating_id,
            base_fee=base_fee,
            pool_balance=pool_balance,
            payouts=payouts,
            total_required=total_required,
        )

    def execute(self, plan: DistributionPlan, reward_token: RewardToken) -> DistributionRecord:
        """Pay and burn for every payout in *plan*, in order.

        Must run inside a transaction: a failure part way through leaves
        earlier payouts applied until the caller rolls back.
        """
        total_paid = 0
        for payout in plan.payouts:
            if not reward_token.transfer(self._ledger_address, payout.recipient, payout.amount):
                raise RewardTransferFailedError(payout.recipient, payout.amount)
            self._store.burn(
                payout.recipient,
                plan.gating_id,
                payout.credential_balance,
                operator=self._ledger_address,
            )
            total_paid = checked_add(total_paid, payout.amount)
            self._events.emit(
                Event(
                    event_type=EVENT_TOKENS_DISTRIBUTED,
                    source=self._source,
                    payload={
                        "recipient": payout.recipient,
                        "amount": payout.amount,
                        "credential_burned": payout.credential_balance,
                    },
                )
            )

        record = DistributionRecord(
            base_fee=plan.base_fee,
            payouts=plan.payouts,
            total_paid=total_paid,
            credential_burned=plan.total_credential,
            remaining_pool=reward_token.balance_of(self._ledger_address),
        )
        self._events.emit(
            Event(
                event_type=EVENT_DISTRIBUTION_COMPLETED,
                source=self._source,
                payload={
                    "distribution_id": record.distribution_id,
                    "recipients": plan.recipients,
                    "total_paid": total_paid,
                },
            )
        )
        logger.info(
            "Distribution %s: paid %d to %d holders, burned %d",
            record.distribution_id, total_paid, len(plan.payouts), record.credential_burned,
        )
        return record
