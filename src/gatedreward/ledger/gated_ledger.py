# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Gated Reward Ledger.

Composes the credential store, holder directory, distribution engine and
administrative controls behind one call/return interface. Every public
mutation runs as a single serialized transaction: it either completes
or leaves balances, directory, settings and notifications exactly as
they were.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from gatedreward.arithmetic import require_uint256
from gatedreward.credential.reward_token import RewardToken
from gatedreward.credential.store import CredentialStore, MultiTokenStore
from gatedreward.events.bus import (
    EVENT_REWARD_POOL_WITHDRAWN,
    Event,
    EventBus,
    EventHandler,
    TransactionalEventBus,
)
from gatedreward.exceptions import RewardTransferFailedError
from gatedreward.journal import AtomicJournal, Checkpointable
from gatedreward.ledger.admin import AdminControls, LedgerConfig
from gatedreward.ledger.directory import HolderDirectory, HolderState
from gatedreward.ledger.distribution import (
    DistributionEngine,
    DistributionPlan,
    DistributionRecord,
)

logger = logging.getLogger(__name__)


class GatedRewardLedger:
    """Distributes a reward pool to gating-credential holders and burns the credential.

    Usage:
        token = InMemoryRewardToken("usdc")
        ledger = GatedRewardLedger(LedgerConfig(administrator="admin", base_fee=10), token)
        ledger.mint("admin", "alice", 5)
        token.mint(ledger.address, 1_000)
        record = ledger.distribute("admin")

    Args:
        config: Administrator, fee, gating id, directory cap and pool account.
        reward_token: Asset the pool is paid from.
        store: Credential store; a fresh :class:`MultiTokenStore` if omitted.
            Once passed in, change its balances only through the ledger.
        events: Bus receiving committed notifications.
    """

    def __init__(
        self,
        config: LedgerConfig,
        reward_token: RewardToken,
        store: Optional[CredentialStore] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self._config = config
        self._address = config.ledger_address
        self._store = store if store is not None else MultiTokenStore()
        self._events = TransactionalEventBus(events)
        self._admin = AdminControls(
            administrator=config.administrator,
            reward_token=reward_token,
            base_fee=config.base_fee,
            events=self._events,
            source=self._address,
        )
        self._directory = HolderDirectory(
            self._store,
            gating_id=config.gating_id,
            max_holders=config.max_holders,
            events=self._events,
            source=self._address,
        )
        self._engine = DistributionEngine(
            self._store,
            self._directory,
            self._events,
            ledger_address=self._address,
            source=self._address,
        )
        self._journal = AtomicJournal(self._participants, self._events)
        self._store.subscribe(self._directory.on_balance_changed)

    def _participants(self) -> list[Checkpointable]:
        return [self._store, self._admin.reward_token, self._directory, self._admin]

    # -- accessors ---------------------------------------------------------

    @property
    def address(self) -> str:
        """Account holding the reward pool."""
        return self._address

    @property
    def administrator(self) -> str:
        return self._admin.administrator

    @property
    def gating_id(self) -> int:
        return self._directory.gating_id

    @property
    def max_holders(self) -> int:
        return self._directory.max_holders

    @property
    def events(self) -> EventBus:
        return self._events.inner

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        """Deliver committed notifications matching *pattern* to *handler*."""
        self._events.subscribe(pattern, handler)

    # -- credential operations ---------------------------------------------

    def mint(self, caller: str, to: str, amount: int) -> None:
        """Issue *amount* of the gating credential to *to*."""
        with self._journal.transaction("mint"):
            self._admin.require_admin(caller, "mint")
            require_uint256(amount, "amount")
            self._store.mint(to, self.gating_id, amount, operator=caller)

    def mint_batch(self, caller: str, to: str, ids: Sequence[int], amounts: Sequence[int]) -> None:
        """Issue several credential ids at once; only the gating id affects the directory."""
        with self._journal.transaction("mint_batch"):
            self._admin.require_admin(caller, "mint")
            self._store.mint_batch(to, ids, amounts, operator=caller)

    def burn(self, caller: str, from_: str, amount: int) -> None:
        """Destroy *amount* of the gating credential held by *from_*."""
        with self._journal.transaction("burn"):
            self._admin.require_admin(caller, "burn")
            require_uint256(amount, "amount")
            self._store.burn(from_, self.gating_id, amount, operator=caller)

    def transfer(self, caller: str, sender: str, recipient: str, amount: int) -> None:
        """Move gating credential between holders.

        *caller* must be *sender* or an operator *sender* approved.
        """
        with self._journal.transaction("transfer"):
            require_uint256(amount, "amount")
            self._store.transfer(caller, sender, recipient, self.gating_id, amount)

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        with self._journal.transaction("set_approval_for_all"):
            self._store.set_approval_for_all(owner, operator, approved)

    # -- distribution ------------------------------------------------------

    def preview_distribution(self) -> DistributionPlan:
        """Return the plan ``distribute`` would execute now, without executing it."""
        with self._journal.read():
            return self._engine.plan(self._admin.reward_token, self._admin.base_fee)

    def distribute(self, caller: str) -> DistributionRecord:
        """Pay every eligible holder ``balance * base_fee`` and burn their credential.

        Raises:
            UnauthorizedError: *caller* is not the administrator.
            NoFundsAvailableError: The reward pool is empty.
            NoEligibleRecipientsError: No holder has a positive balance.
            InsufficientFundsError: The pool cannot cover the payout.
            RewardTransferFailedError: The reward token refused a payout.
        """
        with self._journal.transaction("distribute"):
            self._admin.require_admin(caller, "distribute")
            token = self._admin.reward_token
            plan = self._engine.plan(token, self._admin.base_fee)
            return self._engine.execute(plan, token)

    # -- administration ----------------------------------------------------

    def set_reward_token(self, caller: str, token: Optional[RewardToken]) -> None:
        with self._journal.transaction("set_reward_token"):
            self._admin.set_reward_token(caller, token)

    def set_base_fee(self, caller: str, fee: int) -> None:
        with self._journal.transaction("set_base_fee"):
            self._admin.set_base_fee(caller, fee)

    def withdraw_reward_pool(self, caller: str) -> int:
        """Send the whole reward pool to the administrator and return the amount."""
        with self._journal.transaction("withdraw_reward_pool"):
            self._admin.require_admin(caller, "withdraw the reward pool")
            token = self._admin.reward_token
            amount = token.balance_of(self._address)
            if amount and not token.transfer(self._address, self.administrator, amount):
                raise RewardTransferFailedError(self.administrator, amount)
            logger.info("Withdrew %d from reward pool to %s", amount, self.administrator)
            self._events.emit(
                Event(
                    event_type=EVENT_REWARD_POOL_WITHDRAWN,
                    source=self._address,
                    payload={"recipient": self.administrator, "amount": amount},
                )
            )
            return amount

    # -- reads -------------------------------------------------------------

    def get_holder_count(self) -> int:
        return self._directory.count

    def get_holders(self) -> tuple[str, ...]:
        return self._directory.holders()

    def is_holder(self, account: str) -> bool:
        return self._directory.is_holder(account)

    def holder_state(self, account: str) -> HolderState:
        return self._directory.state(account)

    def get_reward_token(self) -> str:
        return self._admin.reward_token.address

    def get_base_fee(self) -> int:
        return self._admin.base_fee

    def balance_of(self, account: str) -> int:
        """Gating-credential balance of *account*."""
        return self._store.balance_of(account, self.gating_id)

    def credential_balance(self, account: str, token_id: int) -> int:
        """Balance of any credential id, including ones that do not gate rewards."""
        return self._store.balance_of(account, token_id)

    def reward_pool_balance(self) -> int:
        return self._admin.reward_token.balance_of(self._address)
