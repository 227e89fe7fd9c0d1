# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""Centralized exception hierarchy for the gated reward ledger.

All ledger exceptions inherit from GatedRewardError, so callers can
catch every rejected operation with a single handler. Every one of
them is raised before the ledger commits anything: a caught error
means the ledger is in the state it was in before the call.
"""

from __future__ import annotations

from typing import Optional


class GatedRewardError(Exception):
    """Base exception for all gated reward ledger errors."""


class ConfigurationError(GatedRewardError):
    """Errors related to ledger configuration values."""


class InvalidTokenAddressError(ConfigurationError):
    """Raised when the reward token reference is empty or the zero address."""

    def __init__(self, address: Optional[str]) -> None:
        self.address = address
        super().__init__(f"Invalid reward token address: {address!r}")


class InvalidFeeError(ConfigurationError):
    """Raised when a base fee falls outside the unsigned 256-bit range."""

    def __init__(self, fee: object) -> None:
        self.fee = fee
        super().__init__(f"Invalid base fee: {fee!r}")


class CapacityError(GatedRewardError):
    """Errors related to bounded ledger structures."""


class HolderCapacityExceededError(CapacityError):
    """Raised when a new holder would push the directory past its cap."""

    def __init__(self, holder: str, max_holders: int) -> None:
        self.holder = holder
        self.max_holders = max_holders
        super().__init__(
            f"Holder directory is full ({max_holders} holders); "
            f"cannot add {holder}"
        )


class DistributionError(GatedRewardError):
    """Errors raised while planning or executing a distribution."""


class NoFundsAvailableError(DistributionError):
    """The reward pool held by the ledger is empty."""

    def __init__(self) -> None:
        super().__init__("Reward pool is empty")


class NoEligibleRecipientsError(DistributionError):
    """No holder has a positive gating-credential balance."""

    def __init__(self) -> None:
        super().__init__("No eligible recipients for distribution")


class InsufficientFundsError(DistributionError):
    """The reward pool cannot cover the proportional payout."""

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient reward pool: required {required}, available {available}"
        )


class RewardTransferFailedError(DistributionError):
    """The reward token reported a failed transfer."""

    def __init__(self, recipient: str, amount: int) -> None:
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"Reward transfer of {amount} to {recipient} failed")


class AuthorizationError(GatedRewardError):
    """Errors related to caller authorization."""


class UnauthorizedError(AuthorizationError):
    """Raised when a non-administrator calls an administrator-only operation."""

    def __init__(self, caller: str, action: str) -> None:
        self.caller = caller
        self.action = action
        super().__init__(f"{caller} is not authorized to {action}")


class CredentialError(GatedRewardError):
    """Errors raised by the credential store."""


class InsufficientBalanceError(CredentialError):
    """An account does not hold enough of a credential for a burn or transfer."""

    def __init__(self, account: str, token_id: int, balance: int, amount: int) -> None:
        self.account = account
        self.token_id = token_id
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"{account} holds {balance} of credential {token_id}, needs {amount}"
        )


class NotApprovedError(CredentialError):
    """The operator is neither the owner nor an approved operator."""

    def __init__(self, operator: str, owner: str) -> None:
        self.operator = operator
        self.owner = owner
        super().__init__(f"{operator} is not approved to move credentials of {owner}")


class InvalidRecipientError(CredentialError):
    """Raised when minting or transferring to the zero address."""


class ArithmeticOverflowError(GatedRewardError, OverflowError):
    """A quantity left the unsigned 256-bit range."""


__all__ = [
    "GatedRewardError",
    "ConfigurationError",
    "InvalidTokenAddressError",
    "InvalidFeeError",
    "CapacityError",
    "HolderCapacityExceededError",
    "DistributionError",
    "NoFundsAvailableError",
    "NoEligibleRecipientsError",
    "InsufficientFundsError",
    "RewardTransferFailedError",
    "AuthorizationError",
    "UnauthorizedError",
    "CredentialError",
    "InsufficientBalanceError",
    "NotApprovedError",
    "InvalidRecipientError",
    "ArithmeticOverflowError",
]
