"""
Gated Reward - proportional reward distribution for credential holders

Directory · Distribution · Administration

Keeps a live directory of everyone holding a gating credential, pays a
reward pool out to them in proportion to their holdings, and burns the
credential it paid for. Every operation is all-or-nothing.

Version: 0.1.0
"""

__version__ = "0.1.0"

from .constants import MAX_HOLDERS, UINT256_MAX, ZERO_ADDRESS

# Collaborators
from .credential import (
    BalanceChange,
    CredentialStore,
    InMemoryRewardToken,
    MultiTokenStore,
    RewardToken,
)

# Notifications
from .events import Event, EventBus, InMemoryEventBus

# Ledger
from .ledger import (
    DistributionPlan,
    DistributionRecord,
    GatedRewardLedger,
    HolderDirectory,
    HolderState,
    LedgerConfig,
    Payout,
)

# Exceptions
from .exceptions import (
    ArithmeticOverflowError,
    AuthorizationError,
    CapacityError,
    ConfigurationError,
    CredentialError,
    DistributionError,
    GatedRewardError,
    HolderCapacityExceededError,
    InsufficientBalanceError,
    InsufficientFundsError,
    InvalidFeeError,
    InvalidRecipientError,
    InvalidTokenAddressError,
    NoEligibleRecipientsError,
    NoFundsAvailableError,
    NotApprovedError,
    RewardTransferFailedError,
    UnauthorizedError,
)

__all__ = [
    # Version
    "__version__",
    # Constants
    "MAX_HOLDERS",
    "UINT256_MAX",
    "ZERO_ADDRESS",
    # Collaborators
    "BalanceChange",
    "CredentialStore",
    "InMemoryRewardToken",
    "MultiTokenStore",
    "RewardToken",
    # Notifications
    "Event",
    "EventBus",
    "InMemoryEventBus",
    # Ledger
    "DistributionPlan",
    "DistributionRecord",
    "GatedRewardLedger",
    "HolderDirectory",
    "HolderState",
    "LedgerConfig",
    "Payout",
    # Exceptions
    "ArithmeticOverflowError",
    "AuthorizationError",
    "CapacityError",
    "ConfigurationError",
    "CredentialError",
    "DistributionError",
    "GatedRewardError",
    "HolderCapacityExceededError",
    "InsufficientBalanceError",
    "InsufficientFundsError",
    "InvalidFeeError",
    "InvalidRecipientError",
    "InvalidTokenAddressError",
    "NoEligibleRecipientsError",
    "NoFundsAvailableError",
    "NotApprovedError",
    "RewardTransferFailedError",
    "UnauthorizedError",
]
