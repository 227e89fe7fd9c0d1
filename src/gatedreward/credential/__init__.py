"""
Credential collaborators.

The gating credential store and the reward-pool token the ledger
consumes, each as a protocol plus an in-memory implementation.
"""

from .reward_token import InMemoryRewardToken, RewardToken
from .store import BalanceChange, BalanceObserver, CredentialStore, MultiTokenStore

__all__ = [
    "BalanceChange",
    "BalanceObserver",
    "CredentialStore",
    "MultiTokenStore",
    "RewardToken",
    "InMemoryRewardToken",
]
