"""
Gated Reward Ledger

Holder directory, distribution engine and administrative controls,
composed by :class:`GatedRewardLedger`.
"""

from .admin import AdminControls, LedgerConfig, validate_reward_token
from .directory import HolderDirectory, HolderState
from .distribution import (
    DistributionEngine,
    DistributionPlan,
    DistributionRecord,
    Payout,
)
from .gated_ledger import GatedRewardLedger

__all__ = [
    "AdminControls",
    "LedgerConfig",
    "validate_reward_token",
    "HolderDirectory",
    "HolderState",
    "DistributionEngine",
    "DistributionPlan",
    "DistributionRecord",
    "Payout",
    "GatedRewardLedger",
]
