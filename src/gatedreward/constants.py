# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""Shared constants for the gated reward ledger."""

# Sentinel account used as ``sender`` on mint and ``recipient`` on burn.
ZERO_ADDRESS = "0x" + "0" * 40

# Quantities live in the unsigned 256-bit range.
UINT256_MAX = 2**256 - 1

# Hard cap on the number of distinct gating-credential holders.
MAX_HOLDERS = 10_000

DEFAULT_GATING_ID = 0

DEFAULT_LEDGER_ADDRESS = "gated-reward-ledger"
