# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""Overflow-checked unsigned 256-bit arithmetic."""

from __future__ import annotations

from gatedreward.constants import UINT256_MAX
from gatedreward.exceptions import ArithmeticOverflowError


def require_uint256(value: int, name: str = "value") -> int:
    """Return *value* if it is an int in ``[0, UINT256_MAX]``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ArithmeticOverflowError(f"{name} {value} is outside the uint256 range")
    return value


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError(f"{a} + {b} overflows uint256")
    return result


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise ArithmeticOverflowError(f"{a} - {b} underflows uint256")
    return a - b


def checked_mul(a: int, b: int) -> int:
    result = a * b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError(f"{a} * {b} overflows uint256")
    return result
