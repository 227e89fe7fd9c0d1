"""Tests for ledger configuration and administrative controls."""

import pytest
from pydantic import ValidationError

from gatedreward import GatedRewardLedger, InMemoryRewardToken, LedgerConfig
from gatedreward.constants import UINT256_MAX, ZERO_ADDRESS
from gatedreward.events import Event
from gatedreward.exceptions import (
    ConfigurationError,
    InvalidFeeError,
    InvalidTokenAddressError,
    UnauthorizedError,
)
from gatedreward.ledger import validate_reward_token


class BrokenToken(InMemoryRewardToken):
    """Token whose address was never set."""

    @property
    def address(self) -> str:
        return ""


def _ledger(base_fee=0):
    token = InMemoryRewardToken("usdc")
    ledger = GatedRewardLedger(LedgerConfig(administrator="admin", base_fee=base_fee), token)
    events: list[Event] = []
    ledger.subscribe("*", events.append)
    return ledger, token, events


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestLedgerConfig:
    def test_defaults(self):
        config = LedgerConfig(administrator="admin")
        assert config.base_fee == 0
        assert config.gating_id == 0
        assert config.max_holders == 10_000

    def test_zero_administrator_rejected(self):
        with pytest.raises(ConfigurationError):
            LedgerConfig(administrator=ZERO_ADDRESS)

    def test_empty_administrator_rejected(self):
        with pytest.raises(ConfigurationError):
            LedgerConfig(administrator="  ")

    def test_negative_fee_rejected(self):
        with pytest.raises(ValidationError):
            LedgerConfig(administrator="admin", base_fee=-1)

    def test_fee_above_uint256_rejected(self):
        with pytest.raises(ValidationError):
            LedgerConfig(administrator="admin", base_fee=UINT256_MAX + 1)

    def test_reward_token_address_validated(self):
        with pytest.raises(InvalidTokenAddressError):
            validate_reward_token(None)
        with pytest.raises(InvalidTokenAddressError):
            GatedRewardLedger(LedgerConfig(administrator="admin"), BrokenToken("x"))


# ---------------------------------------------------------------------------
# Administrator-only operations
# ---------------------------------------------------------------------------


class TestAdminControls:
    def test_set_base_fee(self):
        ledger, _, events = _ledger()
        ledger.set_base_fee("admin", 25)
        assert ledger.get_base_fee() == 25
        assert events[-1].event_type == "base_fee.updated"
        assert events[-1].payload == {"old": 0, "new": 25}

    def test_set_base_fee_to_zero_allowed(self):
        ledger, _, _ = _ledger(base_fee=5)
        ledger.set_base_fee("admin", 0)
        assert ledger.get_base_fee() == 0

    def test_invalid_fee_rejected(self):
        ledger, _, events = _ledger(base_fee=5)
        with pytest.raises(InvalidFeeError):
            ledger.set_base_fee("admin", -1)
        with pytest.raises(InvalidFeeError):
            ledger.set_base_fee("admin", UINT256_MAX + 1)
        assert ledger.get_base_fee() == 5
        assert events == []

    def test_set_reward_token(self):
        ledger, old, events = _ledger()
        new = InMemoryRewardToken("dai")
        ledger.set_reward_token("admin", new)
        assert ledger.get_reward_token() == "dai"
        assert events[-1].event_type == "reward_token.changed"
        assert events[-1].payload == {"old": "usdc", "new": "dai"}

    def test_set_reward_token_to_none_rejected(self):
        ledger, _, events = _ledger()
        with pytest.raises(InvalidTokenAddressError):
            ledger.set_reward_token("admin", None)
        assert ledger.get_reward_token() == "usdc"
        assert events == []

    @pytest.mark.parametrize(
        "operation",
        [
            lambda l: l.set_base_fee("mallory", 1),
            lambda l: l.set_reward_token("mallory", InMemoryRewardToken("dai")),
            lambda l: l.mint("mallory", "mallory", 1),
            lambda l: l.burn("mallory", "alice", 1),
            lambda l: l.distribute("mallory"),
            lambda l: l.withdraw_reward_pool("mallory"),
        ],
    )
    def test_non_admin_rejected(self, operation):
        ledger, token, events = _ledger(base_fee=1)
        ledger.mint("admin", "alice", 1)
        token.mint(ledger.address, 10)
        events.clear()
        with pytest.raises(UnauthorizedError):
            operation(ledger)
        assert ledger.get_base_fee() == 1
        assert ledger.get_reward_token() == "usdc"
        assert ledger.balance_of("alice") == 1
        assert ledger.reward_pool_balance() == 10
        assert events == []


# ---------------------------------------------------------------------------
# Reward pool withdrawal
# ---------------------------------------------------------------------------


class TestWithdraw:
    def test_withdraw_sends_pool_to_admin(self):
        ledger, token, events = _ledger()
        token.mint(ledger.address, 300)
        assert ledger.withdraw_reward_pool("admin") == 300
        assert token.balance_of("admin") == 300
        assert ledger.reward_pool_balance() == 0
        assert events[-1].event_type == "reward_pool.withdrawn"
        assert events[-1].payload == {"recipient": "admin", "amount": 300}

    def test_withdraw_empty_pool(self):
        ledger, token, _ = _ledger()
        assert ledger.withdraw_reward_pool("admin") == 0
        assert token.balance_of("admin") == 0

    def test_withdraw_uses_current_token(self):
        ledger, old, _ = _ledger()
        old.mint(ledger.address, 10)
        new = InMemoryRewardToken("dai")
        new.mint(ledger.address, 7)
        ledger.set_reward_token("admin", new)
        assert ledger.withdraw_reward_pool("admin") == 7
        assert old.balance_of(ledger.address) == 10
