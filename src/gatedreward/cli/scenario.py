# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Scenario files for the CLI.

A scenario describes a ledger and a list of steps to run against it::

    administrator: admin
    base_fee: 10
    reward_token: usdc
    steps:
      - {action: mint, to: alice, amount: 5}
      - {action: fund, amount: 1500}
      - {action: distribute}
      - {action: distribute, expect_error: NoEligibleRecipientsError}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

from gatedreward.constants import (
    DEFAULT_GATING_ID,
    DEFAULT_LEDGER_ADDRESS,
    MAX_HOLDERS,
    ZERO_ADDRESS,
)
from gatedreward.credential.reward_token import InMemoryRewardToken
from gatedreward.exceptions import ConfigurationError, GatedRewardError
from gatedreward.ledger.admin import LedgerConfig
from gatedreward.ledger.distribution import DistributionPlan, DistributionRecord
from gatedreward.ledger.gated_ledger import GatedRewardLedger

logger = logging.getLogger(__name__)

Action = Literal[
    "mint",
    "burn",
    "transfer",
    "fund",
    "set_base_fee",
    "set_reward_token",
    "distribute",
    "withdraw",
]


class ScenarioStep(BaseModel):
    """One operation in a scenario."""

    model_config = ConfigDict(populate_by_name=True)

    action: Action
    caller: Optional[str] = Field(None, description="Defaults to the administrator, or the sender for transfers")
    to: Optional[str] = None
    sender: Optional[str] = Field(None, alias="from")
    amount: int = Field(default=0, ge=0)
    fee: Optional[int] = Field(None, ge=0)
    token: Optional[str] = None
    expect_error: Optional[str] = Field(None, description="Exception class name the step must raise")


class Scenario(BaseModel):
    """Ledger settings plus the steps to run."""

    administrator: str = "admin"
    base_fee: int = Field(default=0, ge=0)
    gating_id: int = Field(default=DEFAULT_GATING_ID, ge=0)
    max_holders: int = Field(default=MAX_HOLDERS, ge=1)
    ledger_address: str = DEFAULT_LEDGER_ADDRESS
    reward_token: str = "reward-token"
    steps: list[ScenarioStep] = Field(default_factory=list)


class StepResult(BaseModel):
    """Outcome of running one step."""

    index: int
    action: str
    ok: bool
    error: Optional[str] = None
    expected: bool = False
    record: Optional[DistributionRecord] = None
    withdrawn: Optional[int] = None


def load_scenario(path: Union[str, Path]) -> Scenario:
    """Parse a YAML scenario file."""
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Scenario {path} must be a mapping")
    return Scenario.model_validate(data)


class ScenarioRunner:
    """Builds an in-memory ledger for a scenario and applies its steps."""

    def __init__(self, scenario: Scenario) -> None:
        self.scenario = scenario
        self._tokens: dict[str, InMemoryRewardToken] = {}
        config = LedgerConfig(
            administrator=scenario.administrator,
            base_fee=scenario.base_fee,
            gating_id=scenario.gating_id,
            max_holders=scenario.max_holders,
            ledger_address=scenario.ledger_address,
        )
        self.ledger = GatedRewardLedger(config, self._token(scenario.reward_token))

    def _token(self, address: str) -> InMemoryRewardToken:
        if address not in self._tokens:
            self._tokens[address] = InMemoryRewardToken(address)
        return self._tokens[address]

    @property
    def reward_token(self) -> InMemoryRewardToken:
        return self._token(self.ledger.get_reward_token())

    def run(self, skip_distributions: bool = False) -> list[StepResult]:
        """Apply every step in order.

        Raises:
            GatedRewardError: A step failed without declaring ``expect_error``.
            AssertionError: A step declared ``expect_error`` but succeeded or
                raised a different error.
        """
        results = []
        for index, step in enumerate(self.scenario.steps):
            if skip_distributions and step.action == "distribute":
                continue
            results.append(self.run_step(index, step))
        return results

    def run_step(self, index: int, step: ScenarioStep) -> StepResult:
        try:
            outcome = self._apply(step)
        except GatedRewardError as exc:
            name = type(exc).__name__
            if step.expect_error is None:
                raise
            if name != step.expect_error:
                raise AssertionError(
                    f"step {index} ({step.action}) raised {name}, expected {step.expect_error}"
                ) from exc
            logger.info("Step %d (%s) failed as expected: %s", index, step.action, exc)
            return StepResult(index=index, action=step.action, ok=False, error=str(exc), expected=True)

        if step.expect_error is not None:
            raise AssertionError(
                f"step {index} ({step.action}) succeeded, expected {step.expect_error}"
            )
        result = StepResult(index=index, action=step.action, ok=True)
        if isinstance(outcome, DistributionRecord):
            result.record = outcome
        elif step.action == "withdraw":
            result.withdrawn = outcome
        return result

    def _apply(self, step: ScenarioStep) -> object:
        admin = self.scenario.administrator
        caller = step.caller or admin
        ledger = self.ledger
        if step.action == "mint":
            return ledger.mint(caller, _required(step.to, "to"), step.amount)
        if step.action == "burn":
            return ledger.burn(caller, _required(step.sender, "from"), step.amount)
        if step.action == "transfer":
            sender = _required(step.sender, "from")
            return ledger.transfer(step.caller or sender, sender, _required(step.to, "to"), step.amount)
        if step.action == "fund":
            return self.reward_token.mint(ledger.address, step.amount)
        if step.action == "set_base_fee":
            return ledger.set_base_fee(caller, step.fee if step.fee is not None else step.amount)
        if step.action == "set_reward_token":
            token = self._token(step.token) if step.token and step.token != ZERO_ADDRESS else None
            return ledger.set_reward_token(caller, token)
        if step.action == "distribute":
            return ledger.distribute(caller)
        if step.action == "withdraw":
            return ledger.withdraw_reward_pool(caller)
        raise ConfigurationError(f"Unknown action: {step.action}")

    def preview(self) -> DistributionPlan:
        return self.ledger.preview_distribution()


def _required(value: Optional[str], name: str) -> str:
    if not value:
        raise ConfigurationError(f"step is missing '{name}'")
    return value
