# Copyright (c) Gated-Reward Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Gated Reward CLI

Commands:
    - gatedreward simulate <scenario.yaml>: run a scenario and show payouts
    - gatedreward preview <scenario.yaml>: show the next distribution plan
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from gatedreward import __version__
from gatedreward.cli.scenario import ScenarioRunner, StepResult, load_scenario
from gatedreward.exceptions import GatedRewardError
from gatedreward.ledger.distribution import DistributionPlan, Payout
from gatedreward.ledger.gated_ledger import GatedRewardLedger

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_runner(path: str) -> ScenarioRunner:
    try:
        return ScenarioRunner(load_scenario(Path(path)))
    except (GatedRewardError, ValidationError) as exc:
        console.print(f"[red]Error:[/red] invalid scenario {escape(path)}: {escape(str(exc))}")
        raise SystemExit(1)


def _payout_table(title: str, payouts: list[Payout]) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Recipient", style="cyan", no_wrap=True)
    table.add_column("Credential", justify="right")
    table.add_column("Reward", justify="right", style="green")
    for p in payouts:
        table.add_row(p.recipient, str(p.credential_balance), str(p.amount))
    return table


def _holder_table(ledger: GatedRewardLedger) -> Table:
    table = Table(title="Holders", box=box.ROUNDED)
    table.add_column("Holder", style="cyan", no_wrap=True)
    table.add_column("Balance", justify="right")
    for holder in sorted(ledger.get_holders()):
        table.add_row(holder, str(ledger.balance_of(holder)))
    return table


def _summary(runner: ScenarioRunner, results: list[StepResult]) -> dict:
    ledger = runner.ledger
    return {
        "steps": [r.model_dump(mode="json", exclude_none=True) for r in results],
        "holders": {h: ledger.balance_of(h) for h in sorted(ledger.get_holders())},
        "holder_count": ledger.get_holder_count(),
        "base_fee": ledger.get_base_fee(),
        "reward_token": ledger.get_reward_token(),
        "reward_pool": ledger.reward_pool_balance(),
    }


@click.group()
@click.version_option(__version__, prog_name="gatedreward")
@click.option("--verbose", "-v", is_flag=True, help="Log ledger activity.")
def app(verbose: bool) -> None:
    """Run gated reward ledger scenarios."""
    _configure_logging(verbose)


@app.command()
@click.argument("scenario", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
def simulate(scenario: str, json_flag: bool) -> None:
    """Run every step of SCENARIO against a fresh in-memory ledger."""
    runner = _load_runner(scenario)
    try:
        results = runner.run()
    except (GatedRewardError, AssertionError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1)

    if json_flag:
        click.echo(json.dumps(_summary(runner, results), indent=2, default=str))
        return

    steps = Table(title="Steps", box=box.SIMPLE)
    steps.add_column("#", justify="right")
    steps.add_column("Action")
    steps.add_column("Result")
    for r in results:
        if r.ok:
            status = "[green]✓[/green]"
        else:
            status = f"[yellow]expected failure[/yellow] {escape(r.error or '')}"
        steps.add_row(str(r.index), r.action, status)
    console.print(steps)

    for r in results:
        if r.record is not None:
            console.print(
                _payout_table(
                    f"Distribution {r.record.distribution_id} (fee {r.record.base_fee})",
                    r.record.payouts,
                )
            )
            console.print(
                f"  Paid {r.record.total_paid}, burned {r.record.credential_burned}, "
                f"pool left {r.record.remaining_pool}\n"
            )

    ledger = runner.ledger
    console.print(_holder_table(ledger))
    console.print(
        f"\n  Holders: {ledger.get_holder_count()}  "
        f"Reward pool: {ledger.reward_pool_balance()} {ledger.get_reward_token()}\n"
    )


@app.command()
@click.argument("scenario", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
def preview(scenario: str, json_flag: bool) -> None:
    """Show what a distribution would pay after SCENARIO's non-distribution steps."""
    runner = _load_runner(scenario)
    try:
        runner.run(skip_distributions=True)
        plan: DistributionPlan = runner.preview()
    except (GatedRewardError, AssertionError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1)

    if json_flag:
        click.echo(json.dumps(plan.model_dump(mode="json"), indent=2))
        return

    console.print(_payout_table(f"Distribution plan (fee {plan.base_fee})", plan.payouts))
    console.print(f"\n  Required {plan.total_required} of {plan.pool_balance} pooled\n")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
