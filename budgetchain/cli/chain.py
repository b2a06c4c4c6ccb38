"""Implementation of 'budgetchain chain' command.

Chains several monthly budgets through their ending balances.
"""

import logging
from pathlib import Path

import typer
from rich.table import Table

from budgetchain.cli.utils import (
    build_config,
    console,
    format_currency,
    get_due_policy,
    load_json,
    setup_logging,
    signed_style,
)
from budgetchain.core.exceptions import BudgetChainError
from budgetchain.engine.formulas import check_summary_coherence
from budgetchain.engine.periods import format_period, is_current_period
from budgetchain.engine.rollover import resolve_rollover_chain
from budgetchain.engine.validation import validate_budgets

logger = logging.getLogger(__name__)


def chain_command(
    budget_files: list[Path] = typer.Argument(
        ...,
        help="JSON files holding one budget or a list of budgets, oldest first",
    ),
    opening_balance: int = typer.Option(
        0,
        "--opening-balance",
        "-o",
        help="Starting balance of the first period, in minor units",
    ),
    now: str = typer.Option(
        None,
        "--now",
        help="Current date/time in ISO format (default: local clock)",
    ),
    locale: str = typer.Option("fr", "--locale", "-l", help="Locale for period names"),
    pay_day: int = typer.Option(
        None,
        "--pay-day",
        help="Day of the month the salary arrives (default: calendar months)",
    ),
    currency: str = typer.Option("CHF", "--currency", "-c", help="Currency code for display"),
    due_policy: str = typer.Option(
        "all",
        "--due-policy",
        help="Which lines are already due: 'all' or 'non-recurring'",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Carry balances from month to month and show each period.

    Budgets must be given in ascending period order; they are not sorted.
    """
    setup_logging(verbose)
    config = build_config(now, locale, pay_day, currency)
    is_due = get_due_policy(due_policy)

    payloads: list[dict] = []
    for path in budget_files:
        data = load_json(path)
        if isinstance(data, list):
            payloads.extend(data)
        else:
            payloads.append(data)

    if not payloads:
        console.print("[yellow]No budgets found[/yellow]")
        raise typer.Exit(0)

    try:
        budgets = validate_budgets(payloads, config.today)
        summaries = resolve_rollover_chain(
            budgets,
            opening_balance,
            is_due=is_due,
            now=config.now,
            pay_day_of_month=config.pay_day_of_month,
        )
        labels = [format_period(s.period, config.locale) for s in summaries]
        current = [
            is_current_period(s.period, config.now, config.pay_day_of_month) for s in summaries
        ]
    except BudgetChainError as e:
        console.print("[red]Error:[/red] Cannot chain budgets")
        for error in getattr(e, "errors", [str(e)]):
            console.print(f"  - {error}")
        raise typer.Exit(1)

    logger.info("Chained %d periods", len(summaries))

    cur = config.currency
    table = Table(title="Rollover chain")
    table.add_column("Period")
    table.add_column("Starting", justify="right")
    table.add_column("Income", justify="right")
    table.add_column("Expenses", justify="right")
    table.add_column("Savings", justify="right")
    table.add_column("Ending", justify="right")
    table.add_column("Unmatched", justify="right")

    for label, summary, is_current in zip(labels, summaries, current):
        if not check_summary_coherence(summary):
            logger.warning("Incoherent summary for %s", summary.period)
        if is_current:
            label = f"[bold]{label}[/bold] ←"
        style = signed_style(summary.ending_balance)
        table.add_row(
            label,
            format_currency(summary.starting_balance, cur),
            format_currency(summary.totals.income, cur),
            format_currency(summary.totals.expense, cur),
            format_currency(summary.totals.saving, cur),
            f"[{style}]{format_currency(summary.ending_balance, cur)}[/{style}]",
            str(len(summary.unmatched)),
        )

    console.print()
    console.print(table)
    console.print()
    final = summaries[-1].ending_balance
    console.print(f"Balance carried forward: [bold]{format_currency(final, cur)}[/bold]")
