"""Implementation of 'budgetchain summary' command.

Shows line consumption and the period summary of a single budget.
"""

import logging
from pathlib import Path

import typer
from rich.panel import Panel
from rich.table import Table

from budgetchain.cli.utils import (
    build_config,
    console,
    format_currency,
    format_percentage,
    get_due_policy,
    load_json,
    setup_logging,
    signed_style,
)
from budgetchain.core.exceptions import BudgetChainError
from budgetchain.core.models import ConsumptionStatus
from budgetchain.engine.consumption import compute_all_consumptions
from budgetchain.engine.formulas import (
    calculate_projected_ending_balance,
    calculate_realized_metrics,
    compute_period_summary,
)
from budgetchain.engine.periods import (
    days_remaining_in_period,
    format_period,
    format_period_range,
)
from budgetchain.engine.validation import validate_budget

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    ConsumptionStatus.UNDER: "green",
    ConsumptionStatus.AT: "yellow",
    ConsumptionStatus.OVER: "red",
}


def summary_command(
    budget_file: Path = typer.Argument(
        ...,
        help="JSON file holding one budget",
    ),
    starting_balance: int = typer.Option(
        None,
        "--starting-balance",
        "-s",
        help="Carried-over balance in minor units (default: value stored in the budget)",
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
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Fail on transactions referencing unknown lines",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Show consumption per line and the period summary of a budget.

    Amounts in the file are integers in minor units (cents).
    """
    setup_logging(verbose)
    config = build_config(now, locale, pay_day, currency)
    is_due = get_due_policy(due_policy)

    result = validate_budget(load_json(budget_file), today=config.today)
    if not result.ok:
        console.print(f"[red]Error:[/red] Invalid budget in {budget_file}")
        for error in result.errors:
            console.print(f"  - {error}")
        raise typer.Exit(1)
    budget = result.unwrap()

    if starting_balance is None:
        starting_balance = budget.starting_balance

    try:
        report = compute_all_consumptions(budget, strict_references=strict)
        summary = compute_period_summary(
            budget,
            starting_balance,
            report,
            is_due=is_due,
            now=config.now,
            pay_day_of_month=config.pay_day_of_month,
        )
        period_label = format_period(budget.period, config.locale)
        period_range = format_period_range(budget.period, config.pay_day_of_month, config.locale)
    except BudgetChainError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    logger.debug("Summarized budget %s (%d transactions)", budget.id, len(budget.transactions))

    cur = config.currency
    days_left = days_remaining_in_period(budget.period, config.now, config.pay_day_of_month)

    # Header
    console.print()
    title = f"{period_label} ({period_range})"
    if days_left > 0:
        title += f" - {days_left} days remaining"
    console.print(Panel(f"[bold]{title}[/bold]", style="cyan"))
    if budget.description:
        console.print(f"[dim]{budget.description}[/dim]")
    console.print()

    # Lines
    if budget.lines:
        table = Table(title="Budget lines", show_lines=False)
        table.add_column("Line")
        table.add_column("Kind")
        table.add_column("Planned", justify="right")
        table.add_column("Consumed", justify="right")
        table.add_column("Remaining", justify="right")
        table.add_column("Used", justify="right")
        table.add_column("Status")

        for line, consumption in zip(budget.lines, report.per_line):
            style = STATUS_STYLES[consumption.status]
            name = line.name or line.id
            if line.recurring:
                name += " [dim](recurring)[/dim]"
            table.add_row(
                name,
                line.kind.value,
                format_currency(consumption.planned, cur),
                format_currency(consumption.consumed, cur),
                f"[{signed_style(consumption.remaining)}]"
                f"{format_currency(consumption.remaining, cur)}[/]",
                format_percentage(consumption.percentage),
                f"[{style}]{consumption.status.value}[/{style}]",
            )
        console.print(table)
        console.print()

    # Unmatched transactions
    if summary.unmatched:
        console.print(f"[bold]Unmatched transactions[/bold] ({len(summary.unmatched)})")
        for tx in summary.unmatched:
            marker = " [yellow](unknown line)[/yellow]" if tx.id in report.dangling_ids else ""
            label = tx.name or tx.id
            console.print(
                f"  {label}: {format_currency(tx.amount, cur):>12} {tx.kind.value}{marker}"
            )
        console.print()

    # Period summary
    console.print("[bold]Period Summary[/bold]")
    console.print(f"  Starting balance:   {format_currency(summary.starting_balance, cur):>14}")
    console.print(f"  Income:             {format_currency(summary.totals.income, cur):>14}")
    console.print(f"  Expenses:           {format_currency(summary.totals.expense, cur):>14}")
    console.print(f"  Savings:            {format_currency(summary.totals.saving, cur):>14}")
    style = signed_style(summary.ending_balance)
    console.print(
        f"  [{style}]Ending balance:     {format_currency(summary.ending_balance, cur):>14}[/{style}]"
    )
    console.print(f"  Available to spend: {format_currency(summary.available_to_spend, cur):>14}")
    if summary.daily_allowance is not None:
        console.print(
            f"  Daily allowance:    {format_currency(summary.daily_allowance, cur):>14}"
        )
    projected = calculate_projected_ending_balance(budget, starting_balance, report)
    console.print(f"  [dim]Projected ending:   {format_currency(projected, cur):>14}[/dim]")
    console.print()

    realized = calculate_realized_metrics(budget)
    if realized.checked_count:
        console.print("[bold]Realized[/bold]")
        console.print(f"  Balance: {format_currency(realized.realized_balance, cur):>14}")
        console.print(
            f"  Checked: {realized.checked_count}/{realized.total_count} "
            f"({realized.completion_percentage:.1f}%)"
        )
        console.print()

    if summary.is_deficit:
        console.print("[bold yellow]⚠ Deficit carried over to next month[/bold yellow]")
        console.print()
