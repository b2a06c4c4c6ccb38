"""Implementation of 'budgetchain period' command.

Shows the boundaries of a budget period, or finds the period of a date.
"""

import typer

from budgetchain.cli.utils import build_config, console
from budgetchain.core.exceptions import ValidationError
from budgetchain.engine.periods import (
    days_in_period,
    days_remaining_in_period,
    format_period,
    format_period_range,
    get_period_boundaries,
    get_period_for_date,
    is_current_period,
    is_past_period,
    parse_period,
)


def period_command(
    period: str = typer.Argument(
        None,
        help="Period as YYYY-MM or month name and year (default: current period)",
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
) -> None:
    """Show the dates covered by a budget period."""
    config = build_config(now, locale, pay_day, "CHF")

    pay_day_of_month = config.pay_day_of_month
    try:
        if period:
            target = parse_period(period, config.locale, today=config.today)
        else:
            target = get_period_for_date(config.now, pay_day_of_month, today=config.today)
        label = format_period(target, config.locale)
        date_range = format_period_range(target, pay_day_of_month, config.locale)

        if is_current_period(target, config.now, pay_day_of_month):
            days_left = days_remaining_in_period(target, config.now, pay_day_of_month)
            state = f"current, {days_left} days remaining"
        elif is_past_period(target, config.now, pay_day_of_month):
            state = "past"
        else:
            state = "upcoming"
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    start, end = get_period_boundaries(target, pay_day_of_month)

    console.print(f"[bold]{label}[/bold] ({target})")
    console.print(f"  {date_range}")
    console.print(f"  Start: {start:%Y-%m-%d}  End (exclusive): {end:%Y-%m-%d}")
    console.print(f"  {days_in_period(target, pay_day_of_month)} days, {state}")
