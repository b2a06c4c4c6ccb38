"""Shared helpers for CLI commands."""

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from budgetchain.core.models import EngineConfig
from budgetchain.core.money import format_currency as _format_minor_units
from budgetchain.engine.formulas import DUE_POLICIES, DuePolicy

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Route log records through Rich on stderr."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    for handler in [h for h in root.handlers if isinstance(h, RichHandler)]:
        root.removeHandler(handler)
    root.addHandler(
        RichHandler(console=err_console, show_path=False, rich_tracebacks=True)
    )


def format_currency(amount: int, currency: str) -> str:
    """Format minor units for display."""
    return _format_minor_units(amount, currency)


def format_percentage(value: Decimal | None) -> str:
    if value is None:
        return "n/a"
    return f"{value:.2f}%"


def signed_style(amount: int) -> str:
    if amount < 0:
        return "red"
    if amount > 0:
        return "green"
    return "white"


def load_json(path: Path) -> Any:
    """Read a JSON file, exiting with a readable error on failure."""
    logger.debug("Loading %s", path)
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] {path} is not valid JSON: {e}")
        raise typer.Exit(1)


def parse_now(value: str | None) -> datetime:
    """Parse --now (ISO date or datetime); defaults to the local clock."""
    if value is None:
        return datetime.now()
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid --now value {value!r}, expected ISO format")
        raise typer.Exit(1)


def build_config(
    now: str | None,
    locale: str,
    pay_day: int | None,
    currency: str,
) -> EngineConfig:
    """Build the engine configuration from command-line options."""
    try:
        return EngineConfig(
            now=parse_now(now),
            locale=locale,
            pay_day_of_month=pay_day,
            currency=currency,
        )
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid option: {e}")
        raise typer.Exit(1)


def get_due_policy(name: str) -> DuePolicy:
    try:
        return DUE_POLICIES[name]
    except KeyError:
        console.print(
            f"[red]Error:[/red] Unknown due policy {name!r}, "
            f"expected one of: {', '.join(DUE_POLICIES)}"
        )
        raise typer.Exit(1)
