"""Conversion between minor units and display decimals.

Arithmetic inside the engine only ever touches integers. Decimals appear
here, at the edge, when amounts are parsed from user input or rendered.
"""

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from budgetchain.core.exceptions import ValidationError

MINOR_UNITS_PER_MAJOR = 100
CENT = Decimal("0.01")

CURRENCY_SYMBOLS = {"CHF": "CHF ", "EUR": "€", "USD": "$", "GBP": "£"}


def to_minor_units(amount: Decimal | str | int) -> int:
    """Convert a major-unit amount ("12.35") to minor units (1235).

    Sub-cent digits are rounded half-to-even. Floats are refused because
    their binary representation already carries drift.
    """
    if isinstance(amount, float):
        raise ValidationError(f"float amount {amount!r} is not accepted, use Decimal or str")
    try:
        value = Decimal(amount)
    except InvalidOperation as e:
        raise ValidationError(f"invalid amount {amount!r}") from e
    if not value.is_finite():
        raise ValidationError(f"invalid amount {amount!r}")
    return int((value * MINOR_UNITS_PER_MAJOR).quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def from_minor_units(minor: int) -> Decimal:
    """Convert minor units to a two-decimal major-unit Decimal."""
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(CENT)


def divide_minor_units(minor: int, divisor: int) -> int:
    """Divide an amount, rounding half-to-even on the minor unit."""
    if divisor <= 0:
        raise ValueError("divisor must be positive")
    return int((Decimal(minor) / Decimal(divisor)).quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def format_currency(minor: int, currency: str = "CHF") -> str:
    """Format minor units for display: ``-CHF 1,234.50``."""
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    amount = from_minor_units(minor)
    if amount < 0:
        return f"-{symbol}{abs(amount):,.2f}"
    return f"{symbol}{amount:,.2f}"
