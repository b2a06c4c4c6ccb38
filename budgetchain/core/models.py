"""Domain models for budgetchain.

All records are defined here using Pydantic v2 for validation. Money is
always an integer number of minor units (cents); Decimal only appears in
derived ratios such as consumption percentages.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    computed_field,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from budgetchain.core.exceptions import ValidationError

MIN_YEAR = 2020
MAX_YEARS_AHEAD = 10

# Amounts in minor units. Strict mode rejects floats and booleans.
PlannedAmount = Annotated[int, Field(ge=0, strict=True)]
PositiveAmount = Annotated[int, Field(gt=0, strict=True)]
Balance = Annotated[int, Field(strict=True)]


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------


class TransactionKind(str, Enum):
    """Direction of a line or transaction.

    The amount itself is always positive; the kind carries the sign.
    """

    INCOME = "income"
    EXPENSE = "expense"
    SAVING = "saving"

    @property
    def is_outflow(self) -> bool:
        return self in (TransactionKind.EXPENSE, TransactionKind.SAVING)


class ConsumptionStatus(str, Enum):
    """Consumed amount relative to the planned amount."""

    UNDER = "under"
    AT = "at"
    OVER = "over"


class PeriodOrder(str, Enum):
    """Result of comparing two periods."""

    BEFORE = "before"
    EQUAL = "equal"
    AFTER = "after"


# -----------------------------------------------------------------------------
# Input record base
# -----------------------------------------------------------------------------


class InputRecord(BaseModel):
    """Base of the records handed to the engine.

    Building one directly raises budgetchain's ValidationError, the same
    error ``validate_budget`` reports.
    """

    model_config = ConfigDict(frozen=True)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e


def _duplicates(ids: list[str]) -> list[str]:
    seen: set[str] = set()
    duplicated: list[str] = []
    for item in ids:
        if item in seen and item not in duplicated:
            duplicated.append(item)
        seen.add(item)
    return duplicated


# -----------------------------------------------------------------------------
# Period
# -----------------------------------------------------------------------------


class Period(InputRecord):
    """A calendar month identifying one budget.

    Periods are immutable and totally ordered by ``year * 12 + month``.
    The upper year bound depends on the current date, which is never read
    from the system clock: ``today`` must come through the validation
    context, so periods are built with ``Period.of`` (or inside a
    ``Budget`` validated with ``validate_budget``). ``Period(...)`` without
    that context is rejected.
    """

    year: int = Field(ge=MIN_YEAR, strict=True)
    month: int = Field(ge=1, le=12, strict=True)

    @model_validator(mode="after")
    def validate_year_horizon(self, info: ValidationInfo) -> "Period":
        """Reject years beyond the planning horizon."""
        context = info.context or {}
        today = context.get("today")
        if today is None:
            raise ValueError("today is required to check the planning horizon")
        horizon = today.year + context.get("max_years_ahead", MAX_YEARS_AHEAD)
        if self.year > horizon:
            raise ValueError(f"year {self.year} is beyond {horizon}")
        return self

    @classmethod
    def of(
        cls,
        year: int,
        month: int,
        *,
        today: date,
        max_years_ahead: int = MAX_YEARS_AHEAD,
    ) -> "Period":
        """Build a period, raising budgetchain's ValidationError on bad input."""
        try:
            return cls.model_validate(
                {"year": year, "month": month},
                context={"today": today, "max_years_ahead": max_years_ahead},
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

    @property
    def ordinal(self) -> int:
        """Position of the period on the month axis."""
        return self.year * 12 + self.month

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.ordinal < other.ordinal

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.ordinal <= other.ordinal

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.ordinal > other.ordinal

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.ordinal >= other.ordinal

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


# -----------------------------------------------------------------------------
# Budget input records
# -----------------------------------------------------------------------------


class BudgetLine(InputRecord):
    """A planned allocation (income, expense or saving) within a budget.

    Attributes:
        id: Line identifier, unique within its budget.
        kind: Income, expense or saving.
        planned_amount: Planned amount in minor units (>= 0).
        recurring: True if the line comes back every month (rent, salary).
            Recurring lines can be matched to transactions by name.
        name: Display name, also used for recurring matching.
        checked: True once the user marked the line as realized.
    """

    id: str = Field(min_length=1)
    kind: TransactionKind
    planned_amount: PlannedAmount
    recurring: bool = False
    name: str = ""
    checked: bool = False


class Transaction(InputRecord):
    """An actual money movement recorded against a budget.

    Attributes:
        id: Transaction identifier, unique within its budget.
        budget_id: Budget the transaction belongs to.
        amount: Strictly positive amount in minor units.
        kind: Income, expense or saving (accepted as ``type`` on input).
        name: Free label; compared with line names for recurring matching.
        recurring: True if generated from a recurring template entry.
        line_id: Explicit reference to the line this transaction consumes.
        checked: True once the user marked the transaction as realized.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    budget_id: str = Field(min_length=1)
    amount: PositiveAmount
    kind: TransactionKind = Field(alias="type")
    name: str = ""
    recurring: bool = False
    line_id: str | None = None
    checked: bool = False


class Budget(InputRecord):
    """The planned and actual financial record of one period.

    Line ids and transaction ids are unique within the budget, and every
    transaction carries the budget's id.
    """

    id: str = Field(min_length=1)
    period: Period
    description: str = ""
    starting_balance: Balance = 0
    lines: tuple[BudgetLine, ...] = ()
    transactions: tuple[Transaction, ...] = ()

    @model_validator(mode="after")
    def validate_references(self) -> "Budget":
        """Reject duplicated ids and transactions of another budget."""
        errors = [
            f"duplicate line id {line_id!r}"
            for line_id in _duplicates([line.id for line in self.lines])
        ]
        errors += [
            f"duplicate transaction id {tx_id!r}"
            for tx_id in _duplicates([tx.id for tx in self.transactions])
        ]
        errors += [
            f"transaction {tx.id!r} belongs to budget {tx.budget_id!r}, not {self.id!r}"
            for tx in self.transactions
            if tx.budget_id != self.id
        ]
        if errors:
            raise ValueError("; ".join(errors))
        return self

    def line_by_id(self, line_id: str) -> BudgetLine | None:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None


# -----------------------------------------------------------------------------
# Calculation results (never persisted)
# -----------------------------------------------------------------------------


class LineConsumption(BaseModel):
    """Planned versus consumed amount for one budget line."""

    model_config = ConfigDict(frozen=True)

    line_id: str
    planned: int
    consumed: int
    remaining: int  # Negative when the line is overspent
    percentage: Decimal | None  # None when nothing was planned
    status: ConsumptionStatus
    transaction_ids: tuple[str, ...] = ()

    @computed_field  # type: ignore[misc]
    @property
    def is_near_limit(self) -> bool:
        """Between 80% and 100% consumed."""
        if self.percentage is None:
            return False
        return Decimal(80) <= self.percentage <= Decimal(100)


class ConsumptionTotals(BaseModel):
    """Sum of transaction amounts per kind, in minor units."""

    model_config = ConfigDict(frozen=True)

    income: int = 0
    expense: int = 0
    saving: int = 0

    @computed_field  # type: ignore[misc]
    @property
    def outflow(self) -> int:
        """Expenses and savings together (savings leave the spendable balance)."""
        return self.expense + self.saving

    def for_kind(self, kind: TransactionKind) -> int:
        return getattr(self, kind.value)


class ConsumptionReport(BaseModel):
    """Output of the aggregate consumption calculator.

    Every input transaction is either listed in exactly one line's
    ``transaction_ids`` or in ``unmatched``. Totals cover all transactions
    regardless of the match outcome.
    """

    model_config = ConfigDict(frozen=True)

    per_line: tuple[LineConsumption, ...] = ()
    unmatched: tuple[Transaction, ...] = ()
    dangling_ids: tuple[str, ...] = ()  # Unmatched because line_id is unknown
    totals: ConsumptionTotals = Field(default_factory=ConsumptionTotals)

    def consumption_for(self, line_id: str) -> LineConsumption | None:
        for consumption in self.per_line:
            if consumption.line_id == line_id:
                return consumption
        return None


class PeriodSummary(BaseModel):
    """Computed figures for one period.

    ``ending_balance`` becomes the ``starting_balance`` of the next period.
    """

    model_config = ConfigDict(frozen=True)

    period: Period
    starting_balance: int
    ending_balance: int
    totals: ConsumptionTotals
    available_to_spend: int
    unmatched: tuple[Transaction, ...] = ()
    daily_allowance: int | None = None

    @computed_field  # type: ignore[misc]
    @property
    def is_deficit(self) -> bool:
        return self.ending_balance < 0


class RealizedMetrics(BaseModel):
    """Figures restricted to items the user checked as realized."""

    model_config = ConfigDict(frozen=True)

    realized_income: int = 0
    realized_expenses: int = 0
    realized_balance: int = 0
    checked_count: int = 0
    total_count: int = 0

    @computed_field  # type: ignore[misc]
    @property
    def completion_percentage(self) -> Decimal:
        """Share of checked items, 0-100."""
        if self.total_count == 0:
            return Decimal(0)
        return (Decimal(self.checked_count * 100) / Decimal(self.total_count)).quantize(
            Decimal("0.01")
        )


# -----------------------------------------------------------------------------
# Engine configuration
# -----------------------------------------------------------------------------


class EngineConfig(BaseModel):
    """Values the caller injects into the engine.

    Nothing here is read from the environment or the system clock; the
    caller decides what "now" is.
    """

    now: datetime
    locale: str = Field(default="fr", min_length=2, max_length=2, pattern=r"^[a-z]{2}$")
    pay_day_of_month: int | None = Field(default=None, ge=1, le=31)
    currency: str = Field(default="CHF", min_length=3, max_length=3, pattern=r"^[A-Z]{3}$")
    max_years_ahead: int = Field(default=MAX_YEARS_AHEAD, ge=0)

    @property
    def today(self) -> date:
        return self.now.date()

    def validation_context(self) -> dict:
        """Context passed to ``model_validate`` for clock-dependent checks."""
        return {"today": self.today, "max_years_ahead": self.max_years_ahead}
