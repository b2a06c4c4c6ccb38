"""Budget formulas.

Pure arithmetic turning a period's totals and line consumptions into the
figures shown to the user and carried over to the next period.

Formulas:
    ending_balance     = starting_balance + income - expense - saving
    available_to_spend = ending_balance - reserved
    reserved           = sum of the positive remaining of expense/saving
                         lines that are not due yet
    daily_allowance    = available_to_spend / days left in the period

Savings leave the spendable balance exactly like expenses do.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime

from budgetchain.core.models import (
    Budget,
    BudgetLine,
    ConsumptionReport,
    ConsumptionTotals,
    LineConsumption,
    Period,
    PeriodSummary,
    RealizedMetrics,
    TransactionKind,
)
from budgetchain.core.money import divide_minor_units
from budgetchain.engine.consumption import compute_all_consumptions
from budgetchain.engine.periods import days_remaining_in_period

DuePolicy = Callable[[BudgetLine], bool]


# -----------------------------------------------------------------------------
# Due policies
# -----------------------------------------------------------------------------


def all_lines_due(line: BudgetLine) -> bool:
    """Every line is due immediately; nothing is reserved."""
    return True


def non_recurring_lines_due(line: BudgetLine) -> bool:
    """One-off lines are due immediately, recurring ones later in the period."""
    return not line.recurring


DUE_POLICIES: dict[str, DuePolicy] = {
    "all": all_lines_due,
    "non-recurring": non_recurring_lines_due,
}


# -----------------------------------------------------------------------------
# Core formulas
# -----------------------------------------------------------------------------


def calculate_ending_balance(starting_balance: int, totals: ConsumptionTotals) -> int:
    """Balance left at the end of the period (may be negative)."""
    return starting_balance + totals.income - totals.expense - totals.saving


def calculate_reserved(
    lines: Iterable[BudgetLine],
    per_line: Iterable[LineConsumption],
    is_due: DuePolicy = all_lines_due,
) -> int:
    """Sum what expense and saving lines that are not due yet still need.

    Overspent lines reserve nothing: their overspending is already part
    of the transaction totals.
    """
    remaining_by_line = {c.line_id: c.remaining for c in per_line}
    reserved = 0
    for line in lines:
        if not line.kind.is_outflow or is_due(line):
            continue
        reserved += max(0, remaining_by_line.get(line.id, line.planned_amount))
    return reserved


def calculate_available_to_spend(
    starting_balance: int,
    totals: ConsumptionTotals,
    lines: Iterable[BudgetLine],
    per_line: Iterable[LineConsumption],
    is_due: DuePolicy = all_lines_due,
) -> int:
    """Money that can be spent without touching upcoming obligations.

    Each line not due yet reserves ``max(0, remaining)``: an overspent
    line reserves nothing rather than adding its overrun back.

    Args:
        starting_balance: Balance carried over from the previous period.
        totals: Transaction totals per kind.
        lines: Budget lines.
        per_line: Consumption of each line.
        is_due: Tells whether a line is already due. The formula does not
            care how that is decided.

    Returns:
        Ending balance minus the amounts reserved for lines not due yet.
    """
    ending = calculate_ending_balance(starting_balance, totals)
    return ending - calculate_reserved(lines, per_line, is_due)


def calculate_daily_allowance(
    available_to_spend: int,
    period: Period,
    now: date | datetime,
    pay_day_of_month: int | None = None,
) -> int | None:
    """Spread what is available over the days left, today included.

    Returns None once the period is over, 0 when nothing is available.
    The result is rounded half-to-even on the minor unit.
    """
    days_left = days_remaining_in_period(period, now, pay_day_of_month)
    if days_left == 0:
        return None
    if available_to_spend <= 0:
        return 0
    return divide_minor_units(available_to_spend, days_left)


def compute_period_summary(
    budget: Budget,
    starting_balance: int,
    report: ConsumptionReport,
    is_due: DuePolicy = all_lines_due,
    now: date | datetime | None = None,
    pay_day_of_month: int | None = None,
) -> PeriodSummary:
    """Compute the summary of one period.

    The same (budget, starting_balance, report) always yields the same
    summary, which is what makes chaining periods safe.

    Args:
        budget: Budget of the period.
        starting_balance: Balance carried over from the previous period.
        report: Output of ``compute_all_consumptions`` for ``budget``.
        is_due: Due policy used for ``available_to_spend``.
        now: Current instant; the daily allowance is only computed when given.
        pay_day_of_month: Pay day defining the period boundaries.

    Returns:
        PeriodSummary with the ending balance for the next period.
    """
    available = calculate_available_to_spend(
        starting_balance=starting_balance,
        totals=report.totals,
        lines=budget.lines,
        per_line=report.per_line,
        is_due=is_due,
    )

    daily_allowance = None
    if now is not None:
        daily_allowance = calculate_daily_allowance(
            available, budget.period, now, pay_day_of_month
        )

    return PeriodSummary(
        period=budget.period,
        starting_balance=starting_balance,
        ending_balance=calculate_ending_balance(starting_balance, report.totals),
        totals=report.totals,
        available_to_spend=available,
        unmatched=report.unmatched,
        daily_allowance=daily_allowance,
    )


def summarize_budget(
    budget: Budget,
    starting_balance: int | None = None,
    is_due: DuePolicy = all_lines_due,
    now: date | datetime | None = None,
    pay_day_of_month: int | None = None,
) -> PeriodSummary:
    """Run the consumption calculator and the formulas on one budget.

    ``starting_balance`` defaults to the one stored on the budget.
    """
    if starting_balance is None:
        starting_balance = budget.starting_balance
    report = compute_all_consumptions(budget)
    return compute_period_summary(
        budget,
        starting_balance,
        report,
        is_due=is_due,
        now=now,
        pay_day_of_month=pay_day_of_month,
    )


def check_summary_coherence(summary: PeriodSummary) -> bool:
    """Verify the conservation law of a summary, exactly."""
    expected = calculate_ending_balance(summary.starting_balance, summary.totals)
    return summary.ending_balance == expected and summary.available_to_spend <= expected


# -----------------------------------------------------------------------------
# Projection (envelope rule)
# -----------------------------------------------------------------------------


def _projected_for(
    kinds: Sequence[TransactionKind],
    budget: Budget,
    report: ConsumptionReport,
) -> int:
    total = 0
    for line in budget.lines:
        if line.kind not in kinds:
            continue
        consumption = report.consumption_for(line.id)
        consumed = consumption.consumed if consumption else 0
        # A line counts for its planned amount, plus what overflows it
        total += line.planned_amount + max(0, consumed - line.planned_amount)
    total += sum(tx.amount for tx in report.unmatched if tx.kind in kinds)
    return total


def calculate_projected_expenses(budget: Budget, report: ConsumptionReport) -> int:
    """Expected outflow of the period once every envelope is used.

    Planned expense/saving lines count in full, overruns on top of them,
    plus every unmatched expense or saving transaction.
    """
    return _projected_for((TransactionKind.EXPENSE, TransactionKind.SAVING), budget, report)


def calculate_projected_income(budget: Budget, report: ConsumptionReport) -> int:
    return _projected_for((TransactionKind.INCOME,), budget, report)


def calculate_projected_ending_balance(
    budget: Budget,
    starting_balance: int,
    report: ConsumptionReport,
) -> int:
    """Ending balance if the plan is executed, overruns included."""
    return (
        starting_balance
        + calculate_projected_income(budget, report)
        - calculate_projected_expenses(budget, report)
    )


# -----------------------------------------------------------------------------
# Realized figures (checked items only)
# -----------------------------------------------------------------------------


def calculate_realized_metrics(budget: Budget) -> RealizedMetrics:
    """Sum the lines and transactions the user checked as realized."""
    realized_income = 0
    realized_expenses = 0
    checked_count = 0

    items = [(line.kind, line.planned_amount, line.checked) for line in budget.lines]
    items += [(tx.kind, tx.amount, tx.checked) for tx in budget.transactions]

    for kind, amount, checked in items:
        if not checked:
            continue
        checked_count += 1
        if kind is TransactionKind.INCOME:
            realized_income += amount
        else:
            realized_expenses += amount

    return RealizedMetrics(
        realized_income=realized_income,
        realized_expenses=realized_expenses,
        realized_balance=realized_income - realized_expenses,
        checked_count=checked_count,
        total_count=len(items),
    )
