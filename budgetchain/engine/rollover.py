"""Rollover chain resolver.

Walks a user's budgets in ascending period order, feeding each period's
ending balance into the next period's starting balance. The chain is
inherently sequential: a period can only be summarized once the previous
one is known.
"""

from collections.abc import Sequence
from datetime import date, datetime

from budgetchain.core.exceptions import ValidationError
from budgetchain.core.models import Budget, PeriodSummary
from budgetchain.engine.formulas import DuePolicy, all_lines_due, summarize_budget


def check_chain_order(budgets: Sequence[Budget]) -> None:
    """Ensure periods are strictly ascending (no duplicates, no reordering).

    Raises:
        ValidationError: Listing every out-of-order or duplicated period.
    """
    errors = []
    for previous, current in zip(budgets, budgets[1:]):
        if current.period == previous.period:
            errors.append(f"duplicate period {current.period} (budget {current.id!r})")
        elif current.period < previous.period:
            errors.append(
                f"period {current.period} (budget {current.id!r}) comes after {previous.period}"
            )
    if errors:
        raise ValidationError(errors)


def resolve_rollover_chain(
    budgets: Sequence[Budget],
    opening_balance: int = 0,
    is_due: DuePolicy = all_lines_due,
    now: date | datetime | None = None,
    pay_day_of_month: int | None = None,
) -> list[PeriodSummary]:
    """Summarize consecutive budgets, carrying balances forward.

    The budgets are never sorted here: the caller owns the ordering and
    an unordered input is rejected.

    Args:
        budgets: Budgets of one user, in strictly ascending period order.
        opening_balance: Starting balance of the first budget.
        is_due: Due policy used for ``available_to_spend``.
        now: Current instant, for the daily allowance.
        pay_day_of_month: Pay day defining the period boundaries.

    Returns:
        One PeriodSummary per budget, in the same order.
    """
    check_chain_order(budgets)

    summaries: list[PeriodSummary] = []
    starting_balance = opening_balance

    for budget in budgets:
        summary = summarize_budget(
            budget,
            starting_balance,
            is_due=is_due,
            now=now,
            pay_day_of_month=pay_day_of_month,
        )
        summaries.append(summary)
        starting_balance = summary.ending_balance

    return summaries


def rechain_from(
    summaries: Sequence[PeriodSummary],
    budgets: Sequence[Budget],
    index: int,
    opening_balance: int = 0,
    is_due: DuePolicy = all_lines_due,
    now: date | datetime | None = None,
    pay_day_of_month: int | None = None,
) -> list[PeriodSummary]:
    """Recompute a chain after the budget at ``index`` was edited.

    Summaries before ``index`` are reused as they are; everything from
    ``index`` on is recomputed from the previous ending balance.
    """
    if len(summaries) != len(budgets):
        raise ValidationError(
            f"{len(summaries)} summaries for {len(budgets)} budgets"
        )
    if not 0 <= index <= len(budgets):
        raise ValidationError(f"index {index} outside the chain")

    kept = list(summaries[:index])
    starting_balance = kept[-1].ending_balance if kept else opening_balance

    tail = resolve_rollover_chain(
        budgets[index:],
        starting_balance,
        is_due=is_due,
        now=now,
        pay_day_of_month=pay_day_of_month,
    )
    if kept and tail and not kept[-1].period < tail[0].period:
        raise ValidationError(f"period {tail[0].period} does not follow {kept[-1].period}")
    return kept + tail
