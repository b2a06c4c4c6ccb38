"""Consumption calculators.

Matches a budget's transactions to its lines and computes, for every line,
how much of the planned amount was consumed.

Matching is done in two phases:
    1. A transaction carrying a ``line_id`` belongs to that line. If the
       line does not exist in the budget the transaction is unmatched
       (dangling reference).
    2. A recurring transaction without ``line_id`` belongs to the recurring
       line of the same kind and name. This is a best-effort fallback for
       templates that regenerate recurring transactions without storing a
       backlink. More than one candidate raises AmbiguousMatchError.

All sums are integer minor units; only the percentage is a Decimal.
"""

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_EVEN, Decimal

from pydantic import BaseModel, Field

from budgetchain.core.exceptions import AmbiguousMatchError, LineReferenceError, ValidationError
from budgetchain.core.models import (
    Budget,
    BudgetLine,
    ConsumptionReport,
    ConsumptionStatus,
    ConsumptionTotals,
    LineConsumption,
    Transaction,
    TransactionKind,
)

PERCENTAGE_QUANTUM = Decimal("0.01")


class MatchResult(BaseModel):
    """Outcome of matching transactions to lines.

    Attributes:
        by_line: Matched transactions per line id, in input order. Every
            line of the input has an entry, possibly empty.
        unmatched: Transactions attributed to no line.
        dangling_ids: Ids of unmatched transactions whose line_id is unknown.
    """

    by_line: dict[str, list[Transaction]] = Field(default_factory=dict)
    unmatched: list[Transaction] = Field(default_factory=list)
    dangling_ids: list[str] = Field(default_factory=list)


def _name_key(name: str) -> str:
    return name.strip().casefold()


def match_transactions(
    lines: Sequence[BudgetLine],
    transactions: Iterable[Transaction],
    strict_references: bool = False,
) -> MatchResult:
    """Attribute each transaction to at most one line.

    Args:
        lines: Lines of the budget.
        transactions: Transactions of the same budget.
        strict_references: Raise LineReferenceError on an unknown line_id
            instead of reporting the transaction as unmatched.

    Returns:
        MatchResult partitioning the transactions.

    Raises:
        AmbiguousMatchError: A recurring transaction without line_id has
            several candidate lines.
    """
    result = MatchResult(by_line={line.id: [] for line in lines})

    recurring_index: dict[tuple[TransactionKind, str], list[str]] = {}
    for line in lines:
        if line.recurring:
            key = (line.kind, _name_key(line.name))
            recurring_index.setdefault(key, []).append(line.id)

    for tx in transactions:
        if tx.line_id is not None:
            if tx.line_id in result.by_line:
                result.by_line[tx.line_id].append(tx)
                continue
            if strict_references:
                raise LineReferenceError(tx.id, tx.line_id)
            result.unmatched.append(tx)
            result.dangling_ids.append(tx.id)
            continue

        if tx.recurring:
            candidates = recurring_index.get((tx.kind, _name_key(tx.name)), [])
            if len(candidates) > 1:
                raise AmbiguousMatchError(tx.id, candidates)
            if candidates:
                result.by_line[candidates[0]].append(tx)
                continue

        result.unmatched.append(tx)

    return result


def calculate_percentage(consumed: int, planned: int) -> Decimal | None:
    """Share of the planned amount consumed, 0-100+, two decimals.

    Returns None when nothing was planned.
    """
    if planned == 0:
        return None
    return (Decimal(consumed * 100) / Decimal(planned)).quantize(
        PERCENTAGE_QUANTUM, rounding=ROUND_HALF_EVEN
    )


def calculate_status(consumed: int, planned: int) -> ConsumptionStatus:
    if consumed > planned:
        return ConsumptionStatus.OVER
    if consumed == planned:
        return ConsumptionStatus.AT
    return ConsumptionStatus.UNDER


def _build_line_consumption(
    line: BudgetLine,
    matched: Sequence[Transaction],
) -> LineConsumption:
    consumed = sum(tx.amount for tx in matched)
    return LineConsumption(
        line_id=line.id,
        planned=line.planned_amount,
        consumed=consumed,
        remaining=line.planned_amount - consumed,
        percentage=calculate_percentage(consumed, line.planned_amount),
        status=calculate_status(consumed, line.planned_amount),
        transaction_ids=tuple(tx.id for tx in matched),
    )


def compute_line_consumption(line: BudgetLine, budget: Budget) -> LineConsumption:
    """Compute the consumption of a single budget line.

    Matching always runs against every line of the budget, so a recurring
    transaction shared by several lines raises instead of being counted
    once per line.

    Args:
        line: One of ``budget.lines``.
        budget: Budget holding the line and its transactions.

    Returns:
        LineConsumption for ``line``.

    Raises:
        ValidationError: ``line`` is not part of ``budget``.
        AmbiguousMatchError: A recurring transaction has several candidate
            lines.
    """
    if budget.line_by_id(line.id) != line:
        raise ValidationError(f"line {line.id!r} is not part of budget {budget.id!r}")

    matched = match_transactions(budget.lines, budget.transactions)
    return _build_line_consumption(line, matched.by_line[line.id])


def calculate_totals(transactions: Iterable[Transaction]) -> ConsumptionTotals:
    """Sum transaction amounts per kind, whatever they were matched to."""
    sums = {kind: 0 for kind in TransactionKind}
    for tx in transactions:
        sums[tx.kind] += tx.amount
    return ConsumptionTotals(
        income=sums[TransactionKind.INCOME],
        expense=sums[TransactionKind.EXPENSE],
        saving=sums[TransactionKind.SAVING],
    )


def compute_all_consumptions(
    budget: Budget,
    strict_references: bool = False,
) -> ConsumptionReport:
    """Compute every line's consumption of a budget in one matching pass.

    Args:
        budget: Budget with its lines and transactions.
        strict_references: Raise LineReferenceError on unknown line ids
            instead of reporting them in ``unmatched``.

    Returns:
        ConsumptionReport with per-line results (in line order), the
        unmatched transactions and totals per kind.

    Raises:
        AmbiguousMatchError: No partial report is produced in that case.
    """
    matched = match_transactions(budget.lines, budget.transactions, strict_references)

    per_line = tuple(
        _build_line_consumption(line, matched.by_line[line.id]) for line in budget.lines
    )

    return ConsumptionReport(
        per_line=per_line,
        unmatched=tuple(matched.unmatched),
        dangling_ids=tuple(matched.dangling_ids),
        totals=calculate_totals(budget.transactions),
    )
