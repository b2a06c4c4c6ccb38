"""Builders for test budgets."""

from datetime import date

from budgetchain.core.models import Budget, BudgetLine, Period, Transaction, TransactionKind

BUDGET_ID = "budget-2025-01"
TODAY = date(2025, 1, 15)


def make_period(year: int, month: int) -> Period:
    return Period.of(year, month, today=TODAY)


def make_line(
    line_id: str,
    kind: str = "expense",
    planned: int = 0,
    recurring: bool = False,
    name: str = "",
    checked: bool = False,
) -> BudgetLine:
    return BudgetLine(
        id=line_id,
        kind=TransactionKind(kind),
        planned_amount=planned,
        recurring=recurring,
        name=name,
        checked=checked,
    )


def make_tx(
    tx_id: str,
    amount: int,
    kind: str = "expense",
    line_id: str | None = None,
    recurring: bool = False,
    name: str = "",
    budget_id: str = BUDGET_ID,
    checked: bool = False,
) -> Transaction:
    return Transaction(
        id=tx_id,
        budget_id=budget_id,
        amount=amount,
        kind=TransactionKind(kind),
        line_id=line_id,
        recurring=recurring,
        name=name,
        checked=checked,
    )


def make_budget(
    lines: list[BudgetLine] | None = None,
    transactions: list[Transaction] | None = None,
    year: int = 2025,
    month: int = 1,
    starting_balance: int = 0,
    budget_id: str = BUDGET_ID,
) -> Budget:
    return Budget(
        id=budget_id,
        period=make_period(year, month),
        starting_balance=starting_balance,
        lines=tuple(lines or ()),
        transactions=tuple(transactions or ()),
    )
