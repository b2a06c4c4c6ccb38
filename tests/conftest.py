"""Shared fixtures."""

from datetime import date, datetime

import pytest

from budgetchain.core.models import Budget
from tests.helpers import make_budget, make_line, make_tx


@pytest.fixture
def today() -> date:
    return date(2025, 1, 15)


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 1, 15, 10, 30)


@pytest.fixture
def january_budget() -> Budget:
    """January 2025: salary fully received, groceries 280.00 of 300.00 spent.

    Starting balance 1000.00, expected ending balance 3200.00.
    """
    return make_budget(
        lines=[
            make_line("salary", "income", 500000, recurring=True, name="Salaire"),
            make_line("groceries", "expense", 300000, name="Courses"),
        ],
        transactions=[
            make_tx("tx-salary", 500000, "income", line_id="salary"),
            make_tx("tx-migros", 200000, "expense", line_id="groceries"),
            make_tx("tx-coop", 80000, "expense", line_id="groceries"),
        ],
        starting_balance=100000,
    )
