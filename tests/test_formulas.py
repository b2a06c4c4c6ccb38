"""Tests for budget formulas."""

import random
from datetime import date, datetime
from decimal import Decimal

from budgetchain.core.models import Budget, ConsumptionTotals
from budgetchain.core.money import divide_minor_units
from budgetchain.engine.consumption import compute_all_consumptions
from budgetchain.engine.formulas import (
    all_lines_due,
    calculate_available_to_spend,
    calculate_daily_allowance,
    calculate_ending_balance,
    calculate_projected_ending_balance,
    calculate_projected_expenses,
    calculate_projected_income,
    calculate_realized_metrics,
    calculate_reserved,
    check_summary_coherence,
    compute_period_summary,
    non_recurring_lines_due,
    summarize_budget,
)
from tests.helpers import make_budget, make_line, make_period, make_tx


def _budget_with_pending_rent() -> Budget:
    """Rent not paid yet, groceries partly spent, one saving line overspent."""
    return make_budget(
        lines=[
            make_line("salary", "income", 500000, recurring=True, name="Salaire"),
            make_line("rent", "expense", 150000, recurring=True, name="Loyer"),
            make_line("food", "expense", 60000),
            make_line("pillar3", "saving", 50000, recurring=True, name="3e pilier"),
        ],
        transactions=[
            make_tx("t1", 500000, "income", line_id="salary"),
            make_tx("t2", 20000, line_id="food"),
            make_tx("t3", 70000, "saving", line_id="pillar3"),
        ],
        starting_balance=0,
    )


class TestEndingBalance:
    """Tests for calculate_ending_balance function."""

    def test_scenario_a(self, january_budget: Budget) -> None:
        report = compute_all_consumptions(january_budget)
        assert calculate_ending_balance(100000, report.totals) == 320000

    def test_savings_reduce_balance(self) -> None:
        totals = ConsumptionTotals(income=1000, expense=300, saving=200)
        assert calculate_ending_balance(0, totals) == 500

    def test_can_be_negative(self) -> None:
        totals = ConsumptionTotals(income=0, expense=5000)
        assert calculate_ending_balance(1000, totals) == -4000


class TestAvailableToSpend:
    """Tests for calculate_available_to_spend and due policies."""

    def test_everything_due_reserves_nothing(self) -> None:
        budget = _budget_with_pending_rent()
        report = compute_all_consumptions(budget)
        available = calculate_available_to_spend(
            0, report.totals, budget.lines, report.per_line, all_lines_due
        )
        assert available == 500000 - 20000 - 70000

    def test_recurring_lines_not_due_are_reserved(self) -> None:
        """Rent is reserved in full, the overspent saving line reserves nothing."""
        budget = _budget_with_pending_rent()
        report = compute_all_consumptions(budget)

        reserved = calculate_reserved(budget.lines, report.per_line, non_recurring_lines_due)
        assert reserved == 150000

        available = calculate_available_to_spend(
            0, report.totals, budget.lines, report.per_line, non_recurring_lines_due
        )
        assert available == 410000 - 150000

    def test_overspent_line_does_not_add_back_its_overrun(self) -> None:
        """120.00 spent on a 100.00 line not due yet: available is the ending balance."""
        line = make_line("fun", "expense", 10000, recurring=True, name="Sorties")
        budget = make_budget(lines=[line], transactions=[make_tx("tx-1", 12000, line_id="fun")])
        report = compute_all_consumptions(budget)

        assert report.consumption_for("fun").remaining == -2000
        available = calculate_available_to_spend(
            50000, report.totals, budget.lines, report.per_line, non_recurring_lines_due
        )
        assert available == 50000 - 12000

    def test_income_lines_never_reserved(self) -> None:
        lines = [make_line("salary", "income", 500000, recurring=True)]
        assert calculate_reserved(lines, [], lambda line: False) == 0

    def test_line_without_consumption_reserves_planned(self) -> None:
        lines = [make_line("rent", "expense", 150000)]
        assert calculate_reserved(lines, [], lambda line: False) == 150000

    def test_custom_predicate(self) -> None:
        budget = _budget_with_pending_rent()
        report = compute_all_consumptions(budget)
        reserved = calculate_reserved(
            budget.lines, report.per_line, lambda line: line.id != "food"
        )
        assert reserved == 40000


class TestDailyAllowance:
    """Tests for calculate_daily_allowance function."""

    def test_spreads_over_remaining_days(self) -> None:
        """310000 over the 17 days from January 15th to 31st."""
        allowance = calculate_daily_allowance(
            310000, make_period(2025, 1), datetime(2025, 1, 15, 10, 30)
        )
        assert allowance == 18235

    def test_last_day(self) -> None:
        allowance = calculate_daily_allowance(
            5000, make_period(2025, 1), datetime(2025, 1, 31, 23, 0)
        )
        assert allowance == 5000

    def test_none_when_period_is_over(self) -> None:
        allowance = calculate_daily_allowance(
            310000, make_period(2025, 1), datetime(2025, 2, 1)
        )
        assert allowance is None

    def test_zero_when_nothing_available(self) -> None:
        period = make_period(2025, 1)
        assert calculate_daily_allowance(0, period, date(2025, 1, 15)) == 0
        assert calculate_daily_allowance(-2500, period, date(2025, 1, 15)) == 0

    def test_upcoming_period_uses_full_length(self) -> None:
        allowance = calculate_daily_allowance(
            31000, make_period(2025, 1), date(2024, 12, 20)
        )
        assert allowance == 1000

    def test_pay_day_period(self) -> None:
        """March 2025 with pay day 27 runs from February 27th to March 26th."""
        allowance = calculate_daily_allowance(
            28000, make_period(2025, 3), date(2025, 2, 27), pay_day_of_month=27
        )
        assert allowance == 1000


class TestDivideMinorUnits:
    """Half-to-even rounding of divisions."""

    def test_rounds_half_to_even(self) -> None:
        assert divide_minor_units(5, 2) == 2
        assert divide_minor_units(7, 2) == 4

    def test_exact(self) -> None:
        assert divide_minor_units(300, 3) == 100


class TestComputePeriodSummary:
    """Tests for compute_period_summary and summarize_budget."""

    def test_scenario_a(self, january_budget: Budget, now: datetime) -> None:
        report = compute_all_consumptions(january_budget)
        summary = compute_period_summary(january_budget, 100000, report, now=now)

        assert summary.period == make_period(2025, 1)
        assert summary.ending_balance == 320000
        assert summary.available_to_spend == 320000
        assert summary.daily_allowance == divide_minor_units(320000, 17)
        assert summary.unmatched == ()
        assert not summary.is_deficit

    def test_no_allowance_without_now(self, january_budget: Budget) -> None:
        report = compute_all_consumptions(january_budget)
        assert compute_period_summary(january_budget, 0, report).daily_allowance is None

    def test_summarize_uses_stored_starting_balance(self, january_budget: Budget) -> None:
        assert summarize_budget(january_budget).ending_balance == 320000
        assert summarize_budget(january_budget, starting_balance=0).ending_balance == 220000

    def test_deficit(self) -> None:
        budget = make_budget(transactions=[make_tx("t1", 5000)], starting_balance=1000)
        summary = summarize_budget(budget)
        assert summary.ending_balance == -4000
        assert summary.is_deficit

    def test_unmatched_forwarded(self) -> None:
        budget = make_budget(transactions=[make_tx("t1", 999, line_id="ghost")])
        summary = summarize_budget(budget)
        assert [t.id for t in summary.unmatched] == ["t1"]
        assert summary.ending_balance == -999

    def test_deterministic(self, january_budget: Budget, now: datetime) -> None:
        assert summarize_budget(january_budget, now=now) == summarize_budget(
            january_budget, now=now
        )

    def test_conservation_law(self) -> None:
        """ending = start + income - expense - saving, exactly, on random budgets."""
        rng = random.Random(42)
        kinds = ["income", "expense", "saving"]

        for _ in range(200):
            lines = [
                make_line(
                    f"l{i}",
                    rng.choice(kinds),
                    rng.randint(0, 500000),
                    recurring=rng.random() < 0.5,
                )
                for i in range(rng.randint(0, 6))
            ]
            line_ids = [line.id for line in lines] + [None, "ghost"]
            transactions = [
                make_tx(
                    f"t{i}",
                    rng.randint(1, 300000),
                    rng.choice(kinds),
                    line_id=rng.choice(line_ids),
                )
                for i in range(rng.randint(0, 15))
            ]
            start = rng.randint(-1000000, 1000000)
            budget = make_budget(lines, transactions, starting_balance=start)

            for policy in (all_lines_due, non_recurring_lines_due):
                summary = summarize_budget(budget, is_due=policy)
                income = sum(t.amount for t in transactions if t.kind.value == "income")
                outflow = sum(t.amount for t in transactions if t.kind.value != "income")
                assert summary.ending_balance == start + income - outflow
                assert summary.available_to_spend <= summary.ending_balance
                assert check_summary_coherence(summary)

    def test_coherence_detects_tampering(self, january_budget: Budget) -> None:
        summary = summarize_budget(january_budget)
        tampered = summary.model_copy(update={"ending_balance": summary.ending_balance + 1})
        assert not check_summary_coherence(tampered)


class TestProjection:
    """Tests for projected figures (envelope rule)."""

    def test_projected_expenses(self) -> None:
        """Planned lines count in full, overruns and unmatched on top."""
        budget = make_budget(
            lines=[
                make_line("rent", "expense", 150000),
                make_line("food", "expense", 60000),
                make_line("pillar3", "saving", 50000),
                make_line("salary", "income", 500000),
            ],
            transactions=[
                make_tx("t1", 150000, line_id="rent"),
                make_tx("t2", 83000, line_id="food"),
                make_tx("t3", 10000, name="Cinéma"),
                make_tx("t4", 2000, "income", name="Remboursement"),
            ],
        )
        report = compute_all_consumptions(budget)

        assert calculate_projected_expenses(budget, report) == 150000 + 83000 + 50000 + 10000
        assert calculate_projected_income(budget, report) == 502000
        assert calculate_projected_ending_balance(budget, 100000, report) == (
            100000 + 502000 - 293000
        )

    def test_projection_without_transactions_is_the_plan(self) -> None:
        budget = make_budget(
            lines=[make_line("salary", "income", 500000), make_line("rent", "expense", 150000)]
        )
        report = compute_all_consumptions(budget)
        assert calculate_projected_ending_balance(budget, 0, report) == 350000


class TestRealizedMetrics:
    """Tests for calculate_realized_metrics function."""

    def test_checked_items_only(self) -> None:
        budget = make_budget(
            lines=[
                make_line("salary", "income", 500000, checked=True),
                make_line("rent", "expense", 150000, checked=True),
                make_line("food", "expense", 60000),
            ],
            transactions=[
                make_tx("t1", 20000, line_id="food", checked=True),
                make_tx("t2", 5000, "saving", checked=True),
                make_tx("t3", 3000),
            ],
        )
        metrics = calculate_realized_metrics(budget)

        assert metrics.realized_income == 500000
        assert metrics.realized_expenses == 175000
        assert metrics.realized_balance == 325000
        assert metrics.checked_count == 4
        assert metrics.total_count == 6
        assert metrics.completion_percentage == Decimal("66.67")

    def test_empty_budget(self) -> None:
        metrics = calculate_realized_metrics(make_budget())
        assert metrics.total_count == 0
        assert metrics.completion_percentage == Decimal(0)
