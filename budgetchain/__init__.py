"""budgetchain - monthly budget consumption and rollover engine.

Pure functions over validated budget records: match transactions to
budget lines, compute consumption and period summaries, and chain
consecutive months through their ending balance.
"""

from budgetchain.core.exceptions import (
    AmbiguousMatchError,
    BudgetChainError,
    LineReferenceError,
    ValidationError,
)
from budgetchain.core.models import (
    Budget,
    BudgetLine,
    ConsumptionReport,
    ConsumptionStatus,
    ConsumptionTotals,
    EngineConfig,
    LineConsumption,
    Period,
    PeriodOrder,
    PeriodSummary,
    RealizedMetrics,
    Transaction,
    TransactionKind,
)
from budgetchain.engine.consumption import compute_all_consumptions, compute_line_consumption
from budgetchain.engine.formulas import compute_period_summary, summarize_budget
from budgetchain.engine.rollover import resolve_rollover_chain
from budgetchain.engine.validation import ValidationResult, validate_budget

__version__ = "0.1.0"

__all__ = [
    "AmbiguousMatchError",
    "Budget",
    "BudgetChainError",
    "BudgetLine",
    "ConsumptionReport",
    "ConsumptionStatus",
    "ConsumptionTotals",
    "EngineConfig",
    "LineConsumption",
    "LineReferenceError",
    "Period",
    "PeriodOrder",
    "PeriodSummary",
    "RealizedMetrics",
    "Transaction",
    "TransactionKind",
    "ValidationError",
    "ValidationResult",
    "compute_all_consumptions",
    "compute_line_consumption",
    "compute_period_summary",
    "resolve_rollover_chain",
    "summarize_budget",
    "validate_budget",
]
