"""Entry-boundary validation.

Raw records coming from the caller (parsed JSON, database rows mapped to
dicts) are checked here once. The calculators only ever see validated
``Budget`` instances.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from budgetchain.core.exceptions import ValidationError
from budgetchain.core.models import MAX_YEARS_AHEAD, Budget


class ValidationResult(BaseModel):
    """Either a validated budget or the list of problems found."""

    budget: Budget | None = None
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.budget is not None and not self.errors

    def unwrap(self) -> Budget:
        """Return the budget or raise ValidationError with every problem."""
        if not self.ok:
            raise ValidationError(self.errors or ["no budget"])
        return self.budget  # type: ignore[return-value]


def validate_budget(
    payload: dict[str, Any] | Budget,
    today: date,
    max_years_ahead: int = MAX_YEARS_AHEAD,
) -> ValidationResult:
    """Validate a raw budget record.

    Field checks come from the models; ``Budget`` itself rejects duplicated
    ids and transactions recorded against another budget.

    Args:
        payload: Mapping shaped like ``Budget`` (transactions may use
            ``type`` for their kind), or an already built Budget.
        today: Current date, bounding the period year to the planning
            horizon.
        max_years_ahead: Size of the planning horizon.

    Returns:
        ValidationResult; never raises for bad input.
    """
    if isinstance(payload, Budget):
        payload = payload.model_dump(by_alias=True)

    try:
        budget = Budget.model_validate(
            payload,
            context={"today": today, "max_years_ahead": max_years_ahead},
        )
    except PydanticValidationError as e:
        return ValidationResult(errors=ValidationError.from_pydantic(e).errors)

    return ValidationResult(budget=budget)


def validate_budgets(
    payloads: list[dict[str, Any]],
    today: date,
    max_years_ahead: int = MAX_YEARS_AHEAD,
) -> list[Budget]:
    """Validate several budgets, raising one ValidationError for all of them."""
    budgets: list[Budget] = []
    errors: list[str] = []
    for position, payload in enumerate(payloads):
        result = validate_budget(payload, today, max_years_ahead)
        if result.ok:
            budgets.append(result.unwrap())
        else:
            errors.extend(f"budget[{position}]: {error}" for error in result.errors)
    if errors:
        raise ValidationError(errors)
    return budgets
