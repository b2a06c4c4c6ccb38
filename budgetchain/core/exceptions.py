"""Exceptions raised by the budgetchain engine."""

from pydantic import ValidationError as PydanticValidationError


class BudgetChainError(Exception):
    """Base exception for budgetchain."""

    pass


class ValidationError(BudgetChainError, ValueError):
    """Input record is malformed (period out of range, bad amount, ...).

    Attributes:
        errors: One human-readable message per problem found.
    """

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        """Flatten a Pydantic error into "loc: message" strings."""
        errors = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err["loc"])
            msg = err["msg"]
            if err["type"] == "value_error" and "error" in err.get("ctx", {}):
                # Our own validators: drop Pydantic's "Value error, " prefix
                msg = str(err["ctx"]["error"])
            errors.append(f"{loc}: {msg}" if loc else msg)
        return cls(errors)


class AmbiguousMatchError(BudgetChainError):
    """A recurring transaction matches more than one candidate line."""

    def __init__(self, transaction_id: str, candidate_ids: list[str]):
        self.transaction_id = transaction_id
        self.candidate_ids = list(candidate_ids)
        super().__init__(
            f"Transaction {transaction_id!r} matches several recurring lines: "
            f"{', '.join(self.candidate_ids)}"
        )


class LineReferenceError(BudgetChainError):
    """A transaction references a line that is not part of its budget.

    Only raised when strict reference checking is requested; by default
    such transactions are reported as unmatched.
    """

    def __init__(self, transaction_id: str, line_id: str):
        self.transaction_id = transaction_id
        self.line_id = line_id
        super().__init__(
            f"Transaction {transaction_id!r} references unknown line {line_id!r}"
        )
