"""Form validation package."""

from expense_ledger.validation.validator import (
    MIN_PASSWORD_LENGTH,
    ValidationError,
    parse_income,
    validate_expense_input,
    validate_registration,
)

__all__ = [
    "MIN_PASSWORD_LENGTH",
    "ValidationError",
    "parse_income",
    "validate_expense_input",
    "validate_registration",
]
