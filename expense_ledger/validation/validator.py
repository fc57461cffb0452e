"""
Form Validation

Checks user-typed form input before anything is sent to a remote API.

DESIGN DECISION: Validation happens in two stages:

STAGE 1 - FIELD CHECKS:
- Required text present
- Numbers parse
- Dates parse

STAGE 2 - CROSS-FIELD CHECKS:
- Password and confirmation match
- Password length

The first failing field raises ``ValidationError``; nothing reaches the
network until the form is clean.

IMPORTANT: Validation NEVER silently fixes issues. It reports them for
the user to correct.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from expense_ledger.ledger.months import UnparseableDate, parse_calendar_date
from expense_ledger.models.identity import RegistrationProfile
from expense_ledger.models.record import ExpenseInput

MIN_PASSWORD_LENGTH = 6

# 1.234,56: dots group thousands only when a decimal comma follows
_GROUPED_NUMBER = re.compile(r"^-?\d{1,3}(\.\d{3})+,\d+$")


class ValidationError(Exception):
    """A form field failed validation."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def _require_text(field: str, value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(field, f"{label} is required")
    return text


def _parse_decimal(field: str, text: Optional[str], label: str) -> Decimal:
    raw = (text or "").strip()
    if _GROUPED_NUMBER.match(raw):
        raw = raw.replace(".", "")
    # Accept the decimal comma the currency formatter renders
    raw = raw.replace(",", ".")
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(field, f"{label} must be a number") from None
    if not value.is_finite():
        raise ValidationError(field, f"{label} must be a number")
    return value


def parse_income(text: Optional[str]) -> Decimal:
    """
    Parse a monthly income entry.

    Blank means unknown (0). Anything else must be a non-negative number.

    Raises:
        ValidationError: On non-numeric or negative input
    """
    if not (text or "").strip():
        return Decimal("0")
    income = _parse_decimal("monthly_income", text, "Monthly income")
    if income < 0:
        raise ValidationError("monthly_income", "Monthly income cannot be negative")
    return income


def validate_registration(
    display_name: str,
    email: str,
    password: str,
    confirm_password: str,
    income_text: Optional[str] = None,
) -> RegistrationProfile:
    """
    Validate the registration form.

    Returns:
        A RegistrationProfile ready for ``SessionLifecycle.register``

    Raises:
        ValidationError: For the first field that fails
    """
    # Stage 1
    name = _require_text("display_name", display_name, "Name")
    address = _require_text("email", email, "Email")
    if not password:
        raise ValidationError("password", "Password is required")
    income = parse_income(income_text)

    # Stage 2
    if password != confirm_password:
        raise ValidationError("confirm_password", "Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            "password",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    return RegistrationProfile(
        display_name=name,
        email=address,
        password=password,
        monthly_income=income,
    )


def validate_expense_input(
    description: str,
    category: str,
    amount_text: str,
    date_text: str = "",
) -> ExpenseInput:
    """
    Validate the add/edit expense form.

    A blank date is allowed; the record then keeps the selected month.

    Raises:
        ValidationError: For the first field that fails
    """
    text = _require_text("description", description, "Description")
    amount = _parse_decimal("amount", amount_text, "Amount")

    date_text = (date_text or "").strip()
    if date_text:
        try:
            parse_calendar_date(date_text)
        except UnparseableDate:
            raise ValidationError("date", f"Invalid date: {date_text}") from None

    return ExpenseInput(
        description=text,
        category=(category or "").strip(),
        amount=amount,
        date=date_text,
    )
