"""
Validation Utilities for the Salary Ledger service
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from salary_ledger.core.exceptions import (
    InvalidUserError,
    ValidationError
)

CENT = Decimal("0.01")


def validate_user_id(value: Any) -> int:
    """Validate a caller-supplied user identity as a positive integer."""
    # bool is an int subclass
    if isinstance(value, bool):
        raise InvalidUserError(value)

    if isinstance(value, int):
        user_id = value
    elif isinstance(value, str) and value.strip().isdigit():
        user_id = int(value.strip())
    else:
        raise InvalidUserError(value)

    if user_id <= 0:
        raise InvalidUserError(value)

    return user_id


def validate_positive_amount(value: Any, field_name: str = "amount") -> Decimal:
    """Validate that a money or hours value is a finite number greater than zero."""
    if value is None or isinstance(value, bool):
        raise ValidationError(
            detail=f"{field_name} is required",
            field=field_name,
            value=value
        )

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(
            detail=f"{field_name} must be a number",
            field=field_name,
            value=str(value)
        )

    if not amount.is_finite() or amount <= 0:
        raise ValidationError(
            detail=f"{field_name} must be a positive number",
            field=field_name,
            value=str(value)
        )

    # Stored as Numeric(_, 2)
    if amount.as_tuple().exponent < -2 and amount != amount.quantize(CENT, rounding=ROUND_HALF_UP):
        raise ValidationError(
            detail=f"{field_name} must have at most 2 decimal places",
            field=field_name,
            value=str(value)
        )

    return amount
