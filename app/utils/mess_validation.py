"""Mess ledger errors and input validation."""
from decimal import Decimal, DecimalException, InvalidOperation
from typing import Any, Optional

from bson.decimal128 import Decimal128


class MessError(Exception):
    """Base class for every error raised by the ledger core."""
    pass


class ValidationError(MessError):
    """Bad input: non-positive amount, empty name, negative count."""
    pass


class NotFoundError(MessError):
    """A referenced member, expense, meal log or archive does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id


class PersistenceError(MessError):
    """The external store rejected or failed an operation."""
    pass


class InconsistentStateError(MessError):
    """
    A cycle was archived but the live ledger could not be reset.

    Callers must run the cleanup again (it is idempotent) instead of
    closing the cycle a second time.
    """

    def __init__(self, message: str, archive_id: Optional[str] = None):
        super().__init__(message)
        self.archive_id = archive_id


def to_decimal(value: Any, field: str) -> Decimal:
    """Coerce a number-like value to Decimal without going through float."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number, got {value!r}")
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise ValidationError(f"{field} must be a number, got {value!r}")

    if not result.is_finite():
        raise ValidationError(f"{field} must be finite")

    # Stored as BSON Decimal128: at most 34 significant digits
    try:
        Decimal128(result)
    except DecimalException:
        raise ValidationError(f"{field} has too many digits to store, got {value!r}")
    return result


def validate_name(name: Optional[str]) -> str:
    """Member names must contain at least one non-blank character."""
    if name is None or not name.strip():
        raise ValidationError("Member name must not be empty")
    return name.strip()


def validate_positive_amount(amount: Any, field: str = "amount") -> Decimal:
    value = to_decimal(amount, field)
    if value <= 0:
        raise ValidationError(f"{field} must be positive, got {value}")
    return value


def validate_description(description: Optional[str]) -> str:
    if description is None or not description.strip():
        raise ValidationError("Expense description must not be empty")
    return description.strip()


def validate_meal_count(count: Any) -> Decimal:
    """Meal counts are non-negative; half meals are allowed."""
    value = to_decimal(count, "count")
    if value < 0:
        raise ValidationError(f"Meal count must not be negative, got {value}")
    return value


def make_avatar(name: str) -> str:
    """First two characters of the name, upper-cased."""
    return name[:2].upper()
