"""
Shared utility functions.
"""

from typing import Optional
import uuid as uuid_mod
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from ledger.errors import InvalidAmount, NotFound


def parse_uuid(value, kind: str = "record") -> uuid_mod.UUID:
    """
    Parse a value as UUID. A malformed id can never resolve, so it is
    reported as NotFound instead of letting a bare ValueError bubble up.
    """
    if isinstance(value, uuid_mod.UUID):
        return value
    try:
        return uuid_mod.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        raise NotFound(kind, value)


def utcnow() -> datetime:
    """
    Return the current UTC time as a naive datetime (no tzinfo).
    Naive datetimes are used because our DB columns are TIMESTAMP WITHOUT TIME ZONE.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_decimal(value) -> Optional[Decimal]:
    """
    Parse a money value that may arrive as Decimal, int, float or text.
    Returns None when the value is missing or not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


def money(value) -> Decimal:
    """Lenient money parse for rollups: anything unparseable counts as zero."""
    parsed = parse_decimal(value)
    return parsed if parsed is not None else Decimal("0")


# Largest value a Numeric(12, 2) money column holds
MAX_AMOUNT = Decimal("9999999999.99")
CENT = Decimal("0.01")


def parse_amount(value, label: str = "Amount") -> Decimal:
    """
    Strict money parse for writes: finite, non-negative, at most two decimal
    places and within the column's range. Anything else is InvalidAmount.
    """
    amount = parse_decimal(value)
    if amount is None:
        raise InvalidAmount(f"{label} {value!r} is not a valid number")
    if amount < 0:
        raise InvalidAmount(f"{label} must be >= 0, got {amount}")
    if amount > MAX_AMOUNT:
        raise InvalidAmount(f"{label} must not exceed {MAX_AMOUNT}, got {amount}")
    if amount != amount.quantize(CENT):
        raise InvalidAmount(f"{label} must have at most two decimal places, got {amount}")
    return amount
