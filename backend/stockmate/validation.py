from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from stockmate.time_utils import parse_iso_datetime
from stockmate.units import UnitType, normalize_unit


# Maximum monetary amount for a decimal(10,2) column
MAX_AMOUNT = Decimal("99999999.99")

# Monetary comparisons treat differences below one cent as equal
MONEY_EPSILON = Decimal("0.01")

Q2 = Decimal("0.01")
Q3 = Decimal("0.001")


class ValidationError(ValueError):
    """400-level input problem or business-rule violation."""


class ConflictError(ValueError):
    """409-level uniqueness conflict (e.g., duplicate name)."""


class NotFoundError(LookupError):
    """404-level missing entity."""

    def __init__(self, entity: str, entity_id: Any, message: str | None = None):
        super().__init__(message or f"{entity} with ID {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


def q2(value: Decimal) -> Decimal:
    return value.quantize(Q2, rounding=ROUND_HALF_UP)


def q3(value: Decimal) -> Decimal:
    return value.quantize(Q3, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """
    Coerce JSON-ish numeric input to Decimal.

    Floats go through str() so 99.995 stays 99.995 rather than its binary
    approximation. Booleans, blanks, NaN and infinities are rejected.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def parse_decimal(
    value: Any,
    field: str,
    *,
    minimum: Decimal | None = None,
    allow_equal: bool = True,
    maximum: Decimal | None = None,
) -> Decimal:
    result = to_decimal(value, field)
    if minimum is not None:
        if allow_equal and result < minimum:
            raise ValidationError(f"{field} must be >= {minimum}")
        if not allow_equal and result <= minimum:
            raise ValidationError(f"{field} must be > {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field} cannot exceed {maximum}")
    return result


def parse_int(value: Any, field: str) -> int:
    # Strict: reject floats, bools and scientific notation
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        digits = stripped[1:] if stripped.startswith("-") else stripped
        if digits.isdigit():
            return int(stripped)
    raise ValidationError(f"{field} must be an integer")


def parse_unit(value: Any, field: str = "unit") -> str:
    """Normalize a unit and check it against the supported unit set."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    unit = normalize_unit(value)
    if unit not in UnitType.ALL:
        raise ValidationError(
            f"{field} '{value}' is not supported. Supported units: {', '.join(UnitType.ALL)}"
        )
    return unit


def parse_optional_datetime(value: Any, field: str) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 datetime")
    raise ValidationError(f"{field} must be an ISO-8601 datetime")


def parse_optional_text(value: Any, field: str, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    text = value.strip()
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text or None


def require_fields(payload: Any, fields: Iterable[str]) -> dict:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    missing = [f for f in fields if payload.get(f) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return payload


def require_list(payload: dict, field: str) -> list:
    value = payload.get(field)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be a list")
    for entry in value:
        if not isinstance(entry, dict):
            raise ValidationError(f"{field} entries must be objects")
    return value


def parse_item_quantity(value: Any, field: str = "quantity") -> Decimal:
    """
    Document line quantity, rounded to 2 places as stored.

    The > 0 check runs on the rounded value, so "0.004" is rejected
    instead of becoming a zero-quantity line.
    """
    quantity = q2(to_decimal(value, field))
    if quantity <= 0:
        raise ValidationError(f"{field} must be at least 0.01")
    return quantity
