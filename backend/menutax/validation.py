from __future__ import annotations
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from menutax.time_utils import parse_iso_date


# Maximum price: €99,999.99
# This prevents database overflow issues and nonsensical prices
MAX_PRICE = Decimal("99999.99")

# Rates are fractions; 100% would mean the tax equals the base price
MAX_TAX_RATE = Decimal("1")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate slug)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or not stripped.lstrip("-").isdigit():
                raise ValidationError(f"{col.key} must be an integer")
            return int(stripped)
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be true or false")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes the plain-column part of incoming JSON against
    SQLAlchemy column metadata (nullable, type, String length) and the
    policy allowlist. Keys outside writable_fields are ignored here; money
    and rate fields are parsed separately with parse_money / parse_rate.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(repr(value)) if isinstance(value, float) else Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return amount


def parse_money(value: Any, field: str, *, allow_negative: bool = False) -> Decimal:
    """Euro amount with at most 2 decimals."""
    amount = _to_decimal(value, field)
    if amount.as_tuple().exponent < -2:
        raise ValidationError(f"{field} must have at most 2 decimal places")
    if amount < 0 and not allow_negative:
        raise ValidationError(f"{field} must be >= 0")
    if abs(amount) > MAX_PRICE:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE}")
    return amount


def parse_rate(value: Any, field: str = "tax_rate") -> Decimal | None:
    """Tax rate as a fraction (0.135); None clears an override."""
    if value is None:
        return None
    rate = _to_decimal(value, field)
    if rate < 0 or rate >= MAX_TAX_RATE:
        raise ValidationError(f"{field} must be a fraction between 0 and 1 (e.g. 0.135)")
    if rate.as_tuple().exponent < -4:
        raise ValidationError(f"{field} supports at most 4 decimal places")
    return rate


def parse_positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 1:
        raise ValidationError(f"{field} must be an integer >= 1")
    return value


def parse_non_negative_int(value: Any, field: str, *, default: int = 0) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be an integer >= 0")
    return value


def parse_date_param(value: str | None, field: str, *, required: bool = True) -> date | None:
    try:
        parsed = parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")
    if parsed is None and required:
        raise ValidationError(f"{field} is required")
    return parsed


def parse_year_month(year: Any, month: Any = None, *, month_required: bool = False) -> tuple[int, int | None]:
    try:
        year_val = int(year)
    except (TypeError, ValueError):
        raise ValidationError("year must be an integer")
    if not 1970 <= year_val <= 9999:
        raise ValidationError("year is out of range")

    if month is None or month == "":
        if month_required:
            raise ValidationError("month is required")
        return year_val, None
    try:
        month_val = int(month)
    except (TypeError, ValueError):
        raise ValidationError("month must be an integer")
    if not 1 <= month_val <= 12:
        raise ValidationError("month must be between 1 and 12")
    return year_val, month_val


def enforce_range(start: datetime | date, end: datetime | date, *, max_days: int | None = None) -> None:
    """Reject reversed or over-long reporting windows."""
    if end < start:
        raise ValidationError("end date must not be before start date")
    if max_days is not None and (end - start) > timedelta(days=max_days):
        raise ValidationError(f"date range cannot exceed {max_days} days")
