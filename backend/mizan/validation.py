from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from mizan.extensions import db
from mizan.money import HUNDRED, ZERO, to_decimal
from mizan.time_utils import parse_iso_date, parse_iso_datetime


# Upper bound for any single amount (NUMERIC(14, 2))
MAX_AMOUNT = Decimal("999999999999.99")


class ValidationError(ValueError):
    """400-level input problem. Raised before anything is written."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate document number)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class NotFoundError(LookupError):
    """404: a referenced row does not exist."""


def get_or_404(model, ident, label: str | None = None):
    """Fetch a row by primary key or raise NotFoundError."""
    row = db.session.get(model, ident) if ident is not None else None
    if row is None:
        raise NotFoundError(f"{label or model.__name__} {ident} not found")
    return row


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set
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
        return bool(value)

    # Numeric before the others: amounts and quantities arrive as JSON numbers or strings
    if isinstance(coltype, Numeric):
        try:
            number = to_decimal(value, field=col.key)
        except ValueError as e:
            raise ValidationError(str(e))
        if abs(number) > MAX_AMOUNT:
            raise ValidationError(f"{col.key} is out of range")
        return number

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        try:
            parsed = parse_iso_date(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
        if parsed is None:
            raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
        return parsed

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Keys that are in the policy but not columns of the model (e.g. "items")
    are passed through untouched for the caller to validate.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols.get(k)
        if col is None:
            patch[k] = raw
            continue

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_non_negative(patch: dict, *fields: str) -> None:
    for field in fields:
        value = patch.get(field)
        if value is not None and value < ZERO:
            raise ValidationError(f"{field} must be >= 0")


def enforce_percentage(patch: dict, *fields: str) -> None:
    for field in fields:
        value = patch.get(field)
        if value is not None and not (ZERO <= value <= HUNDRED):
            raise ValidationError(f"{field} must be between 0 and 100")


def require_date(value, field: str, *, default: date | None = None) -> date:
    """Parse a business date; fall back to default (if given) when absent."""
    if value in (None, ""):
        if default is not None:
            return default
        raise ValidationError(f"{field} is required")
    try:
        parsed = parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
    if parsed is None:
        raise ValidationError(f"{field} is required")
    return parsed


def require_int(value, field: str, *, required: bool = True) -> int | None:
    if value in (None, ""):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{field} must be an integer")


def require_decimal(value, field: str, *, default: Decimal | None = None) -> Decimal:
    if value in (None, ""):
        if default is not None:
            return default
        raise ValidationError(f"{field} is required")
    try:
        number = to_decimal(value, field=field)
    except ValueError as e:
        raise ValidationError(str(e))
    if abs(number) > MAX_AMOUNT:
        raise ValidationError(f"{field} is out of range")
    return number


def parse_line_items(
    raw_items,
    *,
    priced: bool,
    require_warehouse: bool = False,
) -> list[dict]:
    """
    Normalize a JSON list of line items.

    Each item needs product_id and quantity; priced items also take
    unit_price and an optional discount_percentage. Range checks on the
    numbers are left to the totals service so every caller shares them.
    """
    if raw_items is None:
        raw_items = []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    items: list[dict] = []
    for index, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        item = {
            "product_id": require_int(raw.get("product_id"), f"items[{index}].product_id"),
            "quantity": require_decimal(raw.get("quantity"), f"items[{index}].quantity"),
        }
        if priced:
            item["unit_price"] = require_decimal(raw.get("unit_price"), f"items[{index}].unit_price")
            item["discount_percentage"] = require_decimal(
                raw.get("discount_percentage"),
                f"items[{index}].discount_percentage",
                default=ZERO,
            )
        elif raw.get("unit_price") not in (None, ""):
            item["unit_price"] = require_decimal(raw.get("unit_price"), f"items[{index}].unit_price")
        if require_warehouse:
            item["warehouse_id"] = require_int(raw.get("warehouse_id"), f"items[{index}].warehouse_id")
        if raw.get("notes"):
            item["notes"] = str(raw["notes"]).strip()
        items.append(item)
    return items
