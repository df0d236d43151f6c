from __future__ import annotations
from datetime import date

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import BookkeepingError
from .time_utils import parse_iso_date


# Maximum amount: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_AMOUNT_CENTS = 999_999_999

# Upper bound for unit counts (sale quantity, stock levels, adjustments)
MAX_QUANTITY = 1_000_000

# SQLite INTEGER is a signed 64-bit value
MAX_ROW_ID = 2**63 - 1

STOCK_OPERATIONS = ("add", "subtract")


class ValidationError(BookkeepingError, ValueError):
    """400-level input problem (InvalidInput)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST / full replacement
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()


SALE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"date", "item", "quantity", "price_cents", "total_cents", "inventory_item_id"}),
    required_on_create=frozenset({"date", "item", "quantity", "price_cents"}),
)

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"date", "category", "store_vendor", "description", "amount_cents"}),
    required_on_create=frozenset({"date", "category", "store_vendor", "description", "amount_cents"}),
)

# Also used for full replacement (PUT), so every field but stock_date is required
INVENTORY_ITEM_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "category", "current_stock", "min_stock", "unit_cost_cents", "stock_date"}),
    required_on_create=frozenset({"name", "category", "current_stock", "min_stock", "unit_cost_cents"}),
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_integer(key: str, value: Any) -> int:
    """Strict integer coercion: rejects floats, decimals and scientific notation."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_integer(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Calendar days (accept "YYYY-MM-DD" only)
    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            if d is None:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            return d
        raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
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
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create/replace semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={"missing": missing},
            )

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
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


def _check_amount(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None:
        amount = patch[key]
        if amount < 0:
            raise ValidationError(f"{key} must be >= 0")
        if amount > MAX_AMOUNT_CENTS:
            raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT_CENTS} (${MAX_AMOUNT_CENTS / 100:,.2f})")


def _check_positive(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None and patch[key] <= 0:
        raise ValidationError(f"{key} must be > 0")


def _check_non_negative(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None and patch[key] < 0:
        raise ValidationError(f"{key} must be >= 0")


def _check_max(patch: dict, key: str, limit: int) -> None:
    if key in patch and patch[key] is not None and patch[key] > limit:
        raise ValidationError(f"{key} cannot exceed {limit}")


def enforce_rules_sale(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_positive(patch, "quantity")
    _check_max(patch, "quantity", MAX_QUANTITY)
    _check_amount(patch, "price_cents")
    _check_amount(patch, "total_cents")
    _check_positive(patch, "inventory_item_id")
    _check_max(patch, "inventory_item_id", MAX_ROW_ID)


def enforce_sale_total(total_cents: int) -> None:
    """The stored total (computed or overridden) obeys the same cap as any amount."""
    _check_amount({"total_cents": total_cents}, "total_cents")


def enforce_rules_expense(patch: dict) -> None:
    _check_amount(patch, "amount_cents")


def enforce_rules_inventory_item(patch: dict) -> None:
    _check_non_negative(patch, "current_stock")
    _check_max(patch, "current_stock", MAX_QUANTITY)
    _check_non_negative(patch, "min_stock")
    _check_max(patch, "min_stock", MAX_QUANTITY)
    _check_amount(patch, "unit_cost_cents")


def enforce_rules_stock_adjust(payload: dict) -> tuple[int, str]:
    """Validate a standalone stock adjustment body; returns (quantity, operation)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    if payload.get("quantity") is None:
        raise ValidationError("quantity is required")
    quantity = coerce_integer("quantity", payload["quantity"])
    if quantity <= 0:
        raise ValidationError("Invalid quantity")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")

    operation = payload.get("operation", "subtract")
    if operation not in STOCK_OPERATIONS:
        raise ValidationError('Invalid operation. Use "add" or "subtract"')
    return quantity, operation


def enforce_rules_setting(key: str, value: Any) -> str:
    """Settings are string-valued; numbers are stored in their text form."""
    if key is None or not str(key).strip():
        raise ValidationError("key cannot be blank")
    if len(str(key)) > 128:
        raise ValidationError("key exceeds max length 128")
    if value is None:
        raise ValidationError("value is required")
    if isinstance(value, bool) or isinstance(value, (dict, list)):
        raise ValidationError("value must be a string or number")
    return str(value)
