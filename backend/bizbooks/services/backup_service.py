# Overview: JSON backup/restore and per-collection CSV import/export.
"""
Backup formats

JSON (version 2):
    {"version": 2, "exported_at": "...Z",
     "data": {"sales": [...], "expenses": [...], "inventory": [...], "bank_balance": "500.00"}}

Imports also accept the bare {"sales", "expenses", "inventory"} mapping and
rows written with decimal amounts under camelCase or snake_case names
(price, total, amount, unitCost/unit_cost, currentStock/current_stock,
storeVendor/store_vendor, ...), as produced by older exports.

CSV: one file per collection with a header row; amounts are decimal strings.

Import rules:
- Every import is one unit of work; the first bad row aborts and rolls back
  the whole import, naming the row.
- Imported sales never move stock: source inventory ids do not map onto
  this database, so sales are recorded without an inventory link.
- Inventory total value is always recomputed from stock and unit cost.
"""
from __future__ import annotations

import csv
import io
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from ..extensions import db
from ..models import Expense, InventoryItem, Sale
from ..money_utils import format_cents, to_cents
from ..time_utils import utcnow, to_utc_z
from ..validation import (
    EXPENSE_POLICY,
    INVENTORY_ITEM_POLICY,
    SALE_POLICY,
    ValidationError,
    coerce_integer,
    enforce_rules_expense,
    enforce_rules_inventory_item,
    enforce_rules_sale,
    enforce_sale_total,
    validate_payload,
)
from .concurrency import run_with_retry
from .expense_service import create_expense, list_expenses
from .inventory_service import create_inventory_item, list_inventory_items
from .sales_service import create_sale, list_sales
from .settings_service import BANK_BALANCE_KEY, get_bank_balance_cents, set_setting


BACKUP_VERSION = 2

CSV_KINDS = ("sales", "expenses", "inventory")

CSV_HEADERS = {
    "sales": ["date", "item", "quantity", "price", "total"],
    "expenses": ["date", "category", "storeVendor", "description", "amount"],
    "inventory": ["name", "category", "currentStock", "minStock", "unitCost", "totalValue", "stockDate"],
}


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------

def _pick(row: dict, *keys: str) -> Any:
    """First non-blank value among keys, else None."""
    for key in keys:
        value = row.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _present(payload: dict) -> dict:
    """Drop absent optional values so validation applies create defaults."""
    return {k: v for k, v in payload.items() if v is not None}


def _pick_cents(row: dict, cents_key: str, *amount_keys: str) -> int | None:
    cents = _pick(row, cents_key)
    if cents is not None:
        return coerce_integer(cents_key, cents)
    amount = _pick(row, *amount_keys)
    if amount is None:
        return None
    try:
        return to_cents(amount)
    except ValueError as exc:
        raise ValidationError(f"{amount_keys[0]}: {exc}") from exc


def _pick_count(row: dict, *keys: str) -> Any:
    """
    Like _pick, but whole-number decimals ("2.0", 2.0) become ints.

    Older exports wrote counts through JavaScript numbers. Anything that is
    not a whole number is passed through for validation to reject.
    """
    value = _pick(row, *keys)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return value
        if number.is_finite() and number == number.to_integral_value():
            return int(number)
    return value


def _sale_fields(row: dict) -> dict:
    payload = {
        "date": _pick(row, "date"),
        "item": _pick(row, "item"),
        "quantity": _pick_count(row, "quantity"),
        "price_cents": _pick_cents(row, "price_cents", "price"),
        "total_cents": _pick_cents(row, "total_cents", "total"),
    }
    patch = validate_payload(model=Sale, payload=_present(payload), policy=SALE_POLICY, partial=False)
    enforce_rules_sale(patch)
    enforce_sale_total(patch.get("total_cents", patch["quantity"] * patch["price_cents"]))
    return patch


def _expense_fields(row: dict) -> dict:
    payload = {
        "date": _pick(row, "date"),
        "category": _pick(row, "category"),
        "store_vendor": _pick(row, "store_vendor", "storeVendor", "storevendor"),
        "description": _pick(row, "description"),
        "amount_cents": _pick_cents(row, "amount_cents", "amount"),
    }
    patch = validate_payload(model=Expense, payload=_present(payload), policy=EXPENSE_POLICY, partial=False)
    enforce_rules_expense(patch)
    return patch


def _inventory_fields(row: dict) -> dict:
    payload = {
        "name": _pick(row, "name"),
        "category": _pick(row, "category"),
        "current_stock": _pick_count(row, "current_stock", "currentStock", "currentstock"),
        "min_stock": _pick_count(row, "min_stock", "minStock", "minstock"),
        "unit_cost_cents": _pick_cents(row, "unit_cost_cents", "unit_cost", "unitCost", "unitcost"),
        "stock_date": _pick(row, "stock_date", "stockDate", "stockdate"),
    }
    # Older exports omit the reorder threshold
    if payload["min_stock"] is None:
        payload["min_stock"] = 0
    patch = validate_payload(model=InventoryItem, payload=_present(payload), policy=INVENTORY_ITEM_POLICY, partial=False)
    enforce_rules_inventory_item(patch)
    return patch


_NORMALIZERS = {
    "sales": _sale_fields,
    "expenses": _expense_fields,
    "inventory": _inventory_fields,
}


def _normalize_rows(kind: str, rows: Iterable[dict], *, first_row: int = 0) -> list[dict]:
    normalize = _NORMALIZERS[kind]
    out = []
    for pos, row in enumerate(rows, start=first_row):
        if not isinstance(row, dict):
            raise ValidationError(f"{kind}[{pos}]: row must be an object", details={"kind": kind, "row": pos})
        try:
            out.append(normalize(row))
        except ValidationError as exc:
            raise ValidationError(
                f"{kind}[{pos}]: {exc.message}",
                details={"kind": kind, "row": pos, **exc.details},
            ) from exc
    return out


def _create(kind: str, fields: dict) -> None:
    if kind == "sales":
        create_sale(**fields, commit=False)
    elif kind == "expenses":
        create_expense(**fields, commit=False)
    else:
        create_inventory_item(**fields, commit=False)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def export_json() -> dict:
    return {
        "version": BACKUP_VERSION,
        "exported_at": to_utc_z(utcnow()),
        "data": {
            "sales": [s.to_dict() for s in list_sales(limit=None)],
            "expenses": [e.to_dict() for e in list_expenses()],
            "inventory": [i.to_dict() for i in list_inventory_items()],
            "bank_balance": format_cents(get_bank_balance_cents()),
        },
    }


def _bank_balance_from(data: dict) -> int | None:
    raw = data.get("bank_balance", data.get(BANK_BALANCE_KEY))
    if raw is None:
        return None
    try:
        return to_cents(raw)
    except ValueError:
        raise ValidationError("bank_balance must be a number", details={"bank_balance": raw})


def import_json(payload: Any) -> dict:
    """
    Restore records from a JSON backup, adding to (not replacing) existing data.

    Returns {"sales", "expenses", "inventory", "bank_balance_updated"}.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON structure")
    data = payload.get("data", payload)
    if not isinstance(data, dict) or not all(isinstance(data.get(k), list) for k in CSV_KINDS):
        raise ValidationError("Invalid JSON structure: sales, expenses and inventory must be lists")

    normalized = {kind: _normalize_rows(kind, data[kind]) for kind in ("inventory", "expenses", "sales")}
    bank_balance_cents = _bank_balance_from(data)

    def _op():
        for kind, rows in normalized.items():
            for fields in rows:
                _create(kind, fields)
        if bank_balance_cents is not None:
            set_setting(BANK_BALANCE_KEY, format_cents(bank_balance_cents), commit=False)
        db.session.commit()

    run_with_retry(_op)
    return {
        "sales": len(normalized["sales"]),
        "expenses": len(normalized["expenses"]),
        "inventory": len(normalized["inventory"]),
        "bank_balance_updated": bank_balance_cents is not None,
    }


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def _check_kind(kind: str) -> None:
    if kind not in CSV_KINDS:
        raise ValidationError(f"Unknown type for CSV: {kind}", details={"allowed": list(CSV_KINDS)})


def _csv_rows(kind: str) -> list[list]:
    if kind == "sales":
        return [
            [s.date.isoformat(), s.item, s.quantity, format_cents(s.price_cents), format_cents(s.total_cents)]
            for s in list_sales(limit=None)
        ]
    if kind == "expenses":
        return [
            [e.date.isoformat(), e.category, e.store_vendor, e.description, format_cents(e.amount_cents)]
            for e in list_expenses()
        ]
    return [
        [
            i.name,
            i.category,
            i.current_stock,
            i.min_stock,
            format_cents(i.unit_cost_cents),
            format_cents(i.total_value_cents),
            i.stock_date.isoformat() if i.stock_date else "",
        ]
        for i in list_inventory_items()
    ]


def export_csv(kind: str) -> str:
    """Render one collection as CSV text (header row first)."""
    _check_kind(kind)
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS[kind])
    writer.writerows(_csv_rows(kind))
    return buf.getvalue()


def parse_csv(text: str) -> list[dict]:
    """
    Parse CSV text into dicts keyed by lower-cased header names.

    Rows whose cells are all blank are dropped.
    """
    text = text.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text))
    rows = list(reader)
    if len(rows) <= 1:
        raise ValidationError("No data")

    header = [h.strip().lower() for h in rows[0]]
    records = []
    for row in rows[1:]:
        if not any(str(cell).strip() for cell in row):
            continue
        records.append({header[i]: row[i] for i in range(min(len(header), len(row)))})
    if not records:
        raise ValidationError("No data")
    return records


def import_csv(kind: str, text: str) -> int:
    """Import one collection from CSV text; returns the number of rows imported."""
    _check_kind(kind)
    records = parse_csv(text)
    normalized = _normalize_rows(kind, records, first_row=1)

    def _op():
        for fields in normalized:
            _create(kind, fields)
        db.session.commit()

    run_with_retry(_op)
    return len(normalized)
