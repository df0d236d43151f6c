# Overview: Service-layer operations for reporting; read-only aggregates over sales and expenses.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Expense, Sale
from ..time_utils import month_bounds
from ..validation import ValidationError, coerce_integer
from .concurrency import run_read
from .settings_service import get_bank_balance_cents


def _resolve_month(year, month) -> tuple[int, int]:
    year = coerce_integer("year", year)
    month = coerce_integer("month", month)
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    # month_bounds needs the first day of the following month to exist
    if not 1 <= year <= 9999 or (year == 9999 and month == 12):
        raise ValidationError("year out of range")
    return year, month


def monthly_totals(year, month) -> dict:
    """
    Dashboard figures for one calendar month.

    Sales and expenses dated within [first day, first day of next month)
    are summed; the bank balance is the stored setting (0 when unset).
    """
    year, month = _resolve_month(year, month)
    start, end = month_bounds(year, month)

    sales_q = db.session.query(
        func.coalesce(func.sum(Sale.total_cents), 0)
    ).filter(Sale.date >= start, Sale.date < end)

    expenses_q = db.session.query(
        func.coalesce(func.sum(Expense.amount_cents), 0)
    ).filter(Expense.date >= start, Expense.date < end)

    sales_cents = int(run_read(sales_q.scalar) or 0)
    expenses_cents = int(run_read(expenses_q.scalar) or 0)

    return {
        "year": year,
        "month": month,
        "sales_cents": sales_cents,
        "expenses_cents": expenses_cents,
        "net_profit_cents": sales_cents - expenses_cents,
        "bank_balance_cents": get_bank_balance_cents(),
    }
