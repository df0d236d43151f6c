# Overview: Service-layer operations for expenses; encapsulates business logic and database work.

from __future__ import annotations

from datetime import date as date_type

from sqlalchemy import func, or_

from ..errors import NotFoundError
from ..extensions import db
from ..models import Expense
from .concurrency import run_read, run_with_retry


def create_expense(
    *,
    date: date_type,
    category: str,
    store_vendor: str,
    description: str,
    amount_cents: int,
    commit: bool = True,
) -> Expense:
    """Record an expense. Expenses are immutable once created."""
    def _op():
        expense = Expense(
            date=date,
            category=category,
            store_vendor=store_vendor,
            description=description,
            amount_cents=amount_cents,
        )
        db.session.add(expense)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return expense

    if not commit:
        return _op()
    return run_with_retry(_op)


def delete_expense(expense_id: int) -> None:
    def _op():
        expense = db.session.query(Expense).filter_by(id=expense_id).first()
        if expense is None:
            raise NotFoundError("Expense not found", details={"expense_id": expense_id})
        db.session.delete(expense)
        db.session.commit()

    run_with_retry(_op)


def get_expense(expense_id: int) -> Expense:
    expense = run_read(lambda: db.session.query(Expense).filter_by(id=expense_id).first())
    if expense is None:
        raise NotFoundError("Expense not found", details={"expense_id": expense_id})
    return expense


def list_expenses(
    *,
    category: str | None = None,
    date: date_type | None = None,
    search: str | None = None,
) -> list[Expense]:
    """List expenses newest first; search matches description or category."""
    q = db.session.query(Expense)
    if category:
        q = q.filter(Expense.category == category)
    if date is not None:
        q = q.filter(Expense.date == date)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.filter(or_(
            func.lower(Expense.description).like(pattern),
            func.lower(Expense.category).like(pattern),
        ))
    q = q.order_by(Expense.date.desc(), Expense.id.desc())
    return run_read(q.all)
