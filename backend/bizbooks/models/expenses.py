from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


class Expense(db.Model):
    """A recorded expense. Immutable once created; deletable."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_date_id", "date", "id"),
        db.Index("ix_expenses_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    date = db.Column(db.Date, nullable=False, index=True)
    category = db.Column(db.String(120), nullable=False)
    store_vendor = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Expense id={self.id} date={self.date} category={self.category!r} amount_cents={self.amount_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "category": self.category,
            "store_vendor": self.store_vendor,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "created_at": to_utc_z(self.created_at),
        }
