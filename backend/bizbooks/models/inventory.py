from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


class InventoryItem(db.Model):
    """
    Stocked item.

    INVARIANTS (hold after every commit):
    - current_stock >= 0
    - total_value_cents == current_stock * unit_cost_cents

    current_stock is only mutated through the inventory ledger
    (reserve/release) or a full replacement update; both recompute
    total_value_cents via set_stock().
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.Index("ix_inventory_items_name", "name"),
        db.Index("ix_inventory_items_category", "category"),
        db.CheckConstraint("current_stock >= 0", name="ck_inventory_items_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)

    current_stock = db.Column(db.Integer, nullable=False, default=0)
    # Reorder threshold
    min_stock = db.Column(db.Integer, nullable=False, default=0)

    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    total_value_cents = db.Column(db.Integer, nullable=False, default=0)

    stock_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def set_stock(self, new_stock: int) -> None:
        self.current_stock = new_stock
        self.recompute_total_value()

    def recompute_total_value(self) -> None:
        self.total_value_cents = self.current_stock * self.unit_cost_cents

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.current_stock <= self.min_stock

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.name!r} current_stock={self.current_stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "current_stock": self.current_stock,
            "min_stock": self.min_stock,
            "unit_cost_cents": self.unit_cost_cents,
            "total_value_cents": self.total_value_cents,
            "stock_date": to_iso_date(self.stock_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
