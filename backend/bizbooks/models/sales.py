from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


class Sale(db.Model):
    """
    A recorded sale. Immutable once created; removed only by deletion.

    INVENTORY LINK:
    inventory_item_id is a soft reference (no FK) so an inventory item can be
    deleted on its own. inventory_quantity is set iff inventory_item_id is set
    and snapshots the quantity reserved at creation; deleting the sale
    releases exactly that amount.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_date_id", "date", "id"),
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        db.CheckConstraint(
            "(inventory_item_id IS NULL) = (inventory_quantity IS NULL)",
            name="ck_sales_inventory_link",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    date = db.Column(db.Date, nullable=False, index=True)
    item = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    inventory_item_id = db.Column(db.Integer, nullable=True, index=True)
    inventory_quantity = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def is_inventory_linked(self) -> bool:
        return self.inventory_item_id is not None and self.inventory_quantity is not None

    def __repr__(self) -> str:
        return f"<Sale id={self.id} date={self.date} item={self.item!r} total_cents={self.total_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "item": self.item,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "total_cents": self.total_cents,
            "inventory_item_id": self.inventory_item_id,
            "inventory_quantity": self.inventory_quantity,
            "created_at": to_utc_z(self.created_at),
        }
