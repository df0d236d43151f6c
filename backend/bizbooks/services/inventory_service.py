# Overview: Inventory ledger and inventory item operations; encapsulates business logic and database work.

# backend/bizbooks/services/inventory_service.py
"""
Inventory Invariants (authoritative)

Stock model:
- InventoryItem.current_stock is the stored on-hand quantity.
- total_value_cents is derived: current_stock * unit_cost_cents, recomputed
  on every stock or cost change.

Ledger operations:
- reserve(item, qty): current_stock -= qty; refused with InsufficientStockError
  when the result would be negative (nothing is written).
- release(item, qty): current_stock += qty; used to reverse a reservation.
- Neither deduplicates: call each exactly once per sale lifecycle event.

Units of work:
- reserve/release/_ensure_item never commit. Callers (sales_service,
  adjust_stock) run them inside run_with_retry and commit once, so a failure
  at any step rolls back every write of the operation.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_

from ..errors import InsufficientStockError, ItemNotFoundError, NotFoundError
from ..extensions import db
from ..models import InventoryItem
from ..validation import MAX_QUANTITY, ValidationError, coerce_integer
from .concurrency import lock_for_update, run_read, run_with_retry


def _ensure_item(item_id: int, *, lock: bool = False) -> InventoryItem:
    query = db.session.query(InventoryItem).filter_by(id=item_id)
    if lock:
        query = lock_for_update(query)
    item = query.first()
    if item is None:
        raise ItemNotFoundError(item_id)
    return item


def _check_quantity(quantity) -> int:
    quantity = coerce_integer("quantity", quantity)
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")
    return quantity


def reserve(item_id: int, quantity: int, *, display_name: str | None = None) -> int:
    """
    Decrement stock for a sale. Returns the new stock level.

    display_name is used in the InsufficientStockError message; it defaults
    to the item's own name.
    """
    quantity = _check_quantity(quantity)
    item = _ensure_item(item_id, lock=True)

    new_stock = item.current_stock - quantity
    if new_stock < 0:
        raise InsufficientStockError(display_name or item.name, item.current_stock, quantity)

    item.set_stock(new_stock)
    db.session.flush()
    return new_stock


def release(item_id: int, quantity: int) -> int:
    """Increment stock to reverse a prior reservation. Returns the new stock level."""
    quantity = _check_quantity(quantity)
    item = _ensure_item(item_id, lock=True)

    new_stock = item.current_stock + quantity
    item.set_stock(new_stock)
    db.session.flush()
    return new_stock


def adjust_stock(item_id: int, quantity: int, operation: str = "subtract") -> dict:
    """
    Standalone stock adjustment, independent of sales.

    operation is "add" or "subtract". An unknown item is NotFoundError here
    (the item is the addressed resource, not a sale reference).
    """
    if operation not in ("add", "subtract"):
        raise ValidationError('Invalid operation. Use "add" or "subtract"')

    def _op():
        try:
            if operation == "subtract":
                new_stock = reserve(item_id, quantity)
            else:
                new_stock = release(item_id, quantity)
        except ItemNotFoundError:
            raise NotFoundError(
                "Inventory item not found", details={"inventory_item_id": item_id}
            ) from None
        db.session.commit()
        return new_stock

    new_stock = run_with_retry(_op)
    current_app.logger.info(
        "Stock adjusted: item=%s operation=%s quantity=%s new_stock=%s",
        item_id, operation, quantity, new_stock,
    )
    return {
        "item_id": item_id,
        "new_stock": new_stock,
        "operation": operation,
        "quantity": quantity,
    }


def create_inventory_item(
    *,
    name: str,
    category: str,
    current_stock: int,
    min_stock: int,
    unit_cost_cents: int,
    stock_date=None,
    commit: bool = True,
) -> InventoryItem:
    """
    Create an inventory item. total_value_cents is always derived.

    commit=False lets bulk imports batch several creations into one unit of work.
    """
    def _op():
        item = InventoryItem(
            name=name,
            category=category,
            min_stock=min_stock,
            unit_cost_cents=unit_cost_cents,
            stock_date=stock_date,
        )
        item.set_stock(current_stock)
        db.session.add(item)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return item

    if not commit:
        return _op()
    return run_with_retry(_op)


def update_inventory_item(
    item_id: int,
    *,
    name: str,
    category: str,
    current_stock: int,
    min_stock: int,
    unit_cost_cents: int,
    stock_date=None,
) -> InventoryItem:
    """
    Replace every writable field of an item and recompute its total value.

    This is a full replacement, not a patch: an omitted stock_date clears it.
    """
    def _op():
        item = lock_for_update(db.session.query(InventoryItem).filter_by(id=item_id)).first()
        if item is None:
            raise NotFoundError("Inventory item not found", details={"inventory_item_id": item_id})

        item.name = name
        item.category = category
        item.min_stock = min_stock
        item.unit_cost_cents = unit_cost_cents
        item.stock_date = stock_date
        item.set_stock(current_stock)

        db.session.commit()
        return item

    return run_with_retry(_op)


def delete_inventory_item(item_id: int) -> None:
    """
    Delete an item. Sales that reference it keep their soft link; deleting
    such a sale later fails with ItemNotFoundError.
    """
    def _op():
        item = db.session.query(InventoryItem).filter_by(id=item_id).first()
        if item is None:
            raise NotFoundError("Inventory item not found", details={"inventory_item_id": item_id})
        db.session.delete(item)
        db.session.commit()

    run_with_retry(_op)


def get_inventory_item(item_id: int) -> InventoryItem:
    item = run_read(lambda: db.session.query(InventoryItem).filter_by(id=item_id).first())
    if item is None:
        raise NotFoundError("Inventory item not found", details={"inventory_item_id": item_id})
    return item


def list_inventory_items(*, category: str | None = None, search: str | None = None) -> list[InventoryItem]:
    q = db.session.query(InventoryItem)
    if category:
        q = q.filter(InventoryItem.category == category)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.filter(or_(
            func.lower(InventoryItem.name).like(pattern),
            func.lower(InventoryItem.category).like(pattern),
        ))
    q = q.order_by(InventoryItem.name.asc(), InventoryItem.id.asc())
    return run_read(q.all)


def inventory_summary() -> dict:
    """
    Stock health overview.

    - available: current_stock > 0
    - low_stock: 0 < current_stock <= min_stock
    - out_of_stock: current_stock == 0
    """
    items = list_inventory_items()
    low_stock = [i for i in items if i.is_low_stock]
    return {
        "total_items": len(items),
        "available": sum(1 for i in items if i.current_stock > 0),
        "low_stock": len(low_stock),
        "out_of_stock": sum(1 for i in items if i.current_stock == 0),
        "low_stock_item_ids": [i.id for i in low_stock],
        "total_value_cents": sum(i.total_value_cents for i in items),
    }
