"""
Sales Service - inventory-linked sale lifecycle

States per sale: Proposed -> Committed -> (optionally) Deleted.

create_sale and delete_sale are each exactly one unit of work: the ledger
mutation (reserve/release) and the sale insert/delete commit together or
not at all. Nothing outside a single call ever observes a partial state.

Deleting an inventory-linked sale whose item has since been deleted fails
with ItemNotFoundError and leaves the sale in place, rather than dropping
the sale without restoring stock.
"""
from __future__ import annotations

from datetime import date as date_type

from flask import current_app
from sqlalchemy import func

from ..errors import ItemNotFoundError, NotFoundError
from ..extensions import db
from ..models import Sale
from ..validation import MAX_QUANTITY, ValidationError, enforce_sale_total
from .concurrency import lock_for_update, run_read, run_with_retry
from .inventory_service import release, reserve


def _insert_sale(
    *,
    date: date_type,
    item: str,
    quantity: int,
    price_cents: int,
    total_cents: int,
    inventory_item_id: int | None,
    inventory_quantity: int | None,
) -> Sale:
    sale = Sale(
        date=date,
        item=item,
        quantity=quantity,
        price_cents=price_cents,
        total_cents=total_cents,
        inventory_item_id=inventory_item_id,
        inventory_quantity=inventory_quantity,
    )
    db.session.add(sale)
    db.session.flush()
    return sale


def create_sale(
    *,
    date: date_type,
    item: str,
    quantity: int,
    price_cents: int,
    total_cents: int | None = None,
    inventory_item_id: int | None = None,
    commit: bool = True,
) -> dict:
    """
    Record a sale, reserving stock when it is linked to an inventory item.

    total_cents overrides quantity * price_cents when given.

    Returns {"id", "inventory_updated", "new_stock"?}. Raises
    ItemNotFoundError / InsufficientStockError for linked sales; in both
    cases no sale row is persisted and stock is untouched.

    commit=False leaves the writes flushed in the caller's unit of work
    (bulk imports).
    """
    if quantity is None or quantity <= 0:
        raise ValidationError("quantity must be > 0")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")

    final_total = total_cents if total_cents is not None else quantity * price_cents
    enforce_sale_total(final_total)

    def _op():
        result = {"inventory_updated": False}
        if inventory_item_id is not None:
            new_stock = reserve(inventory_item_id, quantity, display_name=item)
            sale = _insert_sale(
                date=date,
                item=item,
                quantity=quantity,
                price_cents=price_cents,
                total_cents=final_total,
                inventory_item_id=inventory_item_id,
                inventory_quantity=quantity,
            )
            result.update(inventory_updated=True, new_stock=new_stock)
        else:
            sale = _insert_sale(
                date=date,
                item=item,
                quantity=quantity,
                price_cents=price_cents,
                total_cents=final_total,
                inventory_item_id=None,
                inventory_quantity=None,
            )

        if commit:
            db.session.commit()
        result["id"] = sale.id
        return result

    if not commit:
        return _op()

    result = run_with_retry(_op)
    if result["inventory_updated"]:
        current_app.logger.info(
            "Sale %s committed: reserved %s of inventory item %s (new stock %s)",
            result["id"], quantity, inventory_item_id, result["new_stock"],
        )
    else:
        current_app.logger.info("Sale %s committed", result["id"])
    return result


def delete_sale(sale_id: int) -> dict:
    """
    Delete a sale, releasing its reserved stock when inventory-linked.

    Exact inverse of the linked branch of create_sale: releases the stored
    inventory_quantity (not the current quantity) and removes the row in
    one unit of work.
    """
    def _op():
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if sale is None:
            raise NotFoundError("Sale not found", details={"sale_id": sale_id})

        result = {
            "inventory_restored": False,
            "restored_quantity": None,
            "inventory_item_id": None,
        }

        if sale.is_inventory_linked:
            try:
                release(sale.inventory_item_id, sale.inventory_quantity)
            except ItemNotFoundError as exc:
                exc.details["sale_id"] = sale_id
                raise
            result.update(
                inventory_restored=True,
                restored_quantity=sale.inventory_quantity,
                inventory_item_id=sale.inventory_item_id,
            )

        db.session.delete(sale)
        db.session.commit()
        return result

    result = run_with_retry(_op)
    if result["inventory_restored"]:
        current_app.logger.info(
            "Sale %s deleted: released %s to inventory item %s",
            sale_id, result["restored_quantity"], result["inventory_item_id"],
        )
    else:
        current_app.logger.info("Sale %s deleted", sale_id)
    return result


def get_sale(sale_id: int) -> Sale:
    sale = run_read(lambda: db.session.query(Sale).filter_by(id=sale_id).first())
    if sale is None:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def list_sales(
    *,
    date: date_type | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int | None = 50,
) -> list[Sale]:
    """
    List sales newest first (date desc, id desc).

    limit=None returns every matching sale; otherwise page is 1-based.
    """
    if page < 1:
        raise ValidationError("page must be >= 1")
    if limit is not None and limit < 1:
        raise ValidationError("limit must be >= 1")

    q = db.session.query(Sale)
    if date is not None:
        q = q.filter(Sale.date == date)
    if search:
        q = q.filter(func.lower(Sale.item).like(f"%{search.lower()}%"))

    q = q.order_by(Sale.date.desc(), Sale.id.desc())
    if limit is not None:
        q = q.limit(limit).offset((page - 1) * limit)
    return run_read(q.all)
