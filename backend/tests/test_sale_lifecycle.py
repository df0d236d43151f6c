"""
Sale lifecycle tests.

Every create/delete of an inventory-linked sale moves stock and the sale row
together in one transaction; these tests pin the atomicity and the exact
inverse relationship between create and delete.
"""

from datetime import date

import pytest

from bizbooks.errors import InsufficientStockError, ItemNotFoundError, NotFoundError
from bizbooks.extensions import db
from bizbooks.models import InventoryItem, Sale
from bizbooks.services import inventory_service, sales_service
from bizbooks.validation import ValidationError


def _item(item_id):
    db.session.expire_all()
    return db.session.get(InventoryItem, item_id)


def _sale_count():
    return db.session.query(Sale).count()


def test_linked_sale_round_trip(db_session, make_item, make_sale):
    item = make_item(name="Widget", current_stock=10, unit_cost_cents=500)

    result = make_sale(item="Widget", quantity=3, price_cents=700, inventory_item_id=item.id)

    assert result["inventory_updated"] is True
    assert result["new_stock"] == 7
    sale = sales_service.get_sale(result["id"])
    assert sale.total_cents == 2100
    assert sale.inventory_quantity == 3
    assert _item(item.id).total_value_cents == 3500

    deleted = sales_service.delete_sale(result["id"])

    assert deleted == {
        "inventory_restored": True,
        "restored_quantity": 3,
        "inventory_item_id": item.id,
    }
    restored = _item(item.id)
    assert restored.current_stock == 10
    assert restored.total_value_cents == 5000
    assert _sale_count() == 0


def test_unlinked_sale_does_not_touch_inventory(db_session, make_item, make_sale):
    item = make_item(current_stock=4)

    result = make_sale(quantity=2, price_cents=250)

    assert result == {"inventory_updated": False, "id": result["id"]}
    assert "new_stock" not in result
    assert sales_service.get_sale(result["id"]).total_cents == 500
    assert _item(item.id).current_stock == 4

    deleted = sales_service.delete_sale(result["id"])
    assert deleted["inventory_restored"] is False
    assert _item(item.id).current_stock == 4


def test_insufficient_stock_persists_nothing(db_session, make_item, make_sale):
    item = make_item(name="Widget", current_stock=2, unit_cost_cents=500)

    with pytest.raises(InsufficientStockError) as exc_info:
        make_sale(item="Blue widget", quantity=3, inventory_item_id=item.id)

    assert "Blue widget" in exc_info.value.message
    assert exc_info.value.details == {"item_name": "Blue widget", "available": 2, "requested": 3}
    assert _sale_count() == 0
    unchanged = _item(item.id)
    assert unchanged.current_stock == 2
    assert unchanged.total_value_cents == 1000


def test_sale_for_unknown_item_persists_nothing(db_session, make_sale):
    with pytest.raises(ItemNotFoundError):
        make_sale(quantity=1, inventory_item_id=404)
    assert _sale_count() == 0


def test_sales_drain_stock_exactly(db_session, make_item, make_sale):
    item = make_item(current_stock=5)

    for _ in range(5):
        make_sale(quantity=1, inventory_item_id=item.id)

    assert _item(item.id).current_stock == 0
    with pytest.raises(InsufficientStockError):
        make_sale(quantity=1, inventory_item_id=item.id)
    assert _sale_count() == 5


def test_delete_restores_every_sale_in_any_order(db_session, make_item, make_sale):
    item = make_item(current_stock=20, unit_cost_cents=100)
    ids = [make_sale(quantity=q, inventory_item_id=item.id)["id"] for q in (1, 4, 2, 6)]
    assert _item(item.id).current_stock == 7

    for sale_id in (ids[2], ids[0], ids[3], ids[1]):
        sales_service.delete_sale(sale_id)

    restored = _item(item.id)
    assert restored.current_stock == 20
    assert restored.total_value_cents == 2000


def test_delete_releases_the_reserved_quantity(db_session, make_item, make_sale):
    item = make_item(current_stock=10)
    result = make_sale(quantity=3, inventory_item_id=item.id)

    # quantity is not the ledger's source of truth; the reserved snapshot is
    sale = db.session.get(Sale, result["id"])
    sale.quantity = 9
    db.session.commit()

    assert sales_service.delete_sale(result["id"])["restored_quantity"] == 3
    assert _item(item.id).current_stock == 10


def test_delete_sale_after_item_deleted_keeps_sale(db_session, make_item, make_sale):
    item = make_item(current_stock=10)
    result = make_sale(quantity=2, inventory_item_id=item.id)
    inventory_service.delete_inventory_item(item.id)

    with pytest.raises(ItemNotFoundError) as exc_info:
        sales_service.delete_sale(result["id"])

    assert exc_info.value.details == {"inventory_item_id": item.id, "sale_id": result["id"]}
    assert sales_service.get_sale(result["id"]).inventory_item_id == item.id


def test_delete_missing_sale(db_session):
    with pytest.raises(NotFoundError):
        sales_service.delete_sale(12345)


def test_get_missing_sale(db_session):
    with pytest.raises(NotFoundError):
        sales_service.get_sale(12345)


def test_total_override(db_session, make_sale):
    result = make_sale(quantity=3, price_cents=400, total_cents=1000)
    assert sales_service.get_sale(result["id"]).total_cents == 1000


def test_zero_quantity_rejected(db_session, make_sale):
    with pytest.raises(ValueError):
        make_sale(quantity=0)


@pytest.mark.parametrize("kwargs", [
    {"quantity": 10**12, "price_cents": 1},
    {"quantity": 1_000_000, "price_cents": 10**8},
    {"quantity": 1, "price_cents": 1, "total_cents": 10**20},
])
def test_oversized_sale_rejected_before_stock_moves(db_session, make_item, make_sale, kwargs):
    item = make_item(current_stock=10)

    with pytest.raises(ValidationError, match="cannot exceed"):
        make_sale(inventory_item_id=item.id, **kwargs)

    assert _item(item.id).current_stock == 10
    assert _sale_count() == 0


def test_failed_insert_rolls_back_reservation(db_session, make_item, make_sale, monkeypatch):
    item = make_item(current_stock=10)

    def boom(**kwargs):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(sales_service, "_insert_sale", boom)

    with pytest.raises(RuntimeError):
        make_sale(quantity=4, inventory_item_id=item.id)

    assert _item(item.id).current_stock == 10
    assert _sale_count() == 0


def test_failed_release_keeps_sale(db_session, make_item, make_sale, monkeypatch):
    item = make_item(current_stock=10)
    result = make_sale(quantity=4, inventory_item_id=item.id)

    def boom(item_id, quantity):
        raise RuntimeError("release failed")

    monkeypatch.setattr(sales_service, "release", boom)

    with pytest.raises(RuntimeError):
        sales_service.delete_sale(result["id"])

    assert _item(item.id).current_stock == 6
    assert sales_service.get_sale(result["id"]) is not None


class TestListSales:
    def test_newest_first(self, db_session, make_sale):
        older = make_sale(item="a", on=date(2024, 3, 1))["id"]
        newer = make_sale(item="b", on=date(2024, 3, 20))["id"]
        same_day_later = make_sale(item="c", on=date(2024, 3, 20))["id"]

        ids = [s.id for s in sales_service.list_sales()]

        assert ids == [same_day_later, newer, older]

    def test_pagination(self, db_session, make_sale):
        for day in range(1, 6):
            make_sale(item=f"day {day}", on=date(2024, 3, day))

        first = sales_service.list_sales(page=1, limit=2)
        third = sales_service.list_sales(page=3, limit=2)
        everything = sales_service.list_sales(limit=None)

        assert [s.item for s in first] == ["day 5", "day 4"]
        assert [s.item for s in third] == ["day 1"]
        assert len(everything) == 5

    def test_filters(self, db_session, make_sale):
        make_sale(item="Cherry snow cone", on=date(2024, 3, 1))
        make_sale(item="Lime snow cone", on=date(2024, 3, 2))
        make_sale(item="Bottled water", on=date(2024, 3, 2))

        assert len(sales_service.list_sales(search="SNOW")) == 2
        assert [s.item for s in sales_service.list_sales(date=date(2024, 3, 1))] == ["Cherry snow cone"]

    def test_rejects_bad_paging(self, db_session):
        with pytest.raises(ValueError):
            sales_service.list_sales(page=0)
        with pytest.raises(ValueError):
            sales_service.list_sales(limit=0)
