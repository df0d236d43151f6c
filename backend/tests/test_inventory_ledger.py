"""
Inventory ledger tests: reserve/release, standalone stock adjustments,
and inventory item CRUD keeping total value derived.
"""

from datetime import date

import pytest

from bizbooks.errors import InsufficientStockError, ItemNotFoundError, NotFoundError
from bizbooks.extensions import db
from bizbooks.models import InventoryItem
from bizbooks.services import inventory_service
from bizbooks.validation import ValidationError


def _reload(item_id):
    db.session.expire_all()
    return db.session.get(InventoryItem, item_id)


@pytest.mark.parametrize("qty", [1, 4, 10])
def test_reserve_then_release_restores_stock_and_value(db_session, make_item, qty):
    item = make_item(current_stock=10, unit_cost_cents=333)

    assert inventory_service.reserve(item.id, qty) == 10 - qty
    assert inventory_service.release(item.id, qty) == 10
    db_session.commit()

    item = _reload(item.id)
    assert item.current_stock == 10
    assert item.total_value_cents == 3330


def test_reserve_recomputes_total_value(db_session, make_item):
    item = make_item(current_stock=10, unit_cost_cents=500)

    new_stock = inventory_service.reserve(item.id, 3)
    db_session.commit()

    item = _reload(item.id)
    assert new_stock == 7
    assert item.current_stock == 7
    assert item.total_value_cents == 3500


def test_reserve_insufficient_stock_writes_nothing(db_session, make_item):
    item = make_item(name="Widget", current_stock=2)

    with pytest.raises(InsufficientStockError) as exc_info:
        inventory_service.reserve(item.id, 3)

    err = exc_info.value
    assert err.available == 2
    assert err.requested == 3
    assert "Widget" in str(err)
    assert "Available: 2" in str(err)
    assert "Requested: 3" in str(err)

    db_session.rollback()
    assert _reload(item.id).current_stock == 2


def test_reserve_uses_display_name_in_message(db_session, make_item):
    item = make_item(name="WIDGET-SKU-1", current_stock=0)

    with pytest.raises(InsufficientStockError, match="Blue widget"):
        inventory_service.reserve(item.id, 1, display_name="Blue widget")


def test_reserve_and_release_unknown_item(db_session):
    with pytest.raises(ItemNotFoundError):
        inventory_service.reserve(999, 1)
    with pytest.raises(ItemNotFoundError):
        inventory_service.release(999, 1)


@pytest.mark.parametrize("qty", [0, -1, 1.5, "x"])
def test_ledger_rejects_non_positive_or_non_integer_quantity(db_session, make_item, qty):
    item = make_item()
    with pytest.raises(ValidationError):
        inventory_service.reserve(item.id, qty)


class TestAdjustStock:
    def test_subtract_to_zero_then_refuse(self, db_session, make_item):
        item = make_item(current_stock=5)

        result = inventory_service.adjust_stock(item.id, 5, "subtract")
        assert result["new_stock"] == 0
        assert _reload(item.id).total_value_cents == 0

        with pytest.raises(InsufficientStockError):
            inventory_service.adjust_stock(item.id, 1, "subtract")
        assert _reload(item.id).current_stock == 0

    def test_add(self, db_session, make_item):
        item = make_item(current_stock=1, unit_cost_cents=250)

        result = inventory_service.adjust_stock(item.id, 4, "add")

        assert result == {"item_id": item.id, "new_stock": 5, "operation": "add", "quantity": 4}
        assert _reload(item.id).total_value_cents == 1250

    def test_default_operation_is_subtract(self, db_session, make_item):
        item = make_item(current_stock=3)
        assert inventory_service.adjust_stock(item.id, 1)["new_stock"] == 2

    def test_unknown_item_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            inventory_service.adjust_stock(42, 1, "add")

    def test_oversized_quantity_rejected(self, db_session, make_item):
        item = make_item(current_stock=3)
        with pytest.raises(ValidationError, match="cannot exceed"):
            inventory_service.adjust_stock(item.id, 10**15, "add")
        assert _reload(item.id).current_stock == 3

    def test_invalid_operation(self, db_session, make_item):
        item = make_item()
        with pytest.raises(ValidationError):
            inventory_service.adjust_stock(item.id, 1, "multiply")


class TestInventoryItems:
    def test_create_derives_total_value(self, db_session, make_item):
        item = make_item(current_stock=10, unit_cost_cents=500)
        assert item.total_value_cents == 5000

    def test_update_replaces_fields_and_recomputes(self, db_session, make_item):
        item = make_item(current_stock=10, unit_cost_cents=500, stock_date=date(2024, 1, 1))

        updated = inventory_service.update_inventory_item(
            item.id,
            name="Gadget",
            category="Tools",
            current_stock=4,
            min_stock=1,
            unit_cost_cents=125,
        )

        assert updated.name == "Gadget"
        assert updated.category == "Tools"
        assert updated.total_value_cents == 500
        # full replacement: omitted stock_date is cleared
        assert updated.stock_date is None

    def test_update_missing_item(self, db_session):
        with pytest.raises(NotFoundError):
            inventory_service.update_inventory_item(
                7, name="x", category="y", current_stock=0, min_stock=0, unit_cost_cents=0,
            )

    def test_delete(self, db_session, make_item):
        item = make_item()
        inventory_service.delete_inventory_item(item.id)

        with pytest.raises(NotFoundError):
            inventory_service.get_inventory_item(item.id)
        with pytest.raises(NotFoundError):
            inventory_service.delete_inventory_item(item.id)

    def test_list_filters_and_order(self, db_session, make_item):
        make_item(name="Syrup - cherry", category="Flavors")
        make_item(name="Cups", category="Supplies")
        make_item(name="Syrup - lime", category="Flavors")

        names = [i.name for i in inventory_service.list_inventory_items()]
        assert names == ["Cups", "Syrup - cherry", "Syrup - lime"]

        flavors = inventory_service.list_inventory_items(category="Flavors")
        assert {i.name for i in flavors} == {"Syrup - cherry", "Syrup - lime"}

        # search matches name or category, case-insensitively
        assert [i.name for i in inventory_service.list_inventory_items(search="LIME")] == ["Syrup - lime"]
        assert len(inventory_service.list_inventory_items(search="supp")) == 1

    def test_summary(self, db_session, make_item):
        make_item(name="Plenty", current_stock=50, min_stock=5, unit_cost_cents=100)
        low = make_item(name="Low", current_stock=2, min_stock=5, unit_cost_cents=100)
        make_item(name="Empty", current_stock=0, min_stock=5, unit_cost_cents=100)

        summary = inventory_service.inventory_summary()

        assert summary == {
            "total_items": 3,
            "available": 2,
            "low_stock": 1,
            "out_of_stock": 1,
            "low_stock_item_ids": [low.id],
            "total_value_cents": 5200,
        }
