# backend/bizbooks/routes/inventory.py
"""
Inventory management routes.

Stock invariants:
- current_stock never goes negative; a subtraction that would is refused (409).
- total_value_cents is always current_stock * unit_cost_cents and is never
  accepted from clients.
"""
from flask import Blueprint, current_app, jsonify, request

from ..errors import BookkeepingError
from ..models import InventoryItem
from ..services import inventory_service
from ..validation import (
    INVENTORY_ITEM_POLICY,
    enforce_rules_inventory_item,
    enforce_rules_stock_adjust,
    validate_payload,
)
from . import json_error


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _validated_item(payload) -> dict:
    patch = validate_payload(
        model=InventoryItem,
        payload=payload,
        policy=INVENTORY_ITEM_POLICY,
        partial=False,
    )
    enforce_rules_inventory_item(patch)
    return patch


@inventory_bp.get("")
def list_inventory_route():
    """Query: category (exact), search (name or category substring)."""
    try:
        items = inventory_service.list_inventory_items(
            category=request.args.get("category") or None,
            search=request.args.get("search") or None,
        )
        return jsonify([i.to_dict() for i in items]), 200
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to list inventory items")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/summary")
def inventory_summary_route():
    """Counts of available, low-stock and out-of-stock items."""
    try:
        return jsonify(inventory_service.inventory_summary()), 200
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to build inventory summary")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/<int:item_id>")
def get_inventory_item_route(item_id: int):
    try:
        item = inventory_service.get_inventory_item(item_id)
        return jsonify({"item": item.to_dict()}), 200
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to get inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("")
def create_inventory_item_route():
    payload = request.get_json(silent=True)

    try:
        patch = _validated_item(payload)
        item = inventory_service.create_inventory_item(**patch)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"id": item.id, "item": item.to_dict(), "message": "Inventory item added successfully"}), 201


@inventory_bp.put("/<int:item_id>")
def update_inventory_item_route(item_id: int):
    """Replace all fields of an item; total value is recomputed."""
    payload = request.get_json(silent=True)

    try:
        patch = _validated_item(payload)
        item = inventory_service.update_inventory_item(item_id, **patch)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"item": item.to_dict(), "message": "Inventory item updated successfully"}), 200


@inventory_bp.delete("/<int:item_id>")
def delete_inventory_item_route(item_id: int):
    try:
        inventory_service.delete_inventory_item(item_id)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete inventory item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Inventory item deleted successfully"}), 200


@inventory_bp.put("/<int:item_id>/stock")
def adjust_stock_route(item_id: int):
    """
    Add or subtract stock outside of a sale.

    Body: {"quantity": <positive int>, "operation": "add" | "subtract"}
    operation defaults to "subtract".
    """
    payload = request.get_json(silent=True) or {}

    try:
        quantity, operation = enforce_rules_stock_adjust(payload)
        result = inventory_service.adjust_stock(item_id, quantity, operation)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({**result, "message": "Stock updated successfully"}), 200
