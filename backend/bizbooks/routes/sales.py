# Overview: Flask API routes for sales; parses input and returns JSON responses.

# backend/bizbooks/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import BookkeepingError
from ..models import Sale
from ..services import sales_service
from ..time_utils import parse_iso_date
from ..validation import (
    SALE_POLICY,
    ValidationError,
    enforce_rules_sale,
    validate_payload,
)
from . import json_error


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _list_args() -> dict:
    try:
        date = parse_iso_date(request.args.get("date"))
    except ValueError:
        raise ValidationError("date must be a date (YYYY-MM-DD)")

    page = request.args.get("page", 1, type=int)
    raw_limit = request.args.get("limit")
    if raw_limit == "all":
        limit = None
    elif raw_limit is None:
        limit = current_app.config["SALES_PAGE_SIZE"]
    else:
        try:
            limit = int(raw_limit)
        except ValueError:
            raise ValidationError("limit must be an integer or 'all'")

    return {
        "date": date,
        "search": request.args.get("search") or None,
        "page": page,
        "limit": limit,
    }


@sales_bp.get("")
def list_sales_route():
    """
    List sales, newest first.

    Query: date (YYYY-MM-DD), search (item substring), page, limit (int or 'all').
    """
    try:
        sales = sales_service.list_sales(**_list_args())
        return jsonify([s.to_dict() for s in sales]), 200
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
        return jsonify({"sale": sale.to_dict()}), 200
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to get sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("")
def create_sale_route():
    """
    Record a sale.

    With inventory_item_id, stock is reserved in the same transaction;
    insufficient stock answers 409 and nothing is saved.
    """
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(
            model=Sale,
            payload=payload,
            policy=SALE_POLICY,
            partial=False,
        )
        enforce_rules_sale(patch)
        result = sales_service.create_sale(**patch)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500

    message = "Sale added successfully"
    if result["inventory_updated"]:
        message += " and inventory updated"
    return jsonify({**result, "message": message}), 201


@sales_bp.delete("/<int:sale_id>")
def delete_sale_route(sale_id: int):
    """
    Delete a sale, restoring reserved stock when it is inventory-linked.

    A linked sale whose inventory item no longer exists is not deleted (404).
    """
    try:
        result = sales_service.delete_sale(sale_id)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({**result, "message": "Sale deleted successfully"}), 200
