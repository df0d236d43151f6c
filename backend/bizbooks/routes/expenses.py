# Overview: Flask API routes for expenses; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..errors import BookkeepingError
from ..models import Expense
from ..services import expense_service
from ..time_utils import parse_iso_date
from ..validation import (
    EXPENSE_POLICY,
    ValidationError,
    enforce_rules_expense,
    validate_payload,
)
from . import json_error


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
def list_expenses_route():
    """Query: category (exact), date (YYYY-MM-DD), search (description or category)."""
    try:
        try:
            date = parse_iso_date(request.args.get("date"))
        except ValueError:
            raise ValidationError("date must be a date (YYYY-MM-DD)")
        expenses = expense_service.list_expenses(
            category=request.args.get("category") or None,
            date=date,
            search=request.args.get("search") or None,
        )
        return jsonify([e.to_dict() for e in expenses]), 200
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to list expenses")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.get("/<int:expense_id>")
def get_expense_route(expense_id: int):
    try:
        expense = expense_service.get_expense(expense_id)
        return jsonify({"expense": expense.to_dict()}), 200
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to get expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.post("")
def create_expense_route():
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(
            model=Expense,
            payload=payload,
            policy=EXPENSE_POLICY,
            partial=False,
        )
        enforce_rules_expense(patch)
        expense = expense_service.create_expense(**patch)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to create expense")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"id": expense.id, "expense": expense.to_dict(), "message": "Expense added successfully"}), 201


@expenses_bp.delete("/<int:expense_id>")
def delete_expense_route(expense_id: int):
    try:
        expense_service.delete_expense(expense_id)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Expense deleted successfully"}), 200
