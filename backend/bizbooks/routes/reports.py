from flask import Blueprint, current_app, jsonify

from ..errors import BookkeepingError
from ..services import reporting_service
from . import json_error


reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/dashboard/<int:year>/<int:month>")
def monthly_dashboard(year: int, month: int):
    """Monthly sales, expenses, net profit and the stored bank balance (all cents)."""
    try:
        return jsonify(reporting_service.monthly_totals(year, month)), 200
    except BookkeepingError as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to build monthly dashboard")
        return jsonify({"error": "Internal server error"}), 500
