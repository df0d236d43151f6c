from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..errors import BookkeepingError
from ..services import settings_service
from . import json_error


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/<key>")
def get_setting_route(key: str):
    """Unset keys answer 200 with value null."""
    try:
        value = settings_service.get_setting(key)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to read setting %s", key)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"key": key, "value": value}), 200


@settings_bp.route("/<key>", methods=["POST", "PUT"])
def set_setting_route(key: str):
    payload = request.get_json(silent=True) or {}

    try:
        row = settings_service.set_setting(key, payload.get("value"))
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to update setting %s", key)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"setting": row.to_dict(), "message": "Setting updated successfully"}), 200
