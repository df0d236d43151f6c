# Overview: Flask API routes for backup export/import (JSON and CSV).

"""
Backup Routes

JSON: whole-database backup and restore.
CSV: one collection per file; upload as multipart "file" or a raw text/csv body.
"""

from flask import Blueprint, Response, current_app, jsonify, request

from ..errors import BookkeepingError
from ..services import backup_service
from ..time_utils import utcnow
from ..validation import ValidationError
from . import json_error


backup_bp = Blueprint("backup", __name__, url_prefix="/api/backup")


def _date_stamp() -> str:
    return utcnow().strftime("%Y-%m-%d")


@backup_bp.get("/json")
def export_json_route():
    try:
        payload = backup_service.export_json()
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to export JSON backup")
        return jsonify({"error": "Internal server error"}), 500
    response = jsonify(payload)
    response.headers["Content-Disposition"] = f'attachment; filename="business-backup-{_date_stamp()}.json"'
    return response, 200


@backup_bp.post("/json")
def import_json_route():
    payload = request.get_json(silent=True)

    try:
        counts = backup_service.import_json(payload)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to import JSON backup")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"imported": counts, "message": "Imported JSON backup successfully"}), 200


@backup_bp.get("/csv/<kind>")
def export_csv_route(kind: str):
    try:
        text = backup_service.export_csv(kind)
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to export %s CSV", kind)
        return jsonify({"error": "Internal server error"}), 500
    return Response(
        text,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{kind}-{_date_stamp()}.csv"'},
    )


def _uploaded_text() -> str:
    if "file" in request.files:
        raw = request.files["file"].stream.read()
    else:
        raw = request.get_data()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("CSV must be UTF-8 encoded")


@backup_bp.post("/csv/<kind>")
def import_csv_route(kind: str):
    try:
        count = backup_service.import_csv(kind, _uploaded_text())
    except BookkeepingError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to import %s CSV", kind)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"imported": count, "message": f"Imported {count} {kind} record(s)"}), 200
