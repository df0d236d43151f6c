# Overview: Shared JSON error mapping for the API blueprints.

from flask import jsonify

from ..errors import (
    BookkeepingError,
    InsufficientStockError,
    NotFoundError,
    StoreUnavailableError,
)
from ..validation import ValidationError


def status_for(exc: BookkeepingError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, InsufficientStockError):
        # Business conflict: retrying without changes fails the same way
        return 409
    if isinstance(exc, StoreUnavailableError):
        return 503
    return 400


def json_error(exc: BookkeepingError):
    return jsonify({"error": exc.message, "details": exc.details}), status_for(exc)
