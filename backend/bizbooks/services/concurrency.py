# Overview: Unit-of-work helpers; every write operation runs through run_with_retry.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import StoreUnavailableError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for stock mutations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE and serializes writers at the
    database level instead; other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute one unit of work, rolling the session back on any failure.

    Retries on OperationalError (database locked, connection dropped) and
    StaleDataError (concurrent row update). Every other exception is
    re-raised after rollback so no partial writes survive. An
    OperationalError that outlives the last attempt becomes
    StoreUnavailableError.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            current_app.logger.warning(
                "Unit of work failed (attempt %d/%d): %s", attempt + 1, attempts, exc
            )
            if attempt >= attempts - 1:
                if isinstance(exc, OperationalError):
                    raise StoreUnavailableError(
                        "Database unavailable", details={"attempts": attempts}
                    ) from exc
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise


def run_read(func):
    """Run a read-only query, reporting an unreachable database as StoreUnavailableError."""
    try:
        return func()
    except OperationalError as exc:
        db.session.rollback()
        raise StoreUnavailableError("Database unavailable") from exc
