# Overview: Key-value settings store (bank balance and friends).

from __future__ import annotations

from ..extensions import db
from ..models import Setting
from ..money_utils import format_cents, to_cents
from ..validation import enforce_rules_setting
from .concurrency import run_read, run_with_retry


BANK_BALANCE_KEY = "bankBalance"

DEFAULT_SETTINGS = {
    BANK_BALANCE_KEY: "0",
}


def get_setting(key: str) -> str | None:
    row = run_read(lambda: db.session.get(Setting, key))
    return row.value if row is not None else None


def _upsert(key: str, value: str) -> Setting:
    row = db.session.get(Setting, key)
    if row is None:
        row = Setting(key=key, value=value)
        db.session.add(row)
    else:
        row.value = value
    db.session.flush()
    return row


def set_setting(key: str, value, *, commit: bool = True) -> Setting:
    """Create or replace a setting. Numbers are stored in their text form."""
    text_value = enforce_rules_setting(key, value)

    def _op():
        row = _upsert(key, text_value)
        if commit:
            db.session.commit()
        return row

    if not commit:
        return _op()
    return run_with_retry(_op)


def get_bank_balance_cents() -> int:
    """Stored bank balance in cents; 0 when unset or unparseable."""
    raw = get_setting(BANK_BALANCE_KEY)
    if raw is None:
        return 0
    try:
        return to_cents(raw)
    except ValueError:
        return 0


def set_bank_balance_cents(cents: int, *, commit: bool = True) -> Setting:
    return set_setting(BANK_BALANCE_KEY, format_cents(cents), commit=commit)


def ensure_default_settings() -> int:
    """Seed missing default settings; returns how many were added."""
    def _op():
        added = 0
        for key, value in DEFAULT_SETTINGS.items():
            if db.session.get(Setting, key) is None:
                db.session.add(Setting(key=key, value=value))
                added += 1
        db.session.commit()
        return added

    return run_with_retry(_op)
