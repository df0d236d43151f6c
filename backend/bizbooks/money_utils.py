# Overview: Conversions between decimal currency amounts and integer cents.
"""
Money handling (authoritative):
- Amounts are stored and computed as integer cents.
- Decimal strings/numbers are only accepted at import boundaries and for
  the bank balance setting; they are rounded half-up to the nearest cent.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


_CENT = Decimal("0.01")


def to_cents(value: Any) -> int:
    """
    Convert a decimal amount ("7.00", 7, 7.5) to integer cents.

    Raises ValueError for blanks, booleans, non-numeric and non-finite input.
    """
    if value is None or isinstance(value, bool):
        raise ValueError("amount is required")
    if isinstance(value, float):
        # repr() keeps the shortest round-tripping form, so 0.1 stays 0.1
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_cents(cents: int | None) -> str:
    """Render cents as a plain decimal string with two places ("1234.50")."""
    if cents is None:
        return ""
    return str((Decimal(cents) / 100).quantize(_CENT))
