from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation


def validate_money(value: object, field: str = "amount") -> Decimal:
    """Parse a monetary value into a Decimal.

    Floats go through ``str()`` first so ``1.005`` stays the literal 1.005.
    Raises ValueError for missing, non-numeric or non-finite values.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"{field}: numeric value required")
    try:
        d = Decimal(str(value)) if not isinstance(value, Decimal) else value
        if not d.is_finite():
            raise InvalidOperation
    except InvalidOperation:
        raise ValueError(f"{field}: invalid numeric value: '{value}'") from None
    return d


def validate_non_negative_money(value: object, field: str) -> Decimal:
    d = validate_money(value, field)
    if d < 0:
        raise ValueError(f"{field}: must not be negative: '{value}'")
    return d


def validate_quantity(value: object) -> int:
    """Validate a line-item quantity: a non-negative integer."""
    if isinstance(value, bool):
        raise ValueError(f"quantity: invalid integer: '{value}'")
    try:
        q = int(str(value))
    except ValueError:
        raise ValueError(f"quantity: invalid integer: '{value}'") from None
    if q < 0:
        raise ValueError(f"quantity: must not be negative: '{value}'")
    return q


def validate_date(value: object, field: str = "date") -> date:
    """Accept a date, a datetime or an ISO string (YYYY-MM-DD or full timestamp)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value) if "T" in value else date.fromisoformat(value)
        except ValueError:
            raise ValueError(f"{field}: invalid date '{value}'. Use YYYY-MM-DD.") from None
    raise ValueError(f"{field}: invalid date '{value}'")


def validate_required(value: object, field: str) -> str:
    """Return *value* as a non-empty stripped string, or raise ValueError."""
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValueError(f"{field}: required")
    return text


def totals_consistent(subtotal: object, tax: object | None, total: object) -> bool:
    """Check ``total == subtotal + tax`` (a missing tax counts as zero).

    Values may mix Decimal, int, float and str; each goes through validate_money.
    """
    tax_amount = validate_money(tax, "tax") if tax is not None else Decimal("0")
    return validate_money(subtotal, "subtotal") + tax_amount == validate_money(total, "total")
