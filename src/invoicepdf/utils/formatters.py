from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "ETH": "Ξ",
    "BTC": "₿",
}

STATUS_LABELS = {
    "pending": "Pending",
    "completed": "Completed",
    "failed": "Failed",
    "cancelled": "Cancelled",
}

# es-ES long month names
_MONTHS = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_date(d: date) -> str:
    """Format a date in Spanish long form, e.g. ``12 de marzo de 2024``."""
    return f"{d.day} de {_MONTHS[d.month - 1]} de {d.year}"


def format_currency(amount: Decimal | int | float | str, currency: str) -> str:
    """Format an amount as ``<symbol><amount>`` with exactly two decimals.

    Rounds half-up on the decimal value (``1.005`` -> ``1.01``). Codes missing
    from CURRENCY_SYMBOLS are printed verbatim as the prefix.
    """
    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol is None:
        symbol = currency
    value = _to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    return f"{symbol}{value:.2f}"


def format_status(code: str) -> str:
    """Map a known status code to its label; unknown codes pass through unchanged."""
    label = STATUS_LABELS.get(code)
    if label is None:
        return code
    return label


def format_rate(rate: Decimal | int | float | str) -> str:
    """Format a percentage without trailing zeros (``10.00`` -> ``10``)."""
    d = _to_decimal(rate)
    if d == d.to_integral_value():
        return str(d.quantize(Decimal(1)))
    return format(d.normalize(), "f")
