"""Display helpers shared by cards, the vault and the API."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_UNITS = (
    (Decimal(1_000_000_000), "B"),
    (Decimal(1_000_000), "M"),
    (Decimal(1_000), "K"),
)
_ONE_PLACE = Decimal("0.1")


def format_number(n: float) -> str:
    """Format a KPI for display: 1500 -> "1.5K", 2300000 -> "2.3M".

    Values under 1000 are returned as-is, without a decimal point when the
    value is whole.
    """
    value = Decimal(n)
    for size, suffix in _UNITS:
        if value >= size:
            scaled = (value / size).quantize(_ONE_PLACE, rounding=ROUND_HALF_UP)
            return f"{scaled}{suffix}"
    if float(n).is_integer():
        return str(int(n))
    return str(n)


def short_id(uuid: str) -> str:
    """Compact display code for a UUID: first 10 hex chars, uppercased.

    For display only, not unique.
    """
    return uuid.replace("-", "")[:10].upper()
