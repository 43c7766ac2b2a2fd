from __future__ import annotations

from decimal import Decimal


def format_amount(cents: int | None) -> str:
    """
    Shortest decimal rendering of a centavo amount: 19600 -> "196",
    19650 -> "196.5", 1999 -> "19.99".
    """
    if cents is None:
        return ""
    return str(Decimal(int(cents)) / Decimal(100))


def format_peso(cents: int | None) -> str:
    """Display form used on receipts, e.g. 22600 -> "₱226.00"."""
    cents = int(cents or 0)
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}₱{cents // 100:,}.{cents % 100:02d}"
