"""Decimal helpers for two-decimal money amounts."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Coerce to a Decimal rounded to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def whole_percent(part: Decimal, whole: Decimal) -> int:
    """``part`` as a rounded percentage of ``whole`` (half rounds up)."""
    ratio = part / whole * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
