# Overview: Conversions between stored integers (cents, basis points) and Decimal amounts.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
BPS_PER_UNIT = Decimal("10000")


def quantize_money(amount: Decimal) -> Decimal:
    """Round a currency amount to 2 decimals (half up)."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """Coerce int/float/str/Decimal to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary value")
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def cents_to_decimal(cents: int | None) -> Decimal | None:
    if cents is None:
        return None
    return Decimal(int(cents)) / HUNDRED


def decimal_to_cents(amount) -> int | None:
    if amount is None:
        return None
    return int(quantize_money(to_decimal(amount)) * HUNDRED)


def bps_to_rate(bps: int | None) -> Decimal | None:
    if bps is None:
        return None
    return Decimal(int(bps)) / BPS_PER_UNIT


def rate_to_bps(rate) -> int | None:
    if rate is None:
        return None
    return int((to_decimal(rate) * BPS_PER_UNIT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def money_float(amount: Decimal | None) -> float | None:
    """JSON-friendly 2-decimal float."""
    if amount is None:
        return None
    return float(quantize_money(amount))
