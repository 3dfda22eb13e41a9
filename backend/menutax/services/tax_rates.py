# Overview: Effective tax-rate resolution (item override > category override > default).

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from ..money import to_decimal


def resolve_tax_rate(item, category=None, *, default_rate) -> Decimal:
    """
    Return the tax rate that applies to one menu item.

    Priority: item.tax_rate, then category.tax_rate, then default_rate.
    A rate of 0 is a real override (zero-rated item), only None falls through.
    """
    item_rate = getattr(item, "tax_rate", None)
    if item_rate is not None:
        return to_decimal(item_rate)

    category_rate = getattr(category, "tax_rate", None) if category is not None else None
    if category_rate is not None:
        return to_decimal(category_rate)

    return to_decimal(default_rate)


def rate_label(rate) -> str:
    """Breakdown key for a rate: 0.135 -> "13.5%", 0.09 -> "9.0%"."""
    pct = (to_decimal(rate) * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return f"{pct}%"
