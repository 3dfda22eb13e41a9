"""
Tax-inclusive price arithmetic.

All prices customers see are tax-inclusive. These helpers convert between
the base (pre-tax) price, the tax-inclusive price and the tax amount. They
compute at full Decimal precision and round to cents only on return.

to_base_price() and tax_from_final_price() are both derived from
split_final_price(), so for any tax-inclusive price the two always add back
up to exactly that price.
"""

from __future__ import annotations

from decimal import Decimal

from ..money import quantize_money, to_decimal
from .tax_rates import rate_label

ONE = Decimal("1")


class PricingError(ValueError):
    """Raised for invalid pricing input (negative prices, missing menu item, ...)."""


def _check(amount, rate) -> tuple[Decimal, Decimal]:
    amount = to_decimal(amount)
    rate = to_decimal(rate)
    if amount < 0:
        raise PricingError("Price must be >= 0")
    if rate < 0:
        raise PricingError("Tax rate must be >= 0")
    return amount, rate


def to_tax_inclusive(base_price, rate) -> Decimal:
    base_price, rate = _check(base_price, rate)
    return quantize_money(base_price * (ONE + rate))


def tax_from_base_price(base_price, rate) -> Decimal:
    base_price, rate = _check(base_price, rate)
    return quantize_money(base_price * rate)


def split_final_price(final_price, rate) -> tuple[Decimal, Decimal]:
    """
    Split a tax-inclusive price into (base_price, tax_amount).

    tax = final * rate / (1 + rate), rounded to cents; base is the remainder,
    so base + tax == round(final) with no rounding gap.
    """
    final_price, rate = _check(final_price, rate)
    final_price = quantize_money(final_price)
    tax = quantize_money(final_price * rate / (ONE + rate))
    return final_price - tax, tax


def to_base_price(final_price, rate) -> Decimal:
    return split_final_price(final_price, rate)[0]


def tax_from_final_price(final_price, rate) -> Decimal:
    return split_final_price(final_price, rate)[1]


def price_from_base_price(base_price, rate) -> dict:
    """Admin edited the base price: derive the customer-facing price."""
    base_price = quantize_money(to_decimal(base_price))
    return {"price": to_tax_inclusive(base_price, rate), "base_price": base_price}


def base_price_from_price(price, rate) -> dict:
    """Admin edited the customer-facing price: derive the base price."""
    price = quantize_money(to_decimal(price))
    return {"price": price, "base_price": to_base_price(price, rate)}


def is_consistent(price, base_price, rate, tolerance=Decimal("0.01")) -> bool:
    """price ~= base_price * (1 + rate) within one cent."""
    expected = to_decimal(base_price) * (ONE + to_decimal(rate))
    return abs(to_decimal(price) - expected) <= tolerance


def format_price_with_tax(price, rate, show_tax_info: bool = False) -> str:
    """€11.49, or €11.49 (inc. €1.37 VAT @ 13.5%) with show_tax_info."""
    price = quantize_money(to_decimal(price))
    formatted = f"€{price}"
    if not show_tax_info:
        return formatted
    tax = tax_from_final_price(price, rate)
    return f"{formatted} (inc. €{tax} VAT @ {rate_label(rate)})"
