# Overview: OrderItem snapshot value object and the line-item tax builder.

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from ..money import money_float, quantize_money, to_decimal
from ..validation import MAX_PRICE, MAX_TAX_RATE
from .pricing import PricingError, split_final_price
from .tax_rates import rate_label, resolve_tax_rate


class MalformedOrderItems(ValueError):
    """Raised when an order's stored items cannot be read as OrderItem snapshots."""


def _stored_quantity(value) -> int:
    """Whole-number quantity; 2.0 is accepted, 2.5 is not."""
    if value is None:
        return 1
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    amount = to_decimal(value)
    if not amount.is_finite() or amount != amount.to_integral_value():
        raise MalformedOrderItems(f"order item quantity must be a whole number, got {value!r}")
    return int(amount)


@dataclass(frozen=True)
class OrderItem:
    """
    Snapshot of one ordered line.

    price is the tax-inclusive UNIT price; quantity is applied only when a
    line total is needed (line_total). Everything here is frozen at order
    time and must not follow later menu edits.
    """
    quantity: int
    name: str
    price: Decimal
    base_price: Decimal | None = None
    tax_rate: Decimal | None = None
    tax_amount: Decimal | None = None
    menu_item_id: int | None = None
    customizations: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "quantity": self.quantity,
            "name": self.name,
            "price": money_float(self.price),
            "base_price": money_float(self.base_price),
            "tax_rate": float(self.tax_rate) if self.tax_rate is not None else None,
            "tax_amount": money_float(self.tax_amount),
            "menu_item_id": self.menu_item_id,
            "customizations": self.customizations,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "OrderItem":
        """Read a stored snapshot; also accepts the legacy camelCase keys."""
        if not isinstance(data, dict):
            raise MalformedOrderItems("order item must be an object")

        def pick(*keys):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return None

        try:
            quantity = _stored_quantity(pick("quantity"))
            price = pick("price")
            if price is None:
                raise MalformedOrderItems("order item has no price")
            price = to_decimal(price)
            base_price = pick("base_price", "basePrice")
            tax_rate = pick("tax_rate", "taxRate")
            tax_amount = pick("tax_amount", "taxAmount")
            menu_item_id = pick("menu_item_id", "menuItemId")
            item = cls(
                quantity=quantity,
                name=str(pick("name") or "Unknown Item"),
                price=price,
                base_price=to_decimal(base_price) if base_price is not None else None,
                tax_rate=to_decimal(tax_rate) if tax_rate is not None else None,
                tax_amount=to_decimal(tax_amount) if tax_amount is not None else None,
                menu_item_id=int(menu_item_id) if menu_item_id is not None else None,
                customizations=pick("customizations"),
            )
        except (TypeError, ValueError, InvalidOperation) as exc:
            raise MalformedOrderItems(f"invalid order item: {exc}") from exc

        if item.quantity < 1:
            raise MalformedOrderItems("order item quantity must be >= 1")
        if not item.price.is_finite() or item.price < 0 or item.price > MAX_PRICE:
            raise MalformedOrderItems(f"order item price must be between 0 and {MAX_PRICE}")
        if item.tax_rate is not None and (
            not item.tax_rate.is_finite() or item.tax_rate < 0 or item.tax_rate >= MAX_TAX_RATE
        ):
            raise MalformedOrderItems("order item tax_rate must be a fraction between 0 and 1")
        return item


def parse_order_items(raw) -> list[OrderItem]:
    """Parse an order's items column (list, or a JSON string from older rows)."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise MalformedOrderItems(f"items is not valid JSON: {exc}") from exc
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedOrderItems("items must be a list")
    return [OrderItem.from_dict(entry) for entry in raw]


def build_order_item(menu_item, category, quantity: int, customizations=None, *, default_rate, price_modifier=None) -> OrderItem:
    """
    Build the tax-annotated snapshot for one cart line.

    The unit price is the menu price plus any (tax-inclusive) option
    modifiers. base_price and tax_amount are per unit.
    """
    if menu_item is None:
        raise PricingError("Menu item not found")
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise PricingError("quantity must be an integer >= 1")

    rate = resolve_tax_rate(menu_item, category, default_rate=default_rate)
    unit_price = to_decimal(menu_item.price)
    if price_modifier:
        unit_price += to_decimal(price_modifier)
    unit_price = quantize_money(unit_price)
    if unit_price < 0:
        raise PricingError("Option modifiers cannot make the price negative")

    base_price, tax_amount = split_final_price(unit_price, rate)
    return OrderItem(
        quantity=quantity,
        name=menu_item.name,
        price=unit_price,
        base_price=base_price,
        tax_rate=rate,
        tax_amount=tax_amount,
        menu_item_id=menu_item.id,
        customizations=customizations,
    )


def order_tax_breakdown(items: list[OrderItem]) -> dict:
    """
    Tax summary of a cart/order computed from its snapshots.

    Each line is split at its line total; lines without a snapshot rate are
    not expected here (they come from build_order_item).
    """
    total_pre_tax = Decimal("0")
    total_tax = Decimal("0")
    by_rate: dict[str, dict] = {}

    for item in items:
        base, tax = split_final_price(item.line_total, item.tax_rate or 0)
        total_pre_tax += base
        total_tax += tax
        entry = by_rate.setdefault(rate_label(item.tax_rate or 0), {"amount": Decimal("0"), "count": 0})
        entry["amount"] += tax
        entry["count"] += item.quantity

    return {
        "total_pre_tax": total_pre_tax,
        "total_tax": total_tax,
        "total_inc_tax": total_pre_tax + total_tax,
        "tax_rate_breakdown": by_rate,
    }
