"""
Order aggregation engine.

Turns the orders placed in a time window into tax/revenue totals. Every
figure comes from the OrderItem snapshots stored on the order:

- rate: the snapshot tax_rate; older rows without one are re-resolved
  against the current menu item/category, and fall back to the configured
  default when the menu item no longer exists
- line total: unit price x quantity
- line tax: split_final_price(line total, rate), rounded to cents

Because tax is rounded per line, totals over adjacent periods add up to the
totals over the combined period to the cent.

Orders whose items cannot be parsed are skipped (and logged), never fatal.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from ..money import CENT, money_float, to_decimal
from ..time_utils import day_bounds, month_bounds, to_utc_z, year_bounds
from .menu_service import default_tax_rate, get_menu_category, get_menu_item
from .order_items import MalformedOrderItems, parse_order_items
from .order_service import list_orders
from .pricing import PricingError, split_final_price
from .tax_rates import rate_label, resolve_tax_rate

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class _RateLookup:
    """Current-menu rate for snapshots that predate stored rates (cached per run)."""

    def __init__(self):
        self.default_rate = to_decimal(default_tax_rate())
        self._cache: dict[int, Decimal] = {}

    def rate_for(self, menu_item_id: int | None) -> Decimal:
        if menu_item_id is None:
            return self.default_rate
        if menu_item_id not in self._cache:
            menu_item = get_menu_item(menu_item_id)
            if menu_item is None:
                rate = self.default_rate
            else:
                category = get_menu_category(menu_item.category_id)
                rate = resolve_tax_rate(menu_item, category, default_rate=self.default_rate)
            self._cache[menu_item_id] = rate
        return self._cache[menu_item_id]


def _order_lines(order, lookup: _RateLookup) -> list[dict]:
    """Price every line of one order; raises MalformedOrderItems on bad data."""
    lines = []
    for item in parse_order_items(order.items):
        rate = item.tax_rate if item.tax_rate is not None else lookup.rate_for(item.menu_item_id)
        try:
            base, tax = split_final_price(item.line_total, rate)
        except (PricingError, ArithmeticError) as exc:
            raise MalformedOrderItems(str(exc) or type(exc).__name__) from exc
        lines.append({
            "name": item.name,
            "quantity": item.quantity,
            "rate": rate,
            "line_total": base + tax,
            "base": base,
            "tax": tax,
        })
    return lines


def _dominant_rate(lines: list[dict]) -> Decimal | None:
    """Rate carrying the most tax within one order; ties go to the higher rate."""
    tax_by_rate: dict[Decimal, Decimal] = {}
    for line in lines:
        tax_by_rate[line["rate"]] = tax_by_rate.get(line["rate"], ZERO) + line["tax"]
    if not tax_by_rate:
        return None
    return max(tax_by_rate, key=lambda rate: (tax_by_rate[rate], rate))


def _average(total: Decimal, count: int) -> Decimal:
    if not count:
        return ZERO
    return (total / count).quantize(CENT, rounding=ROUND_HALF_UP)


def aggregate(
    start: datetime,
    end: datetime,
    *,
    status: str | None = None,
    include_order_details: bool = False,
) -> dict:
    """
    Aggregate orders with start <= created_at <= end.

    tax_breakdown maps a rate label ("13.5%") to the tax collected at that
    rate and the number of orders whose dominant rate it is.
    """
    lookup = _RateLookup()

    total_orders = 0
    skipped_orders = 0
    total_tax = ZERO
    total_pre_tax = ZERO
    total_inc_tax = ZERO
    rates: dict[str, dict] = {}
    details = [] if include_order_details else None

    for order in list_orders(start=start, end=end, status=status):
        try:
            lines = _order_lines(order, lookup)
        except MalformedOrderItems as exc:
            skipped_orders += 1
            logger.warning("Skipping order %s in tax aggregation: %s", order.id, exc)
            continue

        order_tax = sum((line["tax"] for line in lines), ZERO)
        order_pre_tax = sum((line["base"] for line in lines), ZERO)

        total_orders += 1
        total_tax += order_tax
        total_pre_tax += order_pre_tax
        total_inc_tax += order_tax + order_pre_tax

        for line in lines:
            bucket = rates.setdefault(rate_label(line["rate"]), {"amount": ZERO, "orders": 0})
            bucket["amount"] += line["tax"]
        dominant = _dominant_rate(lines)
        if dominant is not None:
            rates[rate_label(dominant)]["orders"] += 1

        if details is not None:
            details.append({
                "order_id": order.id,
                "customer_name": order.customer_name or "Anonymous",
                "daily_order_number": order.daily_order_number,
                "order_total": money_float(order.total),
                "tax_amount": money_float(order_tax),
                "pre_tax_amount": money_float(order_pre_tax),
                "status": order.status,
                "created_at": to_utc_z(order.created_at),
                "items": [
                    {
                        "name": line["name"],
                        "quantity": line["quantity"],
                        "price": money_float(line["line_total"]),
                        "item_tax": money_float(line["tax"]),
                    }
                    for line in lines
                ],
            })

    if skipped_orders:
        logger.warning("Tax aggregation %s..%s skipped %d malformed order(s)", start, end, skipped_orders)

    result = {
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "status": status,
        "total_orders": total_orders,
        "skipped_orders": skipped_orders,
        "total_tax_collected": money_float(total_tax),
        "total_pre_tax_revenue": money_float(total_pre_tax),
        "total_inc_tax_revenue": money_float(total_inc_tax),
        "average_tax_per_order": money_float(_average(total_tax, total_orders)),
        "average_order_value": money_float(_average(total_inc_tax, total_orders)),
        "tax_breakdown": {
            label: {"amount": money_float(bucket["amount"]), "orders": bucket["orders"]}
            for label, bucket in sorted(rates.items(), key=lambda entry: Decimal(entry[0][:-1]), reverse=True)
        },
    }
    if details is not None:
        result["order_details"] = details
    return result


def calculate_daily_tax(day: date, **kwargs) -> dict:
    start, end = day_bounds(day)
    return aggregate(start, end, **kwargs)


def calculate_monthly_tax(year: int, month: int, **kwargs) -> dict:
    start, end = month_bounds(year, month)
    return aggregate(start, end, **kwargs)


def calculate_yearly_tax(year: int, **kwargs) -> dict:
    start, end = year_bounds(year)
    return aggregate(start, end, **kwargs)
