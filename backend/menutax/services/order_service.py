"""
Order creation and order-store queries.

create_order() prices every line from live menu data (rate resolution, tax
split, option modifiers) and persists the snapshots. After that an order's
financial fields are never recomputed.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DailyOrderSequence, Order, ORDER_STATUSES
from ..money import decimal_to_cents, quantize_money
from ..validation import ValidationError, parse_positive_int
from menutax.time_utils import utcnow
from .concurrency import run_with_retry
from .customization import (
    CustomizationError,
    groups_from_models,
    parse_selected_options,
    price_selection,
)
from .menu_service import default_tax_rate, get_menu_category, get_menu_item
from .order_items import build_order_item, order_tax_breakdown


class OrderError(Exception):
    """Raised for order operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def next_daily_order_number(business_date) -> int:
    """
    Atomically allocate the next order number for a UTC day.

    Same pattern as document sequences: bump the counter with a single
    UPDATE, create the row on first use and retry if another writer beat us.
    """
    stmt = (
        update(DailyOrderSequence)
        .where(DailyOrderSequence.business_date == business_date)
        .values(next_number=DailyOrderSequence.next_number + 1)
    )

    def _current() -> int:
        db.session.flush()
        current = (
            db.session.query(DailyOrderSequence.next_number)
            .filter_by(business_date=business_date)
            .scalar()
        )
        return current - 1

    if db.session.execute(stmt).rowcount:
        return _current()

    try:
        with db.session.begin_nested():
            db.session.add(DailyOrderSequence(business_date=business_date, next_number=2))
        return 1
    except IntegrityError:
        if not db.session.execute(stmt).rowcount:
            raise
        return _current()


def _price_line(line: dict, index: int):
    if not isinstance(line, dict):
        raise ValidationError(f"items[{index}] must be an object")
    if line.get("menu_item_id") is None:
        raise ValidationError(f"items[{index}].menu_item_id is required")
    quantity = parse_positive_int(line.get("quantity", 1), f"items[{index}].quantity")

    menu_item = get_menu_item(line["menu_item_id"])
    if menu_item is None:
        raise OrderError("Menu item not found", details={"menu_item_id": line["menu_item_id"]})
    if not menu_item.is_available:
        raise OrderError("Menu item is not available", details={"menu_item_id": menu_item.id})

    try:
        priced = price_selection(
            groups_from_models(menu_item.option_groups),
            parse_selected_options(line.get("selected_options")),
        )
    except CustomizationError as exc:
        raise OrderError(str(exc), details={"menu_item_id": menu_item.id, **exc.details})

    return build_order_item(
        menu_item,
        get_menu_category(menu_item.category_id),
        quantity,
        priced.describe(),
        default_rate=default_tax_rate(),
        price_modifier=priced.price_modifier,
    )


def create_order(data: dict, *, now: datetime | None = None) -> Order:
    """
    Create an order from {customer_name, ..., items: [{menu_item_id,
    quantity, selected_options}]}.

    subtotal = sum of tax-inclusive line totals, tax = the tax embedded in
    them, total = subtotal + service fee.
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    customer_name = str(data.get("customer_name") or "").strip()
    if not customer_name:
        raise ValidationError("customer_name is required")
    lines = data.get("items")
    if not isinstance(lines, list) or not lines:
        raise ValidationError("items must be a non-empty list")

    items = [_price_line(line, i) for i, line in enumerate(lines)]
    breakdown = order_tax_breakdown(items)
    subtotal = quantize_money(breakdown["total_inc_tax"])
    service_fee = quantize_money(Decimal(current_app.config["SERVICE_FEE"]))

    created_at = now or utcnow()

    def _op():
        order = Order(
            business_date=created_at.date(),
            daily_order_number=next_daily_order_number(created_at.date()),
            customer_name=customer_name,
            customer_email=data.get("customer_email"),
            customer_phone=data.get("customer_phone"),
            delivery_address=data.get("delivery_address"),
            notes=data.get("notes"),
            subtotal_cents=decimal_to_cents(subtotal),
            service_fee_cents=decimal_to_cents(service_fee),
            tax_cents=decimal_to_cents(breakdown["total_tax"]),
            total_cents=decimal_to_cents(subtotal + service_fee),
            status="pending",
            items=[item.to_dict() for item in items],
            created_at=created_at,
        )
        db.session.add(order)
        db.session.commit()
        return order

    return run_with_retry(_op)


def get_order(order_id: int) -> Order | None:
    return db.session.get(Order, order_id)


def list_orders(
    *,
    start: datetime,
    end: datetime,
    status: str | None = None,
    batch_size: int | None = None,
):
    """
    Orders with start <= created_at <= end, oldest first.

    Rows are streamed in batches so long ranges do not load every order at
    once.
    """
    query = db.session.query(Order).filter(
        Order.created_at >= start,
        Order.created_at <= end,
    )
    if status:
        query = query.filter(Order.status == status)
    query = query.order_by(Order.created_at.asc(), Order.id.asc())
    return query.yield_per(batch_size or current_app.config["REPORT_QUERY_BATCH_SIZE"])


def update_status(order_id: int, status: str) -> Order:
    if status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")

    def _op():
        order = db.session.query(Order).filter_by(id=order_id).with_for_update().first()
        if not order:
            raise OrderError("Order not found")
        order.status = status
        db.session.commit()
        return order

    return run_with_retry(_op)
