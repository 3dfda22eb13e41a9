# Overview: Menu store access and admin pricing edits (price <-> base price).

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import MenuCategory, MenuItem, MenuItemOption, MenuItemOptionGroup
from ..money import decimal_to_cents, rate_to_bps
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    parse_money,
    parse_non_negative_int,
    parse_positive_int,
    parse_rate,
    validate_payload,
)
from .pricing import base_price_from_price, is_consistent, price_from_base_price
from .tax_rates import resolve_tax_rate


class MenuError(Exception):
    """Raised when a menu record is missing."""
    pass


CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "slug", "sort_order"},
    required_on_create={"name", "slug"},
)

MENU_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "category_id", "is_available"},
    required_on_create={"name", "category_id"},
)


def default_tax_rate():
    return current_app.config["DEFAULT_TAX_RATE"]


def get_menu_item(menu_item_id: int) -> MenuItem | None:
    return db.session.get(MenuItem, menu_item_id)


def get_menu_category(category_id: int | None) -> MenuCategory | None:
    if category_id is None:
        return None
    return db.session.get(MenuCategory, category_id)


def effective_tax_rate(menu_item: MenuItem):
    return resolve_tax_rate(menu_item, menu_item.category, default_rate=default_tax_rate())


def list_menu_items(*, include_unavailable: bool = False) -> list[dict]:
    query = db.session.query(MenuItem)
    if not include_unavailable:
        query = query.filter(MenuItem.is_available.is_(True))
    items = query.order_by(MenuItem.category_id.asc(), MenuItem.name.asc()).all()
    default_rate = default_tax_rate()
    result = []
    for item in items:
        data = item.to_dict()
        data["effective_tax_rate"] = float(resolve_tax_rate(item, item.category, default_rate=default_rate))
        result.append(data)
    return result


def menu_item_detail(menu_item_id: int) -> dict:
    item = get_menu_item(menu_item_id)
    if not item:
        raise MenuError("Menu item not found")
    data = item.to_dict()
    data["effective_tax_rate"] = float(effective_tax_rate(item))
    data["option_groups"] = [group.to_dict() for group in item.option_groups]
    return data


def create_category(data: dict) -> MenuCategory:
    patch = validate_payload(model=MenuCategory, payload=data, policy=CATEGORY_POLICY, partial=False)
    category = MenuCategory(**patch)
    if "tax_rate" in data:
        category.tax_rate_bps = rate_to_bps(parse_rate(data["tax_rate"]))
    db.session.add(category)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Category slug already exists: {patch['slug']}")
    return category


def update_category(category_id: int, data: dict) -> MenuCategory:
    """
    Update a category. Changing its tax_rate does not reprice items already
    saved; their stored base price is refreshed on their next edit.
    """
    category = get_menu_category(category_id)
    if not category:
        raise MenuError("Category not found")
    patch = validate_payload(model=MenuCategory, payload=data, policy=CATEGORY_POLICY, partial=True)
    for key, value in patch.items():
        setattr(category, key, value)
    if "tax_rate" in data:
        category.tax_rate_bps = rate_to_bps(parse_rate(data["tax_rate"]))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category slug already exists")
    return category


def _apply_pricing(item: MenuItem, data: dict, *, creating: bool) -> None:
    """
    Recompute price/base_price from whichever one the admin edited.

    - price only: base_price follows
    - base_price only: price follows
    - both: accepted only if consistent with the effective rate
    - neither (tax_rate or category changed): displayed price is kept and
      base_price is recomputed
    The item's tax_rate is only ever set from an explicit "tax_rate" key.
    """
    if "tax_rate" in data:
        item.tax_rate_bps = rate_to_bps(parse_rate(data["tax_rate"]))

    category = get_menu_category(item.category_id)
    if item.category_id is not None and category is None:
        raise ValidationError("category_id does not exist")
    rate = resolve_tax_rate(item, category, default_rate=default_tax_rate())

    has_price = data.get("price") is not None
    has_base = data.get("base_price") is not None

    if has_price and has_base:
        price = parse_money(data["price"], "price")
        base_price = parse_money(data["base_price"], "base_price")
        if not is_consistent(price, base_price, rate):
            raise ValidationError("price and base_price are inconsistent with the effective tax rate")
        priced = {"price": price, "base_price": base_price}
    elif has_price:
        priced = base_price_from_price(parse_money(data["price"], "price"), rate)
    elif has_base:
        priced = price_from_base_price(parse_money(data["base_price"], "base_price"), rate)
    elif creating:
        raise ValidationError("price or base_price is required")
    else:
        priced = base_price_from_price(item.price, rate)

    item.price_cents = decimal_to_cents(priced["price"])
    item.base_price_cents = decimal_to_cents(priced["base_price"])


def create_menu_item(data: dict) -> MenuItem:
    patch = validate_payload(model=MenuItem, payload=data, policy=MENU_ITEM_POLICY, partial=False)
    item = MenuItem(**patch)
    _apply_pricing(item, data, creating=True)
    db.session.add(item)
    db.session.commit()
    return item


def update_menu_item(menu_item_id: int, data: dict) -> MenuItem:
    item = get_menu_item(menu_item_id)
    if not item:
        raise MenuError("Menu item not found")
    patch = validate_payload(model=MenuItem, payload=data, policy=MENU_ITEM_POLICY, partial=True)
    for key, value in patch.items():
        setattr(item, key, value)
    _apply_pricing(item, data, creating=False)
    db.session.commit()
    return item


def add_option_group(menu_item_id: int, data: dict) -> MenuItemOptionGroup:
    item = get_menu_item(menu_item_id)
    if not item:
        raise MenuError("Menu item not found")
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")
    required = data.get("required", False)
    if not isinstance(required, bool):
        raise ValidationError("required must be true or false")
    group = MenuItemOptionGroup(
        menu_item_id=item.id,
        name=name,
        required=required,
        max_selections=parse_positive_int(data.get("max_selections", 1), "max_selections"),
        sort_order=parse_non_negative_int(data.get("sort_order"), "sort_order"),
    )
    db.session.add(group)
    db.session.commit()
    return group


def add_option(group_id: int, data: dict) -> MenuItemOption:
    group = db.session.get(MenuItemOptionGroup, group_id)
    if not group:
        raise MenuError("Option group not found")
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")
    modifier = parse_money(data.get("price_modifier", 0), "price_modifier", allow_negative=True)
    option = MenuItemOption(
        group_id=group.id,
        name=name,
        price_modifier_cents=decimal_to_cents(modifier),
        is_available=bool(data.get("is_available", True)),
        sort_order=parse_non_negative_int(data.get("sort_order"), "sort_order"),
    )
    db.session.add(option)
    db.session.commit()
    return option
