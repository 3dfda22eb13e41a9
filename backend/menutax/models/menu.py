from __future__ import annotations

from ..extensions import db
from ..money import bps_to_rate, cents_to_decimal, money_float
from menutax.time_utils import to_utc_z, utcnow


class MenuCategory(db.Model):
    """
    Menu category.

    tax_rate_bps is an optional override applied to every item in the
    category that has no rate of its own (1350 = 13.5%).
    """
    __tablename__ = "menu_categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    tax_rate_bps = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def tax_rate(self):
        return bps_to_rate(self.tax_rate_bps)

    def __repr__(self) -> str:
        return f"<MenuCategory id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "sort_order": self.sort_order,
            "tax_rate": float(self.tax_rate) if self.tax_rate is not None else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class MenuItem(db.Model):
    """
    Menu item as shown to customers.

    price_cents is tax-inclusive (what the customer pays). base_price_cents is
    the pre-tax price and is kept consistent with the effective tax rate when
    the item is saved through menu_service.
    """
    __tablename__ = "menu_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("menu_categories.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    price_cents = db.Column(db.Integer, nullable=False)
    base_price_cents = db.Column(db.Integer, nullable=True)
    tax_rate_bps = db.Column(db.Integer, nullable=True)

    is_available = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    category = db.relationship("MenuCategory", backref=db.backref("items", lazy=True))

    @property
    def price(self):
        return cents_to_decimal(self.price_cents)

    @property
    def base_price(self):
        return cents_to_decimal(self.base_price_cents)

    @property
    def tax_rate(self):
        return bps_to_rate(self.tax_rate_bps)

    def __repr__(self) -> str:
        return f"<MenuItem id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "name": self.name,
            "description": self.description,
            "price": money_float(self.price),
            "base_price": money_float(self.base_price),
            "tax_rate": float(self.tax_rate) if self.tax_rate is not None else None,
            "is_available": self.is_available,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class MenuItemOptionGroup(db.Model):
    """A set of choices offered on one menu item (e.g. "Size", "Extras")."""
    __tablename__ = "menu_item_option_groups"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    menu_item_id = db.Column(db.Integer, db.ForeignKey("menu_items.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    required = db.Column(db.Boolean, nullable=False, default=False)
    max_selections = db.Column(db.Integer, nullable=False, default=1)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    menu_item = db.relationship(
        "MenuItem",
        backref=db.backref("option_groups", lazy=True, order_by="MenuItemOptionGroup.sort_order"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "required": self.required,
            "max_selections": self.max_selections,
            "sort_order": self.sort_order,
            "options": [option.to_dict() for option in self.options],
        }


class MenuItemOption(db.Model):
    """One choice inside an option group; price_modifier_cents is tax-inclusive."""
    __tablename__ = "menu_item_options"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("menu_item_option_groups.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    price_modifier_cents = db.Column(db.Integer, nullable=False, default=0)
    is_available = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    group = db.relationship(
        "MenuItemOptionGroup",
        backref=db.backref("options", lazy=True, order_by="MenuItemOption.sort_order"),
    )

    @property
    def price_modifier(self):
        return cents_to_decimal(self.price_modifier_cents)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "group_id": self.group_id,
            "name": self.name,
            "price_modifier": money_float(self.price_modifier),
            "is_available": self.is_available,
            "sort_order": self.sort_order,
        }
