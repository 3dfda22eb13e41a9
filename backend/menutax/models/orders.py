from __future__ import annotations

from ..extensions import db
from ..money import cents_to_decimal, money_float
from menutax.time_utils import to_utc_z, utcnow

ORDER_STATUSES = ("pending", "confirmed", "preparing", "ready", "completed", "cancelled")


class Order(db.Model):
    """
    Customer order.

    Financial fields are snapshots taken at checkout and are never recomputed:
    total = subtotal + service_fee, and tax is the amount already embedded in
    the tax-inclusive subtotal. items holds the OrderItem snapshots as a JSON
    list (see services/order_items.py for the value object).
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("business_date", "daily_order_number", name="uq_orders_day_number"),
        # Reports scan by status within a created_at window
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-facing number, restarts at 1 every UTC day
    business_date = db.Column(db.Date, nullable=False)
    daily_order_number = db.Column(db.Integer, nullable=False)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(64), nullable=True)
    delivery_address = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # All amounts in cents
    subtotal_cents = db.Column(db.Integer, nullable=False)
    service_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    items = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def subtotal(self):
        return cents_to_decimal(self.subtotal_cents)

    @property
    def service_fee(self):
        return cents_to_decimal(self.service_fee_cents)

    @property
    def tax(self):
        return cents_to_decimal(self.tax_cents)

    @property
    def total(self):
        return cents_to_decimal(self.total_cents)

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "daily_order_number": self.daily_order_number,
            "business_date": self.business_date.isoformat() if self.business_date else None,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "delivery_address": self.delivery_address,
            "notes": self.notes,
            "subtotal": money_float(self.subtotal),
            "service_fee": money_float(self.service_fee),
            "tax": money_float(self.tax),
            "total": money_float(self.total),
            "status": self.status,
            "items": self.items,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class DailyOrderSequence(db.Model):
    """Next daily order number per UTC business day."""
    __tablename__ = "daily_order_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    business_date = db.Column(db.Date, nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
