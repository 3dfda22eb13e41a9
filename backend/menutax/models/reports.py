from __future__ import annotations

from ..extensions import db
from ..money import cents_to_decimal, money_float
from menutax.time_utils import to_utc_z, utcnow

REPORT_TYPES = ("daily", "monthly", "yearly")


class TaxReport(db.Model):
    """
    Stored tax/revenue aggregate for one period.

    report_date is the first day of the period (2025-01-10 for a daily
    report, 2025-01-01 for January or for the whole of 2025). At most one row
    exists per (report_type, report_date); regeneration overwrites it.

    tax_breakdown keeps the historical on-disk format:
    {"13.5%": {"amount": 12.34, "orders": 5}}.
    """
    __tablename__ = "tax_reports"
    __table_args__ = (
        db.UniqueConstraint("report_type", "report_date", name="uq_tax_reports_type_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    report_type = db.Column(db.String(16), nullable=False, index=True)
    report_date = db.Column(db.Date, nullable=False, index=True)

    year = db.Column(db.Integer, nullable=False)
    month = db.Column(db.Integer, nullable=True)
    day = db.Column(db.Integer, nullable=True)

    # All amounts in cents
    total_tax_collected_cents = db.Column(db.Integer, nullable=False, default=0)
    total_pre_tax_revenue_cents = db.Column(db.Integer, nullable=False, default=0)
    total_inc_tax_revenue_cents = db.Column(db.Integer, nullable=False, default=0)
    total_orders = db.Column(db.Integer, nullable=False, default=0)

    tax_breakdown = db.Column(db.JSON, nullable=False, default=dict)
    order_details = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def _average(self, total_cents: int):
        if not self.total_orders:
            return cents_to_decimal(0)
        return cents_to_decimal(total_cents) / self.total_orders

    @property
    def average_tax_per_order(self):
        return self._average(self.total_tax_collected_cents)

    @property
    def average_order_value(self):
        return self._average(self.total_inc_tax_revenue_cents)

    def __repr__(self) -> str:
        return f"<TaxReport {self.report_type} {self.report_date}>"

    def to_dict(self, include_order_details: bool = True) -> dict:
        data = {
            "id": self.id,
            "report_type": self.report_type,
            "report_date": self.report_date.isoformat(),
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "total_orders": self.total_orders,
            "total_tax_collected": money_float(cents_to_decimal(self.total_tax_collected_cents)),
            "total_pre_tax_revenue": money_float(cents_to_decimal(self.total_pre_tax_revenue_cents)),
            "total_inc_tax_revenue": money_float(cents_to_decimal(self.total_inc_tax_revenue_cents)),
            "average_tax_per_order": money_float(self.average_tax_per_order),
            "average_order_value": money_float(self.average_order_value),
            "tax_breakdown": self.tax_breakdown or {},
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_order_details:
            data["order_details"] = self.order_details
        return data
