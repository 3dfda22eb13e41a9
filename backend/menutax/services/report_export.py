# Overview: CSV export of stored tax reports.

from __future__ import annotations

import csv
import io
from typing import Iterable

from ..models import TaxReport
from ..money import cents_to_decimal, quantize_money

CSV_HEADER = (
    "Date",
    "Type",
    "Total Orders",
    "Pre-Tax Revenue",
    "Tax Collected",
    "Inc-Tax Revenue",
    "Avg Tax/Order",
    "Avg Order Value",
)


def report_row(report: TaxReport) -> list[str]:
    return [
        report.report_date.isoformat(),
        report.report_type,
        str(report.total_orders),
        str(quantize_money(cents_to_decimal(report.total_pre_tax_revenue_cents))),
        str(quantize_money(cents_to_decimal(report.total_tax_collected_cents))),
        str(quantize_money(cents_to_decimal(report.total_inc_tax_revenue_cents))),
        str(quantize_money(report.average_tax_per_order)),
        str(quantize_money(report.average_order_value)),
    ]


def reports_to_csv(reports: Iterable[TaxReport]) -> str:
    """Header plus one row per report; every field is quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for report in reports:
        writer.writerow(report_row(report))
    return buffer.getvalue()
