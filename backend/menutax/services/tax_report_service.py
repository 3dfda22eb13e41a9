# Overview: Tax report generation and the idempotent daily/monthly/yearly report store.

from __future__ import annotations

import logging
from datetime import date, datetime

from flask import current_app
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import REPORT_TYPES, TaxReport
from ..money import decimal_to_cents
from ..time_utils import is_last_day_of_month, is_last_day_of_year, utcnow
from ..validation import ValidationError, enforce_range
from .concurrency import run_with_retry
from .tax_calculator import calculate_daily_tax, calculate_monthly_tax, calculate_yearly_tax

logger = logging.getLogger(__name__)

# Columns rewritten when a report for the same period is regenerated
UPSERT_COLUMNS = (
    "year",
    "month",
    "day",
    "total_tax_collected_cents",
    "total_pre_tax_revenue_cents",
    "total_inc_tax_revenue_cents",
    "total_orders",
    "tax_breakdown",
    "order_details",
    "updated_at",
)


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def report_period(report_type: str, *, day: date | None = None, year: int | None = None, month: int | None = None) -> date:
    """First day of the period a report covers (its report_date key)."""
    if report_type == "daily":
        if day is None:
            raise ValidationError("date is required for daily reports")
        return day
    if report_type == "monthly":
        if year is None or month is None:
            raise ValidationError("year and month are required for monthly reports")
        return date(year, month, 1)
    if report_type == "yearly":
        if year is None:
            raise ValidationError("year is required for yearly reports")
        return date(year, 1, 1)
    raise ValidationError(f"report_type must be one of: {', '.join(REPORT_TYPES)}")


def build_report_data(report_type: str, report_date: date, summary: dict) -> dict:
    """Map an aggregation result onto TaxReport columns."""
    return {
        "report_type": report_type,
        "report_date": report_date,
        "year": report_date.year,
        "month": report_date.month if report_type in ("daily", "monthly") else None,
        "day": report_date.day if report_type == "daily" else None,
        "total_tax_collected_cents": decimal_to_cents(summary["total_tax_collected"]),
        "total_pre_tax_revenue_cents": decimal_to_cents(summary["total_pre_tax_revenue"]),
        "total_inc_tax_revenue_cents": decimal_to_cents(summary["total_inc_tax_revenue"]),
        "total_orders": summary["total_orders"],
        "tax_breakdown": summary["tax_breakdown"],
        "order_details": summary.get("order_details"),
    }


def find_report(report_type: str, report_date: date) -> TaxReport | None:
    return (
        db.session.query(TaxReport)
        .filter_by(report_type=report_type, report_date=report_date)
        .first()
    )


def _upsert_statement(dialect_name: str, values: dict):
    if dialect_name == "postgresql":
        insert = postgresql.insert
    elif dialect_name == "sqlite":
        insert = sqlite.insert
    else:
        return None
    stmt = insert(TaxReport).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=["report_type", "report_date"],
        set_={column: stmt.excluded[column] for column in UPSERT_COLUMNS},
    )


def _update_existing(values: dict) -> None:
    report = find_report(values["report_type"], values["report_date"])
    if report is None:
        raise ReportError("Report disappeared during regeneration")
    for column in UPSERT_COLUMNS:
        setattr(report, column, values[column])


def upsert_report(data: dict) -> TaxReport:
    """
    Insert or overwrite the report for (report_type, report_date).

    The unique constraint decides which writer inserts; any other writer
    updates the same row, so repeated or concurrent generation leaves exactly
    one report holding the latest figures.
    """
    if data.get("report_type") not in REPORT_TYPES:
        raise ReportError(f"report_type must be one of: {', '.join(REPORT_TYPES)}")

    now = utcnow()
    values = dict(data, created_at=now, updated_at=now)

    def _op():
        stmt = _upsert_statement(db.engine.dialect.name, values)
        if stmt is not None:
            db.session.execute(stmt)
        elif find_report(values["report_type"], values["report_date"]):
            _update_existing(values)
        else:
            try:
                with db.session.begin_nested():
                    db.session.add(TaxReport(**values))
            except IntegrityError:
                # Lost the insert race; the winner's row gets our figures
                _update_existing(values)
        db.session.commit()

    run_with_retry(_op)

    report = find_report(values["report_type"], values["report_date"])
    db.session.refresh(report)
    logger.info(
        "Stored %s tax report for %s (%d orders)",
        report.report_type,
        report.report_date.isoformat(),
        report.total_orders,
    )
    return report


def _report_status() -> str | None:
    return current_app.config.get("REPORT_ORDER_STATUS") or None


def generate_daily_report(day: date, *, include_order_details: bool = True) -> TaxReport:
    summary = calculate_daily_tax(day, status=_report_status(), include_order_details=include_order_details)
    return upsert_report(build_report_data("daily", day, summary))


def generate_monthly_report(year: int, month: int) -> TaxReport:
    summary = calculate_monthly_tax(year, month, status=_report_status())
    return upsert_report(build_report_data("monthly", date(year, month, 1), summary))


def generate_yearly_report(year: int) -> TaxReport:
    summary = calculate_yearly_tax(year, status=_report_status())
    return upsert_report(build_report_data("yearly", date(year, 1, 1), summary))


def generate_report(report_type: str, *, day: date | None = None, year: int | None = None, month: int | None = None) -> TaxReport:
    report_date = report_period(report_type, day=day, year=year, month=month)
    if report_type == "daily":
        return generate_daily_report(report_date)
    if report_type == "monthly":
        return generate_monthly_report(report_date.year, report_date.month)
    return generate_yearly_report(report_date.year)


def get_or_generate(report_type: str, *, regenerate: bool = False, **period) -> TaxReport:
    """Stored report for the period, generated first if missing (or if asked to)."""
    report_date = report_period(report_type, **period)
    if not regenerate:
        report = find_report(report_type, report_date)
        if report is not None:
            return report
    return generate_report(report_type, **period)


def generate_current_period_reports(now: datetime | None = None) -> list[TaxReport]:
    """
    Scheduled entry point: today's daily report, plus the monthly report on
    the last day of the month and the yearly report on the last day of the
    year.
    """
    today = (now or utcnow()).date()
    reports = [generate_daily_report(today)]
    if is_last_day_of_month(today):
        reports.append(generate_monthly_report(today.year, today.month))
    if is_last_day_of_year(today):
        reports.append(generate_yearly_report(today.year))
    return reports


def list_reports(start_date: date, end_date: date, report_type: str | None = None) -> list[TaxReport]:
    """Stored reports whose period starts within [start_date, end_date], newest first."""
    enforce_range(start_date, end_date, max_days=current_app.config.get("MAX_REPORT_RANGE_DAYS"))
    if report_type is not None and report_type not in REPORT_TYPES:
        raise ValidationError(f"report_type must be one of: {', '.join(REPORT_TYPES)}")

    query = db.session.query(TaxReport).filter(
        TaxReport.report_date >= start_date,
        TaxReport.report_date <= end_date,
    )
    if report_type:
        query = query.filter(TaxReport.report_type == report_type)
    return query.order_by(TaxReport.report_date.desc(), TaxReport.report_type.asc()).all()
