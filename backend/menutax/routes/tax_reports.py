# Overview: Flask API routes for tax reports; parses input and returns JSON/CSV responses.

# backend/menutax/routes/tax_reports.py
"""
Admin tax-report routes.

Stored reports (daily/monthly/yearly) are read from the report store and
generated on first access; ?regenerate=true forces a fresh aggregation.
/calculate runs the aggregation over an arbitrary window without storing
anything.

Bad input is a 400. Anything else is logged and returned as a generic 500
so the caller can simply retry.
"""
from datetime import datetime

from flask import Blueprint, Response, current_app, jsonify, request

from ..services import tax_report_service
from ..services.report_export import reports_to_csv
from ..services.tax_calculator import aggregate
from ..time_utils import END_OF_DAY, parse_iso_datetime
from ..validation import (
    ValidationError,
    enforce_range,
    parse_date_param,
    parse_year_month,
)

tax_reports_bp = Blueprint("tax_reports", __name__, url_prefix="/api/admin/tax-reports")

GENERATION_FAILED = "Failed to generate tax report"


def _flag(name: str) -> bool:
    return request.args.get(name, "false").lower() in ("1", "true", "yes")


def _parse_bound(value: str | None, field: str, *, end: bool = False):
    """ISO datetime, or a bare date (whole day: end bounds go to 23:59:59.999999)."""
    if not value:
        raise ValidationError(f"{field} is required")
    try:
        parsed = parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date or datetime")
    if end and len(value.strip()) == 10:
        parsed = datetime.combine(parsed.date(), END_OF_DAY)
    return parsed


@tax_reports_bp.get("/daily")
def daily_report():
    """
    Query params:
    - date: YYYY-MM-DD (required)
    - regenerate: bool (optional)
    """
    try:
        day = parse_date_param(request.args.get("date"), "date")
        report = tax_report_service.get_or_generate("daily", day=day, regenerate=_flag("regenerate"))
        return jsonify([report.to_dict()]), 200
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to generate daily tax report")
        return {"error": GENERATION_FAILED}, 500


@tax_reports_bp.get("/monthly")
def monthly_report():
    try:
        year, month = parse_year_month(
            request.args.get("year"), request.args.get("month"), month_required=True
        )
        report = tax_report_service.get_or_generate(
            "monthly", year=year, month=month, regenerate=_flag("regenerate")
        )
        return jsonify([report.to_dict()]), 200
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to generate monthly tax report")
        return {"error": GENERATION_FAILED}, 500


@tax_reports_bp.get("/yearly")
def yearly_report():
    try:
        year, _ = parse_year_month(request.args.get("year"))
        report = tax_report_service.get_or_generate("yearly", year=year, regenerate=_flag("regenerate"))
        return jsonify([report.to_dict()]), 200
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to generate yearly tax report")
        return {"error": GENERATION_FAILED}, 500


@tax_reports_bp.post("/generate")
def generate_report():
    """
    Body: {"report_type": "daily", "date": "2025-01-10"}
       or {"report_type": "monthly", "year": 2025, "month": 1}
       or {"report_type": "yearly", "year": 2025}
    """
    payload = request.get_json(silent=True) or {}
    report_type = payload.get("report_type")
    try:
        if report_type == "daily":
            day = parse_date_param(payload.get("date"), "date")
            report = tax_report_service.generate_report("daily", day=day)
        elif report_type == "monthly":
            year, month = parse_year_month(payload.get("year"), payload.get("month"), month_required=True)
            report = tax_report_service.generate_report("monthly", year=year, month=month)
        elif report_type == "yearly":
            year, _ = parse_year_month(payload.get("year"))
            report = tax_report_service.generate_report("yearly", year=year)
        else:
            raise ValidationError("report_type must be one of: daily, monthly, yearly")
        return report.to_dict(), 201
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to generate %s tax report", report_type)
        return {"error": GENERATION_FAILED}, 500


@tax_reports_bp.post("/generate-current")
def generate_current():
    """Same job the scheduler runs: today's daily report (+ month/year end reports)."""
    try:
        reports = tax_report_service.generate_current_period_reports()
        return {"reports": [report.to_dict(include_order_details=False) for report in reports]}, 201
    except Exception:
        current_app.logger.exception("Failed to generate current period tax reports")
        return {"error": GENERATION_FAILED}, 500


@tax_reports_bp.get("/range")
def reports_in_range():
    """
    Query params:
    - start_date, end_date: YYYY-MM-DD (required, inclusive)
    - report_type: daily | monthly | yearly (optional)
    """
    try:
        start = parse_date_param(request.args.get("start_date"), "start_date")
        end = parse_date_param(request.args.get("end_date"), "end_date")
        reports = tax_report_service.list_reports(start, end, request.args.get("report_type") or None)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return {
        "reports": [report.to_dict(include_order_details=False) for report in reports],
        "count": len(reports),
    }, 200


@tax_reports_bp.get("/calculate")
def calculate():
    """
    Live aggregation, nothing is stored.

    Query params:
    - start, end: ISO-8601 date or datetime (required, inclusive)
    - status: optional order status filter (all statuses when omitted)
    - include_details: bool (optional)
    """
    try:
        start = _parse_bound(request.args.get("start"), "start")
        end = _parse_bound(request.args.get("end"), "end", end=True)
        enforce_range(start, end, max_days=current_app.config["MAX_REPORT_RANGE_DAYS"])
        summary = aggregate(
            start,
            end,
            status=request.args.get("status") or None,
            include_order_details=_flag("include_details"),
        )
        return summary, 200
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to calculate tax summary")
        return {"error": "Failed to calculate tax summary"}, 500


@tax_reports_bp.get("/export")
def export_csv():
    """
    Stored reports as CSV.

    Query params:
    - start_date, end_date: YYYY-MM-DD (required)
    - report_type: daily | monthly | yearly (optional)
    """
    try:
        start = parse_date_param(request.args.get("start_date"), "start_date")
        end = parse_date_param(request.args.get("end_date"), "end_date")
        reports = tax_report_service.list_reports(start, end, request.args.get("report_type") or None)
    except ValidationError as e:
        return {"error": str(e)}, 400

    filename = f"tax-reports-{start.isoformat()}-to-{end.isoformat()}.csv"
    return Response(
        reports_to_csv(reports),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
