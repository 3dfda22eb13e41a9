# backend/menutax/routes/system.py
"""
System health endpoint.

Reports database connectivity and the freshness of stored tax reports, for
load balancers and deployment debugging.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import MenuItem, Order, TaxReport
from menutax.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a few cheap counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        menu_item_count = db.session.query(MenuItem).count()
        order_count = db.session.query(Order).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "menu_items": menu_item_count,
                "orders": order_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_reporting_health() -> dict:
    """
    Degraded when no daily report has been stored in the last two days
    (the scheduled generate-current job is probably not running).
    """
    start_time = time.time()
    try:
        latest = (
            db.session.query(TaxReport)
            .filter_by(report_type="daily")
            .order_by(TaxReport.report_date.desc())
            .first()
        )
        elapsed_ms = (time.time() - start_time) * 1000
        details = {
            "latest_daily_report": latest.report_date.isoformat() if latest else None,
            "latest_update": to_utc_z(latest.updated_at) if latest else None,
        }
        if latest is None or (utcnow().date() - latest.report_date).days > 2:
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": "No recent daily tax report",
                "details": details,
            }
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Reporting health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Reporting error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded (still serving orders)
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    reporting_health = check_reporting_health()

    all_checks = [database_health, reporting_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "reporting": reporting_health,
        }
    }

    return response, http_status
