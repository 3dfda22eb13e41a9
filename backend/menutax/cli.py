# Overview: Flask CLI command groups for bootstrap and scheduled tax-report generation.

# backend/menutax/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (development; use `flask db upgrade` for real databases).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tax reports:
# - python -m flask tax-reports generate --type daily --date 2025-01-10
# - python -m flask tax-reports generate --type monthly --year 2025 --month 1
# - python -m flask tax-reports generate --type yearly --year 2025
#   Generate (or regenerate) one stored report.
# - python -m flask tax-reports generate-current [--date 2025-01-31]
#   Cron entry point: daily report, plus monthly/yearly on period end.
# - python -m flask tax-reports export --start-date 2025-01-01 --end-date 2025-01-31 [--type daily] [--output out.csv]
#   Write stored reports as CSV.

from datetime import datetime

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import REPORT_TYPES
from .services import tax_report_service
from .services.report_export import reports_to_csv
from .validation import ValidationError, parse_date_param


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('tax-reports')
def tax_reports_group():
    """Tax report generation and export."""


def _echo_report(report):
    data = report.to_dict(include_order_details=False)
    click.echo(
        f"PASS {report.report_type} report {report.report_date.isoformat()}: "
        f"{report.total_orders} orders, "
        f"tax {data['total_tax_collected']:.2f}, "
        f"inc-tax revenue {data['total_inc_tax_revenue']:.2f}"
    )


def _parse_date_option(value, name):
    try:
        return parse_date_param(value, name)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint=f"--{name.replace('_', '-')}")


@tax_reports_group.command('generate')
@click.option('--type', 'report_type', type=click.Choice(REPORT_TYPES), required=True)
@click.option('--date', 'day', help='YYYY-MM-DD (daily reports)')
@click.option('--year', type=int, help='Year (monthly/yearly reports)')
@click.option('--month', type=click.IntRange(1, 12), help='Month (monthly reports)')
@with_appcontext
def generate_report(report_type, day, year, month):
    """Generate or regenerate one stored report."""
    if report_type == "daily":
        report = tax_report_service.generate_report("daily", day=_parse_date_option(day, "date"))
    else:
        try:
            report = tax_report_service.generate_report(report_type, year=year, month=month)
        except ValidationError as e:
            raise click.UsageError(str(e))
    _echo_report(report)


@tax_reports_group.command('generate-current')
@click.option('--date', 'day', help='Pretend today is YYYY-MM-DD (backfills)')
@with_appcontext
def generate_current(day):
    """Daily report for today, plus monthly/yearly at period end."""
    now = None
    if day:
        now = datetime.combine(_parse_date_option(day, "date"), datetime.min.time())
    reports = tax_report_service.generate_current_period_reports(now)
    for report in reports:
        _echo_report(report)
    click.echo(f"DONE Generated {len(reports)} report(s).")


@tax_reports_group.command('export')
@click.option('--start-date', required=True, help='YYYY-MM-DD')
@click.option('--end-date', required=True, help='YYYY-MM-DD')
@click.option('--type', 'report_type', type=click.Choice(REPORT_TYPES), default=None)
@click.option('--output', type=click.Path(dir_okay=False, writable=True), default=None,
              help='Write to a file instead of stdout')
@with_appcontext
def export_reports(start_date, end_date, report_type, output):
    """Export stored reports as CSV."""
    start = _parse_date_option(start_date, "start_date")
    end = _parse_date_option(end_date, "end_date")
    try:
        reports = tax_report_service.list_reports(start, end, report_type)
    except ValidationError as e:
        raise click.UsageError(str(e))

    content = reports_to_csv(reports)
    if output:
        with open(output, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        click.echo(f"PASS Wrote {len(reports)} report(s) to {output}")
    else:
        click.echo(content, nl=False)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tax_reports_group)
