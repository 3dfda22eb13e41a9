# Overview: Pytest coverage for stored tax reports (idempotent upsert, scheduling, listing).

from datetime import date, datetime

import pytest

from menutax.models import TaxReport
from menutax.services import tax_report_service
from menutax.validation import ValidationError

from conftest import snapshot_item

DAY = date(2025, 1, 10)


def _report_count(db_session):
    return db_session.query(TaxReport).count()


class TestUpsert:
    def test_regeneration_keeps_one_row_with_latest_figures(self, db_session, make_order):
        make_order(datetime(2025, 1, 10, 12), [snapshot_item("20.00")])
        first = tax_report_service.generate_daily_report(DAY)
        first_id, first_created = first.id, first.created_at
        assert first.total_orders == 1

        make_order(datetime(2025, 1, 10, 18), [snapshot_item("15.00")])
        second = tax_report_service.generate_daily_report(DAY)

        assert _report_count(db_session) == 1
        assert second.id == first_id
        assert second.created_at == first_created
        assert second.total_orders == 2
        assert second.to_dict()["total_inc_tax_revenue"] == 35.00
        assert second.to_dict()["total_tax_collected"] == 4.16

    def test_upsert_report_directly(self, db_session):
        data = {
            "report_type": "monthly",
            "report_date": date(2025, 1, 1),
            "year": 2025,
            "month": 1,
            "day": None,
            "total_tax_collected_cents": 100,
            "total_pre_tax_revenue_cents": 740,
            "total_inc_tax_revenue_cents": 840,
            "total_orders": 1,
            "tax_breakdown": {"13.5%": {"amount": 1.0, "orders": 1}},
            "order_details": None,
        }
        tax_report_service.upsert_report(data)
        report = tax_report_service.upsert_report(dict(data, total_orders=5, total_tax_collected_cents=500))

        assert _report_count(db_session) == 1
        assert report.total_orders == 5
        assert report.total_tax_collected_cents == 500

    def test_same_date_different_types_are_separate(self, db_session, make_order):
        make_order(datetime(2025, 1, 1, 12), [snapshot_item("10.00")])

        tax_report_service.generate_daily_report(date(2025, 1, 1))
        tax_report_service.generate_monthly_report(2025, 1)
        tax_report_service.generate_yearly_report(2025)

        assert _report_count(db_session) == 3

    def test_generic_dialect_path_updates_in_place(self, db_session, make_order, monkeypatch):
        monkeypatch.setattr(tax_report_service, "_upsert_statement", lambda dialect_name, values: None)
        make_order(datetime(2025, 1, 10, 12), [snapshot_item("20.00")])
        first = tax_report_service.generate_daily_report(DAY)
        first_id = first.id

        make_order(datetime(2025, 1, 10, 18), [snapshot_item("15.00")])
        second = tax_report_service.generate_daily_report(DAY)

        assert _report_count(db_session) == 1
        assert second.id == first_id
        assert second.total_orders == 2

    def test_generic_dialect_path_recovers_from_lost_insert_race(self, db_session, make_order, monkeypatch):
        monkeypatch.setattr(tax_report_service, "_upsert_statement", lambda dialect_name, values: None)
        make_order(datetime(2025, 1, 10, 12), [snapshot_item("20.00")])
        tax_report_service.generate_daily_report(DAY)
        make_order(datetime(2025, 1, 10, 18), [snapshot_item("15.00")])

        # The existence check misses the row another writer just inserted
        real_find = tax_report_service.find_report
        calls = []

        def find_after_race(report_type, report_date):
            calls.append(report_type)
            if len(calls) == 1:
                return None
            return real_find(report_type, report_date)

        monkeypatch.setattr(tax_report_service, "find_report", find_after_race)
        report = tax_report_service.generate_daily_report(DAY)

        assert len(calls) >= 2
        assert _report_count(db_session) == 1
        assert report.total_orders == 2
        assert report.to_dict()["total_inc_tax_revenue"] == 35.00

    def test_unknown_report_type(self, db_session):
        with pytest.raises(tax_report_service.ReportError):
            tax_report_service.upsert_report({"report_type": "weekly", "report_date": DAY})


class TestGeneration:
    def test_reports_only_count_completed_orders(self, db_session, make_order):
        make_order(datetime(2025, 1, 10, 12), [snapshot_item("20.00")], status="completed")
        make_order(datetime(2025, 1, 10, 13), [snapshot_item("20.00")], status="pending")

        report = tax_report_service.generate_daily_report(DAY)
        assert report.total_orders == 1
        assert report.order_details[0]["status"] == "completed"

    def test_period_fields(self, db_session):
        daily = tax_report_service.generate_daily_report(DAY)
        monthly = tax_report_service.generate_monthly_report(2025, 2)
        yearly = tax_report_service.generate_yearly_report(2025)

        assert (daily.report_date, daily.year, daily.month, daily.day) == (DAY, 2025, 1, 10)
        assert (monthly.report_date, monthly.month, monthly.day) == (date(2025, 2, 1), 2, None)
        assert (yearly.report_date, yearly.month, yearly.day) == (date(2025, 1, 1), None, None)

    def test_zero_order_report(self, db_session):
        report = tax_report_service.generate_daily_report(DAY)
        data = report.to_dict()

        assert data["total_orders"] == 0
        assert data["average_tax_per_order"] == 0
        assert data["average_order_value"] == 0
        assert data["tax_breakdown"] == {}

    def test_get_or_generate_reuses_stored_report(self, db_session, make_order):
        tax_report_service.get_or_generate("daily", day=DAY)
        make_order(datetime(2025, 1, 10, 12), [snapshot_item("20.00")])

        assert tax_report_service.get_or_generate("daily", day=DAY).total_orders == 0
        assert tax_report_service.get_or_generate("daily", day=DAY, regenerate=True).total_orders == 1

    def test_report_period_validation(self):
        with pytest.raises(ValidationError):
            tax_report_service.report_period("monthly", year=2025)
        with pytest.raises(ValidationError):
            tax_report_service.report_period("weekly", day=DAY)


class TestCurrentPeriod:
    @pytest.mark.parametrize("now, expected", [
        (datetime(2025, 1, 10, 23, 0), ["daily"]),
        (datetime(2025, 2, 28, 23, 0), ["daily", "monthly"]),
        (datetime(2024, 2, 28, 23, 0), ["daily"]),
        (datetime(2025, 12, 31, 23, 0), ["daily", "monthly", "yearly"]),
    ])
    def test_which_reports_run(self, db_session, now, expected):
        reports = tax_report_service.generate_current_period_reports(now)
        assert [report.report_type for report in reports] == expected
        assert reports[0].report_date == now.date()


class TestListReports:
    def test_range_and_type_filter(self, db_session):
        for day in (1, 5, 20):
            tax_report_service.generate_daily_report(date(2025, 1, day))
        tax_report_service.generate_monthly_report(2025, 1)

        reports = tax_report_service.list_reports(date(2025, 1, 1), date(2025, 1, 10))
        assert [(r.report_type, r.report_date.day) for r in reports] == [
            ("daily", 5), ("daily", 1), ("monthly", 1),
        ]

        daily_only = tax_report_service.list_reports(date(2025, 1, 1), date(2025, 1, 31), "daily")
        assert [r.report_date.day for r in daily_only] == [20, 5, 1]

    def test_invalid_ranges(self, db_session):
        with pytest.raises(ValidationError):
            tax_report_service.list_reports(date(2025, 2, 1), date(2025, 1, 1))
        with pytest.raises(ValidationError):
            tax_report_service.list_reports(date(2023, 1, 1), date(2025, 1, 1))
        with pytest.raises(ValidationError):
            tax_report_service.list_reports(date(2025, 1, 1), date(2025, 1, 2), "weekly")
