# Overview: Pytest coverage for the order aggregation engine.

"""
Tax aggregation tests.

Orders are inserted directly with stored item snapshots so each test controls
exactly what the engine reads: snapshot rates, legacy rows without rates,
malformed rows, and orders on period boundaries.
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from menutax.services.tax_calculator import (
    aggregate,
    calculate_daily_tax,
    calculate_monthly_tax,
    calculate_yearly_tax,
)
from menutax.time_utils import day_bounds

from conftest import snapshot_item

DAY = date(2025, 1, 10)


def _at(hour, minute=0, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute)


class TestDailyTotals:
    def test_two_completed_orders(self, db_session, make_order):
        make_order(_at(12), [snapshot_item("20.00")])
        make_order(_at(18), [snapshot_item("15.00")])

        summary = calculate_daily_tax(DAY, status="completed")

        assert summary["total_orders"] == 2
        assert summary["total_inc_tax_revenue"] == 35.00
        assert summary["total_tax_collected"] == 4.16
        assert summary["total_pre_tax_revenue"] == 30.84
        assert summary["average_tax_per_order"] == 2.08
        assert summary["average_order_value"] == 17.50
        assert summary["tax_breakdown"] == {"13.5%": {"amount": 4.16, "orders": 2}}
        assert summary["skipped_orders"] == 0

    def test_status_filter(self, db_session, make_order):
        make_order(_at(12), [snapshot_item("20.00")], status="completed")
        make_order(_at(13), [snapshot_item("10.00")], status="pending")
        make_order(_at(14), [snapshot_item("10.00")], status="cancelled")

        assert calculate_daily_tax(DAY, status="completed")["total_orders"] == 1
        assert calculate_daily_tax(DAY)["total_orders"] == 3

    def test_quantity_applied_once(self, db_session, make_order):
        make_order(_at(12), [snapshot_item("11.49", quantity=2)])

        summary = calculate_daily_tax(DAY)
        assert summary["total_inc_tax_revenue"] == 22.98
        assert summary["total_tax_collected"] == 2.73

    def test_zero_orders(self, db_session):
        summary = calculate_daily_tax(DAY)

        assert summary["total_orders"] == 0
        assert summary["total_tax_collected"] == 0
        assert summary["average_tax_per_order"] == 0
        assert summary["average_order_value"] == 0
        assert summary["tax_breakdown"] == {}

    def test_day_bounds_are_inclusive(self, db_session, make_order):
        start, end = day_bounds(DAY)
        make_order(start, [snapshot_item("1.00")])
        make_order(end, [snapshot_item("2.00")])
        make_order(datetime(2025, 1, 11), [snapshot_item("4.00")])
        make_order(datetime(2025, 1, 9, 23, 59, 59, 999999), [snapshot_item("8.00")])

        summary = calculate_daily_tax(DAY)
        assert summary["total_orders"] == 2
        assert summary["total_inc_tax_revenue"] == 3.00


class TestRateSources:
    def test_legacy_items_use_current_menu_rate(self, db_session, make_order, make_category, make_menu_item):
        drinks = make_category("Drinks", tax_rate=Decimal("0.23"))
        wine = make_menu_item("Wine", price="12.30", category=drinks)
        make_order(_at(12), [snapshot_item("12.30", tax_rate=None, menu_item_id=wine.id)])

        summary = calculate_daily_tax(DAY)
        assert summary["total_tax_collected"] == 2.30
        assert summary["tax_breakdown"] == {"23.0%": {"amount": 2.30, "orders": 1}}

    def test_deleted_menu_item_uses_default_rate(self, db_session, make_order):
        make_order(_at(12), [snapshot_item("20.00", tax_rate=None, menu_item_id=999)])
        make_order(_at(13), [snapshot_item("15.00", tax_rate=None)])

        summary = calculate_daily_tax(DAY)
        assert summary["total_tax_collected"] == 4.16
        assert list(summary["tax_breakdown"]) == ["13.5%"]

    def test_snapshot_rate_wins_over_current_menu(self, db_session, make_order, make_menu_item):
        item = make_menu_item("Burger", price="11.49", tax_rate=Decimal("0.23"))
        make_order(_at(12), [snapshot_item("11.49", tax_rate="0.135", menu_item_id=item.id)])

        assert calculate_daily_tax(DAY)["total_tax_collected"] == 1.37


class TestBreakdown:
    def test_order_counted_under_dominant_rate(self, db_session, make_order):
        make_order(_at(12), [
            snapshot_item("5.00", tax_rate="0.135", name="Soup"),
            snapshot_item("12.30", tax_rate="0.23", name="Wine"),
        ])

        breakdown = calculate_daily_tax(DAY)["tax_breakdown"]
        assert breakdown == {
            "23.0%": {"amount": 2.30, "orders": 1},
            "13.5%": {"amount": 0.59, "orders": 0},
        }
        assert sum(entry["orders"] for entry in breakdown.values()) == 1

    def test_tie_goes_to_higher_rate(self, db_session, make_order):
        make_order(_at(12), [
            snapshot_item("1.00", tax_rate="0", name="Water"),
            snapshot_item("0.00", tax_rate="0.135", name="Free bread"),
        ])

        breakdown = calculate_daily_tax(DAY)["tax_breakdown"]
        assert breakdown["13.5%"]["orders"] == 1
        assert breakdown["0.0%"]["orders"] == 0


class TestMalformedOrders:
    def test_skipped_and_logged(self, db_session, make_order, caplog):
        make_order(_at(11), "not json")
        make_order(_at(12), [snapshot_item("20.00")])
        make_order(_at(13), [{"name": "broken", "quantity": 0, "price": 5}])
        make_order(_at(14), {"price": 5})

        with caplog.at_level(logging.WARNING, logger="menutax"):
            summary = calculate_daily_tax(DAY)

        assert summary["total_orders"] == 1
        assert summary["skipped_orders"] == 3
        assert summary["total_inc_tax_revenue"] == 20.00
        assert any("Skipping order" in record.getMessage() for record in caplog.records)

    def test_non_finite_rate_and_oversized_price_are_skipped(self, db_session, make_order):
        make_order(_at(11), [{"name": "Soup", "price": 5, "tax_rate": "NaN"}])
        make_order(_at(12), [snapshot_item("20.00")])
        make_order(_at(13), [{"name": "Lobster", "price": "1e30"}])
        make_order(_at(14), [{"name": "Wine", "price": 5, "tax_rate": "Infinity"}])

        summary = calculate_daily_tax(DAY)

        assert summary["total_orders"] == 1
        assert summary["skipped_orders"] == 3
        assert summary["total_tax_collected"] == 2.38

    def test_line_total_beyond_decimal_precision_is_skipped(self, db_session, make_order):
        make_order(_at(12), [snapshot_item("20.00")])
        make_order(_at(13), [{"name": "Bulk", "price": "99999.99", "quantity": 10 ** 30}])

        summary = calculate_daily_tax(DAY)

        assert summary["total_orders"] == 1
        assert summary["skipped_orders"] == 1


def test_aggregation_is_linear_across_days(db_session, make_order):
    day_one, day_two = date(2025, 1, 10), date(2025, 1, 11)
    make_order(_at(9, day=day_one), [snapshot_item("11.49", quantity=3), snapshot_item("4.99", tax_rate="0.23")])
    make_order(_at(21, day=day_one), [snapshot_item("0.99", quantity=7, tax_rate="0.09")])
    make_order(_at(10, day=day_two), [snapshot_item("19.95"), snapshot_item("3.33", quantity=2, tax_rate="0.23")])
    make_order(_at(23, 59, day=day_two), [snapshot_item("7.77", tax_rate="0")])

    first = calculate_daily_tax(day_one)
    second = calculate_daily_tax(day_two)
    start, _ = day_bounds(day_one)
    _, end = day_bounds(day_two)
    combined = aggregate(start, end)

    def dec(value):
        return Decimal(str(value))

    for field in ("total_tax_collected", "total_pre_tax_revenue", "total_inc_tax_revenue"):
        assert dec(first[field]) + dec(second[field]) == dec(combined[field]), field
    assert first["total_orders"] + second["total_orders"] == combined["total_orders"]
    for label, entry in combined["tax_breakdown"].items():
        parts = [part["tax_breakdown"].get(label, {"amount": 0, "orders": 0}) for part in (first, second)]
        assert sum(dec(part["amount"]) for part in parts) == dec(entry["amount"])
        assert sum(part["orders"] for part in parts) == entry["orders"]


def test_order_details(db_session, make_order):
    make_order(_at(12), [snapshot_item("11.49", quantity=2, name="Burger")], customer_name="")

    [detail] = calculate_daily_tax(DAY, include_order_details=True)["order_details"]

    assert detail["customer_name"] == "Anonymous"
    assert detail["daily_order_number"] == 1
    assert detail["order_total"] == 22.98
    assert detail["tax_amount"] == 2.73
    assert detail["pre_tax_amount"] == 20.25
    assert detail["items"] == [{"name": "Burger", "quantity": 2, "price": 22.98, "item_tax": 2.73}]
    assert "order_details" not in calculate_daily_tax(DAY)


def test_month_and_year_wrappers(db_session, make_order):
    make_order(datetime(2025, 1, 1, 0, 0), [snapshot_item("10.00")])
    make_order(datetime(2025, 1, 31, 23, 59, 59), [snapshot_item("10.00")])
    make_order(datetime(2025, 2, 1, 0, 0), [snapshot_item("10.00")])
    make_order(datetime(2025, 12, 31, 23, 0), [snapshot_item("10.00")])
    make_order(datetime(2026, 1, 1, 0, 0), [snapshot_item("10.00")])

    assert calculate_monthly_tax(2025, 1)["total_orders"] == 2
    assert calculate_monthly_tax(2025, 2)["total_orders"] == 1
    assert calculate_yearly_tax(2025)["total_orders"] == 4
