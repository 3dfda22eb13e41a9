"""
Pytest fixtures for menutax backend tests.

Provides the application (in-memory SQLite), a clean database per test, the
test client, and small factories for menu data and orders.
"""

import itertools
from datetime import datetime
from decimal import Decimal

import pytest
from menutax import create_app
from menutax.extensions import db
from menutax.models import MenuCategory, MenuItem, MenuItemOption, MenuItemOptionGroup, Order
from menutax.money import decimal_to_cents, rate_to_bps, to_decimal


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DEFAULT_TAX_RATE': Decimal('0.135'),
        'SERVICE_FEE': Decimal('0.00'),
        'REPORT_ORDER_STATUS': 'completed',
        'MAX_REPORT_RANGE_DAYS': 366,
        'REPORT_QUERY_BATCH_SIZE': 2,
        'LOG_LEVEL': 'INFO',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_category(db_session):
    """Factory: make_category("Drinks", tax_rate=Decimal("0.23"))."""
    counter = itertools.count(1)

    def _make(name="Mains", *, tax_rate=None, slug=None):
        category = MenuCategory(
            name=name,
            slug=slug or f"{name.lower().replace(' ', '-')}-{next(counter)}",
            tax_rate_bps=rate_to_bps(tax_rate),
        )
        db_session.add(category)
        db_session.commit()
        return category

    return _make


@pytest.fixture(scope='function')
def make_menu_item(db_session, make_category):
    """Factory: make_menu_item("Burger", price="11.49", tax_rate=None, category=None)."""

    def _make(name="Burger", *, price="11.49", tax_rate=None, category=None, is_available=True):
        category = category or make_category()
        item = MenuItem(
            category_id=category.id,
            name=name,
            price_cents=decimal_to_cents(Decimal(price)),
            tax_rate_bps=rate_to_bps(tax_rate),
            is_available=is_available,
        )
        db_session.add(item)
        db_session.commit()
        return item

    return _make


@pytest.fixture(scope='function')
def make_option_group(db_session):
    """Factory: make_option_group(item, "Size", [("Large", "1.50")], required=True)."""

    def _make(menu_item, name, options, *, required=False, max_selections=1):
        group = MenuItemOptionGroup(
            menu_item_id=menu_item.id,
            name=name,
            required=required,
            max_selections=max_selections,
        )
        db_session.add(group)
        db_session.flush()
        for sort_order, option in enumerate(options):
            option_name, modifier = option[0], option[1]
            available = option[2] if len(option) > 2 else True
            db_session.add(MenuItemOption(
                group_id=group.id,
                name=option_name,
                price_modifier_cents=decimal_to_cents(Decimal(modifier)),
                is_available=available,
                sort_order=sort_order,
            ))
        db_session.commit()
        return group

    return _make


def snapshot_item(price, quantity=1, *, tax_rate="0.135", name="Item", menu_item_id=None):
    """Stored OrderItem snapshot as it appears in Order.items."""
    item = {"name": name, "quantity": quantity, "price": float(Decimal(str(price)))}
    if tax_rate is not None:
        item["tax_rate"] = float(Decimal(str(tax_rate)))
    if menu_item_id is not None:
        item["menu_item_id"] = menu_item_id
    return item


@pytest.fixture(scope='function')
def make_order(db_session):
    """
    Factory: insert an order directly with the given item snapshots.

    make_order(datetime(2025, 1, 10, 12), [snapshot_item("20.00")], status="completed")
    """
    numbers = itertools.count(1)

    def _make(created_at: datetime, items, *, status="completed", customer_name="Test Customer", total=None):
        subtotal = Decimal("0")
        if isinstance(items, list):
            for entry in items:
                try:
                    line = to_decimal(entry["price"]) * int(entry.get("quantity", 1))
                except (KeyError, TypeError, ValueError, ArithmeticError):
                    continue
                # broken rows may carry amounts too large for a cents column
                if line.is_finite() and 0 <= line < 10 ** 9:
                    subtotal += line
        total = Decimal(str(total)) if total is not None else subtotal
        order = Order(
            business_date=created_at.date(),
            daily_order_number=next(numbers),
            customer_name=customer_name,
            subtotal_cents=decimal_to_cents(subtotal),
            service_fee_cents=decimal_to_cents(total - subtotal),
            tax_cents=0,
            total_cents=decimal_to_cents(total),
            status=status,
            items=items,
            created_at=created_at,
        )
        db_session.add(order)
        db_session.commit()
        return order

    return _make
