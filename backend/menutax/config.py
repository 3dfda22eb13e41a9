# backend/menutax/config.py
from __future__ import annotations
import os
from decimal import Decimal


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/menutax.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///menutax.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Fallback rate when neither the item nor its category overrides it
    # (13.5% reduced VAT rate for restaurant food)
    DEFAULT_TAX_RATE = Decimal(os.environ.get("DEFAULT_TAX_RATE", "0.135"))

    # Flat fee added on top of the tax-inclusive subtotal, in euros
    SERVICE_FEE = Decimal(os.environ.get("SERVICE_FEE", "0.00"))

    # Reports only count orders that can no longer be cancelled
    REPORT_ORDER_STATUS = os.environ.get("REPORT_ORDER_STATUS", "completed")

    # Upper bound on ad-hoc range queries (calculate/range/export)
    MAX_REPORT_RANGE_DAYS = int(os.environ.get("MAX_REPORT_RANGE_DAYS", "366"))

    # Orders are streamed from the DB in chunks of this size while aggregating
    REPORT_QUERY_BATCH_SIZE = int(os.environ.get("REPORT_QUERY_BATCH_SIZE", "500"))
