# Overview: Retry wrapper for order/report writes that can hit lock contention.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a unit of DB work, rolling back and retrying when the database
    reports a lock/deadlock (OperationalError) or a stale row.

    func must be safe to call again from scratch: everything it did before
    the failure is rolled back.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt == attempts:
                logger.error("Giving up after %d attempts: %s", attempts, exc)
                raise
            delay = backoff_base * (2 ** (attempt - 1))
            logger.warning("Retryable database error (attempt %d/%d), retrying in %.2fs: %s",
                           attempt, attempts, delay, exc)
            time.sleep(delay)
