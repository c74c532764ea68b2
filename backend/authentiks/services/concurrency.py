# Overview: Row locking and retry helpers shared by every state-changing service.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking to a query that reads state about to change.

    NOTE: SQLite ignores SELECT ... FOR UPDATE. There the version_id
    columns on orders/companies/qr_codes/payments/coupons catch the conflict at
    flush time instead, and run_with_retry re-runs the unit of work.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a unit of work, retrying on concurrency failures.

    func must re-read everything it checks (status, balance, used flag),
    so a retry after a lost race sees the winner's commit and fails its
    guard instead of applying the change twice.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrent update detected (%s); retrying (%d/%d)",
                type(exc).__name__, attempt + 1, attempts - 1,
            )
            time.sleep(backoff_base * (2 ** attempt))
