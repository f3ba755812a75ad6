# Overview: Retry and locking helpers shared by the document builders.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """SELECT ... FOR UPDATE on backends that support it; SQLite serializes writers anyway."""
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Call func, repeating it when the database reports a lock or a version clash.

    OperationalError covers "database is locked" and deadlocks; StaleDataError
    is a Product.version_id mismatch. The session is rolled back before every
    repeat, so func has to rebuild its whole unit of work from scratch. The
    last failure propagates once attempts are used up.
    """
    attempt = 1
    while True:
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            current_app.logger.warning(
                "Write conflict (%s), retrying %s/%s",
                type(exc).__name__, attempt, attempts - 1,
            )
            time.sleep(backoff_base * 2 ** (attempt - 1))
            attempt += 1
