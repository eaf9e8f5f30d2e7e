# Overview: Transaction boundaries, row locking and retry for multi-row writes.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import CommerceError, TransactionError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; atomic() takes the database
    write lock up front there instead.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def _begin_write_transaction() -> None:
    # End any read-only transaction left open by precondition checks so the
    # write lock is taken before the source document is re-read.
    db.session.commit()
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def atomic(func, *, label: str, attempts: int = 3):
    """
    Run func as one bounded transaction and commit once.

    - Domain errors (CommerceError) roll back and propagate unchanged.
    - Lock/version conflicts are retried via run_with_retry.
    - Anything else rolls back and surfaces as TransactionError.

    func must not commit; it may flush.
    """
    def _op():
        _begin_write_transaction()
        result = func()
        db.session.commit()
        return result

    try:
        return run_with_retry(_op, attempts=attempts)
    except CommerceError:
        db.session.rollback()
        raise
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Transaction '%s' aborted", label)
        raise TransactionError(
            f"Failed to {label}",
            details={"operation": label, "reason": f"{type(exc).__name__}: {exc}"},
        ) from exc
