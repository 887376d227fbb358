# Overview: Transaction boundaries and lock-conflict retries shared by every write service.

from __future__ import annotations

import time
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import ConflictError


def lock_for_update(query):
    """
    Lock the selected rows until the unit of work ends.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the first write of the
    transaction serializes writers instead. Callers still re-check state
    after taking the lock.
    """
    return query.with_for_update()


@contextmanager
def unit_of_work():
    """
    One database transaction: commit everything written inside the block,
    or roll all of it back on any exception.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.05):
    """
    Execute a unit of work, retrying on concurrency-related failures.

    Retries on OperationalError (lock timeouts, deadlocks) and StaleDataError
    (optimistic locking conflicts). func must be safe to re-run from scratch:
    the session is rolled back before every retry. Other exceptions
    propagate immediately.
    """
    if attempts is None:
        attempts = current_app.config.get("DB_RETRY_ATTEMPTS", 3)
    attempts = max(1, attempts)

    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrency conflict (attempt %s/%s): %s", attempt + 1, attempts, exc.__class__.__name__
            )
            time.sleep(backoff_base * (2 ** attempt))


class ResourceBusyError(Exception):
    """Lock conflicts persisted through every retry. The request may be retried."""


def run_unit_of_work(
    func,
    *,
    message: str = "The database is busy; please retry",
    conflict_message: str = "The record conflicts with existing data",
):
    """
    run_with_retry(), surfacing exhausted lock conflicts as ResourceBusyError
    and unique-constraint violations (a concurrent writer took the same
    number, barcode or settlement first) as ConflictError.
    """
    try:
        return run_with_retry(func)
    except (OperationalError, StaleDataError) as exc:
        raise ResourceBusyError(message) from exc
    except IntegrityError as exc:
        current_app.logger.info("Integrity conflict: %s", exc.orig)
        raise ConflictError(conflict_message) from exc
