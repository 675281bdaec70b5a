# Overview: Transaction and retry helpers shared by the reconciliation services.

from __future__ import annotations

import logging
import time
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)


class RetryableConflict(Exception):
    """
    Raised after a rollback when a concurrent writer won a race
    (e.g. two first-of-year sequence inserts). The whole unit of work is rerun.
    """


RETRYABLE_ERRORS = (OperationalError, StaleDataError, RetryableConflict)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def transaction(session=None):
    """
    Explicit unit of work.

    Yields the session to pass into nested operations; they flush but never
    commit. Commits once on success, rolls back everything on any exception
    and re-raises it unchanged.
    """
    session = session if session is not None else db.session
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, session=None):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks), StaleDataError
    (optimistic locking conflicts) and RetryableConflict.
    """
    session = session if session is not None else db.session
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            logger.warning("Retrying after %s (attempt %d/%d)", type(exc).__name__, attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
