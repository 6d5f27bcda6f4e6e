# Overview: Row locking and retry helpers for concurrent stock writes.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking to the rows a reconciliation reads.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; PostgreSQL/MySQL honor it,
    which serializes two writers to the same (name, department) group.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB unit of work with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, lock timeouts) and StaleDataError
    (InventoryItem.version_id conflicts). func must be safe to re-run from
    scratch: the session is rolled back before every retry.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrent write conflict (%s), retrying %d/%d",
                type(exc).__name__, attempt + 1, attempts - 1,
            )
            time.sleep(backoff_base * (2 ** attempt))


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    run_with_retry for a unit of work that commits itself.

    Any other failure rolls the session back before propagating, so a
    rejected write never leaves half its changes pending.
    """
    try:
        return run_with_retry(func, attempts=attempts, backoff_base=backoff_base)
    except Exception:
        db.session.rollback()
        raise
