# Overview: Row locking and retry helpers shared by write paths.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write_transaction()
    covers it there by taking the database write lock up front.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Start the current session's transaction holding the write lock.

    On SQLite, BEGIN IMMEDIATE acquires the RESERVED lock before the first
    read, so two sales cannot both read the same stock level. Other
    backends rely on the row locks taken by lock_for_update().
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, lock timeouts, "database is
    locked"). The session is rolled back before every retry; the last
    error is re-raised.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            current_app.logger.warning(
                "Retrying after lock conflict (attempt %d/%d, sleeping %.2fs)",
                attempt + 1, attempts, delay,
            )
            time.sleep(delay)
