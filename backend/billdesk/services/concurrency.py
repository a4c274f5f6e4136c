# Overview: Locking and transient-failure helpers shared by the invoice coordinators and routes.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import BillingError, LockTimeout, StorageUnavailable
from ..extensions import db

# Driver messages / SQLSTATEs meaning "lock not granted in time"
_LOCK_TIMEOUT_MARKERS = (
    "database is locked",
    "lock timeout",
    "lock_timeout",
    "lock wait timeout",
    "could not obtain lock",
)
_LOCK_TIMEOUT_PGCODES = {"55P03"}


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; the ledger store takes the
    database write lock with BEGIN IMMEDIATE there instead.
    """
    return query.with_for_update()


def storage_error_from(exc: Exception) -> StorageUnavailable:
    """Translate a driver-level failure into the transient error taxonomy."""
    if isinstance(exc, StaleDataError):
        return StorageUnavailable(
            "Concurrent update detected, transaction rolled back",
            details={"reason": "stale_data"},
        )

    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None)
    message = str(orig or exc).lower()
    if pgcode in _LOCK_TIMEOUT_PGCODES or any(marker in message for marker in _LOCK_TIMEOUT_MARKERS):
        return LockTimeout("Timed out waiting for a database lock", details={"reason": "lock_timeout"})
    return StorageUnavailable("Storage temporarily unavailable", details={"reason": "operational_error"})


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on transient failures.

    Retries BillingErrors flagged ``retryable`` (lock timeouts, connection
    loss, optimistic-lock conflicts) and raw OperationalError/StaleDataError.
    Every attempt must be fully rolled back before the next one starts.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = storage_error_from(exc)
            if attempt >= attempts - 1:
                raise last_exc from exc
        except BillingError as exc:
            if not exc.retryable:
                raise
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
        time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
