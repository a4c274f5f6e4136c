# backend/billdesk/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/billdesk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///billdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Upper bound on waiting for a row/database lock before failing with TIMEOUT
    LOCK_TIMEOUT_SECONDS = float(os.environ.get("LOCK_TIMEOUT_SECONDS", "5"))

    # Route-level retries for transient storage failures (coordinators never retry)
    TRANSIENT_RETRY_ATTEMPTS = int(os.environ.get("TRANSIENT_RETRY_ATTEMPTS", "3"))

    INVENTORY_LOG_ENABLED = _env_flag("INVENTORY_LOG_ENABLED", True)
    CUSTOMER_SNAPSHOT_ENABLED = _env_flag("CUSTOMER_SNAPSHOT_ENABLED", True)
    DEFAULT_PAYMENT_METHOD = os.environ.get("DEFAULT_PAYMENT_METHOD", "Cash")
