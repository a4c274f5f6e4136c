# Overview: UTC time helpers; the database stores naive UTC datetimes.

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC 'now', the only clock the billing code reads."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utc_day_bounds(moment: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    Half-open [start, end) of the UTC calendar day containing ``moment``.

    Invoice numbering counts an owner's invoices whose invoice_date falls in
    this window.
    """
    day_start = _as_naive_utc(moment or utcnow()).replace(hour=0, minute=0, second=0, microsecond=0)
    return day_start, day_start + timedelta(days=1)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a client-supplied invoice date.

    Blank input gives None. A bare date ("2026-10-19") means midnight UTC,
    offset-less timestamps are taken as UTC, and a trailing "Z" or explicit
    offset is converted. Raises ValueError for anything else.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Whole-second ISO-8601 with a 'Z' suffix for JSON payloads; naive input is UTC."""
    if dt is None:
        return None
    stamp = _as_naive_utc(dt).replace(microsecond=0)
    return f"{stamp.isoformat()}Z"
