# Overview: UTC timestamp helpers for invoice dates and JSON serialization.

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC, stored naive."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an invoice/business date into a UTC-naive datetime.

    Accepts a bare date ("2026-01-05", midnight UTC), a naive datetime
    (taken as UTC) or an offset datetime ("...Z", "...+05:00").
    Blank input gives None; anything else unparseable raises ValueError.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()

    if len(text) == 10:
        return datetime.combine(date.fromisoformat(text), time.min)

    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with a trailing 'Z', to the second. Naive values are UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="seconds") + "Z"
