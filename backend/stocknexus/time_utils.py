# Overview: Clock helpers; every stored timestamp is UTC without tzinfo.

from __future__ import annotations

import time
from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time, tzinfo stripped (the form every column stores)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_ago(days: int) -> datetime:
    """Retention cutoff: utcnow() minus whole days."""
    return utcnow() - timedelta(days=days)


def epoch_millis() -> int:
    """Milliseconds since the epoch; names uploaded attachment objects."""
    return int(time.time() * 1000)


def today_iso() -> str:
    return utcnow().date().isoformat()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Read an ISO-8601 timestamp from a request body.

    Blank input gives None. Offsets ("Z", "+05:30") are converted to UTC;
    a timestamp without an offset is taken to be UTC already.
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Read "YYYY-MM-DD"; a full timestamp is cut down to its UTC date."""
    if value is None or not value.strip():
        return None
    text = value.strip()
    if len(text) > 10:
        return parse_iso_datetime(text).date()
    return date.fromisoformat(text)


def to_utc_z(value: Optional[datetime]) -> Optional[str]:
    """Serialize for JSON as whole-second UTC with a trailing "Z"."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=0).isoformat() + "Z"


def to_iso_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None
