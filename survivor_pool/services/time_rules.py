# survivor_pool/services/time_rules.py
from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_aware(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_kickoff(value: str | None) -> datetime | None:
    """
    Parse an ESPN kickoff timestamp ('2025-09-07T17:00Z' and friends).
    Missing or malformed values come back as None.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return as_aware(datetime.fromisoformat(text))
    except ValueError:
        return None
