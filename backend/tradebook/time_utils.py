from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

# Timestamps are stored as naive UTC; anything with an offset is converted
# on the way in and "Z" is appended on the way out.


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    ISO-8601 text to naive UTC.

    A bare date is midnight; a value without an offset is taken as UTC;
    "Z" and "+05:30" style offsets are converted. Blank input gives None,
    malformed input raises ValueError.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_iso_date(value) -> Optional[date]:
    """Calendar date from a date, a datetime or ISO-8601 text."""
    if value is None or isinstance(value, datetime):
        return value.date() if value else None
    if isinstance(value, date):
        return value
    parsed = parse_iso_datetime(str(value))
    return parsed.date() if parsed else None


def to_utc_z(moment: Optional[datetime]) -> Optional[str]:
    """Whole-second ISO-8601 in UTC with a trailing "Z"; naive input is already UTC."""
    if moment is None:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.replace(microsecond=0).isoformat() + "Z"


def to_iso_date(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d else None
