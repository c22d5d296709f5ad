"""Calendar-day helpers shared by the due-set selector and the service layer."""

from datetime import date, datetime, tzinfo
from typing import Any


def local_now(tz: tzinfo | None = None) -> datetime:
    """Current wall-clock time as an aware datetime in `tz` (system zone if None)."""
    if tz is None:
        return datetime.now().astimezone()
    return datetime.now(tz)


def date_only(value: datetime | date, tz: tzinfo | None = None) -> date:
    """
    Truncate a timestamp to its calendar day.

    Naive datetimes are taken to be local wall-clock time already. Aware
    datetimes are first converted to `tz`, or to the system local zone when
    `tz` is None, so that "today" is the learner's today.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz) if tz is not None else value.astimezone()
        return value.date()
    return value


def coerce_timestamp(value: Any) -> datetime | date | None:
    """
    Best-effort conversion of a stored timestamp.

    Accepts datetime, date, and ISO-8601 strings (a trailing 'Z' is read as
    UTC). Returns None for anything else.
    """
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None
