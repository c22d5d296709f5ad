"""
Due-set selection for the "today" review queue.

Compares calendar days, not exact timestamps: a subject due at 23:00 is due
from local midnight, and calling the selector again later the same day gives
the same answer.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Any

from mnemo.application.utils.dates import coerce_timestamp, date_only

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DueItem:
    """
    A subject selected for review.

    Attributes:
        subject: The record exactly as passed in.
        subject_id: Its identifier (None if the record has none).
        next_review_at: The timestamp the decision was based on.
        overdue_days: 0 if due today, N > 0 if N days late. Display only.
    """

    subject: Any
    subject_id: str | None
    next_review_at: datetime | date
    overdue_days: int

    @property
    def is_overdue(self) -> bool:
        return self.overdue_days > 0


def _read_field(record: Any, *names: str) -> Any:
    for name in names:
        if isinstance(record, Mapping):
            if name in record:
                return record[name]
        elif hasattr(record, name):
            return getattr(record, name)
    return None


def select_due(
    now: datetime | date,
    subjects: Iterable[Any],
    *,
    tz: tzinfo | None = None,
    sort: bool = False,
) -> list[DueItem]:
    """
    Select the subjects whose review day is on or before today.

    Args:
        now: Current time.
        subjects: Records exposing `next_review_at` (attribute or mapping key,
            `nextReviewAt` also accepted) and `id`.
        tz: Zone that defines "today" for aware timestamps; system zone if None.
        sort: Order by next_review_at ascending instead of input order.

    Returns:
        DueItem list. Records without a usable next_review_at are skipped.
    """
    today = date_only(now, tz)
    due: list[tuple[int, DueItem]] = []

    for position, record in enumerate(subjects):
        subject_id = _read_field(record, "id")
        raw = _read_field(record, "next_review_at", "nextReviewAt")
        next_review_at = coerce_timestamp(raw)
        if next_review_at is None:
            logger.warning(f"Skipping subject {subject_id!r}: unusable next_review_at {raw!r}")
            continue

        try:
            review_day = date_only(next_review_at, tz)
        except (OverflowError, ValueError) as e:
            logger.warning(f"Skipping subject {subject_id!r}: {e}")
            continue

        if review_day > today:
            continue

        item = DueItem(
            subject=record,
            subject_id=None if subject_id is None else str(subject_id),
            next_review_at=next_review_at,
            overdue_days=(today - review_day).days,
        )
        due.append((position, item))

    if sort:
        due.sort(key=lambda entry: (_sort_key(entry[1].next_review_at, tz), entry[0]))

    return [item for _, item in due]


def _sort_key(value: datetime | date, tz: tzinfo | None) -> tuple[date, float]:
    # Sort on local day first, then on time of day so naive and aware values mix.
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz) if tz is not None else value.astimezone()
        seconds = value.hour * 3600 + value.minute * 60 + value.second + value.microsecond / 1e6
        return value.date(), seconds
    return value, 0.0


def is_due(next_review_at: datetime | date, now: datetime | date, tz: tzinfo | None = None) -> bool:
    """Single-subject form of the due rule."""
    return date_only(next_review_at, tz) <= date_only(now, tz)
