"""
SM-2 review scheduler.

This is a pure computation module with no I/O.

Quality scale:
    0-2 - failed recall
    3   - correct with serious difficulty ("hard")
    4   - correct after hesitation ("medium")
    5   - perfect response ("easy")

Unlike canonical SM-2, a failed recall leaves the ease factor untouched: only
repetitions and interval are reset.
"""

import math

from mnemo.domain.constants import (
    FAILED_INTERVAL,
    FIRST_INTERVAL,
    FLOAT_PRECISION,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
    PASSING_QUALITY,
    SECOND_INTERVAL,
)
from mnemo.domain.errors import InvalidQuality, InvalidState
from mnemo.domain.models import Grade, ScheduleResult


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_quality(quality) -> int:
    if not _is_int(quality) or not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQuality(quality)
    return quality


def _validate_previous(interval, repetitions, ease_factor) -> None:
    if not _is_int(interval) or interval < 0:
        raise InvalidState("previous_interval", interval, "must be an integer >= 0")
    if not _is_int(repetitions) or repetitions < 0:
        raise InvalidState("previous_repetitions", repetitions, "must be an integer >= 0")
    if (
        isinstance(ease_factor, bool)
        or not isinstance(ease_factor, (int, float))
        or not math.isfinite(ease_factor)
        or ease_factor < MIN_EASE_FACTOR
    ):
        raise InvalidState("previous_ease_factor", ease_factor, f"must be >= {MIN_EASE_FACTOR}")


def ease_delta(quality: int) -> float:
    """EF change for a successful review: 0.1 - (5-q) * (0.08 + (5-q) * 0.02)."""
    miss = MAX_QUALITY - quality
    return 0.1 - miss * (0.08 + miss * 0.02)


def schedule(
    quality: int,
    previous_interval: int,
    previous_repetitions: int,
    previous_ease_factor: float,
) -> ScheduleResult:
    """
    Compute the next interval, repetition count and ease factor.

    Args:
        quality: Recall grade, integer in [0, 5].
        previous_interval: Days of the previously scheduled interval (>= 0).
        previous_repetitions: Consecutive successes so far (>= 0).
        previous_ease_factor: Current ease factor (>= 1.3).

    Returns:
        ScheduleResult with the new interval, repetitions and ease factor.

    Raises:
        InvalidQuality: quality is not an integer in [0, 5].
        InvalidState: any previous value breaks its invariant.
    """
    validate_quality(quality)
    _validate_previous(previous_interval, previous_repetitions, previous_ease_factor)

    if quality < PASSING_QUALITY:
        return ScheduleResult(
            interval=FAILED_INTERVAL,
            repetitions=0,
            ease_factor=float(previous_ease_factor),
        )

    ease_factor = round(previous_ease_factor + ease_delta(quality), FLOAT_PRECISION)
    ease_factor = max(MIN_EASE_FACTOR, ease_factor)

    repetitions = previous_repetitions + 1

    if repetitions == 1:
        interval = FIRST_INTERVAL
    elif repetitions == 2:
        interval = SECOND_INTERVAL
    else:
        # Previous interval times the *new* ease factor.
        interval = math.ceil(round(previous_interval * ease_factor, FLOAT_PRECISION))

    return ScheduleResult(interval=interval, repetitions=repetitions, ease_factor=ease_factor)


def grade_to_quality(grade: Grade | str) -> int:
    """Map a UI grade to SM-2 quality: hard=3, medium=4, easy=5."""
    return Grade.parse(grade).quality
