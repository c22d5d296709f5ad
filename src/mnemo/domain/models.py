"""
Domain models for subjects and their review scheduling state.

These are pure data structures with no I/O or external dependencies.
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from .constants import (
    DEFAULT_EASE_FACTOR,
    GRADE_QUALITY,
    INITIAL_REVIEW_DELAY_DAYS,
    MIN_EASE_FACTOR,
)
from .errors import InvalidGrade, InvalidState


class Grade(str, Enum):
    """Symbolic grade chosen by the learner at the end of a review session."""

    HARD = "hard"
    MEDIUM = "medium"
    EASY = "easy"

    @classmethod
    def parse(cls, value: "Grade | str") -> "Grade":
        if isinstance(value, Grade):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidGrade(value) from None

    @property
    def quality(self) -> int:
        return GRADE_QUALITY[self.value]


class SubjectContext(str, Enum):
    """Where the notes of a subject came from."""

    COURSE = "course"
    BOOK = "book"
    VIDEO = "video"
    OTHER = "other"


@dataclass(frozen=True)
class ScheduleResult:
    """
    Output of one SM-2 step.

    Attributes:
        interval: Days until the next review.
        repetitions: Consecutive successful reviews since the last reset.
        ease_factor: Updated ease factor (>= 1.3).
    """

    interval: int
    repetitions: int
    ease_factor: float


@dataclass
class ReviewState:
    """
    Spaced-repetition state of a single subject.

    Attributes:
        next_review_at: When the subject is next due. Only the calendar day
            matters for due checks.
        ease_factor: Retention difficulty, lower is harder. Never below 1.3.
        repetitions: Consecutive successful reviews since the last failure.
        last_interval: Days until the most recently scheduled review.
    """

    next_review_at: datetime
    ease_factor: float = DEFAULT_EASE_FACTOR
    repetitions: int = 0
    last_interval: int = 0

    @classmethod
    def initial(cls, now: datetime) -> "ReviewState":
        """State of a freshly created subject: due the day after creation."""
        return cls(next_review_at=now + timedelta(days=INITIAL_REVIEW_DELAY_DAYS))

    def validate(self) -> None:
        """Raise InvalidState if any invariant is broken."""
        if isinstance(self.repetitions, bool) or not isinstance(self.repetitions, int):
            raise InvalidState("repetitions", self.repetitions, "must be an integer")
        if self.repetitions < 0:
            raise InvalidState("repetitions", self.repetitions, "must be >= 0")
        if isinstance(self.last_interval, bool) or not isinstance(self.last_interval, int):
            raise InvalidState("last_interval", self.last_interval, "must be an integer")
        if self.last_interval < 0:
            raise InvalidState("last_interval", self.last_interval, "must be >= 0")
        if self.repetitions >= 1 and self.last_interval < 1:
            raise InvalidState(
                "last_interval", self.last_interval, "must be >= 1 once repetitions >= 1"
            )
        if (
            isinstance(self.ease_factor, bool)
            or not isinstance(self.ease_factor, (int, float))
            or not math.isfinite(self.ease_factor)
            or self.ease_factor < MIN_EASE_FACTOR
        ):
            raise InvalidState("ease_factor", self.ease_factor, f"must be >= {MIN_EASE_FACTOR}")

    def apply(self, result: ScheduleResult, now: datetime) -> "ReviewState":
        """Return the state after a grading event evaluated at `now`."""
        return ReviewState(
            next_review_at=now + timedelta(days=result.interval),
            ease_factor=result.ease_factor,
            repetitions=result.repetitions,
            last_interval=result.interval,
        )

    def due_now(self, now: datetime) -> "ReviewState":
        """Return a copy that is due at `now`, leaving the SM-2 values alone."""
        return replace(self, next_review_at=now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ease_factor": self.ease_factor,
            "repetitions": self.repetitions,
            "last_interval": self.last_interval,
            "next_review_at": self.next_review_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewState":
        next_review_at = data["next_review_at"]
        if isinstance(next_review_at, str):
            next_review_at = datetime.fromisoformat(next_review_at)
        return cls(
            next_review_at=next_review_at,
            # Stored numbers are kept as-is so validate() can reject bad ones.
            ease_factor=data.get("ease_factor", DEFAULT_EASE_FACTOR),
            repetitions=data.get("repetitions", 0),
            last_interval=data.get("last_interval", 0),
        )


@dataclass
class MindMapNode:
    """A node of a subject's mind map. Layout and rendering live elsewhere."""

    id: str
    text: str
    children: list["MindMapNode"] = field(default_factory=list)

    def iter_nodes(self) -> Iterator["MindMapNode"]:
        """Depth-first, pre-order walk including this node."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def count(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "text": self.text}
        if self.children:
            d["children"] = [c.to_dict() for c in self.children]
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MindMapNode":
        return cls(
            id=str(data["id"]),
            text=str(data.get("text", "")),
            children=[cls.from_dict(c) for c in data.get("children") or []],
        )


@dataclass
class Subject:
    """
    A learning subject: the learner's notes, their mind map, and review state.
    """

    id: str
    title: str
    mind_map: MindMapNode
    review: ReviewState
    created_at: datetime
    context: SubjectContext = SubjectContext.OTHER
    raw_notes: str = ""

    @property
    def next_review_at(self) -> datetime:
        return self.review.next_review_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "context": self.context.value,
            "raw_notes": self.raw_notes,
            "created_at": self.created_at.isoformat(),
            "mind_map": self.mind_map.to_dict(),
            "review": self.review.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Subject":
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            context=SubjectContext(data.get("context", SubjectContext.OTHER.value)),
            raw_notes=data.get("raw_notes") or "",
            created_at=created_at,
            mind_map=MindMapNode.from_dict(data["mind_map"]),
            review=ReviewState.from_dict(data["review"]),
        )


@dataclass(frozen=True)
class ReviewOutcome:
    """What a grading event did to a subject."""

    subject_id: str
    quality: int
    result: ScheduleResult
    next_review_at: datetime
    grade: Grade | None = None
