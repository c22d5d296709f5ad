"""
Review Service — Application layer orchestrator.

Coordinates the subject repository with the pure scheduling functions:
grade -> quality -> SM-2 step -> new next_review_at -> persist.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, tzinfo

from mnemo.application.id_service import generate_node_id, generate_subject_id
from mnemo.application.scheduling.due import DueItem, select_due
from mnemo.application.scheduling.sm2 import schedule, validate_quality
from mnemo.application.utils.dates import local_now
from mnemo.domain.models import (
    Grade,
    MindMapNode,
    ReviewOutcome,
    ReviewState,
    Subject,
    SubjectContext,
)
from mnemo.domain.ports import SubjectRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ReviewService:
    """
    Application service for creating, grading and queueing subjects.

    Follows Dependency Inversion: depends on the SubjectRepository abstraction,
    not on a concrete store. Grading of one subject is serialized with a
    per-subject lock, so two concurrent grades never both read the same stale
    state.
    """

    def __init__(
        self,
        repo: SubjectRepository,
        clock: Clock | None = None,
        tz: tzinfo | None = None,
    ):
        """
        Args:
            repo: The repository (port) holding subjects.
            clock: Returns "now"; defaults to the local wall clock.
            tz: Zone that defines calendar days for due checks.
        """
        self._repo = repo
        self._tz = tz
        self._clock = clock or (lambda: local_now(tz))
        # subject id -> (lock, number of holders and waiters)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _subject_lock(self, subject_id: str) -> AsyncIterator[None]:
        """Hold the per-subject lock; the entry is dropped when nobody needs it."""
        lock, users = self._locks.get(subject_id) or (asyncio.Lock(), 0)
        self._locks[subject_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[subject_id]
            if users <= 1:
                del self._locks[subject_id]
            else:
                self._locks[subject_id] = (lock, users - 1)

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    async def create_subject(
        self,
        title: str,
        context: SubjectContext | str = SubjectContext.OTHER,
        raw_notes: str = "",
        mind_map: MindMapNode | None = None,
    ) -> Subject:
        """
        Create a subject due for its first review the day after today.

        Without a mind map, a single root node carrying the title is used.
        """
        title = title.strip()
        if not title:
            raise ValueError("Subject title must not be empty")

        now = self.now()
        subject = Subject(
            id=generate_subject_id(),
            title=title,
            context=SubjectContext(context),
            raw_notes=raw_notes,
            mind_map=mind_map or MindMapNode(id=generate_node_id(), text=title),
            review=ReviewState.initial(now),
            created_at=now,
        )
        await self._repo.add_subject(subject)
        logger.info(f"Created subject {subject.id} ({subject.title!r})")
        return subject

    async def get_subject(self, subject_id: str) -> Subject:
        return await self._repo.get_subject(subject_id)

    async def list_subjects(self) -> list[Subject]:
        """Library view: every subject, soonest review first."""
        subjects = await self._repo.list_subjects()
        return sorted(subjects, key=lambda s: s.next_review_at.timestamp())

    async def delete_subject(self, subject_id: str) -> None:
        async with self._subject_lock(subject_id):
            await self._repo.delete_subject(subject_id)
        logger.info(f"Deleted subject {subject_id}")

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def grade(self, subject_id: str, grade: Grade | str) -> ReviewOutcome:
        """
        Apply a learner grade (easy / medium / hard) to a subject.

        Raises:
            InvalidGrade: grade is not one of the three choices.
            InvalidState: the stored state is corrupt.
            SubjectNotFound: no such subject.
        """
        parsed = Grade.parse(grade)
        return await self._review(subject_id, parsed.quality, parsed)

    async def review_with_quality(self, subject_id: str, quality: int) -> ReviewOutcome:
        """Apply a raw 0-5 quality, for callers that bypass the three-way grade."""
        validate_quality(quality)
        return await self._review(subject_id, quality, None)

    async def _review(self, subject_id: str, quality: int, grade: Grade | None) -> ReviewOutcome:
        async with self._subject_lock(subject_id):
            subject = await self._repo.get_subject(subject_id)
            state = subject.review
            state.validate()

            result = schedule(
                quality,
                state.last_interval,
                state.repetitions,
                state.ease_factor,
            )
            now = self.now()
            new_state = state.apply(result, now)
            await self._repo.update_schedule(subject_id, new_state)

        logger.info(
            f"Reviewed {subject_id}: quality={quality} interval={result.interval}d "
            f"reps={result.repetitions} ease={result.ease_factor:.2f}"
        )
        return ReviewOutcome(
            subject_id=subject_id,
            quality=quality,
            result=result,
            next_review_at=new_state.next_review_at,
            grade=grade,
        )

    async def reset_for_review(self, subject_id: str) -> Subject:
        """
        Debug helper: make a subject due right now.

        Bypasses the scheduler; ease factor, repetitions and interval are kept.
        """
        async with self._subject_lock(subject_id):
            subject = await self._repo.get_subject(subject_id)
            subject.review = subject.review.due_now(self.now())
            await self._repo.update_schedule(subject_id, subject.review)
        logger.info(f"Reset {subject_id} for review")
        return subject

    async def due_today(self) -> list[DueItem]:
        """Subjects due today or earlier, soonest first."""
        subjects = await self._repo.list_subjects()
        due = select_due(self.now(), subjects, tz=self._tz, sort=True)
        logger.debug(f"{len(due)}/{len(subjects)} subjects due")
        return due
