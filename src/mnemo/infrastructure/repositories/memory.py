"""
In-memory Subject Repository — process-local adapter.

Implements SubjectRepository over a dict. Used by tests and by the
`memory` backend for throwaway sessions.
"""

import copy
import logging
from collections.abc import Iterable

from mnemo.domain.errors import SubjectNotFound
from mnemo.domain.models import ReviewState, Subject
from mnemo.domain.ports import SubjectRepository

logger = logging.getLogger(__name__)


class InMemorySubjectRepository(SubjectRepository):
    """
    Keeps subjects in a dict keyed by id.

    Every read and write goes through a deep copy so callers never share
    mutable objects with the store.
    """

    def __init__(self, subjects: Iterable[Subject] | None = None):
        self._subjects: dict[str, Subject] = {}
        for subject in subjects or []:
            self._subjects[subject.id] = copy.deepcopy(subject)

    async def list_subjects(self) -> list[Subject]:
        return [copy.deepcopy(s) for s in self._subjects.values()]

    async def get_subject(self, subject_id: str) -> Subject:
        try:
            return copy.deepcopy(self._subjects[subject_id])
        except KeyError:
            raise SubjectNotFound(subject_id) from None

    async def add_subject(self, subject: Subject) -> None:
        self._subjects[subject.id] = copy.deepcopy(subject)

    async def update_schedule(self, subject_id: str, state: ReviewState) -> None:
        if subject_id not in self._subjects:
            raise SubjectNotFound(subject_id)
        self._subjects[subject_id].review = copy.deepcopy(state)
        logger.debug(f"Updated schedule for {subject_id}: {state}")

    async def delete_subject(self, subject_id: str) -> None:
        try:
            del self._subjects[subject_id]
        except KeyError:
            raise SubjectNotFound(subject_id) from None
