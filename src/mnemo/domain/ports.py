"""
Ports (interfaces) for subject persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import ReviewState, Subject


class SubjectRepository(ABC):
    """
    Port for loading and saving subjects.

    Implementations:
        - InMemorySubjectRepository: Process-local dict, used in tests and demos.
        - YamlSubjectRepository: Single YAML document on disk.

    Implementations must hand out copies: mutating a returned Subject must not
    change what the repository holds until it is written back.
    """

    @abstractmethod
    async def list_subjects(self) -> list[Subject]:
        """Return every stored subject, in insertion order."""
        pass

    @abstractmethod
    async def get_subject(self, subject_id: str) -> Subject:
        """
        Fetch one subject.

        Raises:
            SubjectNotFound: If no subject has this id.
        """
        pass

    @abstractmethod
    async def add_subject(self, subject: Subject) -> None:
        """Store a new subject. Re-adding an existing id replaces it."""
        pass

    @abstractmethod
    async def update_schedule(self, subject_id: str, state: ReviewState) -> None:
        """
        Replace the review state of a subject.

        Raises:
            SubjectNotFound: If no subject has this id.
        """
        pass

    @abstractmethod
    async def delete_subject(self, subject_id: str) -> None:
        """
        Remove a subject and its review state.

        Raises:
            SubjectNotFound: If no subject has this id.
        """
        pass
