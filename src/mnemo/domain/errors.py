"""
Error taxonomy for mnemo.

Scheduling errors are raised before any state change is computed, so a caller
that catches one knows nothing was written.
"""


class MnemoError(Exception):
    """Base class for every error raised by mnemo itself."""


class SchedulingError(MnemoError, ValueError):
    """Input to the review scheduler was rejected."""


class InvalidQuality(SchedulingError):
    """Quality grade outside the 0-5 range."""

    def __init__(self, quality: object, message: str | None = None):
        self.quality = quality
        super().__init__(
            message or f"Quality must be an integer between 0 and 5, got {quality!r}"
        )


class InvalidGrade(InvalidQuality):
    """Symbolic grade not one of easy / medium / hard."""

    def __init__(self, grade: object):
        self.grade = grade
        super().__init__(
            grade, f"Grade must be one of 'easy', 'medium', 'hard', got {grade!r}"
        )


class InvalidState(SchedulingError):
    """Previous scheduling state violates its invariants."""

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid scheduling state: {field}={value!r} ({reason})")


class SubjectNotFound(MnemoError, KeyError):
    """No subject with the requested id exists in the repository."""

    def __init__(self, subject_id: str):
        self.subject_id = subject_id
        super().__init__(subject_id)

    def __str__(self) -> str:
        return f"Subject not found: {self.subject_id}"
