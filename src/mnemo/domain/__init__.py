# Domain Package
from .errors import (
    InvalidGrade,
    InvalidQuality,
    InvalidState,
    MnemoError,
    SchedulingError,
    SubjectNotFound,
)
from .models import (
    Grade,
    MindMapNode,
    ReviewOutcome,
    ReviewState,
    ScheduleResult,
    Subject,
    SubjectContext,
)
from .ports import SubjectRepository

__all__ = [
    "Grade",
    "MindMapNode",
    "ReviewOutcome",
    "ReviewState",
    "ScheduleResult",
    "Subject",
    "SubjectContext",
    "SubjectRepository",
    "MnemoError",
    "SchedulingError",
    "InvalidQuality",
    "InvalidGrade",
    "InvalidState",
    "SubjectNotFound",
]
