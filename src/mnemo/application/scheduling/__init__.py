# Application Scheduling Package
from .due import DueItem, is_due, select_due
from .sm2 import grade_to_quality, schedule

__all__ = ["schedule", "grade_to_quality", "select_due", "is_due", "DueItem"]
