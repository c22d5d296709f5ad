"""Centralized constants for the mnemo application.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3  # quality below this is a failed recall
FIRST_INTERVAL = 1  # days
SECOND_INTERVAL = 6  # days
FAILED_INTERVAL = 1  # days
FLOAT_PRECISION = 10  # decimal places kept on ease factor and interval products

# ---------- Subjects ----------
INITIAL_REVIEW_DELAY_DAYS = 1
SUBJECT_ID_PREFIX = "subj_"
NODE_ID_PREFIX = "node_"

# ---------- Grading UI ----------
GRADE_QUALITY = {
    "hard": 3,
    "medium": 4,
    "easy": 5,
}
