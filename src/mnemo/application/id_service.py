"""Stable identifiers for subjects and mind-map nodes."""

from ulid import ULID

from mnemo.domain.constants import NODE_ID_PREFIX, SUBJECT_ID_PREFIX


def generate_subject_id() -> str:
    """Generate a stable subject ID using ULID."""
    return f"{SUBJECT_ID_PREFIX}{ULID()}"


def generate_node_id() -> str:
    return f"{NODE_ID_PREFIX}{ULID()}"
