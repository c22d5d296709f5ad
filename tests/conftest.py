from datetime import datetime

import pytest

from mnemo.application.review_service import ReviewService
from mnemo.infrastructure.repositories.memory import InMemorySubjectRepository

FIXED_NOW = datetime(2024, 3, 10, 14, 0)


class FakeClock:
    """Settable clock for services under test."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_repo():
    return InMemorySubjectRepository()


@pytest.fixture
def service(memory_repo, clock):
    return ReviewService(memory_repo, clock=clock)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and data files
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "MNEMO_BACKEND",
        "MNEMO_DATA_FILE",
        "MNEMO_TIMEZONE",
        "MNEMO_HOST",
        "MNEMO_PORT",
        "MNEMO_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
