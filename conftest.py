"""
Pytest configuration and shared fixtures.

Test environment variables are set before any app import so the cached
settings pick them up. Every test gets its own SQLite file under tmp_path.
"""

import os
import threading
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Clear settings cache before any app imports to ensure test env vars are used
from msgboard.config import get_settings  # noqa: E402
get_settings.cache_clear()

from msgboard.storage import MessageStore, format_timestamp  # noqa: E402


START_TIME = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock advancing a fixed step on every call."""

    def __init__(self, start: datetime = START_TIME, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            now = self.current
            self.current = self.current + self.step
            return now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path, clock):
    """Open store on a fresh SQLite file with a deterministic clock."""
    with MessageStore(f"sqlite:///{tmp_path / 'board.db'}", clock=clock) as message_store:
        yield message_store


@pytest.fixture
def memory_store(clock):
    """In-memory store, for tests that write many rows."""
    with MessageStore("sqlite://", clock=clock) as message_store:
        yield message_store


def seed_messages(message_store: MessageStore, count: int, prefix: str = "message") -> None:
    """Bulk insert count messages with increasing timestamps in one transaction."""
    from msgboard.models import Message

    with message_store.session("seed messages", commit=True) as db:
        db.add_all([
            Message(
                content=f"{prefix} {i}",
                created_at=format_timestamp(START_TIME + timedelta(seconds=i)),
            )
            for i in range(count)
        ])
