"""
Shared fixtures.

FakeDatabase stands in for choir_search.db.Database: it records every
statement with its parameters and answers from a queue of canned results,
so the SQL the service issues can be asserted without a running Postgres.
"""

from __future__ import annotations

from collections import deque
from contextlib import contextmanager
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from api.main import create_app


class FakeDatabase:
    """In-memory Database double. Queued results are consumed in call order."""

    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []
        self.results: deque = deque()
        self.events: list[str] = []
        self.healthy = True

    def queue(self, *results) -> None:
        """Queue results; an Exception instance is raised instead of returned."""
        self.results.extend(results)

    def _answer(self, sql, params, default):
        self.calls.append((" ".join(sql.split()), tuple(params or ())))
        if not self.results:
            return default
        result = self.results.popleft()
        if isinstance(result, Exception):
            raise result
        return result

    def fetch_one(self, sql, params=()):
        return self._answer(sql, params, None)

    def fetch_all(self, sql, params=()):
        return self._answer(sql, params, [])

    def execute(self, sql, params=()):
        return self._answer(sql, params, 1)

    @contextmanager
    def transaction(self):
        self.events.append("BEGIN")
        try:
            yield self
        except BaseException:
            self.events.append("ROLLBACK")
            raise
        self.events.append("COMMIT")

    def ping(self) -> bool:
        return self.healthy

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.calls]


SONG_ID = "7b0c9a52-3f1e-4c4e-9f55-2d8a1e6b9c01"
SUBMISSION_ID = "c3d1f0a4-8b2e-4a57-b6d9-0e4f2a7c5b13"
TIMESTAMP = datetime(2024, 11, 2, 9, 30, tzinfo=timezone.utc)


def make_song_row(**overrides) -> dict:
    """A songs row as psycopg2's RealDictCursor returns it."""
    row = {
        "id": SONG_ID,
        "title": "Ave Maria",
        "composer": "Franz Biebl",
        "text_writer": None,
        "description": "Double choir setting of the Angelus",
        "source_link": "https://example.org/biebl-ave-maria",
        "audio_link": None,
        "source": "MuseScore",
        "language": "Latin",
        "voicing": "SSAA",
        "difficulty": "Intermediate",
        "season": "Advent",
        "theme": "Sacred",
        "period": "20th century",
        "search_text": "Ave Maria Franz Biebl Latin SSAA",
        "is_active": True,
        "created_at": TIMESTAMP,
        "updated_at": TIMESTAMP,
        "last_verified": None,
    }
    row.update(overrides)
    return row


def make_submission_row(**overrides) -> dict:
    row = {
        "id": SUBMISSION_ID,
        "user_id": "user-42",
        "title": "Stille Nacht",
        "composer": "Franz Xaver Gruber",
        "source_link": "https://example.org/stille-nacht",
        "description": "Carol for SATB",
        "language": "German",
        "voicing": "SATB",
        "difficulty": "Easy",
        "season": "Christmas",
        "theme": "Sacred",
        "status": "pending",
        "submitted_at": TIMESTAMP,
        "reviewed_at": None,
        "reviewed_by": None,
    }
    row.update(overrides)
    return row


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def app(db: FakeDatabase):
    return create_app(db=db)


@pytest.fixture
async def client(app) -> AsyncClient:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
