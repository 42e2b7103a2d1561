"""
Pytest configuration and shared fixtures for the scorecard test suite.

Provides an in-memory SQLite session, an in-memory day cache, a fake Meta
insights provider and factories for daily insight records.
"""

import os
import tempfile
import uuid
from datetime import date
from typing import Any, Dict, Generator, List, Sequence

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Set test environment BEFORE importing the app
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(
    tempfile.gettempdir(), f"scorecard_test_{uuid.uuid4().hex[:8]}.db"
)

from scorecard.core.metric_registry import default_registry  # noqa: E402
from scorecard.models import cache_models, scorecard_models  # noqa: E402,F401
from scorecard.storage.day_cache import CacheRow  # noqa: E402

TODAY = date(2026, 10, 19)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_record(day: str, **fields: Any) -> Dict[str, Any]:
    """A daily Meta insights record; numeric fields become numeric strings."""
    record: Dict[str, Any] = {"date_start": day, "date_stop": day}
    for name, value in fields.items():
        record[name] = value if isinstance(value, list) else str(value)
    return record


def action(action_type: str, value: Any) -> Dict[str, str]:
    return {"action_type": action_type, "value": str(value)}


class FakeInsightsProvider:
    """Stands in for MetaEndpoints; serves canned daily records."""

    def __init__(self, records: List[Dict[str, Any]] | None = None, error: Exception | None = None):
        self.records = records or []
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    async def fetch_daily_insights(
        self,
        fields: Sequence[str],
        level: str,
        since: str,
        until: str,
        filtering: List[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        self.calls.append(
            {
                "fields": list(fields),
                "level": level,
                "since": since,
                "until": until,
                "filtering": filtering,
            }
        )
        if self.error:
            raise self.error
        return [r for r in self.records if since <= r["date_start"] <= until]

    async def close(self) -> None:
        self.closed = True


class MemoryDayCache:
    """Dict-backed day cache for engine tests."""

    def __init__(self):
        self.rows: Dict[tuple, CacheRow] = {}
        self.reads: List[str] = []

    def put(self, brand_id: str, config_hash: str, day: str, values: Dict[str, float]) -> None:
        for key, value in values.items():
            self.rows[(brand_id, config_hash, day, key)] = CacheRow(
                brand_id, config_hash, day, key, value
            )

    def read_day(self, brand_id, metric_config_hash, date, keys):
        self.reads.append(date)
        return [
            row
            for (b, h, d, k), row in self.rows.items()
            if b == brand_id and h == metric_config_hash and d == date and k in keys
        ]

    def upsert(self, rows):
        for row in rows:
            self.rows[
                (row.brand_id, row.metric_config_hash, row.date, row.base_metric_key)
            ] = row
        return len(rows)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def memory_cache():
    return MemoryDayCache()


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db_session(db_engine) -> Generator[Session, None, None]:
    with Session(db_engine) as session:
        yield session
