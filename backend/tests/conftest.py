"""
Shared Test Fixtures and Configuration

Provides a throwaway SQLite database per test, fake platform adapters and
helpers for seeding ledger, snapshot and profile rows.
"""

import os
import sys
from collections.abc import AsyncGenerator
from datetime import date
from pathlib import Path
from typing import Any, Optional

import pytest
import pytest_asyncio

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Settings are read at import time, so the test environment must be in place
# before anything from tracker is imported.
os.environ.update(
    {
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "RATE_LIMIT_ENABLED": "false",
        "BATCH_SYNC_ENABLED": "false",
        "PLATFORM_RETRY_BACKOFF_SECONDS": "0",
        "PLATFORM_RETRY_ATTEMPTS": "2",
        "STREAK_WINDOW_DAYS": "45",
        "LOG_LEVEL": "DEBUG",
        "DEBUG": "true",
    }
)

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from tracker.db.base import build_engine, build_session_factory, init_db  # noqa: E402
from tracker.enums import Platform  # noqa: E402
from tracker.platforms.base import PlatformStats  # noqa: E402
from tracker.services.ledger import ActivityLedger  # noqa: E402
from tracker.services.snapshots import SnapshotStore  # noqa: E402


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def engine(tmp_path: Path):
    """File-backed SQLite engine with all tables created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tracker.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for direct service tests; commits are up to the test."""
    async with session_factory() as session:
        yield session


# ============================================================================
# Seeding Helpers
# ============================================================================


async def seed_ledger(session_factory, user_id: str, day: date, **fields: int) -> None:
    """Write a ledger row, overwriting the given fields."""
    async with session_factory() as session:
        async with session.begin():
            await ActivityLedger(session).upsert_day(user_id, day, overwrite=fields)


async def seed_snapshot(session_factory, user_id: str, day: date, **totals: int) -> None:
    """Write a snapshot row; unspecified counters are zero."""
    async with session_factory() as session:
        async with session.begin():
            await SnapshotStore(session).upsert(user_id, day, totals)


async def seed_profile(session_factory, user_id: str, **handles: Optional[str]) -> None:
    """Link platform handles for a user."""
    from tracker.models.activity import PlatformHandlesRequest
    from tracker.services.profiles import PlatformProfileService

    async with session_factory() as session:
        async with session.begin():
            await PlatformProfileService(session).set_handles(
                user_id, PlatformHandlesRequest(**handles)
            )


# ============================================================================
# Fake Platform Adapters
# ============================================================================


class FakeAdapter:
    """
    Stand-in for a PlatformAdapter returning scripted results.

    Each call pops the next scripted result; the last one repeats.
    """

    def __init__(self, platform: Platform, *results: PlatformStats):
        self.platform = platform
        self.results = list(results)
        self.calls: list[dict[str, Any]] = []

    async def fetch_cumulative(self, handle, include_contests: bool = True) -> PlatformStats:
        self.calls.append({"handle": handle, "include_contests": include_contests})
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


def ok(platform: Platform, solved: int, contest_solved: Optional[int] = None) -> PlatformStats:
    return PlatformStats.success(platform, solved, source="fake", contest_solved=contest_solved)


def failed(platform: Platform, error: str = "upstream down") -> PlatformStats:
    return PlatformStats.soft_failure(platform, error)


@pytest.fixture
def today() -> date:
    """Fixed mid-month day so yesterday is in the same month."""
    return date(2026, 10, 15)
