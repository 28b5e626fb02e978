"""
Snapshot Store

Daily cumulative counters per user, one row per (user, date). Only absolute
values are stored; re-syncing on the same day rewrites that day's row and
never touches earlier ones.

Usage:
    store = SnapshotStore(db)
    baseline = await store.latest_before(user_id, date(2026, 10, 1))
    await store.upsert(user_id, today, {"leetcode_total": 62})
"""

import logging
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.base import dialect_insert
from tracker.db.models import PlatformSnapshot

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS: tuple[str, ...] = (
    "leetcode_total",
    "codechef_total",
    "codeforces_total",
    "codeforces_contest_total",
    "codechef_contest_total",
)


class SnapshotStore:
    """Read/write access to platform_snapshots for one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str, day: date) -> Optional[PlatformSnapshot]:
        result = await self.db.execute(
            select(PlatformSnapshot)
            .where(
                PlatformSnapshot.user_id == user_id,
                PlatformSnapshot.snapshot_date == day,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def latest_before(self, user_id: str, day: date) -> Optional[PlatformSnapshot]:
        """Most recent snapshot strictly before day."""
        result = await self.db.execute(
            select(PlatformSnapshot)
            .where(
                PlatformSnapshot.user_id == user_id,
                PlatformSnapshot.snapshot_date < day,
            )
            .order_by(PlatformSnapshot.snapshot_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def latest_on_or_before(
        self, user_id: str, day: date
    ) -> Optional[PlatformSnapshot]:
        """Most recent snapshot at or before day."""
        result = await self.db.execute(
            select(PlatformSnapshot)
            .where(
                PlatformSnapshot.user_id == user_id,
                PlatformSnapshot.snapshot_date <= day,
            )
            .order_by(PlatformSnapshot.snapshot_date.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert(self, user_id: str, day: date, values: Mapping[str, int]) -> None:
        """
        Write the snapshot for (user_id, day), replacing every counter.

        Raises:
            ValueError: Unknown counter names or negative values
        """
        unknown = set(values) - set(SNAPSHOT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown snapshot fields: {sorted(unknown)}")
        if any(v < 0 for v in values.values()):
            raise ValueError("Snapshot counters must be non-negative")

        row = {field: int(values.get(field, 0)) for field in SNAPSHOT_FIELDS}
        stmt = dialect_insert(self.db, PlatformSnapshot).values(
            user_id=user_id, snapshot_date=day, **row
        )
        updates = {field: stmt.excluded[field] for field in SNAPSHOT_FIELDS}
        updates["updated_at"] = datetime.now(timezone.utc)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "snapshot_date"], set_=updates
        )
        await self.db.execute(stmt)
        logger.debug(f"Snapshot written user={user_id} day={day}: {row}")
