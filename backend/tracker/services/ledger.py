"""
Activity Ledger Service

One row per user per day holding every activity category. All writes go
through a single INSERT ... ON CONFLICT DO UPDATE so concurrent writers never
lose each other's updates:

- overwrite fields replace the stored value (coding counters from sync,
  manual edits)
- increment fields are added to the stored value in SQL (study minutes,
  milestone credits, contests)
- total_problems_solved is recomputed in the same statement

Coding fields are month-to-date figures. A row created by an event (study
time, milestone) before any sync that day inherits the coding figures of the
latest earlier row in the same month, so the month-to-date series never dips.

Usage:
    ledger = ActivityLedger(db)
    await ledger.upsert_day(user_id, day, overwrite={"leetcode_solved": 12})
    await ledger.upsert_day(user_id, day, increment={"study_minutes": 30})
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.base import dialect_insert
from tracker.db.models import CODING_FIELDS, LEDGER_FIELDS, ActivityLedgerEntry
from tracker.models.activity import DailyActivityUpdate, LedgerDay
from tracker.utils.dates import month_start, same_month

logger = logging.getLogger(__name__)

DERIVED_FIELD = "total_problems_solved"


def _validate_fields(overwrite: Mapping[str, int], increment: Mapping[str, int]) -> None:
    for fields in (overwrite, increment):
        for field, value in fields.items():
            if field == DERIVED_FIELD:
                raise ValueError(f"{DERIVED_FIELD} is derived and cannot be set")
            if field not in LEDGER_FIELDS:
                raise ValueError(f"Unknown ledger field: {field}")
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{field} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{field} must be non-negative, got {value}")

    both = set(overwrite) & set(increment)
    if both:
        raise ValueError(f"Fields both overwritten and incremented: {sorted(both)}")


def daily_contributions(
    rows: Iterable[ActivityLedgerEntry],
) -> dict[date, dict[str, int]]:
    """
    Per-day coding contributions from month-to-date ledger rows.

    A row contributes the increase over the previous row of the same month,
    clamped at zero; the first row of a month contributes its full value.

    Args:
        rows: Ledger rows of one user, any order

    Returns:
        Mapping of date to {coding field: contribution}
    """
    contributions: dict[date, dict[str, int]] = {}
    previous: Optional[ActivityLedgerEntry] = None
    for row in sorted(rows, key=lambda r: r.activity_date):
        if previous is not None and same_month(previous.activity_date, row.activity_date):
            contributions[row.activity_date] = {
                field: max(0, getattr(row, field) - getattr(previous, field))
                for field in CODING_FIELDS
            }
        else:
            contributions[row.activity_date] = {
                field: max(0, getattr(row, field)) for field in CODING_FIELDS
            }
        previous = row
    return contributions


class ActivityLedger:
    """Read and write access to the activity ledger for one session."""

    def __init__(self, db: AsyncSession):
        """
        Initialize the ledger.

        Args:
            db: Async database session; callers own the transaction
        """
        self.db = db

    async def upsert_day(
        self,
        user_id: str,
        day: date,
        overwrite: Optional[Mapping[str, int]] = None,
        increment: Optional[Mapping[str, int]] = None,
    ) -> None:
        """
        Create or update the ledger row for (user_id, day) in one statement.

        Args:
            user_id: Owner of the row
            day: Activity date
            overwrite: Fields whose stored value is replaced
            increment: Fields added to the stored value

        Raises:
            ValueError: Unknown, derived, negative or doubly-specified fields
        """
        overwrite = dict(overwrite or {})
        increment = dict(increment or {})
        _validate_fields(overwrite, increment)

        values = {field: 0 for field in LEDGER_FIELDS}
        missing_coding = [
            f for f in CODING_FIELDS if f not in overwrite and f not in increment
        ]
        if missing_coding:
            prior = await self._latest_in_month_before(user_id, day)
            if prior is not None:
                for field in missing_coding:
                    values[field] = getattr(prior, field)
        values.update(overwrite)
        values.update(increment)
        values[DERIVED_FIELD] = sum(values[f] for f in CODING_FIELDS)

        stmt = dialect_insert(self.db, ActivityLedgerEntry).values(
            user_id=user_id, activity_date=day, **values
        )
        table = ActivityLedgerEntry.__table__
        updates = {field: stmt.excluded[field] for field in overwrite}
        updates.update(
            {field: table.c[field] + stmt.excluded[field] for field in increment}
        )
        coding_exprs = [updates.get(field, table.c[field]) for field in CODING_FIELDS]
        updates[DERIVED_FIELD] = coding_exprs[0] + coding_exprs[1] + coding_exprs[2]
        updates["updated_at"] = datetime.now(timezone.utc)

        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "activity_date"], set_=updates
        )
        await self.db.execute(stmt)
        logger.debug(
            f"Ledger upsert user={user_id} day={day} overwrite={overwrite} increment={increment}"
        )

    async def _latest_in_month_before(
        self, user_id: str, day: date
    ) -> Optional[ActivityLedgerEntry]:
        result = await self.db.execute(
            select(ActivityLedgerEntry)
            .where(
                ActivityLedgerEntry.user_id == user_id,
                ActivityLedgerEntry.activity_date >= month_start(day),
                ActivityLedgerEntry.activity_date < day,
            )
            .order_by(ActivityLedgerEntry.activity_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_entry(self, user_id: str, day: date) -> Optional[ActivityLedgerEntry]:
        result = await self.db.execute(
            select(ActivityLedgerEntry)
            .where(
                ActivityLedgerEntry.user_id == user_id,
                ActivityLedgerEntry.activity_date == day,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_day(self, user_id: str, day: date) -> LedgerDay:
        """Return the row for a day, or an all-zero default when none exists."""
        entry = await self.get_entry(user_id, day)
        if entry is None:
            return LedgerDay(activity_date=day, recorded=False)
        return LedgerDay.model_validate(entry)

    async def get_range(
        self, user_id: str, start: date, end: date
    ) -> list[ActivityLedgerEntry]:
        """Rows with start <= activity_date <= end, oldest first."""
        result = await self.db.execute(
            select(ActivityLedgerEntry)
            .where(
                ActivityLedgerEntry.user_id == user_id,
                ActivityLedgerEntry.activity_date >= start,
                ActivityLedgerEntry.activity_date <= end,
            )
            .order_by(ActivityLedgerEntry.activity_date)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def set_day(self, user_id: str, update: DailyActivityUpdate) -> LedgerDay:
        """Manual edit: overwrite the provided fields of a day."""
        overwrite = update.model_dump(exclude_none=True, exclude={"activity_date"})
        await self.upsert_day(user_id, update.activity_date, overwrite=overwrite)
        logger.info(f"Manual ledger edit user={user_id} day={update.activity_date}: {overwrite}")
        return await self.get_day(user_id, update.activity_date)

    async def add_study_minutes(self, user_id: str, day: date, minutes: int) -> LedgerDay:
        """Add study minutes to a day."""
        await self.upsert_day(user_id, day, increment={"study_minutes": minutes})
        return await self.get_day(user_id, day)
