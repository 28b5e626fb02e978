"""
Streak Calculator

Derives consecutive-day streaks per activity category from the ledger.

Responsibilities:
- Compute current and longest streaks within a trailing window
- Persist one StreakRecord per user per day
- Serve stored streak history

Streak rules:
- A day is active for a platform when that day's contribution is positive;
  coding is any platform, study is study_minutes > 0, career is any
  completed milestone, overall is any of these.
- The anchor is today when today has a ledger row, otherwise yesterday, so
  a streak is not broken just because today has not been synced yet.
- Each category counts back from the anchor if it was active there, else
  from the day before the anchor. Zero means neither day was active.
- Only STREAK_WINDOW_DAYS days are read, so longer streaks are reported as
  the window length (flagged by window_capped).

Usage:
    calculator = StreakCalculator(db)
    summary = await calculator.recompute(user_id, today)
    print(summary.current.coding)
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.config import settings
from tracker.db.base import dialect_insert
from tracker.db.models import ActivityLedgerEntry, StreakRecord
from tracker.enums import StreakCategory
from tracker.models.activity import StreakCounts, StreakSummary
from tracker.services.ledger import ActivityLedger, daily_contributions
from tracker.utils.dates import month_start

logger = logging.getLogger(__name__)

PLATFORM_CATEGORIES: dict[StreakCategory, str] = {
    StreakCategory.LEETCODE: "leetcode_solved",
    StreakCategory.CODECHEF: "codechef_solved",
    StreakCategory.CODEFORCES: "codeforces_solved",
}

DayFlags = dict[StreakCategory, bool]


def activity_flags(row: ActivityLedgerEntry, contribution: dict[str, int]) -> DayFlags:
    """Which categories were active on a ledger day."""
    flags: DayFlags = {
        category: contribution.get(field, 0) > 0
        for category, field in PLATFORM_CATEGORIES.items()
    }
    flags[StreakCategory.CODING] = any(flags[c] for c in PLATFORM_CATEGORIES)
    flags[StreakCategory.STUDY] = row.study_minutes > 0
    flags[StreakCategory.CAREER] = row.career_milestones_completed > 0
    flags[StreakCategory.OVERALL] = (
        flags[StreakCategory.CODING]
        or flags[StreakCategory.STUDY]
        or flags[StreakCategory.CAREER]
    )
    return flags


def _is_active(flags_by_day: dict[date, DayFlags], day: date, category: StreakCategory) -> bool:
    return flags_by_day.get(day, {}).get(category, False)


def _run_ending_at(
    flags_by_day: dict[date, DayFlags],
    end: date,
    window_start: date,
    category: StreakCategory,
) -> int:
    count = 0
    day = end
    while day >= window_start and _is_active(flags_by_day, day, category):
        count += 1
        day -= timedelta(days=1)
    return count


def _longest_run(
    flags_by_day: dict[date, DayFlags],
    window_start: date,
    as_of: date,
    category: StreakCategory,
) -> int:
    longest = current = 0
    day = window_start
    while day <= as_of:
        if _is_active(flags_by_day, day, category):
            current += 1
            longest = max(longest, current)
        else:
            current = 0
        day += timedelta(days=1)
    return longest


class StreakCalculator:
    """
    Service computing and persisting multi-category streaks.

    Works within the caller's session; recompute() writes a StreakRecord
    but leaves committing to the caller.
    """

    def __init__(
        self,
        db: AsyncSession,
        window_days: Optional[int] = None,
        milestones: Optional[list[int]] = None,
    ):
        """
        Initialize the streak calculator.

        Args:
            db: Async database session
            window_days: Trailing days considered (default: settings.STREAK_WINDOW_DAYS)
            milestones: Overall-streak milestones (default: settings.STREAK_MILESTONES)
        """
        self.db = db
        self.window_days = window_days or settings.STREAK_WINDOW_DAYS
        if self.window_days < 2:
            raise ValueError("Streak window must cover at least two days")
        self.milestones = sorted(
            milestones if milestones is not None else settings.STREAK_MILESTONES
        )
        self.ledger = ActivityLedger(db)

    async def _flags_in_window(
        self, user_id: str, window_start: date, as_of: date
    ) -> tuple[dict[date, DayFlags], set[date]]:
        # Read back to the month start so the first window day's contribution
        # is diffed against the right row
        rows = await self.ledger.get_range(user_id, month_start(window_start), as_of)
        contributions = daily_contributions(rows)
        flags_by_day = {
            row.activity_date: activity_flags(row, contributions[row.activity_date])
            for row in rows
            if row.activity_date >= window_start
        }
        return flags_by_day, {row.activity_date for row in rows}

    async def calculate(self, user_id: str, as_of: date) -> StreakSummary:
        """
        Compute streaks as of a date without writing anything.

        Args:
            user_id: User whose ledger is read
            as_of: Reference day (usually today)

        Returns:
            StreakSummary with current and longest streaks per category
        """
        window_start = as_of - timedelta(days=self.window_days - 1)
        flags_by_day, recorded_days = await self._flags_in_window(
            user_id, window_start, as_of
        )

        anchor = as_of if as_of in recorded_days else as_of - timedelta(days=1)
        current: dict[str, int] = {}
        longest: dict[str, int] = {}
        window_capped = False
        for category in StreakCategory:
            start = (
                anchor
                if _is_active(flags_by_day, anchor, category)
                else anchor - timedelta(days=1)
            )
            run = _run_ending_at(flags_by_day, start, window_start, category)
            if run and run == (start - window_start).days + 1:
                window_capped = True
            current[category.value] = run
            longest[category.value] = _longest_run(
                flags_by_day, window_start, as_of, category
            )

        current_counts = StreakCounts(**current)
        overall = current_counts.overall
        return StreakSummary(
            as_of=as_of,
            anchor_date=anchor,
            window_days=self.window_days,
            current=current_counts,
            longest=StreakCounts(**longest),
            active_today=_is_active(flags_by_day, as_of, StreakCategory.OVERALL),
            window_capped=window_capped,
            milestones_reached=[m for m in self.milestones if overall >= m],
            next_milestone=next((m for m in self.milestones if m > overall), None),
        )

    async def recompute(self, user_id: str, as_of: date) -> StreakSummary:
        """
        Recompute streaks and upsert the StreakRecord for as_of.

        The caller commits the session.
        """
        summary = await self.calculate(user_id, as_of)

        today_row = await self.ledger.get_entry(user_id, as_of)
        if today_row is not None:
            rows = await self.ledger.get_range(user_id, month_start(as_of), as_of)
            flags = activity_flags(today_row, daily_contributions(rows)[as_of])
        else:
            flags = {category: False for category in StreakCategory}

        counts = summary.current
        values = {
            "leetcode_streak": counts.leetcode,
            "codechef_streak": counts.codechef,
            "codeforces_streak": counts.codeforces,
            "coding_streak": counts.coding,
            "career_streak": counts.career,
            "study_streak": counts.study,
            "overall_streak": counts.overall,
            "had_leetcode_activity": flags[StreakCategory.LEETCODE],
            "had_codechef_activity": flags[StreakCategory.CODECHEF],
            "had_codeforces_activity": flags[StreakCategory.CODEFORCES],
            "had_coding_activity": flags[StreakCategory.CODING],
            "had_career_activity": flags[StreakCategory.CAREER],
            "had_study_activity": flags[StreakCategory.STUDY],
            "had_any_activity": flags[StreakCategory.OVERALL],
        }
        stmt = dialect_insert(self.db, StreakRecord).values(
            user_id=user_id, streak_date=as_of, **values
        )
        updates = {field: stmt.excluded[field] for field in values}
        updates["updated_at"] = datetime.now(timezone.utc)
        await self.db.execute(
            stmt.on_conflict_do_update(
                index_elements=["user_id", "streak_date"], set_=updates
            )
        )

        logger.info(
            f"Streaks for {user_id} as of {as_of}: coding={counts.coding} "
            f"study={counts.study} career={counts.career} overall={counts.overall}"
        )
        return summary

    async def history(self, user_id: str, days: int, today: date) -> list[StreakRecord]:
        """Stored streak records for the last `days` days, newest first."""
        if days < 1:
            raise ValueError("days must be positive")
        since = today - timedelta(days=days - 1)
        result = await self.db.execute(
            select(StreakRecord)
            .where(
                StreakRecord.user_id == user_id,
                StreakRecord.streak_date >= since,
                StreakRecord.streak_date <= today,
            )
            .order_by(StreakRecord.streak_date.desc())
        )
        return list(result.scalars().all())
