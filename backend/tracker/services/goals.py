"""
Monthly Goals and Progress

GoalService stores per-month targets. GoalProgressAggregator sums a month of
ledger rows per category and reports completion against those targets.

Percentages are rounded half-up and clamped to [0, 100]; a zero target
always reports 0%. A month without a stored goal is treated as all-zero
targets rather than an error.

Usage:
    progress = await GoalProgressAggregator(db).monthly_progress(user_id, 2026, 10)
    for item in progress.categories:
        print(item.category, item.percent)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.base import dialect_insert
from tracker.db.models import MonthlyGoal
from tracker.enums import GoalCategory
from tracker.middleware.error_handling import ValidationError
from tracker.models.activity import (
    CategoryProgress,
    MonthlyGoalRequest,
    MonthlyGoalResponse,
    MonthlyProgressResponse,
)
from tracker.services.ledger import ActivityLedger, daily_contributions
from tracker.utils.dates import days_in_month, month_bounds

logger = logging.getLogger(__name__)

GOAL_FIELDS: tuple[str, ...] = (
    "daily_study_minutes",
    "leetcode_problems",
    "codechef_problems",
    "codeforces_problems",
    "contest_participation",
    "career_milestones",
)


def percent_complete(achieved: int, target: int) -> int:
    """
    Completion percentage, rounded half-up and clamped to [0, 100].

    Integer arithmetic avoids float rounding surprises (e.g. 1/8 -> 13).
    """
    if target <= 0 or achieved <= 0:
        return 0
    return min(100, (200 * achieved + target) // (2 * target))


def _check_month(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month}", details={"month": month})
    if not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year: {year}", details={"year": year})


class GoalService:
    """Read and write monthly goals."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_goal(self, user_id: str, year: int, month: int) -> MonthlyGoalResponse:
        """Stored goal for the month, or zero targets with configured=False."""
        _check_month(year, month)
        result = await self.db.execute(
            select(MonthlyGoal)
            .where(
                MonthlyGoal.user_id == user_id,
                MonthlyGoal.year == year,
                MonthlyGoal.month == month,
            )
            .execution_options(populate_existing=True)
        )
        goal = result.scalar_one_or_none()
        if goal is None:
            return MonthlyGoalResponse(year=year, month=month, configured=False)
        return MonthlyGoalResponse.model_validate(goal)

    async def set_goal(
        self, user_id: str, request: MonthlyGoalRequest
    ) -> MonthlyGoalResponse:
        """Create or replace the goal for request.year/request.month."""
        values = request.model_dump(include=set(GOAL_FIELDS))
        stmt = dialect_insert(self.db, MonthlyGoal).values(
            user_id=user_id, year=request.year, month=request.month, **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "month", "year"],
            set_={field: stmt.excluded[field] for field in GOAL_FIELDS},
        )
        await self.db.execute(stmt)
        logger.info(f"Goal set for {user_id} {request.year}-{request.month:02d}: {values}")
        return await self.get_goal(user_id, request.year, request.month)


class GoalProgressAggregator:
    """Read-only aggregation of ledger rows against monthly goals."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.goals = GoalService(db)
        self.ledger = ActivityLedger(db)

    async def monthly_progress(
        self, user_id: str, year: int, month: int
    ) -> MonthlyProgressResponse:
        """
        Completion per goal category for a calendar month.

        Coding totals are the sum of per-day contributions, which equals the
        month-to-date figure on the month's last synced day.

        Args:
            user_id: User whose ledger is aggregated
            year: Calendar year
            month: Calendar month (1-12)

        Returns:
            MonthlyProgressResponse with raw sums, targets and percentages
        """
        _check_month(year, month)
        goal = await self.goals.get_goal(user_id, year, month)
        first, last = month_bounds(year, month)
        rows = await self.ledger.get_range(user_id, first, last)
        contributions = daily_contributions(rows).values()

        achieved = {
            GoalCategory.STUDY: sum(row.study_minutes for row in rows),
            GoalCategory.LEETCODE: sum(c["leetcode_solved"] for c in contributions),
            GoalCategory.CODECHEF: sum(c["codechef_solved"] for c in contributions),
            GoalCategory.CODEFORCES: sum(c["codeforces_solved"] for c in contributions),
            GoalCategory.CONTESTS: sum(row.contests_participated for row in rows),
            GoalCategory.CAREER: sum(row.career_milestones_completed for row in rows),
        }
        month_days = days_in_month(year, month)
        targets = {
            GoalCategory.STUDY: goal.daily_study_minutes * month_days,
            GoalCategory.LEETCODE: goal.leetcode_problems,
            GoalCategory.CODECHEF: goal.codechef_problems,
            GoalCategory.CODEFORCES: goal.codeforces_problems,
            GoalCategory.CONTESTS: goal.contest_participation,
            GoalCategory.CAREER: goal.career_milestones,
        }

        return MonthlyProgressResponse(
            year=year,
            month=month,
            goal_configured=goal.configured,
            days_in_month=month_days,
            categories=[
                CategoryProgress(
                    category=category,
                    achieved=achieved[category],
                    target=targets[category],
                    percent=percent_complete(achieved[category], targets[category]),
                )
                for category in GoalCategory
            ],
        )
