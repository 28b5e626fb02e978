"""
SQLAlchemy Database Models for the Activity Ledger

Tables:
- platform_profiles: Judge-platform handles linked by each user
- platform_snapshots: Daily cumulative counters reported by the platforms
- activity_ledger: One row per user per day with every activity category
- monthly_goals: Per-month targets for each category
- streak_records: Derived per-category streaks, one row per user per day
- milestone_completions: Roadmap milestones marked complete

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: tracker/models/activity.py

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from tracker.db.base import Base


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# Coding counters kept per platform, in the order they are summed
CODING_FIELDS: tuple[str, ...] = (
    "leetcode_solved",
    "codechef_solved",
    "codeforces_solved",
)

# Ledger fields a caller may write; total_problems_solved is always derived
LEDGER_FIELDS: tuple[str, ...] = CODING_FIELDS + (
    "study_minutes",
    "contests_participated",
    "career_milestones_completed",
)


class PlatformProfile(Base):
    """
    Judge-platform handles for a user.

    Attributes:
        user_id: Opaque identifier supplied by the auth collaborator.
        leetcode_handle: LeetCode username, null when not linked.
        codechef_handle: CodeChef username, null when not linked.
        codeforces_handle: Codeforces handle, null when not linked.
        is_active: Inactive profiles are skipped by the batch sweep.
    """

    __tablename__ = "platform_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    leetcode_handle: Mapped[Optional[str]] = mapped_column(String(100))
    codechef_handle: Mapped[Optional[str]] = mapped_column(String(100))
    codeforces_handle: Mapped[Optional[str]] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


class PlatformSnapshot(Base):
    """
    Absolute cumulative counters observed for a user on a date.

    Only the current day's row is ever rewritten. Values may go down between
    days (upstream recounts); consumers clamp derived deltas at zero.

    Attributes:
        leetcode_total: Lifetime accepted problems on LeetCode.
        codechef_total: Lifetime fully solved problems on CodeChef.
        codeforces_total: Unique accepted problems on Codeforces.
        codeforces_contest_total: Unique accepted problems belonging to contests.
        codechef_contest_total: Solved problems listed under contest headings.
    """

    __tablename__ = "platform_snapshots"
    __table_args__ = (
        UniqueConstraint("user_id", "snapshot_date", name="uq_snapshot_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    snapshot_date: Mapped[date] = mapped_column(Date)

    leetcode_total: Mapped[int] = mapped_column(Integer, default=0)
    codechef_total: Mapped[int] = mapped_column(Integer, default=0)
    codeforces_total: Mapped[int] = mapped_column(Integer, default=0)
    codeforces_contest_total: Mapped[int] = mapped_column(Integer, default=0)
    codechef_contest_total: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


class ActivityLedgerEntry(Base):
    """
    One user's activity on one day.

    Coding fields hold the month-to-date figure written by the sync; study,
    contest and milestone fields accumulate events recorded during the day.

    Attributes:
        study_minutes: Minutes of study logged on the day.
        leetcode_solved: Problems solved on LeetCode so far this month.
        codechef_solved: Problems solved on CodeChef so far this month.
        codeforces_solved: Problems solved on Codeforces so far this month.
        contests_participated: Contests entered on the day (manual entry).
        career_milestones_completed: Roadmap milestones completed on the day.
        total_problems_solved: Sum of the three coding fields, maintained by
            every write path and never set directly.
    """

    __tablename__ = "activity_ledger"
    __table_args__ = (
        UniqueConstraint("user_id", "activity_date", name="uq_ledger_user_date"),
        CheckConstraint(
            "total_problems_solved = leetcode_solved + codechef_solved + codeforces_solved",
            name="ck_ledger_total_is_sum",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    activity_date: Mapped[date] = mapped_column(Date)

    study_minutes: Mapped[int] = mapped_column(Integer, default=0)
    leetcode_solved: Mapped[int] = mapped_column(Integer, default=0)
    codechef_solved: Mapped[int] = mapped_column(Integer, default=0)
    codeforces_solved: Mapped[int] = mapped_column(Integer, default=0)
    contests_participated: Mapped[int] = mapped_column(Integer, default=0)
    career_milestones_completed: Mapped[int] = mapped_column(Integer, default=0)
    total_problems_solved: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


class MonthlyGoal(Base):
    """
    Targets for one calendar month.

    Attributes:
        daily_study_minutes: Study target per day; the month target is this
            value times the number of days in the month.
        leetcode_problems: Problems to solve on LeetCode during the month.
        codechef_problems: Problems to solve on CodeChef during the month.
        codeforces_problems: Problems to solve on Codeforces during the month.
        contest_participation: Contests to enter during the month.
        career_milestones: Roadmap milestones to complete during the month.
    """

    __tablename__ = "monthly_goals"
    __table_args__ = (
        UniqueConstraint("user_id", "month", "year", name="uq_goal_user_month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    month: Mapped[int] = mapped_column(Integer)
    year: Mapped[int] = mapped_column(Integer)

    daily_study_minutes: Mapped[int] = mapped_column(Integer, default=0)
    leetcode_problems: Mapped[int] = mapped_column(Integer, default=0)
    codechef_problems: Mapped[int] = mapped_column(Integer, default=0)
    codeforces_problems: Mapped[int] = mapped_column(Integer, default=0)
    contest_participation: Mapped[int] = mapped_column(Integer, default=0)
    career_milestones: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


class StreakRecord(Base):
    """
    Streaks as of a given day, derived from the ledger.

    Rows are rewritten by the streak calculator and never edited by hand.
    The had_* flags describe activity on streak_date itself.
    """

    __tablename__ = "streak_records"
    __table_args__ = (
        UniqueConstraint("user_id", "streak_date", name="uq_streak_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    streak_date: Mapped[date] = mapped_column(Date)

    leetcode_streak: Mapped[int] = mapped_column(Integer, default=0)
    codechef_streak: Mapped[int] = mapped_column(Integer, default=0)
    codeforces_streak: Mapped[int] = mapped_column(Integer, default=0)
    coding_streak: Mapped[int] = mapped_column(Integer, default=0)
    career_streak: Mapped[int] = mapped_column(Integer, default=0)
    study_streak: Mapped[int] = mapped_column(Integer, default=0)
    overall_streak: Mapped[int] = mapped_column(Integer, default=0)

    had_leetcode_activity: Mapped[bool] = mapped_column(Boolean, default=False)
    had_codechef_activity: Mapped[bool] = mapped_column(Boolean, default=False)
    had_codeforces_activity: Mapped[bool] = mapped_column(Boolean, default=False)
    had_coding_activity: Mapped[bool] = mapped_column(Boolean, default=False)
    had_career_activity: Mapped[bool] = mapped_column(Boolean, default=False)
    had_study_activity: Mapped[bool] = mapped_column(Boolean, default=False)
    had_any_activity: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


class MilestoneCompletion(Base):
    """
    A roadmap milestone a user marked complete.

    Unique per (user, roadmap, milestone) so repeated completion requests
    credit the ledger only once.
    """

    __tablename__ = "milestone_completions"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "roadmap_id", "milestone_id", name="uq_milestone_user"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    roadmap_id: Mapped[str] = mapped_column(String(100))
    milestone_id: Mapped[str] = mapped_column(String(100))
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    completion_date: Mapped[date] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
