"""
Pydantic Models for Activity Sync, Ledger, Goals and Streaks

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for API validation and service results.
    There is a corresponding SQLAlchemy file: tracker/db/models.py

    Data flows: API Request → Pydantic → Service Layer → SQLAlchemy → Database
"""

from datetime import date, datetime
from typing import Optional

from pydantic import Field, computed_field, model_validator

from tracker.enums import (
    FetchStatus,
    GoalCategory,
    Platform,
    SyncIssueKind,
    SyncState,
)
from tracker.models.base import StrictRequest, StrictResponse


# ===========================================
# Counters
# ===========================================


class CounterReadings(StrictResponse):
    """
    Cumulative counters read from the platforms during one sync.

    None means no confirmed reading this run (platform failed, handle not
    configured, or counter not offered); such counters are carried forward
    from the latest snapshot.
    """

    leetcode: Optional[int] = None
    codechef: Optional[int] = None
    codeforces: Optional[int] = None
    codeforces_contests: Optional[int] = None
    codechef_contests: Optional[int] = None


class CounterValues(StrictResponse):
    """Resolved counter values (cumulative, monthly-to-date or daily)."""

    leetcode: int = 0
    codechef: int = 0
    codeforces: int = 0
    codeforces_contests: Optional[int] = 0
    codechef_contests: Optional[int] = 0

    @computed_field
    @property
    def total(self) -> int:
        """Problems solved across the three platforms."""
        return self.leetcode + self.codechef + self.codeforces


class DeltaResult(StrictResponse):
    """Output of the delta engine for one user and day."""

    cumulative: CounterValues
    monthly: CounterValues
    daily: CounterValues
    baseline_date: Optional[date] = None
    yesterday_recorded: bool = False


# ===========================================
# Ledger
# ===========================================


class LedgerDay(StrictResponse):
    """A ledger row, or the zero-valued default for a day without one."""

    activity_date: date
    study_minutes: int = 0
    leetcode_solved: int = 0
    codechef_solved: int = 0
    codeforces_solved: int = 0
    contests_participated: int = 0
    career_milestones_completed: int = 0
    total_problems_solved: int = 0
    recorded: bool = True


class DailyActivityUpdate(StrictRequest):
    """Manual edit of a ledger day; omitted fields keep their value."""

    activity_date: date
    study_minutes: Optional[int] = Field(None, ge=0)
    leetcode_solved: Optional[int] = Field(None, ge=0)
    codechef_solved: Optional[int] = Field(None, ge=0)
    codeforces_solved: Optional[int] = Field(None, ge=0)
    contests_participated: Optional[int] = Field(None, ge=0)
    career_milestones_completed: Optional[int] = Field(None, ge=0)


class StudyTimeRequest(StrictRequest):
    """Study minutes to add to a day (defaults to today)."""

    minutes: int = Field(..., gt=0, le=24 * 60)
    activity_date: Optional[date] = None


class LedgerRangeResponse(StrictResponse):
    """Ledger rows for a calendar month."""

    year: int
    month: int
    days: list[LedgerDay]


# ===========================================
# Goals
# ===========================================


class MonthlyGoalRequest(StrictRequest):
    """Targets for a month; daily_study_minutes is a per-day target."""

    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    daily_study_minutes: int = Field(0, ge=0)
    leetcode_problems: int = Field(0, ge=0)
    codechef_problems: int = Field(0, ge=0)
    codeforces_problems: int = Field(0, ge=0)
    contest_participation: int = Field(0, ge=0)
    career_milestones: int = Field(0, ge=0)


class MonthlyGoalResponse(StrictResponse):
    """A stored goal, or the zero-target default when none is configured."""

    month: int
    year: int
    daily_study_minutes: int = 0
    leetcode_problems: int = 0
    codechef_problems: int = 0
    codeforces_problems: int = 0
    contest_participation: int = 0
    career_milestones: int = 0
    configured: bool = True


class CategoryProgress(StrictResponse):
    """Achieved vs. target for one goal category."""

    category: GoalCategory
    achieved: int
    target: int
    percent: int = Field(..., ge=0, le=100)


class MonthlyProgressResponse(StrictResponse):
    """Goal completion for a month, one entry per category."""

    year: int
    month: int
    goal_configured: bool
    days_in_month: int
    categories: list[CategoryProgress]

    def get(self, category: GoalCategory) -> CategoryProgress:
        """Return the entry for a category."""
        for item in self.categories:
            if item.category == category:
                return item
        raise KeyError(category)


# ===========================================
# Streaks
# ===========================================


class StreakCounts(StrictResponse):
    """Consecutive-day counts per streak category."""

    leetcode: int = 0
    codechef: int = 0
    codeforces: int = 0
    coding: int = 0
    career: int = 0
    study: int = 0
    overall: int = 0


class StreakSummary(StrictResponse):
    """
    Streaks as of a date.

    window_capped is set when some streak spans the whole trailing window,
    in which case the real streak may be longer than reported.
    """

    as_of: date
    anchor_date: date
    window_days: int
    current: StreakCounts
    longest: StreakCounts
    active_today: bool
    window_capped: bool = False
    milestones_reached: list[int] = Field(default_factory=list)
    next_milestone: Optional[int] = None


class StreakHistoryDay(StrictResponse):
    """A stored streak record."""

    streak_date: date
    leetcode_streak: int
    codechef_streak: int
    codeforces_streak: int
    coding_streak: int
    career_streak: int
    study_streak: int
    overall_streak: int
    had_coding_activity: bool
    had_career_activity: bool
    had_study_activity: bool
    had_any_activity: bool


class StreakHistoryResponse(StrictResponse):
    """Stored streak records, newest first."""

    days: int
    records: list[StreakHistoryDay]


# ===========================================
# Milestones
# ===========================================


class MilestoneCompletionRequest(StrictRequest):
    """Marks a roadmap milestone complete."""

    roadmap_id: str = Field(..., min_length=1, max_length=100)
    milestone_id: str = Field(..., min_length=1, max_length=100)
    completed_at: Optional[datetime] = None


class MilestoneCompletionResponse(StrictResponse):
    """recorded is False when the milestone was already complete."""

    recorded: bool
    completion_date: date
    message: str


# ===========================================
# Sync
# ===========================================


class PlatformHandlesRequest(StrictRequest):
    """Handles to link; empty strings unlink a platform."""

    leetcode_handle: Optional[str] = Field(None, max_length=100)
    codechef_handle: Optional[str] = Field(None, max_length=100)
    codeforces_handle: Optional[str] = Field(None, max_length=100)
    is_active: bool = True


class PlatformHandlesResponse(StrictResponse):
    """Handles currently linked for the user."""

    leetcode_handle: Optional[str] = None
    codechef_handle: Optional[str] = None
    codeforces_handle: Optional[str] = None
    is_active: bool = True

    def configured(self) -> dict[Platform, str]:
        """Return the platforms with a non-blank handle."""
        handles = {
            Platform.LEETCODE: self.leetcode_handle,
            Platform.CODECHEF: self.codechef_handle,
            Platform.CODEFORCES: self.codeforces_handle,
        }
        return {
            platform: handle.strip()
            for platform, handle in handles.items()
            if handle and handle.strip()
        }


class PlatformFetchOutcome(StrictResponse):
    """What one platform reported during a sync."""

    platform: Platform
    status: FetchStatus
    solved: int = 0
    contest_solved: Optional[int] = None
    source: Optional[str] = None
    error: Optional[str] = None


class SyncIssue(StrictResponse):
    """A non-fatal problem encountered during a sync or sweep."""

    kind: SyncIssueKind
    message: str
    platform: Optional[Platform] = None
    user_id: Optional[str] = None


class SyncRequest(StrictRequest):
    """Options for a manual refresh."""

    monthly_only: bool = False


class SyncResult(StrictResponse):
    """Outcome of a per-user sync."""

    user_id: str
    sync_date: date
    state: SyncState
    monthly: CounterValues = Field(default_factory=CounterValues)
    daily: CounterValues = Field(default_factory=CounterValues)
    lifetime: Optional[CounterValues] = None
    platforms: list[PlatformFetchOutcome] = Field(default_factory=list)
    errors: list[SyncIssue] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    message: str = ""
    streaks: Optional[StreakCounts] = None


class BatchSyncResult(StrictResponse):
    """Outcome of a sweep over active users."""

    attempted: int = 0
    succeeded: int = 0
    partial: int = 0
    failed: int = 0
    results: list[SyncResult] = Field(default_factory=list)
    errors: list[SyncIssue] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_counts(self) -> "BatchSyncResult":
        if self.succeeded + self.partial + self.failed > self.attempted:
            raise ValueError("outcome counts exceed attempted users")
        return self
