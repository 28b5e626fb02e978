"""
Pydantic models for API requests, responses and service results.

Usage:
    from tracker.models import SyncResult, LedgerDay
"""

from tracker.models.activity import (
    BatchSyncResult,
    CategoryProgress,
    CounterReadings,
    CounterValues,
    DailyActivityUpdate,
    DeltaResult,
    LedgerDay,
    LedgerRangeResponse,
    MilestoneCompletionRequest,
    MilestoneCompletionResponse,
    MonthlyGoalRequest,
    MonthlyGoalResponse,
    MonthlyProgressResponse,
    PlatformFetchOutcome,
    PlatformHandlesRequest,
    PlatformHandlesResponse,
    StreakCounts,
    StreakHistoryDay,
    StreakHistoryResponse,
    StreakSummary,
    StudyTimeRequest,
    SyncIssue,
    SyncRequest,
    SyncResult,
)
from tracker.models.base import StrictRequest, StrictResponse

__all__ = [
    "BatchSyncResult",
    "CategoryProgress",
    "CounterReadings",
    "CounterValues",
    "DailyActivityUpdate",
    "DeltaResult",
    "LedgerDay",
    "LedgerRangeResponse",
    "MilestoneCompletionRequest",
    "MilestoneCompletionResponse",
    "MonthlyGoalRequest",
    "MonthlyGoalResponse",
    "MonthlyProgressResponse",
    "PlatformFetchOutcome",
    "PlatformHandlesRequest",
    "PlatformHandlesResponse",
    "StreakCounts",
    "StreakHistoryDay",
    "StreakHistoryResponse",
    "StreakSummary",
    "StrictRequest",
    "StrictResponse",
    "StudyTimeRequest",
    "SyncIssue",
    "SyncRequest",
    "SyncResult",
]
