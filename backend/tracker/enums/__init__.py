"""
Centralized enum definitions for the application.

Usage:
    from tracker.enums import Platform, SyncState

    # Or import from specific module
    from tracker.enums.activity import StreakCategory
"""

from tracker.enums.activity import (
    FetchStatus,
    GoalCategory,
    Platform,
    StreakCategory,
    SyncIssueKind,
    SyncState,
)
from tracker.enums.api import RateLimitType

__all__ = [
    "FetchStatus",
    "GoalCategory",
    "Platform",
    "RateLimitType",
    "StreakCategory",
    "SyncIssueKind",
    "SyncState",
]
