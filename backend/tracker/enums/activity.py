"""
Activity tracking enums.

Covers judge platforms, streak and goal categories, and the lifecycle
of a sync run.
"""

from enum import Enum


class Platform(str, Enum):
    """External coding-judge platforms a user can link."""

    LEETCODE = "leetcode"
    CODECHEF = "codechef"
    CODEFORCES = "codeforces"


class FetchStatus(str, Enum):
    """Outcome tag of a single platform fetch."""

    OK = "ok"
    SOFT_FAILURE = "soft_failure"


class SyncState(str, Enum):
    """
    Lifecycle of a per-user sync.

    PENDING -> FETCHING -> DIFFING -> COMMITTING -> STREAK_RECOMPUTE -> DONE.
    PARTIAL replaces DONE when any configured platform soft-failed; FAILED
    is reached only when the commit transaction fails.
    """

    PENDING = "pending"
    FETCHING = "fetching"
    DIFFING = "diffing"
    COMMITTING = "committing"
    STREAK_RECOMPUTE = "streak_recompute"
    DONE = "done"
    PARTIAL = "partial"
    FAILED = "failed"


class SyncIssueKind(str, Enum):
    """Kinds of non-fatal problems reported in a sync result."""

    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    STREAK_RECOMPUTE_FAILED = "streak_recompute_failed"
    USER_SYNC_FAILED = "user_sync_failed"


class StreakCategory(str, Enum):
    """Categories tracked by the streak calculator."""

    LEETCODE = "leetcode"
    CODECHEF = "codechef"
    CODEFORCES = "codeforces"
    CODING = "coding"
    CAREER = "career"
    STUDY = "study"
    OVERALL = "overall"


class GoalCategory(str, Enum):
    """Categories a monthly goal sets targets for."""

    STUDY = "study"
    LEETCODE = "leetcode"
    CODECHEF = "codechef"
    CODEFORCES = "codeforces"
    CONTESTS = "contests"
    CAREER = "career"
