"""
API-related enums.

Defines enums for rate limiting categories.
"""

from enum import Enum


class RateLimitType(str, Enum):
    """
    Rate limit categories for different endpoint types.

    Each category has a corresponding rate limit configured in settings.
    Usage:
        from tracker.enums import RateLimitType

        limit = settings.get_rate_limit(RateLimitType.SYNC)
    """

    # General read/write endpoints.
    DEFAULT = "default"

    # Per-user refresh, fans out to external judge platforms.
    SYNC = "sync"

    # Sweep over every active user.
    BATCH = "batch"
