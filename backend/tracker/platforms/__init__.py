"""
Judge-platform adapters.

Usage:
    from tracker.platforms import build_default_adapters

    adapters = build_default_adapters(http_client)
    stats = await adapters[Platform.CODEFORCES].fetch_cumulative("tourist")
"""

import httpx

from tracker.enums import Platform
from tracker.platforms.base import (
    PlatformAdapter,
    PlatformStats,
    UpstreamUnavailable,
)
from tracker.platforms.codechef import CodeChefAdapter
from tracker.platforms.codeforces import CodeforcesAdapter
from tracker.platforms.leetcode import LeetCodeAdapter


def build_default_adapters(client: httpx.AsyncClient) -> dict[Platform, PlatformAdapter]:
    """Create one adapter per platform sharing the given HTTP client."""
    return {
        Platform.LEETCODE: LeetCodeAdapter(client),
        Platform.CODECHEF: CodeChefAdapter(client),
        Platform.CODEFORCES: CodeforcesAdapter(client),
    }


__all__ = [
    "CodeChefAdapter",
    "CodeforcesAdapter",
    "LeetCodeAdapter",
    "PlatformAdapter",
    "PlatformStats",
    "UpstreamUnavailable",
    "build_default_adapters",
]
