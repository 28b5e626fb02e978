"""
LeetCode Adapter

Reads the lifetime accepted-problem count for a LeetCode user. Sources, in the
order given by config/default.yaml (platforms.leetcode_sources):

- graphql: LeetCode's own GraphQL endpoint (submitStatsGlobal, difficulty "All")
- stats_api: leetcode-stats-api mirror (totalSolved)
- alfa_api: alfa-leetcode-api mirror (/{handle}/solved, solvedProblem)

LeetCode exposes no contest counter, so contest_solved is always None.
"""

from tracker.config import settings, yaml_config
from tracker.enums import Platform
from tracker.platforms.base import (
    PlatformAdapter,
    SourceFetcher,
    SourceResult,
    UpstreamUnavailable,
    parse_count,
)

SOLVED_QUERY = """
query userProblemsSolved($username: String!) {
  matchedUser(username: $username) {
    submitStatsGlobal {
      acSubmissionNum {
        difficulty
        count
      }
    }
  }
}
"""

DEFAULT_SOURCE_ORDER = ["graphql", "stats_api", "alfa_api"]


class LeetCodeAdapter(PlatformAdapter):
    """Adapter for leetcode.com and its public stats mirrors."""

    platform = Platform.LEETCODE

    def sources(self, include_contests: bool) -> list[tuple[str, SourceFetcher]]:
        available = {
            "graphql": self._from_graphql,
            "stats_api": self._from_stats_api,
            "alfa_api": self._from_alfa_api,
        }
        order = (
            yaml_config.get("platforms", {}).get("leetcode_sources")
            or DEFAULT_SOURCE_ORDER
        )
        return [(name, available[name]) for name in order if name in available]

    async def _from_graphql(self, handle: str) -> SourceResult:
        response = await self._get_json_post(
            settings.LEETCODE_GRAPHQL_URL,
            {"query": SOLVED_QUERY, "variables": {"username": handle}},
        )
        if response.get("errors"):
            raise UpstreamUnavailable("graphql", str(response["errors"])[:200])

        matched = (response.get("data") or {}).get("matchedUser")
        if not matched:
            raise UpstreamUnavailable("graphql", "user not found")

        entries = (matched.get("submitStatsGlobal") or {}).get("acSubmissionNum")
        if not isinstance(entries, list):
            raise UpstreamUnavailable("graphql", "acSubmissionNum missing")
        for entry in entries:
            if isinstance(entry, dict) and entry.get("difficulty") == "All":
                return parse_count(entry.get("count"), "graphql", "count"), None
        raise UpstreamUnavailable("graphql", "no 'All' difficulty bucket")

    async def _from_stats_api(self, handle: str) -> SourceResult:
        payload = await self._get_json(
            f"{settings.LEETCODE_STATS_API_URL}/{handle}", "stats_api"
        )
        if payload.get("status") != "success":
            raise UpstreamUnavailable(
                "stats_api", payload.get("message") or f"status={payload.get('status')}"
            )
        return parse_count(payload.get("totalSolved"), "stats_api", "totalSolved"), None

    async def _from_alfa_api(self, handle: str) -> SourceResult:
        payload = await self._get_json(
            f"{settings.LEETCODE_ALFA_API_URL}/{handle}/solved", "alfa_api"
        )
        if payload.get("errors") or payload.get("error"):
            raise UpstreamUnavailable(
                "alfa_api", str(payload.get("errors") or payload.get("error"))[:200]
            )
        return parse_count(payload.get("solvedProblem"), "alfa_api", "solvedProblem"), None

    async def _get_json_post(self, url: str, body: dict) -> dict:
        headers = {
            "User-Agent": settings.PLATFORM_USER_AGENT,
            "Content-Type": "application/json",
            "Referer": "https://leetcode.com",
        }
        response = await self.client.post(url, json=body, headers=headers)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise UpstreamUnavailable("graphql", "payload is not a JSON object")
        return payload
