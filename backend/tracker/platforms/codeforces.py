"""
Codeforces Adapter

Counts unique accepted problems from the user.status API. A problem is
identified by (contestId, index); problems belonging to a contest
(contestId > 0) also feed the contest counter.
"""

from tracker.config import settings
from tracker.enums import Platform
from tracker.platforms.base import (
    PlatformAdapter,
    SourceFetcher,
    SourceResult,
    UpstreamUnavailable,
)


class CodeforcesAdapter(PlatformAdapter):
    """Adapter for the public Codeforces API."""

    platform = Platform.CODEFORCES

    def sources(self, include_contests: bool) -> list[tuple[str, SourceFetcher]]:
        return [("user_status", self._from_user_status)]

    async def _from_user_status(self, handle: str) -> SourceResult:
        payload = await self._get_json(
            f"{settings.CODEFORCES_API_URL}/user.status",
            "user_status",
            params={"handle": handle},
        )
        if payload.get("status") != "OK":
            raise UpstreamUnavailable(
                "user_status", payload.get("comment") or f"status={payload.get('status')}"
            )

        submissions = payload.get("result")
        if not isinstance(submissions, list):
            raise UpstreamUnavailable("user_status", "result is not a list")

        solved: set[tuple] = set()
        contest_solved: set[tuple] = set()
        for submission in submissions:
            if not isinstance(submission, dict) or submission.get("verdict") != "OK":
                continue
            problem = submission.get("problem")
            if not isinstance(problem, dict):
                raise UpstreamUnavailable("user_status", "submission problem is not an object")
            contest_id = problem.get("contestId")
            key = (contest_id, problem.get("index") or problem.get("name"))
            solved.add(key)
            if isinstance(contest_id, int) and contest_id > 0:
                contest_solved.add(key)

        return len(solved), len(contest_solved)
