"""
CodeChef Adapter

CodeChef has no public stats API, so the profile page is parsed with
BeautifulSoup. The counter lives in the "problems solved" section:

    <section class="rating-data-section problems-solved">
      <h3>Total Problems Solved: 123</h3>
      <h3>Contests (8)</h3> ...

Older layouts only carry "Fully Solved (N)" in an h5, used as fallback.
A page without the section (unknown user, layout change) is a failure,
never a zero.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup

from tracker.config import settings
from tracker.enums import Platform
from tracker.platforms.base import (
    PlatformAdapter,
    SourceFetcher,
    SourceResult,
    UpstreamUnavailable,
)

TOTAL_PATTERN = re.compile(r"Total Problems Solved:\s*(\d+)", re.IGNORECASE)
PARENTHESIZED_PATTERN = re.compile(r"\((\d+)\)")
CONTEST_PATTERN = re.compile(r"contest[^()]*\((\d+)\)", re.IGNORECASE)


def parse_problems_solved(html: str) -> tuple[int, Optional[int]]:
    """
    Extract (solved, contest_solved) from a CodeChef profile page.

    Raises:
        UpstreamUnavailable: If the section or both counter patterns are missing
    """
    soup = BeautifulSoup(html, "html.parser")
    section = soup.select_one("section.rating-data-section.problems-solved")
    if section is None:
        raise UpstreamUnavailable("profile_page", "problems-solved section missing")

    solved: Optional[int] = None
    for heading in section.find_all("h3"):
        match = TOTAL_PATTERN.search(heading.get_text(" ", strip=True))
        if match:
            solved = int(match.group(1))
            break

    if solved is None:
        for heading in section.find_all("h5"):
            match = PARENTHESIZED_PATTERN.search(heading.get_text(" ", strip=True))
            if match:
                solved = int(match.group(1))
                break

    if solved is None:
        raise UpstreamUnavailable("profile_page", "solved counter not found")

    contest_counts = [
        int(match.group(1))
        for heading in section.find_all(["h3", "h5"])
        if (match := CONTEST_PATTERN.search(heading.get_text(" ", strip=True)))
    ]
    contest_solved = sum(contest_counts) if contest_counts else None
    return solved, contest_solved


class CodeChefAdapter(PlatformAdapter):
    """Adapter scraping codechef.com user profiles."""

    platform = Platform.CODECHEF

    def sources(self, include_contests: bool) -> list[tuple[str, SourceFetcher]]:
        return [("profile_page", self._from_profile_page)]

    async def _from_profile_page(self, handle: str) -> SourceResult:
        response = await self._get(
            f"{settings.CODECHEF_PROFILE_URL}/{handle}", follow_redirects=True
        )
        return parse_problems_solved(response.text)
