"""
Platform Stat Adapter Base

Every judge-platform adapter answers one question: how many problems has this
handle solved in total? Each adapter knows several upstream sources and tries
them in priority order. The first well-formed answer wins, including a
confirmed zero. Failures never propagate: when every source fails the adapter
returns a soft-failure PlatformStats and logs why.

Usage:
    adapter = LeetCodeAdapter(client)
    stats = await adapter.fetch_cumulative("some_handle")
    if stats.ok:
        print(stats.solved)
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from tracker.config import settings
from tracker.enums import FetchStatus, Platform
from tracker.models.activity import PlatformFetchOutcome
from tracker.utils.retry import call_with_retry, is_transient_http_error

# (solved, contest_solved) as read from one source
SourceResult = tuple[int, Optional[int]]
SourceFetcher = Callable[[str], Awaitable[SourceResult]]


class UpstreamUnavailable(Exception):
    """A source could not give a trustworthy answer (error payload, bad shape, missing user)."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


@dataclass(frozen=True)
class PlatformStats:
    """
    Tagged result of a platform fetch.

    A soft failure always carries solved=0 and contest_solved=0 so callers
    that ignore the tag still see a harmless value; the sync orchestrator
    checks the tag and carries the previous snapshot forward instead.
    """

    platform: Platform
    status: FetchStatus
    solved: int = 0
    contest_solved: Optional[int] = None
    source: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(
        cls,
        platform: Platform,
        solved: int,
        source: str,
        contest_solved: Optional[int] = None,
    ) -> "PlatformStats":
        return cls(
            platform=platform,
            status=FetchStatus.OK,
            solved=solved,
            contest_solved=contest_solved,
            source=source,
        )

    @classmethod
    def soft_failure(cls, platform: Platform, error: str) -> "PlatformStats":
        return cls(
            platform=platform,
            status=FetchStatus.SOFT_FAILURE,
            solved=0,
            contest_solved=0,
            error=error,
        )

    @property
    def ok(self) -> bool:
        return self.status == FetchStatus.OK

    def to_outcome(self) -> PlatformFetchOutcome:
        """Convert to the API-facing model."""
        return PlatformFetchOutcome(
            platform=self.platform,
            status=self.status,
            solved=self.solved,
            contest_solved=self.contest_solved,
            source=self.source,
            error=self.error,
        )


def parse_count(value: Any, source: str, field: str) -> int:
    """
    Validate a counter taken from an upstream payload.

    Accepts non-negative ints and digit strings; anything else means the
    payload is malformed, which is a failure rather than a zero.
    """
    if isinstance(value, bool):
        raise UpstreamUnavailable(source, f"malformed {field}: {value!r}")
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise UpstreamUnavailable(source, f"malformed {field}: {value!r}")


class PlatformAdapter(ABC):
    """
    Abstract base class for judge-platform adapters.

    Subclasses declare their sources through sources(); the base class runs
    them in order with bounded retries on transient HTTP errors.
    """

    platform: Platform

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_attempts: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            client: Shared HTTP client (timeouts configured on the client)
            retry_attempts: Attempts per source (default: settings)
            retry_backoff_seconds: Base backoff between attempts (default: settings)
        """
        self.client = client
        self.retry_attempts = (
            retry_attempts
            if retry_attempts is not None
            else settings.PLATFORM_RETRY_ATTEMPTS
        )
        self.retry_backoff_seconds = (
            retry_backoff_seconds
            if retry_backoff_seconds is not None
            else settings.PLATFORM_RETRY_BACKOFF_SECONDS
        )
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def sources(self, include_contests: bool) -> list[tuple[str, SourceFetcher]]:
        """Return (source name, fetcher) pairs in priority order."""
        pass

    async def fetch_cumulative(
        self, handle: Optional[str], include_contests: bool = True
    ) -> PlatformStats:
        """
        Fetch the lifetime solved counter for a handle.

        Never raises. Returns a soft failure for blank handles without any I/O.

        Args:
            handle: Platform username
            include_contests: Also read contest counters where the platform offers them

        Returns:
            PlatformStats tagged ok or soft_failure
        """
        if not handle or not handle.strip():
            return PlatformStats.soft_failure(self.platform, "no handle configured")
        handle = handle.strip()

        failures: list[str] = []
        for name, fetcher in self.sources(include_contests):
            try:
                solved, contest_solved = await call_with_retry(
                    fetcher,
                    handle,
                    max_attempts=self.retry_attempts,
                    backoff_seconds=self.retry_backoff_seconds,
                    retry_if=is_transient_http_error,
                )
            except UpstreamUnavailable as e:
                failures.append(str(e))
                self.logger.warning(f"{self.platform.value} source failed for {handle}: {e}")
                continue
            except httpx.HTTPError as e:
                failures.append(f"{name}: {type(e).__name__}: {e}")
                self.logger.warning(
                    f"{self.platform.value} source {name} HTTP error for {handle}: {e}"
                )
                continue
            except ValueError as e:
                # Body was not JSON / not parseable
                failures.append(f"{name}: unparseable response")
                self.logger.warning(
                    f"{self.platform.value} source {name} unparseable for {handle}: {e}"
                )
                continue
            except (KeyError, TypeError, AttributeError) as e:
                # Payload shape drifted from what the parser expects
                failures.append(f"{name}: unexpected payload shape: {type(e).__name__}")
                self.logger.warning(
                    f"{self.platform.value} source {name} payload drifted for {handle}: {e}"
                )
                continue

            if not include_contests:
                contest_solved = None
            self.logger.info(
                f"{self.platform.value}: {handle} solved={solved} via {name}"
            )
            return PlatformStats.success(
                self.platform, solved, source=name, contest_solved=contest_solved
            )

        reason = "; ".join(failures) or "no sources configured"
        self.logger.error(f"{self.platform.value}: all sources failed for {handle}: {reason}")
        return PlatformStats.soft_failure(self.platform, reason)

    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        """GET with the platform user agent; raises for non-2xx responses."""
        headers = {"User-Agent": settings.PLATFORM_USER_AGENT}
        headers.update(kwargs.pop("headers", {}))
        response = await self.client.get(url, headers=headers, **kwargs)
        response.raise_for_status()
        return response

    async def _get_json(self, url: str, source: str, **kwargs: Any) -> dict:
        """GET a JSON object; non-object bodies are malformed payloads."""
        response = await self._get(url, **kwargs)
        payload = response.json()
        if not isinstance(payload, dict):
            raise UpstreamUnavailable(source, "payload is not a JSON object")
        return payload
