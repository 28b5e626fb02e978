"""
Unit Tests for the bounded retry helper.

Tests for:
- Transient errors retried up to max_attempts
- Non-transient errors raised immediately
- Transient classification for HTTP and database errors
"""

import httpx
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from tracker.utils.retry import call_with_retry, is_transient_db_error, is_transient_http_error


def status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.test/")
    return httpx.HTTPStatusError(
        "boom", request=request, response=httpx.Response(code, request=request)
    )


class Flaky:
    """Raises the given errors in order, then returns 'done'."""

    def __init__(self, *errors: Exception):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "done"


class TestCallWithRetry:
    @pytest.mark.asyncio
    async def test_retries_transient_errors(self) -> None:
        fn = Flaky(status_error(503), httpx.ReadTimeout("slow"))
        assert await call_with_retry(fn, max_attempts=3, backoff_seconds=0) == "done"
        assert fn.calls == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        fn = Flaky(status_error(502), status_error(502), status_error(502))
        with pytest.raises(httpx.HTTPStatusError):
            await call_with_retry(fn, max_attempts=2, backoff_seconds=0)
        assert fn.calls == 2

    @pytest.mark.asyncio
    async def test_non_transient_error_is_not_retried(self) -> None:
        fn = Flaky(status_error(404))
        with pytest.raises(httpx.HTTPStatusError):
            await call_with_retry(fn, max_attempts=5, backoff_seconds=0)
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_single_attempt_means_no_retry(self) -> None:
        fn = Flaky(OperationalError("SELECT 1", {}, Exception("gone")))
        with pytest.raises(OperationalError):
            await call_with_retry(
                fn, max_attempts=1, backoff_seconds=0, retry_if=is_transient_db_error
            )
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            await call_with_retry(Flaky(), max_attempts=0)


class TestTransientClassification:
    @pytest.mark.parametrize(
        "exc,expected",
        [
            pytest.param(httpx.ConnectError("refused"), True, id="connect"),
            pytest.param(status_error(429), True, id="rate_limited"),
            pytest.param(status_error(500), True, id="server_error"),
            pytest.param(status_error(404), False, id="not_found"),
            pytest.param(ValueError("bad json"), False, id="parse_error"),
        ],
    )
    def test_http(self, exc: Exception, expected: bool) -> None:
        assert is_transient_http_error(exc) is expected

    def test_db(self) -> None:
        assert is_transient_db_error(OperationalError("SELECT 1", {}, Exception("gone")))
        assert not is_transient_db_error(IntegrityError("INSERT", {}, Exception("dup")))
