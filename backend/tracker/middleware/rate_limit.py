"""
Rate Limiting Middleware

Keeps refresh requests from hammering the judge platforms, using SlowAPI.

Usage:
    from tracker.middleware.rate_limit import limiter
    from tracker.enums import RateLimitType
    from tracker.config import settings

    @router.post("/refresh")
    @limiter.limit(settings.get_rate_limit(RateLimitType.SYNC))
    async def refresh(request: Request, ...):
        ...

Rate limit configurations (from settings):
- DEFAULT: General API endpoints (100/minute)
- SYNC: Per-user refresh (5/minute)
- BATCH: Sweep over all active users (2/minute)
"""

import logging
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from tracker.config import settings
from tracker.enums import RateLimitType
from tracker.middleware.error_handling import ErrorResponse

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.

    Authenticated requests are limited per user; anonymous ones per client
    address, honouring X-Forwarded-For when behind a proxy.

    Args:
        request: FastAPI request object

    Returns:
        User id or client IP address
    """
    user_id = request.headers.get("X-User-Id")
    if user_id:
        return f"user:{user_id.strip()}"

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain (original client)
        return forwarded_for.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the same body shape as every other API error."""
    key = get_client_identifier(request)
    logger.warning(f"Rate limit hit on {request.url.path} by {key}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error="rate_limited",
            message=f"Too many requests: {exc.detail}",
            error_id=uuid4().hex[:8],
            timestamp=datetime.now(timezone.utc),
        ).model_dump(mode="json"),
    )


def setup_rate_limiting(app: FastAPI, enabled: bool = True) -> None:
    """
    Attach the limiter to the app.

    app.state.limiter is always set because decorated routes look it up
    there; a disabled limiter lets every request through.
    """
    limiter.enabled = enabled
    app.state.limiter = limiter

    if not enabled:
        logger.info("Rate limiting disabled")
        return

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    logger.info(
        f"Rate limiting enabled (sync={settings.RATE_LIMIT_SYNC}, "
        f"batch={settings.RATE_LIMIT_BATCH})"
    )


def get_rate_limit(rate_limit_type: RateLimitType) -> str:
    """Limit string (e.g. "5/minute") for an endpoint category."""
    return settings.get_rate_limit(rate_limit_type)
