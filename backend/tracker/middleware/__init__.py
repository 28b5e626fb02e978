"""
Middleware Package

Provides FastAPI middleware for:
- Rate limiting
- Error handling

Rate limiting usage:
    from tracker.middleware import limiter, get_rate_limit
    from tracker.enums import RateLimitType

    @limiter.limit(get_rate_limit(RateLimitType.SYNC))
    async def my_endpoint(request: Request):
        ...
"""

from tracker.middleware.error_handling import (
    ErrorHandlingMiddleware,
    ErrorResponse,
    ServiceError,
    TransactionFailure,
    ValidationError,
    handle_endpoint_errors,
    setup_error_handling,
)
from tracker.middleware.rate_limit import get_rate_limit, limiter, setup_rate_limiting

__all__ = [
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "ServiceError",
    "TransactionFailure",
    "ValidationError",
    "get_rate_limit",
    "handle_endpoint_errors",
    "limiter",
    "setup_error_handling",
    "setup_rate_limiting",
]
