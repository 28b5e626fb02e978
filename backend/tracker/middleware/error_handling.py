"""
Error Handling

Every failure leaves the API as the same JSON body:

    {"error": "<code>", "message": "...", "error_id": "ab12cd34",
     "details": {...} | null, "timestamp": "..."}

- ServiceError subclasses carry their own status code and error code and
  are rendered by an exception handler.
- Anything else escaping a route is caught by ErrorHandlingMiddleware and
  reported as internal_server_error.
- details are only included when the app runs with DEBUG.
- error_id is logged next to the failure so a response can be matched to
  its log line.

Usage:
    from tracker.middleware.error_handling import setup_error_handling, TransactionFailure

    setup_error_handling(app, debug=settings.DEBUG)
    raise TransactionFailure("Sync could not be saved", details={"user_id": user_id})
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Body returned for every handled error."""

    error: str
    message: str
    error_id: str
    details: Optional[dict] = None
    timestamp: datetime


# =============================================================================
# Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base class for errors raised by the tracker services.

    Subclasses set status_code and error_code; callers may override either
    per instance.
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class TransactionFailure(ServiceError):
    """The ledger and snapshot writes of a sync were rolled back together."""

    status_code = 500
    error_code = "transaction_failed"


class ValidationError(ServiceError):
    """Input passed the request schema but is not acceptable (e.g. month 13)."""

    status_code = 422
    error_code = "validation_error"


# =============================================================================
# Rendering
# =============================================================================


def _error_body(
    error_code: str, message: str, error_id: str, details: Optional[dict]
) -> dict:
    return ErrorResponse(
        error=error_code,
        message=message,
        error_id=error_id,
        details=details,
        timestamp=datetime.now(timezone.utc),
    ).model_dump(mode="json")


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a ServiceError raised anywhere below the router."""
    error_id = uuid4().hex[:8]
    logger.error(
        f"[{error_id}] {request.method} {request.url.path} -> "
        f"{exc.error_code}: {exc.message} {exc.details or ''}"
    )
    debug = getattr(request.app.state, "debug", False)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(
            exc.error_code, exc.message, error_id, exc.details if debug else None
        ),
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last-resort handler turning unexpected exceptions into a sanitized 500."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except Exception as e:
            error_id = uuid4().hex[:8]
            trace = traceback.format_exc()
            logger.error(
                f"[{error_id}] {request.method} {request.url.path} unhandled "
                f"{type(e).__name__}: {e}\n{trace}"
            )
            details = (
                {"exception": type(e).__name__, "message": str(e), "traceback": trace}
                if self.debug
                else None
            )
            return JSONResponse(
                status_code=500,
                content=_error_body(
                    "internal_server_error",
                    "An unexpected error occurred",
                    error_id,
                    details,
                ),
            )


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """Register the ServiceError handler and the catch-all middleware."""
    app.state.debug = debug
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling enabled (debug={debug})")


def handle_endpoint_errors(operation: str):
    """
    Route decorator naming the operation in the log when it fails.

    HTTPException and ServiceError propagate unchanged; any other exception
    becomes HTTPException(500, "<operation> failed").

    Usage:
        @router.get("/current")
        @handle_endpoint_errors("Get current streak")
        async def get_current_streak(...):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (HTTPException, ServiceError):
                raise
            except Exception as e:
                logger.error(f"{operation} failed: {type(e).__name__}: {e}")
                raise HTTPException(status_code=500, detail=f"{operation} failed") from e

        return wrapper

    return decorator
