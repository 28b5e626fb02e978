"""
FastAPI Dependencies

Common dependencies for the caller's identity, HTTP clients and services.

The user id is supplied by the upstream auth gateway in the X-User-Id
header; this service trusts it and only checks that it is present.
"""

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracker.db.base import get_session_factory
from tracker.enums import Platform
from tracker.platforms import PlatformAdapter, build_default_adapters
from tracker.services.milestones import MilestoneService
from tracker.services.sync import SyncOrchestrator

user_id_header = APIKeyHeader(name="X-User-Id", auto_error=False)

MAX_USER_ID_LENGTH = 64


async def get_current_user_id(user_id: str | None = Depends(user_id_header)) -> str:
    """
    Resolve the calling user.

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity. Provide X-User-Id header.",
        )
    user_id = user_id.strip()
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User id too long",
        )
    return user_id


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared HTTP client created in the app lifespan."""
    return request.app.state.http_client


def get_platform_adapters(
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict[Platform, PlatformAdapter]:
    return build_default_adapters(client)


def get_sync_orchestrator(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    adapters: dict[Platform, PlatformAdapter] = Depends(get_platform_adapters),
) -> SyncOrchestrator:
    return SyncOrchestrator(session_factory, adapters)


def get_milestone_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> MilestoneService:
    return MilestoneService(session_factory)
