"""
Sync API Router

Endpoints for pulling fresh counters from the judge platforms.

Endpoints:
- POST /api/sync/refresh - Sync the calling user's platforms into the ledger
- POST /api/sync/all - Sync every active user (batch sweep)
- GET /api/sync/scheduled - Nightly sync jobs and their next run
- POST /api/sync/scheduled/{job_id}/trigger - Run a scheduled job now
- GET /api/sync/handles - Linked platform handles
- PUT /api/sync/handles - Link or unlink platform handles
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.config import settings
from tracker.db.base import get_db
from tracker.dependencies import get_current_user_id, get_sync_orchestrator
from tracker.enums import RateLimitType
from tracker.middleware.error_handling import handle_endpoint_errors
from tracker.middleware.rate_limit import limiter
from tracker.models.activity import (
    BatchSyncResult,
    PlatformHandlesRequest,
    PlatformHandlesResponse,
    SyncRequest,
    SyncResult,
)
from tracker.services.profiles import PlatformProfileService
from tracker.services.scheduler import get_scheduled_jobs, trigger_job_now
from tracker.services.sync import SyncOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.post("/refresh", response_model=SyncResult)
@limiter.limit(settings.get_rate_limit(RateLimitType.SYNC))
@handle_endpoint_errors("Refresh platform stats")
async def refresh(
    request: Request,
    payload: Optional[SyncRequest] = None,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> SyncResult:
    """
    Fetch the caller's platform counters and update today's ledger row.

    Succeeds (state done or partial) even when some platforms could not be
    reached; fails with transaction_failed only if nothing could be saved.
    """
    monthly_only = payload.monthly_only if payload else False
    return await orchestrator.sync_user(user_id, monthly_only=monthly_only)


@router.post("/all", response_model=BatchSyncResult)
@limiter.limit(settings.get_rate_limit(RateLimitType.BATCH))
@handle_endpoint_errors("Batch sync")
async def sync_all(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> BatchSyncResult:
    """Sync every active user; per-user failures are listed in errors."""
    logger.info(f"Batch sync requested by {user_id}")
    return await orchestrator.sync_all_active()


@router.get("/handles", response_model=PlatformHandlesResponse)
@handle_endpoint_errors("Get platform handles")
async def get_handles(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> PlatformHandlesResponse:
    """Return the caller's linked handles."""
    return await PlatformProfileService(db).get_handles(user_id)


@router.put("/handles", response_model=PlatformHandlesResponse)
@handle_endpoint_errors("Update platform handles")
async def set_handles(
    payload: PlatformHandlesRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> PlatformHandlesResponse:
    """Link or unlink the caller's handles (empty string unlinks)."""
    return await PlatformProfileService(db).set_handles(user_id, payload)


@router.get("/scheduled")
async def list_scheduled_jobs(user_id: str = Depends(get_current_user_id)) -> dict:
    """Scheduled jobs; empty unless the scheduler is running."""
    jobs = get_scheduled_jobs()
    return {"jobs": jobs, "count": len(jobs)}


@router.post("/scheduled/{job_id}/trigger")
async def trigger_scheduled_job(
    job_id: str, user_id: str = Depends(get_current_user_id)
) -> dict[str, str]:
    """
    Run a scheduled job immediately instead of waiting for its next run.

    Raises:
        HTTPException: 404 if the job is not registered
    """
    if not trigger_job_now(job_id):
        raise HTTPException(404, f"Job not found: {job_id}")
    logger.info(f"Job {job_id} triggered by {user_id}")
    return {"status": "triggered", "job_id": job_id}
