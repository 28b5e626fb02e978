"""
Health Check Endpoints

Endpoints:
- GET /api/health - Liveness
- GET /api/health/detailed - Database reachability, batch-sync schedule and
  the upstream platform endpoints in use
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.config import settings, yaml_config
from tracker.db.base import get_db
from tracker.services.scheduler import get_scheduled_jobs, scheduler

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    """Liveness probe; does not touch the database."""
    return {"status": "healthy", "service": settings.APP_NAME}


@router.get("/detailed")
async def detailed_health_check(db: AsyncSession = Depends(get_db)):
    """
    Readiness report.

    Status is "degraded" when the database cannot be queried. Judge platforms
    are listed but never called here: a platform outage only makes syncs
    partial, it does not make this service unhealthy.
    """
    report = {"status": "healthy", "service": settings.APP_NAME, "dependencies": {}}

    try:
        await db.execute(text("SELECT 1"))
        report["dependencies"]["database"] = {
            "status": "healthy",
            "dialect": db.get_bind().dialect.name,
        }
    except Exception as e:
        report["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        report["status"] = "degraded"

    report["dependencies"]["batch_sync"] = {
        "enabled": settings.BATCH_SYNC_ENABLED,
        "running": scheduler.running,
        "jobs": get_scheduled_jobs() if scheduler.running else [],
    }
    report["dependencies"]["platforms"] = {
        "leetcode": yaml_config.get("platforms", {}).get("leetcode_sources", []),
        "codeforces": settings.CODEFORCES_API_URL,
        "codechef": settings.CODECHEF_PROFILE_URL,
    }
    return report
