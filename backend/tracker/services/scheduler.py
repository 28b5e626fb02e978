"""
Nightly Batch Sync

An in-process AsyncIOScheduler runs SyncOrchestrator.sync_all_active once a
day at BATCH_SYNC_HOUR (UTC). main.lifespan starts it only when
BATCH_SYNC_ENABLED is set.

Each replica that enables the scheduler sweeps every active user, so enable
it on one instance only. Re-running a sweep on the same day is harmless:
the ledger upsert is idempotent.

Usage:
    start_scheduler()              # app startup
    trigger_job_now("batch_sync")  # run the sweep now
    stop_scheduler()               # app shutdown
"""

import logging
from datetime import datetime, timezone

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from tracker.config import settings

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone=timezone.utc)

BATCH_SYNC_JOB_ID = "batch_sync"

# A sweep that starts up to this late (e.g. after a restart) still runs
BATCH_SYNC_MISFIRE_GRACE_SECONDS = 3600


async def run_batch_sync() -> None:
    """Sync every active user with a dedicated HTTP client."""
    # Imported here so the engine is built when the job runs, not at import
    from tracker.db.base import get_session_factory
    from tracker.platforms import build_default_adapters
    from tracker.services.sync import SyncOrchestrator

    started = datetime.now(timezone.utc)
    async with httpx.AsyncClient(
        timeout=settings.PLATFORM_REQUEST_TIMEOUT_SECONDS
    ) as client:
        orchestrator = SyncOrchestrator(
            get_session_factory(), build_default_adapters(client)
        )
        result = await orchestrator.sync_all_active()

    elapsed = (datetime.now(timezone.utc) - started).total_seconds()
    logger.info(
        f"Nightly sync finished in {elapsed:.1f}s: {result.attempted} users, "
        f"{result.succeeded} ok, {result.partial} partial, {result.failed} failed"
    )


def setup_scheduled_jobs() -> None:
    """Register the nightly sweep (replacing an existing registration)."""
    scheduler.add_job(
        run_batch_sync,
        CronTrigger(hour=settings.BATCH_SYNC_HOUR, minute=0),
        id=BATCH_SYNC_JOB_ID,
        name="Nightly platform sync",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=BATCH_SYNC_MISFIRE_GRACE_SECONDS,
    )
    logger.info(f"Nightly sync scheduled at {settings.BATCH_SYNC_HOUR:02d}:00 UTC")


def start_scheduler() -> None:
    if scheduler.running:
        logger.warning("Scheduler already running")
        return
    setup_scheduled_jobs()
    scheduler.start()
    logger.info("Scheduler started")


def stop_scheduler() -> None:
    if not scheduler.running:
        logger.warning("Scheduler not running")
        return
    scheduler.shutdown(wait=False)
    logger.info("Scheduler stopped")


def get_scheduled_jobs() -> list[dict]:
    """Registered jobs with their next run time (running scheduler only)."""
    return [
        {
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            "trigger": str(job.trigger),
        }
        for job in scheduler.get_jobs()
    ]


def trigger_job_now(job_id: str) -> bool:
    """
    Move a job's next run to now.

    Returns:
        False if no job with that id is registered
    """
    job = scheduler.get_job(job_id)
    if job is None:
        logger.warning(f"Job not found: {job_id}")
        return False
    job.modify(next_run_time=datetime.now(timezone.utc))
    logger.info(f"Manually triggered job: {job_id}")
    return True
