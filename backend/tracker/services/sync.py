"""
Sync Orchestrator

Runs the per-user pipeline that turns platform counters into ledger rows:

    PENDING → FETCHING → DIFFING → COMMITTING → STREAK_RECOMPUTE → DONE

- FETCHING: every linked platform is fetched concurrently; each call is
  bounded by PLATFORM_FETCH_DEADLINE_SECONDS and fails soft.
- DIFFING/COMMITTING: deltas are computed and the ledger upsert plus the
  snapshot write commit in one transaction. Any failure rolls both back and
  raises TransactionFailure (state FAILED).
- STREAK_RECOMPUTE: runs after the commit in its own session; a failure is
  reported in errors[] and never undoes the ledger write.

The run ends PARTIAL instead of DONE when any linked platform soft-failed.
Failed platforms keep their previous cumulative value, so the commit still
happens with whatever was confirmed.

Usage:
    orchestrator = SyncOrchestrator(session_factory, build_default_adapters(client))
    result = await orchestrator.sync_user(user_id)
    batch = await orchestrator.sync_all_active()
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracker.config import settings
from tracker.db.models import ActivityLedgerEntry, PlatformProfile
from tracker.enums import Platform, SyncIssueKind, SyncState
from tracker.middleware.error_handling import TransactionFailure
from tracker.models.activity import (
    BatchSyncResult,
    CounterReadings,
    DeltaResult,
    PlatformHandlesResponse,
    SyncIssue,
    SyncResult,
)
from tracker.platforms.base import PlatformAdapter, PlatformStats
from tracker.services.deltas import LEDGER_COLUMNS, DeltaEngine
from tracker.services.ledger import ActivityLedger
from tracker.services.profiles import PlatformProfileService
from tracker.services.streaks import StreakCalculator
from tracker.utils.dates import utc_today
from tracker.utils.retry import call_with_retry, is_transient_db_error

logger = logging.getLogger(__name__)

CONTEST_READINGS: dict[Platform, str] = {
    Platform.CODEFORCES: "codeforces_contests",
    Platform.CODECHEF: "codechef_contests",
}

NOTHING_TO_SYNC = "nothing to sync: no platform handles configured"


class SyncOrchestrator:
    """
    Coordinates adapters, the delta engine, the ledger and streaks.

    Holds no per-user state; concurrent sync_user calls for different users
    are independent.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        adapters: dict[Platform, PlatformAdapter],
        fetch_deadline_seconds: Optional[float] = None,
        commit_max_attempts: Optional[int] = None,
        clock: Callable[[], date] = utc_today,
    ):
        """
        Initialize the orchestrator.

        Args:
            session_factory: Factory for database sessions
            adapters: Adapter per platform
            fetch_deadline_seconds: Upper bound per platform fetch (default: settings)
            commit_max_attempts: Attempts for the commit step (default: settings, 1 = no retry)
            clock: Returns the current day; injectable for tests
        """
        self.session_factory = session_factory
        self.adapters = adapters
        self.fetch_deadline_seconds = (
            fetch_deadline_seconds or settings.PLATFORM_FETCH_DEADLINE_SECONDS
        )
        self.commit_max_attempts = commit_max_attempts or settings.SYNC_COMMIT_MAX_ATTEMPTS
        self.clock = clock

    def _transition(self, user_id: str, state: SyncState) -> SyncState:
        logger.info(f"Sync {user_id}: {state.value}")
        return state

    async def load_handles(self, user_id: str) -> PlatformHandlesResponse:
        async with self.session_factory() as session:
            return await PlatformProfileService(session).get_handles(user_id)

    async def _fetch_one(
        self, platform: Platform, handle: str, include_contests: bool
    ) -> PlatformStats:
        adapter = self.adapters.get(platform)
        if adapter is None:
            return PlatformStats.soft_failure(platform, "no adapter registered")
        try:
            return await asyncio.wait_for(
                adapter.fetch_cumulative(handle, include_contests=include_contests),
                timeout=self.fetch_deadline_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"{platform.value} fetch for {handle} exceeded {self.fetch_deadline_seconds}s"
            )
            return PlatformStats.soft_failure(
                platform, f"deadline of {self.fetch_deadline_seconds}s exceeded"
            )
        except Exception as e:
            # An adapter bug must not cost the other platforms their readings
            logger.error(f"{platform.value} adapter raised for {handle}: {e}", exc_info=True)
            return PlatformStats.soft_failure(platform, f"{type(e).__name__}: {e}")

    async def fetch_platforms(
        self, handles: dict[Platform, str], include_contests: bool
    ) -> list[PlatformStats]:
        """Fetch every linked platform concurrently."""
        return list(
            await asyncio.gather(
                *[
                    self._fetch_one(platform, handle, include_contests)
                    for platform, handle in handles.items()
                ]
            )
        )

    @staticmethod
    def readings_from(stats: list[PlatformStats], include_contests: bool) -> CounterReadings:
        """Confirmed readings only; soft failures stay None and get carried forward."""
        readings: dict[str, int] = {}
        for item in stats:
            if not item.ok:
                continue
            readings[item.platform.value] = item.solved
            contest_field = CONTEST_READINGS.get(item.platform)
            if include_contests and contest_field and item.contest_solved is not None:
                readings[contest_field] = item.contest_solved
        return CounterReadings(**readings)

    async def _commit(
        self, user_id: str, today: date, readings: CounterReadings
    ) -> DeltaResult:
        async with self.session_factory() as session:
            async with session.begin():
                self._transition(user_id, SyncState.DIFFING)
                engine = DeltaEngine(session)
                deltas = await engine.compute_deltas(user_id, today, readings)

                self._transition(user_id, SyncState.COMMITTING)
                await ActivityLedger(session).upsert_day(
                    user_id,
                    today,
                    overwrite={
                        column: getattr(deltas.monthly, counter)
                        for counter, column in LEDGER_COLUMNS.items()
                    },
                )
                await engine.persist_snapshot(user_id, today, deltas.cumulative)
        return deltas

    async def sync_user(
        self,
        user_id: str,
        monthly_only: bool = False,
        today: Optional[date] = None,
    ) -> SyncResult:
        """
        Sync one user's platform counters into the ledger.

        Args:
            user_id: User to sync
            monthly_only: Skip contest counters and omit lifetime totals
            today: Day to attribute activity to (default: clock())

        Returns:
            SyncResult in state DONE or PARTIAL

        Raises:
            TransactionFailure: If the ledger/snapshot commit failed
        """
        today = today or self.clock()
        self._transition(user_id, SyncState.PENDING)

        handles = (await self.load_handles(user_id)).configured()
        if not handles:
            logger.info(f"Sync {user_id}: {NOTHING_TO_SYNC}")
            return SyncResult(
                user_id=user_id,
                sync_date=today,
                state=self._transition(user_id, SyncState.DONE),
                notes=[NOTHING_TO_SYNC],
                message="No platform handles linked yet",
            )

        self._transition(user_id, SyncState.FETCHING)
        include_contests = not monthly_only
        stats = await self.fetch_platforms(handles, include_contests)
        errors = [
            SyncIssue(
                kind=SyncIssueKind.UPSTREAM_UNAVAILABLE,
                platform=item.platform,
                user_id=user_id,
                message=item.error or "unavailable",
            )
            for item in stats
            if not item.ok
        ]
        readings = self.readings_from(stats, include_contests)

        try:
            deltas = await call_with_retry(
                self._commit,
                user_id,
                today,
                readings,
                max_attempts=self.commit_max_attempts,
                backoff_seconds=settings.PLATFORM_RETRY_BACKOFF_SECONDS,
                retry_if=is_transient_db_error,
            )
        except Exception as e:
            self._transition(user_id, SyncState.FAILED)
            logger.error(f"Sync commit failed for {user_id}: {type(e).__name__}: {e}")
            raise TransactionFailure(
                "Sync could not be saved; no changes were applied",
                details={"user_id": user_id, "state": SyncState.FAILED.value},
            ) from e

        self._transition(user_id, SyncState.STREAK_RECOMPUTE)
        streaks = None
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    summary = await StreakCalculator(session).recompute(user_id, today)
            streaks = summary.current
        except Exception as e:
            logger.error(f"Streak recompute failed for {user_id}: {e}")
            errors.append(
                SyncIssue(
                    kind=SyncIssueKind.STREAK_RECOMPUTE_FAILED,
                    user_id=user_id,
                    message=str(e),
                )
            )

        soft_failed = any(not item.ok for item in stats)
        state = self._transition(
            user_id, SyncState.PARTIAL if soft_failed else SyncState.DONE
        )

        monthly = deltas.monthly
        daily = deltas.daily
        if monthly_only:
            monthly = monthly.model_copy(
                update={"codeforces_contests": None, "codechef_contests": None}
            )
            daily = daily.model_copy(
                update={"codeforces_contests": None, "codechef_contests": None}
            )

        message = f"Found {daily.total} new problems today ({monthly.total} this month)"
        if soft_failed:
            failed = ", ".join(sorted(i.platform.value for i in stats if not i.ok))
            message += f"; could not reach {failed}"

        return SyncResult(
            user_id=user_id,
            sync_date=today,
            state=state,
            monthly=monthly,
            daily=daily,
            lifetime=None if monthly_only else deltas.cumulative,
            platforms=[item.to_outcome() for item in stats],
            errors=errors,
            message=message,
            streaks=streaks,
        )

    async def list_active_users(self, today: Optional[date] = None) -> list[str]:
        """
        Users the batch sweep should sync.

        Active profile with at least one handle, and either ledger activity or
        profile creation within ACTIVE_USER_LOOKBACK_DAYS.
        """
        today = today or self.clock()
        cutoff = today - timedelta(days=settings.ACTIVE_USER_LOOKBACK_DAYS)
        cutoff_ts = datetime.combine(cutoff, time.min, tzinfo=timezone.utc)

        recent_activity = select(ActivityLedgerEntry.user_id).where(
            ActivityLedgerEntry.activity_date >= cutoff
        )
        has_handle = or_(
            *[
                and_(column.is_not(None), column != "")
                for column in (
                    PlatformProfile.leetcode_handle,
                    PlatformProfile.codechef_handle,
                    PlatformProfile.codeforces_handle,
                )
            ]
        )
        stmt = (
            select(PlatformProfile.user_id)
            .where(
                PlatformProfile.is_active.is_(True),
                has_handle,
                or_(
                    PlatformProfile.user_id.in_(recent_activity),
                    PlatformProfile.created_at >= cutoff_ts,
                ),
            )
            .order_by(PlatformProfile.user_id)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def sync_all_active(
        self,
        max_concurrent: Optional[int] = None,
        today: Optional[date] = None,
    ) -> BatchSyncResult:
        """
        Sync every active user with bounded concurrency.

        One user's failure is recorded in errors[] and never stops the sweep.
        """
        today = today or self.clock()
        max_concurrent = max_concurrent or settings.SYNC_MAX_CONCURRENT_USERS
        user_ids = await self.list_active_users(today)
        logger.info(f"Batch sync: {len(user_ids)} active users, concurrency={max_concurrent}")

        semaphore = asyncio.Semaphore(max_concurrent)

        async def run(user_id: str) -> SyncResult:
            async with semaphore:
                return await self.sync_user(user_id, today=today)

        outcomes = await asyncio.gather(
            *[run(user_id) for user_id in user_ids], return_exceptions=True
        )

        batch = BatchSyncResult(attempted=len(user_ids))
        for user_id, outcome in zip(user_ids, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Batch sync failed for {user_id}: {outcome}")
                batch.failed += 1
                batch.errors.append(
                    SyncIssue(
                        kind=SyncIssueKind.USER_SYNC_FAILED,
                        user_id=user_id,
                        message=str(outcome) or type(outcome).__name__,
                    )
                )
                continue
            batch.results.append(outcome)
            if outcome.state == SyncState.PARTIAL:
                batch.partial += 1
            else:
                batch.succeeded += 1

        logger.info(
            f"Batch sync complete: {batch.succeeded} ok, {batch.partial} partial, "
            f"{batch.failed} failed"
        )
        return batch
