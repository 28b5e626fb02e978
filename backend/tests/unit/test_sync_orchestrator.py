"""
Unit Tests for the Sync Orchestrator.

Tests for:
- The month baseline scenario end to end (ledger row + snapshot)
- Idempotent re-sync on the same day
- Non-negative deltas when upstream counters drop
- All-or-nothing commit of ledger and snapshot
- PARTIAL outcome with carry-forward for unreachable or raising adapters
- monthly_only skipping contest counters
- Streak failures reported without undoing the sync
- Active-user selection and the bounded batch sweep
"""

import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import update

from tests.conftest import FakeAdapter, failed, ok, seed_ledger, seed_profile, seed_snapshot
from tracker.db.models import PlatformProfile
from tracker.enums import FetchStatus, Platform, SyncIssueKind, SyncState
from tracker.middleware.error_handling import TransactionFailure
from tracker.models.activity import SyncResult
from tracker.platforms.base import PlatformStats
from tracker.services.deltas import DeltaEngine
from tracker.services.ledger import ActivityLedger
from tracker.services.snapshots import SnapshotStore
from tracker.services.streaks import StreakCalculator
from tracker.services.sync import NOTHING_TO_SYNC, SyncOrchestrator


USER = "user-1"


def make_orchestrator(session_factory, today: date, **adapters) -> SyncOrchestrator:
    return SyncOrchestrator(
        session_factory,
        {Platform(name): adapter for name, adapter in adapters.items()},
        clock=lambda: today,
    )


async def ledger_day(session_factory, day: date, user_id: str = USER):
    async with session_factory() as session:
        return await ActivityLedger(session).get_day(user_id, day)


class SlowAdapter:
    platform = Platform.CODECHEF

    async def fetch_cumulative(self, handle, include_contests: bool = True) -> PlatformStats:
        await asyncio.sleep(5)
        return ok(Platform.CODECHEF, 1)


class BrokenAdapter:
    platform = Platform.CODEFORCES

    async def fetch_cumulative(self, handle, include_contests: bool = True) -> PlatformStats:
        raise AttributeError("'str' object has no attribute 'get'")


# =============================================================================
# Single-user sync
# =============================================================================


class TestSyncUser:
    @pytest.mark.asyncio
    async def test_month_baseline_scenario(self, session_factory, today) -> None:
        await seed_profile(session_factory, USER, leetcode_handle="alice")
        await seed_snapshot(session_factory, USER, date(2026, 9, 30), leetcode_total=50)
        await seed_ledger(session_factory, USER, date(2026, 10, 14), leetcode_solved=10)
        orchestrator = make_orchestrator(
            session_factory, today, leetcode=FakeAdapter(Platform.LEETCODE, ok(Platform.LEETCODE, 62))
        )

        result = await orchestrator.sync_user(USER)

        assert result.state == SyncState.DONE
        assert result.sync_date == today
        assert result.monthly.leetcode == 12
        assert result.daily.leetcode == 2
        assert result.lifetime.leetcode == 62
        assert result.message == "Found 2 new problems today (12 this month)"

        day = await ledger_day(session_factory, today)
        assert day.leetcode_solved == 12
        assert day.total_problems_solved == 12
        async with session_factory() as session:
            snapshot = await SnapshotStore(session).get(USER, today)
        assert snapshot.leetcode_total == 62

    @pytest.mark.asyncio
    async def test_resync_same_day_is_idempotent(self, session_factory, today) -> None:
        await seed_profile(session_factory, USER, leetcode_handle="alice")
        await seed_snapshot(session_factory, USER, date(2026, 9, 30), leetcode_total=50)
        await seed_ledger(session_factory, USER, date(2026, 10, 14), leetcode_solved=10)
        orchestrator = make_orchestrator(
            session_factory, today, leetcode=FakeAdapter(Platform.LEETCODE, ok(Platform.LEETCODE, 62))
        )

        first = await orchestrator.sync_user(USER)
        second = await orchestrator.sync_user(USER)

        assert second.monthly == first.monthly
        assert second.daily == first.daily
        day = await ledger_day(session_factory, today)
        assert day.leetcode_solved == 12

    @pytest.mark.asyncio
    async def test_dropping_counter_never_goes_negative(self, session_factory, today) -> None:
        await seed_profile(session_factory, USER, codechef_handle="chef")
        await seed_snapshot(session_factory, USER, date(2026, 9, 30), codechef_total=50)
        await seed_ledger(session_factory, USER, date(2026, 10, 14), codechef_solved=3)
        orchestrator = make_orchestrator(
            session_factory, today, codechef=FakeAdapter(Platform.CODECHEF, ok(Platform.CODECHEF, 45))
        )

        result = await orchestrator.sync_user(USER)

        assert result.monthly.codechef == 0
        assert result.daily.codechef == 0
        assert (await ledger_day(session_factory, today)).codechef_solved == 0

    @pytest.mark.asyncio
    async def test_no_handles_is_done_with_note(self, session_factory, today) -> None:
        adapter = FakeAdapter(Platform.LEETCODE, ok(Platform.LEETCODE, 1))
        orchestrator = make_orchestrator(session_factory, today, leetcode=adapter)

        result = await orchestrator.sync_user(USER)

        assert result.state == SyncState.DONE
        assert result.notes == [NOTHING_TO_SYNC]
        assert adapter.calls == []
        assert not (await ledger_day(session_factory, today)).recorded

    @pytest.mark.asyncio
    async def test_commit_failure_rolls_back_everything(self, session_factory, today) -> None:
        await seed_profile(session_factory, USER, leetcode_handle="alice")
        orchestrator = make_orchestrator(
            session_factory, today, leetcode=FakeAdapter(Platform.LEETCODE, ok(Platform.LEETCODE, 7))
        )

        with patch.object(
            DeltaEngine, "persist_snapshot", AsyncMock(side_effect=RuntimeError("disk full"))
        ):
            with pytest.raises(TransactionFailure) as exc_info:
                await orchestrator.sync_user(USER)

        assert exc_info.value.details["state"] == SyncState.FAILED.value
        assert not (await ledger_day(session_factory, today)).recorded
        async with session_factory() as session:
            assert await SnapshotStore(session).get(USER, today) is None

    @pytest.mark.asyncio
    async def test_soft_failure_is_partial_and_carries_forward(self, session_factory, today) -> None:
        await seed_profile(
            session_factory, USER, leetcode_handle="alice", codeforces_handle="alice_cf"
        )
        await seed_snapshot(
            session_factory, USER, date(2026, 9, 30), leetcode_total=50, codeforces_total=20
        )
        await seed_snapshot(
            session_factory, USER, date(2026, 10, 14), leetcode_total=55, codeforces_total=25
        )
        orchestrator = make_orchestrator(
            session_factory,
            today,
            leetcode=FakeAdapter(Platform.LEETCODE, ok(Platform.LEETCODE, 60)),
            codeforces=FakeAdapter(Platform.CODEFORCES, failed(Platform.CODEFORCES, "503")),
        )

        result = await orchestrator.sync_user(USER)

        assert result.state == SyncState.PARTIAL
        assert result.monthly.leetcode == 10
        assert result.monthly.codeforces == 5
        assert result.lifetime.codeforces == 25
        assert [(e.kind, e.platform) for e in result.errors] == [
            (SyncIssueKind.UPSTREAM_UNAVAILABLE, Platform.CODEFORCES)
        ]
        assert result.message.endswith("could not reach codeforces")
        statuses = {p.platform: p.status for p in result.platforms}
        assert statuses[Platform.CODEFORCES] == FetchStatus.SOFT_FAILURE

    @pytest.mark.asyncio
    async def test_fetch_deadline_is_soft_failure(self, session_factory, today) -> None:
        await seed_profile(session_factory, USER, codechef_handle="chef")
        orchestrator = SyncOrchestrator(
            session_factory,
            {Platform.CODECHEF: SlowAdapter()},
            fetch_deadline_seconds=0.01,
            clock=lambda: today,
        )

        result = await orchestrator.sync_user(USER)

        assert result.state == SyncState.PARTIAL
        assert "deadline" in result.errors[0].message
        assert (await ledger_day(session_factory, today)).recorded

    @pytest.mark.asyncio
    async def test_raising_adapter_does_not_block_others(self, session_factory, today) -> None:
        await seed_profile(
            session_factory, USER, leetcode_handle="alice", codeforces_handle="alice_cf"
        )
        orchestrator = make_orchestrator(
            session_factory,
            today,
            leetcode=FakeAdapter(Platform.LEETCODE, ok(Platform.LEETCODE, 5)),
            codeforces=BrokenAdapter(),
        )

        result = await orchestrator.sync_user(USER)

        assert result.state == SyncState.PARTIAL
        assert result.monthly.leetcode == 5
        assert result.errors[0].platform == Platform.CODEFORCES
        assert "AttributeError" in result.errors[0].message
        assert (await ledger_day(session_factory, today)).leetcode_solved == 5

    @pytest.mark.asyncio
    async def test_monthly_only_skips_contests(self, session_factory, today) -> None:
        await seed_profile(session_factory, USER, codeforces_handle="alice_cf")
        adapter = FakeAdapter(
            Platform.CODEFORCES, ok(Platform.CODEFORCES, 10, contest_solved=4)
        )
        orchestrator = make_orchestrator(session_factory, today, codeforces=adapter)

        result = await orchestrator.sync_user(USER, monthly_only=True)

        assert adapter.calls == [{"handle": "alice_cf", "include_contests": False}]
        assert result.monthly.codeforces == 10
        assert result.monthly.codeforces_contests is None
        assert result.lifetime is None

    @pytest.mark.asyncio
    async def test_streak_failure_is_reported_not_raised(self, session_factory, today) -> None:
        await seed_profile(session_factory, USER, leetcode_handle="alice")
        orchestrator = make_orchestrator(
            session_factory, today, leetcode=FakeAdapter(Platform.LEETCODE, ok(Platform.LEETCODE, 3))
        )

        with patch.object(
            StreakCalculator, "recompute", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            result = await orchestrator.sync_user(USER)

        assert result.state == SyncState.DONE
        assert result.streaks is None
        assert [e.kind for e in result.errors] == [SyncIssueKind.STREAK_RECOMPUTE_FAILED]
        assert (await ledger_day(session_factory, today)).leetcode_solved == 3

    @pytest.mark.asyncio
    async def test_streaks_are_returned(self, session_factory, today) -> None:
        await seed_profile(session_factory, USER, leetcode_handle="alice")
        await seed_ledger(session_factory, USER, date(2026, 10, 14), leetcode_solved=1)
        await seed_snapshot(session_factory, USER, date(2026, 10, 14), leetcode_total=1)
        orchestrator = make_orchestrator(
            session_factory, today, leetcode=FakeAdapter(Platform.LEETCODE, ok(Platform.LEETCODE, 2))
        )

        result = await orchestrator.sync_user(USER)

        assert result.streaks.leetcode == 2
        assert result.streaks.coding == 2


# =============================================================================
# Batch sweep
# =============================================================================


class TestBatchSync:
    @pytest.mark.asyncio
    async def test_list_active_users(self, session_factory, today) -> None:
        old = datetime(2026, 1, 1, tzinfo=timezone.utc)
        await seed_profile(session_factory, "recent", leetcode_handle="a")
        await seed_profile(session_factory, "stale", leetcode_handle="b")
        await seed_profile(session_factory, "newcomer", codechef_handle="c")
        await seed_profile(session_factory, "inactive", leetcode_handle="d", is_active=False)
        await seed_profile(session_factory, "unlinked", leetcode_handle="")
        async with session_factory() as session:
            async with session.begin():
                await session.execute(update(PlatformProfile).values(created_at=old))
                await session.execute(
                    update(PlatformProfile)
                    .where(PlatformProfile.user_id == "newcomer")
                    .values(created_at=datetime(2026, 10, 14, tzinfo=timezone.utc))
                )
        for user_id in ("recent", "inactive", "unlinked"):
            await seed_ledger(session_factory, user_id, date(2026, 10, 12), study_minutes=5)
        await seed_ledger(session_factory, "stale", date(2026, 9, 1), study_minutes=5)

        orchestrator = make_orchestrator(session_factory, today)

        assert await orchestrator.list_active_users() == ["newcomer", "recent"]

    @pytest.mark.asyncio
    async def test_sweep_syncs_every_active_user(self, session_factory, today) -> None:
        for user_id in ("u1", "u2"):
            await seed_profile(session_factory, user_id, leetcode_handle=user_id)
            await seed_ledger(session_factory, user_id, date(2026, 10, 12), study_minutes=5)
        orchestrator = make_orchestrator(
            session_factory, today, leetcode=FakeAdapter(Platform.LEETCODE, ok(Platform.LEETCODE, 4))
        )

        batch = await orchestrator.sync_all_active(max_concurrent=1)

        assert batch.attempted == 2
        assert batch.succeeded == 2
        assert {r.user_id for r in batch.results} == {"u1", "u2"}
        assert (await ledger_day(session_factory, today, "u2")).leetcode_solved == 4

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_sweep(self, session_factory, today) -> None:
        orchestrator = make_orchestrator(session_factory, today)
        running = {"now": 0, "peak": 0}

        async def fake_sync(user_id: str, today=None) -> SyncResult:
            running["now"] += 1
            running["peak"] = max(running["peak"], running["now"])
            await asyncio.sleep(0.01)
            running["now"] -= 1
            if user_id == "broken":
                raise TransactionFailure("Sync could not be saved")
            state = SyncState.PARTIAL if user_id == "flaky" else SyncState.DONE
            return SyncResult(user_id=user_id, sync_date=today, state=state)

        users = ["a", "broken", "c", "flaky", "e"]
        with patch.object(orchestrator, "list_active_users", AsyncMock(return_value=users)):
            with patch.object(orchestrator, "sync_user", side_effect=fake_sync):
                batch = await orchestrator.sync_all_active(max_concurrent=2)

        assert (batch.attempted, batch.succeeded, batch.partial, batch.failed) == (5, 3, 1, 1)
        assert batch.errors[0].user_id == "broken"
        assert batch.errors[0].kind == SyncIssueKind.USER_SYNC_FAILED
        assert running["peak"] <= 2
