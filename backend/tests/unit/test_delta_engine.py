"""
Unit Tests for the Delta Engine and Snapshot Store.

Tests for:
- clamp_deltas non-negativity
- Month baseline selection (latest snapshot before the month start)
- Daily delta against yesterday's ledger row, and month-boundary behaviour
- Carry-forward of counters without a fresh reading
- Snapshot upsert replacing only the current day
"""

from datetime import date

import pytest

from tests.conftest import seed_ledger, seed_snapshot
from tracker.models.activity import CounterReadings, CounterValues
from tracker.services.deltas import DeltaEngine, clamp_deltas
from tracker.services.snapshots import SnapshotStore


USER = "user-1"


class TestClampDeltas:
    @pytest.mark.parametrize(
        "current,reference,expected",
        [
            pytest.param({"a": 62}, {"a": 50}, {"a": 12}, id="increase"),
            pytest.param({"a": 40}, {"a": 50}, {"a": 0}, id="decrease_clamped"),
            pytest.param({"a": 7}, None, {"a": 7}, id="no_reference"),
            pytest.param({"a": 7, "b": 3}, {"a": 2}, {"a": 5, "b": 3}, id="partial_reference"),
        ],
    )
    def test_clamp(self, current, reference, expected) -> None:
        assert clamp_deltas(current, reference) == expected

    @pytest.mark.parametrize("sequence", [[5, 3, 9, 0, 2], [100, 1], [0, 0, 0]])
    def test_never_negative_for_any_sequence(self, sequence: list[int]) -> None:
        for previous, current in zip(sequence, sequence[1:]):
            assert clamp_deltas({"x": current}, {"x": previous})["x"] >= 0


class TestComputeDeltas:
    @pytest.mark.asyncio
    async def test_baseline_and_yesterday_scenario(self, session_factory, today) -> None:
        await seed_snapshot(session_factory, USER, date(2026, 9, 30), leetcode_total=50)
        await seed_ledger(session_factory, USER, date(2026, 10, 14), leetcode_solved=10)

        async with session_factory() as session:
            deltas = await DeltaEngine(session).compute_deltas(
                USER, today, CounterReadings(leetcode=62)
            )

        assert deltas.baseline_date == date(2026, 9, 30)
        assert deltas.monthly.leetcode == 12
        assert deltas.daily.leetcode == 2
        assert deltas.cumulative.leetcode == 62
        assert deltas.yesterday_recorded

    @pytest.mark.asyncio
    async def test_no_baseline_counts_whole_cumulative(self, session_factory, today) -> None:
        async with session_factory() as session:
            deltas = await DeltaEngine(session).compute_deltas(
                USER, today, CounterReadings(codeforces=30)
            )

        assert deltas.baseline_date is None
        assert deltas.monthly.codeforces == 30
        assert deltas.daily.codeforces == 30

    @pytest.mark.asyncio
    async def test_snapshots_inside_month_are_not_baselines(self, session_factory, today) -> None:
        await seed_snapshot(session_factory, USER, date(2026, 9, 28), leetcode_total=40)
        await seed_snapshot(session_factory, USER, date(2026, 10, 3), leetcode_total=45)

        async with session_factory() as session:
            deltas = await DeltaEngine(session).compute_deltas(
                USER, today, CounterReadings(leetcode=48)
            )

        assert deltas.baseline_date == date(2026, 9, 28)
        assert deltas.monthly.leetcode == 8

    @pytest.mark.asyncio
    async def test_regression_clamps_to_zero(self, session_factory, today) -> None:
        await seed_snapshot(session_factory, USER, date(2026, 9, 30), codechef_total=80)
        await seed_ledger(session_factory, USER, date(2026, 10, 14), codechef_solved=5)

        async with session_factory() as session:
            deltas = await DeltaEngine(session).compute_deltas(
                USER, today, CounterReadings(codechef=70)
            )

        assert deltas.monthly.codechef == 0
        assert deltas.daily.codechef == 0

    @pytest.mark.asyncio
    async def test_first_day_of_month_daily_equals_monthly(self, session_factory) -> None:
        await seed_snapshot(session_factory, USER, date(2026, 9, 30), leetcode_total=50)
        await seed_ledger(session_factory, USER, date(2026, 9, 30), leetcode_solved=20)

        async with session_factory() as session:
            deltas = await DeltaEngine(session).compute_deltas(
                USER, date(2026, 10, 1), CounterReadings(leetcode=53)
            )

        assert deltas.monthly.leetcode == 3
        assert deltas.daily.leetcode == 3
        assert not deltas.yesterday_recorded

    @pytest.mark.asyncio
    async def test_missing_reading_is_carried_forward(self, session_factory, today) -> None:
        await seed_snapshot(
            session_factory, USER, date(2026, 9, 30), leetcode_total=50, codechef_total=10
        )
        await seed_snapshot(
            session_factory, USER, date(2026, 10, 14), leetcode_total=55, codechef_total=14
        )

        async with session_factory() as session:
            deltas = await DeltaEngine(session).compute_deltas(
                USER, today, CounterReadings(leetcode=57, codechef=None)
            )

        assert deltas.cumulative.codechef == 14
        assert deltas.monthly.codechef == 4
        assert deltas.monthly.leetcode == 7

    @pytest.mark.asyncio
    async def test_contest_daily_uses_yesterdays_snapshot(self, session_factory, today) -> None:
        await seed_snapshot(
            session_factory, USER, date(2026, 9, 30), codeforces_contest_total=10
        )
        await seed_snapshot(
            session_factory, USER, date(2026, 10, 14), codeforces_contest_total=13
        )

        async with session_factory() as session:
            deltas = await DeltaEngine(session).compute_deltas(
                USER, today, CounterReadings(codeforces_contests=15)
            )

        assert deltas.monthly.codeforces_contests == 5
        assert deltas.daily.codeforces_contests == 2


class TestSnapshots:
    @pytest.mark.asyncio
    async def test_persist_rewrites_only_today(self, session_factory, today) -> None:
        await seed_snapshot(session_factory, USER, date(2026, 10, 14), leetcode_total=10)

        async with session_factory() as session:
            async with session.begin():
                engine = DeltaEngine(session)
                await engine.persist_snapshot(USER, today, CounterValues(leetcode=12))
                await engine.persist_snapshot(USER, today, CounterValues(leetcode=13))

        async with session_factory() as session:
            store = SnapshotStore(session)
            assert (await store.get(USER, today)).leetcode_total == 13
            assert (await store.get(USER, date(2026, 10, 14))).leetcode_total == 10

    @pytest.mark.asyncio
    async def test_rejects_unknown_counters(self, db_session, today) -> None:
        with pytest.raises(ValueError):
            await SnapshotStore(db_session).upsert(USER, today, {"bogus_total": 1})
