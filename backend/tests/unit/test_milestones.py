"""
Unit Tests for milestone completion.

Tests for:
- Ledger credit (+1 career milestone, +study minutes) on first completion
- Repeated completion is a no-op
- Completion date taken from completed_at in UTC
"""

from datetime import datetime, timedelta, timezone

import pytest

from tracker.services.ledger import ActivityLedger
from tracker.services.milestones import MilestoneService


USER = "user-1"


async def ledger_day(session_factory, day):
    async with session_factory() as session:
        return await ActivityLedger(session).get_day(USER, day)


class TestRecordCompletion:
    @pytest.mark.asyncio
    async def test_first_completion_credits_ledger(self, session_factory) -> None:
        completed_at = datetime(2026, 10, 15, 9, 30, tzinfo=timezone.utc)
        service = MilestoneService(session_factory, study_minutes_credit=30)

        response = await service.record_completion(USER, "dsa", "graphs-1", completed_at)

        assert response.recorded
        assert response.completion_date == completed_at.date()
        day = await ledger_day(session_factory, completed_at.date())
        assert day.career_milestones_completed == 1
        assert day.study_minutes == 30

    @pytest.mark.asyncio
    async def test_repeat_completion_is_noop(self, session_factory) -> None:
        completed_at = datetime(2026, 10, 15, 9, 30, tzinfo=timezone.utc)
        service = MilestoneService(session_factory, study_minutes_credit=30)

        await service.record_completion(USER, "dsa", "graphs-1", completed_at)
        again = await service.record_completion(
            USER, "dsa", "graphs-1", completed_at + timedelta(hours=2)
        )

        assert not again.recorded
        day = await ledger_day(session_factory, completed_at.date())
        assert day.career_milestones_completed == 1
        assert day.study_minutes == 30

    @pytest.mark.asyncio
    async def test_distinct_milestones_accumulate(self, session_factory) -> None:
        completed_at = datetime(2026, 10, 15, 9, 30, tzinfo=timezone.utc)
        service = MilestoneService(session_factory, study_minutes_credit=30)

        await service.record_completion(USER, "dsa", "graphs-1", completed_at)
        await service.record_completion(USER, "dsa", "graphs-2", completed_at)

        day = await ledger_day(session_factory, completed_at.date())
        assert day.career_milestones_completed == 2
        assert day.study_minutes == 60

    @pytest.mark.asyncio
    async def test_completion_date_is_utc(self, session_factory) -> None:
        ist = timezone(timedelta(hours=5, minutes=30))
        completed_at = datetime(2026, 10, 16, 2, 0, tzinfo=ist)

        response = await MilestoneService(session_factory).record_completion(
            USER, "career", "resume", completed_at
        )

        assert response.completion_date == datetime(2026, 10, 15).date()
