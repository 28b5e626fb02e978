"""
Unit Tests for Monthly Goals and the Goal Progress Aggregator.

Tests for:
- percent_complete rounding and clamping
- Goal upsert and the unconfigured default
- Monthly sums per category (coding via per-day contributions)
- Study target scaled by days in month
"""

from datetime import date

import pytest

from tests.conftest import seed_ledger
from tracker.enums import GoalCategory
from tracker.middleware.error_handling import ValidationError
from tracker.models.activity import MonthlyGoalRequest
from tracker.services.goals import GoalProgressAggregator, GoalService, percent_complete


USER = "user-1"


class TestPercentComplete:
    @pytest.mark.parametrize(
        "achieved,target,expected",
        [
            pytest.param(0, 10, 0, id="nothing_done"),
            pytest.param(5, 10, 50, id="half"),
            pytest.param(1, 8, 13, id="rounds_half_up"),
            pytest.param(1, 3, 33, id="rounds_down"),
            pytest.param(2, 3, 67, id="rounds_up"),
            pytest.param(15, 10, 100, id="clamped_at_100"),
            pytest.param(5, 0, 0, id="zero_target"),
            pytest.param(-3, 10, 0, id="negative_achieved"),
        ],
    )
    def test_percent(self, achieved: int, target: int, expected: int) -> None:
        assert percent_complete(achieved, target) == expected


class TestGoalService:
    @pytest.mark.asyncio
    async def test_missing_goal_is_unconfigured_zero(self, db_session) -> None:
        goal = await GoalService(db_session).get_goal(USER, 2026, 10)
        assert not goal.configured
        assert goal.leetcode_problems == 0

    @pytest.mark.asyncio
    async def test_set_goal_replaces_existing(self, db_session) -> None:
        service = GoalService(db_session)
        await service.set_goal(
            USER, MonthlyGoalRequest(year=2026, month=10, leetcode_problems=20)
        )
        goal = await service.set_goal(
            USER, MonthlyGoalRequest(year=2026, month=10, leetcode_problems=30, career_milestones=2)
        )
        await db_session.commit()

        assert goal.configured
        assert goal.leetcode_problems == 30
        assert goal.career_milestones == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("year,month", [(2026, 0), (2026, 13), (0, 5)])
    async def test_invalid_month_rejected(self, db_session, year: int, month: int) -> None:
        with pytest.raises(ValidationError):
            await GoalService(db_session).get_goal(USER, year, month)


class TestMonthlyProgress:
    @pytest.mark.asyncio
    async def test_no_goal_reports_zero_percent(self, session_factory) -> None:
        await seed_ledger(session_factory, USER, date(2026, 10, 3), study_minutes=90, leetcode_solved=4)

        async with session_factory() as session:
            progress = await GoalProgressAggregator(session).monthly_progress(USER, 2026, 10)

        assert not progress.goal_configured
        assert progress.get(GoalCategory.STUDY).achieved == 90
        assert all(item.percent == 0 for item in progress.categories)

    @pytest.mark.asyncio
    async def test_sums_and_percentages(self, session_factory) -> None:
        async with session_factory() as session:
            async with session.begin():
                await GoalService(session).set_goal(
                    USER,
                    MonthlyGoalRequest(
                        year=2026,
                        month=10,
                        daily_study_minutes=10,
                        leetcode_problems=20,
                        codeforces_problems=4,
                        contest_participation=2,
                        career_milestones=1,
                    ),
                )
        await seed_ledger(session_factory, USER, date(2026, 10, 1), leetcode_solved=4, study_minutes=60)
        await seed_ledger(session_factory, USER, date(2026, 10, 2), leetcode_solved=10, codeforces_solved=1)
        await seed_ledger(
            session_factory, USER, date(2026, 10, 3),
            leetcode_solved=10, codeforces_solved=5, contests_participated=1,
            career_milestones_completed=2, study_minutes=95,
        )
        # Other months and users are excluded
        await seed_ledger(session_factory, USER, date(2026, 9, 30), leetcode_solved=50)
        await seed_ledger(session_factory, "other", date(2026, 10, 2), leetcode_solved=9)

        async with session_factory() as session:
            progress = await GoalProgressAggregator(session).monthly_progress(USER, 2026, 10)

        assert progress.goal_configured
        assert progress.days_in_month == 31

        study = progress.get(GoalCategory.STUDY)
        assert (study.achieved, study.target, study.percent) == (155, 310, 50)

        leetcode = progress.get(GoalCategory.LEETCODE)
        assert (leetcode.achieved, leetcode.percent) == (10, 50)

        codeforces = progress.get(GoalCategory.CODEFORCES)
        assert (codeforces.achieved, codeforces.percent) == (5, 100)

        assert progress.get(GoalCategory.CONTESTS).percent == 50
        assert progress.get(GoalCategory.CAREER).percent == 100
        assert progress.get(GoalCategory.CODECHEF).percent == 0

    @pytest.mark.asyncio
    async def test_february_study_target(self, session_factory) -> None:
        async with session_factory() as session:
            async with session.begin():
                await GoalService(session).set_goal(
                    USER, MonthlyGoalRequest(year=2028, month=2, daily_study_minutes=30)
                )

        async with session_factory() as session:
            progress = await GoalProgressAggregator(session).monthly_progress(USER, 2028, 2)

        assert progress.days_in_month == 29
        assert progress.get(GoalCategory.STUDY).target == 870
