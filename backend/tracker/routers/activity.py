"""
Activity API Router

Endpoints for the daily ledger, monthly goals and goal progress.

Endpoints:
- GET /api/activity/daily/{day} - Ledger row for a day (zeros if none)
- PUT /api/activity/daily - Manually edit a ledger day
- POST /api/activity/study - Log study minutes
- GET /api/activity/range/{year}/{month} - Ledger rows for a month
- GET /api/activity/goals/{year}/{month} - Monthly goal
- PUT /api/activity/goals - Create or replace a monthly goal
- GET /api/activity/progress - Goal progress for the current month
- GET /api/activity/progress/{year}/{month} - Goal progress for a month
"""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.base import get_db
from tracker.dependencies import get_current_user_id
from tracker.middleware.error_handling import handle_endpoint_errors
from tracker.models.activity import (
    DailyActivityUpdate,
    LedgerDay,
    LedgerRangeResponse,
    MonthlyGoalRequest,
    MonthlyGoalResponse,
    MonthlyProgressResponse,
    StudyTimeRequest,
)
from tracker.services.goals import GoalProgressAggregator, GoalService
from tracker.services.ledger import ActivityLedger
from tracker.services.streaks import StreakCalculator
from tracker.utils.dates import month_bounds, utc_today

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/activity", tags=["activity"])

Year = Annotated[int, Path(ge=2000, le=2100)]
Month = Annotated[int, Path(ge=1, le=12)]


# ===========================================
# Ledger Endpoints
# ===========================================


@router.get("/daily/{day}", response_model=LedgerDay)
@handle_endpoint_errors("Get daily activity")
async def get_daily(
    day: date,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> LedgerDay:
    """Return the ledger row for a day; recorded=false with zeros when absent."""
    return await ActivityLedger(db).get_day(user_id, day)


@router.put("/daily", response_model=LedgerDay)
@handle_endpoint_errors("Update daily activity")
async def update_daily(
    payload: DailyActivityUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> LedgerDay:
    """
    Overwrite the provided fields of a ledger day.

    Streaks are recomputed in the same transaction.
    """
    day = await ActivityLedger(db).set_day(user_id, payload)
    await StreakCalculator(db).recompute(user_id, utc_today())
    return day


@router.post("/study", response_model=LedgerDay)
@handle_endpoint_errors("Log study time")
async def log_study_time(
    payload: StudyTimeRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> LedgerDay:
    """Add study minutes to a day (today by default)."""
    today = utc_today()
    day = await ActivityLedger(db).add_study_minutes(
        user_id, payload.activity_date or today, payload.minutes
    )
    await StreakCalculator(db).recompute(user_id, today)
    return day


@router.get("/range/{year}/{month}", response_model=LedgerRangeResponse)
@handle_endpoint_errors("Get monthly activity")
async def get_month(
    year: Year,
    month: Month,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> LedgerRangeResponse:
    """Ledger rows recorded in a month, oldest first."""
    first, last = month_bounds(year, month)
    rows = await ActivityLedger(db).get_range(user_id, first, last)
    return LedgerRangeResponse(
        year=year,
        month=month,
        days=[LedgerDay.model_validate(row) for row in rows],
    )


# ===========================================
# Goal Endpoints
# ===========================================


@router.get("/goals/{year}/{month}", response_model=MonthlyGoalResponse)
@handle_endpoint_errors("Get monthly goal")
async def get_goal(
    year: Year,
    month: Month,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MonthlyGoalResponse:
    """Return the month's goal; zero targets with configured=false when unset."""
    return await GoalService(db).get_goal(user_id, year, month)


@router.put("/goals", response_model=MonthlyGoalResponse)
@handle_endpoint_errors("Set monthly goal")
async def set_goal(
    payload: MonthlyGoalRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MonthlyGoalResponse:
    """Create or replace the goal for payload.year/payload.month."""
    return await GoalService(db).set_goal(user_id, payload)


# ===========================================
# Progress Endpoints
# ===========================================


@router.get("/progress", response_model=MonthlyProgressResponse)
@handle_endpoint_errors("Get current month progress")
async def get_current_progress(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MonthlyProgressResponse:
    """Goal progress for the current (UTC) month."""
    today = utc_today()
    return await GoalProgressAggregator(db).monthly_progress(
        user_id, today.year, today.month
    )


@router.get("/progress/{year}/{month}", response_model=MonthlyProgressResponse)
@handle_endpoint_errors("Get monthly progress")
async def get_progress(
    year: Year,
    month: Month,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MonthlyProgressResponse:
    """
    Goal progress for a month.

    Percentages are clamped to [0, 100]; achieved values are raw sums.
    """
    return await GoalProgressAggregator(db).monthly_progress(user_id, year, month)
