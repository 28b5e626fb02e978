"""
Streaks API Router

Endpoints:
- GET /api/streaks/current - Current and longest streaks per category
- GET /api/streaks/history - Stored streak records for the last N days
- POST /api/streaks/recompute - Recompute and store today's streaks
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.base import get_db
from tracker.dependencies import get_current_user_id
from tracker.middleware.error_handling import handle_endpoint_errors
from tracker.models.activity import (
    StreakHistoryDay,
    StreakHistoryResponse,
    StreakSummary,
)
from tracker.services.streaks import StreakCalculator
from tracker.utils.dates import utc_today

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/streaks", tags=["streaks"])


@router.get("/current", response_model=StreakSummary)
@handle_endpoint_errors("Get current streak")
async def get_current_streak(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> StreakSummary:
    """Streaks as of today, computed from the ledger without writing."""
    return await StreakCalculator(db).calculate(user_id, utc_today())


@router.get("/history", response_model=StreakHistoryResponse)
@handle_endpoint_errors("Get streak history")
async def get_streak_history(
    days: int = Query(30, ge=1, le=365, description="Number of days to return"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> StreakHistoryResponse:
    """Stored streak records, newest first."""
    records = await StreakCalculator(db).history(user_id, days, utc_today())
    return StreakHistoryResponse(
        days=days,
        records=[StreakHistoryDay.model_validate(record) for record in records],
    )


@router.post("/recompute", response_model=StreakSummary)
@handle_endpoint_errors("Recompute streaks")
async def recompute_streaks(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> StreakSummary:
    """Recompute today's streaks from the ledger and store them."""
    return await StreakCalculator(db).recompute(user_id, utc_today())
