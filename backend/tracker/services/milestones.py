"""
Milestone Completion Service

Records roadmap milestones a user completes and credits the ledger:
one career milestone plus MILESTONE_STUDY_MINUTES of study time on the
completion day. Re-completing the same milestone is a no-op, enforced by
the unique (user, roadmap, milestone) constraint rather than a read-check.

Usage:
    service = MilestoneService(session_factory)
    response = await service.record_completion(user_id, "dsa", "graphs-1")
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracker.config import settings
from tracker.db.base import dialect_insert
from tracker.db.models import MilestoneCompletion
from tracker.models.activity import MilestoneCompletionResponse
from tracker.services.ledger import ActivityLedger
from tracker.services.streaks import StreakCalculator
from tracker.utils.dates import utc_today

logger = logging.getLogger(__name__)


class MilestoneService:
    """Records milestone completions; owns its transactions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        study_minutes_credit: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.study_minutes_credit = (
            study_minutes_credit
            if study_minutes_credit is not None
            else settings.MILESTONE_STUDY_MINUTES
        )

    async def record_completion(
        self,
        user_id: str,
        roadmap_id: str,
        milestone_id: str,
        completed_at: Optional[datetime] = None,
    ) -> MilestoneCompletionResponse:
        """
        Mark a milestone complete and credit the completion day.

        The completion row and the ledger credit commit together. Streaks are
        recomputed afterwards; a failure there is logged and does not undo
        the completion.

        Returns:
            Response with recorded=False when the milestone was already complete
        """
        completed_at = completed_at or datetime.now(timezone.utc)
        if completed_at.tzinfo is None:
            completed_at = completed_at.replace(tzinfo=timezone.utc)
        completion_date = completed_at.astimezone(timezone.utc).date()

        async with self.session_factory() as session:
            async with session.begin():
                stmt = (
                    dialect_insert(session, MilestoneCompletion)
                    .values(
                        user_id=user_id,
                        roadmap_id=roadmap_id,
                        milestone_id=milestone_id,
                        completed_at=completed_at,
                        completion_date=completion_date,
                    )
                    .on_conflict_do_nothing(
                        index_elements=["user_id", "roadmap_id", "milestone_id"]
                    )
                    .returning(MilestoneCompletion.id)
                )
                inserted_id = (await session.execute(stmt)).scalar_one_or_none()
                if inserted_id is not None:
                    await ActivityLedger(session).upsert_day(
                        user_id,
                        completion_date,
                        increment={
                            "career_milestones_completed": 1,
                            "study_minutes": self.study_minutes_credit,
                        },
                    )

        if inserted_id is None:
            logger.info(f"Milestone {roadmap_id}/{milestone_id} already complete for {user_id}")
            return MilestoneCompletionResponse(
                recorded=False,
                completion_date=completion_date,
                message="Milestone already completed",
            )

        logger.info(f"Milestone {roadmap_id}/{milestone_id} completed by {user_id}")
        await self._refresh_streaks(user_id)
        return MilestoneCompletionResponse(
            recorded=True,
            completion_date=completion_date,
            message=f"Milestone completed: +1 career milestone, +{self.study_minutes_credit} study minutes",
        )

    async def _refresh_streaks(self, user_id: str) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await StreakCalculator(session).recompute(user_id, utc_today())
        except Exception as e:
            logger.error(f"Streak recompute after milestone failed for {user_id}: {e}")
