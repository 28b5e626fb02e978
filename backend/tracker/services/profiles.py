"""
Platform Profile Service

Stores the judge-platform handles each user has linked. The sync
orchestrator reads them to decide which platforms to fetch.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.base import dialect_insert
from tracker.db.models import PlatformProfile
from tracker.models.activity import PlatformHandlesRequest, PlatformHandlesResponse

logger = logging.getLogger(__name__)

HANDLE_FIELDS: tuple[str, ...] = ("leetcode_handle", "codechef_handle", "codeforces_handle")


class PlatformProfileService:
    """Read and write a user's platform handles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_handles(self, user_id: str) -> PlatformHandlesResponse:
        """Linked handles; a user without a profile has none."""
        result = await self.db.execute(
            select(PlatformProfile)
            .where(PlatformProfile.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            return PlatformHandlesResponse()
        return PlatformHandlesResponse.model_validate(profile)

    async def set_handles(
        self, user_id: str, request: PlatformHandlesRequest
    ) -> PlatformHandlesResponse:
        """
        Replace the user's handles.

        Empty strings are stored as NULL so the platform counts as unlinked.
        """
        values = {
            field: (getattr(request, field) or None) for field in HANDLE_FIELDS
        }
        values["is_active"] = request.is_active
        stmt = dialect_insert(self.db, PlatformProfile).values(user_id=user_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={field: stmt.excluded[field] for field in values},
        )
        await self.db.execute(stmt)
        logger.info(f"Platform handles updated for {user_id}")
        return await self.get_handles(user_id)
