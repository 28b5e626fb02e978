"""
Milestones API Router

Endpoints:
- POST /api/milestones/complete - Mark a roadmap milestone complete
"""

from fastapi import APIRouter, Depends

from tracker.dependencies import get_current_user_id, get_milestone_service
from tracker.middleware.error_handling import handle_endpoint_errors
from tracker.models.activity import (
    MilestoneCompletionRequest,
    MilestoneCompletionResponse,
)
from tracker.services.milestones import MilestoneService

router = APIRouter(prefix="/api/milestones", tags=["milestones"])


@router.post("/complete", response_model=MilestoneCompletionResponse)
@handle_endpoint_errors("Complete milestone")
async def complete_milestone(
    payload: MilestoneCompletionRequest,
    user_id: str = Depends(get_current_user_id),
    service: MilestoneService = Depends(get_milestone_service),
) -> MilestoneCompletionResponse:
    """
    Record a milestone completion and credit the ledger.

    Completing the same milestone again returns recorded=false and changes nothing.
    """
    return await service.record_completion(
        user_id, payload.roadmap_id, payload.milestone_id, payload.completed_at
    )
