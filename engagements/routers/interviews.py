"""
Interview router: scheduling, invitation responses, status and feedback.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from engagements.core.config import settings
from engagements.core.dependencies import get_channel, get_db, get_room_allocator, require_roles
from engagements.core.permissions import CallerIdentity, Roles
from engagements.schemas.base import success
from engagements.schemas.interview import (
    FeedbackCreate,
    InterviewScheduleCreate,
    InterviewStatusUpdate,
    InvitationResponseCreate,
)
from engagements.services.interview_service import InterviewService
from engagements.services.notification_service import NotificationService
from engagements.services.realtime import RealtimeChannel
from engagements.services.signaling import RoomTokenAllocator

router = APIRouter(prefix="/interviews", tags=["Interviews"])

parties = require_roles(Roles.PARTIES)


def get_interview_service(
    db: AsyncSession = Depends(get_db),
    channel: RealtimeChannel = Depends(get_channel),
    room_allocator: RoomTokenAllocator = Depends(get_room_allocator),
) -> InterviewService:
    return InterviewService(
        db,
        notifier=NotificationService(db, channel=channel),
        room_allocator=room_allocator,
    )


@router.post("/schedule", status_code=status.HTTP_201_CREATED)
async def schedule_interview(
    payload: InterviewScheduleCreate,
    service: InterviewService = Depends(get_interview_service),
    caller: CallerIdentity = Depends(require_roles([Roles.ASSOCIATE])),
):
    """
    Schedule an interview with a recommended freelancer.

    The freelancer is notified right away and reminded 24h, 2h and 30 minutes
    before the interview.
    """
    interview = await service.schedule(caller, payload)
    return success(
        "Interview scheduled successfully",
        {
            "interview_id": interview.id,
            "invitation_id": interview.invitation.id if interview.invitation else None,
            "meeting_token": interview.meeting_token,
            "interview": interview,
        },
    )


@router.get("")
async def list_interviews(
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=settings.INTERVIEW_LIST_MAX_LIMIT),
    offset: int = Query(0, ge=0),
    service: InterviewService = Depends(get_interview_service),
    caller: CallerIdentity = Depends(parties),
):
    page = await service.list_interviews(caller, status=status_filter, limit=limit, offset=offset)
    return success(data=page)


@router.post("/respond")
async def respond_to_invitation(
    payload: InvitationResponseCreate,
    service: InterviewService = Depends(get_interview_service),
    caller: CallerIdentity = Depends(require_roles([Roles.FREELANCER])),
):
    result = await service.respond_to_invitation(caller, payload)
    return success(f"Interview invitation {payload.response} successfully", result)


@router.put("/status")
async def update_interview_status(
    payload: InterviewStatusUpdate,
    service: InterviewService = Depends(get_interview_service),
    caller: CallerIdentity = Depends(parties),
):
    result = await service.update_status(caller, payload)
    return success("Interview status updated successfully", result)


@router.post("/feedback", status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    payload: FeedbackCreate,
    service: InterviewService = Depends(get_interview_service),
    caller: CallerIdentity = Depends(parties),
):
    feedback = await service.submit_feedback(caller, payload)
    return success("Feedback submitted successfully", {"feedback_id": feedback.id, "feedback": feedback})


@router.get("/{interview_id}")
async def get_interview(
    interview_id: UUID,
    service: InterviewService = Depends(get_interview_service),
    caller: CallerIdentity = Depends(parties),
):
    interview = await service.get_interview(caller, interview_id)
    return success(data=interview)
