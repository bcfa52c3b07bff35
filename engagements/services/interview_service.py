"""
Interview workflow: scheduling, invitation responses, status changes and
feedback.

Every write runs in one transaction that re-checks its own preconditions
under a row lock, so interleaved associate and freelancer actions resolve
deterministically. Notifications are sent only after a successful commit and
never undo it.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from engagements.core.config import settings
from engagements.core.permissions import CallerIdentity, Roles, ensure_role
from engagements.db.session import transaction
from engagements.errors import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    InvalidError,
    NotFoundError,
)
from engagements.models.associate_request import AssociateRequest
from engagements.models.interview import (
    FeedbackRecommendation,
    Interview,
    InterviewFeedback,
    InterviewInvitation,
    InterviewStatus,
    InterviewType,
    InvitationStatus,
)
from engagements.repositories.activity_log_repository import ActivityLogRepository
from engagements.repositories.interview_repository import PARTY_COLUMNS, InterviewRepository
from engagements.repositories.request_repository import RequestRepository
from engagements.schemas.interview import (
    FeedbackCreate,
    FeedbackRead,
    InterviewDetail,
    InterviewPage,
    InterviewScheduleCreate,
    InterviewStatusUpdate,
    InvitationRead,
    InvitationResponseCreate,
)
from engagements.services.notification_service import NotificationService
from engagements.services.signaling import LocalRoomTokenAllocator, RoomTokenAllocator
from engagements.utils.time import as_utc, utc_now

logger = logging.getLogger(__name__)

RATING_FIELDS = (
    "technical_skills_rating",
    "communication_rating",
    "cultural_fit_rating",
    "overall_rating",
)

KNOWN_STATUSES = InterviewStatus.OPEN + InterviewStatus.TERMINAL


def build_detail(
    interview: Interview,
    invitation: Optional[InterviewInvitation],
    request: Optional[AssociateRequest],
    feedback: Optional[List[InterviewFeedback]] = None,
) -> InterviewDetail:
    return InterviewDetail.model_validate(interview).model_copy(
        update={
            "request_title": request.title if request else None,
            "request_description": request.description if request else None,
            "invitation": InvitationRead.model_validate(invitation) if invitation else None,
            "feedback": [FeedbackRead.model_validate(f) for f in feedback or []],
        }
    )


class InterviewService:
    """Service for the interview state machine and its invitation gate."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: Optional[NotificationService] = None,
        room_allocator: Optional[RoomTokenAllocator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.clock = clock
        self.notifier = notifier or NotificationService(db, clock=clock)
        self.room_allocator = room_allocator or LocalRoomTokenAllocator()
        self.interviews = InterviewRepository(db)
        self.requests = RequestRepository(db)
        self.activity = ActivityLogRepository(db)

    @staticmethod
    def _party_role(interview: Interview, caller: CallerIdentity) -> Optional[str]:
        """The caller's side of the interview, or None when they are not a party."""
        if caller.role == Roles.ASSOCIATE and interview.associate_id == caller.user_id:
            return Roles.ASSOCIATE
        if caller.role == Roles.FREELANCER and interview.freelancer_id == caller.user_id:
            return Roles.FREELANCER
        return None

    def _require_party(self, interview: Optional[Interview], interview_id: UUID, caller: CallerIdentity) -> str:
        if not interview:
            raise NotFoundError("Interview not found", {"interview_id": str(interview_id)})
        party = self._party_role(interview, caller)
        if not party:
            raise ForbiddenError("You are not a participant in this interview")
        return party

    def _validate_schedule(self, data: InterviewScheduleCreate) -> datetime:
        if data.interview_type not in InterviewType.ALL:
            raise InvalidError(
                f"Invalid interview type. Must be one of: {', '.join(InterviewType.ALL)}",
                {"interview_type": data.interview_type},
            )
        scheduled = as_utc(data.scheduled_date)
        if scheduled <= as_utc(self.clock()):
            raise InvalidError(
                "Interview must be scheduled in the future",
                {"scheduled_date": scheduled.isoformat()},
            )
        if data.duration_minutes <= 0:
            raise InvalidError("duration_minutes must be positive", {"duration_minutes": data.duration_minutes})
        return scheduled

    async def schedule(self, caller: CallerIdentity, data: InterviewScheduleCreate) -> InterviewDetail:
        """
        Schedule an interview and its invitation for a recommended freelancer.

        Raises:
            InvalidError: unknown type, non-future time or non-positive duration
            NotFoundError: request does not exist
            ForbiddenError: request not owned by caller, or freelancer not recommended
            ConflictError: the pair already has a scheduled or in-progress interview
        """
        ensure_role(caller, [Roles.ASSOCIATE])
        scheduled = self._validate_schedule(data)

        async with transaction(
            self.db,
            conflict_message="An active interview already exists for this freelancer and request",
        ):
            request = await self.requests.get_by_id(data.request_id)
            if not request:
                raise NotFoundError("Request not found", {"request_id": str(data.request_id)})
            if request.associate_id != caller.user_id:
                raise ForbiddenError("Request does not belong to this associate")

            # Locking the recommendation serializes scheduling for the pair
            recommendation = await self.requests.get_recommendation(
                data.request_id, data.freelancer_id, for_update=True
            )
            if not recommendation:
                raise ForbiddenError(
                    "Freelancer was not recommended for this request",
                    {"request_id": str(data.request_id), "freelancer_id": str(data.freelancer_id)},
                )

            existing = await self.interviews.get_open_for_pair(data.request_id, data.freelancer_id)
            if existing:
                raise ConflictError(
                    "An active interview already exists for this freelancer and request",
                    {"interview_id": str(existing.id), "status": existing.status},
                )

            meeting_token = None
            if data.interview_type == InterviewType.VIDEO:
                meeting_token = self.room_allocator.allocate_room_token()

            interview = Interview(
                request_id=data.request_id,
                associate_id=caller.user_id,
                freelancer_id=data.freelancer_id,
                interview_type=data.interview_type,
                scheduled_date=scheduled,
                duration_minutes=data.duration_minutes,
                meeting_token=meeting_token,
                location=data.location,
                interview_notes=data.interview_notes,
                status=InterviewStatus.SCHEDULED,
            )
            await self.interviews.add(interview)

            invitation = InterviewInvitation(
                interview_id=interview.id,
                associate_id=caller.user_id,
                freelancer_id=data.freelancer_id,
                invitation_message=data.invitation_message,
                invitation_status=InvitationStatus.PENDING,
                expires_at=scheduled + timedelta(hours=settings.INVITATION_TTL_HOURS),
            )
            await self.interviews.add(invitation)

            await self.activity.record(
                caller.user_id,
                caller.role,
                "interview_scheduled",
                f"Scheduled {data.interview_type} interview {interview.id} with freelancer {data.freelancer_id}",
            )

        detail = build_detail(interview, invitation, request)
        logger.info(
            "Interview %s scheduled by associate %s for freelancer %s at %s",
            detail.id,
            caller.user_id,
            detail.freelancer_id,
            scheduled.isoformat(),
        )

        await self._notify_scheduled(detail, request_title=request.title, associate_name=request.contact_person)
        return detail

    async def _notify_scheduled(
        self,
        detail: InterviewDetail,
        request_title: str,
        associate_name: Optional[str],
    ) -> None:
        """Best-effort notifications after a committed schedule."""
        try:
            await self.notifier.notify_interview_scheduled(
                interview_id=detail.id,
                freelancer_id=detail.freelancer_id,
                associate_id=detail.associate_id,
                interview_type=detail.interview_type,
                scheduled_date=detail.scheduled_date,
                job_title=request_title,
                associate_name=associate_name,
                meeting_token=detail.meeting_token,
            )
            await self.notifier.schedule_reminders(
                detail.id,
                detail.freelancer_id,
                detail.scheduled_date,
                {
                    "job_title": request_title,
                    "associate_name": associate_name,
                    "associate_id": detail.associate_id,
                    "interview_type": detail.interview_type,
                },
            )
        except Exception:
            logger.exception("Failed to create notifications for interview %s", detail.id)

    async def respond_to_invitation(self, caller: CallerIdentity, data: InvitationResponseCreate) -> Dict[str, Any]:
        """
        Accept or decline an invitation. Declining also cancels the interview.

        Raises:
            InvalidError: response is not accepted/declined
            NotFoundError: no invitation for this freelancer and interview
            ConflictError: invitation already answered
            ExpiredError: response window has closed
        """
        ensure_role(caller, [Roles.FREELANCER])
        if data.response not in InvitationStatus.RESPONSES:
            raise InvalidError(
                f"Invalid response. Must be one of: {', '.join(InvitationStatus.RESPONSES)}",
                {"response": data.response},
            )

        async with transaction(self.db):
            invitation = await self.interviews.get_invitation(data.interview_id, for_update=True)
            if not invitation or invitation.freelancer_id != caller.user_id:
                raise NotFoundError("Interview invitation not found", {"interview_id": str(data.interview_id)})

            if invitation.invitation_status != InvitationStatus.PENDING:
                raise ConflictError(
                    "Invitation has already been answered",
                    {"invitation_status": invitation.invitation_status},
                )

            now = as_utc(self.clock())
            if now > as_utc(invitation.expires_at):
                raise ExpiredError(
                    "Invitation has expired",
                    {"expires_at": as_utc(invitation.expires_at).isoformat()},
                )

            interview = await self.interviews.get_by_id(data.interview_id, for_update=True)
            if data.response == InvitationStatus.DECLINED and interview.status == InterviewStatus.COMPLETED:
                raise ConflictError("Interview has already been completed", {"status": interview.status})

            invitation.invitation_status = data.response
            invitation.response_notes = data.response_notes
            invitation.responded_at = now

            if data.response == InvitationStatus.DECLINED:
                interview.status = InterviewStatus.CANCELLED

            await self.activity.record(
                caller.user_id,
                caller.role,
                f"interview_invitation_{data.response}",
                f"Invitation for interview {interview.id} {data.response}",
            )

            result = {
                "interview_id": interview.id,
                "invitation_id": invitation.id,
                "invitation_status": invitation.invitation_status,
                "interview_status": interview.status,
            }

        logger.info(
            "Freelancer %s %s invitation for interview %s",
            caller.user_id,
            data.response,
            data.interview_id,
        )
        return result

    async def update_status(self, caller: CallerIdentity, data: InterviewStatusUpdate) -> Dict[str, Any]:
        """
        Move an interview along its state machine.

        Notes land in the caller's own notes field only.
        """
        if data.status not in InterviewStatus.UPDATABLE:
            raise InvalidError(
                f"Invalid status. Must be one of: {', '.join(InterviewStatus.UPDATABLE)}",
                {"status": data.status},
            )

        async with transaction(self.db):
            interview = await self.interviews.get_by_id(data.interview_id, for_update=True)
            party = self._require_party(interview, data.interview_id, caller)

            if not InterviewStatus.can_transition(interview.status, data.status):
                raise ConflictError(
                    f"Cannot change interview status from {interview.status} to {data.status}",
                    {"current_status": interview.status, "requested_status": data.status},
                )

            previous = interview.status
            interview.status = data.status
            if data.notes is not None:
                if party == Roles.ASSOCIATE:
                    interview.associate_notes = data.notes
                else:
                    interview.freelancer_notes = data.notes

            await self.activity.record(
                caller.user_id,
                caller.role,
                "interview_status_updated",
                f"Interview {interview.id} moved from {previous} to {data.status}",
            )
            result = {"interview_id": interview.id, "previous_status": previous, "status": interview.status}

        logger.info(
            "Interview %s moved from %s to %s by %s %s",
            data.interview_id,
            previous,
            data.status,
            caller.role,
            caller.user_id,
        )
        return result

    def _validate_feedback(self, data: FeedbackCreate) -> None:
        if data.overall_rating is None:
            raise InvalidError("overall_rating is required", {"field": "overall_rating"})
        for field in RATING_FIELDS:
            value = getattr(data, field)
            if value is not None and not 1 <= value <= 5:
                raise InvalidError(f"{field} must be between 1 and 5", {"field": field, "value": value})
        if data.recommendation not in FeedbackRecommendation.ALL:
            raise InvalidError(
                f"Invalid recommendation. Must be one of: {', '.join(FeedbackRecommendation.ALL)}",
                {"recommendation": data.recommendation},
            )

    async def submit_feedback(self, caller: CallerIdentity, data: FeedbackCreate) -> FeedbackRead:
        """
        Record one evaluator's feedback on a completed interview.

        Raises:
            InvalidError: rating outside [1, 5] or bad recommendation
            NotFoundError / ForbiddenError: unknown interview or caller not a party
            ConflictError: interview not completed, or feedback already submitted
        """
        self._validate_feedback(data)

        async with transaction(self.db, conflict_message="Feedback already submitted for this interview"):
            interview = await self.interviews.get_by_id(data.interview_id, for_update=True)
            party = self._require_party(interview, data.interview_id, caller)

            if interview.status != InterviewStatus.COMPLETED:
                raise ConflictError(
                    "Feedback can only be submitted for completed interviews",
                    {"status": interview.status},
                )

            existing = await self.interviews.get_feedback_by_evaluator(interview.id, caller.user_id)
            if existing:
                raise ConflictError(
                    "Feedback already submitted for this interview",
                    {"feedback_id": str(existing.id)},
                )

            feedback = InterviewFeedback(
                interview_id=interview.id,
                evaluator_id=caller.user_id,
                evaluator_role=party,
                technical_skills_rating=data.technical_skills_rating,
                communication_rating=data.communication_rating,
                cultural_fit_rating=data.cultural_fit_rating,
                overall_rating=data.overall_rating,
                strengths=data.strengths,
                areas_for_improvement=data.areas_for_improvement,
                recommendation=data.recommendation,
                detailed_feedback=data.detailed_feedback,
                submitted_at=self.clock(),
            )
            await self.interviews.add(feedback)
            await self.activity.record(
                caller.user_id,
                caller.role,
                "interview_feedback_submitted",
                f"Feedback ({data.recommendation}) submitted for interview {interview.id}",
            )
            result = FeedbackRead.model_validate(feedback)

        logger.info("Feedback %s submitted for interview %s by %s", result.id, data.interview_id, caller.user_id)
        return result

    async def list_interviews(
        self,
        caller: CallerIdentity,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> InterviewPage:
        """Interviews visible to the caller with invitation and feedback attached."""
        party_column = PARTY_COLUMNS.get(caller.role)
        if party_column is None:
            raise ForbiddenError("Only associates and freelancers can list interviews", {"role": caller.role})
        if limit < 1 or offset < 0:
            raise InvalidError("limit must be positive and offset non-negative", {"limit": limit, "offset": offset})
        if status and status not in KNOWN_STATUSES:
            raise InvalidError(
                f"Invalid status. Must be one of: {', '.join(KNOWN_STATUSES)}",
                {"status": status},
            )

        rows = await self.interviews.list_for_party(party_column, caller.user_id, status, limit, offset)
        total = await self.interviews.count_for_party(party_column, caller.user_id, status)
        feedback = await self.interviews.list_feedback_for([interview.id for interview, _, _ in rows])

        items = [
            build_detail(interview, invitation, request, feedback.get(interview.id))
            for interview, invitation, request in rows
        ]
        return InterviewPage(items=items, limit=limit, offset=offset, total=total)

    async def get_interview(self, caller: CallerIdentity, interview_id: UUID) -> InterviewDetail:
        row = await self.interviews.get_row(interview_id)
        interview, invitation, request = row if row else (None, None, None)
        self._require_party(interview, interview_id, caller)

        feedback = await self.interviews.list_feedback_for([interview.id])
        return build_detail(interview, invitation, request, feedback.get(interview.id))
