"""
Pydantic schemas for the interview workflow.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from engagements.schemas.base import TimestampedRead


class InterviewScheduleCreate(BaseModel):
    request_id: UUID
    freelancer_id: UUID
    interview_type: str = "video"
    scheduled_date: datetime
    duration_minutes: int = 60
    location: Optional[str] = Field(None, max_length=500)
    interview_notes: Optional[str] = None
    invitation_message: Optional[str] = None


class InvitationResponseCreate(BaseModel):
    interview_id: UUID
    response: str
    response_notes: Optional[str] = None


class InterviewStatusUpdate(BaseModel):
    interview_id: UUID
    status: str
    notes: Optional[str] = None


class FeedbackCreate(BaseModel):
    """Ratings are validated against [1, 5] by the workflow service."""

    interview_id: UUID
    technical_skills_rating: Optional[int] = None
    communication_rating: Optional[int] = None
    cultural_fit_rating: Optional[int] = None
    overall_rating: Optional[int] = None
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    recommendation: Optional[str] = None
    detailed_feedback: Optional[str] = None


class InvitationRead(TimestampedRead):
    interview_id: UUID
    associate_id: UUID
    freelancer_id: UUID
    invitation_message: Optional[str] = None
    invitation_status: str
    expires_at: datetime
    response_notes: Optional[str] = None
    responded_at: Optional[datetime] = None


class FeedbackRead(TimestampedRead):
    interview_id: UUID
    evaluator_id: UUID
    evaluator_role: str
    technical_skills_rating: Optional[int] = None
    communication_rating: Optional[int] = None
    cultural_fit_rating: Optional[int] = None
    overall_rating: int
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    detailed_feedback: Optional[str] = None
    recommendation: str
    submitted_at: datetime


class InterviewRead(TimestampedRead):
    request_id: UUID
    associate_id: UUID
    freelancer_id: UUID
    interview_type: str
    scheduled_date: datetime
    duration_minutes: int
    meeting_token: Optional[str] = None
    location: Optional[str] = None
    interview_notes: Optional[str] = None
    associate_notes: Optional[str] = None
    freelancer_notes: Optional[str] = None
    status: str


class InterviewDetail(InterviewRead):
    """Interview joined with its request, invitation and feedback."""

    request_title: Optional[str] = None
    request_description: Optional[str] = None
    invitation: Optional[InvitationRead] = None
    feedback: List[FeedbackRead] = Field(default_factory=list)


class InterviewPage(BaseModel):
    items: List[InterviewDetail]
    limit: int
    offset: int
    total: int

    model_config = ConfigDict(from_attributes=True)
