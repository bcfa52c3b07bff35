"""
Schemas package.

Import all schemas here for easy access.
"""

from engagements.schemas.base import SuccessEnvelope, TimestampedRead, success
from engagements.schemas.hiring import AvailabilityRead, BlockingContract, HireCreate, HireRead, ReconcileResult
from engagements.schemas.interview import (
    FeedbackCreate,
    FeedbackRead,
    InterviewDetail,
    InterviewPage,
    InterviewRead,
    InterviewScheduleCreate,
    InterviewStatusUpdate,
    InvitationRead,
    InvitationResponseCreate,
)
from engagements.schemas.notification import NotificationCount, NotificationCreate, NotificationRead

__all__ = [
    "SuccessEnvelope",
    "TimestampedRead",
    "success",
    "AvailabilityRead",
    "BlockingContract",
    "HireCreate",
    "HireRead",
    "ReconcileResult",
    "FeedbackCreate",
    "FeedbackRead",
    "InterviewDetail",
    "InterviewPage",
    "InterviewRead",
    "InterviewScheduleCreate",
    "InterviewStatusUpdate",
    "InvitationRead",
    "InvitationResponseCreate",
    "NotificationCount",
    "NotificationCreate",
    "NotificationRead",
]
