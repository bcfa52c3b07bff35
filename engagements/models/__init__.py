"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from engagements.models.activity_log import ActivityLog
from engagements.models.associate_request import AssociateRequest, FreelancerRecommendation, RequestResponse
from engagements.models.hire_record import HireRecord, HireStatus
from engagements.models.interview import (
    FeedbackRecommendation,
    Interview,
    InterviewFeedback,
    InterviewInvitation,
    InterviewStatus,
    InterviewType,
    InvitationStatus,
)
from engagements.models.notification import Notification, NotificationType

__all__ = [
    "ActivityLog",
    "AssociateRequest",
    "FreelancerRecommendation",
    "RequestResponse",
    "HireRecord",
    "HireStatus",
    "Interview",
    "InterviewInvitation",
    "InterviewFeedback",
    "InterviewStatus",
    "InterviewType",
    "InvitationStatus",
    "FeedbackRecommendation",
    "Notification",
    "NotificationType",
]
