"""Initial engagement schema: requests, contracts, interviews, notifications

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "associate_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("associate_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("contact_person", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_associate_requests_associate_id", "associate_requests", ["associate_id"])

    op.create_table(
        "freelancer_recommendations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "request_id",
            sa.Uuid(),
            sa.ForeignKey("associate_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("freelancer_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("request_id", "freelancer_id", name="uq_recommendation_request_freelancer"),
    )
    op.create_index("ix_freelancer_recommendations_request_id", "freelancer_recommendations", ["request_id"])
    op.create_index("ix_freelancer_recommendations_freelancer_id", "freelancer_recommendations", ["freelancer_id"])

    op.create_table(
        "request_responses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "request_id",
            sa.Uuid(),
            sa.ForeignKey("associate_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("freelancer_id", sa.Uuid(), nullable=False),
        sa.Column("associate_response", sa.String(length=30), nullable=False, server_default="pending"),
        sa.Column("response_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("request_id", "freelancer_id", name="uq_request_response_pair"),
    )
    op.create_index("ix_request_responses_request_id", "request_responses", ["request_id"])
    op.create_index("ix_request_responses_freelancer_id", "request_responses", ["freelancer_id"])

    op.create_table(
        "freelancer_hires",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("request_id", sa.Uuid(), sa.ForeignKey("associate_requests.id"), nullable=False),
        sa.Column("associate_id", sa.Uuid(), nullable=False),
        sa.Column("freelancer_id", sa.Uuid(), nullable=False),
        sa.Column("project_title", sa.String(length=255), nullable=False),
        sa.Column("project_description", sa.Text(), nullable=True),
        sa.Column("agreed_terms", sa.Text(), nullable=False),
        sa.Column("agreed_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("rate_type", sa.String(length=20), nullable=False, server_default="hourly"),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("expected_end_date", sa.Date(), nullable=True),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("associate_notes", sa.Text(), nullable=True),
        sa.Column("contract_document_ref", sa.String(length=500), nullable=False),
        sa.Column("hire_date", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_freelancer_hires_request_id", "freelancer_hires", ["request_id"])
    op.create_index("ix_freelancer_hires_associate_id", "freelancer_hires", ["associate_id"])
    op.create_index("ix_freelancer_hires_freelancer_id", "freelancer_hires", ["freelancer_id"])
    op.create_index("ix_freelancer_hires_freelancer_status", "freelancer_hires", ["freelancer_id", "status"])
    op.create_index("ix_freelancer_hires_status_expected_end", "freelancer_hires", ["status", "expected_end_date"])

    op.create_table(
        "interviews",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("request_id", sa.Uuid(), sa.ForeignKey("associate_requests.id"), nullable=False),
        sa.Column("associate_id", sa.Uuid(), nullable=False),
        sa.Column("freelancer_id", sa.Uuid(), nullable=False),
        sa.Column("interview_type", sa.String(length=20), nullable=False, server_default="video"),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("meeting_token", sa.String(length=255), nullable=True),
        sa.Column("location", sa.String(length=500), nullable=True),
        sa.Column("interview_notes", sa.Text(), nullable=True),
        sa.Column("associate_notes", sa.Text(), nullable=True),
        sa.Column("freelancer_notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="scheduled"),
        *_timestamps(),
    )
    op.create_index("ix_interviews_request_id", "interviews", ["request_id"])
    op.create_index("ix_interviews_associate_id", "interviews", ["associate_id"])
    op.create_index("ix_interviews_freelancer_id", "interviews", ["freelancer_id"])
    op.create_index("ix_interviews_scheduled_date", "interviews", ["scheduled_date"])
    op.create_index(
        "uq_interviews_open_pair",
        "interviews",
        ["request_id", "freelancer_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('scheduled', 'in_progress')"),
        sqlite_where=sa.text("status IN ('scheduled', 'in_progress')"),
    )

    op.create_table(
        "interview_invitations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "interview_id",
            sa.Uuid(),
            sa.ForeignKey("interviews.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("associate_id", sa.Uuid(), nullable=False),
        sa.Column("freelancer_id", sa.Uuid(), nullable=False),
        sa.Column("invitation_message", sa.Text(), nullable=True),
        sa.Column("invitation_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("response_notes", sa.Text(), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_interview_invitations_freelancer_id", "interview_invitations", ["freelancer_id"])

    op.create_table(
        "interview_feedback",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "interview_id",
            sa.Uuid(),
            sa.ForeignKey("interviews.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("evaluator_id", sa.Uuid(), nullable=False),
        sa.Column("evaluator_role", sa.String(length=20), nullable=False),
        sa.Column("technical_skills_rating", sa.Integer(), nullable=True),
        sa.Column("communication_rating", sa.Integer(), nullable=True),
        sa.Column("cultural_fit_rating", sa.Integer(), nullable=True),
        sa.Column("overall_rating", sa.Integer(), nullable=False),
        sa.Column("strengths", sa.Text(), nullable=True),
        sa.Column("areas_for_improvement", sa.Text(), nullable=True),
        sa.Column("detailed_feedback", sa.Text(), nullable=True),
        sa.Column("recommendation", sa.String(length=20), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("interview_id", "evaluator_id", name="uq_interview_feedback_evaluator"),
        sa.CheckConstraint("overall_rating BETWEEN 1 AND 5", name="ck_interview_feedback_overall_range"),
    )
    op.create_index("ix_interview_feedback_interview_id", "interview_feedback", ["interview_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("sender_id", sa.Uuid(), nullable=True),
        sa.Column("notification_type", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_due", "notifications", ["is_sent", "scheduled_for"])
    op.create_index("ix_notifications_user_created", "notifications", ["user_id", "created_at"])

    op.create_table(
        "activity_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("activity_type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="completed"),
        sa.Column("details", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_activity_log_user_id", "activity_log", ["user_id"])
    op.create_index("ix_activity_log_activity_type", "activity_log", ["activity_type"])


def downgrade() -> None:
    op.drop_table("activity_log")
    op.drop_table("notifications")
    op.drop_table("interview_feedback")
    op.drop_table("interview_invitations")
    op.drop_index("uq_interviews_open_pair", table_name="interviews")
    op.drop_table("interviews")
    op.drop_table("freelancer_hires")
    op.drop_table("request_responses")
    op.drop_table("freelancer_recommendations")
    op.drop_table("associate_requests")
