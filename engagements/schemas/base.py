"""
Base Pydantic schemas with common fields.

These are templates that other schemas inherit from.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class TimestampedRead(BaseModel):
    """
    Base schema for reading stored records.

    Includes the auto-generated id and timestamps.
    """

    id: UUID
    created_at: datetime
    updated_at: datetime

    # This tells Pydantic to work with SQLAlchemy models
    model_config = ConfigDict(from_attributes=True)


class SuccessEnvelope(BaseModel):
    """Success half of the response envelope; failures use errors.build_error_payload."""

    success: bool = True
    message: Optional[str] = None
    data: Any = None


def success(message: Optional[str] = None, data: Any = None) -> dict:
    return SuccessEnvelope(message=message, data=data).model_dump(mode="json")
