"""
Pydantic schemas for hiring and contract availability.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from engagements.schemas.base import TimestampedRead


class HireCreate(BaseModel):
    """
    Payload for an associate hiring a recommended freelancer.

    Required business fields are checked by the contract service so that
    missing values surface as the same `invalid` error as other bad input.
    """

    request_id: UUID
    freelancer_id: UUID
    project_title: Optional[str] = Field(None, max_length=255)
    project_description: Optional[str] = None
    agreed_terms: Optional[str] = None
    agreed_rate: Optional[Decimal] = Field(None, ge=0)
    rate_type: str = "hourly"
    start_date: Optional[date] = None
    expected_end_date: Optional[date] = None
    associate_notes: Optional[str] = None
    contract_document_ref: Optional[str] = Field(None, max_length=500)


class HireRead(TimestampedRead):
    request_id: UUID
    associate_id: UUID
    freelancer_id: UUID
    project_title: str
    project_description: Optional[str] = None
    agreed_terms: str
    agreed_rate: Optional[Decimal] = None
    rate_type: str
    start_date: Optional[date] = None
    expected_end_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    status: str
    associate_notes: Optional[str] = None
    contract_document_ref: str
    hire_date: datetime


class BlockingContract(BaseModel):
    """Enough of a contract to tell the caller why a freelancer is busy."""

    id: UUID
    project_title: str
    expected_end_date: Optional[date] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class AvailabilityRead(BaseModel):
    freelancer_id: UUID
    is_available: bool
    active_contracts: List[BlockingContract] = Field(default_factory=list)
    message: str


class ReconcileResult(BaseModel):
    success: bool
    updated_count: int = 0
    message: Optional[str] = None
    error: Optional[str] = None
