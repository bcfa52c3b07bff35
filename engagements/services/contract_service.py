"""
Contract lifecycle: expiry reconciliation, availability and hiring.

A freelancer holds at most one active contract whose expected end date is
open or still ahead. Contracts that run past their expected end stay active
until the next reconciliation completes them, so every availability check
reconciles first.
"""

import logging
from datetime import date, datetime
from typing import Callable, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from engagements.core.permissions import CallerIdentity, Roles, ensure_role
from engagements.db.session import transaction
from engagements.errors import ConflictError, ForbiddenError, InvalidError, NotFoundError
from engagements.models.hire_record import HireRecord, HireStatus
from engagements.repositories.activity_log_repository import ActivityLogRepository
from engagements.repositories.hire_repository import HireRepository
from engagements.repositories.request_repository import RequestRepository
from engagements.schemas.hiring import AvailabilityRead, BlockingContract, HireCreate
from engagements.utils.time import utc_now, utc_today

logger = logging.getLogger(__name__)

HIRED_RESPONSE = "hired"


def describe_blocking(contracts: List[HireRecord]) -> str:
    """Human-readable reason a freelancer cannot take new work."""
    if not contracts:
        return "Freelancer is available for new work"
    parts = []
    for contract in contracts:
        if contract.expected_end_date:
            parts.append(f'"{contract.project_title}" until {contract.expected_end_date.isoformat()}')
        else:
            parts.append(f'"{contract.project_title}" with no end date')
    return "Freelancer is currently engaged on " + "; ".join(parts)


class ContractService:
    """Service for hire records and the single-active-engagement rule."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.hires = HireRepository(db)
        self.requests = RequestRepository(db)
        self.activity = ActivityLogRepository(db)

    def today(self) -> date:
        return utc_today(self.clock())

    async def reconcile_expired(self) -> int:
        """Complete every active contract whose expected end date has passed."""
        async with transaction(self.db):
            updated = await self.hires.complete_expired(self.today())

        if updated:
            logger.info("Marked %d expired contract(s) as completed", updated)
        else:
            logger.debug("No expired contracts to reconcile")
        return updated

    async def _availability(self, freelancer_id: UUID) -> AvailabilityRead:
        today = self.today()
        await self.hires.complete_expired(today)
        blocking = await self.hires.list_blocking(freelancer_id, today)
        return AvailabilityRead(
            freelancer_id=freelancer_id,
            is_available=not blocking,
            active_contracts=[BlockingContract.model_validate(c) for c in blocking],
            message=describe_blocking(blocking),
        )

    async def check_availability(self, freelancer_id: UUID) -> AvailabilityRead:
        """Reconcile, then report whether any active contract blocks the freelancer."""
        async with transaction(self.db):
            availability = await self._availability(freelancer_id)
        return availability

    async def list_expired(self, freelancer_id: UUID) -> List[HireRecord]:
        """Active contracts past their expected end that the next sweep will complete."""
        return await self.hires.list_expired(freelancer_id, self.today())

    def _validate(self, data: HireCreate) -> None:
        missing = [
            field
            for field in ("project_title", "agreed_terms", "contract_document_ref")
            if not (getattr(data, field) or "").strip()
        ]
        if missing:
            raise InvalidError(
                f"Missing required fields: {', '.join(missing)}",
                {"missing": missing},
            )
        if data.start_date and data.expected_end_date and data.expected_end_date < data.start_date:
            raise InvalidError(
                "expected_end_date cannot be before start_date",
                {"start_date": data.start_date.isoformat(), "expected_end_date": data.expected_end_date.isoformat()},
            )

    async def create_hire(self, caller: CallerIdentity, data: HireCreate) -> HireRecord:
        """
        Hire a recommended freelancer for one of the caller's requests.

        Every precondition is checked inside the transaction that inserts
        the contract; any failure rolls the whole operation back.

        Raises:
            InvalidError: required fields missing or dates inconsistent
            NotFoundError: request does not exist
            ForbiddenError: request not owned by caller, or freelancer not recommended
            ConflictError: already hired for this request, or freelancer unavailable
        """
        ensure_role(caller, [Roles.ASSOCIATE])
        self._validate(data)

        async with transaction(self.db):
            request = await self.requests.get_by_id(data.request_id)
            if not request:
                raise NotFoundError("Request not found", {"request_id": str(data.request_id)})
            if request.associate_id != caller.user_id:
                raise ForbiddenError("Request does not belong to this associate")

            recommendation = await self.requests.get_recommendation(
                data.request_id, data.freelancer_id, for_update=True
            )
            if not recommendation:
                raise ForbiddenError(
                    "Freelancer was not recommended for this request",
                    {"request_id": str(data.request_id), "freelancer_id": str(data.freelancer_id)},
                )

            await self.hires.lock_freelancer(data.freelancer_id)

            existing = await self.hires.get_active_for_pair(data.request_id, data.freelancer_id)
            if existing:
                raise ConflictError(
                    "Freelancer is already hired for this request",
                    {"hire_id": str(existing.id)},
                )

            availability = await self._availability(data.freelancer_id)
            if not availability.is_available:
                raise ConflictError(
                    availability.message,
                    {
                        "active_contracts": [
                            c.model_dump(mode="json") for c in availability.active_contracts
                        ]
                    },
                )

            now = self.clock()
            hire = await self.hires.create(
                HireRecord(
                    request_id=data.request_id,
                    associate_id=caller.user_id,
                    freelancer_id=data.freelancer_id,
                    project_title=data.project_title.strip(),
                    project_description=data.project_description,
                    agreed_terms=data.agreed_terms.strip(),
                    agreed_rate=data.agreed_rate,
                    rate_type=data.rate_type,
                    start_date=data.start_date or utc_today(now),
                    expected_end_date=data.expected_end_date,
                    status=HireStatus.ACTIVE,
                    associate_notes=data.associate_notes,
                    contract_document_ref=data.contract_document_ref.strip(),
                    hire_date=now,
                )
            )
            await self.requests.upsert_response(data.request_id, data.freelancer_id, HIRED_RESPONSE, now)
            await self.activity.record(
                caller.user_id,
                caller.role,
                "freelancer_hired",
                f"Hired freelancer {data.freelancer_id} for request {data.request_id}: {hire.project_title}",
            )

        logger.info(
            "Associate %s hired freelancer %s for request %s (hire %s)",
            caller.user_id,
            data.freelancer_id,
            data.request_id,
            hire.id,
        )
        return hire
