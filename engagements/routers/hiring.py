"""
Hiring router: contract creation, availability and the expiry sweep.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from engagements.core.dependencies import get_caller, get_contract_sweep, get_db, require_roles
from engagements.core.permissions import CallerIdentity, Roles
from engagements.errors import DependencyError
from engagements.schemas.base import success
from engagements.schemas.hiring import HireCreate, HireRead
from engagements.services.contract_service import ContractService

router = APIRouter(prefix="/hiring", tags=["Hiring"])


@router.post("/hire", status_code=status.HTTP_201_CREATED)
async def hire_freelancer(
    payload: HireCreate,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(require_roles([Roles.ASSOCIATE])),
):
    """
    Hire a recommended freelancer for one of the caller's requests.

    Fails with 409 when the freelancer already holds an active contract,
    naming the blocking project and its end date.
    """
    hire = await ContractService(db).create_hire(caller, payload)
    return success(
        "Freelancer hired successfully",
        {
            "hire_id": hire.id,
            "request_id": hire.request_id,
            "freelancer_id": hire.freelancer_id,
            "hire": HireRead.model_validate(hire),
        },
    )


@router.get("/availability/{freelancer_id}")
async def check_availability(
    freelancer_id: UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_caller),
):
    availability = await ContractService(db).check_availability(freelancer_id)
    return success(availability.message, availability)


@router.get("/freelancers/{freelancer_id}/expired")
async def list_expired_contracts(
    freelancer_id: UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(require_roles([Roles.ASSOCIATE, Roles.ADMIN])),
):
    """Active contracts already past their expected end, pending the next sweep."""
    contracts = await ContractService(db).list_expired(freelancer_id)
    return success(data=[HireRead.model_validate(c) for c in contracts])


@router.post("/check-expired-contracts")
async def check_expired_contracts(
    caller: CallerIdentity = Depends(require_roles([Roles.ADMIN])),
    sweep=Depends(get_contract_sweep),
):
    """Run the contract expiry sweep immediately."""
    result = await sweep.run_now()
    if not result["success"]:
        raise DependencyError("Contract expiry check failed", {"error": result["error"]})
    return success(result["message"], result)


@router.get("/scheduler-status")
async def scheduler_status(
    caller: CallerIdentity = Depends(require_roles([Roles.ADMIN])),
    sweep=Depends(get_contract_sweep),
):
    return success(data=sweep.status())
