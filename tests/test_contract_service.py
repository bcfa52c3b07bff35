import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from conftest import seed_request
from engagements.core.permissions import CallerIdentity, Roles
from engagements.errors import ConflictError, ForbiddenError, InvalidError, NotFoundError
from engagements.models.activity_log import ActivityLog
from engagements.models.associate_request import RequestResponse
from engagements.models.hire_record import HireRecord, HireStatus
from engagements.schemas.hiring import HireCreate
from engagements.services.contract_service import ContractService


def _hire_payload(pair, **overrides) -> HireCreate:
    data = {
        "request_id": pair.request_id,
        "freelancer_id": pair.freelancer_id,
        "project_title": "Pipeline rebuild",
        "agreed_terms": "Weekly invoicing, net 15",
        "agreed_rate": Decimal("85.00"),
        "rate_type": "hourly",
        "start_date": date(2026, 3, 2),
        "expected_end_date": date(2026, 6, 30),
        "contract_document_ref": "contracts/pipeline-rebuild.pdf",
    }
    data.update(overrides)
    return HireCreate(**data)


async def _add_contract(db, pair, expected_end_date, status=HireStatus.ACTIVE, title="Existing work"):
    hire = HireRecord(
        request_id=pair.request_id,
        associate_id=pair.associate_id,
        freelancer_id=pair.freelancer_id,
        project_title=title,
        agreed_terms="terms",
        expected_end_date=expected_end_date,
        status=status,
        contract_document_ref="contracts/existing.pdf",
    )
    db.add(hire)
    await db.commit()
    return hire.id


async def _active_count(db, freelancer_id) -> int:
    result = await db.execute(
        select(func.count(HireRecord.id)).where(
            HireRecord.freelancer_id == freelancer_id,
            HireRecord.status == HireStatus.ACTIVE,
        )
    )
    return result.scalar_one()


@pytest.mark.db
@pytest.mark.asyncio
async def test_reconcile_expired_completes_overdue_contracts_once(db, pair, clock):
    today = clock().date()
    overdue_id = await _add_contract(db, pair, today - timedelta(days=3))
    other = await seed_request(db)
    open_ended_id = await _add_contract(db, other, None)
    future_id = await _add_contract(db, other, today + timedelta(days=10))

    service = ContractService(db, clock=clock)
    assert await service.reconcile_expired() == 1
    assert await service.reconcile_expired() == 0

    rows = {
        h.id: h
        for h in (await db.execute(select(HireRecord).execution_options(populate_existing=True))).scalars()
    }
    assert rows[overdue_id].status == HireStatus.COMPLETED
    assert rows[overdue_id].actual_end_date == today
    assert rows[open_ended_id].status == HireStatus.ACTIVE
    assert rows[open_ended_id].actual_end_date is None
    assert rows[future_id].status == HireStatus.ACTIVE


@pytest.mark.db
@pytest.mark.asyncio
async def test_contract_ending_today_neither_blocks_nor_completes(db, pair, clock):
    contract_id = await _add_contract(db, pair, clock().date())
    service = ContractService(db, clock=clock)

    availability = await service.check_availability(pair.freelancer_id)

    assert availability.is_available is True
    contract = await db.get(HireRecord, contract_id, populate_existing=True)
    assert contract.status == HireStatus.ACTIVE


@pytest.mark.db
@pytest.mark.asyncio
async def test_check_availability_lists_blocking_contracts(db, pair, clock):
    await _add_contract(db, pair, clock().date() + timedelta(days=20), title="Mobile app")
    service = ContractService(db, clock=clock)

    availability = await service.check_availability(pair.freelancer_id)

    assert availability.is_available is False
    assert [c.project_title for c in availability.active_contracts] == ["Mobile app"]
    assert "Mobile app" in availability.message


@pytest.mark.db
@pytest.mark.asyncio
async def test_check_availability_reconciles_before_answering(db, pair, clock):
    await _add_contract(db, pair, clock().date() - timedelta(days=1))
    service = ContractService(db, clock=clock)

    expired = await service.list_expired(pair.freelancer_id)
    assert len(expired) == 1

    availability = await service.check_availability(pair.freelancer_id)

    assert availability.is_available is True
    assert await service.list_expired(pair.freelancer_id) == []


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_hire_records_contract_response_and_activity(db, pair, clock):
    db.add(RequestResponse(request_id=pair.request_id, freelancer_id=pair.freelancer_id, associate_response="pending"))
    await db.commit()

    hire = await ContractService(db, clock=clock).create_hire(pair.associate, _hire_payload(pair))

    assert hire.status == HireStatus.ACTIVE
    assert hire.associate_id == pair.associate_id
    assert hire.hire_date == clock()

    responses = (
        await db.execute(
            select(RequestResponse)
            .where(RequestResponse.request_id == pair.request_id)
            .execution_options(populate_existing=True)
        )
    ).scalars().all()
    assert len(responses) == 1
    assert responses[0].associate_response == "hired"

    activity = (await db.execute(select(ActivityLog))).scalars().all()
    assert [a.activity_type for a in activity] == ["freelancer_hired"]


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_hire_inserts_response_when_missing(db, pair, clock):
    await ContractService(db, clock=clock).create_hire(pair.associate, _hire_payload(pair))

    response = (await db.execute(select(RequestResponse))).scalar_one()
    assert response.associate_response == "hired"
    assert response.freelancer_id == pair.freelancer_id


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_hire_rejects_busy_freelancer_with_blocking_details(db, pair, clock):
    service = ContractService(db, clock=clock)
    await service.create_hire(pair.associate, _hire_payload(pair))

    other = await seed_request(db, freelancer_id=pair.freelancer_id)
    with pytest.raises(ConflictError) as exc_info:
        await service.create_hire(other.associate, _hire_payload(other, project_title="Second gig"))

    blocking = exc_info.value.details["active_contracts"]
    assert blocking[0]["project_title"] == "Pipeline rebuild"
    assert blocking[0]["expected_end_date"] == "2026-06-30"
    assert await _active_count(db, pair.freelancer_id) == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_hire_rejects_duplicate_for_same_request(db, pair, clock):
    service = ContractService(db, clock=clock)
    await service.create_hire(pair.associate, _hire_payload(pair, expected_end_date=None))

    with pytest.raises(ConflictError):
        await service.create_hire(pair.associate, _hire_payload(pair))
    assert await _active_count(db, pair.freelancer_id) == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_hire_succeeds_once_previous_contract_expired(db, pair, clock):
    previous = await seed_request(db, freelancer_id=pair.freelancer_id)
    await _add_contract(db, previous, clock().date() - timedelta(days=2))

    hire = await ContractService(db, clock=clock).create_hire(pair.associate, _hire_payload(pair))

    assert hire.status == HireStatus.ACTIVE
    assert await _active_count(db, pair.freelancer_id) == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_hire_precondition_errors(db, pair, clock):
    service = ContractService(db, clock=clock)
    stranger = CallerIdentity(user_id=uuid.uuid4(), role=Roles.ASSOCIATE)

    with pytest.raises(NotFoundError):
        await service.create_hire(pair.associate, _hire_payload(pair, request_id=uuid.uuid4()))

    with pytest.raises(ForbiddenError):
        await service.create_hire(stranger, _hire_payload(pair))

    with pytest.raises(ForbiddenError):
        await service.create_hire(pair.associate, _hire_payload(pair, freelancer_id=uuid.uuid4()))

    with pytest.raises(ForbiddenError):
        await service.create_hire(pair.freelancer, _hire_payload(pair))

    assert await _active_count(db, pair.freelancer_id) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_hire_validates_payload(db, pair, clock):
    service = ContractService(db, clock=clock)

    with pytest.raises(InvalidError) as exc_info:
        await service.create_hire(pair.associate, _hire_payload(pair, project_title=" ", contract_document_ref=None))
    assert exc_info.value.details["missing"] == ["project_title", "contract_document_ref"]

    with pytest.raises(InvalidError):
        await service.create_hire(
            pair.associate,
            _hire_payload(pair, start_date=date(2026, 5, 1), expected_end_date=date(2026, 4, 1)),
        )
