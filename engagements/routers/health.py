"""Health check router."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from engagements.db.session import get_db

router = APIRouter()

BACKGROUND_JOBS = ("contract_sweep", "notification_dispatcher")


def _job_status(request: Request, name: str) -> Optional[dict]:
    job = getattr(request.app.state, name, None)
    return job.status() if job is not None else None


@router.get("/health")
async def health_check(request: Request, response: Response, db: AsyncSession = Depends(get_db)):
    """Liveness: store reachability and the state of each background job."""
    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
    except (SQLAlchemyError, OSError):
        db_ok = False

    if not db_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "api_ok": True,
        "db_ok": db_ok,
        "jobs": {name: _job_status(request, name) for name in BACKGROUND_JOBS},
    }
