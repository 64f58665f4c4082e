"""Intake request API endpoints."""
import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import require_auth
from app.db.database import get_db
from app.services.ivr.stages import CallPath
from app.services.persistence.intakes import IntakePersistenceService

router = APIRouter(dependencies=[Depends(require_auth)])
logger = logging.getLogger(__name__)


class IntakeResponse(BaseModel):
    """Intake request response model."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    call_sid: str
    path: str
    caller_name: str
    date_of_birth: str
    preferred_when: str
    status: str
    created_at: datetime


def to_response(intake) -> IntakeResponse:
    return IntakeResponse(
        id=intake.id,
        call_sid=intake.call.call_sid,
        path=intake.path,
        caller_name=intake.caller_name,
        date_of_birth=intake.date_of_birth,
        preferred_when=intake.preferred_when,
        status=intake.status,
        created_at=intake.created_at,
    )


@router.get("/api/intakes", response_model=List[IntakeResponse])
async def list_intakes(
    limit: int = Query(100, ge=1, le=500),
    path: Optional[CallPath] = None,
    db: AsyncSession = Depends(get_db),
):
    """List the most recent intake requests."""
    try:
        service = IntakePersistenceService(db)
        intakes = await service.list_intake_requests(
            limit=limit, path=path.value if path else None
        )
        logger.info(f"[INTAKES] Returning {len(intakes)} intake request(s)")
        return [to_response(intake) for intake in intakes]
    except Exception as e:
        logger.error(
            f"[INTAKES] Error listing intake requests - Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Error listing intake requests")


@router.get("/api/intakes/{intake_id}", response_model=IntakeResponse)
async def get_intake(intake_id: int, db: AsyncSession = Depends(get_db)):
    """Get one intake request."""
    intake = await IntakePersistenceService(db).get_intake_request(intake_id)
    if intake is None:
        raise HTTPException(status_code=404, detail="Intake request not found")
    return to_response(intake)
