"""Intake request persistence service."""
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from sqlalchemy.orm import selectinload

from app.db.models import IntakeRequest


class IntakePersistenceService:
    """Service for persisting intake requests."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_intake_request(
        self,
        call_id: int,
        path: str,
        caller_name: str,
        date_of_birth: str,
        preferred_when: str,
    ) -> IntakeRequest:
        """Store the details collected on a call."""
        intake = IntakeRequest(
            call_id=call_id,
            path=path,
            caller_name=caller_name,
            date_of_birth=date_of_birth,
            preferred_when=preferred_when,
            status="pending",
        )
        self.db.add(intake)
        await self.db.commit()
        await self.db.refresh(intake)
        return intake

    async def get_intake_request(self, intake_id: int) -> Optional[IntakeRequest]:
        """Get an intake request with its call loaded."""
        result = await self.db.execute(
            select(IntakeRequest)
            .options(selectinload(IntakeRequest.call))
            .where(IntakeRequest.id == intake_id)
        )
        return result.scalar_one_or_none()

    async def list_intake_requests(
        self, limit: int = 100, path: Optional[str] = None
    ) -> List[IntakeRequest]:
        """Most recent intake requests first, optionally for one path."""
        query = select(IntakeRequest).options(selectinload(IntakeRequest.call))
        if path:
            query = query.where(IntakeRequest.path == path)
        query = query.order_by(desc(IntakeRequest.created_at), desc(IntakeRequest.id)).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())
