import logging
import uuid

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import LeadUpload
from app.db.session import get_db

logger = logging.getLogger(__name__)


class LeadUploadRepository:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def add(self, upload: LeadUpload) -> LeadUpload:
        self._db.add(upload)
        await self._db.commit()
        await self._db.refresh(upload)
        logger.info(
            "Lead upload stored [%s]: id=%s, source=%s, leads=%d",
            upload.file_name, upload.id, upload.lead_source, upload.total_leads,
        )
        return upload

    async def history(
        self, user_id: uuid.UUID | None, offset: int, limit: int
    ) -> tuple[int, list[LeadUpload]]:
        """Newest uploads first; ``user_id=None`` means every uploader."""
        stmt = select(LeadUpload)
        count_stmt = select(func.count(LeadUpload.id))
        if user_id is not None:
            stmt = stmt.where(LeadUpload.user_id == user_id)
            count_stmt = count_stmt.where(LeadUpload.user_id == user_id)

        total = int((await self._db.execute(count_stmt)).scalar() or 0)
        result = await self._db.execute(
            stmt.order_by(LeadUpload.upload_date.desc(), LeadUpload.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return total, list(result.scalars().all())


def get_lead_upload_repository(db: AsyncSession = Depends(get_db)) -> LeadUploadRepository:
    return LeadUploadRepository(db)
