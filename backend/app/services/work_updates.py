import logging
import uuid
from datetime import date

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import WorkUpdate
from app.db.session import get_db

logger = logging.getLogger(__name__)


class WorkUpdateRepository:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def add(self, user_id: uuid.UUID, content: str, update_date: date) -> WorkUpdate:
        update = WorkUpdate(user_id=user_id, content=content, update_date=update_date)
        self._db.add(update)
        await self._db.commit()
        await self._db.refresh(update)
        logger.info("Work update %s stored for user %s (%s)", update.id, user_id, update_date)
        return update

    async def latest(self, user_id: uuid.UUID) -> WorkUpdate | None:
        result = await self._db.execute(
            select(WorkUpdate)
            .where(WorkUpdate.user_id == user_id)
            .order_by(WorkUpdate.update_date.desc(), WorkUpdate.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def exists_on(self, user_id: uuid.UUID, day: date) -> bool:
        result = await self._db.execute(
            select(WorkUpdate.id)
            .where(WorkUpdate.user_id == user_id, WorkUpdate.update_date == day)
            .limit(1)
        )
        return result.first() is not None

    async def count_between(self, user_id: uuid.UUID, date_from: date, date_to: date) -> int:
        """Updates dated in ``[date_from, date_to)``."""
        result = await self._db.execute(
            select(func.count(WorkUpdate.id)).where(
                WorkUpdate.user_id == user_id,
                WorkUpdate.update_date >= date_from,
                WorkUpdate.update_date < date_to,
            )
        )
        return int(result.scalar() or 0)

    async def team_counts(self, date_from: date, date_to: date) -> dict[uuid.UUID, int]:
        result = await self._db.execute(
            select(WorkUpdate.user_id, func.count(WorkUpdate.id))
            .where(
                WorkUpdate.update_date >= date_from,
                WorkUpdate.update_date < date_to,
            )
            .group_by(WorkUpdate.user_id)
        )
        return {user_id: int(count) for user_id, count in result.all()}


def get_work_update_repository(db: AsyncSession = Depends(get_db)) -> WorkUpdateRepository:
    return WorkUpdateRepository(db)
