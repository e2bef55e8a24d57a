"""
Punch store access.

Rows are converted into validated ``PunchEvent`` models on the way out so
the aggregation code never sees raw ORM objects. Store failures and
timeouts surface as ``PunchFetchError``.
"""

import logging
import uuid
from collections import defaultdict
from datetime import datetime

from fastapi import Depends
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.models import Punch
from app.db.session import get_db
from app.schemas.punch import Direction, PunchEvent

logger = logging.getLogger(__name__)

# PostgreSQL message for SQLSTATE 57014 raised by statement_timeout
_STATEMENT_TIMEOUT = "canceling statement due to statement timeout"


class PunchFetchError(Exception):
    """The punch store could not be read."""


def next_direction(last: PunchEvent | None) -> Direction:
    """A new punch flips the user's last direction; the first one is IN."""
    if last is None or last.direction == "OUT":
        return "IN"
    return "OUT"


class PunchRepository:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _fetch(self, stmt) -> list[Punch]:
        timeout_ms = int(settings.PUNCH_FETCH_TIMEOUT_SEC * 1000)
        try:
            # server-side limit, scoped to the current transaction
            await self._db.execute(
                select(func.set_config("statement_timeout", str(timeout_ms), True))
            )
            result = await self._db.execute(stmt)
        except SQLAlchemyError as exc:
            await self._db.rollback()
            if _STATEMENT_TIMEOUT in str(exc):
                logger.error(
                    "Punch query timed out after %.1fs", settings.PUNCH_FETCH_TIMEOUT_SEC
                )
                raise PunchFetchError("Punch store timed out") from exc
            logger.exception("Punch query failed")
            raise PunchFetchError(f"Punch store unavailable: {exc.__class__.__name__}") from exc
        return list(result.scalars().all())

    @staticmethod
    def _to_events(rows: list[Punch]) -> list[PunchEvent]:
        events: list[PunchEvent] = []
        for row in rows:
            try:
                events.append(PunchEvent.model_validate(row))
            except ValidationError as exc:
                logger.warning("Skipping malformed punch id=%s: %s", row.id, exc.errors())
        return events

    async def fetch_punches(
        self, user_id: uuid.UUID, range_start: datetime, range_end: datetime
    ) -> list[PunchEvent]:
        stmt = select(Punch).where(
            Punch.user_id == user_id,
            Punch.timestamp >= range_start,
            Punch.timestamp < range_end,
        )
        return self._to_events(await self._fetch(stmt))

    async def fetch_team_punches(
        self, range_start: datetime, range_end: datetime
    ) -> dict[uuid.UUID, list[PunchEvent]]:
        stmt = select(Punch).where(
            Punch.timestamp >= range_start,
            Punch.timestamp < range_end,
        )
        grouped: dict[uuid.UUID, list[PunchEvent]] = defaultdict(list)
        for event in self._to_events(await self._fetch(stmt)):
            grouped[event.user_id].append(event)
        return dict(grouped)

    async def last_punch(self, user_id: uuid.UUID) -> PunchEvent | None:
        stmt = (
            select(Punch)
            .where(Punch.user_id == user_id)
            .order_by(Punch.timestamp.desc(), Punch.id.desc())
            .limit(1)
        )
        events = self._to_events(await self._fetch(stmt))
        return events[0] if events else None

    async def record(
        self, user_id: uuid.UUID, direction: Direction, timestamp: datetime
    ) -> PunchEvent:
        punch = Punch(user_id=user_id, timestamp=timestamp, direction=direction)
        self._db.add(punch)
        await self._db.commit()
        await self._db.refresh(punch)
        logger.info("Punch %s recorded for user %s at %s", direction, user_id, timestamp)
        return PunchEvent.model_validate(punch)


def get_punch_repository(db: AsyncSession = Depends(get_db)) -> PunchRepository:
    return PunchRepository(db)
