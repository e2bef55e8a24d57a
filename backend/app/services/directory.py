"""
User directory.

The ``users`` table is the only source of identities; names shown next to
punches, updates, uploads and tasks always come from here. Authentication,
the admin user screens and the coworker pickers all go through
``UserDirectory``.
"""

import logging
import uuid
from collections.abc import Iterable

from fastapi import Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User
from app.db.session import get_db

logger = logging.getLogger(__name__)


class UserDirectory:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._db.get(User, user_id)

    async def find_by_login(self, login: str) -> User | None:
        """Look a user up by username or e-mail."""
        result = await self._db.execute(
            select(User).where(or_(User.username == login, User.email == login))
        )
        return result.scalars().first()

    async def conflict(self, username: str | None, email: str | None) -> str | None:
        """Name the first of ``username``/``email`` already in use, if any."""
        if username is not None:
            taken = await self._db.execute(select(User.id).where(User.username == username))
            if taken.first() is not None:
                return "username"
        if email is not None:
            taken = await self._db.execute(select(User.id).where(User.email == email))
            if taken.first() is not None:
                return "email"
        return None

    async def add(self, user: User) -> User:
        self._db.add(user)
        return await self.save(user)

    async def save(self, user: User) -> User:
        await self._db.commit()
        await self._db.refresh(user)
        logger.info("Saved user %s (%s, active=%s)", user.username, user.role, user.is_active)
        return user

    async def search(
        self, text: str | None, offset: int, limit: int
    ) -> tuple[int, list[User]]:
        """One page of users matching ``text`` plus the total match count."""
        stmt = select(User)
        count_stmt = select(func.count(User.id))
        if text:
            pattern = f"%{text}%"
            matches = or_(
                User.full_name.ilike(pattern),
                User.username.ilike(pattern),
                User.email.ilike(pattern),
            )
            stmt = stmt.where(matches)
            count_stmt = count_stmt.where(matches)

        total = int((await self._db.execute(count_stmt)).scalar() or 0)
        result = await self._db.execute(
            stmt.order_by(User.full_name, User.username).offset(offset).limit(limit)
        )
        return total, list(result.scalars().all())

    async def active_users(self) -> list[User]:
        result = await self._db.execute(
            select(User).where(User.is_active == True)  # noqa: E712
        )
        return sorted(result.scalars().all(), key=lambda u: u.display_name.lower())

    async def display_names(self, user_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, str]:
        ids = set(user_ids)
        if not ids:
            return {}
        result = await self._db.execute(select(User).where(User.id.in_(ids)))
        return {u.id: u.display_name for u in result.scalars().all()}


def get_user_directory(db: AsyncSession = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)
