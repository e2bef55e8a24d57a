"""
Seed script: creates tables and the initial admin account.

Usage:
    python -m app.db.seed
"""

import asyncio

from sqlalchemy import select

from app.core.config import settings
from app.core.security import hash_password
from app.db.models import Base, User
from app.db.session import AsyncSessionLocal, engine


async def create_admin(session) -> User:
    result = await session.execute(
        select(User).where(User.username == settings.ADMIN_USERNAME)
    )
    admin = result.scalar_one_or_none()
    if admin:
        if admin.role != "admin":
            admin.role = "admin"
            await session.flush()
            print(f"User '{admin.username}' already exists, promoted to admin.")
        else:
            print(f"Admin '{admin.username}' already exists, skipping.")
        return admin

    admin = User(
        username=settings.ADMIN_USERNAME,
        email=settings.ADMIN_EMAIL,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        role="admin",
        full_name="Administrator",
        is_active=True,
    )
    session.add(admin)
    await session.flush()
    print(f"Created admin user: id={admin.id}")
    return admin


async def main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        async with session.begin():
            await create_admin(session)
            print("Seed complete.")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
