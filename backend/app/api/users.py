"""
User management routes.

Admins create, list and edit accounts; every authenticated user can read
their own profile and the coworker directory used by the task pickers.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.pagination import PageParams, page_envelope, page_params
from app.core.middleware import get_current_user, require_admin
from app.core.security import hash_password
from app.db.models import User
from app.schemas.user import DirectoryEntry, UserCreate, UserResponse, UserUpdate
from app.services.directory import UserDirectory, get_user_directory

logger = logging.getLogger(__name__)

router = APIRouter()

_CONFLICT_MESSAGES = {
    "username": "Username '{}' is already taken",
    "email": "E-mail '{}' is already registered",
}


async def _reject_taken(
    directory: UserDirectory, username: str | None = None, email: str | None = None
) -> None:
    field = await directory.conflict(username, email)
    if field is not None:
        value = username if field == "username" else email
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=_CONFLICT_MESSAGES[field].format(value),
        )


@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user (admin only)",
)
async def create_user(
    body: UserCreate,
    directory: UserDirectory = Depends(get_user_directory),
    admin: User = Depends(require_admin),
) -> UserResponse:
    await _reject_taken(directory, body.username, body.email)

    user = await directory.add(
        User(
            username=body.username,
            password_hash=hash_password(body.password),
            role=body.role,
            full_name=body.full_name,
            email=body.email,
            is_active=True,
        )
    )
    logger.info("User %s created by admin %s", user.id, admin.id)
    return UserResponse.model_validate(user)


@router.get(
    "/",
    summary="List users with pagination and optional name search (admin only)",
)
async def list_users(
    search: str | None = Query(default=None, description="Partial, case-insensitive match"),
    paging: PageParams = Depends(page_params),
    directory: UserDirectory = Depends(get_user_directory),
    _admin: User = Depends(require_admin),
) -> dict:
    total, users = await directory.search(search, paging.offset, paging.per_page)
    return page_envelope(paging, total, [UserResponse.model_validate(u) for u in users])


@router.get(
    "/directory",
    response_model=list[DirectoryEntry],
    summary="Active coworkers (id + display name) for pickers",
)
async def list_directory(
    directory: UserDirectory = Depends(get_user_directory),
    _current_user: User = Depends(get_current_user),
) -> list[DirectoryEntry]:
    users = await directory.active_users()
    return [DirectoryEntry(id=u.id, name=u.display_name, email=u.email) for u in users]


@router.get("/me", response_model=UserResponse, summary="Profile of the authenticated user")
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user role, active status, name or e-mail (admin only)",
)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    directory: UserDirectory = Depends(get_user_directory),
    admin: User = Depends(require_admin),
) -> UserResponse:
    user = await directory.get(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    # an admin must not lock themselves out
    if user.id == admin.id:
        if body.is_active is False:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You cannot deactivate yourself",
            )
        if body.role is not None and body.role != "admin":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You cannot revoke your own admin role",
            )

    if body.email is not None and body.email != user.email:
        await _reject_taken(directory, email=body.email)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value)

    user = await directory.save(user)
    logger.info("User %s updated by admin %s: %s", user.id, admin.id, sorted(changes))
    return UserResponse.model_validate(user)
