"""
Request authentication dependencies.

``get_current_user`` turns the Bearer access token into an active ``User``.
``require_admin`` additionally demands the admin capability; it is the only
gate for admin routes.
"""

import logging
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import InvalidTokenError, read_token
from app.db.models import User
from app.services.directory import UserDirectory, get_user_directory

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    directory: UserDirectory = Depends(get_user_directory),
) -> User:
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        user_id = read_token(credentials.credentials, "access")
    except InvalidTokenError as exc:
        logger.debug("Rejected access token: %s", exc)
        raise _unauthorized() from exc

    user = await directory.get(user_id)
    if user is None:
        raise _unauthorized()
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return current_user


def resolve_user_id(requested: uuid.UUID | None, current_user: User) -> uuid.UUID:
    """
    Admins may look at any user's data; everyone else always gets their own id.
    """
    if current_user.is_admin and requested is not None:
        return requested
    return current_user.id
