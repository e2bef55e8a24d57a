import logging

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status

from app.core.security import (
    InvalidTokenError,
    issue_token,
    read_token,
    token_lifetime,
    verify_password,
)
from app.db.models import User
from app.schemas.auth import LoginRequest, TokenResponse
from app.services.directory import UserDirectory, get_user_directory

logger = logging.getLogger(__name__)

router = APIRouter()

REFRESH_COOKIE = "refresh_token"


def _start_session(user: User, response: Response) -> TokenResponse:
    """Issue a fresh access token and rotate the refresh cookie."""
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=issue_token(user.id, "refresh", is_admin=user.is_admin),
        httponly=True,
        samesite="lax",
        secure=False,
        max_age=int(token_lifetime("refresh").total_seconds()),
    )
    return TokenResponse(
        access_token=issue_token(user.id, "access", is_admin=user.is_admin),
        is_admin=user.is_admin,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in with username or e-mail and password",
)
async def login(
    body: LoginRequest,
    response: Response,
    directory: UserDirectory = Depends(get_user_directory),
) -> TokenResponse:
    user = await directory.find_by_login(body.username)

    if user is None or not verify_password(body.password, user.password_hash):
        logger.warning("Failed login for '%s'", body.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    logger.info("User %s logged in", user.id)
    return _start_session(user, response)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token using HttpOnly cookie",
)
async def refresh_session(
    response: Response,
    directory: UserDirectory = Depends(get_user_directory),
    refresh_token: str | None = Cookie(default=None, alias=REFRESH_COOKIE),
) -> TokenResponse:
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Refresh token invalid or expired",
    )
    if not refresh_token:
        raise invalid

    try:
        user_id = read_token(refresh_token, "refresh")
    except InvalidTokenError as exc:
        logger.debug("Rejected refresh token: %s", exc)
        raise invalid from exc

    # new claims come from the current user row, not from the old token
    user = await directory.get(user_id)
    if user is None or not user.is_active:
        raise invalid

    return _start_session(user, response)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Logout")
async def logout(response: Response) -> None:
    response.delete_cookie(REFRESH_COOKIE)
