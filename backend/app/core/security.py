"""
Password hashing and signed session tokens.

Two kinds of token are issued for a user: a short-lived ``access`` token sent
as a Bearer header, and a ``refresh`` token kept in an HttpOnly cookie. Both
carry the user id in ``sub`` and the admin capability in ``adm``; the kind is
stored in ``type`` so one can never be used in place of the other.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Literal

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings

TokenKind = Literal["access", "refresh"]


class InvalidTokenError(Exception):
    """Token is malformed, expired, of the wrong kind or names no user."""


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    # accounts created without a password can never log in
    if not hashed:
        return False
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def token_lifetime(kind: TokenKind) -> timedelta:
    if kind == "refresh":
        return timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def issue_token(
    user_id: uuid.UUID,
    kind: TokenKind,
    *,
    is_admin: bool = False,
    expires_delta: timedelta | None = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "adm": is_admin,
        "type": kind,
        "iat": issued_at,
        "exp": issued_at + (expires_delta or token_lifetime(kind)),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def read_token(token: str, kind: TokenKind) -> uuid.UUID:
    """Return the user id of a valid ``kind`` token, else raise InvalidTokenError."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    if claims.get("type") != kind:
        raise InvalidTokenError(f"Expected a {kind} token, got {claims.get('type')!r}")

    try:
        return uuid.UUID(claims.get("sub") or "")
    except ValueError as exc:
        raise InvalidTokenError("Token subject is not a user id") from exc
