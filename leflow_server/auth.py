# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Authentication: password hashing, verification codes, session tokens and
the request dependencies that resolve the current user."""

import logging
import secrets
from datetime import datetime
from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.crypto.scrypt import scrypt
from passlib.utils import consteq
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.config import settings
from leflow_server.database import get_db
from leflow_server.errors import AccountBanned, AdminRequired, Unauthorized, VerificationRequired
from leflow_server.models import LoginSession, User
from leflow_server.models.timestamp import utcnow

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# scrypt cost parameters (N, r, p) and derived key length in bytes
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_KEYLEN = 64


class PasswordFormatError(ValueError):
    """Stored password hash is not in ``<hex digest>.<salt>`` form."""


def _derive(password: str, salt: str) -> bytes:
    return scrypt(password.encode("utf-8"), salt.encode("utf-8"), SCRYPT_N, SCRYPT_R, SCRYPT_P, SCRYPT_KEYLEN)


def hash_password(password: str) -> str:
    """Hash a password for storage as ``<hex digest>.<hex salt>``."""
    salt = secrets.token_hex(16)
    return f"{_derive(password, salt).hex()}.{salt}"


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against its stored hash in constant time.

    Returns False on mismatch. Raises PasswordFormatError when the stored
    value is malformed.
    """
    digest_hex, sep, salt = hashed.partition(".")
    if not sep or not digest_hex or not salt:
        raise PasswordFormatError("Invalid password format")
    salt = salt.split(".", 1)[0]
    try:
        expected = bytes.fromhex(digest_hex)
    except ValueError as e:
        raise PasswordFormatError("Invalid password format") from e
    return consteq(expected, _derive(plain, salt))


def generate_verification_code() -> str:
    """Six-digit numeric code, uniform over 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


def create_session_token(session_id: str, user_id: int, expires_at: datetime) -> str:
    """Sign a token naming the server-side session. Carries no role or ban state."""
    to_encode: dict[str, Any] = {"sub": str(user_id), "sid": session_id, "exp": expires_at}
    return jwt.encode(to_encode, settings.session_secret, algorithm=settings.session_algorithm)


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a session token."""
    try:
        return jwt.decode(
            token, settings.session_secret, algorithms=[settings.session_algorithm]
        )
    except JWTError:
        return None


def get_token_from_request(
    request: Request, credentials: HTTPAuthorizationCredentials | None = None
) -> str | None:
    """Extract the session token from a Bearer header or the session cookie."""
    if credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


async def _load_session_user(db: AsyncSession, token: str | None) -> User | None:
    if not token:
        return None
    payload = decode_token(token)
    if not payload or not payload.get("sid") or not payload.get("sub"):
        return None
    result = await db.execute(
        select(LoginSession).where(
            LoginSession.id == payload["sid"],
            LoginSession.expires_at > utcnow(),
        )
    )
    login_session = result.scalar_one_or_none()
    if not login_session or str(login_session.user_id) != payload["sub"]:
        return None
    result = await db.execute(select(User).where(User.id == login_session.user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the session to a fresh user record. Raises 401 if there is none.

    Role and ban status are read from the database on every request, so
    changes apply without re-login.
    """
    user = await _load_session_user(db, get_token_from_request(request, credentials))
    if user is None:
        raise Unauthorized()
    if user.banned:
        logger.info("Rejected session of banned user id=%s", user.id)
        raise AccountBanned()
    return user


async def require_verified_email(user: User = Depends(get_current_user)) -> User:
    """Dependency: require a verified email address."""
    if not user.email_verified:
        raise VerificationRequired()
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency: require admin role."""
    if not user.is_admin:
        raise AdminRequired()
    return user
