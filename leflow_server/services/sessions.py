# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Login, logout and session lifecycle."""

import logging
import secrets
from datetime import timedelta

from fastapi import Response
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.auth import create_session_token, decode_token, verify_password
from leflow_server.config import settings
from leflow_server.errors import AccountBanned, InvalidCredentials
from leflow_server.models import LoginSession, User
from leflow_server.models.timestamp import utcnow
from leflow_server.services.users import get_user_by_email, get_user_by_username

logger = logging.getLogger(__name__)


async def authenticate(db: AsyncSession, identifier: str, password: str) -> User:
    """Check credentials. ``identifier`` is a username or, failing that, an email.

    Unknown user and wrong password raise the same error. The ban check runs
    only after the password matched.
    """
    user = await get_user_by_username(db, identifier)
    if user is None:
        user = await get_user_by_email(db, identifier)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for %r", identifier)
        raise InvalidCredentials()
    if user.banned:
        logger.info("Login refused for banned user id=%s", user.id)
        raise AccountBanned()
    return user


async def open_session(db: AsyncSession, user: User) -> str:
    """Create a session row for ``user`` and return its signed token."""
    expires_at = utcnow() + timedelta(minutes=settings.session_expire_minutes)
    login_session = LoginSession(
        id=secrets.token_urlsafe(32),
        user_id=user.id,
        expires_at=expires_at,
    )
    db.add(login_session)
    await db.flush()
    logger.info("Session opened for user id=%s", user.id)
    return create_session_token(login_session.id, user.id, expires_at)


async def close_session(db: AsyncSession, token: str | None) -> None:
    """Delete the session named by ``token``. Unknown or invalid tokens are ignored."""
    if not token:
        return
    payload = decode_token(token)
    if not payload or not payload.get("sid"):
        return
    await db.execute(delete(LoginSession).where(LoginSession.id == payload["sid"]))


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
