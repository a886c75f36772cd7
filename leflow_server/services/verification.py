# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Registration and email verification.

A new account starts unverified with a six-digit code that expires after
``verification_code_ttl_minutes``. Registration is all-or-nothing: if the code
cannot be mailed the account is removed again.
"""

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.api.schemas import RegisterRequest
from leflow_server.auth import generate_verification_code, hash_password
from leflow_server.config import settings
from leflow_server.errors import (
    AccountBanned,
    AlreadyVerified,
    Conflict,
    EmailTaken,
    InvalidCode,
    NotFound,
    NotificationFailure,
    UsernameTaken,
)
from leflow_server.models import User
from leflow_server.models.timestamp import as_utc, utcnow
from leflow_server.services.email import EmailDeliveryError, Mailer, verification_email
from leflow_server.services.users import get_user, get_user_by_email, get_user_by_username

logger = logging.getLogger(__name__)


def _issue_code(user: User, now: datetime) -> str:
    code = generate_verification_code()
    user.verification_code = code
    user.verification_code_expires_at = now + timedelta(minutes=settings.verification_code_ttl_minutes)
    return code


async def register(
    db: AsyncSession,
    mailer: Mailer,
    data: RegisterRequest,
    now: datetime | None = None,
) -> User:
    """Create an unverified account and mail its verification code."""
    now = now or utcnow()
    if await get_user_by_username(db, data.username):
        raise UsernameTaken()
    if await get_user_by_email(db, data.email):
        raise EmailTaken()

    user = User(
        email=data.email,
        username=data.username,
        password_hash=hash_password(data.password),
        email_verified=False,
    )
    code = _issue_code(user, now)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent registration
        await db.rollback()
        raise Conflict("Korisničko ime ili email adresa već postoji") from e
    await db.refresh(user)

    subject, body = verification_email(code, settings.verification_code_ttl_minutes)
    try:
        message_id = await mailer.send(user.email, subject, body)
    except EmailDeliveryError as e:
        logger.error("Verification email for user id=%s failed, removing account: %s", user.id, e)
        await db.delete(user)
        await db.flush()
        raise NotificationFailure(
            "Greška pri slanju verifikacionog email-a. Molimo proverite da li je email adresa "
            "ispravna i pokušajte ponovo."
        ) from e
    logger.info("Registered user id=%s, verification email %s", user.id, message_id)
    return user


async def verify_email(
    db: AsyncSession,
    user_id: int,
    code: str,
    now: datetime | None = None,
) -> User:
    """Check ``code`` for ``user_id`` and mark the email verified.

    The verified state is committed even for banned accounts, which then get
    AccountBanned instead of a session.
    """
    now = now or utcnow()
    user = await get_user(db, user_id)
    if not user:
        raise NotFound("Korisnik nije pronađen")
    pending = user.verification_code
    supplied = code.strip()
    if not pending or not secrets.compare_digest(pending.encode(), supplied.encode()):
        logger.info("Wrong verification code for user id=%s", user_id)
        raise InvalidCode()
    expires_at = user.verification_code_expires_at
    if expires_at is None or as_utc(expires_at) <= now:
        logger.info("Expired verification code for user id=%s", user_id)
        raise InvalidCode()

    user.email_verified = True
    user.verification_code = None
    user.verification_code_expires_at = None
    await db.flush()
    logger.info("Email verified for user id=%s", user_id)
    if user.banned:
        await db.commit()
        raise AccountBanned()
    return user


async def resend_verification(
    db: AsyncSession,
    mailer: Mailer,
    email: str,
    now: datetime | None = None,
) -> None:
    """Replace the pending code with a fresh one and mail it."""
    now = now or utcnow()
    user = await get_user_by_email(db, email)
    if not user:
        raise NotFound("Korisnik sa ovim emailom nije pronađen")
    if user.email_verified:
        raise AlreadyVerified()
    code = _issue_code(user, now)
    await db.flush()
    subject, body = verification_email(code, settings.verification_code_ttl_minutes, resend=True)
    try:
        await mailer.send(user.email, subject, body)
    except EmailDeliveryError as e:
        logger.error("Resending verification email for user id=%s failed: %s", user.id, e)
        raise NotificationFailure("Greška pri slanju emaila") from e
