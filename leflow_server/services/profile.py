# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Self-service account changes: terms, username/email, password."""

import logging
import re
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.auth import hash_password, verify_password
from leflow_server.config import settings
from leflow_server.errors import EmailTaken, ValidationFailed
from leflow_server.models import User
from leflow_server.models.timestamp import as_utc, utcnow
from leflow_server.services.users import get_user_by_email, get_user_by_username

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


async def accept_terms(db: AsyncSession, user: User) -> None:
    user.terms_accepted = True
    await db.flush()


async def update_profile(
    db: AsyncSession,
    user: User,
    username: str | None = None,
    email: str | None = None,
    now: datetime | None = None,
) -> User:
    """Change username and/or email.

    A username may change once per ``username_change_interval_days``.
    """
    now = now or utcnow()
    username = username.strip() if username is not None else None
    email = email.strip() if email is not None else None
    if username is not None and len(username) < 3:
        raise ValidationFailed("Korisničko ime mora imati najmanje 3 karaktera")
    if email and not EMAIL_RE.match(email):
        raise ValidationFailed("Unesite validnu email adresu")

    if username and username != user.username:
        if user.username_last_changed:
            days_since = (now - as_utc(user.username_last_changed)).days
            interval = settings.username_change_interval_days
            if days_since < interval:
                raise ValidationFailed(
                    f"Možete promeniti korisničko ime tek za {interval - days_since} dana"
                )
        existing = await get_user_by_username(db, username)
        if existing and existing.id != user.id:
            raise ValidationFailed("Korisničko ime je već zauzeto")
        user.username = username
        user.username_last_changed = now

    if email and email != user.email:
        existing = await get_user_by_email(db, email)
        if existing and existing.id != user.id:
            raise EmailTaken("Email adresa je već zauzeta")
        user.email = email

    await db.flush()
    logger.info("Profile updated for user id=%s", user.id)
    return user


async def change_password(db: AsyncSession, user: User, current: str, new: str) -> None:
    if not current or not new:
        raise ValidationFailed("Trenutna i nova lozinka su obavezne")
    if len(new) < 6:
        raise ValidationFailed("Nova lozinka mora imati najmanje 6 karaktera")
    if not verify_password(current, user.password_hash):
        raise ValidationFailed("Trenutna lozinka nije tačna")
    user.password_hash = hash_password(new)
    await db.flush()
    logger.info("Password changed for user id=%s", user.id)
