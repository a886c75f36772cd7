# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Privileged account operations. Callers must already be admins."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.errors import ValidationFailed
from leflow_server.models import Comment, Project, User, UserRole, Vote
from leflow_server.services.users import delete_user, get_user_or_404

logger = logging.getLogger(__name__)


async def get_stats(db: AsyncSession) -> dict:
    """Row totals for the dashboard."""
    return {
        "total_users": await db.scalar(select(func.count()).select_from(User)) or 0,
        "total_projects": await db.scalar(select(func.count()).select_from(Project)) or 0,
        "total_votes": await db.scalar(select(func.count()).select_from(Vote)) or 0,
        "total_comments": await db.scalar(select(func.count()).select_from(Comment)) or 0,
    }


async def set_banned(db: AsyncSession, user_id: int, banned: bool) -> User:
    user = await get_user_or_404(db, user_id)
    user.banned = banned
    await db.flush()
    logger.warning("User id=%s %s", user_id, "banned" if banned else "unbanned")
    return user


async def toggle_admin_role(db: AsyncSession, admin: User, user_id: int) -> User:
    """Flip a user between user and admin. Admins cannot change their own role."""
    if user_id == admin.id:
        raise ValidationFailed("Ne možete ukloniti sebi admin privilegije")
    user = await get_user_or_404(db, user_id)
    user.role = UserRole.USER if user.role == UserRole.ADMIN else UserRole.ADMIN
    await db.flush()
    logger.warning("User id=%s role set to %s by admin id=%s", user_id, user.role.value, admin.id)
    return user


async def remove_user(db: AsyncSession, admin: User, user_id: int) -> None:
    """Delete another user's account. Admins cannot delete themselves."""
    if user_id == admin.id:
        raise ValidationFailed("Ne možete obrisati sami sebe")
    await get_user_or_404(db, user_id)
    await delete_user(db, user_id)
    logger.warning("User id=%s deleted by admin id=%s", user_id, admin.id)
