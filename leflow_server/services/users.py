# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""User lookups and account deletion."""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.errors import NotFound
from leflow_server.models import Comment, LoginSession, Project, User, Vote

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await get_user(db, user_id)
    if not user:
        raise NotFound("Korisnik nije pronađen")
    return user


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """Delete an account and everything that references it.

    Order matters so no row is left pointing at a deleted parent:
    1. votes and comments on the user's projects (from anyone),
    2. the user's own votes and comments elsewhere (vote counts adjusted),
    3. the user's projects,
    4. sessions and the account itself.
    """
    own_projects = select(Project.id).where(Project.user_id == user_id)

    await db.execute(
        delete(Vote)
        .where(Vote.project_id.in_(own_projects))
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(Comment)
        .where(Comment.project_id.in_(own_projects))
        .execution_options(synchronize_session=False)
    )

    # At most one vote per (user, project), so each affected project loses exactly one
    voted_projects = select(Vote.project_id).where(Vote.user_id == user_id)
    await db.execute(
        update(Project)
        .where(Project.id.in_(voted_projects))
        .values(votes_count=Project.votes_count - 1)
        .execution_options(synchronize_session=False)
    )
    await db.execute(delete(Vote).where(Vote.user_id == user_id))
    await db.execute(delete(Comment).where(Comment.user_id == user_id))

    await db.execute(delete(Project).where(Project.user_id == user_id))

    await db.execute(delete(LoginSession).where(LoginSession.user_id == user_id))
    await db.execute(delete(User).where(User.id == user_id))
    await db.flush()
    logger.info("Deleted user id=%s", user_id)
