# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Monthly giveaway: submissions, approval, votes and comments.

Rules enforced here:
- one project per user per calendar month ("YYYY-MM", UTC), approved or not;
- projects are hidden, unvotable and uncommentable until an admin approves them;
- voting twice toggles the vote off; one address may not back two different
  accounts on the same project;
- ``Project.votes_count`` always equals the number of vote rows for the
  project: every vote insert/delete is paired with a single-statement
  counter update in the same transaction.
"""

import logging
from datetime import datetime
from typing import Any, Literal

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.api.schemas import ProjectCreate
from leflow_server.errors import (
    DuplicateIpVote,
    EmptyText,
    MonthlyLimitExceeded,
    NotFound,
    TermsRequired,
    VerificationRequired,
)
from leflow_server.models import Comment, Project, User, Vote
from leflow_server.models.timestamp import as_utc, utcnow

logger = logging.getLogger(__name__)

PROJECT_NOT_FOUND = "Projekat nije pronađen"


def current_month(now: datetime | None = None) -> str:
    """Contest period token for ``now`` (default: current UTC time)."""
    return as_utc(now or utcnow()).strftime("%Y-%m")


def _require_participant(user: User, action: str) -> None:
    if not user.email_verified:
        raise VerificationRequired()
    if not user.terms_accepted:
        raise TermsRequired(f"Morate prihvatiti pravila pre {action}")


def _project_row(project: Project, username: str | None) -> dict[str, Any]:
    return {
        "id": project.id,
        "title": project.title,
        "description": project.description,
        "genre": project.genre,
        "mp3_url": project.mp3_url,
        "user_id": project.user_id,
        "username": username,
        "upload_date": project.upload_date,
        "votes_count": project.votes_count,
        "current_month": project.current_month,
        "approved": project.approved,
    }


async def _list_projects(db: AsyncSession, approved: bool | None) -> list[dict[str, Any]]:
    stmt = select(Project, User.username).outerjoin(User, User.id == Project.user_id)
    if approved is not None:
        stmt = stmt.where(Project.approved == approved)
    stmt = stmt.order_by(Project.upload_date.desc(), Project.id.desc())
    result = await db.execute(stmt)
    return [_project_row(p, username) for p, username in result.all()]


async def list_public_projects(db: AsyncSession) -> list[dict[str, Any]]:
    """Approved projects, most recent first."""
    return await _list_projects(db, approved=True)


async def list_all_projects(db: AsyncSession) -> list[dict[str, Any]]:
    return await _list_projects(db, approved=None)


async def list_pending_projects(db: AsyncSession) -> list[dict[str, Any]]:
    return await _list_projects(db, approved=False)


async def get_project(db: AsyncSession, project_id: int) -> Project | None:
    result = await db.execute(select(Project).where(Project.id == project_id))
    return result.scalar_one_or_none()


async def _get_approved_project(db: AsyncSession, project_id: int) -> Project:
    project = await get_project(db, project_id)
    if not project or not project.approved:
        raise NotFound(PROJECT_NOT_FOUND)
    return project


async def submit_project(
    db: AsyncSession,
    user: User,
    data: ProjectCreate,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Store a new, unapproved submission for the current month."""
    _require_participant(user, "učešća u giveaway-u")
    month = current_month(now)
    existing = await db.execute(
        select(Project.id).where(Project.user_id == user.id, Project.current_month == month)
    )
    if existing.first() is not None:
        raise MonthlyLimitExceeded()

    project = Project(
        title=data.title,
        description=data.description or "",
        genre=data.genre,
        mp3_url=data.mp3_url,
        user_id=user.id,
        current_month=month,
        approved=False,
    )
    if now is not None:
        project.upload_date = as_utc(now)
    db.add(project)
    try:
        await db.flush()
    except IntegrityError as e:
        # Concurrent submission won the (user_id, current_month) constraint
        await db.rollback()
        raise MonthlyLimitExceeded() from e
    await db.refresh(project)
    logger.info("User id=%s submitted project id=%s for %s", user.id, project.id, month)
    return _project_row(project, user.username)


async def approve_project(db: AsyncSession, project_id: int) -> None:
    """Make a project public. Approving an approved project is a no-op."""
    project = await get_project(db, project_id)
    if not project:
        raise NotFound(PROJECT_NOT_FOUND)
    if not project.approved:
        project.approved = True
        await db.flush()
        logger.info("Project id=%s approved", project_id)


async def delete_project(db: AsyncSession, project_id: int) -> None:
    """Reject/remove a project together with its votes and comments."""
    project = await get_project(db, project_id)
    if not project:
        raise NotFound(PROJECT_NOT_FOUND)
    await db.execute(delete(Vote).where(Vote.project_id == project_id))
    await db.execute(delete(Comment).where(Comment.project_id == project_id))
    await db.delete(project)
    await db.flush()
    logger.info("Project id=%s deleted", project_id)


async def _adjust_votes(db: AsyncSession, project_id: int, delta: int) -> int:
    await db.execute(
        update(Project)
        .where(Project.id == project_id)
        .values(votes_count=Project.votes_count + delta)
    )
    return await db.scalar(select(Project.votes_count).where(Project.id == project_id)) or 0


async def toggle_vote(
    db: AsyncSession,
    user: User,
    project_id: int,
    ip_address: str,
) -> dict[str, Any]:
    """Add the user's vote, or remove it if already cast.

    Removing always succeeds for the voter. Adding fails with DuplicateIpVote
    when another account already voted for the project from ``ip_address``.
    """
    _require_participant(user, "glasanja")
    await _get_approved_project(db, project_id)

    result = await db.execute(
        select(Vote).where(Vote.user_id == user.id, Vote.project_id == project_id)
    )
    existing = result.scalar_one_or_none()
    action: Literal["added", "removed"]
    if existing:
        await db.execute(delete(Vote).where(Vote.id == existing.id))
        votes_count = await _adjust_votes(db, project_id, -1)
        action = "removed"
    else:
        result = await db.execute(
            select(Vote.id).where(
                and_(
                    Vote.project_id == project_id,
                    Vote.ip_address == ip_address,
                    Vote.user_id != user.id,
                )
            )
        )
        if result.first() is not None:
            logger.warning(
                "Vote from user id=%s on project id=%s refused: address already used by another account",
                user.id,
                project_id,
            )
            raise DuplicateIpVote()
        db.add(Vote(user_id=user.id, project_id=project_id, ip_address=ip_address))
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise DuplicateIpVote() from e
        votes_count = await _adjust_votes(db, project_id, 1)
        action = "added"
    logger.info("Vote %s: user id=%s project id=%s", action, user.id, project_id)
    return {"action": action, "votes_count": votes_count}


async def add_comment(
    db: AsyncSession,
    user: User,
    project_id: int,
    text: str,
) -> dict[str, Any]:
    _require_participant(user, "komentarisanja")
    if not text or not text.strip():
        raise EmptyText()
    await _get_approved_project(db, project_id)
    comment = Comment(project_id=project_id, user_id=user.id, text=text.strip())
    db.add(comment)
    await db.flush()
    await db.refresh(comment)
    return {
        "id": comment.id,
        "project_id": comment.project_id,
        "user_id": comment.user_id,
        "username": user.username,
        "text": comment.text,
        "created_at": comment.created_at,
    }


async def list_project_comments(db: AsyncSession, project_id: int) -> list[dict[str, Any]]:
    """Comments on an approved project, newest first."""
    await _get_approved_project(db, project_id)
    result = await db.execute(
        select(Comment, User.username)
        .outerjoin(User, User.id == Comment.user_id)
        .where(Comment.project_id == project_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return [
        {
            "id": c.id,
            "project_id": c.project_id,
            "user_id": c.user_id,
            "username": username,
            "text": c.text,
            "created_at": c.created_at,
        }
        for c, username in result.all()
    ]


async def list_all_comments(db: AsyncSession) -> list[dict[str, Any]]:
    """Every comment with author and project title, newest first (admin view)."""
    result = await db.execute(
        select(Comment, User.username, Project.title)
        .outerjoin(User, User.id == Comment.user_id)
        .outerjoin(Project, Project.id == Comment.project_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return [
        {
            "id": c.id,
            "project_id": c.project_id,
            "project_title": title,
            "user_id": c.user_id,
            "username": username,
            "text": c.text,
            "created_at": c.created_at,
        }
        for c, username, title in result.all()
    ]


async def delete_comment(db: AsyncSession, comment_id: int) -> None:
    result = await db.execute(delete(Comment).where(Comment.id == comment_id))
    if result.rowcount == 0:
        raise NotFound("Komentar nije pronađen")
    logger.info("Comment id=%s deleted", comment_id)
