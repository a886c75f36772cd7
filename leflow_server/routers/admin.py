# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin API - users, moderation, giveaway toggle. Requires admin user."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.auth import require_admin
from leflow_server.database import get_db
from leflow_server.api.schemas import (
    AdminStatsResponse,
    CommentResponse,
    GiveawaySettingsResponse,
    GiveawayToggleRequest,
    MessageResponse,
    ProjectResponse,
    UserResponse,
)
from leflow_server.models import User
from leflow_server.services import admin as admin_service
from leflow_server.services import contest
from leflow_server.services.site_settings import get_giveaway_settings, set_giveaway_active
from leflow_server.services.users import list_users

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStatsResponse)
async def get_admin_stats(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminStatsResponse:
    """Row totals. Admin only."""
    return AdminStatsResponse(**await admin_service.get_stats(db))


@router.get("/users", response_model=list[UserResponse])
async def get_users(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    return [UserResponse.model_validate(u) for u in await list_users(db)]


@router.post("/users/{user_id}/ban", response_model=MessageResponse)
async def ban_user(
    user_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Ban a user. Their open sessions stop working on the next request."""
    await admin_service.set_banned(db, user_id, True)
    return MessageResponse(message="Korisnik je banovan")


@router.post("/users/{user_id}/unban", response_model=MessageResponse)
async def unban_user(
    user_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await admin_service.set_banned(db, user_id, False)
    return MessageResponse(message="Korisnik je odbanovan")


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a user with their projects, votes and comments."""
    await admin_service.remove_user(db, admin, user_id)
    return MessageResponse(message="Korisnik je obrisan")


@router.post("/users/{user_id}/toggle-admin", response_model=UserResponse)
async def toggle_admin(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await admin_service.toggle_admin_role(db, admin, user_id)
    return UserResponse.model_validate(user)


@router.get("/all-projects", response_model=list[ProjectResponse])
async def all_projects(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[ProjectResponse]:
    return [ProjectResponse(**r) for r in await contest.list_all_projects(db)]


@router.get("/pending-projects", response_model=list[ProjectResponse])
async def pending_projects(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[ProjectResponse]:
    return [ProjectResponse(**r) for r in await contest.list_pending_projects(db)]


@router.post("/projects/{project_id}/approve", response_model=MessageResponse)
async def approve_project(
    project_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await contest.approve_project(db, project_id)
    return MessageResponse(message="Projekat je odobren")


@router.delete("/projects/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Reject a project. Its votes and comments go with it."""
    await contest.delete_project(db, project_id)
    return MessageResponse(message="Projekat je obrisan")


@router.get("/comments", response_model=list[CommentResponse])
async def all_comments(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[CommentResponse]:
    return [CommentResponse(**r) for r in await contest.list_all_comments(db)]


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await contest.delete_comment(db, comment_id)
    return MessageResponse(message="Komentar je obrisan")


@router.post("/giveaway/toggle", response_model=GiveawaySettingsResponse)
async def toggle_giveaway(
    data: GiveawayToggleRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> GiveawaySettingsResponse:
    """Open or close the giveaway."""
    await set_giveaway_active(db, data.is_active)
    return GiveawaySettingsResponse(**await get_giveaway_settings(db))
