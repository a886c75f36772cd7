# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Giveaway API: public listing, submissions, votes and comments."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.auth import require_verified_email
from leflow_server.database import get_db
from leflow_server.api.schemas import (
    CommentCreate,
    CommentResponse,
    GiveawaySettingsResponse,
    ProjectCreate,
    ProjectResponse,
    VoteRequest,
    VoteResponse,
)
from leflow_server.models import User
from leflow_server.rate_limit import client_ip
from leflow_server.services import contest
from leflow_server.services.site_settings import get_giveaway_settings

router = APIRouter(prefix="/giveaway", tags=["giveaway"])


@router.get("/settings", response_model=GiveawaySettingsResponse)
async def giveaway_settings(db: AsyncSession = Depends(get_db)) -> GiveawaySettingsResponse:
    return GiveawaySettingsResponse(**await get_giveaway_settings(db))


@router.get("/projects", response_model=list[ProjectResponse])
async def list_projects(db: AsyncSession = Depends(get_db)) -> list[ProjectResponse]:
    """Approved projects, newest first."""
    rows = await contest.list_public_projects(db)
    return [ProjectResponse(**r) for r in rows]


@router.post("/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def submit_project(
    data: ProjectCreate,
    user: User = Depends(require_verified_email),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    """Submit this month's project. It stays hidden until approved."""
    return ProjectResponse(**await contest.submit_project(db, user, data))


@router.post("/vote", response_model=VoteResponse)
async def vote(
    data: VoteRequest,
    request: Request,
    user: User = Depends(require_verified_email),
    db: AsyncSession = Depends(get_db),
) -> VoteResponse:
    """Vote for a project, or take the vote back if already cast."""
    result = await contest.toggle_vote(db, user, data.project_id, client_ip(request))
    return VoteResponse(**result)


@router.get("/projects/{project_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    project_id: int,
    db: AsyncSession = Depends(get_db),
) -> list[CommentResponse]:
    rows = await contest.list_project_comments(db, project_id)
    return [CommentResponse(**r) for r in rows]


@router.post("/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    data: CommentCreate,
    user: User = Depends(require_verified_email),
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    return CommentResponse(**await contest.add_comment(db, user, data.project_id, data.text))
