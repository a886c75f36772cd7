# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Profile routes for the signed-in, verified user."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.auth import require_verified_email
from leflow_server.database import get_db
from leflow_server.api.schemas import (
    ChangePasswordRequest,
    MessageResponse,
    UpdateProfileRequest,
    UserResponse,
)
from leflow_server.models import User
from leflow_server.services import profile

router = APIRouter(prefix="/user", tags=["user"])


@router.post("/accept-terms", response_model=MessageResponse)
async def accept_terms(
    user: User = Depends(require_verified_email),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await profile.accept_terms(db, user)
    return MessageResponse(message="Pravila prihvaćena")


@router.put("/update-profile", response_model=UserResponse)
async def update_profile(
    data: UpdateProfileRequest,
    user: User = Depends(require_verified_email),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Change username (at most once per interval) and/or email."""
    updated = await profile.update_profile(db, user, username=data.username, email=data.email)
    return UserResponse.model_validate(updated)


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    user: User = Depends(require_verified_email),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await profile.change_password(db, user, data.current_password, data.new_password)
    return MessageResponse(message="Lozinka uspešno promenjena")
