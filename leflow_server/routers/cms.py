# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""CMS routes. Reads are public, writes are admin only."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.auth import require_admin
from leflow_server.database import get_db
from leflow_server.api.schemas import (
    CmsContentResponse,
    CmsContentUpsert,
    CmsMediaResponse,
    CmsMediaUpsert,
    MessageResponse,
)
from leflow_server.models import User
from leflow_server.services import cms

router = APIRouter(prefix="/cms", tags=["cms"])


@router.get("/content", response_model=list[CmsContentResponse])
async def get_content(
    page: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[CmsContentResponse]:
    return [CmsContentResponse.model_validate(c) for c in await cms.list_content(db, page)]


@router.post("/content", response_model=list[CmsContentResponse])
async def upsert_content_batch(
    items: list[CmsContentUpsert],
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[CmsContentResponse]:
    rows = await cms.upsert_content_batch(db, items)
    return [CmsContentResponse.model_validate(c) for c in rows]


@router.put("/content/single", response_model=CmsContentResponse)
async def upsert_content(
    item: CmsContentUpsert,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CmsContentResponse:
    row = await cms.upsert_content(db, item.page, item.section, item.content_key, item.content_value)
    return CmsContentResponse.model_validate(row)


@router.delete("/team-member/{member_index}", response_model=MessageResponse)
async def delete_team_member(
    member_index: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Remove all text entries of one team member."""
    await cms.delete_team_member(db, member_index)
    return MessageResponse(message="Član tima je obrisan")


@router.get("/media", response_model=list[CmsMediaResponse])
async def get_media(
    page: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[CmsMediaResponse]:
    return [CmsMediaResponse.model_validate(m) for m in await cms.list_media(db, page)]


@router.post("/media", response_model=CmsMediaResponse)
async def upsert_media(
    item: CmsMediaUpsert,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CmsMediaResponse:
    """Record the stored path of an uploaded image."""
    row = await cms.upsert_media(db, item.page, item.section, item.asset_key, item.file_path)
    return CmsMediaResponse.model_validate(row)


@router.delete("/media/{media_id}", response_model=MessageResponse)
async def delete_media(
    media_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await cms.delete_media(db, media_id)
    return MessageResponse(message="Medij je obrisan")
