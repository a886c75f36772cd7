# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Editable page text and image paths."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.errors import NotFound
from leflow_server.models import CmsContent, CmsMedia
from leflow_server.models.timestamp import utcnow

logger = logging.getLogger(__name__)

DEFAULT_CONTENT: list[tuple[str, str, str, str]] = [
    ("home", "hero", "title", "Studio LeFlow"),
    ("home", "hero", "subtitle", "Profesionalna Muzička Produkcija"),
    ("home", "hero", "description", "Mix • Master • Instrumentali • Video Produkcija"),
    ("home", "services", "service_1_title", "Snimanje & Mix/Master"),
    (
        "home",
        "services",
        "service_1_description",
        "Profesionalno snimanje vokala i instrumenata u akustički tretiranom studiju",
    ),
    ("home", "services", "service_2_title", "Instrumentali & Gotove Pesme"),
    (
        "home",
        "services",
        "service_2_description",
        "Kreiranje originalnih bitova i kompletna produkcija vaših pesama",
    ),
    ("home", "services", "service_3_title", "Video Produkcija"),
    ("home", "services", "service_3_description", "Snimanje i editing profesionalnih muzičkih spotova"),
    ("home", "cta", "title", "Spremni za Vašu Sledeću Produkciju?"),
    ("home", "cta", "description", "Zakažite besplatnu konsultaciju i razgovarajmo o vašoj muzičkoj viziji"),
]


async def list_content(db: AsyncSession, page: str | None = None) -> list[CmsContent]:
    stmt = select(CmsContent)
    if page:
        stmt = stmt.where(CmsContent.page == page)
    stmt = stmt.order_by(CmsContent.page, CmsContent.section, CmsContent.content_key)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def upsert_content(db: AsyncSession, page: str, section: str, key: str, value: str) -> CmsContent:
    result = await db.execute(
        select(CmsContent).where(
            CmsContent.page == page,
            CmsContent.section == section,
            CmsContent.content_key == key,
        )
    )
    row = result.scalar_one_or_none()
    if row:
        row.content_value = value
        row.updated_at = utcnow()
    else:
        row = CmsContent(page=page, section=section, content_key=key, content_value=value)
        db.add(row)
    await db.flush()
    await db.refresh(row)
    return row


async def upsert_content_batch(db: AsyncSession, items: list) -> list[CmsContent]:
    """Upsert every item (objects with page/section/content_key/content_value) in order."""
    return [
        await upsert_content(db, item.page, item.section, item.content_key, item.content_value)
        for item in items
    ]


async def delete_team_member(db: AsyncSession, member_index: int) -> int:
    """Remove every ``team/members`` entry whose key starts with ``member_<n>_``."""
    prefix = f"member_{member_index}_"
    result = await db.execute(
        delete(CmsContent).where(
            CmsContent.page == "team",
            CmsContent.section == "members",
            CmsContent.content_key.startswith(prefix, autoescape=True),
        )
    )
    logger.info("Deleted %s CMS entries for team member %s", result.rowcount, member_index)
    return result.rowcount


async def list_media(db: AsyncSession, page: str | None = None) -> list[CmsMedia]:
    stmt = select(CmsMedia)
    if page:
        stmt = stmt.where(CmsMedia.page == page)
    stmt = stmt.order_by(CmsMedia.page, CmsMedia.section, CmsMedia.asset_key)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def upsert_media(db: AsyncSession, page: str, section: str, asset_key: str, file_path: str) -> CmsMedia:
    result = await db.execute(
        select(CmsMedia).where(
            CmsMedia.page == page,
            CmsMedia.section == section,
            CmsMedia.asset_key == asset_key,
        )
    )
    row = result.scalar_one_or_none()
    if row:
        row.file_path = file_path
        row.updated_at = utcnow()
    else:
        row = CmsMedia(page=page, section=section, asset_key=asset_key, file_path=file_path)
        db.add(row)
    await db.flush()
    await db.refresh(row)
    return row


async def delete_media(db: AsyncSession, media_id: int) -> None:
    result = await db.execute(delete(CmsMedia).where(CmsMedia.id == media_id))
    if result.rowcount == 0:
        raise NotFound("Medij nije pronađen")


async def seed_default_content(db: AsyncSession) -> int:
    """Insert the default home page text if the table is empty. Returns rows added."""
    existing = await db.execute(select(CmsContent.id).limit(1))
    if existing.first() is not None:
        logger.info("CMS content already present, skipping seed")
        return 0
    for page, section, key, value in DEFAULT_CONTENT:
        db.add(CmsContent(page=page, section=section, content_key=key, content_value=value))
    await db.flush()
    logger.info("Seeded %s CMS content entries", len(DEFAULT_CONTENT))
    return len(DEFAULT_CONTENT)
