# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Site settings (giveaway toggle) from DB."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.models.setting import DEFAULT_SETTINGS, GIVEAWAY_ACTIVE_KEY, Setting

logger = logging.getLogger(__name__)


async def get_setting(db: AsyncSession, key: str) -> str | None:
    """Return the stored value for ``key``, else its default (or None)."""
    result = await db.execute(select(Setting).where(Setting.key == key))
    row = result.scalar_one_or_none()
    if row:
        return row.value
    return DEFAULT_SETTINGS.get(key)


async def set_setting(db: AsyncSession, key: str, value: str) -> None:
    """Insert or update ``key``."""
    result = await db.execute(select(Setting).where(Setting.key == key))
    row = result.scalar_one_or_none()
    if row:
        row.value = value
    else:
        db.add(Setting(key=key, value=value))
    await db.flush()


async def get_giveaway_settings(db: AsyncSession) -> dict:
    """Return ``{"is_active": bool}``."""
    return {"is_active": await get_setting(db, GIVEAWAY_ACTIVE_KEY) == "true"}


async def set_giveaway_active(db: AsyncSession, is_active: bool) -> None:
    await set_setting(db, GIVEAWAY_ACTIVE_KEY, "true" if is_active else "false")
    logger.info("Giveaway %s", "opened" if is_active else "closed")
