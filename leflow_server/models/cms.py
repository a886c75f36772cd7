# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""CMS models - editable page text and image paths."""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from leflow_server.models.base import Base
from leflow_server.models.timestamp import UpdatedAtMixin

CMS_PAGES = ("home", "team")
CMS_SECTIONS = ("hero", "services", "equipment", "cta", "members")


class CmsContent(Base, UpdatedAtMixin):
    """Text value for one (page, section, key) slot."""

    __tablename__ = "cms_content"
    __table_args__ = (UniqueConstraint("page", "section", "content_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    page: Mapped[str] = mapped_column(String(32), nullable=False)
    section: Mapped[str] = mapped_column(String(32), nullable=False)
    content_key: Mapped[str] = mapped_column(String(128), nullable=False)
    content_value: Mapped[str] = mapped_column(Text, nullable=False)


class CmsMedia(Base, UpdatedAtMixin):
    """Image path for one (page, section, asset) slot."""

    __tablename__ = "cms_media"
    __table_args__ = (UniqueConstraint("page", "section", "asset_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    page: Mapped[str] = mapped_column(String(32), nullable=False)
    section: Mapped[str] = mapped_column(String(32), nullable=False)
    asset_key: Mapped[str] = mapped_column(String(128), nullable=False)
    file_path: Mapped[str] = mapped_column(String(512), nullable=False)
