# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Giveaway project (contest submission) model."""

from datetime import datetime
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from leflow_server.models.base import Base
from leflow_server.models.timestamp import utcnow


class Project(Base):
    """One MP3 submitted to the monthly giveaway. Hidden until approved."""

    __tablename__ = "projects"
    __table_args__ = (
        # One submission per user per contest month
        UniqueConstraint("user_id", "current_month"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    genre: Mapped[str] = mapped_column(String(64), nullable=False)
    mp3_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    votes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_month: Mapped[str] = mapped_column(String(7), nullable=False)  # "YYYY-MM"
    approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
