# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Contact form submission model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leflow_server.models.base import Base
from leflow_server.models.timestamp import TimestampMixin


class ContactSubmission(Base, TimestampMixin):
    """Booking/enquiry sent through the contact page."""

    __tablename__ = "contact_submissions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(64), nullable=False)
    service: Mapped[str] = mapped_column(String(255), nullable=False)
    preferred_date: Mapped[str | None] = mapped_column(String(64), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
