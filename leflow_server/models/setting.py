# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Key-value site settings (giveaway toggle, etc.)."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leflow_server.models.base import Base
from leflow_server.models.timestamp import UpdatedAtMixin

GIVEAWAY_ACTIVE_KEY = "giveaway_active"

# Values used when a key has never been stored
DEFAULT_SETTINGS = {
    GIVEAWAY_ACTIVE_KEY: "false",
}


class Setting(Base, UpdatedAtMixin):
    """Key-value setting."""

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
