# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Database models."""

from leflow_server.models.base import Base
from leflow_server.models.user import User, UserRole
from leflow_server.models.login_session import LoginSession
from leflow_server.models.project import Project
from leflow_server.models.vote import Vote
from leflow_server.models.comment import Comment
from leflow_server.models.setting import Setting
from leflow_server.models.contact import ContactSubmission
from leflow_server.models.cms import CmsContent, CmsMedia

__all__ = [
    "Base",
    "User",
    "UserRole",
    "LoginSession",
    "Project",
    "Vote",
    "Comment",
    "Setting",
    "ContactSubmission",
    "CmsContent",
    "CmsMedia",
]
