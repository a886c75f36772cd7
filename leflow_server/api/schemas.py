# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pydantic schemas for API request/response.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from leflow_server.models.cms import CMS_PAGES, CMS_SECTIONS
from leflow_server.models.user import UserRole


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _require_min_length(value: str, n: int, message: str) -> str:
    if len(value.strip()) < n:
        raise ValueError(message)
    return value


# Auth
class RegisterRequest(ApiModel):
    email: EmailStr
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        return _require_min_length(v, 3, "Korisničko ime mora imati najmanje 3 karaktera")

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Lozinka mora imati najmanje 8 karaktera")
        return v


class LoginRequest(ApiModel):
    # Username or email
    username: str
    password: str


class VerifyEmailRequest(ApiModel):
    user_id: int
    code: str = Field(pattern=r"^\s*[0-9]{6}\s*$")


class ResendVerificationRequest(ApiModel):
    email: str


class UserResponse(ApiModel):
    id: int
    email: str
    username: str
    role: UserRole
    banned: bool
    terms_accepted: bool
    email_verified: bool
    username_last_changed: datetime | None = None
    created_at: datetime


class SessionResponse(ApiModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class VerifyEmailResponse(SessionResponse):
    success: bool = True
    message: str = "Email uspešno verifikovan"


class MessageResponse(ApiModel):
    success: bool = True
    message: str


# Profile
class UpdateProfileRequest(ApiModel):
    username: str | None = None
    email: str | None = None


class ChangePasswordRequest(ApiModel):
    current_password: str = ""
    new_password: str = ""


# Giveaway
class GiveawaySettingsResponse(ApiModel):
    is_active: bool


class GiveawayToggleRequest(ApiModel):
    is_active: bool = Field(strict=True)


class ProjectCreate(ApiModel):
    title: str
    description: str = ""
    genre: str
    mp3_url: str

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _require_min_length(v, 3, "Naslov mora imati najmanje 3 karaktera")

    @field_validator("genre")
    @classmethod
    def _genre(cls, v: str) -> str:
        return _require_min_length(v, 1, "Izaberite žanr")

    @field_validator("mp3_url")
    @classmethod
    def _mp3_url(cls, v: str) -> str:
        parsed = urlparse(v.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Nevažeći URL")
        return v.strip()


class ProjectResponse(ApiModel):
    id: int
    title: str
    description: str
    genre: str
    mp3_url: str
    user_id: int
    username: str | None = None
    upload_date: datetime
    votes_count: int
    current_month: str
    approved: bool


class VoteRequest(ApiModel):
    project_id: int = Field(strict=True, gt=0)


class VoteResponse(ApiModel):
    action: Literal["added", "removed"]
    votes_count: int


class CommentCreate(ApiModel):
    project_id: int
    text: str


class CommentResponse(ApiModel):
    id: int
    project_id: int
    user_id: int
    username: str | None = None
    project_title: str | None = None
    text: str
    created_at: datetime


# Admin
class AdminStatsResponse(ApiModel):
    total_users: int
    total_projects: int
    total_votes: int
    total_comments: int


# Contact
class ContactCreate(ApiModel):
    name: str
    email: EmailStr
    phone: str
    service: str
    preferred_date: str | None = None
    message: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _require_min_length(v, 2, "Ime mora imati najmanje 2 karaktera")

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return _require_min_length(v, 6, "Unesite validan broj telefona")

    @field_validator("service")
    @classmethod
    def _service(cls, v: str) -> str:
        return _require_min_length(v, 1, "Izaberite uslugu")

    @field_validator("message")
    @classmethod
    def _message(cls, v: str) -> str:
        return _require_min_length(v, 10, "Poruka mora imati najmanje 10 karaktera")


class ContactResponse(ApiModel):
    id: int
    name: str
    email: str
    phone: str
    service: str
    preferred_date: str | None = None
    message: str
    created_at: datetime


# CMS
CmsPage = Literal[CMS_PAGES]
CmsSection = Literal[CMS_SECTIONS]


class CmsContentUpsert(ApiModel):
    page: CmsPage
    section: CmsSection
    content_key: str = Field(min_length=1)
    content_value: str


class CmsContentResponse(ApiModel):
    id: int
    page: str
    section: str
    content_key: str
    content_value: str
    updated_at: datetime


class CmsMediaUpsert(ApiModel):
    page: CmsPage
    section: CmsSection
    asset_key: str = Field(min_length=1)
    file_path: str = Field(min_length=1)


class CmsMediaResponse(ApiModel):
    id: int
    page: str
    section: str
    asset_key: str
    file_path: str
    updated_at: datetime
