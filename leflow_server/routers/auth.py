# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Authentication API routes: registration, verification, login, logout."""

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.auth import bearer_scheme, get_current_user, get_token_from_request
from leflow_server.database import get_db
from leflow_server.api.schemas import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResendVerificationRequest,
    SessionResponse,
    UserResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from leflow_server.models import User
from leflow_server.rate_limit import rate_limit_auth_dep
from leflow_server.services import sessions, verification
from leflow_server.services.email import Mailer, get_mailer

router = APIRouter(tags=["auth"], dependencies=[Depends(rate_limit_auth_dep)])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> UserResponse:
    """Create an unverified account and email its verification code. No session is opened."""
    user = await verification.register(db, mailer, data)
    return UserResponse.model_validate(user)


@router.post("/verify-email", response_model=VerifyEmailResponse)
async def verify_email(
    data: VerifyEmailRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> VerifyEmailResponse:
    """Confirm the emailed code and sign the user in."""
    user = await verification.verify_email(db, data.user_id, data.code)
    token = await sessions.open_session(db, user)
    sessions.set_session_cookie(response, token)
    return VerifyEmailResponse(user=UserResponse.model_validate(user), access_token=token)


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    data: ResendVerificationRequest,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> MessageResponse:
    await verification.resend_verification(db, mailer, data.email)
    return MessageResponse(message="Novi verifikacioni kod je poslat na vaš email")


@router.post("/login", response_model=SessionResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """Authenticate by username or email. Sets the session cookie and returns the token."""
    user = await sessions.authenticate(db, data.username, data.password)
    token = await sessions.open_session(db, user)
    sessions.set_session_cookie(response, token)
    return SessionResponse(user=UserResponse.model_validate(user), access_token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """End the current session, if any. Always succeeds."""
    await sessions.close_session(db, get_token_from_request(request, credentials))
    sessions.clear_session_cookie(response)
    return MessageResponse(message="Uspešno ste se odjavili")


@router.get("/user", response_model=UserResponse)
async def current_user(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)
