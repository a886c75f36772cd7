# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Contact form routes."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.auth import require_admin
from leflow_server.database import get_db
from leflow_server.api.schemas import ContactCreate, ContactResponse
from leflow_server.models import User
from leflow_server.rate_limit import check_contact_rate_limit, client_ip
from leflow_server.services.contact import list_contact_submissions, submit_contact
from leflow_server.services.email import Mailer, get_mailer

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_submission(
    data: ContactCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> ContactResponse:
    """Send an enquiry to the studio. Limited per client address."""
    check_contact_rate_limit(client_ip(request))
    submission = await submit_contact(db, mailer, data)
    return ContactResponse.model_validate(submission)


@router.get("", response_model=list[ContactResponse])
async def list_submissions(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[ContactResponse]:
    return [ContactResponse.model_validate(s) for s in await list_contact_submissions(db)]
