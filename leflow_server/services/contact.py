# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Contact form submissions."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leflow_server.api.schemas import ContactCreate
from leflow_server.config import settings
from leflow_server.models import ContactSubmission
from leflow_server.services.email import EmailDeliveryError, Mailer, contact_notice_email

logger = logging.getLogger(__name__)


async def submit_contact(db: AsyncSession, mailer: Mailer, data: ContactCreate) -> ContactSubmission:
    """Store the enquiry and notify the studio. A failed notice does not fail the request."""
    submission = ContactSubmission(
        name=data.name,
        email=data.email,
        phone=data.phone,
        service=data.service,
        preferred_date=data.preferred_date or None,
        message=data.message,
    )
    db.add(submission)
    await db.flush()
    await db.refresh(submission)

    subject, body = contact_notice_email(
        name=data.name,
        email=data.email,
        phone=data.phone,
        service=data.service,
        message=data.message,
        preferred_date=data.preferred_date,
    )
    try:
        await mailer.send(settings.contact_notify_email, subject, body)
    except EmailDeliveryError as e:
        logger.error("Contact notice for submission id=%s not delivered: %s", submission.id, e)
    return submission


async def list_contact_submissions(db: AsyncSession) -> list[ContactSubmission]:
    result = await db.execute(
        select(ContactSubmission).order_by(ContactSubmission.created_at.desc(), ContactSubmission.id.desc())
    )
    return list(result.scalars().all())
