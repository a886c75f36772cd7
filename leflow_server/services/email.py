# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Transactional email. One Mailer is built from settings at startup and
passed to whatever needs to send mail; tests substitute their own."""

import asyncio
import html
import logging
import re
import smtplib
import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

import httpx
from fastapi import Request
from pydantic import BaseModel, ConfigDict

from leflow_server.config import Settings

logger = logging.getLogger(__name__)

BRAND = "Studio LeFlow"
BRAND_COLOR = "#7c3aed"


class EmailDeliveryError(Exception):
    """The provider rejected the message or could not be reached."""


class MailerConfig(BaseModel):
    """Provider credentials. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    backend: str = "console"
    sender: str
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    resend_api_key: str | None = None
    resend_api_url: str = "https://api.resend.com/emails"

    @classmethod
    def from_settings(cls, s: Settings) -> "MailerConfig":
        return cls(
            backend=s.email_backend,
            sender=s.email_from,
            smtp_host=s.smtp_host,
            smtp_port=s.smtp_port,
            smtp_user=s.smtp_user,
            smtp_password=s.smtp_password,
            resend_api_key=s.resend_api_key,
            resend_api_url=s.resend_api_url,
        )


class Mailer:
    """Sends HTML email through SMTP, the Resend HTTP API, or the log."""

    def __init__(self, config: MailerConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self._transport = transport

    async def send(self, to: str, subject: str, html_body: str) -> str:
        """Send a message and return the provider's message id.

        Raises EmailDeliveryError on any provider failure.
        """
        logger.info("Sending email to=%s subject=%s backend=%s", to, subject, self.config.backend)
        if self.config.backend == "smtp":
            return await asyncio.to_thread(self._send_smtp, to, subject, html_body)
        if self.config.backend == "resend":
            return await self._send_resend(to, subject, html_body)
        message_id = f"console-{uuid.uuid4().hex}"
        logger.info("Email (delivery not configured): To=%s Subject=%s Body=%s", to, subject, html_body[:200])
        return message_id

    def _send_smtp(self, to: str, subject: str, html_body: str) -> str:
        if not self.config.smtp_host:
            raise EmailDeliveryError("SMTP host is not configured")
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.config.sender
        msg["To"] = to
        msg["Message-ID"] = make_msgid()
        msg.attach(MIMEText(html_to_text(html_body), "plain"))
        msg.attach(MIMEText(html_body, "html"))
        try:
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=15) as server:
                server.starttls()
                if self.config.smtp_user:
                    server.login(self.config.smtp_user, self.config.smtp_password or "")
                server.sendmail(self.config.sender, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", to, e)
            raise EmailDeliveryError(str(e)) from e
        return msg["Message-ID"]

    async def _send_resend(self, to: str, subject: str, html_body: str) -> str:
        if not self.config.resend_api_key:
            raise EmailDeliveryError("Resend API key is not configured")
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                r = await client.post(
                    self.config.resend_api_url,
                    headers={"Authorization": f"Bearer {self.config.resend_api_key}"},
                    json={
                        "from": self.config.sender,
                        "to": [to],
                        "subject": subject,
                        "html": html_body,
                    },
                )
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            logger.error("Resend rejected email to %s: %s %s", to, e.response.status_code, e.response.text[:200])
            raise EmailDeliveryError(f"Provider returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Resend request for %s failed: %s", to, e)
            raise EmailDeliveryError(str(e)) from e
        message_id = data.get("id") if isinstance(data, dict) else None
        if not message_id:
            raise EmailDeliveryError("Provider response has no message id")
        return message_id


def get_mailer(request: Request) -> Mailer:
    """Dependency: the mailer attached to the application at startup."""
    return request.app.state.mailer


def html_to_text(body: str) -> str:
    """Crude plain-text alternative: strip tags, collapse blank lines."""
    text = re.sub(r"<br\s*/?>", "\n", body, flags=re.I)
    text = re.sub(r"</(p|h[1-6]|div)>", "\n", text, flags=re.I)
    text = html.unescape(re.sub(r"<[^>]+>", "", text))
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def _code_block(code: str) -> str:
    return (
        '<div style="background-color: #f3f4f6; padding: 20px; text-align: center; margin: 30px 0; border-radius: 8px;">'
        f'<h1 style="color: {BRAND_COLOR}; font-size: 36px; letter-spacing: 8px; margin: 0;">{code}</h1>'
        "</div>"
    )


def _wrap(inner: str) -> str:
    return f"""<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
<h2 style="color: {BRAND_COLOR};">{BRAND}</h2>
{inner}
<hr style="margin: 30px 0; border: none; border-top: 1px solid #e5e7eb;">
<p style="color: #666; font-size: 12px;">{BRAND} - Profesionalna Muzička Produkcija</p>
</div>"""


def verification_email(code: str, ttl_minutes: int, resend: bool = False) -> tuple[str, str]:
    """Subject and HTML body for a verification code email."""
    if resend:
        subject = f"Novi Verifikacioni Kod - {BRAND}"
        inner = "<h3>Novi Verifikacioni Kod</h3>\n<p>Ovde je Vaš novi verifikacioni kod:</p>"
    else:
        subject = f"Potvrdite Vašu Email Adresu - {BRAND}"
        inner = (
            f"<h3>Dobrodošli u {BRAND} zajednicu!</h3>\n"
            "<p>Hvala što ste se registrovali. Da biste završili registraciju, unesite sledeći verifikacioni kod:</p>"
        )
    inner += f"\n{_code_block(code)}\n<p>Ovaj kod ističe za {ttl_minutes} minuta.</p>"
    if not resend:
        inner += "\n<p>Ako niste kreirali nalog, ignorišite ovaj email.</p>"
    return subject, _wrap(inner)


def contact_notice_email(
    name: str,
    email: str,
    phone: str,
    service: str,
    message: str,
    preferred_date: str | None = None,
) -> tuple[str, str]:
    """Subject and HTML body notifying the studio of a contact submission. All input is escaped."""
    e = html.escape
    rows = [
        f"<p><strong>Usluga:</strong> {e(service)}</p>",
        f"<p><strong>Ime:</strong> {e(name)}</p>",
        f"<p><strong>Email:</strong> {e(email)}</p>",
        f"<p><strong>Telefon:</strong> {e(phone)}</p>",
    ]
    if preferred_date:
        rows.append(f"<p><strong>Željeni termin:</strong> {e(preferred_date)}</p>")
    rows.append("<p><strong>Poruka:</strong></p>")
    rows.append(f"<p>{e(message).replace(chr(10), '<br>')}</p>")
    body = (
        f"<h2>Novi upit sa {BRAND} sajta</h2>\n"
        + "\n".join(rows)
        + f'\n<hr>\n<p style="color: #666; font-size: 12px;">Poslato automatski sa {BRAND} sajta</p>'
    )
    return f"Novi upit - {e(service)}", body
