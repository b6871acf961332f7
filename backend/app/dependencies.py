"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

import httpx

from app.config import settings
from app.models.gmail import Envelope


def get_gmail_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for Gmail API calls; None means the real network."""
    return None


def get_envelope() -> Envelope:
    return Envelope(sender=settings.mail_from, recipient=settings.mail_to, subject=settings.mail_subject)


def get_html_envelope() -> Envelope:
    return Envelope(sender=settings.mail_from, recipient=settings.mail_to, subject=settings.html_mail_subject)
