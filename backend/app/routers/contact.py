"""Contact form endpoints for a plain HTML form.

``POST /send`` takes the URL-encoded form body; ``GET /`` sends stray
visitors back to the website the form lives on.
"""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Form, Response
from fastapi.responses import RedirectResponse
from loguru import logger
from pydantic import ValidationError

from app.config import settings
from app.dependencies import get_envelope, get_gmail_transport
from app.models.contact import FormSubmission
from app.models.gmail import Envelope
from app.services.mailer import INTERNAL_SERVER_ERROR, compose_message
from app.services.relay import relay_submission
from app.services.token_store import TokenStore, get_token_store

router = APIRouter(tags=["contact"])


@router.get("/")
async def redirect_to_site():
    return RedirectResponse(settings.site_url, status_code=301)


@router.post("/send")
async def send_contact_form(
    first_name: str | None = Form(default=None, alias="firstName"),
    last_name: str | None = Form(default=None, alias="lastName"),
    email: str | None = Form(default=None),
    message: str | None = Form(default=None),
    store: TokenStore = Depends(get_token_store),
    envelope: Envelope = Depends(get_envelope),
    transport: httpx.AsyncBaseTransport | None = Depends(get_gmail_transport),
):
    """Relay a contact form submission to the site owner's mailbox.

    Answers 200 when Gmail accepted and sent the message, 500 otherwise
    (including missing fields, which are normally caught client-side).
    """
    try:
        submission = FormSubmission(
            first_name=first_name or "",
            last_name=last_name or "",
            email=email or "",
            message=message or "",
        )
    except ValidationError as e:
        logger.error("Not all fields are defined in POST request: {}", [err["loc"] for err in e.errors()])
        return Response(status_code=INTERNAL_SERVER_ERROR)

    status_code = await relay_submission(
        submission,
        store=store,
        envelope=envelope,
        compose=compose_message,
        transport=transport,
    )
    return Response(status_code=status_code)
