"""JSON variant of the contact endpoint, for sites that post with ``fetch``.

Body: ``{"firstName", "lastName", "email", "messageBody"}``. The message body
is sent as HTML. Missing fields answer 400.
"""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Request, Response
from loguru import logger
from pydantic import ValidationError

from app.dependencies import get_gmail_transport, get_html_envelope
from app.models.contact import JsonSubmission
from app.models.gmail import Envelope
from app.services.mailer import INTERNAL_SERVER_ERROR, compose_html_message
from app.services.relay import relay_submission
from app.services.token_store import TokenStore, get_token_store

router = APIRouter(tags=["messages"])

BAD_REQUEST = 400


@router.post("/sendMail")
async def send_message(
    request: Request,
    store: TokenStore = Depends(get_token_store),
    envelope: Envelope = Depends(get_html_envelope),
    transport: httpx.AsyncBaseTransport | None = Depends(get_gmail_transport),
):
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Rejected /sendMail request with a non-JSON body")
        return Response(status_code=BAD_REQUEST)

    try:
        submission = JsonSubmission.model_validate(payload)
    except ValidationError as e:
        logger.warning("Rejected /sendMail request: {} invalid field(s)", e.error_count())
        return Response(status_code=BAD_REQUEST)

    status_code = await relay_submission(
        submission,
        store=store,
        envelope=envelope,
        compose=compose_html_message,
        transport=transport,
    )
    return Response(status_code=status_code)


# CORS preflights are answered by the middleware before routing
NON_POST_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/sendMail", methods=NON_POST_METHODS, include_in_schema=False)
async def reject_non_post():
    return Response(status_code=INTERNAL_SERVER_ERROR)
