"""Per-request delivery: authorize, compose, send.

Everything a request needs travels as arguments, so concurrent requests
never see each other's submission.
"""

from __future__ import annotations

from typing import Callable

import httpx
from google.oauth2.credentials import Credentials
from loguru import logger
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.models.contact import FormSubmission
from app.models.gmail import Envelope
from app.services.authorizer import (
    AuthorizationError,
    CodePrompt,
    authorize,
    recorded_code_prompt,
    token_from_credentials,
)
from app.services.gmail_client import GmailClient
from app.services.mailer import INTERNAL_SERVER_ERROR, send_mail
from app.services.token_store import CredentialsError, TokenStore, TokenStoreError

Composer = Callable[[FormSubmission, Envelope], str]


def code_prompt_from_settings() -> CodePrompt | None:
    """A pre-recorded authorization code is the only code source a server has."""
    if settings.gmail_auth_code:
        return recorded_code_prompt(settings.gmail_auth_code)
    return None


def _persist_refreshed(store: TokenStore) -> Callable[[Credentials], None]:
    def on_refresh(credentials: Credentials) -> None:
        try:
            previous = store.read_token()
        except TokenStoreError:
            previous = None
        store.write_token(token_from_credentials(credentials, previous))

    return on_refresh


async def relay_submission(
    submission: FormSubmission,
    *,
    store: TokenStore,
    envelope: Envelope,
    compose: Composer,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Deliver one submission and return the HTTP status code for the response."""
    try:
        credentials = await run_in_threadpool(authorize, store, code_prompt_from_settings())
    except CredentialsError as e:
        logger.error("Error loading client secret file: {}", e)
        return INTERNAL_SERVER_ERROR
    except (AuthorizationError, TokenStoreError) as e:
        logger.error("Gmail authorization failed: {}", e)
        return INTERNAL_SERVER_ERROR

    message = compose(submission, envelope)

    try:
        async with GmailClient(
            credentials,
            on_refresh=_persist_refreshed(store),
            transport=transport,
        ) as gmail:
            return await send_mail(gmail, message)
    except (httpx.HTTPError, TokenStoreError) as e:
        logger.error("Email not sent: {}: {}", type(e).__name__, e)
        return INTERNAL_SERVER_ERROR
