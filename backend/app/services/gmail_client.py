"""Gmail API v1 client wrapper.

Only ``users.messages.send`` is needed. The bearer header comes from
google-auth credentials; an expired access token is refreshed once when
Google answers 401, and the refreshed token is handed to ``on_refresh`` so
the caller can persist it.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from loguru import logger

from app.config import settings
from app.models.gmail import SentMessage


class GmailAPIError(Exception):
    """Raised when the Gmail API returns a non-2xx response."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Gmail API {status_code}: {detail}")


class GmailClient:
    """Async HTTP client for the Gmail API.

    Usage::

        async with GmailClient(credentials) as gmail:
            sent = await gmail.send_message(raw)
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        base_url: str | None = None,
        on_refresh: Callable[[Credentials], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._on_refresh = on_refresh
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.gmail_api_base_url,
            timeout=30.0,
            transport=transport,
        )

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._credentials.token}",
            "Content-Type": "application/json",
        }

    # -- Context manager ---------------------------------------------------

    async def __aenter__(self) -> GmailClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._http.aclose()

    # -- Token management --------------------------------------------------

    async def _refresh_access_token(self) -> None:
        logger.info("Refreshing Gmail access token…")
        try:
            # google-auth refreshes over requests, which blocks
            await asyncio.to_thread(self._credentials.refresh, Request())
        except GoogleAuthError as e:
            raise GmailAPIError(401, f"Token refresh failed: {e}") from e

        if self._on_refresh is not None:
            self._on_refresh(self._credentials)
        logger.info("Gmail access token refreshed successfully")

    # -- Central request method --------------------------------------------

    async def _request(self, method: str, path: str, *, json_body: dict | None = None) -> httpx.Response:
        """Send a request, refreshing the access token once on 401."""
        resp = await self._http.request(method, path, json=json_body, headers=self._build_headers())

        if resp.status_code == 401 and self._credentials.refresh_token:
            logger.warning("Got 401 from Gmail, refreshing token…")
            await self._refresh_access_token()
            resp = await self._http.request(method, path, json=json_body, headers=self._build_headers())

        if not 200 <= resp.status_code < 300:
            detail = resp.text[:500]
            logger.error("Gmail API error {} on {} {}: {}", resp.status_code, method, path, detail)
            raise GmailAPIError(resp.status_code, detail)

        return resp

    # -- Messages ----------------------------------------------------------

    async def send_message(self, raw: str, user_id: str = "me") -> SentMessage:
        """Send an RFC 2822 message already encoded as base64url."""
        resp = await self._request(
            "POST",
            f"/gmail/v1/users/{user_id}/messages/send",
            json_body={"raw": raw},
        )
        try:
            body = resp.json() if resp.content else {}
        except ValueError as e:
            raise GmailAPIError(resp.status_code, f"Unparsable response: {e}") from e
        return SentMessage.model_validate({"status_code": resp.status_code, **body})
