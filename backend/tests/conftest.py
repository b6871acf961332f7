"""Shared fixtures. Nothing here touches the network."""

import json

import httpx
import pytest

from app.models.gmail import ClientCredentials, Token
from app.services.authorizer import GMAIL_SEND_SCOPE
from app.services.token_store import TokenStore

CLIENT_SECRETS = {
    "installed": {
        "client_id": "client-123.apps.googleusercontent.com",
        "client_secret": "shh-secret",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "redirect_uris": ["http://localhost"],
    }
}

STORED_TOKEN = {
    "access_token": "stored-access",
    "refresh_token": "stored-refresh",
    "scope": GMAIL_SEND_SCOPE,
    "token_type": "Bearer",
    "expiry_date": 1700000000000,
}

OAUTH_RESPONSE = {
    "access_token": "new-access",
    "refresh_token": "new-refresh",
    "scope": [GMAIL_SEND_SCOPE],
    "token_type": "Bearer",
    "expires_in": 3599,
    "expires_at": 1700003600.0,
}


class MemoryTokenStore(TokenStore):
    """In-memory store that records every token written."""

    def __init__(self, token: Token | None = None, credentials: dict | None = None) -> None:
        self.token = token
        self.credentials = credentials if credentials is not None else CLIENT_SECRETS
        self.writes: list[Token] = []

    def read_credentials(self) -> ClientCredentials:
        return ClientCredentials.from_client_secrets(self.credentials)

    def read_token(self) -> Token | None:
        return self.token

    def write_token(self, token: Token) -> None:
        self.writes.append(token)
        self.token = token


@pytest.fixture
def stored_token() -> Token:
    return Token.model_validate(STORED_TOKEN)


@pytest.fixture
def memory_store(stored_token) -> MemoryTokenStore:
    return MemoryTokenStore(token=stored_token)


@pytest.fixture
def empty_store() -> MemoryTokenStore:
    return MemoryTokenStore()


@pytest.fixture
def credentials_file(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps(CLIENT_SECRETS))
    return path


@pytest.fixture
def token_file(tmp_path):
    path = tmp_path / "token.json"
    path.write_text(json.dumps(STORED_TOKEN))
    return path


def gmail_transport(
    status_code: int = 200,
    body: dict | None = None,
    requests: list | None = None,
) -> httpx.MockTransport:
    """Mock Gmail API answering every request with the same response."""
    if body is None:
        body = {"id": "msg-1", "threadId": "thread-1", "labelIds": ["SENT"]}

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status_code, json=body)

    return httpx.MockTransport(handler)


def sequence_transport(responses: list[httpx.Response], requests: list) -> httpx.MockTransport:
    """Mock Gmail API answering requests with ``responses`` in order."""
    pending = iter(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return next(pending)

    return httpx.MockTransport(handler)
