"""Gmail OAuth 2.0 authorization.

Builds google-auth credentials from the stored client credentials and token.
When no usable token is stored, the "visit this URL, paste the code" exchange
mints one, provided a code source is available: the console for the setup
script, or a pre-recorded ``GMAIL_AUTH_CODE`` for a server with no terminal.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from loguru import logger

from app.models.gmail import ClientCredentials, Token
from app.services.token_store import TokenStore, TokenStoreError

GMAIL_SEND_SCOPE = "https://www.googleapis.com/auth/gmail.send"
SCOPES = [GMAIL_SEND_SCOPE]

_EPOCH = datetime(1970, 1, 1)

# Receives the authorization URL, returns the code the user pasted back
CodePrompt = Callable[[str], str]


class AuthorizationError(Exception):
    """Raised when a new token cannot be obtained."""


class AuthorizationRequired(AuthorizationError):
    """Raised when no usable token is stored and there is no way to ask for a code."""


def console_prompt(auth_url: str) -> str:
    print(f"Authorize this app by visiting this url: {auth_url}")
    return input("Enter the code from that page here: ").strip()


def recorded_code_prompt(code: str) -> CodePrompt:
    """Code source that answers with an authorization code obtained earlier."""

    def prompt(auth_url: str) -> str:
        logger.info("Using pre-recorded authorization code (issued for {})", auth_url)
        return code

    return prompt


def build_flow(client: ClientCredentials) -> Flow:
    # No PKCE verifier: a pre-recorded code may come from a different flow instance
    return Flow.from_client_config(
        client.to_client_config(),
        scopes=SCOPES,
        redirect_uri=client.redirect_uri,
        autogenerate_code_verifier=False,
    )


def authorization_url(flow: Flow) -> str:
    url, _state = flow.authorization_url(access_type="offline", prompt="consent")
    return url


def exchange_code(flow: Flow, code: str) -> Token:
    """Trade an authorization code for a token at Google's token endpoint."""
    if not code:
        raise AuthorizationError("No authorization code provided")
    try:
        body = flow.fetch_token(code=code)
    except Exception as e:
        logger.error("Error retrieving access token: {}", e)
        raise AuthorizationError(f"Token exchange failed: {e}") from e
    return Token.from_oauth_response(body)


def credentials_from_token(client: ClientCredentials, token: Token) -> Credentials:
    return Credentials(
        token=token.access_token,
        refresh_token=token.refresh_token,
        token_uri=client.token_uri,
        client_id=client.client_id,
        client_secret=client.client_secret,
        scopes=token.scopes or SCOPES,
        expiry=token.expiry,
    )


def token_from_credentials(credentials: Credentials, previous: Token | None = None) -> Token:
    """Snapshot refreshed google-auth credentials back into a storable token."""
    expiry_date = None
    if credentials.expiry is not None:
        # google-auth keeps expiry as naive UTC
        epoch = credentials.expiry.replace(tzinfo=None) - _EPOCH
        expiry_date = int(epoch.total_seconds() * 1000)
    return Token(
        access_token=credentials.token,
        refresh_token=credentials.refresh_token or (previous.refresh_token if previous else None),
        scope=" ".join(credentials.scopes) if credentials.scopes else None,
        expiry_date=expiry_date,
    )


def request_new_token(store: TokenStore, client: ClientCredentials, prompt: CodePrompt) -> Token:
    """Run the code exchange once and persist the resulting token.

    Raises:
        AuthorizationError: If the exchange fails.
        TokenStoreError: If the new token cannot be saved.
    """
    flow = build_flow(client)
    code = prompt(authorization_url(flow))
    token = exchange_code(flow, code)
    store.write_token(token)
    return token


def authorize(store: TokenStore, prompt: CodePrompt | None = None) -> Credentials:
    """Return credentials accepted by the Gmail API.

    A stored token is used as-is; Google decides whether it is still valid.
    Otherwise the code exchange runs once through ``prompt``.

    Raises:
        CredentialsError: If the client credentials cannot be loaded.
        AuthorizationRequired: If no token is stored and ``prompt`` is None.
        AuthorizationError: If the code exchange fails.
        TokenStoreError: If a new token cannot be saved.
    """
    client = store.read_credentials()

    try:
        token = store.read_token()
    except TokenStoreError as e:
        logger.warning("Ignoring unusable stored token: {}", e)
        token = None

    if token is not None:
        try:
            return credentials_from_token(client, token)
        except ValueError as e:
            logger.warning("Stored token rejected by google-auth: {}", e)

    if prompt is None:
        raise AuthorizationRequired(
            "No stored Gmail token; run scripts/authorize_gmail.py or set GMAIL_AUTH_CODE"
        )

    logger.info("No usable token stored, starting authorization code exchange")
    token = request_new_token(store, client, prompt)
    return credentials_from_token(client, token)

