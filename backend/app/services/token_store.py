"""Persistence for the Gmail OAuth client credentials and token.

Two interchangeable backends:

- ``FileTokenStore``: ``credentials.json`` / ``token.json`` on disk.
- ``EnvTokenStore``: JSON blobs held in the deployment's configuration
  (``GMAIL_CREDENTIALS`` / ``GMAIL_TOKENS``), for hosted functions with no
  writable filesystem.
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from app.config import Settings, settings
from app.models.gmail import ClientCredentials, Token


class CredentialsError(Exception):
    """Raised when the OAuth client credentials are missing or malformed."""


class TokenStoreError(Exception):
    """Raised when a stored token cannot be parsed or a new one cannot be saved."""


class TokenStore(ABC):
    """Read client credentials; read and write the OAuth token."""

    @abstractmethod
    def read_credentials(self) -> ClientCredentials: ...

    @abstractmethod
    def read_token(self) -> Token | None:
        """Return the stored token, or None when nothing has been stored yet."""

    @abstractmethod
    def write_token(self, token: Token) -> None: ...


def _parse_credentials(raw: str, source: str) -> ClientCredentials:
    try:
        return ClientCredentials.from_client_secrets(json.loads(raw))
    except (json.JSONDecodeError, ValueError) as e:
        raise CredentialsError(f"Malformed client credentials in {source}: {e}") from e


def _parse_token(raw: str, source: str) -> Token:
    try:
        return Token.model_validate_json(raw)
    except ValidationError as e:
        raise TokenStoreError(f"Malformed token in {source}: {e}") from e


class FileTokenStore(TokenStore):
    def __init__(self, credentials_path: Path, token_path: Path) -> None:
        self.credentials_path = Path(credentials_path)
        self.token_path = Path(token_path)

    def read_credentials(self) -> ClientCredentials:
        try:
            raw = self.credentials_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CredentialsError(f"Cannot read {self.credentials_path}: {e}") from e
        return _parse_credentials(raw, str(self.credentials_path))

    def read_token(self) -> Token | None:
        try:
            raw = self.token_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise TokenStoreError(f"Cannot read {self.token_path}: {e}") from e
        return _parse_token(raw, str(self.token_path))

    def write_token(self, token: Token) -> None:
        # Write to a sibling temp file and swap it in so readers never see half a token
        directory = self.token_path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".token-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(token.to_json())
            os.replace(tmp_name, self.token_path)
        except OSError as e:
            logger.error("Failed to store token to {}: {}", self.token_path, e)
            raise TokenStoreError(f"Cannot write {self.token_path}: {e}") from e
        logger.info("Token stored to {}", self.token_path)


class EnvTokenStore(TokenStore):
    """Credentials and token supplied as configuration strings.

    Hosted configs cannot be written from inside the function, so
    ``write_token`` keeps the token for the life of the process. Only the
    bootstrap script prints ``export_command()``; the server log never
    carries token values.
    """

    CREDENTIALS_VAR = "GMAIL_CREDENTIALS"
    TOKENS_VAR = "GMAIL_TOKENS"

    def __init__(self, credentials_json: str, tokens_json: str = "") -> None:
        self._credentials_json = credentials_json
        self._tokens_json = tokens_json

    def read_credentials(self) -> ClientCredentials:
        if not self._credentials_json:
            raise CredentialsError(f"{self.CREDENTIALS_VAR} is not configured")
        return _parse_credentials(self._credentials_json, self.CREDENTIALS_VAR)

    def read_token(self) -> Token | None:
        if not self._tokens_json:
            return None
        return _parse_token(self._tokens_json, self.TOKENS_VAR)

    def write_token(self, token: Token) -> None:
        self._tokens_json = token.stringified().to_json()
        logger.info("{} updated in memory (expiry {})", self.TOKENS_VAR, token.expiry_date)

    def export_command(self) -> str:
        return f"export {self.TOKENS_VAR}='{self._tokens_json}'"


def build_token_store(config: Settings) -> TokenStore:
    """Create the store selected by ``TOKEN_BACKEND``."""
    if config.token_backend == "env":
        return EnvTokenStore(config.gmail_credentials, config.gmail_tokens)
    return FileTokenStore(config.credentials_path, config.token_path)


@lru_cache
def get_token_store() -> TokenStore:
    """Process-wide store, shared so an env-backed token survives between requests."""
    return build_token_store(settings)
