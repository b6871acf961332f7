from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

# Used when the client secrets carry no redirect URIs (hosted deployments strip them)
OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"


class ClientCredentials(BaseModel):
    """OAuth client registered in Google Cloud (the "installed" or "web" section)."""

    client_id: str
    client_secret: str
    redirect_uris: list[str] = []
    auth_uri: str = "https://accounts.google.com/o/oauth2/auth"
    token_uri: str = "https://oauth2.googleapis.com/token"

    @classmethod
    def from_client_secrets(cls, data: Any) -> ClientCredentials:
        """Parse a client secrets document as downloaded from Google Cloud.

        Raises:
            ValueError: If neither an ``installed`` nor a ``web`` section is
                present, or the section lacks the client id/secret.
        """
        if not isinstance(data, dict):
            raise ValueError("client secrets must be a JSON object")
        section = data.get("installed") or data.get("web")
        if not isinstance(section, dict):
            raise ValueError("client secrets have no 'installed' or 'web' section")
        return cls.model_validate(section)

    @property
    def redirect_uri(self) -> str:
        return self.redirect_uris[0] if self.redirect_uris else OOB_REDIRECT_URI

    def to_client_config(self) -> dict[str, dict[str, Any]]:
        """Client config in the shape google-auth-oauthlib expects."""
        return {
            "installed": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": self.redirect_uris or [OOB_REDIRECT_URI],
            }
        }


class Token(BaseModel):
    """OAuth token as persisted between runs.

    ``expiry_date`` is epoch milliseconds. The env-backed store keeps it as a
    string because hosted function configs only hold string values.
    """

    access_token: str = Field(validation_alias=AliasChoices("access_token", "token"))
    refresh_token: str | None = None
    scope: str | None = None
    token_type: str = "Bearer"
    expiry_date: int | str | None = Field(
        default=None, validation_alias=AliasChoices("expiry_date", "expiry")
    )

    model_config = {"populate_by_name": True}

    @field_validator("scope", mode="before")
    @classmethod
    def _join_scopes(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return " ".join(value)
        return value

    @classmethod
    def from_oauth_response(cls, body: dict[str, Any]) -> Token:
        """Build a token from the token endpoint response (as returned by oauthlib)."""
        expires_at = body.get("expires_at")
        return cls(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            scope=body.get("scope"),
            token_type=body.get("token_type") or "Bearer",
            expiry_date=int(float(expires_at) * 1000) if expires_at is not None else None,
        )

    @property
    def scopes(self) -> list[str] | None:
        return self.scope.split() if self.scope else None

    @property
    def expiry(self) -> datetime | None:
        """Expiry as a naive UTC datetime, which is what google-auth compares against."""
        if self.expiry_date is None or self.expiry_date == "":
            return None
        if isinstance(self.expiry_date, int) or self.expiry_date.isdigit():
            seconds = int(self.expiry_date) / 1000
            return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
        # google-auth's to_json layout: ISO 8601 with a trailing Z
        parsed = datetime.fromisoformat(self.expiry_date.rstrip("Z"))
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    def stringified(self) -> Token:
        """Copy with ``expiry_date`` coerced to a string."""
        if self.expiry_date is None or isinstance(self.expiry_date, str):
            return self.model_copy()
        return self.model_copy(update={"expiry_date": str(self.expiry_date)})

    def to_json(self) -> str:
        return json.dumps(self.model_dump(exclude_none=True))


class Envelope(BaseModel):
    """Fixed addressing for relayed messages."""

    sender: str
    recipient: str
    subject: str


class SentMessage(BaseModel):
    """Result of ``users.messages.send``."""

    status_code: int
    id: str | None = None
    thread_id: str | None = Field(default=None, validation_alias=AliasChoices("threadId", "thread_id"))
    label_ids: list[str] = Field(default=[], validation_alias=AliasChoices("labelIds", "label_ids"))

    model_config = {"populate_by_name": True}

    @property
    def was_sent(self) -> bool:
        return self.status_code == 200 and "SENT" in self.label_ids
