from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    host: str = Field(default="0.0.0.0", description="Interface uvicorn binds to")
    port: int = Field(default=3000, description="Port uvicorn listens on")
    log_level: str = Field(default="INFO", description="Minimum loguru level")

    # Site
    site_url: str = Field(
        default="https://example.com",
        description="Where GET / redirects visitors",
    )
    allowed_origin: str = Field(
        default="https://example.com",
        description="The only origin allowed to POST the contact form",
    )

    # Message envelope
    mail_from: str = Field(
        default="FIRSTNAME LASTNAME <EMAIL_ADDRESS@example.com>",
        description="From header of relayed messages",
    )
    mail_to: str = Field(
        default="FIRSTNAME LASTNAME <EMAIL_ADDRESS@example.com>",
        description="Mailbox that receives relayed messages",
    )
    mail_subject: str = Field(
        default="Contact Form Submitted!",
        description="Subject of plain-text messages from POST /send",
    )
    html_mail_subject: str = Field(
        default="You've received a message! ✉️",
        description="Subject of HTML messages from POST /sendMail",
    )

    # Gmail OAuth 2.0 token persistence
    token_backend: Literal["file", "env"] = Field(
        default="file",
        description="Where client credentials and tokens are read from",
    )
    credentials_path: Path = Field(
        default=Path("credentials.json"),
        description="Client secrets file downloaded from Google Cloud",
    )
    token_path: Path = Field(default=Path("token.json"), description="Stored OAuth token")
    gmail_credentials: str = Field(default="", description="Client secrets JSON (env backend)")
    gmail_tokens: str = Field(default="", description="OAuth token JSON (env backend)")
    gmail_auth_code: str = Field(
        default="",
        description="Pre-recorded authorization code exchanged when no token is stored",
    )

    # Gmail API
    gmail_api_base_url: str = Field(
        default="https://gmail.googleapis.com",
        description="Gmail API base URL",
    )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
