"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the outbound clients and
the operational scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()

_SETTINGS_CONFIG = SettingsConfigDict(populate_by_name=True, extra="ignore")


class GoogleSettings(BaseSettings):
    """Configuration required for interacting with Google APIs."""

    model_config = _SETTINGS_CONFIG

    client_id: str = Field(..., validation_alias="GOOGLE_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., validation_alias="GOOGLE_REDIRECT_URI")


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = _SETTINGS_CONFIG

    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "https://www.googleapis.com/auth/analytics.readonly",
            "https://www.googleapis.com/auth/userinfo.email",
        ),
        validation_alias="OAUTH_SCOPES",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope.strip() for scope in value.split(",") if scope.strip())


class SlackSettings(BaseSettings):
    """Slack workspace integration settings."""

    model_config = _SETTINGS_CONFIG

    bot_token: Optional[str] = Field(
        None,
        validation_alias="SLACK_BOT_TOKEN",
        description="Bot token used to deliver direct messages.",
    )
    signing_secret: Optional[str] = Field(
        None,
        validation_alias="SLACK_SIGNING_SECRET",
        description="When set, inbound Slack requests must carry a valid signature.",
    )
    bot_name: str = Field("Arnold", validation_alias="SLACK_BOT_NAME")
    command_prefix: str = Field(
        "/arnold",
        validation_alias="SLACK_COMMAND_PREFIX",
        description="Prefix of the installed slash commands, used in help text.",
    )


class CredentialStoreSettings(BaseSettings):
    """Location and credentials of the external token store."""

    model_config = _SETTINGS_CONFIG

    base_url: AnyHttpUrl = Field(..., validation_alias="MCP_SERVER_URL")
    api_key: str = Field(..., validation_alias="MCP_API_KEY")


class AutomationSettings(BaseSettings):
    """Downstream automation engine that answers analytics questions."""

    model_config = _SETTINGS_CONFIG

    webhook_url: Optional[AnyHttpUrl] = Field(
        None,
        validation_alias="N8N_WEBHOOK_URL",
        description="Webhook receiving forwarded Slack events.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        populate_by_name=True,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    http_timeout_seconds: float = Field(10.0, validation_alias="HTTP_TIMEOUT_SECONDS")
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    credential_store: CredentialStoreSettings = Field(
        default_factory=CredentialStoreSettings
    )
    automation: AutomationSettings = Field(default_factory=AutomationSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "AutomationSettings",
    "CredentialStoreSettings",
    "GoogleSettings",
    "OAuthSettings",
    "SlackSettings",
    "get_settings",
]
