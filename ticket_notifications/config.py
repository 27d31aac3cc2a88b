"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key used to verify JWT tokens issued by the session layer",
        min_length=1,
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending notification emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of notification emails",
        min_length=3,
    )
    chat_webhook_url: str | None = Field(
        default=None,
        description="Incoming webhook URL of the chat channel that mirrors ticket activity",
    )
    webhook_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout applied to the single chat webhook attempt",
        gt=0,
    )
    app_base_url: str = Field(
        default="http://localhost:5173",
        description="Base URL of the ticketing frontend, used to build links in emails",
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used to stamp and render notification timestamps",
    )
    dispatch_max_workers: int = Field(
        default=8,
        description="Maximum number of recipients delivered concurrently per fan-out",
        gt=0,
    )
    notification_page_size: int = Field(
        default=20,
        description="Default number of notifications returned per page",
        gt=0,
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
