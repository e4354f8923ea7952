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
        description="Secret key used to verify JWT access tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        default=15,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC", description="Timezone used for persisted timestamps"
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:4200"],
        description="Origins allowed by the CORS middleware (JSON list)",
    )

    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379, gt=0)
    redis_password: str | None = Field(default=None)
    redis_database: int = Field(default=0, ge=0)

    notification_queue_name: str = Field(default="notification-queue", min_length=1)
    queue_connect_timeout: float = Field(
        default=1.0,
        description="Socket timeout in seconds used when connecting to the queue backend",
        gt=0,
    )
    queue_connect_retries: int = Field(
        default=3,
        description="Connection retries before an enqueue is answered in degraded mode",
        ge=0,
    )
    queue_connect_retry_delay: float = Field(
        default=0.2,
        description="Pause in seconds between queue connection retries",
        ge=0,
    )
    queue_warning_interval_seconds: float = Field(
        default=60.0,
        description="Minimum interval between repeated queue outage warnings",
        ge=0,
    )

    notification_worker_concurrency: int = Field(default=5, gt=0)
    notification_max_attempts: int = Field(default=3, gt=0)
    notification_backoff_seconds: float = Field(default=5.0, gt=0)
    notification_job_timeout_seconds: int = Field(default=120, gt=0)
    notification_completed_retention_seconds: int = Field(
        default=3600,
        description="How long completed job results are kept before being purged",
        ge=0,
    )
    provider_timeout_seconds: float = Field(default=10.0, gt=0)

    onesignal_app_id: str | None = Field(default=None)
    onesignal_rest_api_key: str | None = Field(default=None)
    onesignal_api_url: str = Field(default="https://onesignal.com/api/v1/notifications")

    fcm_server_key: str | None = Field(default=None)
    fcm_project_id: str | None = Field(default=None)
    fcm_api_url: str = Field(default="https://fcm.googleapis.com/fcm/send")

    @model_validator(mode="after")
    def _validate_onesignal_pair(self) -> "Settings":
        if bool(self.onesignal_app_id) ^ bool(self.onesignal_rest_api_key):
            raise ValueError(
                "ONESIGNAL_APP_ID and ONESIGNAL_REST_API_KEY must both be provided to enable OneSignal"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
