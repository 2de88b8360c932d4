from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "LeavePoint"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://leavepoint:leavepoint@db:5432/leavepoint"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"

    # Leave policy
    default_day_policy: Literal["calendar-days", "business-days"] = "business-days"
    default_annual_pto: int = 12
    block_on_insufficient_balance: bool = False
    min_notice_days: int = 3
    max_consecutive_days: int = 15

    # Assignment table
    csp_email_domain: str = "zimworx.org"

    # Audit trail
    audit_dedup_window_seconds: int = 60

    # Notifications
    notification_timeout_seconds: float = 5.0


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
