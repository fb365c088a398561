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

    app_name: str = "HR Desk"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://hrdesk:hrdesk@db:5432/hrdesk"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"
    # No migrations ship with hrdesk; turn on to create missing tables at startup.
    auto_create_schema: bool = False

    # Legacy fallback that infers superadmin/HRD from user name and email when
    # a user has no roles assigned. Scheduled for removal.
    role_name_heuristic: bool = True

    biometric_timeout: int = 10
    export_temp_dir: str | None = None


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
