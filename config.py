"""Application configuration using pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (or a local .env file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Holiday Let Booking API"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # Owner gate (single shared secret)
    admin_password: str = ""
    owner_cookie_name: str = "owner"
    owner_cookie_max_age: int = 60 * 60 * 24 * 30
    owner_cookie_secure: bool = True

    # Booking rules
    min_stay_nights: int = 3
    max_stay_nights: int = 28
    import_chunk_size: int = 200


settings = Settings()
