"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    places_api_key: str
    places_photo_base_url: str = "https://maps.googleapis.com/maps/api/place/photo"
    storage_bucket: str = "entity-images"
    photo_max_width: int = 1200
    memory_cache_ttl_seconds: int = 30
    persisted_cache_ttl_seconds: int = 48 * 3600
    validation_timeout_seconds: float = 5.0
    validation_max_concurrency: int = 3
    download_max_concurrency: int = 2
    download_delay_seconds: float = 0.1
    entity_delay_seconds: float = 0.1
    max_migration_attempts: int = 3
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
