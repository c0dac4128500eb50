"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from food_catalog.services.seeding import DEFAULT_STAPLES

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    off_base_url: str = "https://world.openfoodfacts.org"
    off_user_agent: str = "food-catalog/0.1 (food search ingestion)"
    provider_timeout_seconds: float = 10.0
    provider_retry_attempts: int = 1
    search_cache_ttl_seconds: int = 60
    search_cache_max_entries: int = 200
    search_limit_default: int = 20
    search_limit_max: int = 50
    seed_staples: str | None = None
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_staples(raw: str | None) -> tuple[str, ...]:
    """Parse comma separated seed staples, defaulting to the built-in list."""
    if raw is None:
        return DEFAULT_STAPLES
    staples = tuple(chunk.strip() for chunk in raw.split(",") if chunk.strip())
    return staples or DEFAULT_STAPLES
