"""Application settings via pydantic-settings."""

from functools import lru_cache

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class CollectionIds(BaseModel):
    """Document store collection identifiers."""

    events: str = "events"
    clients: str = "clients"
    trivia: str = "trivia"
    trivia_responses: str = "trivia_responses"
    user_profiles: str = "user_profiles"
    reviews: str = "reviews"
    checkins: str = "checkins"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables with SAMPLER_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SAMPLER_",
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Document store / identity provider ---
    appwrite_endpoint: str = "https://nyc.cloud.appwrite.io/v1"
    appwrite_project_id: str = ""
    appwrite_api_key: str = ""
    database_id: str = ""
    collections: CollectionIds = CollectionIds()
    store_timeout_seconds: float = 15.0

    # --- Event discovery ---
    default_page_size: int = 10
    max_page_size: int = 100
    event_candidate_limit: int = 1000

    # --- Work caps (keep each invocation bounded) ---
    trivia_fetch_limit: int = 100
    trivia_responses_fetch_limit: int = 500
    filter_chunk_size: int = 100
    scan_page_size: int = 100


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
