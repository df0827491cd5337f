from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # ──────────────────────────────────────────────────────────────
    # Cache-aside store
    # ──────────────────────────────────────────────────────────────

    cache_backend: Literal["sqlite", "supabase"] = Field(default="sqlite", alias="CACHE_BACKEND")
    cache_db_path: str = Field(default="app/data/response_cache.db", alias="CACHE_DB_PATH")

    # Supabase (PostgREST) backing table
    supa_url: str | None = Field(default=None, alias="SUPA_URL")
    supa_service_role_key: str | None = Field(default=None, alias="SUPA_SERVICE_ROLE_KEY")
    supa_cache_table: str = Field(default="cache", alias="SUPA_CACHE_TABLE")
    supa_timeout_s: float = Field(default=5.0, alias="SUPA_TIMEOUT_S")

    geocode_cache_ttl_s: int = Field(default=3600, alias="GEOCODE_CACHE_TTL_S")
    social_cache_ttl_s: int = Field(default=900, alias="SOCIAL_CACHE_TTL_S")

    # ──────────────────────────────────────────────────────────────
    # Semantic location extraction (Gemini)
    # ──────────────────────────────────────────────────────────────

    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1",
        alias="GEMINI_BASE_URL",
    )
    extraction_timeout_s: float = Field(default=10.0, alias="EXTRACTION_TIMEOUT_S")

    # ──────────────────────────────────────────────────────────────
    # Geocoding (OpenStreetMap Nominatim)
    # ──────────────────────────────────────────────────────────────

    nominatim_url: str = Field(
        default="https://nominatim.openstreetmap.org/search",
        alias="NOMINATIM_URL",
    )
    nominatim_user_agent: str = Field(default="DisasterResponsePlatform/1.0", alias="NOMINATIM_USER_AGENT")
    geocode_timeout_s: float = Field(default=10.0, alias="GEOCODE_TIMEOUT_S")


settings = Settings()
