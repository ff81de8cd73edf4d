# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Env vars (.env):
      - DATABASE_URL (SQLite for local dev, Supabase Postgres in production)
      - SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY (object storage for uploads)
      - SUPABASE_JWT_SECRET (verifies admin bearer tokens)

    Storage and JWT settings are optional at startup; the operations that
    need them fail on their own when they are missing.
    """

    PROJECT_NAME: str = "Post CMS API"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = "sqlite:///./cms.db"

    # Supabase storage
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    STORAGE_BUCKET: str = "assets"
    STORAGE_UPLOAD_PREFIX: str = "uploads"

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str | None = None
    SUPABASE_JWT_ALG: str = "HS256"
    ADMIN_EMAILS: list[str] = []

    # Editor behaviour
    DEFAULT_LANGUAGE: str = "ja"
    REORDER_DEBOUNCE_MS: int = 500

    # Upload limits
    MAX_IMAGE_BYTES: int = 10 * 1024 * 1024
    MAX_VIDEO_BYTES: int = 200 * 1024 * 1024

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:3001",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
