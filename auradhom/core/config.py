# auradhom/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Durable backend (.env), optional:
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - SUPABASE_SERVICE_ROLE_KEY (preferred when present, bypasses RLS)

    If the Supabase values are missing or still hold the placeholders,
    every collection is served by the local fallback store instead.

    Local stores:
      - LOCAL_DATABASE_URL  : fallback store when Supabase is unavailable
      - BACKUP_DATABASE_URL : order backup cache (always local)
    """

    PROJECT_NAME: str = "AuraDhom Orders API"
    API_V1_STR: str = "/api/v1"

    # Supabase config
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_TIMEOUT_SECONDS: float = 10.0

    # JWT verification (admin endpoints)
    SUPABASE_JWT_SECRET: str | None = None
    SUPABASE_JWT_ALG: str = "HS256"

    LOCAL_DATABASE_URL: str = "sqlite:///./auradhom_local.db"
    BACKUP_DATABASE_URL: str = "sqlite:///./auradhom_backup.db"

    # International format, digits only
    WHATSAPP_PHONE: str = "242050728339"

    CORS_ORIGINS: list[str] = [
        "http://localhost:4200",
        "http://127.0.0.1:4200",
        "http://localhost:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
