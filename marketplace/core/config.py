# marketplace/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string, or sqlite:// for local runs)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - CORS_ORIGINS, LOG_LEVEL, DEBUG
      - CHECKOUT_SUCCESS_REDIRECT / CHECKOUT_FAILURE_REDIRECT
    """

    PROJECT_NAME: str = "Marketplace Backend"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    LOG_LEVEL: str = "INFO"

    # When True, unexpected errors echo their message back to the client
    DEBUG: bool = False

    # Where the frontend should go after a checkout confirm
    CHECKOUT_SUCCESS_REDIRECT: str = "/purchases"
    CHECKOUT_FAILURE_REDIRECT: str = "/checkout"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
