from typing import Literal

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # core
    ENV: str = "dev"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # database
    # Plain string so sqlite:// URLs (tests, local runs) are accepted too
    DATABASE_URL: str

    # auth / security
    # Bearer token expected on the ingest endpoint; unset means every call is rejected
    INGEST_TOKEN: str | None = None
    FRONTEND_ORIGIN: str | None = None
    # Explicit debug-only switch for wide-open CORS in non-prod envs
    CORS_ALLOW_ALL_ORIGINS: bool = False

    # ingestion
    # "constraint": rely on unique constraints, "precheck": query fingerprints first
    DEDUP_STRATEGY: Literal["constraint", "precheck"] = "constraint"
    NEWS_FULL_TEXT_MAX_CHARS: int = 8000
    DEFAULT_INSIGHT_CONFIDENCE: float = 0.8
    DEFAULT_NEWS_IMPORTANCE: float = 0.6

    # read
    READ_DEFAULT_LIMIT: int = 5
    READ_MAX_LIMIT: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
