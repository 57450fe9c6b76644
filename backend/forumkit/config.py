"""Application configuration via Pydantic Settings."""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App
    DEBUG: bool = True
    LOG_JSON: bool = False

    # Which RecordStore implementation to build
    STORE_BACKEND: Literal["http", "sql"] = "http"

    # Hosted record API
    RECORD_STORE_URL: str = "http://localhost:8080/api"
    RECORD_STORE_PROJECT_ID: str = ""
    RECORD_STORE_API_KEY: str = ""
    RECORD_STORE_TIMEOUT_SECONDS: float = 10.0
    RECORD_STORE_MAX_RETRIES: int = 3

    # Local SQL store
    DATABASE_URL: str = "sqlite+aiosqlite:///./forumkit.db"

    @model_validator(mode="after")
    def fix_database_url(self) -> "Settings":
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://"""
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            self.DATABASE_URL = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            self.DATABASE_URL = url.replace("postgres://", "postgresql+asyncpg://", 1)
        elif url.startswith("sqlite://"):
            self.DATABASE_URL = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return self

    # Paging / thresholds
    POST_PAGE_LIMIT: int = 100
    COMMENT_PAGE_LIMIT: int = 500
    COMMUNITY_PAGE_LIMIT: int = 100
    POPULAR_SCORE_THRESHOLD: int = 50

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
