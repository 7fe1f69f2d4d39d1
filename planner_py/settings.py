# planner_py/settings.py
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite:///planner.db"
    DB_ECHO: bool = False
    ALLOW_ORIGINS: Optional[str] = None  # comma-separated
    PUBLIC_BASE_URL: Optional[str] = None

    # share backend
    SHARE_TTL_SECONDS: int = 60 * 60 * 24
    SHARE_RATE_LIMIT: int = 10
    SHARE_RATE_WINDOW_SECONDS: int = 15 * 60
    SHARE_MAX_ITEMS: int = 100
    SHARE_MAX_BODY_BYTES: int = 1024 * 1024

    # share client
    SHARE_API_URL: str = "http://localhost:8000"
    SHARE_LINK_EXPIRY_HOURS: int = 25

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
