from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./effort_ledger.db"

    # App
    APP_DEBUG: bool = False
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Ledger
    # A log entry may only be undone this long after its server-side creation time.
    UNDO_WINDOW_MINUTES: int = 10

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return (v or "INFO").upper()

    @field_validator("UNDO_WINDOW_MINUTES")
    @classmethod
    def check_undo_window(cls, v: int) -> int:
        if v < 0:
            raise ValueError("UNDO_WINDOW_MINUTES must be >= 0")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
