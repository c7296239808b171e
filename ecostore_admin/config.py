# ecostore_admin/config.py
from typing import Optional
from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV: str = "development"

    # storefront REST backend the dashboard talks to
    BACKEND_URL: str = "http://localhost:5000"
    GATEWAY_TIMEOUT: Optional[float] = None  # None = wait for the backend indefinitely

    # staged image limits / previews
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024
    PREVIEW_DIR: Path = Path("static/previews")
    PREVIEW_MAX_SIDE: int = 300

    # file-backed tables (save warning ledger)
    DATA_DIR: Path = Path("data")
    SAVE_WARNINGS_FILE: str = "save_warnings.csv"

    # comma separated list, e.g. CORS_ORIGINS=http://localhost:5173,https://admin.example.com
    CORS_ORIGINS: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()


settings = get_settings()
