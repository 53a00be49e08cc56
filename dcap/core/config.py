"""Application configuration management."""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


LOG_FORMATS = ("text", "json")


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "dcap"
    app_version: str = "0.1.0"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Storage
    types_dir: Path = Path("config/types")
    store_dir: Path = Path("data/objects")
    database_url: str = "sqlite+aiosqlite:///./dcap.db"

    # Catalog pointer persistence
    pointer_retry_attempts: int = 3
    pointer_retry_delay: float = 0.1

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    def __post_init__(self):
        """Validate settings after initialization."""
        self.types_dir = Path(self.types_dir)
        self.store_dir = Path(self.store_dir)
        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f"LOG_FORMAT must be one of {LOG_FORMATS}, got '{self.log_format}'"
            )
        if self.pointer_retry_attempts < 1:
            raise ValueError("POINTER_RETRY_ATTEMPTS must be at least 1")
        if self.pointer_retry_delay < 0:
            raise ValueError("POINTER_RETRY_DELAY must not be negative")


def load_settings_from_env() -> Settings:
    """Load settings from environment variables (and a .env file if present)."""
    load_dotenv()

    def get_int(key: str, default: int) -> int:
        return int(os.getenv(key, str(default)))

    def get_float(key: str, default: float) -> float:
        return float(os.getenv(key, str(default)))

    return Settings(
        # App
        app_name=os.getenv("APP_NAME", "dcap"),
        app_version=os.getenv("APP_VERSION", "0.1.0"),

        # Server
        host=os.getenv("HOST", "0.0.0.0"),
        port=get_int("PORT", 8000),

        # Storage
        types_dir=Path(os.getenv("TYPES_DIR", "config/types")),
        store_dir=Path(os.getenv("STORE_DIR", "data/objects")),
        database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./dcap.db"),

        # Catalog pointer persistence
        pointer_retry_attempts=get_int("POINTER_RETRY_ATTEMPTS", 3),
        pointer_retry_delay=get_float("POINTER_RETRY_DELAY", 0.1),

        # Logging
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "text").lower(),
    )


@lru_cache
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return load_settings_from_env()


def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    get_settings.cache_clear()
