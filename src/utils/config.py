"""
Pathwatch Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


class WatcherSettings(BaseSettings):
    """Change watcher configuration settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    latency_ms: int = Field(
        default=0,
        ge=0,
        le=5000,
        description="Window in which notifications are merged before delivery",
    )
    use_polling: bool = Field(default=False, description="Use the polling observer")
    polling_interval: float = Field(default=0.25, gt=0.0, le=60.0)
    observer_timeout: float = Field(
        default=0.2,
        gt=0.0,
        le=10.0,
        description="How long the observer blocks on its event queue",
    )
    stop_timeout: float = Field(default=5.0, ge=0.0, description="Join timeout on close")


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="json")  # "json" or "console"
    file_path: Path | None = Field(default=None)

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept lowercase level names."""
        level = str(v).strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, v: str) -> str:
        """Only json and console renderers exist."""
        fmt = str(v).strip().lower()
        if fmt not in ("json", "console"):
            raise ValueError(f"unknown log format: {v}")
        return fmt


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Pathwatch")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings. Call ``get_settings.cache_clear()``
    after changing the environment to pick up new values.
    """
    return Settings()

