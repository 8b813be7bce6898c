# workclock/core/config.py
from functools import lru_cache

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables (or a local `.env` file)
    at runtime and cover:
    - DB connection used for the preferences key-value store
    - monday.com API credentials for the people directory
    - Logging level and the refresh cadence advertised to clients
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "WorkClock"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")
    LOG_LEVEL: str = Field("INFO", description="Root log level for the service.")

    DB_URL: str = Field(
        "sqlite+aiosqlite:///./workclock.db",
        description="SQLAlchemy-compatible database URL for the preferences store.",
    )

    # --- Directory (monday.com) ---
    MONDAY_API_TOKEN: str | None = Field(
        default=None,
        description="API token used to list people assigned on a board.",
    )
    MONDAY_API_URL: AnyHttpUrl = Field(
        "https://api.monday.com/v2",
        description="GraphQL endpoint of the monday.com API.",
    )
    MONDAY_API_VERSION: str | None = Field(
        default=None,
        description="Optional API-Version header (e.g. '2024-10').",
    )
    DIRECTORY_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="HTTP timeout for directory queries.",
    )

    # --- Preferences ---
    PREFERENCES_KEY: str = Field(
        "workclock:user:settings",
        description="Storage key holding the whole preferences aggregate.",
    )
    REFRESH_INTERVAL_SECONDS: int = Field(
        default=30,
        description="Suggested interval for clients to re-request the roster.",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Settings are read and validated only once; tests pass an explicit
    Settings instance to `create_app` instead of patching the cache.
    """
    return Settings()
