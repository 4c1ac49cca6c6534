"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Store settings loaded from environment variables (DAX_ prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="DAX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///dax.db"

    # Default admin created on first initialization
    default_admin_id: str = "admin"
    default_admin_username: str = "admin"
    default_admin_email: str = "admin@dax.local"

    # Limits
    activity_default_limit: int = 100
    search_max_results: int = 200

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "DAX Store"
    version: str = "0.1.0"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
