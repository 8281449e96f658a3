"""Application configuration using Pydantic Settings.

Reads configuration from environment variables with sensible defaults.
Credentials for the database and the remote image host must be provided
via environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application
    # =========================================================================
    environment: Literal["prod", "staging", "dev"] = Field(
        default="dev",
        description="Environment name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # =========================================================================
    # Database
    # =========================================================================
    db_user: str = Field(
        default="marketplace",
        description="Database user",
    )
    db_password: str = Field(
        default="",
        description="Database password",
    )
    db_name: str = Field(
        default="marketplace",
        description="Database name",
    )
    db_host: str = Field(
        default="localhost",
        description="Database host",
    )
    db_port: int = Field(
        default=5432,
        description="Database port",
    )
    db_pool_size: int = Field(
        default=5,
        description="Database connection pool size",
    )
    db_pool_max_overflow: int = Field(
        default=10,
        description="Max overflow connections beyond pool size",
    )
    db_url: str = Field(
        default="",
        description="Full SQLAlchemy URL, overrides the db_* fields when set",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Build the async database URL."""
        if self.db_url:
            return self.db_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================================================================
    # Remote image store (SFTP)
    # =========================================================================
    remote_host: str = Field(
        default="localhost",
        description="SFTP host receiving product images",
    )
    remote_port: int = Field(
        default=22,
        description="SFTP port",
    )
    remote_user: str = Field(
        default="",
        description="SFTP username",
    )
    remote_password: str = Field(
        default="",
        description="SFTP password",
    )
    remote_path: str = Field(
        default="/var/www/images",
        description="Remote directory where product images are written",
    )
    remote_known_hosts: str = Field(
        default="",
        description="known_hosts file for host key checks (empty disables checking)",
    )
    remote_cleanup_on_rollback: bool = Field(
        default=False,
        description="Remove files uploaded by a request whose transaction rolled back",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=True,
        description="Output logs as JSON",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for convenience
settings = get_settings()
