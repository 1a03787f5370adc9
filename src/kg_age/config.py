"""
Configuration management for kg_age.

Uses pydantic-settings for environment variable loading and validation.
"""

from typing import Literal

from psycopg.conninfo import make_conninfo
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="POSTGRES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # PostgreSQL connection
    host: str = Field(default="127.0.0.1", description="PostgreSQL hostname")
    port: int = Field(default=5432, description="PostgreSQL port")
    db: str = Field(default="age_db", description="Database name")
    user: str = Field(default="postgres", description="Database user")
    password: str = Field(default="password", description="Database password")

    # Connection pool
    pool_min_size: int = Field(default=1, ge=0, description="Connections kept open")
    pool_max_size: int = Field(default=20, ge=1, description="Maximum connections in pool")
    pool_idle_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Close idle connections after this many seconds",
    )
    pool_connect_timeout: float = Field(
        default=2.0,
        gt=0,
        description="Seconds to wait for a connection before failing",
    )
    pool_reconnect_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Seconds of failed reconnect attempts before the pool reports unhealthy",
    )
    open_retries: int = Field(default=3, ge=1, description="Attempts to open the pool")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        validation_alias="KG_AGE_LOG_LEVEL",
        description="Logging level",
    )

    def conninfo(self) -> str:
        """Build a libpq connection string for psycopg.

        Format: host=... port=... dbname=... user=... password=...
        """
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.db,
            user=self.user,
            password=self.password,
            connect_timeout=max(1, int(self.pool_connect_timeout)),
        )


# Global settings instance
settings = Settings()
