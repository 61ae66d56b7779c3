"""
Configuration settings for the pga adapter.

Uses Pydantic Settings to load environment variables for the database
connection, the pool backend, and logging. `PostgreSQLAdapter` accepts either
a `Settings` instance or a plain mapping of field names/aliases.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("postgres", alias="DB_NAME")
    db_dsn: Optional[str] = Field(None, alias="DB_DSN")

    # Pool backend
    db_driver: Literal["asyncpg", "psycopg"] = Field("asyncpg", alias="DB_DRIVER")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE", ge=0)
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE", ge=1)
    db_connect_retries: int = Field(3, alias="DB_CONNECT_RETRIES", ge=1)

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def resolve_settings(config: Union[Settings, Mapping[str, Any], None]) -> Settings:
    """Turn the adapter's `config` argument into a Settings instance."""
    if config is None:
        return get_settings()
    if isinstance(config, Settings):
        return config
    return Settings(**dict(config))


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings, honouring an explicit DB_DSN."""
    settings = settings or get_settings()
    if settings.db_dsn:
        return settings.db_dsn
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


__all__ = ["Settings", "get_settings", "resolve_settings", "build_dsn"]
