"""
Configuration settings for tigen.

Uses Pydantic Settings to load environment variables (or a `.env` file) for the
database connection, logging, and generation defaults. CLI flags override these
values per run.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("127.0.0.1", alias="TIGEN_DB_HOST")
    db_port: int = Field(4000, alias="TIGEN_DB_PORT")
    db_user: str = Field("root", alias="TIGEN_DB_USER")
    db_password: str = Field("", alias="TIGEN_DB_PASSWORD")
    db_name: str = Field("test", alias="TIGEN_DB_NAME")
    connect_timeout: int = Field(10, alias="TIGEN_CONNECT_TIMEOUT")
    connect_retries: int = Field(0, alias="TIGEN_CONNECT_RETRIES")

    # Application
    log_level: str = Field("INFO", alias="TIGEN_LOG_LEVEL")
    json_logs: bool = Field(False, alias="TIGEN_JSON_LOGS")

    # Generation defaults
    table_name: str = Field("t", alias="TIGEN_TABLE")
    column_count: int = Field(10, alias="TIGEN_COLUMNS")
    row_count: int = Field(20_000, alias="TIGEN_ROWS")
    worker_count: int = Field(10, alias="TIGEN_WORKERS")
    batch_size: int = Field(1_000, alias="TIGEN_BATCH_SIZE")
    primary_key: bool = Field(True, alias="TIGEN_PRIMARY_KEY")
    seed: Optional[int] = Field(None, alias="TIGEN_SEED")

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


__all__ = ["Settings", "get_settings"]
