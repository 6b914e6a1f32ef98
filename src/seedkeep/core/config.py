"""Configuration management for SeedKeep.

Settings come from ``SEEDKEEP_``-prefixed environment variables and an
optional ``.env`` file, validated once by Pydantic Settings and cached for the
life of the process.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Page sizes offered by the grid's "rows per page" selector.
PAGE_SIZE_OPTIONS: tuple[int, ...] = (10, 20, 30, 40, 50)


class Settings(BaseSettings):
    """Application configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SEEDKEEP_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "SeedKeep"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Inventory store
    database_url: str = "sqlite+aiosqlite:///./seedkeep_data/seedkeep.db"
    db_echo: bool = False
    db_create_tables: bool = Field(
        default=True,
        description="Create missing tables when the store opens",
    )

    # Bearer tokens issued by the authentication provider
    secret_key: str = Field(
        default="change-me-in-production-use-openssl-rand-hex-32",
        description="Shared secret used to verify bearer tokens",
    )
    access_token_expire_minutes: int = 60

    # CORS
    cors_origins: list[str] = Field(default=["http://localhost:3000", "http://localhost:8000"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Grid and export
    dataset_name: str = Field(default="inventory", description="Prefix of export filenames")
    default_page_size: int = 10

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("default_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Only page sizes offered by the grid are accepted."""
        if v not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"default_page_size must be one of {PAGE_SIZE_OPTIONS}")
        return v

    @field_validator("dataset_name")
    @classmethod
    def validate_dataset_name(cls, v: str) -> str:
        name = v.strip()
        if not name or any(c in name for c in '/\\:*?"<>|'):
            raise ValueError("dataset_name must be usable in a filename")
        return name

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @model_validator(mode="after")
    def validate_sqlite_workers(self) -> "Settings":
        """SQLite cannot be shared by several worker processes."""
        if self.workers > 1 and self.database_url.startswith("sqlite"):
            raise ValueError(
                "SQLite does not support multiple worker processes. "
                f"Requested {self.workers} workers, but SQLite requires workers=1. "
                "Either use --workers 1 or switch to PostgreSQL."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
