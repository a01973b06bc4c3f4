"""Application settings and configuration.

This module defines all configuration options for the docnotary registry.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROGRAM_ID_HEX_LENGTH = 64


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="docnotary", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./docnotary.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Registry storage
    storage_backend: Literal["sql", "memory"] = Field(default="sql", alias="STORAGE_BACKEND")
    storage_strategy: Literal["segmented", "mapping"] = Field(
        default="segmented",
        alias="STORAGE_STRATEGY",
    )
    # Namespace mixed into every segmented address so independent registries never collide.
    program_id: str = Field(
        default="9d1c3b5f0e7a4c28b6f1d0e93a5c7b2418f6e0d4c3b2a19807f6e5d4c3b2a190",
        alias="PROGRAM_ID",
    )

    # CORS configuration for relayer front-ends
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("program_id")
    @classmethod
    def _validate_program_id(cls, value: str) -> str:
        value = value.strip().lower()
        if len(value) != _PROGRAM_ID_HEX_LENGTH:
            raise ValueError("PROGRAM_ID must be 32 bytes encoded as 64 hex characters")
        bytes.fromhex(value)
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def program_id_bytes(self) -> bytes:
        """Return the registry namespace identifier as raw bytes."""
        return bytes.fromhex(self.program_id)


settings = Settings()
