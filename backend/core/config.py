from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic.aliases import AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BACKEND_DIR / ".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = Field(
        default=f"sqlite:///{BACKEND_DIR / 'invigilation.db'}",
        validation_alias=AliasChoices("database_url", "DATABASE_URL"),
    )

    # Runtime
    environment: str = Field(default="development", validation_alias=AliasChoices("environment", "ENVIRONMENT"))
    frontend_origin: str = Field(
        default="http://localhost:5173",
        validation_alias=AliasChoices("frontend_origin", "FRONTEND_ORIGIN"),
    )

    # Create missing tables on startup. Disable when the schema is managed by migrations.
    auto_create_tables: bool = Field(
        default=True,
        validation_alias=AliasChoices("auto_create_tables", "AUTO_CREATE_TABLES"),
    )

    # Allocation
    # A run holds the scope lease at most this long; a crashed run stops blocking the scope afterwards.
    allocation_lease_seconds: int = Field(
        default=600,
        ge=1,
        validation_alias=AliasChoices("allocation_lease_seconds", "ALLOCATION_LEASE_SECONDS"),
    )

    @field_validator("frontend_origin")
    @classmethod
    def _normalize_frontend_origin(cls, v: str) -> str:
        # Starlette CORS expects the Origin to match exactly (no trailing slash).
        return v.strip().rstrip("/")

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, v: str) -> str:
        return (v or "development").strip().lower()

    @field_validator("database_url")
    @classmethod
    def _normalize_database_url(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("DATABASE_URL must not be empty")
        return v


settings = Settings()
