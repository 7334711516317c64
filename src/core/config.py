"""Application configuration and .env loading."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized runtime configuration."""

    data_dir: Path = Field(
        default=Path("agriledger_data"), validation_alias="AGRILEDGER_DATA_DIR"
    )
    backup_dir: Path = Field(
        default=Path("backups"), validation_alias="AGRILEDGER_BACKUP_DIR"
    )
    staging_dir: Path | None = Field(
        default=None, validation_alias="AGRILEDGER_STAGING_DIR"
    )
    backup_prefix: str = Field(
        default="AgriLedger_Backup", validation_alias="AGRILEDGER_BACKUP_PREFIX"
    )

    default_payment_types: list[str] = Field(
        default_factory=lambda: ["Income", "Expense"],
        validation_alias="AGRILEDGER_DEFAULT_PAYMENT_TYPES",
    )
    default_payment_categories: list[str] = Field(
        default_factory=lambda: ["Seeds", "Fertilizer", "Labor", "Equipment"],
        validation_alias="AGRILEDGER_DEFAULT_PAYMENT_CATEGORIES",
    )

    log_level: str = Field(default="WARNING", validation_alias="AGRILEDGER_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "WARNING"

    @property
    def resolved_staging_dir(self) -> Path:
        if self.staging_dir is not None:
            return self.staging_dir
        return self.data_dir / ".staging"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once from .env/environment."""
    return Settings()


__all__ = ["Settings", "get_settings"]
