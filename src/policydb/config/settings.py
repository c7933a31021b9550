"""Application settings and configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from policydb.storage.kvdb import DEFAULT_MAX_BATCH_SIZE, DEFAULT_TIMEOUT


class DatabaseSettings(BaseModel):
    """Database file configuration."""

    path: Path = Path("policies.db")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    max_batch_size: int = Field(default=DEFAULT_MAX_BATCH_SIZE, ge=1)


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from ``POLICYDB_``-prefixed environment variables or
    a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="POLICYDB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Database Configuration
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # Logging
    log_level: str = "INFO"

    def __init__(self, **data: Any) -> None:
        """Initialize settings with environment variable overrides."""
        super().__init__(**data)
        self._load_env_overrides()

    def _load_env_overrides(self) -> None:
        """Load short-form environment overrides for nested settings."""
        if path := os.getenv("POLICYDB_PATH"):
            self.db.path = Path(path)
        if timeout := os.getenv("POLICYDB_TIMEOUT"):
            self.db.timeout = float(timeout)
        if size := os.getenv("POLICYDB_MAX_BATCH_SIZE"):
            self.db.max_batch_size = int(size)
