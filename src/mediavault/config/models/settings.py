"""MediaVault Settings Configuration Model.

Main Settings class that consolidates all configuration domains.
"""

from __future__ import annotations

import logging
from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mediavault.config.models.app_settings import AppSettings, LoggingSettings
from mediavault.config.models.catalog_settings import DatabaseSettings, JobSettings
from mediavault.config.models.scan_settings import ScanSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings facade providing unified configuration access.

    Values come from a TOML file when one is loaded and may be overridden
    with ``MEDIAVAULT_<SECTION>__<FIELD>`` environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDIAVAULT_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    scan: ScanSettings = Field(default_factory=ScanSettings)
    jobs: JobSettings = Field(default_factory=JobSettings)

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from TOML file with environment variable overrides."""
        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        logger.debug("Loaded configuration from %s", file_path)
        return cls(**raw_config)

    def to_toml_file(self, file_path: str | Path) -> None:
        """Save settings to TOML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(exclude_none=True, by_alias=True)

        with open(file_path, "w", encoding="utf-8") as f:
            toml.dump(config_dict, f)
