"""Configuration models package."""

from __future__ import annotations

from mediavault.config.models.app_settings import AppSettings, LoggingSettings
from mediavault.config.models.catalog_settings import DatabaseSettings, JobSettings
from mediavault.config.models.scan_settings import FilterSettings, ScanSettings
from mediavault.config.models.settings import Settings

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "FilterSettings",
    "JobSettings",
    "LoggingSettings",
    "ScanSettings",
    "Settings",
]
