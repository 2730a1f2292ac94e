"""MediaVault Configuration Module

Unified access to configuration models and settings management:
- Settings: Main configuration facade
- Loader functions: get_config, load_settings, reload_config
- Domain models: App, Logging, Database, Scan, Filter and Job settings
"""

from __future__ import annotations

from .loader import get_config, load_settings, reload_config
from .models import (
    AppSettings,
    DatabaseSettings,
    FilterSettings,
    JobSettings,
    LoggingSettings,
    ScanSettings,
    Settings,
)

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "FilterSettings",
    "JobSettings",
    "LoggingSettings",
    "ScanSettings",
    "Settings",
    "get_config",
    "load_settings",
    "reload_config",
]
