"""
System Configuration Constants

This module contains constants related to application metadata,
file system locations and worker configuration.
"""

from __future__ import annotations

import os


class Application:
    """Application metadata constants."""

    NAME = "MediaVault"
    VERSION = "0.1.0"
    DESCRIPTION = "Media library scanner and catalog"


class FileSystem:
    """File system related constants."""

    HOME_DIR = ".mediavault"
    CONFIG_DIRECTORY = "config"
    CONFIG_FILE = "config.toml"
    LOG_DIRECTORY = "logs"
    DATABASE_FILE = "catalog.db"
    ENV_FILE = ".env"


class EnvVars:
    """Environment variable names."""

    PREFIX = "MEDIAVAULT_"
    CONFIG_PATH = "MEDIAVAULT_CONFIG"


class WorkerConfig:
    """Worker pool sizing."""

    MIN_WORKERS = 2
    MAX_WORKERS = 8
    DEFAULT = min(MAX_WORKERS, max(MIN_WORKERS, os.cpu_count() or 1))
