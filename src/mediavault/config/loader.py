"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for the Settings instance
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from mediavault.config.models.settings import Settings
from mediavault.shared.constants import EnvVars, FileSystem
from mediavault.shared.errors import ApplicationError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking to keep the fast path lock-free.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def get_config(self) -> Settings:
        """Get the global settings instance, loading it on first use.

        Returns:
            The global Settings instance.
        """
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings()

        return self._instance

    def reload_config(self, config_path: str | Path | None = None) -> Settings:
        """Reload the global settings instance.

        Args:
            config_path: Optional explicit TOML file to load

        Returns:
            The reloaded Settings instance.
        """
        with self._lock:
            self._instance = load_settings(config_path)

        return self._instance


def _load_env_file(env_file: Path | None = None) -> None:
    """Load environment variables from a .env file when one exists.

    Values already present in the environment win over the file.
    """
    env_file = env_file or Path(FileSystem.ENV_FILE)
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def _default_config_paths() -> list[Path]:
    return [
        Path(FileSystem.CONFIG_DIRECTORY) / FileSystem.CONFIG_FILE,
        Path(FileSystem.CONFIG_FILE),
        Path.home() / FileSystem.HOME_DIR / FileSystem.CONFIG_FILE,
    ]


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Lookup order: the explicit ``config_path``, the ``MEDIAVAULT_CONFIG``
    environment variable, then the default locations. Without any file,
    settings come from defaults and environment variables only.

    Args:
        config_path: Optional path to a TOML configuration file

    Returns:
        Settings instance

    Raises:
        ApplicationError: If the file is missing or fails validation
    """
    _load_env_file()

    explicit = config_path or os.environ.get(EnvVars.CONFIG_PATH)
    try:
        if explicit:
            return Settings.from_toml_file(explicit)

        for candidate in _default_config_paths():
            if candidate.exists():
                return Settings.from_toml_file(candidate)

        return Settings()
    except FileNotFoundError as e:
        raise ApplicationError(
            code=ErrorCode.CONFIG_MISSING,
            message=str(e),
            context=ErrorContext(
                operation="load_settings",
                additional_data={"config_path": str(explicit)},
            ),
            original_error=e,
        ) from e
    except (ValidationError, ValueError) as e:
        raise ApplicationError(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=f"Invalid configuration: {e}",
            context=ErrorContext(operation="load_settings"),
            original_error=e,
        ) from e


_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config(config_path: str | Path | None = None) -> Settings:
    """Reload the global settings instance from configuration files."""
    return _loader.reload_config(config_path)


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
]
