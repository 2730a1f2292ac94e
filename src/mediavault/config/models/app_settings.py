"""Application and logging configuration models.

This module contains configuration models for application-level
settings and logging configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from mediavault.shared.constants import Application


class AppSettings(BaseSettings):
    """Application configuration.

    This class manages application-level settings including
    name, version and debug mode.
    """

    model_config = {
        "env_prefix": "MEDIAVAULT_APP__",
        "env_nested_delimiter": "__",
        "env_ignore_empty": True,
        "extra": "ignore",
    }

    name: str = Field(default=Application.NAME, description="Application name")
    version: str = Field(default=Application.VERSION, description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")


class LoggingSettings(BaseModel):
    """Logging configuration.

    Controls the console handler (Rich or JSON lines) and the optional
    JSON log file.
    """

    level: str = Field(default="INFO", description="Logging level")
    file: str | None = Field(default=None, description="Optional JSON log file path")
    console_output: bool = Field(default=True, description="Enable console logging")
    json_console: bool = Field(
        default=False,
        description="Write JSON lines to the console instead of Rich output",
    )
