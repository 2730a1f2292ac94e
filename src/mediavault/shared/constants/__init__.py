"""
MediaVault Constants Module

Centralized constants for MediaVault. Magic values live here so the
rest of the code base refers to them by name.
"""

from .cli import CLICommands, CLIDefaults, CLIHelp
from .file_formats import (
    AudioFormats,
    ExclusionPatterns,
    ImageFormats,
    SidecarFormats,
    VideoFormats,
)
from .scan import CheckpointConfig, PipelineStages, ScanDefaults, ScanLogMessages
from .system import Application, EnvVars, FileSystem, WorkerConfig

__all__ = [
    "Application",
    "AudioFormats",
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CheckpointConfig",
    "EnvVars",
    "ExclusionPatterns",
    "FileSystem",
    "ImageFormats",
    "PipelineStages",
    "ScanDefaults",
    "ScanLogMessages",
    "SidecarFormats",
    "VideoFormats",
    "WorkerConfig",
]
