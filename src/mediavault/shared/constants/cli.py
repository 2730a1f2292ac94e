"""
CLI Constants

Command names, defaults and help strings for the Typer application.
"""

from __future__ import annotations

from .system import Application


class CLIDefaults:
    """CLI default values and exit codes."""

    VERSION = Application.VERSION
    EXIT_SUCCESS = 0
    EXIT_ERROR = 1
    EXIT_INTERRUPTED = 130
    POLL_INTERVAL_SECONDS = 0.5


class CLICommands:
    """Command names."""

    LIBRARY = "library"
    LIBRARY_ADD = "add"
    LIBRARY_LIST = "list"
    SCAN = "scan"
    STATUS = "status"
    HISTORY = "history"
    INTERRUPTED = "interrupted"
    RESUME = "resume"
    RECOVER = "recover"


class CLIHelp:
    """Help text."""

    APP_NAME = "mediavault"
    APP_DESCRIPTION = "MediaVault - scan media libraries into a local catalog"
    APP_STYLE = "rich"
    VERSION_TEXT = "MediaVault CLI v{version}"
    LIBRARY_HELP = "Manage library sections"
    LIBRARY_ADD_HELP = "Register a library section with one or more root locations"
    LIBRARY_LIST_HELP = "List library sections"
    SCAN_HELP = "Scan a library and wait for it to finish (Ctrl+C cancels)"
    STATUS_HELP = "Show the status of a scan"
    HISTORY_HELP = "Show the scan history of a library"
    INTERRUPTED_HELP = "List scans that were interrupted mid-run"
    RESUME_HELP = "Resume an interrupted scan and wait for it"
    RECOVER_HELP = "Resume every interrupted scan"
