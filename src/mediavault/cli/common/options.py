"""
Reusable Typer Options Module

Option declarations shared by the main callback and the commands. Use
them as ``Annotated[<type>, <option>]`` metadata.
"""

from __future__ import annotations

import typer

log_level_option = typer.Option(
    "--log-level",
    case_sensitive=False,
    help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: INFO.",
)

json_output_option = typer.Option(
    "--json",
    help="Enable machine-readable JSON output instead of human-readable format.",
)

config_option = typer.Option(
    "--config",
    "-c",
    exists=True,
    file_okay=True,
    dir_okay=False,
    readable=True,
    help="Path of a TOML configuration file.",
)

version_option = typer.Option(
    "--version",
    "-V",
    help="Show version information and exit.",
    is_eager=True,
)

limit_option = typer.Option(
    "--limit",
    "-n",
    min=1,
    help="Maximum number of scans to show.",
)
