"""
MediaVault Typer CLI Application

Entry point of the ``mediavault`` command. The main callback parses the
global options, configures logging and builds the dependency container
that the commands pull their services from.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Annotated, Optional

import typer
from dependency_injector import providers
from rich.console import Console

from mediavault.cli.common.context import CliContext, LogLevel, get_cli_context, set_cli_context
from mediavault.cli.common.error_handler import handle_cli_error
from mediavault.cli.common.options import (
    config_option,
    json_output_option,
    limit_option,
    log_level_option,
    version_option,
)
from mediavault.cli.library_handler import handle_library_add, handle_library_list
from mediavault.cli.scan_handler import (
    handle_history,
    handle_interrupted,
    handle_recover,
    handle_resume,
    handle_scan,
    handle_status,
)
from mediavault.config.loader import load_settings
from mediavault.config.models import Settings
from mediavault.containers import Container
from mediavault.core.models import LibraryType
from mediavault.shared.constants import CLICommands, CLIDefaults, CLIHelp
from mediavault.shared.logging import setup_structured_logger

__version__ = CLIDefaults.VERSION

console = Console()

app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    rich_markup_mode=CLIHelp.APP_STYLE,
    no_args_is_help=True,
    invoke_without_command=True,
)

library_app = typer.Typer(help=CLIHelp.LIBRARY_HELP, no_args_is_help=True)
app.add_typer(library_app, name=CLICommands.LIBRARY)


def build_container(config_path: Path | None = None) -> Container:
    """Create the service container, pinned to ``config_path`` when given."""
    container = Container()
    if config_path is not None:
        container.config.override(providers.Object(load_settings(config_path)))
    return container


def configure_logging(settings: Settings, log_level: LogLevel | None) -> None:
    """Install the package logger from settings; --log-level wins over the file."""
    setup_structured_logger(
        level=log_level.value if log_level is not None else settings.logging.level,
        log_file=settings.logging.file,
        use_rich_console=not settings.logging.json_console,
        console_output=settings.logging.console_output,
    )


def _shutdown(container: Container) -> None:
    container.job_runner().shutdown(wait=True)
    container.catalog().close()


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Annotated[Optional[LogLevel], log_level_option] = None,
    json_output: Annotated[bool, json_output_option] = False,
    config_path: Annotated[Optional[Path], config_option] = None,
    version: Annotated[bool, version_option] = False,
) -> None:
    """MediaVault - scan media libraries into a local catalog."""
    if version:
        typer.echo(CLIHelp.VERSION_TEXT.format(version=__version__))
        raise typer.Exit
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit

    set_cli_context(
        CliContext(
            log_level=log_level or LogLevel.INFO,
            json_output=json_output,
            config_path=config_path,
        )
    )

    try:
        container = build_container(config_path)
        configure_logging(container.config(), log_level)
        container.catalog()
    except Exception as e:
        exit_code = handle_cli_error(e, "main-callback", json_output=json_output)
        raise typer.Exit(exit_code) from e

    ctx.obj = container
    ctx.call_on_close(lambda: _shutdown(container))


def _run(ctx: typer.Context, command: str, handler: Callable[[Container, bool], int]) -> None:
    """Run a command handler and translate its outcome into an exit code."""
    json_output = get_cli_context().is_json_output_enabled()
    try:
        exit_code = handler(ctx.obj, json_output)
    except (Exception, KeyboardInterrupt) as e:
        exit_code = handle_cli_error(e, command, json_output=json_output)
    if exit_code != CLIDefaults.EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@library_app.command(CLICommands.LIBRARY_ADD, help=CLIHelp.LIBRARY_ADD_HELP)
def library_add_command(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Unique library name")],
    paths: Annotated[
        list[Path],
        typer.Argument(
            help="Root directories of the library",
            exists=True,
            file_okay=False,
            dir_okay=True,
            readable=True,
        ),
    ],
    library_type: Annotated[
        LibraryType,
        typer.Option("--type", "-t", case_sensitive=False, help="Kind of media in the library"),
    ] = LibraryType.MOVIES,
) -> None:
    _run(
        ctx,
        CLICommands.LIBRARY_ADD,
        lambda container, json_output: handle_library_add(
            container.catalog(),
            name,
            library_type,
            paths,
            console=console,
            json_output=json_output,
        ),
    )


@library_app.command(CLICommands.LIBRARY_LIST, help=CLIHelp.LIBRARY_LIST_HELP)
def library_list_command(ctx: typer.Context) -> None:
    _run(
        ctx,
        CLICommands.LIBRARY_LIST,
        lambda container, json_output: handle_library_list(
            container.catalog(),
            console=console,
            json_output=json_output,
        ),
    )


@app.command(CLICommands.SCAN, help=CLIHelp.SCAN_HELP)
def scan_command(
    ctx: typer.Context,
    library_id: Annotated[int, typer.Argument(help="Library to scan")],
) -> None:
    _run(
        ctx,
        CLICommands.SCAN,
        lambda container, json_output: handle_scan(
            container.scanner_service(),
            library_id,
            console=console,
            json_output=json_output,
        ),
    )


@app.command(CLICommands.STATUS, help=CLIHelp.STATUS_HELP)
def status_command(
    ctx: typer.Context,
    scan_id: Annotated[int, typer.Argument(help="Scan to show")],
) -> None:
    _run(
        ctx,
        CLICommands.STATUS,
        lambda container, json_output: handle_status(
            container.scanner_service(),
            scan_id,
            console=console,
            json_output=json_output,
        ),
    )


@app.command(CLICommands.HISTORY, help=CLIHelp.HISTORY_HELP)
def history_command(
    ctx: typer.Context,
    library_id: Annotated[int, typer.Argument(help="Library whose scans to show")],
    limit: Annotated[Optional[int], limit_option] = None,
) -> None:
    _run(
        ctx,
        CLICommands.HISTORY,
        lambda container, json_output: handle_history(
            container.scanner_service(),
            library_id,
            limit=limit,
            console=console,
            json_output=json_output,
        ),
    )


@app.command(CLICommands.INTERRUPTED, help=CLIHelp.INTERRUPTED_HELP)
def interrupted_command(ctx: typer.Context) -> None:
    _run(
        ctx,
        CLICommands.INTERRUPTED,
        lambda container, json_output: handle_interrupted(
            container.scanner_service(),
            console=console,
            json_output=json_output,
        ),
    )


@app.command(CLICommands.RESUME, help=CLIHelp.RESUME_HELP)
def resume_command(
    ctx: typer.Context,
    scan_id: Annotated[int, typer.Argument(help="Interrupted scan to resume")],
) -> None:
    _run(
        ctx,
        CLICommands.RESUME,
        lambda container, json_output: handle_resume(
            container.scanner_service(),
            scan_id,
            console=console,
            json_output=json_output,
        ),
    )


@app.command(CLICommands.RECOVER, help=CLIHelp.RECOVER_HELP)
def recover_command(ctx: typer.Context) -> None:
    _run(
        ctx,
        CLICommands.RECOVER,
        lambda container, json_output: handle_recover(
            container.recovery_service(),
            container.scanner_service(),
            console=console,
            json_output=json_output,
        ),
    )


def main_entry() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main_entry()
