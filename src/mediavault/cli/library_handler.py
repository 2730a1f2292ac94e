"""Library command handlers for MediaVault CLI."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.table import Table

from mediavault.cli.json_formatter import format_json_output, write_json_output
from mediavault.core.models import LibrarySection, LibraryType
from mediavault.services import CatalogDB
from mediavault.shared.constants import CLICommands, CLIDefaults

logger = logging.getLogger(__name__)


def handle_library_add(
    catalog: CatalogDB,
    name: str,
    library_type: LibraryType,
    paths: Sequence[Path],
    *,
    console: Console,
    json_output: bool = False,
) -> int:
    """Register a library section.

    Args:
        catalog: Catalog facade
        name: Unique library name
        library_type: Kind of media the library holds
        paths: Root directories of the library
        console: Console for human-readable output
        json_output: Write a JSON envelope instead

    Returns:
        Exit code
    """
    root_paths = [str(path.resolve()) for path in paths]
    library = catalog.create_library(name, library_type, root_paths)
    logger.info("Created library %s (%s)", library.id, library.name)

    if json_output:
        write_json_output(
            format_json_output(
                success=True,
                command=CLICommands.LIBRARY_ADD,
                data=library.model_dump(mode="json"),
            )
        )
    else:
        console.print(
            f"[green]Created library[/green] [bold]{library.name}[/bold] "
            f"(id {library.id}, {library.library_type.value})"
        )
        for location in library.locations:
            console.print(f"  {location.root_path}")
    return CLIDefaults.EXIT_SUCCESS


def handle_library_list(
    catalog: CatalogDB,
    *,
    console: Console,
    json_output: bool = False,
) -> int:
    """List library sections with their item counts."""
    libraries = catalog.list_libraries()

    if json_output:
        data = []
        for library in libraries:
            entry = library.model_dump(mode="json")
            entry["item_count"] = catalog.count_items(library.id)
            data.append(entry)
        write_json_output(
            format_json_output(success=True, command=CLICommands.LIBRARY_LIST, data=data)
        )
        return CLIDefaults.EXIT_SUCCESS

    if not libraries:
        console.print("[yellow]No libraries registered[/yellow]")
        return CLIDefaults.EXIT_SUCCESS

    console.print(_library_table(catalog, libraries))
    return CLIDefaults.EXIT_SUCCESS


def _library_table(catalog: CatalogDB, libraries: Sequence[LibrarySection]) -> Table:
    table = Table(title="Libraries")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Items", justify="right")
    table.add_column("Last scanned")
    table.add_column("Locations", overflow="fold")

    for library in libraries:
        scanned = library.last_scanned_at.isoformat(timespec="seconds") if library.last_scanned_at else "-"
        table.add_row(
            str(library.id),
            library.name,
            library.library_type.value,
            str(catalog.count_items(library.id)),
            scanned,
            "\n".join(location.root_path for location in library.locations),
        )
    return table
