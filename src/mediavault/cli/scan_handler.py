"""Scan command handlers for MediaVault CLI.

Scans execute on the job runner's worker threads inside this process; the
handlers start or resume them, then poll the catalog until the scan
reaches a terminal state. Ctrl+C while waiting requests cooperative
cancellation and keeps waiting for the scan to settle.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from typing import Any

from rich.console import Console
from rich.table import Table

from mediavault.cli.json_formatter import format_json_output, write_json_output
from mediavault.core.models import LibraryScan, ScanStatus
from mediavault.services import LibraryScannerService, ScanRecoveryService
from mediavault.shared.constants import CLICommands, CLIDefaults
from mediavault.shared.errors import create_scan_not_found_error

logger = logging.getLogger(__name__)

_STATUS_STYLES = {
    ScanStatus.PENDING: "dim",
    ScanStatus.RUNNING: "cyan",
    ScanStatus.COMPLETED: "green",
    ScanStatus.FAILED: "red",
    ScanStatus.CANCELLED: "yellow",
}


def wait_for_scan(
    scanner: LibraryScannerService,
    scan_id: int,
    *,
    console: Console | None = None,
    poll_interval: float = CLIDefaults.POLL_INTERVAL_SECONDS,
) -> tuple[LibraryScan, bool]:
    """Block until a scan is terminal.

    The first Ctrl+C requests cancellation; cancellation is re-requested
    on every poll until the scan is actually executing. A second Ctrl+C
    propagates.

    Args:
        scanner: Scanner service
        scan_id: Scan to wait for
        console: Console for a live status line, None for silent waiting
        poll_interval: Seconds between status polls

    Returns:
        The terminal scan record and whether the user interrupted the wait

    Raises:
        DomainError: If the scan disappears
    """
    interrupted = False
    cancel_signalled = False

    while True:
        try:
            scan = _poll_until_terminal(
                scanner,
                scan_id,
                console=console,
                poll_interval=poll_interval,
                retry_cancel=interrupted and not cancel_signalled,
            )
            return scan, interrupted
        except KeyboardInterrupt:
            if interrupted:
                raise
            interrupted = True
            logger.warning("Interrupted, cancelling scan %s", scan_id)
            cancel_signalled = scanner.cancel_scan(scan_id)


def _poll_until_terminal(
    scanner: LibraryScannerService,
    scan_id: int,
    *,
    console: Console | None,
    poll_interval: float,
    retry_cancel: bool,
) -> LibraryScan:
    if console is None:
        return _poll(scanner, scan_id, None, poll_interval, retry_cancel=retry_cancel)
    with console.status(f"Scan {scan_id}: pending") as status:
        return _poll(scanner, scan_id, status, poll_interval, retry_cancel=retry_cancel)


def _poll(
    scanner: LibraryScannerService,
    scan_id: int,
    status: Any,
    poll_interval: float,
    *,
    retry_cancel: bool,
) -> LibraryScan:
    while True:
        scan = scanner.get_scan_status(scan_id)
        if scan is None:
            raise create_scan_not_found_error(scan_id, "wait_for_scan")
        if scan.status.is_terminal:
            return scan
        if retry_cancel and scanner.cancel_scan(scan_id):
            retry_cancel = False
        if status is not None:
            status.update(
                f"Scan {scan_id}: {scan.status.value} "
                f"({scan.processed_files}/{scan.total_files} files, "
                f"+{scan.items_added} ~{scan.items_updated} -{scan.items_removed})"
            )
        time.sleep(poll_interval)


def _scan_exit_code(scan: LibraryScan, *, interrupted: bool) -> int:
    if scan.status == ScanStatus.COMPLETED:
        return CLIDefaults.EXIT_SUCCESS
    if scan.status == ScanStatus.CANCELLED and interrupted:
        return CLIDefaults.EXIT_INTERRUPTED
    return CLIDefaults.EXIT_ERROR


def _scan_data(scan: LibraryScan) -> dict[str, Any]:
    data = scan.model_dump(mode="json")
    data["duration_seconds"] = scan.duration_seconds
    return data


def handle_scan(
    scanner: LibraryScannerService,
    library_id: int,
    *,
    console: Console,
    json_output: bool = False,
) -> int:
    """Start a scan of a library (or join the active one) and wait for it.

    Returns:
        0 when the scan completed, 130 when cancelled by Ctrl+C, 1 otherwise
    """
    scan_id = scanner.start_scan(library_id)
    logger.info("Waiting for scan %s of library %s", scan_id, library_id)
    scan, interrupted = wait_for_scan(
        scanner,
        scan_id,
        console=None if json_output else console,
    )
    _output_scans(CLICommands.SCAN, [scan], console=console, json_output=json_output)
    return _scan_exit_code(scan, interrupted=interrupted)


def handle_resume(
    scanner: LibraryScannerService,
    scan_id: int,
    *,
    console: Console,
    json_output: bool = False,
) -> int:
    """Resume an interrupted scan and wait for it."""
    if not scanner.resume_scan(scan_id):
        logger.info("Scan %s is already executing, waiting for it", scan_id)
    scan, interrupted = wait_for_scan(
        scanner,
        scan_id,
        console=None if json_output else console,
    )
    _output_scans(CLICommands.RESUME, [scan], console=console, json_output=json_output)
    return _scan_exit_code(scan, interrupted=interrupted)


def handle_recover(
    recovery: ScanRecoveryService,
    scanner: LibraryScannerService,
    *,
    console: Console,
    json_output: bool = False,
) -> int:
    """Resume every interrupted scan and wait for all of them."""
    resumed = recovery.recover()
    if not resumed:
        if json_output:
            write_json_output(
                format_json_output(
                    success=True,
                    command=CLICommands.RECOVER,
                    data=[],
                    warnings=["No interrupted scans to resume"],
                )
            )
        else:
            console.print("[yellow]No interrupted scans to resume[/yellow]")
        return CLIDefaults.EXIT_SUCCESS

    finished: list[LibraryScan] = []
    exit_code = CLIDefaults.EXIT_SUCCESS
    for scan_id in resumed:
        scan, interrupted = wait_for_scan(
            scanner,
            scan_id,
            console=None if json_output else console,
        )
        finished.append(scan)
        exit_code = max(exit_code, _scan_exit_code(scan, interrupted=interrupted))

    _output_scans(CLICommands.RECOVER, finished, console=console, json_output=json_output)
    return exit_code


def handle_status(
    scanner: LibraryScannerService,
    scan_id: int,
    *,
    console: Console,
    json_output: bool = False,
) -> int:
    """Show one scan record."""
    scan = scanner.get_scan_status(scan_id)
    if scan is None:
        raise create_scan_not_found_error(scan_id, CLICommands.STATUS)
    _output_scans(CLICommands.STATUS, [scan], console=console, json_output=json_output)
    return CLIDefaults.EXIT_SUCCESS


def handle_history(
    scanner: LibraryScannerService,
    library_id: int,
    *,
    limit: int | None = None,
    console: Console,
    json_output: bool = False,
) -> int:
    """Show the scans of a library, newest first."""
    scans = list(scanner.get_scan_history(library_id, limit))
    _output_scans(
        CLICommands.HISTORY,
        scans,
        console=console,
        json_output=json_output,
        empty_message=f"No scans recorded for library {library_id}",
    )
    return CLIDefaults.EXIT_SUCCESS


def handle_interrupted(
    scanner: LibraryScannerService,
    *,
    console: Console,
    json_output: bool = False,
) -> int:
    """List scans left Running with a checkpoint."""
    scans = scanner.get_interrupted_scans()
    _output_scans(
        CLICommands.INTERRUPTED,
        scans,
        console=console,
        json_output=json_output,
        empty_message="No interrupted scans",
    )
    return CLIDefaults.EXIT_SUCCESS


def _output_scans(
    command: str,
    scans: Sequence[LibraryScan],
    *,
    console: Console,
    json_output: bool,
    empty_message: str | None = None,
) -> None:
    if json_output:
        data: Any = [_scan_data(scan) for scan in scans]
        if command in (CLICommands.SCAN, CLICommands.RESUME, CLICommands.STATUS):
            data = data[0]
        write_json_output(format_json_output(success=True, command=command, data=data))
        return

    if not scans:
        console.print(f"[yellow]{empty_message or 'No scans'}[/yellow]")
        return

    console.print(_scan_table(scans))
    for scan in scans:
        if scan.error_message:
            console.print(f"[red]Scan {scan.id} failed:[/red] {scan.error_message}")


def _scan_table(scans: Iterable[LibraryScan]) -> Table:
    table = Table(title="Scans")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Library", justify="right")
    table.add_column("Status")
    table.add_column("Files", justify="right")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Updated", justify="right")
    table.add_column("Removed", justify="right", style="red")
    table.add_column("Started")
    table.add_column("Duration", justify="right")

    for scan in scans:
        style = _STATUS_STYLES.get(scan.status, "")
        duration = scan.duration_seconds
        table.add_row(
            str(scan.id),
            str(scan.library_id),
            f"[{style}]{scan.status.value}[/{style}]" if style else scan.status.value,
            f"{scan.processed_files}/{scan.total_files}",
            str(scan.items_added),
            str(scan.items_updated),
            str(scan.items_removed),
            scan.started_at.isoformat(timespec="seconds") if scan.started_at else "-",
            f"{duration:.1f}s" if duration is not None else "-",
        )
    return table
