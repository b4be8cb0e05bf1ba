# cheatsync Console Output
# Rich-based console output and logging setup

import logging
from datetime import datetime
from typing import Optional

from rich.console import Console as RichConsole
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from cheatsync.sync.conflicts import ConflictItem, Resolution
from cheatsync.sync.manager import SyncResult, SyncStatus

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "Never"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for sync operations.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(force_terminal=colored, no_color=not colored)

    @property
    def rich(self) -> RichConsole:
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{message}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{message}[/blue]")

    def print_status(self, status: SyncStatus, *, remote_last_sync: Optional[datetime] = None) -> None:
        """
        Print sync status panel.

        Args:
            status: Manager status.
            remote_last_sync: Last sync time reported by the backend, if queried.
        """
        lines = [
            f"Device:    {status.device_id}",
            f"Last sync: {_format_time(status.last_sync)}",
        ]
        if remote_last_sync is not None:
            lines.append(f"Remote:    {_format_time(remote_last_sync)}")
        if status.is_syncing:
            lines.append("[yellow]Sync in progress[/yellow]")
        if status.has_conflicts:
            lines.append(f"[red]{len(status.conflicts)} pending conflict(s)[/red]")
        else:
            lines.append("[green]No pending conflicts[/green]")

        self._console.print(
            Panel(
                "\n".join(lines),
                title="Sync Status",
                border_style="red" if status.has_conflicts else "green",
            )
        )

    def print_conflicts(self, conflicts: tuple[ConflictItem, ...] | list[ConflictItem]) -> None:
        """Print pending conflicts as a table."""
        if not conflicts:
            self._console.print("[dim]No pending conflicts[/dim]")
            return

        table = Table(title="Pending Conflicts", show_header=True, header_style="bold")
        table.add_column("Type", style="magenta")
        table.add_column("ID", style="cyan")
        table.add_column("Local updated")
        table.add_column("Remote updated")
        table.add_column("Detected", style="dim")

        for conflict in conflicts:
            local_time = _format_time(conflict.local_updated)
            remote_time = _format_time(conflict.remote_updated)
            if conflict.local_updated and conflict.remote_updated:
                if conflict.local_updated > conflict.remote_updated:
                    local_time = f"[green]{local_time}[/green]"
                else:
                    remote_time = f"[green]{remote_time}[/green]"
            table.add_row(conflict.type.value, conflict.id, local_time, remote_time, _format_time(conflict.timestamp))

        self._console.print()
        self._console.print(table)
        self._console.print()

    def print_sync_result(self, result: SyncResult) -> None:
        """Print sync result summary."""
        if self.verbose:
            for conflict, resolution in result.resolutions:
                self._console.print(f"  [yellow]![/yellow] {conflict.type.value} [cyan]{conflict.id}[/cyan] → {resolution.value}")

        border = "yellow" if result.conflicts else "green"
        self._console.print(
            Panel(
                f"[green]Sync completed[/green]\n"
                f"Items: {result.notes} notes, {result.apps} apps, {result.cheat_sheets} cheat sheets\n"
                f"Collections from: {result.source}\n"
                f"Conflicts resolved automatically: {len(result.resolutions)}\n"
                f"Checksum: {result.checksum[:16]}",
                title="Summary",
                border_style=border,
            )
        )

    def print_resolution(self, item_id: str, resolution: Resolution) -> None:
        """Print confirmation of a user resolution."""
        if resolution == Resolution.SKIP:
            self._console.print(f"[yellow]○[/yellow] {item_id} skipped, still pending")
        else:
            self._console.print(f"[green]✓[/green] {item_id} resolved: {resolution.value}")


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)


def setup_logging(console: Console, *, verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Route cheatsync log records to the console and optionally a file.

    Args:
        console: Console whose Rich console renders log lines.
        verbose: Log at DEBUG instead of INFO.
        log_file: Optional path of an additional plain-text log.
    """
    root = logging.getLogger("cheatsync")
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(RichHandler(console=console.rich, show_path=False, markup=False))

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)
