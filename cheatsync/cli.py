"""Click-based CLI for cheatsync."""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from cheatsync import __version__
from cheatsync.config import (
    CheatsyncConfig,
    ensure_config_exists,
    get_config_path,
    load_config,
    validate_config_file,
)
from cheatsync.output import Console, create_console, setup_logging
from cheatsync.sync.conflicts import ItemType, Resolution
from cheatsync.sync.errors import SyncError
from cheatsync.sync.http_service import HttpSyncService
from cheatsync.sync.identity import get_or_create_device_id
from cheatsync.sync.manager import SyncManager, SyncStatus
from cheatsync.sync.state import StateManager

KEEP_CHOICES = {
    "local": Resolution.KEEP_LOCAL,
    "remote": Resolution.KEEP_REMOTE,
    "merge": Resolution.MERGE,
    "skip": Resolution.SKIP,
}


def _config_path(ctx: click.Context) -> Path:
    return ctx.obj.get("config_path") or get_config_path()


def _load(ctx: click.Context, verbose: bool = False) -> tuple[CheatsyncConfig, Console]:
    """Load configuration and prepare console and logging; exit 1 on failure."""
    try:
        config = load_config(_config_path(ctx))
    except (FileNotFoundError, ValidationError) as e:
        create_console().print_error(str(e))
        sys.exit(1)

    verbose = verbose or config.output.verbose
    console = create_console(verbose=verbose, colored=config.output.colored)
    setup_logging(console, verbose=verbose, log_file=config.output.log_file)
    return config, console


def _wait_for_interrupt() -> None:
    threading.Event().wait()


def _open_manager(config: CheatsyncConfig, console: Console) -> SyncManager:
    if not config.backend.is_configured:
        console.print_error("No backend endpoint configured. Set backend.endpoint in the config file.")
        sys.exit(1)

    service = HttpSyncService(
        config.backend.endpoint,
        config.backend.api_key,
        timeout=config.backend.timeout,
    )
    try:
        return SyncManager(service, config.data_path, merge_mode=config.merge_mode)
    except OSError as e:
        console.print_error(f"Failed to initialize local data: {e}")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="cheatsync")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config file (default: ~/.config/cheatsync/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]) -> None:
    """cheatsync - sync notes, app definitions and cheat sheets across devices.

    \b
    Local data is reconciled with a sync backend. Items changed on both
    sides are resolved automatically (newest wins) or with 'resolve'.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def sync(ctx: click.Context, verbose: bool) -> None:
    """Run one sync cycle against the backend."""
    config, console = _load(ctx, verbose)
    manager = _open_manager(config, console)

    try:
        result = manager.sync()
    except SyncError as e:
        console.print_error(f"Sync failed: {e}")
        sys.exit(1)
    finally:
        manager.service.close()

    console.print_sync_result(result)


@cli.command()
@click.option("--remote", is_flag=True, help="Also ask the backend for its last sync time")
@click.pass_context
def status(ctx: click.Context, remote: bool) -> None:
    """Show device identity, last sync and pending conflicts."""
    config, console = _load(ctx)

    if remote:
        manager = _open_manager(config, console)
        try:
            remote_last_sync = manager.get_remote_last_sync()
        except SyncError as e:
            console.print_error(f"Could not reach backend: {e}")
            sys.exit(1)
        finally:
            manager.service.close()
        console.print_status(manager.get_status(), remote_last_sync=remote_last_sync)
        return

    try:
        device_id = get_or_create_device_id(config.data_path)
    except OSError as e:
        console.print_error(f"Failed to read device identity: {e}")
        sys.exit(1)

    state = StateManager.for_data_dir(config.data_path).load()
    console.print_status(
        SyncStatus(
            last_sync=state.last_sync,
            is_syncing=False,
            conflicts=tuple(state.conflicts),
            device_id=device_id,
        )
    )


@cli.command()
@click.pass_context
def conflicts(ctx: click.Context) -> None:
    """List conflicts waiting for a decision."""
    config, console = _load(ctx)
    state = StateManager.for_data_dir(config.data_path).load()
    console.print_conflicts(state.conflicts)


@cli.command()
@click.argument("item_id")
@click.option(
    "--keep",
    "-k",
    type=click.Choice(list(KEEP_CHOICES)),
    required=True,
    help="local, remote, merge (combine both) or skip (decide later)",
)
@click.option(
    "--type",
    "item_type",
    type=click.Choice([t.value for t in ItemType]),
    help="Item type when a note and a cheat sheet share an ID",
)
@click.pass_context
def resolve(ctx: click.Context, item_id: str, keep: str, item_type: Optional[str]) -> None:
    """Resolve a pending conflict for ITEM_ID."""
    config, console = _load(ctx)
    manager = _open_manager(config, console)
    resolution = KEEP_CHOICES[keep]

    try:
        manager.resolve_conflict(item_id, resolution, ItemType(item_type) if item_type else None)
    except SyncError as e:
        console.print_error(str(e))
        sys.exit(1)
    finally:
        manager.service.close()

    console.print_resolution(item_id, resolution)


@cli.command()
@click.option(
    "--interval",
    "-i",
    type=click.FloatRange(min=0, min_open=True),
    help="Minutes between syncs (default: auto_sync.interval_minutes)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def watch(ctx: click.Context, interval: Optional[float], verbose: bool) -> None:
    """Sync periodically in the background until interrupted.

    Without --interval the auto_sync section of the config applies and must
    be enabled.
    """
    config, console = _load(ctx, verbose)
    if interval is None and not config.auto_sync.enabled:
        console.print_error("Auto-sync is disabled. Set auto_sync.enabled: true or pass --interval.")
        sys.exit(1)

    manager = _open_manager(config, console)
    if interval is None:
        minutes = config.auto_sync.interval_minutes
        seconds = config.auto_sync.interval_seconds
    else:
        minutes = interval
        seconds = interval * 60.0

    manager.start_auto_sync(seconds)
    console.print_info(f"Auto-sync every {minutes:g} minute(s). Press Ctrl+C to stop.")
    try:
        _wait_for_interrupt()
    except KeyboardInterrupt:
        pass
    finally:
        manager.stop_auto_sync()
        manager.service.close()

    console.print_success("Auto-sync stopped")


@cli.group()
def config() -> None:
    """Configuration file commands."""
    pass


@config.command("init")
@click.pass_context
def config_init(ctx: click.Context) -> None:
    """Create a default configuration file."""
    console = create_console()
    path, created = ensure_config_exists(_config_path(ctx))
    if created:
        console.print_success(f"Created {path}")
    else:
        console.print_info(f"Config already exists: {path}")


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration."""
    config, console = _load(ctx)
    data = config.model_dump(mode="json")
    if data["backend"]["api_key"]:
        data["backend"]["api_key"] = "********"
    console.print(data)


@config.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate the configuration file."""
    console = create_console()
    path = _config_path(ctx)
    is_valid, errors = validate_config_file(path)
    if is_valid:
        console.print_success(f"{path} is valid")
        return

    for error in errors:
        console.print_error(error)
    sys.exit(1)


if __name__ == "__main__":
    cli()
