# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Interactive command line for Medal Backup.

A run goes Start -> AwaitingConfig -> Executing -> Completed | Failed.
Every prompt is answered before anything is written to disk; any error
ends the run with exit status 1. Progress goes to stdout, warnings and
errors to stderr.
"""

import asyncio
import sys
from pathlib import Path

import click
import structlog

from medalbackup.archive import BackupResult, RestoreResult, create_backup, restore_backup
from medalbackup.builder import (
    ConfigDict,
    build_backup_config,
    build_restore_config,
    from_settings,
    with_destination_root,
    with_source_root,
)
from medalbackup.config import BackupConfig
from medalbackup.errors import explain_invalid_mode_choice, explain_invalid_source_choice
from medalbackup.exceptions import MedalBackupError, SelectionError
from medalbackup.log import configure_logging
from medalbackup.paths import format_size, state_file_path
from medalbackup.scanner import (
    DirectoryScanner,
    FilesystemScanner,
    discover_directories,
    select_directory,
)
from medalbackup.settings import Settings, load_settings

logger = structlog.get_logger()

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

MODE_BACKUP = "1"
MODE_RESTORE = "2"
SOURCE_SEARCH = "1"
SOURCE_MANUAL = "2"


def default_scanner() -> DirectoryScanner:
    return FilesystemScanner()


def ask(question: str) -> str:
    return click.prompt(question, prompt_suffix=" ").strip()


def echo_warning(message: str) -> None:
    click.secho(f"Warning: {message}", fg="yellow", err=True)


def echo_entry(arcname: str, size: int) -> None:
    click.echo(f"Backing up: {arcname}")


def echo_directory(name: str, destination: Path) -> None:
    click.echo(f"Restored {name} to {destination}")


async def prompt_source_root(scanner: DirectoryScanner) -> str:
    """
    Ask for the Medal directory, optionally by searching for it.

    Falls back to manual entry when the search finds nothing.
    """
    choice = ask(
        "Medal directory is not configured. Do you want to (1) search for it "
        "automatically or (2) enter it manually? (Enter 1 or 2):"
    )

    if choice == SOURCE_SEARCH:
        click.echo("Searching for Medal directories, this can take a while...")
        matches = await discover_directories(scanner)
        if matches:
            click.echo("Found the following Medal directories:")
            for number, match in enumerate(matches, start=1):
                click.echo(f"  {number}. {match}")
            selection = ask(f"Select the Medal directory (1-{len(matches)}):")
            return str(select_directory(matches, selection))
        echo_warning("No Medal directories were found.")
    elif choice != SOURCE_MANUAL:
        raise SelectionError(explain_invalid_source_choice(choice))

    return ask("Please enter the Medal clips directory path:")


async def resolve_backup_config(settings: Settings, scanner: DirectoryScanner) -> BackupConfig:
    """Fill in whatever the configuration file left open and freeze the result."""
    config: ConfigDict = from_settings(settings)

    if not config["source_root"]:
        config = with_source_root(config, await prompt_source_root(scanner))

    if not config["destination_root"]:
        config = with_destination_root(
            config, ask("Please enter the backup directory path:")
        )

    return build_backup_config(config)


def report_backup(result: BackupResult) -> None:
    stats = result.statistics
    click.secho(
        "Backup completed successfully. "
        f"The backup file is located at: {result.archive_path}",
        fg="green",
    )
    click.echo(f"Total files: {stats.file_count}")
    click.echo(f"Total size: {format_size(stats.total_bytes)}")
    click.echo(f"Total time: {stats.elapsed_seconds:.2f} seconds")


def report_restore(result: RestoreResult) -> None:
    click.secho(
        f"Restore completed successfully. Files were restored to: {result.source_root}",
        fg="green",
    )
    click.echo(f"Directories restored: {len(result.restored_directories)}")
    click.echo(f"Total time: {result.duration_seconds:.2f} seconds")


async def run_backup(settings: Settings, scanner: DirectoryScanner) -> None:
    config = await resolve_backup_config(settings, scanner)
    result = await create_backup(
        config,
        state_file_path(),
        on_entry=echo_entry,
        on_warning=echo_warning,
    )
    report_backup(result)


async def run_restore(settings: Settings) -> None:
    archive_path = ask("Please enter the path to the backup archive:")
    config = build_restore_config(archive_path, from_settings(settings))
    result = await restore_backup(
        config,
        on_directory=echo_directory,
        on_warning=echo_warning,
    )
    report_restore(result)


async def run(scanner: DirectoryScanner) -> int:
    """
    Run one interactive backup or restore.

    Returns:
        Process exit status (0 on success, 1 on any failure)
    """
    configure_logging()

    try:
        settings = load_settings()
        configure_logging(settings.log_level)

        mode = ask("Do you want to (1) backup or (2) restore? (Enter 1 or 2):")
        if mode == MODE_BACKUP:
            await run_backup(settings, scanner)
        elif mode == MODE_RESTORE:
            await run_restore(settings)
        else:
            raise SelectionError(explain_invalid_mode_choice(mode))

    except MedalBackupError as e:
        logger.error("run_failed", error=e.message, details=e.details)
        click.secho(f"Error: {e.message}", fg="red", err=True)
        for detail in e.details.get("errors", []):
            click.secho(f"  - {detail}", fg="red", err=True)
        return EXIT_FAILURE

    return EXIT_SUCCESS


@click.command()
def main() -> None:
    """Back up or restore the Medal clips directory."""
    sys.exit(asyncio.run(run(default_scanner())))
