# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Medal Backup Restore - Puts a bundle back where it came from.

The bundle is extracted to a scratch directory first. The metadata record
inside it names the original Medal directory, which is the only
destination restore ever writes to; clips.json goes back to its fixed
per-user location.
"""

import asyncio
import json
import shutil
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, UTC
from pathlib import Path, PurePosixPath
from typing import Callable, List

import aiofiles
import structlog

from medalbackup.config import (
    METADATA_FILE_NAME,
    METADATA_KEY,
    STATE_FILE_NAME,
    RestoreConfig,
)
from medalbackup.errors import (
    explain_archive_inside_scratch,
    explain_invalid_metadata,
    explain_missing_archive,
)
from medalbackup.exceptions import RestoreError

logger = structlog.get_logger()

DirectoryCallback = Callable[[str, Path], None]
WarningCallback = Callable[[str], None]


@dataclass
class RestoreResult:
    """Result of a restore run."""

    archive_path: Path
    source_root: Path
    state_file_restored: bool
    restored_directories: List[str] = field(default_factory=list)
    skipped_directories: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0


def _is_unsafe_member(name: str) -> bool:
    normalized = name.replace("\\", "/")
    pure = PurePosixPath(normalized)
    if normalized.startswith("/") or ".." in pure.parts:
        return True
    # Drive-qualified names such as "C:/..."
    return len(normalized) > 1 and normalized[1] == ":"


def _extract_sync(archive_path: Path, scratch_dir: Path) -> None:
    if scratch_dir.exists():
        # Leftovers from an aborted run would be restored as well
        shutil.rmtree(scratch_dir)
    scratch_dir.mkdir(parents=True)

    with zipfile.ZipFile(archive_path) as archive:
        # Security: Check for path traversal
        for member in archive.namelist():
            if _is_unsafe_member(member):
                raise RestoreError(
                    f"Unsafe path in archive: {member}",
                    details={"archive_path": str(archive_path)},
                )
        archive.extractall(scratch_dir)


async def extract_archive(archive_path: Path, scratch_dir: Path) -> Path:
    """
    Extract a bundle into the scratch directory.

    An existing scratch directory is removed first.

    Args:
        archive_path: Bundle to extract
        scratch_dir: Directory to extract into

    Returns:
        The scratch directory

    Raises:
        RestoreError: If the bundle is missing, unsafe, inside the scratch
            directory or cannot be extracted
    """
    if not archive_path.is_file():
        raise RestoreError(
            explain_missing_archive(archive_path),
            details={"archive_path": str(archive_path)},
        )

    # The stale scratch directory is removed before extraction
    if archive_path.resolve().is_relative_to(scratch_dir.resolve()):
        raise RestoreError(
            explain_archive_inside_scratch(archive_path, scratch_dir),
            details={"archive_path": str(archive_path), "scratch_dir": str(scratch_dir)},
        )

    try:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, _extract_sync, archive_path, scratch_dir)
    except RestoreError:
        raise
    except Exception as e:
        raise RestoreError(
            f"Failed to extract archive: {e}",
            details={"archive_path": str(archive_path)},
        )

    logger.info(
        "archive_extracted",
        archive_path=str(archive_path),
        scratch_dir=str(scratch_dir),
    )
    return scratch_dir


async def read_metadata(scratch_dir: Path) -> Path:
    """
    Read the original Medal directory from the extracted metadata record.

    Returns:
        Source root recorded at backup time

    Raises:
        RestoreError: If the record is missing, malformed or incomplete
    """
    metadata_path = scratch_dir / METADATA_FILE_NAME

    try:
        async with aiofiles.open(metadata_path, "r", encoding="utf-8") as f:
            content = await f.read()
    except FileNotFoundError:
        raise RestoreError(
            explain_invalid_metadata(f"{METADATA_FILE_NAME} not found"),
            details={"metadata_path": str(metadata_path)},
        )
    except OSError as e:
        raise RestoreError(
            explain_invalid_metadata(str(e)),
            details={"metadata_path": str(metadata_path)},
        )
    except UnicodeDecodeError as e:
        raise RestoreError(
            explain_invalid_metadata(f"not valid UTF-8: {e.reason}"),
            details={"metadata_path": str(metadata_path)},
        )

    try:
        record = json.loads(content)
    except json.JSONDecodeError as e:
        raise RestoreError(
            explain_invalid_metadata(f"invalid JSON: {e.msg}"),
            details={"metadata_path": str(metadata_path)},
        )

    source_root = record.get(METADATA_KEY) if isinstance(record, dict) else None
    if not isinstance(source_root, str) or not source_root.strip():
        raise RestoreError(
            explain_invalid_metadata(f"{METADATA_KEY!r} is missing"),
            details={"metadata_path": str(metadata_path)},
        )

    return Path(source_root)


def _copy_state_file(source: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)


def _copy_directory(source: Path, target: Path) -> None:
    target.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, target, dirs_exist_ok=True)


async def restore_backup(
    config: RestoreConfig,
    on_directory: DirectoryCallback | None = None,
    on_warning: WarningCallback | None = None,
) -> RestoreResult:
    """
    Restore a bundle to the Medal directory recorded inside it.

    Steps:
    1. Extract the bundle into the scratch directory
    2. Read the source root from the metadata record
    3. Copy clips.json to its fixed per-user location (overwriting)
    4. Copy every configured subdirectory present in the bundle back under
       the source root, overwriting conflicting files
    5. Remove the scratch directory

    Items missing from the bundle are skipped with a warning. Any other
    failure aborts the run and leaves the scratch directory behind.

    Args:
        config: Resolved restore configuration
        on_directory: Called with (name, destination) after each directory
        on_warning: Called with a message for every skipped item

    Returns:
        RestoreResult with details of what was restored

    Raises:
        RestoreError: If the bundle, its metadata or a copy fails
    """
    start_time = datetime.now(UTC)
    loop = asyncio.get_running_loop()

    def warn(message: str, **context) -> None:
        logger.warning("restore_item_skipped", reason=message, **context)
        if on_warning is not None:
            on_warning(message)

    logger.info("restore_started", archive_path=str(config.archive_path))

    scratch_dir = await extract_archive(config.archive_path, config.scratch_dir)
    source_root = await read_metadata(scratch_dir)

    # Step 3: state file
    state_file_restored = False
    bundled_state_file = scratch_dir / STATE_FILE_NAME
    if bundled_state_file.is_file():
        try:
            await loop.run_in_executor(
                None, _copy_state_file, bundled_state_file, config.state_file_target
            )
        except Exception as e:
            raise RestoreError(
                f"Failed to restore {STATE_FILE_NAME}: {e}",
                details={"target": str(config.state_file_target)},
            )
        state_file_restored = True
        logger.info("state_file_restored", target=str(config.state_file_target))
    else:
        warn(
            f"The backup does not contain {STATE_FILE_NAME}; it will be skipped.",
            state_file=STATE_FILE_NAME,
        )

    # Step 4: subdirectories
    restored: List[str] = []
    skipped: List[str] = []

    for directory in config.directories:
        extracted = scratch_dir / directory
        if not extracted.is_dir():
            skipped.append(directory)
            warn(
                f"The directory {directory} is not in the backup and will be skipped.",
                directory=directory,
            )
            continue

        destination = source_root / directory
        try:
            await loop.run_in_executor(None, _copy_directory, extracted, destination)
        except Exception as e:
            raise RestoreError(
                f"Failed to restore directory {directory}: {e}",
                details={"destination": str(destination)},
            )

        restored.append(directory)
        logger.info("directory_restored", directory=directory, destination=str(destination))
        if on_directory is not None:
            on_directory(directory, destination)

    # Step 5: scratch cleanup, only after everything succeeded
    try:
        await loop.run_in_executor(None, shutil.rmtree, scratch_dir)
    except OSError as e:
        logger.warning("scratch_cleanup_failed", scratch_dir=str(scratch_dir), error=str(e))

    duration = (datetime.now(UTC) - start_time).total_seconds()

    logger.info(
        "restore_completed",
        archive_path=str(config.archive_path),
        source_root=str(source_root),
        restored=restored,
        skipped=skipped,
        duration=duration,
    )

    return RestoreResult(
        archive_path=config.archive_path,
        source_root=source_root,
        state_file_restored=state_file_restored,
        restored_directories=restored,
        skipped_directories=skipped,
        duration_seconds=duration,
    )
