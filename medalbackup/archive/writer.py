# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Medal Backup Archive Writer - Streams the Medal data directory into a zip.

A bundle holds every regular file of the configured subdirectories under
``<subdirectory>/<relative path>``, Medal's clips.json at the root, and the
medaldir.json metadata record that tells restore where the files came from.

Files are copied in bounded chunks, one at a time, so clip files of any
size can be archived without loading them into memory.
"""

import json
import os
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, UTC
from pathlib import Path
from typing import Callable, Iterator, List, Tuple

import aiofiles
import structlog

from medalbackup.config import (
    COPY_CHUNK_SIZE,
    METADATA_FILE_NAME,
    METADATA_KEY,
    STATE_FILE_NAME,
    BackupConfig,
)
from medalbackup.exceptions import BackupError
from medalbackup.paths import backup_filename, ensure_directory

logger = structlog.get_logger()

EntryCallback = Callable[[str, int], None]
WarningCallback = Callable[[str], None]


@dataclass
class RunStatistics:
    """
    Totals for one backup run.

    Only files from the configured subdirectories are counted; clips.json
    and the metadata record are bookkeeping and stay out of the totals.
    """

    file_count: int = 0
    total_bytes: int = 0
    elapsed_seconds: float = 0.0

    def record(self, size: int) -> None:
        self.file_count += 1
        self.total_bytes += size


@dataclass
class BackupResult:
    """Result of a backup run."""

    archive_path: Path
    statistics: RunStatistics
    state_file_included: bool
    skipped_directories: List[str] = field(default_factory=list)
    archived_directories: List[str] = field(default_factory=list)


def iter_directory_files(directory: Path) -> Iterator[Path]:
    """
    Yield the regular files under ``directory``, depth first.

    Order is whatever the filesystem enumerates; nothing is sorted.
    Symlinks are neither followed nor archived.
    """
    for dirpath, _, filenames in os.walk(directory, followlinks=False):
        for filename in filenames:
            path = Path(dirpath, filename)
            if path.is_file() and not path.is_symlink():
                yield path


def archive_name(directory: str, relative: Path) -> str:
    """Entry name inside the bundle: ``<directory>/<relative path>``."""
    return (Path(directory) / relative).as_posix()


async def stream_file_into_archive(
    archive: zipfile.ZipFile,
    path: Path,
    arcname: str,
    chunk_size: int = COPY_CHUNK_SIZE,
) -> int:
    """
    Copy one file into the archive in bounded chunks.

    Args:
        archive: Zip file open for writing
        path: Source file
        arcname: Entry name inside the archive
        chunk_size: Bytes per read

    Returns:
        Number of bytes written to the entry
    """
    zinfo = zipfile.ZipInfo.from_file(path, arcname, strict_timestamps=False)
    zinfo.compress_type = zipfile.ZIP_DEFLATED

    written = 0
    async with aiofiles.open(path, "rb") as src:
        # force_zip64: the final size of a clip is not known up front
        with archive.open(zinfo, "w", force_zip64=True) as dst:
            while True:
                chunk = await src.read(chunk_size)
                if not chunk:
                    break
                dst.write(chunk)
                written += len(chunk)

    return written


def embed_metadata(archive: zipfile.ZipFile, source_root: Path) -> None:
    """
    Write the metadata record (medaldir.json) at the archive root.

    The record holds the absolute source root at backup time, e.g.
    ``{"medalDir": "C:\\\\Users\\\\me\\\\Medal"}``. Restore reads its
    destination from here and nowhere else.
    """
    record = {METADATA_KEY: str(source_root)}
    archive.writestr(METADATA_FILE_NAME, json.dumps(record, indent=2))
    logger.debug("metadata_embedded", source_root=str(source_root))


async def _archive_directory(
    archive: zipfile.ZipFile,
    source_dir: Path,
    directory: str,
    archive_path: Path,
    stats: RunStatistics,
    on_entry: EntryCallback | None,
) -> None:
    for path in iter_directory_files(source_dir):
        # The bundle may be written inside a backed-up directory
        if path.absolute() == archive_path.absolute():
            continue

        arcname = archive_name(directory, path.relative_to(source_dir))
        size = await stream_file_into_archive(archive, path, arcname)
        stats.record(size)

        logger.debug("file_archived", arcname=arcname, size=size)
        if on_entry is not None:
            on_entry(arcname, size)


async def create_backup(
    config: BackupConfig,
    state_file: Path,
    now: datetime | None = None,
    on_entry: EntryCallback | None = None,
    on_warning: WarningCallback | None = None,
) -> BackupResult:
    """
    Create a backup bundle for the configured Medal directory.

    Subdirectories are archived in configuration order; a missing one is
    skipped with a warning. A missing state file is skipped the same way.
    Any read or write failure aborts the run. The archive is always closed,
    but an incomplete archive is left on disk.

    Args:
        config: Resolved backup configuration
        state_file: Medal's clips.json to include at the archive root
        now: Timestamp used for the bundle name (default: current UTC time)
        on_entry: Called with (entry name, size) after each file is written
        on_warning: Called with a message for every skipped item

    Returns:
        BackupResult with the bundle path and run statistics

    Raises:
        BackupError: If the bundle cannot be written
    """
    start_time = datetime.now(UTC)

    def warn(message: str, **context) -> None:
        logger.warning("backup_item_skipped", reason=message, **context)
        if on_warning is not None:
            on_warning(message)

    try:
        ensure_directory(config.destination_root)
    except OSError as e:
        raise BackupError(
            f"Failed to create backup directory: {e}",
            details={"destination_root": str(config.destination_root)},
        )

    archive_path = config.destination_root / backup_filename(now)
    stats = RunStatistics()
    skipped: List[str] = []
    archived: List[str] = []
    state_file_included = False
    current: Tuple[str, str] = ("archive", str(archive_path))

    logger.info(
        "backup_started",
        source_root=str(config.source_root),
        archive_path=str(archive_path),
        directories=list(config.directories),
    )

    try:
        with zipfile.ZipFile(
            archive_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9
        ) as archive:
            for directory in config.directories:
                source_dir = config.source_root / directory
                if not source_dir.is_dir():
                    skipped.append(directory)
                    warn(
                        f"The directory {source_dir} does not exist and will be skipped.",
                        directory=directory,
                    )
                    continue

                current = ("directory", str(source_dir))
                await _archive_directory(
                    archive, source_dir, directory, archive_path, stats, on_entry
                )
                archived.append(directory)

            if state_file.is_file():
                current = ("state_file", str(state_file))
                await stream_file_into_archive(archive, state_file, STATE_FILE_NAME)
                state_file_included = True
            else:
                warn(
                    f"The state file {state_file} does not exist and will be skipped.",
                    state_file=str(state_file),
                )

            current = ("metadata", METADATA_FILE_NAME)
            embed_metadata(archive, config.source_root)

    except Exception as e:
        raise BackupError(
            f"Failed to write backup archive: {e}",
            details={"archive_path": str(archive_path), current[0]: current[1]},
        )

    stats.elapsed_seconds = (datetime.now(UTC) - start_time).total_seconds()

    logger.info(
        "backup_completed",
        archive_path=str(archive_path),
        files=stats.file_count,
        bytes=stats.total_bytes,
        duration=stats.elapsed_seconds,
        skipped=skipped,
    )

    return BackupResult(
        archive_path=archive_path,
        statistics=stats,
        state_file_included=state_file_included,
        skipped_directories=skipped,
        archived_directories=archived,
    )
