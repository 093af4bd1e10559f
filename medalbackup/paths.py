# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Medal Backup Paths - Path resolution helpers.

Turns user-supplied or discovered strings into absolute paths, names
bundles, and locates Medal's per-user state file.
"""

import os
import re
from datetime import datetime, UTC
from pathlib import Path

import structlog

from medalbackup.config import (
    ARCHIVE_PREFIX,
    ARCHIVE_SUFFIX,
    STATE_FILE_NAME,
    TARGET_DIRECTORY_NAME,
)

logger = structlog.get_logger()

_TIMESTAMP_PUNCTUATION = re.compile(r"[:.\-]")


def resolve_path(raw: str | Path) -> Path:
    """
    Resolve a user-supplied path string to an absolute path.

    Surrounding whitespace and quotes (as left by "Copy as path" in
    Explorer) are stripped and ``~`` is expanded.

    Args:
        raw: Path as typed, pasted, or read from the configuration file

    Returns:
        Absolute path
    """
    text = str(raw).strip().strip('"').strip("'").strip()
    return Path(text).expanduser().resolve()


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if it does not exist yet."""
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)
        logger.debug("directory_created", path=str(path))
    return path


def appdata_root() -> Path:
    """
    Per-user application-data root.

    Uses %APPDATA% when set, otherwise the default Roaming location under
    the home directory.
    """
    appdata = os.getenv("APPDATA")
    if appdata:
        return Path(appdata)
    return Path.home() / "AppData" / "Roaming"


def state_file_path() -> Path:
    """Location of Medal's clips.json: <APPDATA>/Medal/store/clips.json."""
    return appdata_root() / TARGET_DIRECTORY_NAME / "store" / STATE_FILE_NAME


def backup_timestamp(now: datetime | None = None) -> str:
    """
    ISO 8601 UTC timestamp (millisecond precision) safe for file names.

    ``2024-05-01T10:20:30.123Z`` becomes ``2024_05_01T10_20_30_123Z``.
    """
    now = now or datetime.now(UTC)
    if now.tzinfo is not None:
        now = now.astimezone(UTC)
    iso = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    return _TIMESTAMP_PUNCTUATION.sub("_", iso)


def backup_filename(now: datetime | None = None) -> str:
    """Bundle file name for a backup started at ``now``."""
    return f"{ARCHIVE_PREFIX}{backup_timestamp(now)}{ARCHIVE_SUFFIX}"


def format_size(size_bytes: int) -> str:
    """Format bytes into human-readable size."""
    if size_bytes < 1000:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in ("kB", "MB", "GB"):
        size /= 1000
        if size < 1000:
            return f"{size:.2f} {unit}"
    return f"{size / 1000:.2f} TB"
