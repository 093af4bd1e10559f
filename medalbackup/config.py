# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Medal Backup Configuration - Immutable configuration data structures.

Backup and restore jobs are resolved once, before any file is touched, and
are frozen afterwards so no prompt or callback can change them mid-run.
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Iterable, List, Tuple

from medalbackup.exceptions import ConfigurationError


# Subdirectories of the Medal data directory that are always backed up
DEFAULT_DIRECTORIES: Tuple[str, ...] = (
    ".Thumbnails",
    "Clips",
    "editor",
    "Edits",
    "Screenshots",
)

# Medal's clip index, stored outside the data directory
STATE_FILE_NAME = "clips.json"

# Metadata record embedded at the root of every bundle
METADATA_FILE_NAME = "medaldir.json"
METADATA_KEY = "medalDir"

# Name of the Medal data directory, used by discovery and for APPDATA
TARGET_DIRECTORY_NAME = "Medal"

SCRATCH_DIRECTORY_NAME = "Medal_Restore_Temp"
ARCHIVE_PREFIX = "Medal_Backup_"
ARCHIVE_SUFFIX = ".zip"

# Streaming chunk size for file copies into the archive
COPY_CHUNK_SIZE = 1024 * 1024


def merge_directories(extra: Iterable[str] | None = None) -> Tuple[str, ...]:
    """
    Combine the default directory set with extra names.

    Order is preserved (defaults first). A name already listed earlier is
    not repeated.
    """
    merged: List[str] = []
    for name in (*DEFAULT_DIRECTORIES, *(extra or ())):
        if name not in merged:
            merged.append(name)
    return tuple(merged)


def _directory_name_errors(directories: Tuple[str, ...]) -> List[str]:
    errors: List[str] = []

    if not directories:
        errors.append("At least one directory must be configured")

    seen = set()
    for name in directories:
        if not isinstance(name, str) or not name.strip():
            errors.append(f"Invalid directory name: {name!r}")
            continue

        # Names are checked against both separators since bundles move
        # between Windows and POSIX paths
        for pure in (PurePosixPath(name), PureWindowsPath(name)):
            if pure.is_absolute() or pure.anchor:
                errors.append(f"Directory name must be relative: {name!r}")
                break
            if ".." in pure.parts:
                errors.append(f"Directory name must not contain '..': {name!r}")
                break

        if name in seen:
            errors.append(f"Duplicate directory name: {name!r}")
        seen.add(name)

    return errors


@dataclass(frozen=True)
class BackupConfig:
    """
    Immutable configuration for one backup run.

    Built by the resolution step (see medalbackup.builder) after every
    prompt has been answered.
    """

    # Medal data directory to back up
    source_root: Path

    # Directory the bundle is written into (created if missing)
    destination_root: Path

    # Subdirectories of source_root to include, in archive order
    directories: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_DIRECTORIES)

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        # Accept any iterable of names but store a tuple
        object.__setattr__(self, "directories", tuple(self.directories))

        if not Path(self.source_root).is_absolute():
            errors.append(f"source_root must be absolute, got {self.source_root}")

        if not Path(self.destination_root).is_absolute():
            errors.append(
                f"destination_root must be absolute, got {self.destination_root}"
            )

        errors.extend(_directory_name_errors(self.directories))

        if errors:
            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )


@dataclass(frozen=True)
class RestoreConfig:
    """
    Immutable configuration for one restore run.

    Note there is no destination here: restore always targets the source
    root recorded in the bundle's metadata record.
    """

    # Bundle to restore from
    archive_path: Path

    # Parent of the scratch extraction directory
    scratch_root: Path

    # Fixed per-user location of Medal's clips.json
    state_file_target: Path

    # Subdirectories to copy back when present in the bundle
    directories: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_DIRECTORIES)

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        object.__setattr__(self, "directories", tuple(self.directories))

        for name in ("archive_path", "scratch_root", "state_file_target"):
            value = getattr(self, name)
            if not Path(value).is_absolute():
                errors.append(f"{name} must be absolute, got {value}")

        errors.extend(_directory_name_errors(self.directories))

        if errors:
            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    @property
    def scratch_dir(self) -> Path:
        return self.scratch_root / SCRATCH_DIRECTORY_NAME
