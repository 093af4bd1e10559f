# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Medal Backup - Backup and restore for Medal clip data.

Archives the Medal data directory (clips, thumbnails, edits, screenshots)
and Medal's clip index into a timestamped zip bundle, and restores a bundle
to the directory it was taken from. Package name: medalbackup.
"""

__version__ = "0.1.0"

# Configuration
from medalbackup.config import BackupConfig, RestoreConfig, DEFAULT_DIRECTORIES
from medalbackup.settings import load_settings

# Core operations
from medalbackup.archive import (
    create_backup,
    restore_backup,
    BackupResult,
    RestoreResult,
    RunStatistics,
)

# Discovery
from medalbackup.scanner import (
    DirectoryScanner,
    FilesystemScanner,
    discover_directories,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "BackupConfig",
    "RestoreConfig",
    "DEFAULT_DIRECTORIES",
    "load_settings",
    # Core operations
    "create_backup",
    "restore_backup",
    "BackupResult",
    "RestoreResult",
    "RunStatistics",
    # Discovery
    "DirectoryScanner",
    "FilesystemScanner",
    "discover_directories",
]
