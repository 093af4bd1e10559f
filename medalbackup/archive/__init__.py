# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive Engine - Bundle creation and restore.
"""

from medalbackup.archive.writer import (
    create_backup,
    embed_metadata,
    stream_file_into_archive,
    BackupResult,
    RunStatistics,
)

from medalbackup.archive.restore import (
    extract_archive,
    read_metadata,
    restore_backup,
    RestoreResult,
)

__all__ = [
    # Writer
    "create_backup",
    "embed_metadata",
    "stream_file_into_archive",
    "BackupResult",
    "RunStatistics",
    # Restore
    "extract_archive",
    "read_metadata",
    "restore_backup",
    "RestoreResult",
]
