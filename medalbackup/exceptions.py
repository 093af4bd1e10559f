# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Medal Backup Exceptions - Custom exceptions for the medalbackup package.
"""


class MedalBackupError(Exception):
    """Base exception for all medalbackup errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(MedalBackupError):
    """Raised when configuration is invalid."""

    pass


class SelectionError(MedalBackupError):
    """Raised when an interactive choice is invalid or out of range."""

    pass


class BackupError(MedalBackupError):
    """Raised when backup operations fail."""

    pass


class RestoreError(MedalBackupError):
    """Raised when restore operations fail."""

    pass


class ScanError(MedalBackupError):
    """Raised when directory discovery cannot run."""

    pass
