# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for Medal Backup.

These helpers centralize wording for common input and configuration errors
so that the CLI and the library present consistent, actionable messages.
"""

from pathlib import Path


def explain_invalid_mode_choice(value: str | None) -> str:
    """
    Explain that the backup/restore menu answer is invalid.
    """

    return f"Invalid choice: {value!r}. Expected 1 (backup) or 2 (restore). Exiting."


def explain_invalid_source_choice(value: str | None) -> str:
    """
    Explain that the search/manual menu answer is invalid.
    """

    return (
        f"Invalid choice: {value!r}. "
        "Expected 1 (search automatically) or 2 (enter manually). Exiting."
    )


def explain_non_numeric_selection(value: str | None) -> str:
    return f"Invalid selection: {value!r} is not a number. Exiting."


def explain_selection_out_of_range(value: int, count: int) -> str:
    """
    Explain that a numbered selection is outside the listed options.
    """

    return f"Invalid selection: {value}. Expected a number between 1 and {count}. Exiting."


def explain_unreadable_config_file(path: Path, reason: str) -> str:
    """
    Explain that the JSON configuration file could not be loaded.
    """

    return (
        f"Could not read configuration file {path}: {reason}. "
        "Fix or remove the file, or point MEDAL_BACKUP_CONFIG at a valid one."
    )


def explain_invalid_config_value(key: str, expected: str, value: object) -> str:
    """
    Explain that a configuration key holds a value of the wrong type.
    """

    return f"Invalid value for {key!r} in configuration file: expected {expected}, got {value!r}."


def explain_missing_archive(path: Path) -> str:
    return f"Backup archive not found: {path}"


def explain_invalid_metadata(reason: str) -> str:
    """
    Explain that the bundle's metadata record cannot be used.
    """

    return (
        f"The backup archive has no usable metadata record ({reason}). "
        "It was not created by this tool or is damaged."
    )


def explain_archive_inside_scratch(archive_path: Path, scratch_dir: Path) -> str:
    """
    Explain that the bundle sits in the directory restore clears before extracting.
    """

    return (
        f"Backup archive {archive_path} is inside the restore scratch directory "
        f"{scratch_dir}, which is emptied before extraction. "
        "Move the archive somewhere else and try again."
    )
