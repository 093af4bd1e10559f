# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Medal Backup Builder - Functional builder for job configuration.

The interactive flow fills in a plain dictionary step by step (file
settings first, then prompt answers) and only turns it into a frozen
BackupConfig once everything is known. Each function takes a config dict
and returns a new dict with the modification applied.
"""

from pathlib import Path
from typing import Any, Dict, Iterable

from medalbackup.config import BackupConfig, RestoreConfig, merge_directories
from medalbackup.exceptions import ConfigurationError
from medalbackup.paths import resolve_path, state_file_path
from medalbackup.settings import Settings


# Type alias for the dict the builder functions pass along
ConfigDict = Dict[str, Any]


def create_empty_config() -> ConfigDict:
    """
    Create an initial empty configuration dictionary.

    Returns:
        Dict with no paths set and the default directory set
    """
    return {
        "source_root": None,
        "destination_root": None,
        "extra_directories": (),
    }


def with_source_root(config: ConfigDict, source_root: str | Path | None) -> ConfigDict:
    """
    Set the Medal data directory.

    Args:
        config: Current configuration dictionary
        source_root: Path as typed, discovered or read from the config file

    Returns:
        New configuration dictionary with source_root set
    """
    return {**config, "source_root": source_root}


def with_destination_root(
    config: ConfigDict, destination_root: str | Path | None
) -> ConfigDict:
    """
    Set the directory bundles are written into.

    Args:
        config: Current configuration dictionary
        destination_root: Backup directory path

    Returns:
        New configuration dictionary with destination_root set
    """
    return {**config, "destination_root": destination_root}


def include_directories(config: ConfigDict, names: Iterable[str]) -> ConfigDict:
    """
    Add subdirectory names to back up beyond the default set.

    Args:
        config: Current configuration dictionary
        names: Extra subdirectory names, relative to the source root

    Returns:
        New configuration dictionary with the names appended
    """
    return {**config, "extra_directories": (*config["extra_directories"], *names)}


def from_settings(settings: Settings) -> ConfigDict:
    """Start a configuration dictionary from the configuration file values."""
    config = create_empty_config()
    config = with_source_root(config, settings.source_root)
    config = with_destination_root(config, settings.destination_root)
    return include_directories(config, settings.extra_directories)


def missing_fields(config: ConfigDict) -> list[str]:
    """Names of the fields that still need an answer before building."""
    return [
        name
        for name in ("source_root", "destination_root")
        if not config.get(name)
    ]


def build_backup_config(config_dict: ConfigDict) -> BackupConfig:
    """
    Validate and build an immutable BackupConfig from a configuration dictionary.

    Paths are resolved to absolute paths here, so relative entries in the
    configuration file are taken relative to the working directory.

    Raises:
        ConfigurationError: If a path is missing or validation fails
    """
    missing = missing_fields(config_dict)
    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}",
            details={"missing": missing},
        )

    return BackupConfig(
        source_root=resolve_path(config_dict["source_root"]),
        destination_root=resolve_path(config_dict["destination_root"]),
        directories=merge_directories(config_dict["extra_directories"]),
    )


def build_restore_config(archive_path: str | Path, config_dict: ConfigDict) -> RestoreConfig:
    """
    Build an immutable RestoreConfig for a bundle.

    The scratch directory lives under the configured backup directory, or
    next to the bundle when no backup directory is configured.
    """
    archive = resolve_path(archive_path)
    destination = config_dict.get("destination_root")
    scratch_root = resolve_path(destination) if destination else archive.parent

    return RestoreConfig(
        archive_path=archive,
        scratch_root=scratch_root,
        state_file_target=state_file_path().absolute(),
        directories=merge_directories(config_dict["extra_directories"]),
    )
