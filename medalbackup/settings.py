# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Configuration file and environment helpers.

The configuration file is an optional JSON document that pre-answers the
interactive prompts:

    {
        "medalClipsPath": "C:\\\\Users\\\\me\\\\Medal",
        "backupDir": "D:\\\\Backups\\\\Medal",
        "directoriesToBackup": ["Recordings"]
    }

Every key is optional and unknown keys are ignored.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Tuple

import structlog

from medalbackup.errors import (
    explain_invalid_config_value,
    explain_unreadable_config_file,
)
from medalbackup.exceptions import ConfigurationError

logger = structlog.get_logger()

CONFIG_ENV_VAR = "MEDAL_BACKUP_CONFIG"
LOG_LEVEL_ENV_VAR = "MEDAL_BACKUP_LOG_LEVEL"
DEFAULT_CONFIG_FILENAME = "config.json"
DEFAULT_LOG_LEVEL = "ERROR"

SOURCE_KEY = "medalClipsPath"
DESTINATION_KEY = "backupDir"
DIRECTORIES_KEY = "directoriesToBackup"


@dataclass(frozen=True)
class Settings:
    """Values read from the configuration file and environment."""

    source_root: str | None = None
    destination_root: str | None = None
    extra_directories: Tuple[str, ...] = field(default_factory=tuple)
    log_level: str = DEFAULT_LOG_LEVEL
    config_path: Path | None = None


def config_file_path() -> Path:
    """Path of the configuration file ($MEDAL_BACKUP_CONFIG or ./config.json)."""
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def _parse_optional_path(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(explain_invalid_config_value(key, "a string", value))
    # An empty string in the file means "ask me"
    return value.strip() or None


def _parse_directories(data: dict) -> Tuple[str, ...]:
    value = data.get(DIRECTORIES_KEY)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(
            explain_invalid_config_value(DIRECTORIES_KEY, "a list of strings", value)
        )
    return tuple(v.strip() for v in value if v.strip())


def _parse_log_level(value: str | None) -> str:
    if not value:
        return DEFAULT_LOG_LEVEL
    level = value.strip().upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigurationError(
            explain_invalid_config_value(LOG_LEVEL_ENV_VAR, "a log level name", value)
        )
    return level


def load_config_file(path: Path) -> dict[str, Any]:
    """
    Read the JSON configuration file.

    A missing file is not an error and yields an empty mapping.

    Raises:
        ConfigurationError: If the file exists but is unreadable or malformed
    """
    if not path.exists():
        logger.debug("config_file_absent", path=str(path))
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            explain_unreadable_config_file(path, f"invalid JSON ({e.msg} at line {e.lineno})"),
            details={"path": str(path)},
        ) from e
    except OSError as e:
        raise ConfigurationError(
            explain_unreadable_config_file(path, str(e)),
            details={"path": str(path)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            explain_unreadable_config_file(path, "top-level value must be an object"),
            details={"path": str(path)},
        )

    logger.debug("config_file_loaded", path=str(path), keys=sorted(data))
    return data


def load_settings(path: Path | None = None) -> Settings:
    """
    Load settings from the configuration file and environment variables.

    Environment variables:
        - MEDAL_BACKUP_CONFIG: Path of the JSON configuration file
          (default: ./config.json)
        - MEDAL_BACKUP_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR
          (default: ERROR)
    """
    path = path or config_file_path()
    data = load_config_file(path)

    return Settings(
        source_root=_parse_optional_path(data, SOURCE_KEY),
        destination_root=_parse_optional_path(data, DESTINATION_KEY),
        extra_directories=_parse_directories(data),
        log_level=_parse_log_level(os.getenv(LOG_LEVEL_ENV_VAR)),
        config_path=path,
    )
