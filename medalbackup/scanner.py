# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Medal Backup Scanner - Discovery of the Medal data directory.

Discovery goes through the DirectoryScanner capability so the search can be
replaced (tests use an in-memory fake). FilesystemScanner is the native
implementation: it walks the filesystem with os.walk instead of shelling
out to platform utilities.
"""

import asyncio
import os
import string
import sys
from pathlib import Path
from typing import List, Protocol, Sequence

import structlog

from medalbackup.config import TARGET_DIRECTORY_NAME
from medalbackup.errors import (
    explain_non_numeric_selection,
    explain_selection_out_of_range,
)
from medalbackup.exceptions import ScanError, SelectionError

logger = structlog.get_logger()

# Folders under the home directory searched before whole volumes
HOME_SEARCH_FOLDERS = ("Documents", "Downloads", "Desktop")


class DirectoryScanner(Protocol):
    """Capability used by discovery to enumerate and search storage."""

    def list_volumes(self) -> List[Path]:
        """Root paths of the local storage volumes."""
        ...

    def find_directories_named(self, name: str, root: Path) -> List[Path]:
        """All directories under ``root`` whose name is exactly ``name``."""
        ...


class FilesystemScanner:
    """DirectoryScanner backed by os.walk."""

    def list_volumes(self) -> List[Path]:
        if sys.platform != "win32":
            return [Path("/")]

        listdrives = getattr(os, "listdrives", None)
        if listdrives is not None:
            return [Path(drive) for drive in listdrives()]

        # Python < 3.12 on Windows: probe drive letters
        return [
            Path(f"{letter}:\\")
            for letter in string.ascii_uppercase
            if os.path.exists(f"{letter}:\\")
        ]

    def find_directories_named(self, name: str, root: Path) -> List[Path]:
        matches: List[Path] = []

        def _ignore(error: OSError) -> None:
            # Unreadable subtrees (permissions, vanished folders) are skipped
            logger.debug("scan_subtree_skipped", path=error.filename, error=str(error))

        for dirpath, dirnames, _ in os.walk(root, onerror=_ignore, followlinks=False):
            for dirname in dirnames:
                if dirname == name:
                    matches.append(Path(dirpath, dirname).absolute())

        return matches


def search_roots(scanner: DirectoryScanner, home: Path | None = None) -> List[Path]:
    """
    Ordered search roots: home, its common folders, then every volume.

    Home folders that do not exist are left out. Overlapping roots are kept
    on purpose, see discover_directories().
    """
    home = home or Path.home()
    roots = [home, *(home / folder for folder in HOME_SEARCH_FOLDERS)]
    roots = [root for root in roots if root.is_dir()]
    roots.extend(scanner.list_volumes())
    return roots


def _discover_sync(
    scanner: DirectoryScanner,
    name: str,
    roots: Sequence[Path],
) -> List[Path]:
    matches: List[Path] = []
    for root in roots:
        found = scanner.find_directories_named(name, root)
        logger.debug("scan_root_complete", root=str(root), matches=len(found))
        matches.extend(found)
    return matches


async def discover_directories(
    scanner: DirectoryScanner,
    name: str = TARGET_DIRECTORY_NAME,
    home: Path | None = None,
) -> List[Path]:
    """
    Search all roots for directories named ``name``.

    Results are NOT deduplicated: a directory under the home folder is also
    found again from its volume root, and every hit is shown to the user
    in search order.

    The walk is blocking, so it runs in the default executor.

    Args:
        scanner: Scanner capability
        name: Exact directory name to look for
        home: Home directory override (defaults to Path.home())

    Returns:
        Ordered list of absolute matches, possibly empty
    """
    roots = search_roots(scanner, home)
    if not roots:
        raise ScanError("No search roots available for directory discovery")

    logger.info("scan_started", name=name, roots=[str(r) for r in roots])

    loop = asyncio.get_running_loop()
    matches = await loop.run_in_executor(None, _discover_sync, scanner, name, roots)

    logger.info("scan_complete", name=name, matches=len(matches))
    return matches


def select_directory(matches: Sequence[Path], choice: str) -> Path:
    """
    Pick a match by its 1-based number.

    Raises:
        SelectionError: If the choice is not a number or out of range
    """
    try:
        index = int(choice.strip())
    except ValueError as e:
        raise SelectionError(explain_non_numeric_selection(choice)) from e

    if not 1 <= index <= len(matches):
        raise SelectionError(
            explain_selection_out_of_range(index, len(matches)),
            details={"choice": index, "options": len(matches)},
        )

    return matches[index - 1]
