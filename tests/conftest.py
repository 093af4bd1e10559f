# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for medalbackup tests.

Provides a populated Medal data directory, an isolated APPDATA with a
clips.json state file, and helpers to inspect bundles.
"""

import json
import tempfile
import zipfile
from pathlib import Path
from typing import Dict, Generator, List

import pytest
import structlog


# Files created under the fake Medal directory: relative path -> content
MEDAL_FILES: Dict[str, bytes] = {
    "Clips/clip_001.mp4": b"\x00\x01fake video data" * 64,
    "Clips/Valorant/clip_002.mp4": b"valorant clip" * 128,
    "Clips/Valorant/2024/clip_003.mp4": b"",
    ".Thumbnails/clip_001.jpg": b"\xff\xd8thumbnail",
    "Edits/montage.mp4": b"montage" * 32,
    "Screenshots/shot.png": b"\x89PNG screenshot",
}

STATE_FILE_CONTENT = {"clips": [{"uuid": "clip-001", "title": "ace"}]}


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any structlog configuration done by the CLI."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def medal_dir(temp_dir: Path) -> Path:
    """
    Create a Medal data directory.

    "editor" is deliberately absent so skip behaviour can be checked.
    """
    root = temp_dir / "Medal"
    for relative, content in MEDAL_FILES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    # Not part of any configured directory
    (root / "settings.ini").write_text("[medal]\n")
    (root / "Cache").mkdir()
    (root / "Cache" / "blob.bin").write_bytes(b"cache")

    return root


@pytest.fixture
def appdata(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point APPDATA at a temporary directory."""
    root = temp_dir / "AppData" / "Roaming"
    root.mkdir(parents=True)
    monkeypatch.setenv("APPDATA", str(root))
    return root


@pytest.fixture
def state_file(appdata: Path) -> Path:
    """Create Medal's clips.json under the temporary APPDATA."""
    path = appdata / "Medal" / "store" / "clips.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(STATE_FILE_CONTENT))
    return path


@pytest.fixture
def backup_dir(temp_dir: Path) -> Path:
    """Backup destination (not created up front)."""
    return temp_dir / "Backups"


def archive_names(archive_path: Path) -> List[str]:
    """Entry names of a bundle."""
    with zipfile.ZipFile(archive_path) as archive:
        return archive.namelist()


def read_entry(archive_path: Path, name: str) -> bytes:
    """Content of one bundle entry."""
    with zipfile.ZipFile(archive_path) as archive:
        return archive.read(name)
