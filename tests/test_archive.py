# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive Tests for medalbackup.

These tests verify the bundle guarantees:
1. Every file of a configured directory is in the bundle, nothing else is
2. Missing directories and state files are skipped, not fatal
3. Statistics count subdirectory files only
4. Restore writes to the source root recorded in the bundle
5. Backup followed by restore reproduces identical files
"""

import json
import zipfile
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
import pytest

from conftest import MEDAL_FILES, STATE_FILE_CONTENT, archive_names, read_entry
from medalbackup.archive import (
    create_backup,
    embed_metadata,
    extract_archive,
    read_metadata,
    restore_backup,
    stream_file_into_archive,
)
from medalbackup.config import BackupConfig, RestoreConfig, SCRATCH_DIRECTORY_NAME
from medalbackup.exceptions import BackupError, RestoreError


def make_backup_config(medal_dir: Path, backup_dir: Path, **kwargs) -> BackupConfig:
    return BackupConfig(source_root=medal_dir, destination_root=backup_dir, **kwargs)


def make_restore_config(archive_path: Path, temp_dir: Path, **kwargs) -> RestoreConfig:
    return RestoreConfig(
        archive_path=archive_path,
        scratch_root=temp_dir / "scratch_root",
        state_file_target=temp_dir / "restored_appdata" / "Medal" / "store" / "clips.json",
        **kwargs,
    )


def write_bundle(path: Path, entries: dict) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return path


# ============================================================================
# Test 1: BUNDLE CONTENTS
# ============================================================================

@pytest.mark.asyncio
async def test_bundle_contains_every_configured_file(
    medal_dir: Path, backup_dir: Path, state_file: Path
):
    """All files of configured directories appear under <dir>/<relative path>."""
    result = await create_backup(make_backup_config(medal_dir, backup_dir), state_file)

    names = archive_names(result.archive_path)

    for relative, content in MEDAL_FILES.items():
        assert relative in names, f"{relative} must be archived"
        assert read_entry(result.archive_path, relative) == content

    assert "clips.json" in names
    assert "medaldir.json" in names


@pytest.mark.asyncio
async def test_bundle_excludes_files_outside_configured_directories(
    medal_dir: Path, backup_dir: Path, state_file: Path
):
    result = await create_backup(make_backup_config(medal_dir, backup_dir), state_file)

    expected = set(MEDAL_FILES) | {"clips.json", "medaldir.json"}
    assert set(archive_names(result.archive_path)) == expected


@pytest.mark.asyncio
async def test_bundle_name_and_location(medal_dir: Path, backup_dir: Path, state_file: Path):
    now = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)

    result = await create_backup(
        make_backup_config(medal_dir, backup_dir), state_file, now=now
    )

    assert result.archive_path == backup_dir / "Medal_Backup_2024_01_02T03_04_05_678Z.zip"
    assert result.archive_path.is_file()


@pytest.mark.asyncio
async def test_metadata_record_holds_source_root(
    medal_dir: Path, backup_dir: Path, state_file: Path
):
    result = await create_backup(make_backup_config(medal_dir, backup_dir), state_file)

    record = json.loads(read_entry(result.archive_path, "medaldir.json"))
    assert record == {"medalDir": str(medal_dir)}


@pytest.mark.asyncio
async def test_state_file_is_archived_at_root(
    medal_dir: Path, backup_dir: Path, state_file: Path
):
    result = await create_backup(make_backup_config(medal_dir, backup_dir), state_file)

    assert result.state_file_included is True
    assert json.loads(read_entry(result.archive_path, "clips.json")) == STATE_FILE_CONTENT


@pytest.mark.asyncio
async def test_extra_directories_are_archived(
    medal_dir: Path, backup_dir: Path, state_file: Path
):
    (medal_dir / "Recordings").mkdir()
    (medal_dir / "Recordings" / "raw.mkv").write_bytes(b"raw")
    config = make_backup_config(
        medal_dir, backup_dir, directories=("Clips", "Recordings")
    )

    result = await create_backup(config, state_file)

    names = archive_names(result.archive_path)
    assert "Recordings/raw.mkv" in names
    assert ".Thumbnails/clip_001.jpg" not in names


@pytest.mark.asyncio
async def test_large_file_is_streamed_in_chunks(temp_dir: Path):
    source = temp_dir / "big.bin"
    content = bytes(range(256)) * 1000
    source.write_bytes(content)

    with zipfile.ZipFile(temp_dir / "out.zip", "w") as archive:
        written = await stream_file_into_archive(archive, source, "Clips/big.bin", chunk_size=1000)

    assert written == len(content)
    assert read_entry(temp_dir / "out.zip", "Clips/big.bin") == content


def test_embed_metadata(temp_dir: Path):
    with zipfile.ZipFile(temp_dir / "meta.zip", "w") as archive:
        embed_metadata(archive, Path("/orig/path"))

    assert json.loads(read_entry(temp_dir / "meta.zip", "medaldir.json")) == {
        "medalDir": str(Path("/orig/path"))
    }


# ============================================================================
# Test 2: MISSING RESOURCES ARE SKIPPED
# ============================================================================

@pytest.mark.asyncio
async def test_missing_directory_is_skipped_with_warning(
    medal_dir: Path, backup_dir: Path, state_file: Path
):
    warnings = []

    result = await create_backup(
        make_backup_config(medal_dir, backup_dir), state_file, on_warning=warnings.append
    )

    assert result.skipped_directories == ["editor"]
    assert "editor" not in result.archived_directories
    assert any("editor" in w for w in warnings)
    assert not any(n.startswith("editor/") for n in archive_names(result.archive_path))


@pytest.mark.asyncio
async def test_missing_state_file_is_skipped_with_warning(
    medal_dir: Path, backup_dir: Path, appdata: Path
):
    warnings = []
    absent = appdata / "Medal" / "store" / "clips.json"

    result = await create_backup(
        make_backup_config(medal_dir, backup_dir), absent, on_warning=warnings.append
    )

    assert result.state_file_included is False
    assert "clips.json" not in archive_names(result.archive_path)
    assert "medaldir.json" in archive_names(result.archive_path)
    assert any("clips.json" in w for w in warnings)


@pytest.mark.asyncio
async def test_unwritable_destination_is_fatal(
    medal_dir: Path, temp_dir: Path, state_file: Path
):
    # A regular file where the backup directory should be
    blocker = temp_dir / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(BackupError):
        await create_backup(make_backup_config(medal_dir, blocker / "Backups"), state_file)


@pytest.mark.asyncio
async def test_unreadable_source_file_is_fatal_and_leaves_partial_archive(
    medal_dir: Path, backup_dir: Path, state_file: Path, monkeypatch
):
    """
    CRITICAL: A read failure mid-run raises BackupError naming the directory.

    The zip container is still closed, so the partial bundle stays readable.
    """
    unreadable = medal_dir / "Clips" / "clip_001.mp4"
    real_open = aiofiles.open

    def failing_open(path, *args, **kwargs):
        if Path(path) == unreadable:
            raise PermissionError(13, "Permission denied", str(path))
        return real_open(path, *args, **kwargs)

    monkeypatch.setattr(aiofiles, "open", failing_open)

    with pytest.raises(BackupError) as exc_info:
        await create_backup(make_backup_config(medal_dir, backup_dir), state_file)

    assert exc_info.value.details["directory"] == str(medal_dir / "Clips")
    assert "Permission denied" in exc_info.value.message

    partial = list(backup_dir.glob("Medal_Backup_*.zip"))
    assert len(partial) == 1
    assert zipfile.is_zipfile(partial[0])
    # .Thumbnails comes before Clips and was completed
    assert ".Thumbnails/clip_001.jpg" in archive_names(partial[0])
    assert "medaldir.json" not in archive_names(partial[0])


# ============================================================================
# Test 3: STATISTICS
# ============================================================================

@pytest.mark.asyncio
async def test_statistics_count_subdirectory_files_only(
    medal_dir: Path, backup_dir: Path, state_file: Path
):
    """clips.json and medaldir.json are not part of the totals."""
    entries = []

    result = await create_backup(
        make_backup_config(medal_dir, backup_dir),
        state_file,
        on_entry=lambda name, size: entries.append((name, size)),
    )

    stats = result.statistics
    assert stats.file_count == len(MEDAL_FILES)
    assert stats.total_bytes == sum(len(c) for c in MEDAL_FILES.values())
    assert stats.elapsed_seconds >= 0
    assert len(entries) == stats.file_count
    assert len(archive_names(result.archive_path)) == stats.file_count + 2


# ============================================================================
# Test 4: RESTORE DESTINATION COMES FROM THE METADATA RECORD
# ============================================================================

@pytest.mark.asyncio
async def test_restore_targets_recorded_source_root(temp_dir: Path):
    original_root = temp_dir / "orig" / "path"
    bundle = write_bundle(
        temp_dir / "elsewhere.zip",
        {
            "medaldir.json": json.dumps({"medalDir": str(original_root)}),
            "clips.json": json.dumps(STATE_FILE_CONTENT),
            "Clips/a.mp4": b"clip a",
        },
    )
    config = make_restore_config(bundle, temp_dir, directories=("Clips",))

    result = await restore_backup(config)

    assert result.source_root == original_root
    assert (original_root / "Clips" / "a.mp4").read_bytes() == b"clip a"
    assert result.restored_directories == ["Clips"]


@pytest.mark.asyncio
async def test_restore_copies_state_file_to_fixed_location(temp_dir: Path):
    bundle = write_bundle(
        temp_dir / "bundle.zip",
        {
            "medaldir.json": json.dumps({"medalDir": str(temp_dir / "Medal")}),
            "clips.json": json.dumps(STATE_FILE_CONTENT),
        },
    )
    config = make_restore_config(bundle, temp_dir)
    config.state_file_target.parent.mkdir(parents=True)
    config.state_file_target.write_text("stale")

    result = await restore_backup(config)

    assert result.state_file_restored is True
    assert json.loads(config.state_file_target.read_text()) == STATE_FILE_CONTENT


@pytest.mark.asyncio
async def test_restore_overwrites_conflicts_and_keeps_other_files(temp_dir: Path):
    medal = temp_dir / "Medal"
    (medal / "Clips").mkdir(parents=True)
    (medal / "Clips" / "a.mp4").write_bytes(b"old")
    (medal / "Clips" / "local_only.mp4").write_bytes(b"local")
    bundle = write_bundle(
        temp_dir / "bundle.zip",
        {
            "medaldir.json": json.dumps({"medalDir": str(medal)}),
            "Clips/a.mp4": b"new",
        },
    )

    await restore_backup(make_restore_config(bundle, temp_dir, directories=("Clips",)))

    assert (medal / "Clips" / "a.mp4").read_bytes() == b"new"
    assert (medal / "Clips" / "local_only.mp4").read_bytes() == b"local"


@pytest.mark.asyncio
async def test_restore_skips_directories_missing_from_bundle(temp_dir: Path):
    medal = temp_dir / "Medal"
    bundle = write_bundle(
        temp_dir / "bundle.zip",
        {
            "medaldir.json": json.dumps({"medalDir": str(medal)}),
            "Clips/a.mp4": b"a",
        },
    )
    warnings = []

    result = await restore_backup(
        make_restore_config(bundle, temp_dir, directories=("Clips", "editor")),
        on_warning=warnings.append,
    )

    assert result.skipped_directories == ["editor"]
    assert not (medal / "editor").exists()
    assert any("editor" in w for w in warnings)
    # No clips.json in this bundle either
    assert result.state_file_restored is False
    assert any("clips.json" in w for w in warnings)


@pytest.mark.asyncio
async def test_restore_removes_scratch_directory(temp_dir: Path):
    bundle = write_bundle(
        temp_dir / "bundle.zip",
        {"medaldir.json": json.dumps({"medalDir": str(temp_dir / "Medal")})},
    )
    config = make_restore_config(bundle, temp_dir)

    await restore_backup(config)

    assert not config.scratch_dir.exists()


# ============================================================================
# Test 5: FATAL RESTORE ERRORS
# ============================================================================

@pytest.mark.asyncio
async def test_restore_missing_archive_is_fatal(temp_dir: Path):
    with pytest.raises(RestoreError) as exc_info:
        await restore_backup(make_restore_config(temp_dir / "absent.zip", temp_dir))

    assert "not found" in exc_info.value.message


@pytest.mark.asyncio
async def test_restore_corrupt_archive_is_fatal(temp_dir: Path):
    bundle = temp_dir / "corrupt.zip"
    bundle.write_bytes(b"this is not a zip file")

    with pytest.raises(RestoreError):
        await restore_backup(make_restore_config(bundle, temp_dir))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "entries",
    [
        {"Clips/a.mp4": b"a"},
        {"medaldir.json": b"{broken"},
        {"medaldir.json": json.dumps({"other": "value"})},
        {"medaldir.json": json.dumps(["not", "an", "object"])},
        {"medaldir.json": b"\xff\xfe not utf-8"},
    ],
)
async def test_restore_without_usable_metadata_is_fatal(temp_dir: Path, entries: dict):
    bundle = write_bundle(temp_dir / "bundle.zip", entries)
    config = make_restore_config(bundle, temp_dir)

    with pytest.raises(RestoreError):
        await restore_backup(config)

    # Nothing was copied to the state file location
    assert not config.state_file_target.exists()


@pytest.mark.asyncio
async def test_extract_rejects_path_traversal(temp_dir: Path):
    bundle = write_bundle(
        temp_dir / "evil.zip",
        {"../outside.txt": b"x", "medaldir.json": json.dumps({"medalDir": "/x"})},
    )

    with pytest.raises(RestoreError) as exc_info:
        await extract_archive(bundle, temp_dir / SCRATCH_DIRECTORY_NAME)

    assert "Unsafe path" in exc_info.value.message
    assert not (temp_dir / "outside.txt").exists()


@pytest.mark.asyncio
async def test_extract_replaces_stale_scratch_directory(temp_dir: Path):
    scratch = temp_dir / SCRATCH_DIRECTORY_NAME
    (scratch / "Clips").mkdir(parents=True)
    (scratch / "Clips" / "stale.mp4").write_bytes(b"stale")
    bundle = write_bundle(temp_dir / "bundle.zip", {"Clips/fresh.mp4": b"fresh"})

    await extract_archive(bundle, scratch)

    assert (scratch / "Clips" / "fresh.mp4").exists()
    assert not (scratch / "Clips" / "stale.mp4").exists()


@pytest.mark.asyncio
async def test_extract_refuses_archive_inside_scratch_directory(temp_dir: Path):
    """CRITICAL: Clearing a stale scratch directory must never delete the bundle."""
    scratch = temp_dir / SCRATCH_DIRECTORY_NAME
    scratch.mkdir()
    bundle = write_bundle(
        scratch / "bundle.zip",
        {"medaldir.json": json.dumps({"medalDir": str(temp_dir / "Medal")})},
    )

    with pytest.raises(RestoreError) as exc_info:
        await restore_backup(
            RestoreConfig(
                archive_path=bundle,
                scratch_root=temp_dir,
                state_file_target=temp_dir / "appdata" / "clips.json",
            )
        )

    assert "scratch directory" in exc_info.value.message
    assert bundle.is_file()


@pytest.mark.asyncio
async def test_read_metadata_rejects_non_utf8_record(temp_dir: Path):
    (temp_dir / "medaldir.json").write_bytes(b'{"medalDir": "\xff\xfe"}')

    with pytest.raises(RestoreError) as exc_info:
        await read_metadata(temp_dir)

    assert "UTF-8" in exc_info.value.message


@pytest.mark.asyncio
async def test_read_metadata(temp_dir: Path):
    (temp_dir / "medaldir.json").write_text(json.dumps({"medalDir": "C:\\Users\\me\\Medal"}))

    assert await read_metadata(temp_dir) == Path("C:\\Users\\me\\Medal")


# ============================================================================
# Test 6: ROUND TRIP
# ============================================================================

@pytest.mark.asyncio
async def test_backup_then_restore_reproduces_identical_files(
    medal_dir: Path, backup_dir: Path, state_file: Path, temp_dir: Path
):
    """
    CRITICAL: Restoring a bundle reproduces every archived file byte for byte
    under the source root recorded at backup time.
    """
    result = await create_backup(make_backup_config(medal_dir, backup_dir), state_file)

    # Simulate data loss
    import shutil

    for directory in ("Clips", ".Thumbnails", "Edits", "Screenshots"):
        shutil.rmtree(medal_dir / directory)

    config = RestoreConfig(
        archive_path=result.archive_path,
        scratch_root=backup_dir,
        state_file_target=temp_dir / "new_appdata" / "Medal" / "store" / "clips.json",
    )
    restored = await restore_backup(config)

    assert restored.source_root == medal_dir
    for relative, content in MEDAL_FILES.items():
        assert (medal_dir / relative).read_bytes() == content, f"{relative} must match"

    assert config.state_file_target.read_bytes() == state_file.read_bytes()
    assert restored.skipped_directories == ["editor"]
    assert not (medal_dir / "editor").exists()
