"""
Pytest configuration and shared fixtures for Study Focus Tracker tests.

This module contains:
- MockFileSystem: In-memory filesystem for testing without actual I/O
- Record builders shared by several test modules
- Shared fixtures available to all test modules
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from datetime import datetime
from typing import Any

import pytest

from study_focus_tracker.aggregator import DailyRecordAggregator
from study_focus_tracker.config import Config
from study_focus_tracker.models import DailyRecord, VideoWatchSegment
from study_focus_tracker.storage import StorageManager

STORAGE_DIR = "/data"
FIXED_NOW = datetime(2024, 3, 10, 21, 0, 0)
"""Sunday evening. 'week' then spans 2024-03-03 .. 2024-03-10."""


class MockFileSystem:
    """
    In-memory file system for testing.

    Simulates a file system using dictionaries:
    - _files: dict mapping path -> content (str or bytes)
    - _dirs: set of directory paths
    - _unreadable: paths whose reads raise PermissionError
    - _read_only: paths whose writes raise PermissionError

    FEATURES:
    - No actual I/O operations
    - Fast test execution
    - Easy to inspect state
    - Records every read so tests can assert storage was untouched
    """

    def __init__(self) -> None:
        """
        Initialize empty mock file system.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.list_files()
            []
        """
        self._files: dict[str, str | bytes] = {}
        self._dirs: set[str] = set()
        self._unreadable: set[str] = set()
        self._read_only: set[str] = set()
        self.reads: list[str] = []

    def exists(self, path: str) -> bool:
        """True if path is a mock file or directory."""
        return path in self._files or path in self._dirs

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create mock directory and parent directories.

        Raises:
            OSError: If directory exists and exist_ok is False, or if path
                is an existing file.
        """
        if path in self._dirs:
            if not exist_ok:
                raise OSError(f"Directory exists: {path}")
            return

        if path in self._files:
            raise OSError(f"Path is a file, not directory: {path}")

        parts = path.rstrip("/").split("/")
        for i in range(1, len(parts) + 1):
            parent = "/".join(parts[:i])
            if parent:
                self._dirs.add(parent)

    def read_text(self, path: str, _encoding: str = "utf-8") -> str:
        """
        Read mock file contents.

        Raises:
            FileNotFoundError: If path not in _files.
            PermissionError: If path was marked unreadable.
        """
        self.reads.append(path)
        if path in self._unreadable:
            raise PermissionError(f"Permission denied: {path}")
        if path not in self._files:
            raise FileNotFoundError(f"No such file: {path}")
        content = self._files[path]
        if isinstance(content, bytes):
            return content.decode("utf-8")
        return content

    def write_text(self, path: str, content: str, _encoding: str = "utf-8") -> None:
        """
        Write content to a mock file.

        Raises:
            PermissionError: If path was marked read-only.
        """
        if path in self._read_only:
            raise PermissionError(f"Permission denied: {path}")
        self._files[path] = content

    def write_bytes(self, path: str, content: bytes) -> None:
        """Write binary content to a mock file."""
        if path in self._read_only:
            raise PermissionError(f"Permission denied: {path}")
        self._files[path] = content

    # =========================================================================
    # Test helpers
    # =========================================================================

    def get_file(self, path: str) -> str | bytes | None:
        """Return file content, or None if the file does not exist."""
        return self._files.get(path)

    def set_file(self, path: str, content: str | bytes) -> None:
        """Place a file directly, bypassing permission checks."""
        self._files[path] = content

    def set_unreadable(self, path: str) -> None:
        self._unreadable.add(path)

    def set_read_only(self, path: str) -> None:
        self._read_only.add(path)

    def list_files(self) -> list[str]:
        return sorted(self._files)


# =============================================================================
# Record builders
# =============================================================================


def make_segment(
    video_id: str,
    watched_seconds: int,
    start: str | None = None,
    title: str = "",
    **counters: Any,
) -> VideoWatchSegment:
    """Build a segment; counters are pause_count and friends."""
    return VideoWatchSegment(
        video_id=video_id,
        title=title,
        watched_seconds=watched_seconds,
        start_timestamp=start,
        **counters,
    )


def make_record(
    date: str,
    total_time: int = 0,
    effective_time: int | None = None,
    segments: list[VideoWatchSegment] | None = None,
    **counters: Any,
) -> DailyRecord:
    """
    Build a DailyRecord for tests.

    effective_time defaults to total_time; counters are pause_count,
    exit_fullscreen_count, tab_switch_count and longest_session.
    """
    return DailyRecord(
        date=date,
        total_time=total_time,
        effective_time=total_time if effective_time is None else effective_time,
        videos={s.video_id: s for s in segments or []},
        **counters,
    )


def worked_example_record(date: str = "2024-03-10") -> DailyRecord:
    """
    The reference day: 1h total, 90% effective, two pauses and one tab
    switch, longest session 2000s. Scores 99.3 (exceptional).

    Two titled videos separated by a ten-minute gap (a break).
    """
    return make_record(
        date,
        total_time=3600,
        effective_time=3240,
        pause_count=2,
        exit_fullscreen_count=0,
        tab_switch_count=1,
        longest_session=2000,
        segments=[
            make_segment("BV1", 1800, f"{date}T01:00:00Z", "线性代数 第1讲"),
            make_segment("BV2", 1200, f"{date}T01:40:00Z", "概率论 第3讲"),
        ],
    )


def seed_records(mock_fs: MockFileSystem, records: list[DailyRecord]) -> None:
    """Write records straight into the mock daily_records.json."""
    payload = {r.date: r.to_dict() for r in records}
    mock_fs.set_file(f"{STORAGE_DIR}/{Config.DAILY_RECORDS_FILE}", json.dumps(payload))


def seed_json(mock_fs: MockFileSystem, filename: str, payload: Any) -> None:
    mock_fs.set_file(f"{STORAGE_DIR}/{filename}", json.dumps(payload, ensure_ascii=False))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_config() -> Iterator[None]:
    """Clear Config test overrides after every test."""
    yield
    Config.reset_test_overrides()


@pytest.fixture
def mock_fs() -> MockFileSystem:
    """
    Provide a fresh MockFileSystem instance for testing.

    Example:
        >>> def test_storage(mock_fs):
        ...     storage = StorageManager(storage_dir="/data", filesystem=mock_fs)
    """
    return MockFileSystem()


@pytest.fixture
def storage(mock_fs: MockFileSystem) -> StorageManager:
    """StorageManager over the mock filesystem at /data."""
    return StorageManager(storage_dir=STORAGE_DIR, filesystem=mock_fs)


@pytest.fixture
def aggregator(storage: StorageManager) -> DailyRecordAggregator:
    """Aggregator whose clock is pinned to FIXED_NOW."""
    return DailyRecordAggregator(storage, clock=lambda: FIXED_NOW)
