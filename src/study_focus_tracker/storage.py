"""
Storage management for Study Focus Tracker.

PURPOSE: Centralized JSON file I/O for the study data the pipeline reads.
AI CONTEXT: All persistence operations go through this module.

STORAGE STRUCTURE:
    .study_tracker/
    ├── daily_records.json      # Dict: date -> daily record
    ├── pomodoro_history.json   # Dict: date -> [pomodoro entries]
    ├── video_index.json        # Dict: video_id -> {"title": ...}
    └── exports/                # Generated reports

ERROR HANDLING STRATEGY:
- File not found: Return empty structure (no data recorded yet)
- JSON corruption / unreadable file: Log error, raise DataUnavailable
- Write failure: Log error, return False

The analytics pipeline is read-only. Directories and files are only created
the first time something is written (import, tests).

USAGE:
    # Production
    storage = StorageManager()

    # Testing with MockFileSystem (tests/conftest.py)
    storage = StorageManager(storage_dir="/test", filesystem=mock_fs)
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any

from .config import Config
from .errors import DataUnavailable
from .filesystem import RealFileSystem
from .models import DailyRecord, PomodoroEntry

if TYPE_CHECKING:
    from .filesystem import FileSystem

logger = logging.getLogger(__name__)


class StorageManager:
    """
    JSON file store for daily records, pomodoro history and the title index.

    DESIGN PRINCIPLES:
    1. Missing is empty: a file that was never written means no data
    2. Corrupt is unavailable: unreadable data raises DataUnavailable
       so the caller can abort the request with a message
    3. Lazy initialization: reading never creates files
    4. Testable: FileSystem can be injected for mocking

    THREAD SAFETY:
    Not thread-safe. Each read returns a fresh snapshot, so concurrent
    report requests never share mutable state.
    """

    def __init__(
        self,
        storage_dir: str | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        """
        Initialize storage paths.

        Args:
            storage_dir: Custom storage path. Default: Config.get_storage_dir()
            filesystem: FileSystem implementation. Default: RealFileSystem
        """
        self.storage_dir = storage_dir or Config.get_storage_dir()
        self._fs: FileSystem = filesystem or RealFileSystem()
        self.daily_records_file = os.path.join(self.storage_dir, Config.DAILY_RECORDS_FILE)
        self.pomodoro_file = os.path.join(self.storage_dir, Config.POMODORO_FILE)
        self.video_index_file = os.path.join(self.storage_dir, Config.VIDEO_INDEX_FILE)

    def _ensure_storage(self) -> None:
        """Create the storage directory before the first write."""
        if not self._fs.exists(self.storage_dir):
            self._fs.makedirs(self.storage_dir, exist_ok=True)
            logger.info(f"Storage initialized: {self.storage_dir}")

    def _read_json(self, file_path: str, default: Any) -> Any:
        """
        Read JSON file.

        Args:
            file_path: Path to JSON file
            default: Value to return when the file does not exist

        Returns:
            Parsed JSON data, or default if the file is missing.

        Raises:
            DataUnavailable: If the file is unreadable, corrupt, or holds a
                different top-level type than default.
        """
        try:
            content = self._fs.read_text(file_path)
        except FileNotFoundError:
            return default
        except OSError as e:
            logger.error(f"Error reading {file_path}: {e}")
            raise DataUnavailable(f"无法读取学习数据: {file_path}") from e
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {file_path}: {e}")
            raise DataUnavailable(f"学习数据已损坏: {file_path}") from e
        if not isinstance(data, type(default)):
            logger.error(f"Unexpected JSON structure in {file_path}")
            raise DataUnavailable(f"学习数据格式错误: {file_path}")
        return data

    def _write_json(self, file_path: str, data: Any) -> bool:
        """
        Write JSON file with error handling.

        Args:
            file_path: Path to JSON file
            data: Data to serialize

        Returns:
            True on success, False on failure.

        FORMATTING:
        - 2-space indent for readability
        - ensure_ascii=False so titles stay readable
        - default=str for any non-JSON types
        """
        try:
            self._ensure_storage()
            content = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._fs.write_text(file_path, content)
            return True
        except OSError as e:
            logger.error(f"Error writing {file_path}: {e}")
            return False

    # =========================================================================
    # DAILY RECORD OPERATIONS
    # =========================================================================

    def load_daily_records(self) -> dict[str, DailyRecord]:
        """
        Load all daily records.

        Returns:
            Dict of date -> DailyRecord. Empty dict if nothing is stored.

        Raises:
            DataUnavailable: If the records file is unreadable or corrupt.
        """
        raw: dict[str, Any] = self._read_json(self.daily_records_file, {})
        return {date: DailyRecord.from_dict(data, date) for date, data in raw.items()}

    def get_daily_record(self, date: str) -> DailyRecord | None:
        """
        Get the record for one date.

        Args:
            date: Calendar date as YYYY-MM-DD

        Returns:
            DailyRecord or None if nothing was recorded that day.
        """
        return self.load_daily_records().get(date)

    def save_daily_records(self, records: dict[str, DailyRecord]) -> bool:
        """
        Save daily records to disk.

        Args:
            records: Dict of date -> DailyRecord

        Returns:
            True on success.
        """
        data = {date: record.to_dict() for date, record in sorted(records.items())}
        return self._write_json(self.daily_records_file, data)

    def import_records(self, records: list[DailyRecord], overwrite: bool = False) -> int:
        """
        Merge records into the store.

        Business context: A JSON export from one machine can be imported on
        another. Existing dates are kept unless overwrite is set.

        Args:
            records: Records to merge
            overwrite: Replace dates that already have a record

        Returns:
            Number of records written.

        Raises:
            DataUnavailable: If the existing store is corrupt, or the write fails.
        """
        existing = self.load_daily_records()
        written = 0
        for record in records:
            if record.date in existing and not overwrite:
                logger.info(f"Skipping existing record for {record.date}")
                continue
            existing[record.date] = record
            written += 1
        if written and not self.save_daily_records(existing):
            raise DataUnavailable(f"无法写入学习数据: {self.daily_records_file}")
        return written

    # =========================================================================
    # POMODORO OPERATIONS
    # =========================================================================

    def load_pomodoro_history(self) -> dict[str, list[PomodoroEntry]]:
        """
        Load the per-date pomodoro history.

        Returns:
            Dict of date -> entries in insertion order. Empty if unavailable.
        """
        raw: dict[str, Any] = self._read_json(self.pomodoro_file, {})
        return {
            date: [PomodoroEntry.from_dict(entry) for entry in entries or []]
            for date, entries in raw.items()
        }

    def get_pomodoro_entries(self, date: str) -> list[PomodoroEntry]:
        """Entries for one date, in insertion order. Empty list if none."""
        return self.load_pomodoro_history().get(date, [])

    # =========================================================================
    # VIDEO INDEX OPERATIONS
    # =========================================================================

    def load_video_index(self) -> dict[str, Any]:
        """
        Load the video title index.

        Returns:
            Dict of video_id -> {"title": ...}. Empty dict if nothing is stored.
        """
        result: dict[str, Any] = self._read_json(self.video_index_file, {})
        return result
