"""Tests for filesystem module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from conftest import MockFileSystem  # noqa: E402

from study_focus_tracker.filesystem import RealFileSystem  # noqa: E402


class TestMockFileSystem:
    """Tests for the in-memory filesystem used across the suite."""

    def test_initial_state_empty(self) -> None:
        """Verifies new MockFileSystem has no files.

        Business context:
        Test isolation requires a clean slate. Each test starts without
        artifacts from previous tests.

        Arrangement:
        Create new MockFileSystem instance.

        Action:
        Query list_files().

        Assertion Strategy:
        Validates an empty list and no recorded reads.
        """
        fs = MockFileSystem()
        assert fs.list_files() == []
        assert fs.reads == []

    def test_read_missing_raises_file_not_found(self) -> None:
        """Missing files raise FileNotFoundError, which storage treats as empty."""
        fs = MockFileSystem()
        with pytest.raises(FileNotFoundError):
            fs.read_text("/data/daily_records.json")

    def test_unreadable_raises_os_error(self) -> None:
        """Verifies unreadable paths raise an OSError subclass.

        Business context:
        Storage maps OSError to DataUnavailable. The mock must raise the
        same family for those tests to be meaningful.

        Arrangement:
        Place a file and mark it unreadable.

        Action:
        Call read_text().

        Assertion Strategy:
        Validates PermissionError (an OSError) is raised.
        """
        fs = MockFileSystem()
        fs.set_file("/data/daily_records.json", "{}")
        fs.set_unreadable("/data/daily_records.json")
        with pytest.raises(OSError):
            fs.read_text("/data/daily_records.json")

    def test_write_bytes_round_trip(self) -> None:
        """Binary writes are stored verbatim."""
        fs = MockFileSystem()
        fs.write_bytes("/out/chart.png", b"\x89PNG")
        assert fs.get_file("/out/chart.png") == b"\x89PNG"
        assert fs.exists("/out/chart.png")

    def test_read_only_blocks_writes(self) -> None:
        """Read-only paths reject both text and binary writes."""
        fs = MockFileSystem()
        fs.set_read_only("/out/report.md")
        with pytest.raises(PermissionError):
            fs.write_text("/out/report.md", "# report")
        with pytest.raises(PermissionError):
            fs.write_bytes("/out/report.md", b"# report")

    def test_makedirs_creates_parents(self) -> None:
        """Verifies makedirs registers every parent directory.

        Arrangement:
        Create empty MockFileSystem.

        Action:
        makedirs a nested path.

        Assertion Strategy:
        Validates that each ancestor exists, and that a second call with
        exist_ok=False raises.
        """
        fs = MockFileSystem()
        fs.makedirs("/data/exports")
        assert fs.exists("/data")
        assert fs.exists("/data/exports")
        with pytest.raises(OSError):
            fs.makedirs("/data/exports")
        fs.makedirs("/data/exports", exist_ok=True)


class TestRealFileSystem:
    """Tests for RealFileSystem against a temporary directory."""

    def test_text_round_trip(self, tmp_path: Path) -> None:
        """Verifies text survives a write/read cycle with non-ASCII content.

        Business context:
        Video titles are Chinese; storage must not mangle them.

        Arrangement:
        Use pytest's tmp_path.

        Action:
        write_text then read_text.

        Assertion Strategy:
        Validates identical content.
        """
        fs = RealFileSystem()
        path = str(tmp_path / "video_index.json")
        fs.write_text(path, '{"BV1": {"title": "线性代数"}}')
        assert fs.read_text(path) == '{"BV1": {"title": "线性代数"}}'

    def test_write_bytes(self, tmp_path: Path) -> None:
        """Binary writes land on disk unchanged."""
        fs = RealFileSystem()
        path = tmp_path / "report.csv"
        fs.write_bytes(str(path), b"\xef\xbb\xbfa,b\n")
        assert path.read_bytes() == b"\xef\xbb\xbfa,b\n"

    def test_write_replaces_without_leftovers(self, tmp_path: Path) -> None:
        """Verifies a rewrite replaces the file and leaves no temp file.

        Business context:
        The capture side may read daily_records.json at any moment; the
        file must switch from old to new content in one step.

        Arrangement:
        Existing file with old content.

        Action:
        write_text with new content.

        Assertion Strategy:
        Validates the new content and a directory holding only the target.
        """
        fs = RealFileSystem()
        path = tmp_path / "daily_records.json"
        path.write_text("{}", encoding="utf-8")
        fs.write_text(str(path), '{"2024-03-10": {}}')
        assert path.read_text(encoding="utf-8") == '{"2024-03-10": {}}'
        assert [p.name for p in tmp_path.iterdir()] == ["daily_records.json"]

    def test_write_into_missing_directory_raises(self, tmp_path: Path) -> None:
        """A failed write raises OSError and leaves nothing behind."""
        with pytest.raises(OSError):
            RealFileSystem().write_bytes(str(tmp_path / "missing" / "a.csv"), b"x")
        assert list(tmp_path.iterdir()) == []

    def test_makedirs_and_exists(self, tmp_path: Path) -> None:
        """makedirs creates nested directories that exists() then reports."""
        fs = RealFileSystem()
        target = str(tmp_path / "a" / "b")
        assert not fs.exists(target)
        fs.makedirs(target, exist_ok=True)
        assert fs.exists(target)

    def test_read_missing_raises(self, tmp_path: Path) -> None:
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            RealFileSystem().read_text(str(tmp_path / "missing.json"))
