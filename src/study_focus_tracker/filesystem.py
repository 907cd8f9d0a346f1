"""
FileSystem abstraction for Study Focus Tracker.

PURPOSE: The narrow set of file operations storage and export sinks need,
behind a protocol so tests can swap in an in-memory implementation.
AI CONTEXT: StorageManager and DirectorySink take a FileSystem; nothing
else in the package touches the disk.

OPERATIONS:
- exists / makedirs: export directory setup
- read_text: daily records, pomodoro history, video index, imports
- write_text / write_bytes: store updates and export artifacts

Writes replace the target atomically (temp file + os.replace), so a reader
on the capture side never sees a half-written JSON document.
"""

from __future__ import annotations

import os
from typing import Protocol

__all__ = ["FileSystem", "RealFileSystem"]


class FileSystem(Protocol):
    """
    File operations used by storage and export.

    Paths are plain strings joined with os.path.join. The test double is
    MockFileSystem in tests/conftest.py.
    """

    def exists(self, path: str) -> bool:
        """True if path is an existing file or directory."""
        ...

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create a directory and its parents.

        Raises:
            OSError: If it already exists and exist_ok is False.
        """
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """
        Read a whole text file.

        Raises:
            FileNotFoundError: Missing file. Storage treats this as "no
                data yet".
            OSError: Any other read failure.
        """
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Replace a text file's content."""
        ...

    def write_bytes(self, path: str, content: bytes) -> None:
        """
        Replace a binary file's content.

        Business context: Image exports and CSV files with a byte order
        mark are written as bytes.
        """
        ...


class RealFileSystem:
    """
    FileSystem over the local disk.

    Example:
        >>> fs = RealFileSystem()
        >>> fs.exists('/nonexistent/daily_records.json')
        False
    """

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        os.makedirs(path, exist_ok=exist_ok)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        with open(path, encoding=encoding) as f:
            return f.read()

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        self.write_bytes(path, content.encode(encoding))

    def write_bytes(self, path: str, content: bytes) -> None:
        """
        Write to a sibling temp file, then move it over path.

        Raises:
            OSError: If the directory is missing or not writable. The
                temp file is removed on failure.
        """
        tmp_path = f"{path}.tmp"
        try:
            with open(tmp_path, "wb") as f:
                f.write(content)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
