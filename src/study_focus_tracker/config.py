"""
Configuration for Study Focus Tracker.

PURPOSE: Centralized configuration constants and runtime settings.
AI CONTEXT: All tunable values live here - modify this file to change behavior.

CONFIGURATION CATEGORIES:
- Storage: File names and directory structure
- Quality Scoring: Dimension weights and tier thresholds
- Timeline: Break detection and continuity thresholds
- Pomodoro: Standard unit length
- Export: Default ranges, scopes and formats

ENVIRONMENT VARIABLES:
- STUDY_TRACKER_DIR: Storage directory (default: .study_tracker)
- STUDY_TRACKER_EXPORT_DIR: Export directory (default: <storage>/exports)

USAGE:
    from study_focus_tracker.config import Config
    storage_dir = Config.get_storage_dir()
    threshold = Config.BREAK_THRESHOLD_SECONDS
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for Study Focus Tracker.

    DESIGN: Frozen dataclass ensures configuration immutability at runtime.
    All values are class-level constants - no instance creation needed.

    TUNABLES UNDER REVIEW:
    - BREAK_THRESHOLD_SECONDS and the interruption-density decay bands were
      inherited as hard-coded values. Keep them named here so product review
      can change them in one place.

    STORAGE STRUCTURE:
        .study_tracker/
        ├── daily_records.json      # Dict: date -> daily record
        ├── pomodoro_history.json   # Dict: date -> [pomodoro entries]
        ├── video_index.json        # Dict: video_id -> {"title": ...}
        └── exports/                # Generated reports
    """

    # =========================================================================
    # STORAGE CONFIGURATION
    # =========================================================================
    STORAGE_DIR: ClassVar[str] = ".study_tracker"
    DAILY_RECORDS_FILE: ClassVar[str] = "daily_records.json"
    POMODORO_FILE: ClassVar[str] = "pomodoro_history.json"
    VIDEO_INDEX_FILE: ClassVar[str] = "video_index.json"
    EXPORTS_DIR: ClassVar[str] = "exports"

    # =========================================================================
    # QUALITY SCORING
    # =========================================================================
    QUALITY_WEIGHTS: ClassVar[dict[str, Decimal]] = {
        "time_efficiency": Decimal("0.35"),
        "focus_stability": Decimal("0.30"),
        "continuous_focus": Decimal("0.25"),
        "completion": Decimal("0.10"),
    }
    """Dimension weights. Decimal so the sum is exactly 1."""

    WEAK_DIMENSION_SCORE: ClassVar[float] = 70.0
    """Dimensions scoring below this are reported as weak points."""

    EFFICIENCY_TIERS: ClassVar[tuple[tuple[float, float, str], ...]] = (
        (90, 100, "极优"),
        (80, 90, "优秀"),
        (70, 80, "良好"),
        (60, 70, "及格"),
        (50, 60, "一般"),
    )
    """(inclusive min efficiency %, score, level). Exactly 90% scores 100.
    Below the last tier the score is the efficiency itself."""

    INTERRUPTION_WEIGHTS: ClassVar[dict[str, float]] = {
        "pause_count": 1.0,
        "exit_fullscreen_count": 1.5,
        "tab_switch_count": 0.5,
    }

    DENSITY_DECAY_BANDS: ClassVar[tuple[tuple[float, float], ...]] = (
        (5, 1.0),
        (10, 1.5),
        (20, 2.0),
    )
    """(max interruptions per hour, decay factor). Denser than the last band uses DENSITY_DECAY_MAX."""

    DENSITY_DECAY_MAX: ClassVar[float] = 3.0

    STABILITY_LEVELS: ClassVar[tuple[tuple[float, str], ...]] = (
        (85, "极优"),
        (70, "优秀"),
        (55, "良好"),
        (40, "及格"),
    )

    CONTINUITY_TIERS: ClassVar[tuple[tuple[float, float, str], ...]] = (
        (50, 100, "优秀"),
        (40, 85, "良好"),
        (30, 70, "及格"),
        (20, 55, "一般"),
    )
    CONTINUITY_FLOOR: ClassVar[tuple[float, str]] = (40, "需改进")

    COMPLETION_TIERS: ClassVar[tuple[tuple[int, float, str], ...]] = (
        (3600, 100, "完整"),
        (2700, 90, "优秀"),
        (1800, 75, "良好"),
        (900, 60, "及格"),
    )
    COMPLETION_FLOOR: ClassVar[tuple[float, str]] = (40, "较短")

    # Suggestion triggers for a weak focus-stability dimension
    TAB_SWITCH_SUGGESTION_MIN: ClassVar[int] = 10
    EXIT_FULLSCREEN_SUGGESTION_MIN: ClassVar[int] = 3
    PAUSE_SUGGESTION_MIN: ClassVar[int] = 8

    # =========================================================================
    # TIMELINE
    # =========================================================================
    BREAK_THRESHOLD_SECONDS: ClassVar[int] = 180
    """Gaps longer than this between two videos are reported as breaks."""

    SHORT_BREAK_SECONDS: ClassVar[int] = 600
    GOOD_CONTINUITY_RATIO: ClassVar[float] = 0.7

    # =========================================================================
    # DAILY REFLECTION
    # =========================================================================
    REFLECTION_PAUSE_LIMITS: ClassVar[tuple[int, int]] = (10, 5)
    """(warning above, notice above) pause counts."""

    REFLECTION_SWITCH_LIMITS: ClassVar[tuple[int, int]] = (15, 5)
    REFLECTION_EXIT_LIMIT: ClassVar[int] = 8

    REFLECTION_QUALITY_LIMITS: ClassVar[tuple[float, float]] = (50.0, 70.0)
    """(warning below, notice below) effective share in percent."""

    REFLECTION_SHORT_DAY: ClassVar[int] = 1800
    REFLECTION_LONG_DAY: ClassVar[int] = 4 * 3600
    REFLECTION_LONG_VIDEO: ClassVar[int] = 3600
    REFLECTION_FRAGMENT_VIDEOS: ClassVar[int] = 5
    REFLECTION_FRAGMENT_AVERAGE: ClassVar[int] = 300
    REFLECTION_DISTRACTION_DENSITY: ClassVar[float] = 30.0
    """Weighted interruptions per hour that, with low quality, mark a distracted day."""

    REFLECTION_LATE_HOURS: ClassVar[tuple[int, int]] = (23, 6)
    """Starts at or after the first hour, or before the second, count as late night."""

    # =========================================================================
    # POMODORO
    # =========================================================================
    POMODORO_UNIT_SECONDS: ClassVar[int] = 25 * 60

    # =========================================================================
    # PERIODS AND EXPORT
    # =========================================================================
    ALL_PERIOD_YEARS: ClassVar[int] = 10
    """Ceiling for the 'all' period."""

    WEEK_DAYS: ClassVar[int] = 7
    MONTH_DAYS: ClassVar[int] = 30
    RAW_EXPORT_DAYS: ClassVar[int] = 30
    DEFAULT_HISTORY_LIMIT: ClassVar[int] = 20
    MAX_HISTORY_LIMIT: ClassVar[int] = 500

    REPORT_SCOPES: ClassVar[frozenset[str]] = frozenset(
        {"today", "custom", "week", "month", "raw"}
    )
    REPORT_FORMATS: ClassVar[frozenset[str]] = frozenset(
        {"markdown", "html", "image", "csv", "json"}
    )
    APP_NAME: ClassVar[str] = "B站专注学习助手"
    FILE_PREFIX: ClassVar[str] = "bilibili-study"

    # =========================================================================
    # ENVIRONMENT-BASED SETTINGS (runtime configurable)
    # =========================================================================
    _storage_dir_override: ClassVar[str | None] = None
    _export_dir_override: ClassVar[str | None] = None

    @classmethod
    def get_storage_dir(cls) -> str:
        """
        Get the directory holding the JSON data files.

        Uses a priority system: test overrides first, then the
        STUDY_TRACKER_DIR environment variable, then STORAGE_DIR relative
        to the working directory.

        Business context: The capture side of the extension and this
        analytics package must agree on where records live. The env var
        lets both point at a shared directory without code changes.

        Returns:
            Storage directory path.

        Example:
            >>> # With env var: STUDY_TRACKER_DIR=/data/study
            >>> Config.get_storage_dir()
            '/data/study'
        """
        if cls._storage_dir_override is not None:
            return cls._storage_dir_override
        return os.environ.get("STUDY_TRACKER_DIR", cls.STORAGE_DIR)

    @classmethod
    def get_export_dir(cls) -> str:
        """
        Get the directory where exported reports are written.

        Returns:
            Export directory path. Defaults to <storage dir>/exports.
        """
        if cls._export_dir_override is not None:
            return cls._export_dir_override
        default = os.path.join(cls.get_storage_dir(), cls.EXPORTS_DIR)
        return os.environ.get("STUDY_TRACKER_EXPORT_DIR", default)

    @classmethod
    def set_test_overrides(
        cls,
        storage_dir: str | None = None,
        export_dir: str | None = None,
    ) -> None:
        """
        Set test overrides for environment-based settings.

        Must call reset_test_overrides() in test teardown to avoid
        affecting other tests.

        Args:
            storage_dir: Override for the storage directory. None to clear.
            export_dir: Override for the export directory. None to clear.

        Example:
            >>> Config.set_test_overrides(storage_dir='/tmp/study')
            >>> Config.get_storage_dir()
            '/tmp/study'
            >>> Config.reset_test_overrides()
        """
        cls._storage_dir_override = storage_dir
        cls._export_dir_override = export_dir

    @classmethod
    def reset_test_overrides(cls) -> None:
        """Clear overrides set via set_test_overrides()."""
        cls._storage_dir_override = None
        cls._export_dir_override = None

    @classmethod
    def formats_for_scope(cls, scope: str) -> tuple[str, ...]:
        """
        List the export formats a report scope supports.

        Day and period scopes render documents (markdown, html, image);
        the raw scope dumps data (csv, json).

        Args:
            scope: One of REPORT_SCOPES.

        Returns:
            Tuple of format names in menu order. Empty for unknown scopes.

        Example:
            >>> Config.formats_for_scope('raw')
            ('csv', 'json')
        """
        if scope == "raw":
            return ("csv", "json")
        if scope in cls.REPORT_SCOPES:
            return ("markdown", "html", "image")
        return ()
