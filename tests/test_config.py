"""Tests for config module."""

from __future__ import annotations

import os
from decimal import Decimal
from unittest.mock import patch

import pytest

from study_focus_tracker.config import Config


class TestConfigConstants:
    """Tests for static configuration values."""

    def test_storage_file_names(self) -> None:
        """Verifies the data file names the capture side writes.

        Business context:
        The browser extension and this package share the storage
        directory. File names must match or no data is found.

        Arrangement:
        None - tests static constants.

        Action:
        Access the file name constants.

        Assertion Strategy:
        Validates exact string values.
        """
        assert Config.DAILY_RECORDS_FILE == "daily_records.json"
        assert Config.POMODORO_FILE == "pomodoro_history.json"
        assert Config.VIDEO_INDEX_FILE == "video_index.json"

    def test_quality_weights_sum_to_one_exactly(self) -> None:
        """Verifies dimension weights are Decimals summing to exactly 1.

        Business context:
        A composite of 100 per dimension must score 100. Float weights
        would drift; Decimal weights make the sum exact.

        Arrangement:
        None - tests static constant.

        Action:
        Sum Config.QUALITY_WEIGHTS values.

        Assertion Strategy:
        Validates exact Decimal equality and the four dimension keys.
        """
        assert sum(Config.QUALITY_WEIGHTS.values()) == Decimal("1")
        assert list(Config.QUALITY_WEIGHTS) == [
            "time_efficiency",
            "focus_stability",
            "continuous_focus",
            "completion",
        ]

    def test_break_threshold(self) -> None:
        """Gaps over three minutes count as breaks."""
        assert Config.BREAK_THRESHOLD_SECONDS == 180

    def test_pomodoro_unit_is_25_minutes(self) -> None:
        """One pomodoro unit is 1500 seconds."""
        assert Config.POMODORO_UNIT_SECONDS == 1500

    def test_config_is_frozen(self) -> None:
        """Verifies Config instances reject attribute assignment.

        Business context:
        Scoring thresholds must not change while reports are rendered.

        Arrangement:
        Create a Config instance.

        Action:
        Attempt to assign an attribute.

        Assertion Strategy:
        Validates that assignment raises an AttributeError subclass
        (FrozenInstanceError).
        """
        config = Config()
        with pytest.raises(AttributeError):
            config.STORAGE_DIR = "/elsewhere"  # type: ignore[misc]


class TestFormatsForScope:
    """Tests for the scope to export format mapping."""

    def test_raw_scope_exports_data_formats(self) -> None:
        """Raw exports are CSV or JSON only."""
        assert Config.formats_for_scope("raw") == ("csv", "json")

    @pytest.mark.parametrize("scope", ["today", "custom", "week", "month"])
    def test_report_scopes_export_document_formats(self, scope: str) -> None:
        """Verifies day and period scopes offer document formats.

        Business context:
        Reports can be shared as Markdown, HTML or an image; raw data
        formats make no sense for a rendered report.

        Arrangement:
        Parametrized over the four report scopes.

        Action:
        Call formats_for_scope.

        Assertion Strategy:
        Validates the exact tuple in menu order.
        """
        assert Config.formats_for_scope(scope) == ("markdown", "html", "image")

    def test_unknown_scope_has_no_formats(self) -> None:
        """An unknown scope offers nothing."""
        assert Config.formats_for_scope("year") == ()


class TestConfigDirectories:
    """Tests for environment and override driven directories."""

    def test_storage_dir_default(self) -> None:
        """Verifies the storage directory falls back to STORAGE_DIR.

        Arrangement:
        Clear the environment so STUDY_TRACKER_DIR is unset.

        Action:
        Call get_storage_dir().

        Assertion Strategy:
        Validates the relative default directory.
        """
        with patch.dict(os.environ, {}, clear=True):
            assert Config.get_storage_dir() == ".study_tracker"

    def test_storage_dir_from_env(self) -> None:
        """STUDY_TRACKER_DIR points storage elsewhere."""
        with patch.dict(os.environ, {"STUDY_TRACKER_DIR": "/srv/study"}, clear=True):
            assert Config.get_storage_dir() == "/srv/study"

    def test_export_dir_defaults_under_storage(self) -> None:
        """Verifies exports land in <storage>/exports by default.

        Business context:
        Users find their exports next to their data without configuring
        anything.

        Arrangement:
        Set STUDY_TRACKER_DIR only.

        Action:
        Call get_export_dir().

        Assertion Strategy:
        Validates the joined path.
        """
        with patch.dict(os.environ, {"STUDY_TRACKER_DIR": "/srv/study"}, clear=True):
            assert Config.get_export_dir() == os.path.join("/srv/study", "exports")

    def test_export_dir_from_env(self) -> None:
        """STUDY_TRACKER_EXPORT_DIR wins over the storage-relative default."""
        env = {"STUDY_TRACKER_DIR": "/srv/study", "STUDY_TRACKER_EXPORT_DIR": "/tmp/out"}
        with patch.dict(os.environ, env, clear=True):
            assert Config.get_export_dir() == "/tmp/out"

    def test_test_overrides_take_priority(self) -> None:
        """Verifies test overrides beat environment variables.

        Arrangement:
        Set both env vars and test overrides.

        Action:
        Read both directories, then reset overrides.

        Assertion Strategy:
        Validates overrides are returned, and env values come back after
        reset_test_overrides().
        """
        env = {"STUDY_TRACKER_DIR": "/srv/study", "STUDY_TRACKER_EXPORT_DIR": "/tmp/out"}
        with patch.dict(os.environ, env, clear=True):
            Config.set_test_overrides(storage_dir="/test/data", export_dir="/test/out")
            assert Config.get_storage_dir() == "/test/data"
            assert Config.get_export_dir() == "/test/out"

            Config.reset_test_overrides()
            assert Config.get_storage_dir() == "/srv/study"
            assert Config.get_export_dir() == "/tmp/out"
