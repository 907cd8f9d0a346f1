"""Tests for aggregator module."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from conftest import (  # noqa: E402
    STORAGE_DIR,
    MockFileSystem,
    make_record,
    make_segment,
    seed_json,
    seed_records,
    worked_example_record,
)

from study_focus_tracker.aggregator import DailyRecordAggregator, validate_date  # noqa: E402
from study_focus_tracker.errors import DataUnavailable, ValidationError  # noqa: E402
from study_focus_tracker.storage import StorageManager  # noqa: E402


class TestValidateDate:
    """Tests for user date validation."""

    def test_valid_date_is_normalized(self) -> None:
        """Surrounding whitespace is stripped."""
        assert validate_date(" 2024-03-10 ") == "2024-03-10"

    @pytest.mark.parametrize("value", ["2024-02-30", "10/03/2024", "", "tomorrow"])
    def test_invalid_dates_raise(self, value: str) -> None:
        """Verifies malformed dates are rejected with ValidationError.

        Business context:
        The custom export scope re-prompts on a ValidationError, so the
        error type matters as much as the rejection.

        Arrangement:
        Parametrized invalid strings.

        Action:
        validate_date.

        Assertion Strategy:
        Validates ValidationError, which is also a ValueError.
        """
        with pytest.raises(ValidationError):
            validate_date(value)
        with pytest.raises(ValueError):
            validate_date(value)


class TestResolvePeriodRange:
    """Tests for period to date-range resolution."""

    def test_week_spans_eight_days(self, aggregator: DailyRecordAggregator) -> None:
        """Verifies 'week' covers today and the seven days before it.

        Business context:
        The popup's week chart has always shown eight bars. Keeping the
        inclusive range avoids a visible change for existing users.

        Arrangement:
        Clock fixed at 2024-03-10 21:00.

        Action:
        resolve_period_range('week').

        Assertion Strategy:
        Validates exact start and end datetimes.
        """
        start, end = aggregator.resolve_period_range("week")
        assert start == datetime(2024, 3, 3, 0, 0)
        assert end == datetime(2024, 3, 10, 23, 59, 59, 999999)

    def test_month_clamps_to_month_end(self, storage: StorageManager) -> None:
        """One month before March 31 is February 29 in a leap year."""
        aggregator = DailyRecordAggregator(storage, clock=lambda: datetime(2024, 3, 31, 12))
        start, _ = aggregator.resolve_period_range("month")
        assert start == datetime(2024, 2, 29)

    def test_year_and_all(self, aggregator: DailyRecordAggregator) -> None:
        """'year' goes back one year and 'all' ten."""
        assert aggregator.resolve_period_range("year")[0] == datetime(2023, 3, 10)
        assert aggregator.resolve_period_range("all")[0] == datetime(2014, 3, 10)

    def test_numeric_periods(self, aggregator: DailyRecordAggregator) -> None:
        """Integers and numeric strings mean N days back."""
        assert aggregator.resolve_period_range(3)[0] == datetime(2024, 3, 7)
        assert aggregator.resolve_period_range("0")[0] == datetime(2024, 3, 10)

    @pytest.mark.parametrize("period", ["fortnight", "-1", -5, True])
    def test_invalid_periods_raise(self, aggregator: DailyRecordAggregator, period: object) -> None:
        """Unknown names, negative counts and booleans are rejected."""
        with pytest.raises(ValidationError):
            aggregator.resolve_period_range(period)  # type: ignore[arg-type]


class TestFetchDailyStats:
    """Tests for zero-filled period fetches."""

    @pytest.mark.asyncio
    async def test_week_zero_fills(
        self, aggregator: DailyRecordAggregator, mock_fs: MockFileSystem
    ) -> None:
        """Verifies one record per day with gaps filled by empty records.

        Business context:
        Charts need a bar for every day, including days without study.

        Arrangement:
        Records stored for 03-05 and 03-10 only.

        Action:
        fetch_daily_stats('week').

        Assertion Strategy:
        Validates eight ascending dates, stored values on the two days
        and zeroes elsewhere.
        """
        seed_records(mock_fs, [make_record("2024-03-05", 600), worked_example_record()])
        records = await aggregator.fetch_daily_stats("week")
        assert [r.date for r in records] == [
            "2024-03-03",
            "2024-03-04",
            "2024-03-05",
            "2024-03-06",
            "2024-03-07",
            "2024-03-08",
            "2024-03-09",
            "2024-03-10",
        ]
        assert records[2].total_time == 600
        assert records[-1].total_time == 3600
        assert sum(1 for r in records if r.has_data) == 2

    @pytest.mark.asyncio
    async def test_month_length(self, aggregator: DailyRecordAggregator) -> None:
        """From 2024-02-10 to 2024-03-10 inclusive is 30 days."""
        records = await aggregator.fetch_daily_stats("month")
        assert len(records) == 30
        assert records[0].date == "2024-02-10"

    @pytest.mark.asyncio
    async def test_invalid_period_reads_nothing(
        self, aggregator: DailyRecordAggregator, mock_fs: MockFileSystem
    ) -> None:
        """Verifies validation happens before any storage access.

        Arrangement:
        Seeded storage with a read log.

        Action:
        fetch_daily_stats with an unknown period.

        Assertion Strategy:
        Validates ValidationError and an empty read log.
        """
        seed_records(mock_fs, [worked_example_record()])
        with pytest.raises(ValidationError):
            await aggregator.fetch_daily_stats("decade")
        assert mock_fs.reads == []

    @pytest.mark.asyncio
    async def test_corrupt_storage_raises(
        self, aggregator: DailyRecordAggregator, mock_fs: MockFileSystem
    ) -> None:
        """Corrupt storage surfaces as DataUnavailable."""
        mock_fs.set_file(f"{STORAGE_DIR}/daily_records.json", "oops")
        with pytest.raises(DataUnavailable):
            await aggregator.fetch_daily_stats("week")

    @pytest.mark.asyncio
    async def test_fetch_last_days(
        self, aggregator: DailyRecordAggregator, mock_fs: MockFileSystem
    ) -> None:
        """The last N days end today."""
        seed_records(mock_fs, [worked_example_record()])
        records = await aggregator.fetch_last_days(7)
        assert len(records) == 7
        assert records[0].date == "2024-03-04"
        assert records[-1].total_time == 3600

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, -1, True])
    async def test_fetch_last_days_rejects_bad_counts(
        self, aggregator: DailyRecordAggregator, count: int
    ) -> None:
        with pytest.raises(ValidationError):
            await aggregator.fetch_last_days(count)


class TestFetchDay:
    """Tests for single-day fetches."""

    @pytest.mark.asyncio
    async def test_missing_day_is_empty(self, aggregator: DailyRecordAggregator) -> None:
        """A day without a stored record comes back empty, not None."""
        record = await aggregator.fetch_day("2024-03-01")
        assert record.date == "2024-03-01"
        assert not record.has_data

    @pytest.mark.asyncio
    async def test_invalid_day_raises(self, aggregator: DailyRecordAggregator) -> None:
        with pytest.raises(ValidationError):
            await aggregator.fetch_day("2024-13-01")

    @pytest.mark.asyncio
    async def test_pomodoro_summary(
        self, aggregator: DailyRecordAggregator, mock_fs: MockFileSystem
    ) -> None:
        """Verifies the per-day pomodoro summary.

        Arrangement:
        Two work entries and a break on 03-10.

        Action:
        fetch_pomodoro_summary.

        Assertion Strategy:
        Validates completed count and units.
        """
        seed_json(
            mock_fs,
            "pomodoro_history.json",
            {
                "2024-03-10": [
                    {"type": "work", "duration": 1500},
                    {"type": "break", "duration": 300},
                    {"type": "work", "duration": 1500},
                ]
            },
        )
        summary = await aggregator.fetch_pomodoro_summary("2024-03-10")
        assert summary.completed == 2
        assert summary.total_pomodoro_count == 2.0
        assert summary.total_break_time == 300


class TestFetchHistory:
    """Tests for paginated watch history."""

    @pytest.fixture
    def history_fs(self, mock_fs: MockFileSystem) -> MockFileSystem:
        """Three days of segments, one without a start time."""
        seed_records(
            mock_fs,
            [
                make_record(
                    "2024-03-08",
                    300,
                    segments=[make_segment("BV0", 300)],
                ),
                make_record(
                    "2024-03-09",
                    900,
                    segments=[
                        make_segment("BVa", 300, "2024-03-09T10:00:00Z"),
                        make_segment("BVb", 600, "2024-03-09T08:00:00Z"),
                    ],
                ),
                worked_example_record(),
            ],
        )
        return mock_fs

    @pytest.mark.asyncio
    async def test_newest_first(
        self, aggregator: DailyRecordAggregator, history_fs: MockFileSystem
    ) -> None:
        """Verifies segments are ordered by start time, newest first.

        Business context:
        The history list answers "what did I just watch", so the most
        recent segment leads regardless of which date it is filed under.

        Arrangement:
        Segments across three dates; the 03-08 one has no start time and
        sorts at that day's midnight.

        Action:
        fetch_history(10).

        Assertion Strategy:
        Validates the exact id order.
        """
        entries = await aggregator.fetch_history(10)
        assert [e.segment.video_id for e in entries] == ["BV2", "BV1", "BVa", "BVb", "BV0"]
        assert entries[0].date == "2024-03-10"

    @pytest.mark.asyncio
    async def test_pagination(
        self, aggregator: DailyRecordAggregator, history_fs: MockFileSystem
    ) -> None:
        """limit and offset slice the ordered list."""
        page = await aggregator.fetch_history(2, offset=2)
        assert [e.segment.video_id for e in page] == ["BVa", "BVb"]
        assert await aggregator.fetch_history(5, offset=10) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("limit", "offset"),
        [(0, 0), (501, 0), (10, -1), (True, 0), ("10", 0)],
    )
    async def test_invalid_paging_raises_before_reading(
        self,
        aggregator: DailyRecordAggregator,
        mock_fs: MockFileSystem,
        limit: object,
        offset: object,
    ) -> None:
        """Out-of-range or non-integer paging is rejected without I/O."""
        with pytest.raises(ValidationError):
            await aggregator.fetch_history(limit, offset)  # type: ignore[arg-type]
        assert mock_fs.reads == []
