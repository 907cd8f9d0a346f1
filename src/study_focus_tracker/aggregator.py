"""
Daily record aggregation for Study Focus Tracker.

PURPOSE: Resolve symbolic periods to date ranges and fetch zero-filled,
date-ordered daily records, paginated watch history and per-day pomodoro
totals from storage.
AI CONTEXT: The only pipeline stage that touches storage. All fetches are
coroutines so callers can await them in sequence; the underlying JSON reads
are synchronous and short.

PERIODS:
- "week": today and the 7 days before it (8 records)
- "month": one calendar month back, day clamped to the month's end
- "year": one calendar year back
- "all": Config.ALL_PERIOD_YEARS years back
- N (int or numeric string): N days back

ERRORS:
- ValidationError for malformed input, raised before storage is read
- DataUnavailable when storage cannot be read
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Any

from .config import Config
from .dateutils import (
    add_months,
    add_years,
    date_span,
    end_of_day,
    last_days,
    parse_date,
    parse_iso,
    start_of_day,
)
from .errors import ValidationError
from .models import DailyRecord, HistoryEntry, PomodoroSummary
from .storage import StorageManager

logger = logging.getLogger(__name__)

Period = str | int


def validate_date(value: str) -> str:
    """
    Check a user-supplied YYYY-MM-DD date.

    Args:
        value: Date string from a dialog, CLI flag or query parameter.

    Returns:
        The normalized date string.

    Raises:
        ValidationError: If the value is not a real calendar date.

    Example:
        >>> validate_date("2024-02-30")
        Traceback (most recent call last):
        ...
        study_focus_tracker.errors.ValidationError: 日期格式无效: 2024-02-30
    """
    try:
        return parse_date(value.strip()).isoformat()
    except (ValueError, AttributeError) as e:
        raise ValidationError(f"日期格式无效: {value}") from e


def _period_days(period: Period) -> int | None:
    """Return the explicit day count for a numeric period, else None."""
    if isinstance(period, bool):
        raise ValidationError(f"未知的统计周期: {period}")
    if isinstance(period, int):
        count = period
    elif isinstance(period, str) and period.strip().lstrip("-").isdigit():
        count = int(period.strip())
    else:
        return None
    if count < 0:
        raise ValidationError(f"天数不能为负: {count}")
    return count


class DailyRecordAggregator:
    """
    Period-aware reader over StorageManager.

    Business context: Charts, heatmaps and period reports need one record
    per calendar day with no gaps, while history lists need the most recent
    videos first. This class owns both views so renderers stay pure.

    Each fetch reads a fresh snapshot from storage; nothing is cached, so
    concurrent requests never see each other's state.
    """

    def __init__(
        self,
        storage: StorageManager,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Args:
            storage: Storage backend to read from.
            clock: Returns 'now' as a naive local datetime. Defaults to
                datetime.now; tests inject a fixed clock.
        """
        self.storage = storage
        self._clock = clock or datetime.now

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    def resolve_period_range(self, period: Period) -> tuple[datetime, datetime]:
        """
        Map a period to an inclusive datetime range.

        Args:
            period: 'week', 'month', 'year', 'all', or a day count.

        Returns:
            (start, end) where end is today at 23:59:59.999999 and start is
            at 00:00:00 on the first day of the period.

        Raises:
            ValidationError: For unknown periods or negative counts.

        Example:
            >>> agg.resolve_period_range("week")  # clock at 2024-03-10
            (datetime(2024, 3, 3, 0, 0), datetime(2024, 3, 10, 23, 59, 59, 999999))
        """
        today = self.today()
        days = _period_days(period)
        if days is not None:
            start = today - timedelta(days=days)
        elif period == "week":
            start = today - timedelta(days=Config.WEEK_DAYS)
        elif period == "month":
            start = add_months(today, -1)
        elif period == "year":
            start = add_years(today, -1)
        elif period == "all":
            start = add_years(today, -Config.ALL_PERIOD_YEARS)
        else:
            raise ValidationError(f"未知的统计周期: {period}")
        return start_of_day(start), end_of_day(today)

    async def fetch_daily_stats(self, period: Period) -> list[DailyRecord]:
        """
        Fetch one record per date in the period, ascending.

        Dates without a stored record are zero-filled with
        DailyRecord.empty(), so the result has no gaps.

        Args:
            period: See resolve_period_range().

        Returns:
            Records from the first to the last day of the range.

        Raises:
            ValidationError: For an invalid period (storage not read).
            DataUnavailable: If storage cannot be read.
        """
        start, end = self.resolve_period_range(period)
        return await self.fetch_dates(date_span(start.date(), end.date()))

    async def fetch_dates(self, dates: list[str]) -> list[DailyRecord]:
        """
        Fetch records for explicit dates, zero-filling missing ones.

        Returns:
            Records in the order of dates.
        """
        stored = self.storage.load_daily_records()
        logger.debug(f"Loaded {len(stored)} stored records for {len(dates)} dates")
        return [stored.get(day) or DailyRecord.empty(day) for day in dates]

    async def fetch_last_days(self, count: int) -> list[DailyRecord]:
        """
        Fetch the count days ending today, ascending and zero-filled.

        Raises:
            ValidationError: If count is not a positive integer.
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValidationError(f"天数必须为正整数: {count}")
        return await self.fetch_dates(last_days(self.today(), count))

    async def fetch_day(self, day: str) -> DailyRecord:
        """
        Fetch one date's record.

        Args:
            day: YYYY-MM-DD.

        Returns:
            The stored record, or an empty one if nothing was recorded.

        Raises:
            ValidationError: If day is not a valid date.
            DataUnavailable: If storage cannot be read.
        """
        day = validate_date(day)
        return self.storage.get_daily_record(day) or DailyRecord.empty(day)

    async def fetch_history(self, limit: int, offset: int = 0) -> list[HistoryEntry]:
        """
        Fetch the most recent watch segments across all dates.

        Segments are ordered by start_timestamp, newest first. Segments
        without a start timestamp sort as if they started at midnight of
        their date. Remaining ties are ordered by video id.

        Args:
            limit: Page size, 1..Config.MAX_HISTORY_LIMIT.
            offset: Number of entries to skip, >= 0.

        Returns:
            Up to limit HistoryEntry objects.

        Raises:
            ValidationError: If limit or offset is out of range.
            DataUnavailable: If storage cannot be read.
        """
        for name, value in (("limit", limit), ("offset", offset)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} 必须为整数: {value!r}")
        if not 1 <= limit <= Config.MAX_HISTORY_LIMIT:
            raise ValidationError(f"limit 超出范围 1-{Config.MAX_HISTORY_LIMIT}: {limit}")
        if offset < 0:
            raise ValidationError(f"offset 不能为负: {offset}")

        entries: list[tuple[datetime, str, HistoryEntry]] = []
        for day, record in self.storage.load_daily_records().items():
            midnight = start_of_day(parse_date(day)).astimezone()
            for video_id, segment in record.videos.items():
                started = (
                    parse_iso(segment.start_timestamp) if segment.start_timestamp else midnight
                )
                entries.append((started, video_id, HistoryEntry(day, segment)))
        entries.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [entry for _, _, entry in entries[offset : offset + limit]]

    async def fetch_video_index(self) -> dict[str, Any]:
        """Title index: video_id -> {"title": ...}."""
        return self.storage.load_video_index()

    async def fetch_pomodoro_summary(self, day: str) -> PomodoroSummary:
        """
        Pomodoro totals for one date.

        Raises:
            ValidationError: If day is not a valid date.
        """
        day = validate_date(day)
        return PomodoroSummary.from_entries(self.storage.get_pomodoro_entries(day))
