"""
Date and time utilities for Study Focus Tracker.

PURPOSE: Pure formatting and date-range helpers shared by the analytics
pipeline and its renderers. No state, no I/O.

DURATION FORMATS:
- format_duration: '0秒' / '45秒' / '25分钟' / '1小时30分钟' (report text)
- format_precise: '45秒' / '2分5秒' / '3分钟' (quality descriptions)
- format_minutes: whole minutes, floored ('25分钟')

TIMESTAMPS:
Timestamps are ISO 8601 strings. A trailing 'Z' is accepted. Naive
timestamps are interpreted in the system local zone. Wall-clock rendering
(HH:MM, hour-of-day) converts into a caller-supplied tzinfo, defaulting to
the system zone.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal

WEEKDAY_NAMES = ("一", "二", "三", "四", "五", "六", "日")
"""Chinese weekday names indexed by date.weekday() (Monday == 0)."""


def round_half_up(value: float | Decimal, digits: int = 0) -> Decimal:
    """
    Round a number half away from zero for positives, like Math.round.

    Python's round() uses banker's rounding, which turns 2.5 into 2. Report
    figures are expected to round 2.5 up to 3, and binary floats such as
    95.75 must not drift to 95.7, so rounding goes through Decimal(str()).

    Args:
        value: Number to round.
        digits: Decimal places to keep.

    Returns:
        Rounded Decimal.

    Example:
        >>> round_half_up(2.5)
        Decimal('3')
        >>> round_half_up(95.75, 1)
        Decimal('95.8')
    """
    exponent = Decimal(1).scaleb(-digits)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def format_duration(seconds: float | None) -> str:
    """
    Format seconds as report text in hours and minutes.

    Args:
        seconds: Duration in seconds. None or negative is treated as zero.

    Returns:
        '0秒' for nothing, 'N秒' below a minute, otherwise 'H小时M分钟'
        (minutes omitted when zero) or 'M分钟'.

    Example:
        >>> format_duration(5400)
        '1小时30分钟'
        >>> format_duration(7200)
        '2小时'
    """
    if not seconds or seconds < 0:
        return "0秒"
    if seconds < 60:
        return f"{int(seconds)}秒"
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    if hours > 0:
        return f"{hours}小时{f'{minutes}分钟' if minutes > 0 else ''}"
    return f"{minutes}分钟"


def format_precise(seconds: int) -> str:
    """
    Format seconds as minutes and seconds, keeping leftover seconds.

    Example:
        >>> format_precise(125)
        '2分5秒'
    """
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}秒"
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}分{secs}秒" if secs > 0 else f"{minutes}分钟"


def format_minutes(seconds: float) -> str:
    """Format seconds as floored whole minutes, e.g. '25分钟'."""
    return f"{int(seconds // 60)}分钟"


def format_date(value: date | datetime) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime("%Y-%m-%d")


def parse_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If the string is not a valid calendar date.
    """
    return datetime.strptime(value, "%Y-%m-%d").date()


def weekday_name(value: str | date) -> str:
    """
    Chinese weekday character for a date.

    Example:
        >>> weekday_name("2024-03-01")
        '五'
    """
    if isinstance(value, str):
        value = parse_date(value)
    return WEEKDAY_NAMES[value.weekday()]


def parse_iso(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp into an aware datetime.

    Args:
        value: Timestamp such as '2024-03-01T09:00:00Z' or
            '2024-03-01T09:00:00+08:00'. Naive values are local time.

    Returns:
        Timezone-aware datetime.

    Raises:
        ValueError: If the string is not ISO 8601.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def to_iso(value: datetime) -> str:
    """Serialize an aware datetime as ISO 8601."""
    return value.isoformat()


def to_local(value: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert an aware datetime into tz (system zone when None)."""
    return value.astimezone(tz)


def format_hhmm(value: str | datetime, tz: tzinfo | None = None) -> str:
    """
    Wall-clock HH:MM for a timestamp.

    Example:
        >>> from datetime import UTC
        >>> format_hhmm("2024-03-01T09:05:00Z", UTC)
        '09:05'
    """
    if isinstance(value, str):
        value = parse_iso(value)
    return to_local(value, tz).strftime("%H:%M")


def add_months(value: date, months: int) -> date:
    """
    Shift a date by whole calendar months, clamping the day.

    Business context: 'one month before March 31' has no March-31
    counterpart in February; the last day of the target month is used.

    Example:
        >>> add_months(date(2024, 3, 31), -1)
        datetime.date(2024, 2, 29)
    """
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_years(value: date, years: int) -> date:
    """Shift a date by whole years, clamping Feb 29 to Feb 28."""
    return add_months(value, years * 12)


def start_of_day(value: date) -> datetime:
    """Naive datetime at 00:00:00 on the given date."""
    return datetime.combine(value, datetime.min.time())


def end_of_day(value: date) -> datetime:
    """Naive datetime at 23:59:59.999999 on the given date."""
    return datetime.combine(value, datetime.max.time())


def date_span(start: date, end: date) -> list[str]:
    """
    Every date from start to end inclusive, as YYYY-MM-DD strings.

    Returns:
        Ascending list; empty when start is after end.
    """
    days = (end - start).days
    return [format_date(start + timedelta(days=offset)) for offset in range(days + 1)]


def last_days(today: date, count: int) -> list[str]:
    """The count dates ending at today, ascending."""
    return date_span(today - timedelta(days=count - 1), today)
