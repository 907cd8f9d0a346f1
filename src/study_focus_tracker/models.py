"""
Data models for Study Focus Tracker.

PURPOSE: Type-safe dataclasses representing the study data consumed by the
analytics pipeline.
AI CONTEXT: These models define the schema for daily records, watch segments,
pomodoro history and reconstructed timeline events.

MODEL HIERARCHY:
- DailyRecord: Aggregated totals for one calendar date (owns VideoWatchSegments)
- VideoWatchSegment: One video's viewing activity for one date
- PomodoroEntry: One logged work/break interval from the focus timer
- PomodoroSummary: Per-date totals derived from PomodoroEntry lists
- VideoEvent / BreakEvent: Reconstructed timeline intervals
- HistoryEntry: A watch segment paired with its date, for history lists

SERIALIZATION:
All persisted models have to_dict() for JSON persistence and from_dict() for
loading. from_dict() also accepts the compact keys written by the browser
extension (e.g. 'ti', 'd', 'st', 'exitCount').

USAGE:
    record = DailyRecord.from_dict(raw)
    record.video_count        # derived from record.videos
    empty = DailyRecord.empty("2024-03-01")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from .config import Config
from .dateutils import parse_iso, to_iso

logger = logging.getLogger(__name__)


def _first(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among keys."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _start_timestamp(value: Any, video_id: str) -> str | None:
    """
    Normalize a stored start time to an ISO 8601 string.

    The extension writes ISO strings; older versions wrote epoch
    milliseconds. Anything unreadable is dropped with a warning, which
    leaves the segment out of the timeline instead of failing the day.
    """
    if value is None or value == "":
        return None
    try:
        if isinstance(value, str):
            parse_iso(value)
            return value
        if isinstance(value, int | float) and not isinstance(value, bool):
            return to_iso(datetime.fromtimestamp(value / 1000, tz=UTC))
        raise ValueError(f"unsupported type {type(value).__name__}")
    except (ValueError, OverflowError, OSError) as e:
        logger.warning("Ignoring start time %r for %s: %s", value, video_id, e)
        return None


@dataclass
class VideoWatchSegment:
    """
    One video's recorded viewing activity for one calendar day.

    Owned by, and embedded inside, a DailyRecord. start_timestamp is an
    ISO 8601 instant, or None when the capture side never recorded one
    (such segments are skipped by timeline reconstruction).
    """

    video_id: str
    title: str = ""
    watched_seconds: int = 0
    start_timestamp: str | None = None
    pause_count: int = 0
    exit_fullscreen_count: int = 0
    tab_switch_count: int = 0
    playback_rate: float = 1.0

    def resolve_title(self, video_index: dict[str, Any] | None = None) -> str:
        """
        Resolve the human-readable title for this segment.

        Falls back from the embedded title, to the video index entry, to
        the video id itself.

        Args:
            video_index: Mapping of video_id -> {"title": ...}.

        Returns:
            Non-empty display title.

        Example:
            >>> VideoWatchSegment("BV1").resolve_title({"BV1": {"title": "Intro"}})
            'Intro'
        """
        if self.title:
            return self.title
        entry = (video_index or {}).get(self.video_id) or {}
        return entry.get("title") or self.video_id

    def to_dict(self) -> dict[str, Any]:
        """Serialize segment to a JSON-compatible dict."""
        return {
            "video_id": self.video_id,
            "title": self.title,
            "watched_seconds": self.watched_seconds,
            "start_timestamp": self.start_timestamp,
            "pause_count": self.pause_count,
            "exit_fullscreen_count": self.exit_fullscreen_count,
            "tab_switch_count": self.tab_switch_count,
            "playback_rate": self.playback_rate,
        }

    @classmethod
    def from_dict(cls, video_id: str, data: dict[str, Any]) -> VideoWatchSegment:
        """
        Deserialize segment from a dict.

        Args:
            video_id: Key under which the segment is stored. Used when the
                dict carries no 'video_id' of its own.
            data: Segment fields as written by to_dict() or by the
                extension's compact format.

        Returns:
            VideoWatchSegment instance.
        """
        return cls(
            video_id=data.get("video_id") or video_id,
            title=_first(data, "title", "ti", default=""),
            watched_seconds=int(_first(data, "watched_seconds", "d", default=0)),
            start_timestamp=_start_timestamp(_first(data, "start_timestamp", "st"), video_id),
            pause_count=int(_first(data, "pause_count", "pauseCount", default=0)),
            exit_fullscreen_count=int(
                _first(data, "exit_fullscreen_count", "exitCount", default=0)
            ),
            tab_switch_count=int(_first(data, "tab_switch_count", "switchCount", default=0)),
            playback_rate=float(_first(data, "playback_rate", "rate", default=1.0)),
        )


@dataclass
class DailyRecord:
    """
    Aggregated study totals for one calendar date.

    INVARIANTS:
    - effective_time <= total_time (enforced in from_dict by clamping)
    - video_count == len(videos) (video_count is derived, never stored)

    All durations are in seconds. Created and updated by the capture
    subsystem; the analytics pipeline only reads it.
    """

    date: str
    total_time: int = 0
    effective_time: int = 0
    longest_session: int = 0
    pause_count: int = 0
    exit_fullscreen_count: int = 0
    tab_switch_count: int = 0
    videos: dict[str, VideoWatchSegment] = field(default_factory=dict)

    @property
    def video_count(self) -> int:
        """Number of distinct videos watched on this date."""
        return len(self.videos)

    @property
    def has_data(self) -> bool:
        """True if any study time was recorded."""
        return self.total_time > 0

    @classmethod
    def empty(cls, date: str) -> DailyRecord:
        """
        Build the zero-filled record for a date with no stored data.

        Business context: Charts and heatmaps need one entry per day with
        no gaps, so missing dates are materialized as empty records.

        Args:
            date: Calendar date as YYYY-MM-DD.

        Returns:
            DailyRecord with all counters zero and no videos.
        """
        return cls(date=date)

    def to_dict(self, video_index: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Serialize record to dictionary for JSON storage or export.

        Args:
            video_index: Optional title index. When given, segments without
                an embedded title get their resolved title written out.

        Returns:
            Dict with every DailyRecord field, the derived video_count, and
            a 'videos' mapping of video_id -> segment dict.

        Example:
            >>> DailyRecord.empty("2024-03-01").to_dict()["video_count"]
            0
        """
        videos: dict[str, Any] = {}
        for video_id, segment in self.videos.items():
            data = segment.to_dict()
            if video_index is not None:
                data["title"] = segment.resolve_title(video_index)
            videos[video_id] = data
        return {
            "date": self.date,
            "total_time": self.total_time,
            "effective_time": self.effective_time,
            "longest_session": self.longest_session,
            "pause_count": self.pause_count,
            "exit_fullscreen_count": self.exit_fullscreen_count,
            "tab_switch_count": self.tab_switch_count,
            "video_count": self.video_count,
            "videos": videos,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], date: str | None = None) -> DailyRecord:
        """
        Deserialize record from dictionary.

        Accepts both the snake_case keys written by to_dict() and the
        compact keys of the browser extension ('total', 'effective',
        'exitCount', 'switchCount'). A stored 'video_count' is ignored
        because the count is derived from the video mapping.

        Business context: Records written by older capture builds have been
        seen with effective time slightly above total time. The record is
        clamped rather than rejected so the day still shows up in reports.

        Args:
            data: Record fields.
            date: Storage key, used when the dict carries no 'date'.

        Returns:
            DailyRecord instance satisfying effective_time <= total_time.

        Raises:
            KeyError: If no date is available from either argument.
        """
        record_date = data.get("date") or date
        if record_date is None:
            raise KeyError("date")
        videos_raw = data.get("videos") or {}
        videos = {
            video_id: VideoWatchSegment.from_dict(video_id, segment)
            for video_id, segment in videos_raw.items()
        }
        total = int(_first(data, "total_time", "total", default=0))
        effective = int(_first(data, "effective_time", "effective", default=0))
        if effective > total:
            logger.warning(
                f"Effective time {effective}s exceeds total {total}s on {record_date}; clamping"
            )
            effective = total
        return cls(
            date=record_date,
            total_time=total,
            effective_time=effective,
            longest_session=int(_first(data, "longest_session", "longestSession", default=0)),
            pause_count=int(_first(data, "pause_count", "pauseCount", default=0)),
            exit_fullscreen_count=int(
                _first(data, "exit_fullscreen_count", "exitCount", default=0)
            ),
            tab_switch_count=int(_first(data, "tab_switch_count", "switchCount", default=0)),
            videos=videos,
        )


@dataclass
class PomodoroEntry:
    """
    One logged interval from the focus timer.

    TYPES:
    - "work": A focused study interval
    - "break": A rest interval

    MODES:
    - "countdown": Fixed-length timer
    - "countup": Open-ended stopwatch

    duration is the planned length; actual_duration is what actually
    elapsed and takes precedence wherever present.
    """

    type: Literal["work", "break"]
    duration: int = 0
    actual_duration: int | None = None
    pomodoro_count: float | None = None
    mode: Literal["countdown", "countup"] = "countdown"
    start_time: str | None = None
    end_time: str | None = None

    @property
    def elapsed(self) -> int:
        """Seconds actually spent, falling back to the planned duration."""
        return self.actual_duration or self.duration or 0

    @property
    def units(self) -> float:
        """
        Length of this entry in standard 25-minute pomodoro units.

        An explicit positive pomodoro_count wins; otherwise the count is
        derived from elapsed time.
        """
        if self.pomodoro_count is not None and self.pomodoro_count > 0:
            return float(self.pomodoro_count)
        return self.elapsed / Config.POMODORO_UNIT_SECONDS

    def to_dict(self) -> dict[str, Any]:
        """Serialize entry to a JSON-compatible dict."""
        return {
            "type": self.type,
            "duration": self.duration,
            "actual_duration": self.actual_duration,
            "pomodoro_count": self.pomodoro_count,
            "mode": self.mode,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PomodoroEntry:
        """Deserialize entry, accepting camelCase keys from the extension."""
        return cls(
            type=data.get("type", "work"),
            duration=int(data.get("duration") or 0),
            actual_duration=_first(data, "actual_duration", "actualDuration"),
            pomodoro_count=_first(data, "pomodoro_count", "pomodoroCount"),
            mode=data.get("mode", "countdown"),
            start_time=_first(data, "start_time", "startTime"),
            end_time=_first(data, "end_time", "endTime"),
        )


@dataclass
class PomodoroSummary:
    """
    Focus-timer totals for one date.

    Only work entries count toward completed, total_pomodoro_count and
    the mode counters; break entries contribute total_break_time.
    """

    completed: int = 0
    total_pomodoro_count: float = 0.0
    total_work_time: int = 0
    total_break_time: int = 0
    countdown_count: int = 0
    countup_count: int = 0
    history: list[PomodoroEntry] = field(default_factory=list)

    @classmethod
    def from_entries(cls, entries: list[PomodoroEntry]) -> PomodoroSummary:
        """
        Summarize one date's pomodoro entries.

        Args:
            entries: Entries in insertion (chronological) order.

        Returns:
            PomodoroSummary; all-zero for an empty list.

        Example:
            >>> s = PomodoroSummary.from_entries([PomodoroEntry("work", 1500)])
            >>> s.completed, s.total_pomodoro_count
            (1, 1.0)
        """
        work = [e for e in entries if e.type == "work"]
        rest = [e for e in entries if e.type == "break"]
        return cls(
            completed=len(work),
            total_pomodoro_count=sum(e.units for e in work),
            total_work_time=sum(e.elapsed for e in work),
            total_break_time=sum(e.elapsed for e in rest),
            countdown_count=sum(1 for e in work if e.mode == "countdown"),
            countup_count=sum(1 for e in work if e.mode == "countup"),
            history=list(entries),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize summary to a JSON-compatible dict."""
        return {
            "completed": self.completed,
            "total_pomodoro_count": self.total_pomodoro_count,
            "total_work_time": self.total_work_time,
            "total_break_time": self.total_break_time,
            "countdown_count": self.countdown_count,
            "countup_count": self.countup_count,
            "history": [e.to_dict() for e in self.history],
        }


@dataclass(frozen=True)
class VideoEvent:
    """A reconstructed interval of active viewing. Times are ISO strings."""

    video_id: str
    title: str
    start_time: str
    end_time: str
    duration: int
    kind: Literal["video"] = "video"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "video_id": self.video_id,
            "title": self.title,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class BreakEvent:
    """A reconstructed gap between two videos longer than the break threshold."""

    start_time: str
    end_time: str
    duration: int
    kind: Literal["break"] = "break"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
        }


TimelineEvent = VideoEvent | BreakEvent


@dataclass(frozen=True)
class HistoryEntry:
    """A watch segment tagged with the date it was recorded on."""

    date: str
    segment: VideoWatchSegment

    def to_dict(self) -> dict[str, Any]:
        data = self.segment.to_dict()
        data["date"] = self.date
        return data
