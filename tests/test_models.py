"""Tests for models module."""

from __future__ import annotations

import logging

import pytest

from study_focus_tracker.models import (
    BreakEvent,
    DailyRecord,
    HistoryEntry,
    PomodoroEntry,
    PomodoroSummary,
    VideoEvent,
    VideoWatchSegment,
)


class TestVideoWatchSegment:
    """Tests for VideoWatchSegment."""

    def test_resolve_title_prefers_embedded_title(self) -> None:
        """An embedded title wins over the index."""
        segment = VideoWatchSegment("BV1", title="线性代数")
        assert segment.resolve_title({"BV1": {"title": "Other"}}) == "线性代数"

    def test_resolve_title_falls_back_to_index_then_id(self) -> None:
        """Verifies the title fallback chain.

        Business context:
        Older capture builds stored titles only in the video index, and
        some videos were never indexed. Reports must always show
        something.

        Arrangement:
        Segment without a title.

        Action:
        Resolve with an index that has the video, then with one that
        does not.

        Assertion Strategy:
        Validates the index title, then the video id.
        """
        segment = VideoWatchSegment("BV1")
        assert segment.resolve_title({"BV1": {"title": "Intro"}}) == "Intro"
        assert segment.resolve_title({}) == "BV1"
        assert segment.resolve_title(None) == "BV1"

    def test_from_dict_accepts_compact_keys(self) -> None:
        """Verifies the extension's compact keys are understood.

        Business context:
        The browser extension writes 'ti', 'd' and 'st'. Both spellings
        must load to the same segment.

        Arrangement:
        Compact dict keyed under BV9.

        Action:
        VideoWatchSegment.from_dict.

        Assertion Strategy:
        Validates each mapped field and the id taken from the key.
        """
        segment = VideoWatchSegment.from_dict(
            "BV9",
            {"ti": "概率论", "d": 300, "st": "2024-03-10T01:00:00Z", "exitCount": 2, "rate": 1.5},
        )
        assert segment.video_id == "BV9"
        assert segment.title == "概率论"
        assert segment.watched_seconds == 300
        assert segment.start_timestamp == "2024-03-10T01:00:00Z"
        assert segment.exit_fullscreen_count == 2
        assert segment.playback_rate == 1.5

    def test_from_dict_converts_epoch_millis(self) -> None:
        """Older extension builds stored 'st' as epoch milliseconds."""
        segment = VideoWatchSegment.from_dict("BV9", {"d": 60, "st": 1710032400000})
        assert segment.start_timestamp == "2024-03-10T01:00:00+00:00"

    @pytest.mark.parametrize("value", ["not-a-date", "2024-02-30T01:00:00Z", True, ["x"]])
    def test_from_dict_drops_unreadable_start(
        self, value: object, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Verifies an unreadable start time loads as None with a warning.

        Business context:
        One damaged segment must not take down the whole day's timeline
        or the history list; it is simply left off the timeline.

        Arrangement:
        Segment dicts with malformed or wrongly typed start values.

        Action:
        VideoWatchSegment.from_dict.

        Assertion Strategy:
        Validates start_timestamp is None, the rest of the segment loads,
        and a warning names the video.
        """
        with caplog.at_level("WARNING", logger="study_focus_tracker.models"):
            segment = VideoWatchSegment.from_dict("BV9", {"d": 60, "st": value})
        assert segment.start_timestamp is None
        assert segment.watched_seconds == 60
        assert "BV9" in caplog.text

    def test_to_dict_keys(self) -> None:
        """Serialized segments carry every field."""
        data = VideoWatchSegment("BV1", watched_seconds=60).to_dict()
        assert set(data) == {
            "video_id",
            "title",
            "watched_seconds",
            "start_timestamp",
            "pause_count",
            "exit_fullscreen_count",
            "tab_switch_count",
            "playback_rate",
        }


class TestDailyRecord:
    """Tests for DailyRecord."""

    def test_empty_record(self) -> None:
        """Verifies the zero-filled record for a date without data.

        Arrangement:
        None.

        Action:
        DailyRecord.empty.

        Assertion Strategy:
        Validates zero totals, no videos and has_data False.
        """
        record = DailyRecord.empty("2024-03-01")
        assert record.date == "2024-03-01"
        assert record.total_time == 0
        assert record.video_count == 0
        assert not record.has_data

    def test_video_count_is_derived(self) -> None:
        """A stored video_count is ignored in favour of len(videos)."""
        record = DailyRecord.from_dict(
            {"date": "2024-03-01", "total_time": 60, "video_count": 99, "videos": {"BV1": {}}}
        )
        assert record.video_count == 1

    def test_from_dict_clamps_effective_time(self, caplog: pytest.LogCaptureFixture) -> None:
        """Verifies effective time above total time is clamped and logged.

        Business context:
        Records from older capture builds occasionally overstate effective
        time. The day must still appear in reports, with a sane ratio.

        Arrangement:
        Dict with effective 4000 > total 3600.

        Action:
        DailyRecord.from_dict under caplog.

        Assertion Strategy:
        Validates effective_time == total_time and a warning was logged.
        """
        with caplog.at_level(logging.WARNING, logger="study_focus_tracker.models"):
            record = DailyRecord.from_dict(
                {"date": "2024-03-01", "total_time": 3600, "effective_time": 4000}
            )
        assert record.effective_time == 3600
        assert "clamping" in caplog.text

    def test_from_dict_accepts_compact_keys_and_storage_key(self) -> None:
        """Verifies compact record keys and the date from the storage key.

        Arrangement:
        Compact dict without 'date'.

        Action:
        from_dict with date passed separately.

        Assertion Strategy:
        Validates totals, counters and the date.
        """
        record = DailyRecord.from_dict(
            {"total": 1200, "effective": 1000, "switchCount": 4, "longestSession": 800},
            "2024-03-02",
        )
        assert record.date == "2024-03-02"
        assert record.total_time == 1200
        assert record.effective_time == 1000
        assert record.tab_switch_count == 4
        assert record.longest_session == 800

    def test_from_dict_without_date_raises(self) -> None:
        """A record with no date anywhere is rejected."""
        with pytest.raises(KeyError):
            DailyRecord.from_dict({"total_time": 10})

    def test_to_dict_round_trip(self) -> None:
        """to_dict output loads back into an equal record."""
        record = DailyRecord(
            "2024-03-01",
            total_time=600,
            effective_time=500,
            pause_count=1,
            videos={"BV1": VideoWatchSegment("BV1", "标题", 600, "2024-03-01T01:00:00Z")},
        )
        assert DailyRecord.from_dict(record.to_dict()) == record

    def test_to_dict_with_index_writes_resolved_titles(self) -> None:
        """Verifies exports embed resolved titles.

        Business context:
        A JSON export must be self-contained, so titles from the index
        are written into each segment.

        Arrangement:
        Record whose segment has no title; index with one.

        Action:
        to_dict with and without the index.

        Assertion Strategy:
        Validates the title is resolved only when an index is given.
        """
        record = DailyRecord("2024-03-01", videos={"BV1": VideoWatchSegment("BV1")})
        assert record.to_dict()["videos"]["BV1"]["title"] == ""
        indexed = record.to_dict({"BV1": {"title": "Intro"}})
        assert indexed["videos"]["BV1"]["title"] == "Intro"
        assert indexed["video_count"] == 1


class TestPomodoro:
    """Tests for PomodoroEntry and PomodoroSummary."""

    def test_elapsed_prefers_actual_duration(self) -> None:
        """actual_duration wins over the planned duration."""
        assert PomodoroEntry("work", duration=1500, actual_duration=1200).elapsed == 1200
        assert PomodoroEntry("work", duration=1500).elapsed == 1500

    def test_units_from_explicit_count_or_elapsed(self) -> None:
        """Verifies pomodoro units.

        Arrangement:
        One entry with an explicit count, one with only a duration.

        Action:
        Read .units.

        Assertion Strategy:
        Validates the explicit count, and elapsed / 1500 otherwise.
        """
        assert PomodoroEntry("work", duration=600, pomodoro_count=2).units == 2.0
        assert PomodoroEntry("work", duration=3000).units == 2.0
        assert PomodoroEntry("work", duration=750, pomodoro_count=0).units == 0.5

    def test_from_dict_accepts_camel_case(self) -> None:
        """The extension's camelCase keys load."""
        entry = PomodoroEntry.from_dict(
            {"type": "work", "duration": 1500, "actualDuration": 1400, "mode": "countup"}
        )
        assert entry.actual_duration == 1400
        assert entry.mode == "countup"

    def test_summary_counts_work_entries_only(self) -> None:
        """Verifies breaks only contribute break time.

        Business context:
        'Completed pomodoros' means focused intervals. Breaks are tracked
        separately so the report can show both.

        Arrangement:
        Two work entries (one countdown, one countup) and one break.

        Action:
        PomodoroSummary.from_entries.

        Assertion Strategy:
        Validates every total and mode counter.
        """
        entries = [
            PomodoroEntry("work", duration=1500),
            PomodoroEntry("break", duration=300),
            PomodoroEntry("work", duration=1500, actual_duration=750, mode="countup"),
        ]
        summary = PomodoroSummary.from_entries(entries)
        assert summary.completed == 2
        assert summary.total_pomodoro_count == 1.5
        assert summary.total_work_time == 2250
        assert summary.total_break_time == 300
        assert summary.countdown_count == 1
        assert summary.countup_count == 1
        assert summary.history == entries

    def test_empty_summary(self) -> None:
        """No entries means an all-zero summary."""
        summary = PomodoroSummary.from_entries([])
        assert summary.completed == 0
        assert summary.to_dict()["history"] == []


class TestEvents:
    """Tests for timeline events and history entries."""

    def test_event_kinds(self) -> None:
        """Events serialize with their kind tag."""
        video = VideoEvent(
            "BV1", "T", "2024-03-10T01:00:00+00:00", "2024-03-10T01:10:00+00:00", 600
        )
        rest = BreakEvent("2024-03-10T01:10:00+00:00", "2024-03-10T01:20:00+00:00", 600)
        assert video.to_dict()["kind"] == "video"
        assert rest.to_dict()["kind"] == "break"
        assert "title" not in rest.to_dict()

    def test_history_entry_carries_date(self) -> None:
        """History items are segment dicts plus the date."""
        entry = HistoryEntry("2024-03-10", VideoWatchSegment("BV1", watched_seconds=60))
        data = entry.to_dict()
        assert data["date"] == "2024-03-10"
        assert data["video_id"] == "BV1"
        assert data["watched_seconds"] == 60
