"""Tests for timeline module."""

from __future__ import annotations

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from conftest import make_record, make_segment, worked_example_record  # noqa: E402

from study_focus_tracker.models import BreakEvent, VideoEvent  # noqa: E402
from study_focus_tracker.timeline import TimelineReconstructor  # noqa: E402


@pytest.fixture
def reconstructor() -> TimelineReconstructor:
    """Reconstructor rendering wall-clock times in UTC."""
    return TimelineReconstructor(tz=UTC)


class TestReconstruct:
    """Tests for event reconstruction."""

    def test_worked_example_events(self, reconstructor: TimelineReconstructor) -> None:
        """Verifies video, break, video for two videos ten minutes apart.

        Business context:
        A ten-minute gap between lectures is a real break and shows up on
        the timeline; the user sees where they stepped away.

        Arrangement:
        BV1 at 01:00 for 30 min, BV2 at 01:40 for 20 min.

        Action:
        reconstruct().

        Assertion Strategy:
        Validates kinds, times, durations and resolved titles.
        """
        events = reconstructor.reconstruct(worked_example_record())
        assert [e.kind for e in events] == ["video", "break", "video"]
        first, rest, second = events
        assert isinstance(first, VideoEvent)
        assert first.title == "线性代数 第1讲"
        assert first.end_time == "2024-03-10T01:30:00+00:00"
        assert first.duration == 1800
        assert isinstance(rest, BreakEvent)
        assert rest.start_time == "2024-03-10T01:30:00+00:00"
        assert rest.end_time == "2024-03-10T01:40:00+00:00"
        assert rest.duration == 600
        assert isinstance(second, VideoEvent)
        assert second.duration == 1200

    def test_sorted_by_start(self, reconstructor: TimelineReconstructor) -> None:
        """Segments are replayed in start order, not storage order."""
        record = make_record(
            "2024-03-10",
            900,
            segments=[
                make_segment("late", 300, "2024-03-10T03:00:00Z"),
                make_segment("early", 300, "2024-03-10T01:00:00Z"),
            ],
        )
        events = reconstructor.reconstruct(record)
        videos = [e for e in events if isinstance(e, VideoEvent)]
        assert [v.video_id for v in videos] == ["early", "late"]

    def test_overlap_is_clipped(self, reconstructor: TimelineReconstructor) -> None:
        """Verifies a segment running into the next one is clipped.

        Business context:
        Two tabs playing at once would otherwise draw overlapping bars
        and double-count the overlap in the best-hour insight.

        Arrangement:
        BV1 at 01:00 for 60 min, BV2 at 01:30.

        Action:
        reconstruct().

        Assertion Strategy:
        Validates BV1 ends at BV2's start with 30 min and no break.
        """
        record = make_record(
            "2024-03-10",
            4800,
            segments=[
                make_segment("BV1", 3600, "2024-03-10T01:00:00Z"),
                make_segment("BV2", 1200, "2024-03-10T01:30:00Z"),
            ],
        )
        events = reconstructor.reconstruct(record)
        assert [e.kind for e in events] == ["video", "video"]
        assert events[0].end_time == "2024-03-10T01:30:00+00:00"
        assert events[0].duration == 1800

    def test_gap_at_threshold_is_not_a_break(self, reconstructor: TimelineReconstructor) -> None:
        """A gap of exactly three minutes is absorbed as a natural pause."""
        record = make_record(
            "2024-03-10",
            1200,
            segments=[
                make_segment("BV1", 600, "2024-03-10T01:00:00Z"),
                make_segment("BV2", 600, "2024-03-10T01:13:00Z"),
            ],
        )
        assert [e.kind for e in reconstructor.reconstruct(record)] == ["video", "video"]

    def test_untimed_segments_skipped(self, reconstructor: TimelineReconstructor) -> None:
        """Segments without a start time are left out."""
        record = make_record(
            "2024-03-10",
            600,
            segments=[make_segment("BV1", 300), make_segment("BV2", 300, "2024-03-10T01:00:00Z")],
        )
        events = reconstructor.reconstruct(record)
        assert [e.video_id for e in events if isinstance(e, VideoEvent)] == ["BV2"]

    def test_index_title_used(self, reconstructor: TimelineReconstructor) -> None:
        """Untitled segments take their title from the video index."""
        record = make_record(
            "2024-03-10", 60, segments=[make_segment("BV7", 60, "2024-03-10T01:00:00Z")]
        )
        events = reconstructor.reconstruct(record, {"BV7": {"title": "概率论"}})
        assert events[0].title == "概率论"  # type: ignore[union-attr]

    def test_empty_record(self, reconstructor: TimelineReconstructor) -> None:
        assert reconstructor.reconstruct(make_record("2024-03-10")) == []


class TestAnalyzePattern:
    """Tests for pattern insights."""

    def test_worked_example_insights(self, reconstructor: TimelineReconstructor) -> None:
        """Verifies best hour, mean break and longest session insights.

        Arrangement:
        Worked example: 50 minutes of video in the 01:00 hour, one
        ten-minute break, longest session 2000s.

        Action:
        analyze_pattern with the record.

        Assertion Strategy:
        Validates the exact insight list. A single 600s break is not
        short, so there is no continuity note.
        """
        record = worked_example_record()
        events = reconstructor.reconstruct(record)
        assert reconstructor.analyze_pattern(events, record) == [
            "🌟 最佳学习时段：1:00-2:00 (50分钟)",
            "⏱️ 平均休息间隔：10分钟",
            "⭐ 最长连续学习：33分钟",
        ]

    def test_no_breaks_is_very_focused(self, reconstructor: TimelineReconstructor) -> None:
        """A timeline without breaks gets the 'very focused' note."""
        record = make_record(
            "2024-03-10", 600, segments=[make_segment("BV1", 600, "2024-03-10T09:00:00Z")]
        )
        insights = reconstructor.analyze_pattern(reconstructor.reconstruct(record))
        assert insights == ["🌟 最佳学习时段：9:00-10:00 (10分钟)", "✅ 学习非常专注，几乎无中断"]

    def test_short_breaks_note_continuity(self, reconstructor: TimelineReconstructor) -> None:
        """Verifies the continuity note when most breaks are short.

        Arrangement:
        Three videos with two five-minute gaps.

        Action:
        analyze_pattern.

        Assertion Strategy:
        Validates the continuity insight follows the mean break.
        """
        record = make_record(
            "2024-03-10",
            1800,
            segments=[
                make_segment("BV1", 600, "2024-03-10T01:00:00Z"),
                make_segment("BV2", 600, "2024-03-10T01:15:00Z"),
                make_segment("BV3", 600, "2024-03-10T01:30:00Z"),
            ],
        )
        insights = reconstructor.analyze_pattern(reconstructor.reconstruct(record))
        assert insights[1] == "⏱️ 平均休息间隔：5分钟"
        assert insights[2] == "✅ 学习连续性很好，休息间隔短促"

    @pytest.mark.parametrize(("short_count", "noted"), [(7, True), (6, False)])
    def test_continuity_threshold_is_inclusive(
        self, reconstructor: TimelineReconstructor, short_count: int, noted: bool
    ) -> None:
        """Verifies the continuity note at exactly 70% short breaks.

        Business context:
        Seven short breaks out of ten is the point where the day counts
        as continuous study; one fewer does not.

        Arrangement:
        Eleven one-minute videos from 08:00 separated by ten gaps: the
        first short_count gaps last 5 minutes, the rest 15 minutes.

        Action:
        reconstruct() then analyze_pattern().

        Assertion Strategy:
        Validates ten breaks, and the note present at 7/10 and absent
        at 6/10.
        """
        gaps = [300] * short_count + [900] * (10 - short_count)
        start = datetime(2024, 3, 10, 8, 0, tzinfo=UTC)
        segments = []
        for index in range(11):
            segments.append(make_segment(f"BV{index}", 60, start.isoformat()))
            if index < len(gaps):
                start += timedelta(seconds=60 + gaps[index])
        record = make_record("2024-03-10", 660, segments=segments)
        events = reconstructor.reconstruct(record)
        assert sum(1 for e in events if isinstance(e, BreakEvent)) == 10
        insights = reconstructor.analyze_pattern(events)
        assert ("✅ 学习连续性很好，休息间隔短促" in insights) is noted

    def test_best_hour_tie_picks_earliest(self, reconstructor: TimelineReconstructor) -> None:
        """Equal totals in two hours resolve to the earlier hour."""
        record = make_record(
            "2024-03-10",
            1200,
            segments=[
                make_segment("BV1", 600, "2024-03-10T14:00:00Z"),
                make_segment("BV2", 600, "2024-03-10T08:00:00Z"),
            ],
        )
        insights = reconstructor.analyze_pattern(reconstructor.reconstruct(record))
        assert insights[0].startswith("🌟 最佳学习时段：8:00-9:00")

    def test_empty_timeline(self, reconstructor: TimelineReconstructor) -> None:
        assert reconstructor.analyze_pattern([]) == ["今日暂无学习数据"]


class TestRendering:
    """Tests for Markdown and HTML rendering."""

    def test_markdown_chart(self, reconstructor: TimelineReconstructor) -> None:
        """Verifies the Markdown timeline section.

        Arrangement:
        Worked example events and insights.

        Action:
        to_markdown.

        Assertion Strategy:
        Validates heading, span, entries, break, end marker and the
        insights section.
        """
        record = worked_example_record()
        events = reconstructor.reconstruct(record)
        md = reconstructor.to_markdown(events, reconstructor.analyze_pattern(events, record))
        assert md.startswith("## ⏰ 学习时间线\n\n")
        assert "**学习时段**：01:00 - 02:00" in md
        assert "01:00 ━━━┓" in md
        assert "📺 线性代数 第1讲" in md
        assert "01:30 ┃ ☕ 休息 (10分钟)" in md
        assert "02:00 ━━━┛ 结束学习" in md
        assert "## 💡 学习模式分析" in md
        assert "- ⭐ 最长连续学习：33分钟" in md

    def test_markdown_empty(self, reconstructor: TimelineReconstructor) -> None:
        assert reconstructor.to_markdown([]) == "## ⏰ 学习时间线\n\n今日暂无学习记录\n\n"

    def test_html_escapes_titles(self, reconstructor: TimelineReconstructor) -> None:
        """Verifies titles and insights are HTML-escaped.

        Business context:
        Video titles are user content from a third-party site; they must
        not inject markup into exported reports.

        Arrangement:
        Segment titled with a script tag.

        Action:
        to_html.

        Assertion Strategy:
        Validates the escaped title and absence of the raw tag.
        """
        record = make_record(
            "2024-03-10",
            60,
            segments=[make_segment("BV1", 60, "2024-03-10T01:00:00Z", "<script>x</script>")],
        )
        events = reconstructor.reconstruct(record)
        fragment = reconstructor.to_html(events, ["<b>note</b>"])
        assert "&lt;script&gt;x&lt;/script&gt;" in fragment
        assert "<script>" not in fragment
        assert "<li>&lt;b&gt;note&lt;/b&gt;</li>" in fragment
        assert '<div class="timeline">' in fragment

    def test_html_empty(self, reconstructor: TimelineReconstructor) -> None:
        assert reconstructor.to_html([]) == '<div class="timeline-empty">今日暂无学习记录</div>'
