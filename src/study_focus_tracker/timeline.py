"""
Timeline reconstruction for Study Focus Tracker.

PURPOSE: Rebuild one day's ordered sequence of viewing and break intervals
from per-video start time and watched duration, derive pattern insights,
and render the timeline as Markdown or HTML.

ALGORITHM:
1. Drop segments without a start timestamp; sort the rest by start.
2. Emit a video event per segment ending at start + watched seconds. If a
   segment would run past the next segment's start, its end is clipped so
   adjacent events never overlap.
3. Emit a break event for every gap longer than Config.BREAK_THRESHOLD_SECONDS.
   Shorter gaps are absorbed as natural pauses.

Rendering is pure string building. Wall-clock times are shown in the
reconstructor's tzinfo (system zone by default).
"""

from __future__ import annotations

import html
import logging
from collections import defaultdict
from datetime import datetime, timedelta, tzinfo
from typing import Any

from .config import Config
from .dateutils import format_duration, format_hhmm, format_minutes, parse_iso, to_local
from .models import BreakEvent, DailyRecord, TimelineEvent, VideoEvent

logger = logging.getLogger(__name__)

NO_DATA_INSIGHT = "今日暂无学习数据"
EMPTY_TIMELINE = "今日暂无学习记录"

_GUTTER = " " * 12


class TimelineReconstructor:
    """
    Builds and renders watch/break timelines for a single day.

    Args:
        tz: Zone used for HH:MM labels and hour-of-day bucketing.
            None means the system local zone.
        break_threshold: Gap in seconds above which a break is recorded.
    """

    def __init__(
        self,
        tz: tzinfo | None = None,
        break_threshold: int = Config.BREAK_THRESHOLD_SECONDS,
    ) -> None:
        self.tz = tz
        self.break_threshold = break_threshold

    def reconstruct(
        self,
        record: DailyRecord,
        video_index: dict[str, Any] | None = None,
    ) -> list[TimelineEvent]:
        """
        Rebuild the ordered event list for one day.

        Business context: The capture side only stores when each video was
        first opened and how long it was watched. Replaying those pairs in
        order shows when the user studied and where they stepped away.

        Args:
            record: The day's record. Segments without start_timestamp are
                ignored.
            video_index: Title lookup used when a segment has no title.

        Returns:
            Events ascending by start time. Empty when no segment has a
            start time.

        Example:
            >>> events = TimelineReconstructor().reconstruct(record)
            >>> [e.kind for e in events]
            ['video', 'break', 'video']
        """
        timed = []
        for segment in record.videos.values():
            if not segment.start_timestamp:
                continue
            start = parse_iso(segment.start_timestamp)
            timed.append((start, segment))
        timed.sort(key=lambda pair: pair[0])

        events: list[TimelineEvent] = []
        for position, (start, segment) in enumerate(timed):
            end = start + timedelta(seconds=max(0, segment.watched_seconds))
            next_start = timed[position + 1][0] if position + 1 < len(timed) else None
            if next_start is not None and end > next_start:
                logger.debug(f"Clipping overlapping segment {segment.video_id} on {record.date}")
                end = next_start
            events.append(
                VideoEvent(
                    video_id=segment.video_id,
                    title=segment.resolve_title(video_index),
                    start_time=start.isoformat(),
                    end_time=end.isoformat(),
                    duration=int((end - start).total_seconds()),
                )
            )
            if next_start is None:
                continue
            gap = (next_start - end).total_seconds()
            if gap > self.break_threshold:
                events.append(
                    BreakEvent(
                        start_time=end.isoformat(),
                        end_time=next_start.isoformat(),
                        duration=int(gap),
                    )
                )
        return events

    def analyze_pattern(
        self,
        events: list[TimelineEvent],
        record: DailyRecord | None = None,
    ) -> list[str]:
        """
        Derive human-readable insights from a reconstructed timeline.

        INSIGHTS (in order):
        - Best hour: hour-of-day with the most video time (ties: earliest)
        - Mean break length, plus a continuity note when at least
          Config.GOOD_CONTINUITY_RATIO of breaks are shorter than
          Config.SHORT_BREAK_SECONDS; or a 'very focused' note with no breaks
        - Longest session, when the record has one

        Args:
            events: Output of reconstruct().
            record: The same day's record, for longest_session.

        Returns:
            Insight strings. A single no-data insight for an empty timeline.
        """
        videos = [e for e in events if isinstance(e, VideoEvent)]
        if not videos:
            return [NO_DATA_INSIGHT]

        insights: list[str] = []
        by_hour: dict[int, int] = defaultdict(int)
        for event in videos:
            by_hour[to_local(parse_iso(event.start_time), self.tz).hour] += event.duration
        best_hour, best_total = max(sorted(by_hour.items()), key=lambda kv: kv[1])
        insights.append(
            f"🌟 最佳学习时段：{best_hour}:00-{best_hour + 1}:00 ({format_minutes(best_total)})"
        )

        breaks = [e for e in events if isinstance(e, BreakEvent)]
        if breaks:
            mean = sum(b.duration for b in breaks) / len(breaks)
            insights.append(f"⏱️ 平均休息间隔：{format_minutes(mean)}")
            short = sum(1 for b in breaks if b.duration < Config.SHORT_BREAK_SECONDS)
            if short / len(breaks) >= Config.GOOD_CONTINUITY_RATIO:
                insights.append("✅ 学习连续性很好，休息间隔短促")
        else:
            insights.append("✅ 学习非常专注，几乎无中断")

        if record is not None and record.longest_session:
            insights.append(f"⭐ 最长连续学习：{format_duration(record.longest_session)}")
        return insights

    # =========================================================================
    # RENDERING
    # =========================================================================

    def _hhmm(self, value: str | datetime) -> str:
        return format_hhmm(value, self.tz)

    def to_markdown(self, events: list[TimelineEvent], insights: list[str] | None = None) -> str:
        """
        Render the timeline as a Markdown section with a box-drawing chart.

        Args:
            events: Output of reconstruct().
            insights: Output of analyze_pattern(); rendered as a follow-up
                section when non-empty.

        Returns:
            Markdown text starting with the '## ⏰ 学习时间线' heading.
        """
        md = "## ⏰ 学习时间线\n\n"
        if not events:
            return md + f"{EMPTY_TIMELINE}\n\n"

        start = self._hhmm(events[0].start_time)
        end = self._hhmm(events[-1].end_time)
        md += f"**学习时段**：{start} - {end}\n\n"
        md += "```\n"
        for position, event in enumerate(events):
            label = self._hhmm(event.start_time)
            duration = format_duration(event.duration)
            if isinstance(event, VideoEvent):
                md += f"{label} ━━━┓\n"
                md += f"{_GUTTER}┃ 📺 {event.title}\n"
                md += f"{_GUTTER}┃    ⏱️ {duration}\n"
                followed_by_break = position + 1 < len(events) and isinstance(
                    events[position + 1], BreakEvent
                )
                md += f"{_GUTTER}┃\n" if followed_by_break else f"{_GUTTER}┣━━━\n"
            else:
                md += f"{_GUTTER}┃\n"
                md += f"{label} ┃ ☕ 休息 ({duration})\n"
                md += f"{_GUTTER}┃\n"
                md += f"{_GUTTER}┣━━━\n"
        md += f"{end} ━━━┛ 结束学习\n"
        md += "```\n\n"

        if insights:
            md += "## 💡 学习模式分析\n\n"
            md += "".join(f"- {insight}\n" for insight in insights)
            md += "\n"
        return md

    def to_html(self, events: list[TimelineEvent], insights: list[str] | None = None) -> str:
        """
        Render the timeline as an HTML fragment.

        Titles and insights are HTML-escaped. Styling is left to the
        enclosing document (see reports.DAY_REPORT_CSS).

        Returns:
            A 'timeline' div followed by an optional 'timeline-insights'
            block, or a 'timeline-empty' placeholder.
        """
        if not events:
            return f'<div class="timeline-empty">{EMPTY_TIMELINE}</div>'

        parts = ['<div class="timeline">']
        for event in events:
            label = self._hhmm(event.start_time)
            duration = format_duration(event.duration)
            if isinstance(event, VideoEvent):
                parts.append(
                    '<div class="timeline-item video">'
                    f'<div class="timeline-time">{label}</div>'
                    '<div class="timeline-dot"></div>'
                    '<div class="timeline-content">'
                    '<div class="timeline-badge video">📺 视频</div>'
                    f"<h4>{html.escape(event.title)}</h4>"
                    f'<div class="timeline-duration">{duration}</div>'
                    "</div></div>"
                )
            else:
                parts.append(
                    '<div class="timeline-item break">'
                    f'<div class="timeline-time">{label}</div>'
                    '<div class="timeline-dot break"></div>'
                    '<div class="timeline-content">'
                    '<div class="timeline-badge break">☕ 休息</div>'
                    f'<div class="timeline-duration">{duration}</div>'
                    "</div></div>"
                )
        parts.append("</div>")

        if insights:
            items = "".join(f"<li>{html.escape(insight)}</li>" for insight in insights)
            parts.append(
                f'<div class="timeline-insights"><h3>💡 学习模式分析</h3><ul>{items}</ul></div>'
            )
        return "\n".join(parts)
