"""
Statistics engine for Study Focus Tracker.

PURPOSE: Period summaries, trend notes and the pomodoro verdict.
AI CONTEXT: Pure data processing - no visualization, no I/O.

METRIC CATEGORIES:
1. Period totals: study days, total/effective time, distinct videos
2. Focus quality: effective share of total time, per day and per period
3. Trends: study frequency, quality drift, duration variability,
   week-over-week total-time direction
4. Pomodoro: a one-line verdict on the day's 25-minute units

USAGE:
    engine = StatisticsEngine()
    summary = engine.summarize_period(records)
    notes = engine.analyze_period_trend(records)
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Literal

from .dateutils import format_duration
from .models import DailyRecord, PomodoroSummary

TrendKind = Literal["positive", "notice", "warning"]


@dataclass(frozen=True)
class PeriodSummary:
    """Aggregate totals over a run of daily records."""

    days: int
    study_days: int
    total_time: int
    effective_time: int
    unique_videos: int
    longest_session: int
    pause_count: int
    exit_fullscreen_count: int
    tab_switch_count: int

    @property
    def avg_quality(self) -> float:
        """Effective share of total time, in percent."""
        if self.total_time <= 0:
            return 0.0
        return self.effective_time / self.total_time * 100

    @property
    def daily_average(self) -> float:
        """Mean seconds per day actually studied."""
        return self.total_time / self.study_days if self.study_days else 0.0

    @property
    def study_ratio(self) -> float:
        return self.study_days / self.days if self.days else 0.0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["avg_quality"] = round(self.avg_quality, 1)
        data["daily_average"] = round(self.daily_average, 1)
        return data


@dataclass(frozen=True)
class TrendNote:
    """One observation about a period, with an optional suggestion."""

    kind: TrendKind
    title: str
    content: str
    suggestion: str = ""

    @property
    def emoji(self) -> str:
        return {"warning": "⚠️", "notice": "📌"}.get(self.kind, "✅")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def daily_quality(record: DailyRecord) -> float:
    """Effective share of total time for one day, in percent (0 when idle)."""
    if record.total_time <= 0:
        return 0.0
    return record.effective_time / record.total_time * 100


class StatisticsEngine:
    """
    Calculator for period study statistics.

    DESIGN:
    - Stateless: Each method operates on provided data
    - Pure: No side effects, only data transformation
    - Input lists are ascending by date and zero-filled (one per day)

    THRESHOLDS:
    - frequency_warning / frequency_notice: share of days studied below
      which the frequency note is a warning or a notice
    - quality_drift: percentage-point change flagged between the first
      three and last three study days
    - variability: coefficient of variation of daily durations flagged
      as unstable
    - direction_band: relative change in total time treated as flat
    """

    def __init__(
        self,
        frequency_warning: float = 0.3,
        frequency_notice: float = 0.6,
        quality_drift: float = 5.0,
        variability: float = 0.5,
        direction_band: float = 0.1,
    ) -> None:
        self.frequency_warning = frequency_warning
        self.frequency_notice = frequency_notice
        self.quality_drift = quality_drift
        self.variability = variability
        self.direction_band = direction_band

    def summarize_period(self, records: list[DailyRecord]) -> PeriodSummary:
        """
        Aggregate a run of daily records.

        Args:
            records: One record per date (zero-filled days included).

        Returns:
            PeriodSummary. Distinct videos are counted across the whole
            period, so a video watched on two days counts once.

        Example:
            >>> summary = StatisticsEngine().summarize_period(records)
            >>> summary.study_days <= summary.days
            True
        """
        videos: set[str] = set()
        for record in records:
            videos.update(record.videos)
        return PeriodSummary(
            days=len(records),
            study_days=sum(1 for r in records if r.has_data),
            total_time=sum(r.total_time for r in records),
            effective_time=sum(r.effective_time for r in records),
            unique_videos=len(videos),
            longest_session=max((r.longest_session for r in records), default=0),
            pause_count=sum(r.pause_count for r in records),
            exit_fullscreen_count=sum(r.exit_fullscreen_count for r in records),
            tab_switch_count=sum(r.tab_switch_count for r in records),
        )

    def top_videos(
        self,
        records: list[DailyRecord],
        video_index: dict[str, Any] | None = None,
        limit: int = 5,
    ) -> list[dict[str, Any]]:
        """
        Rank videos by total watched time across the period.

        Args:
            records: Daily records to scan.
            video_index: Title lookup for segments without a title.
            limit: Maximum entries to return.

        Returns:
            Dicts with video_id, title, watched_seconds and days, largest
            first. Ties are broken by video_id for stable output.
        """
        seconds: dict[str, int] = defaultdict(int)
        days: dict[str, int] = defaultdict(int)
        titles: dict[str, str] = {}
        for record in records:
            for video_id, segment in record.videos.items():
                seconds[video_id] += segment.watched_seconds
                days[video_id] += 1
                titles.setdefault(video_id, segment.resolve_title(video_index))
        ranked = sorted(seconds, key=lambda vid: (-seconds[vid], vid))[:limit]
        return [
            {
                "video_id": vid,
                "title": titles[vid],
                "watched_seconds": seconds[vid],
                "days": days[vid],
            }
            for vid in ranked
        ]

    def analyze_period_trend(self, records: list[DailyRecord]) -> list[TrendNote]:
        """
        Derive trend notes for a period.

        NOTES (in order):
        1. Week-over-week total-time direction
        2. Study frequency (always present)
        3. Quality drift, when there are at least six study days and the
           last three differ from the first three by more than quality_drift
        4. Duration variability, when the coefficient of variation of
           daily study time exceeds variability

        Args:
            records: One record per date, ascending.

        Returns:
            TrendNotes. A single warning when nothing was studied.
        """
        studied = [r for r in records if r.has_data]
        if not studied:
            return [
                TrendNote(
                    "warning",
                    "本周期无学习记录",
                    "尚未开始学习，建议制定学习计划并开始行动",
                )
            ]

        notes: list[TrendNote] = []
        direction = self.week_over_week(records)
        if direction is not None:
            notes.append(direction)

        frequency = len(studied) / len(records)
        share = f"{frequency * 100:.0f}%"
        if frequency < self.frequency_warning:
            notes.append(
                TrendNote(
                    "warning",
                    "学习频率偏低",
                    f"在{len(records)}天中只学习了{len(studied)}天（{share}）",
                    "尝试每天至少学习30分钟，养成学习习惯",
                )
            )
        elif frequency < self.frequency_notice:
            notes.append(
                TrendNote(
                    "notice",
                    "学习频率一般",
                    f"在{len(records)}天中学习了{len(studied)}天（{share}）",
                    "可以适当提高学习频率，建议每周学习5天以上",
                )
            )
        else:
            notes.append(
                TrendNote(
                    "positive",
                    "学习频率良好",
                    f"在{len(records)}天中学习了{len(studied)}天（{share}）",
                    "保持良好的学习习惯",
                )
            )

        qualities = [daily_quality(r) for r in studied]
        if len(qualities) >= 6:
            before = sum(qualities[:3]) / 3
            recent = sum(qualities[-3:]) / 3
            drift = recent - before
            if drift > self.quality_drift:
                notes.append(
                    TrendNote(
                        "positive",
                        "专注质量提升",
                        f"专注质量从{before:.1f}%提升到{recent:.1f}%",
                        "总结最近的学习方法，继续保持",
                    )
                )
            elif drift < -self.quality_drift:
                notes.append(
                    TrendNote(
                        "warning",
                        "专注质量下降",
                        f"专注质量从{before:.1f}%下降到{recent:.1f}%",
                        "检查是否有外界干扰增加，或学习状态不佳",
                    )
                )

        durations = [r.total_time for r in studied]
        mean = sum(durations) / len(durations)
        std_dev = math.sqrt(sum((d - mean) ** 2 for d in durations) / len(durations))
        if std_dev / mean > self.variability:
            notes.append(
                TrendNote(
                    "notice",
                    "学习时长波动较大",
                    "每天学习时长不稳定",
                    "尝试设定固定的学习时段，保持学习节奏",
                )
            )
        return notes

    def week_over_week(self, records: list[DailyRecord]) -> TrendNote | None:
        """
        Compare total study time of the latest window with the one before.

        With at least 14 records the windows are the last 7 days and the 7
        before them; shorter runs are split into an earlier and a later
        half (the later half takes the odd day).

        Args:
            records: One record per date, ascending.

        Returns:
            A direction note, or None for fewer than two records.

        Example:
            >>> note = StatisticsEngine().week_over_week(records)
            >>> note.title
            '学习时长上升'
        """
        if len(records) < 2:
            return None
        if len(records) >= 14:
            earlier, later = records[-14:-7], records[-7:]
            label_earlier, label_later = "此前7天", "最近7天"
        else:
            middle = len(records) // 2
            earlier, later = records[:middle], records[middle:]
            label_earlier, label_later = "前半段", "后半段"

        before = sum(r.total_time for r in earlier)
        after = sum(r.total_time for r in later)
        content = (
            f"{label_later}累计{format_duration(after)}，{label_earlier}累计{format_duration(before)}"
        )
        if before == 0:
            if after == 0:
                return TrendNote("notice", "学习时长持平", content)
            return TrendNote("positive", "学习时长上升", content, "保持学习节奏")

        change = (after - before) / before
        content += f"（{change * 100:+.0f}%）"
        if change > self.direction_band:
            return TrendNote("positive", "学习时长上升", content, "保持学习节奏")
        if change < -self.direction_band:
            return TrendNote(
                "warning", "学习时长下降", content, "回顾最近的安排，预留固定的学习时间"
            )
        return TrendNote("notice", "学习时长持平", content)

    # =========================================================================
    # POMODORO
    # =========================================================================

    @staticmethod
    def pomodoro_verdict(summary: PomodoroSummary) -> str:
        """
        One-line assessment of a day's pomodoro usage.

        Returns:
            Emoji-prefixed verdict keyed on total 25-minute units.
        """
        if summary.total_pomodoro_count >= 8:
            return "💯 评价：非常优秀！坚持使用番茄钟保持高效"
        if summary.total_pomodoro_count >= 4:
            return "✨ 评价：表现良好，继续保持"
        return "💪 评价：建议增加番茄钟使用频率"
