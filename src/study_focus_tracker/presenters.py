"""
Presenters for the Study Focus Tracker dashboard.

PURPOSE: Testable layer between the aggregator and the web UI.
AI CONTEXT: Pure data transformation - no HTML, no HTTP.

DESIGN PRINCIPLES:
1. Presenters receive collaborators, return view models (dataclasses)
2. No dependencies on a specific UI framework
3. Unit-testable with an in-memory storage
4. Each presenter focuses on one dashboard concern

USAGE:
    presenter = DashboardPresenter(aggregator)
    overview = await presenter.get_overview("week")
    # overview is a dataclass ready for template rendering
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .aggregator import DailyRecordAggregator, Period
from .charts import ChartRenderer, select_chart_renderer
from .dateutils import format_date, format_duration, weekday_name
from .models import DailyRecord
from .quality import QualityAnalyzer, QualityScoreResult
from .statistics import PeriodSummary, StatisticsEngine, TrendNote
from .timeline import TimelineReconstructor

__all__ = [
    "DayViewModel",
    "QualityViewModel",
    "DashboardOverview",
    "DashboardPresenter",
    "ChartPresenter",
]

QUALITY_CLASSES: tuple[tuple[float, str], ...] = (
    (80, "excellent"),
    (60, "good"),
)


@dataclass
class DayViewModel:
    """View model for one row of the daily table."""

    date: str
    total_time: int
    effective_time: int
    video_count: int

    @classmethod
    def from_record(cls, record: DailyRecord) -> DayViewModel:
        return cls(
            date=record.date,
            total_time=record.total_time,
            effective_time=record.effective_time,
            video_count=record.video_count,
        )

    @property
    def weekday(self) -> str:
        return f"周{weekday_name(self.date)}"

    @property
    def minutes(self) -> float:
        return self.total_time / 60

    @property
    def quality(self) -> float:
        """Effective share of total time in percent."""
        if self.total_time <= 0:
            return 0.0
        return self.effective_time / self.total_time * 100

    @property
    def duration_display(self) -> str:
        """
        Format total time for a narrow table column.

        Returns:
            String like '1小时30分钟', or '0秒' for an idle day.
        """
        return format_duration(self.total_time)

    @property
    def status_class(self) -> str:
        """
        CSS class for the row's quality badge.

        Business context: Colour lets the user spot weak days in a month
        table without reading numbers.

        Returns:
            'idle' for days without study, else 'excellent', 'good' or
            'weak' by effective share.

        Example:
            >>> DayViewModel("2024-03-10", 3600, 3000, 2).status_class
            'excellent'
        """
        if self.total_time <= 0:
            return "idle"
        for threshold, css in QUALITY_CLASSES:
            if self.quality >= threshold:
                return css
        return "weak"


@dataclass
class QualityViewModel:
    """View model for the quality score panel."""

    date: str
    total_score: float
    label: str
    stars: int
    color: str
    icon: str
    message: str
    dimensions: list[dict[str, Any]] = field(default_factory=list)
    weak_points: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @classmethod
    def from_score(
        cls,
        date: str,
        score: QualityScoreResult,
        analyzer: QualityAnalyzer,
    ) -> QualityViewModel:
        rating = score.rating
        return cls(
            date=date,
            total_score=score.total_score,
            label=rating.label,
            stars=rating.stars,
            color=rating.color,
            icon=rating.icon,
            message=rating.message,
            dimensions=[
                {"name": d.name, "score": d.score, "level": d.level}
                for d in score.dimensions.values()
            ],
            weak_points=[w.name for w in analyzer.identify_weak_points(score)],
            suggestions=[
                f"{s.icon} {s.title}：{s.content}" for s in analyzer.generate_suggestions(score)
            ],
        )

    @property
    def stars_display(self) -> str:
        """
        Render the tier's star count as five filled/empty stars.

        Example:
            >>> vm.stars  # exceptional
            5
            >>> vm.stars_display
            '★★★★★'
        """
        return "★" * self.stars + "☆" * (5 - self.stars)


@dataclass
class DashboardOverview:
    """Complete view model for the dashboard page."""

    period: Period
    days: list[DayViewModel] = field(default_factory=list)
    summary: PeriodSummary | None = None
    quality: QualityViewModel | None = None
    trends: list[TrendNote] = field(default_factory=list)
    top_videos: list[dict[str, Any]] = field(default_factory=list)
    timeline_html: str = ""

    @property
    def total_display(self) -> str:
        return format_duration(self.summary.total_time if self.summary else 0)

    @property
    def average_display(self) -> str:
        return format_duration(self.summary.daily_average if self.summary else 0)


class DashboardPresenter:
    """
    Presenter for the main dashboard view.

    Transforms aggregated records into view models ready for rendering.
    Every call reads a fresh snapshot through the aggregator.
    """

    def __init__(
        self,
        aggregator: DailyRecordAggregator,
        analyzer: QualityAnalyzer | None = None,
        statistics: StatisticsEngine | None = None,
        timeline: TimelineReconstructor | None = None,
    ) -> None:
        """
        Initialize the dashboard presenter with its data dependencies.

        Business context: Dependency injection lets tests run the
        presenter against in-memory storage and a fixed clock.

        Args:
            aggregator: Source of daily records.
            analyzer: Quality scorer. Default: QualityAnalyzer()
            statistics: Period statistics. Default: StatisticsEngine()
            timeline: Timeline builder. Default: TimelineReconstructor()

        Example:
            >>> presenter = DashboardPresenter(DailyRecordAggregator(StorageManager()))
            >>> overview = await presenter.get_overview()
        """
        self.aggregator = aggregator
        self.analyzer = analyzer or QualityAnalyzer()
        self.statistics = statistics or StatisticsEngine()
        self.timeline = timeline or TimelineReconstructor()

    async def get_overview(self, period: Period = "week") -> DashboardOverview:
        """
        Get complete overview data for the dashboard.

        Loads the period's records, today's score and today's timeline,
        and builds one view model per panel.

        Args:
            period: Period for the table, totals and trends.

        Returns:
            DashboardOverview with days listed newest first.

        Raises:
            ValidationError: Unknown period.
            DataUnavailable: Storage unreadable.
        """
        records = await self.aggregator.fetch_daily_stats(period)
        index = await self.aggregator.fetch_video_index()
        today = format_date(self.aggregator.today())
        quality = await self.get_quality(today)
        record = await self.aggregator.fetch_day(today)
        events = self.timeline.reconstruct(record, index)

        return DashboardOverview(
            period=period,
            days=[DayViewModel.from_record(r) for r in reversed(records)],
            summary=self.statistics.summarize_period(records),
            quality=quality,
            trends=self.statistics.analyze_period_trend(records),
            top_videos=self.statistics.top_videos(records, index),
            timeline_html=self.timeline.to_html(
                events, self.timeline.analyze_pattern(events, record)
            ),
        )

    async def get_days(self, period: Period = "week") -> list[DayViewModel]:
        """Day rows for a period, oldest first."""
        records = await self.aggregator.fetch_daily_stats(period)
        return [DayViewModel.from_record(r) for r in records]

    async def get_quality(self, date: str) -> QualityViewModel:
        """
        Quality panel for one date.

        Raises:
            ValidationError: Invalid date.
        """
        record = await self.aggregator.fetch_day(date)
        score = self.analyzer.calculate_for_record(record)
        return QualityViewModel.from_score(record.date, score, self.analyzer)


class ChartPresenter:
    """
    Presenter for chart images.

    Delegates drawing to a ChartRenderer. The renderer decides the image
    format, so routes must use media_type rather than assuming PNG.
    """

    def __init__(
        self,
        aggregator: DailyRecordAggregator,
        renderer: ChartRenderer | None = None,
        analyzer: QualityAnalyzer | None = None,
    ) -> None:
        """
        Args:
            aggregator: Source of daily records.
            renderer: Chart backend. Default: select_chart_renderer()
            analyzer: Quality scorer. Default: QualityAnalyzer()
        """
        self.aggregator = aggregator
        self.renderer = renderer or select_chart_renderer()
        self.analyzer = analyzer or QualityAnalyzer()

    @property
    def media_type(self) -> str:
        return self.renderer.media_type

    async def render_daily_chart(self, period: Period = "week") -> bytes:
        """
        Render study minutes per day for a period.

        Business context: The bar chart shows at a glance which days were
        skipped and whether study time is growing.

        Returns:
            Encoded image in self.media_type. A placeholder image when no
            day in the period has data.
        """
        records = await self.aggregator.fetch_daily_stats(period)
        points = [(r.date, r.total_time / 60) for r in records]
        if not any(r.has_data for r in records):
            points = []
        return self.renderer.render_daily(points, f"Study minutes ({period})")

    async def render_quality_chart(self, date: str) -> bytes:
        """Render one date's four dimension scores."""
        record = await self.aggregator.fetch_day(date)
        score = self.analyzer.calculate_for_record(record)
        scores = [(d.key.replace("_", " "), d.score) for d in score.dimensions.values()]
        return self.renderer.render_dimensions(scores, f"Focus quality {record.date}")

