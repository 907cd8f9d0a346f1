"""
Query service - request/response contract for UI callers.

PURPOSE: Expose study statistics, history, quality scores and timelines as
coroutines returning a uniform ServiceResult.
AI CONTEXT: Shared by the web routes and the CLI. Neither caller handles
StudyTrackerError itself; this layer turns it into a failed result.

ARCHITECTURE:
    CLI commands ──┐
                   ├──► StudyQueryService ──► DailyRecordAggregator ──► StorageManager
    HTTP routes  ──┘            │
                                ├──► QualityAnalyzer
                                ├──► TimelineReconstructor
                                └──► StatisticsEngine

RESPONSE SHAPE:
    {"success": true, "data": ...}
    {"success": false, "error": "..."}

USAGE:
    service = StudyQueryService(aggregator)
    result = await service.get_study_stats("week")
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from .aggregator import DailyRecordAggregator, Period
from .config import Config
from .errors import DataUnavailable, StudyTrackerError
from .quality import QualityAnalyzer
from .statistics import StatisticsEngine
from .timeline import TimelineReconstructor

__all__ = [
    "ServiceResult",
    "StudyQueryService",
]

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """
    Result from a query operation.

    Attributes:
        success: Whether the query completed.
        data: Query-specific payload on success.
        error: User-facing error message on failure.
        message: Optional informational note.
    """

    success: bool
    data: Any = None
    error: str | None = None
    message: str = ""

    @classmethod
    def ok(cls, data: Any, message: str = "") -> ServiceResult:
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str) -> ServiceResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convert this ServiceResult to a JSON-serializable dictionary.

        Successful results always carry 'data' (even when it is an empty
        list); failed results carry 'error'. 'message' is omitted when empty.

        Returns:
            Dict with 'success' plus 'data' or 'error'.

        Example:
            >>> ServiceResult.ok([]).to_dict()
            {'success': True, 'data': []}
            >>> ServiceResult.fail("存储不可用").to_dict()
            {'success': False, 'error': '存储不可用'}
        """
        result: dict[str, Any] = {"success": self.success}
        if self.success:
            result["data"] = self.data
        else:
            result["error"] = self.error or "unknown error"
        if self.message:
            result["message"] = self.message
        return result


class StudyQueryService:
    """
    Study data queries for dashboards, popups and the CLI.

    Provides the read-side operations as pure business logic, separated
    from HTTP handling and CLI argument parsing.

    OPERATIONS:
    - get_study_stats: zero-filled daily records for a period, plus totals
    - get_study_history: paginated recent watch segments
    - get_quality_score: focus quality score for one date
    - get_timeline: reconstructed timeline and insights for one date

    ERROR HANDLING:
    ValidationError and DataUnavailable become failed results with the
    error's message. Anything else is a defect and propagates.

    Example:
        >>> service = StudyQueryService(DailyRecordAggregator(StorageManager()))
        >>> result = await service.get_study_stats("week")
        >>> len(result.data["records"])
        8
    """

    def __init__(
        self,
        aggregator: DailyRecordAggregator,
        analyzer: QualityAnalyzer | None = None,
        timeline: TimelineReconstructor | None = None,
        statistics: StatisticsEngine | None = None,
    ) -> None:
        """
        Args:
            aggregator: Reader over storage.
            analyzer: Quality scorer. Default: QualityAnalyzer()
            timeline: Timeline builder. Default: TimelineReconstructor()
            statistics: Period statistics. Default: StatisticsEngine()
        """
        self.aggregator = aggregator
        self.analyzer = analyzer or QualityAnalyzer()
        self.timeline = timeline or TimelineReconstructor()
        self.statistics = statistics or StatisticsEngine()

    @staticmethod
    def _failure(operation: str, error: StudyTrackerError) -> ServiceResult:
        if isinstance(error, DataUnavailable):
            logger.error(f"{operation} failed: {error}")
        else:
            logger.info(f"{operation} rejected: {error}")
        return ServiceResult.fail(str(error))

    async def get_study_stats(self, period: Period = "week") -> ServiceResult:
        """
        Daily records for a period, ascending and zero-filled.

        Args:
            period: 'week', 'month', 'year', 'all' or a day count.

        Returns:
            ServiceResult whose data holds 'period', 'start', 'end',
            'records' (DailyRecord dicts) and 'summary' (period totals).
        """
        try:
            start, end = self.aggregator.resolve_period_range(period)
            records = await self.aggregator.fetch_daily_stats(period)
        except StudyTrackerError as e:
            return self._failure("get_study_stats", e)
        summary = self.statistics.summarize_period(records)
        return ServiceResult.ok(
            {
                "period": period,
                "start": start.date().isoformat(),
                "end": end.date().isoformat(),
                "records": [record.to_dict() for record in records],
                "summary": summary.to_dict(),
            }
        )

    async def get_study_history(
        self,
        limit: int = Config.DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> ServiceResult:
        """
        Most recent watch segments, newest first.

        Args:
            limit: Page size (1..Config.MAX_HISTORY_LIMIT).
            offset: Entries to skip.

        Returns:
            ServiceResult whose data holds 'items', 'limit' and 'offset'.
            Each item is a segment dict with its 'date' and a resolved title.
        """
        try:
            entries = await self.aggregator.fetch_history(limit, offset)
            index = await self.aggregator.fetch_video_index()
        except StudyTrackerError as e:
            return self._failure("get_study_history", e)
        items = []
        for entry in entries:
            item = entry.to_dict()
            item["title"] = entry.segment.resolve_title(index)
            items.append(item)
        return ServiceResult.ok({"items": items, "limit": limit, "offset": offset})

    async def get_quality_score(self, date: str) -> ServiceResult:
        """
        Focus quality score for one date.

        Returns:
            ServiceResult whose data is the score dict plus 'date',
            'weak_points' and 'suggestions'. A day without study time
            succeeds with the no-data score.
        """
        try:
            record = await self.aggregator.fetch_day(date)
        except StudyTrackerError as e:
            return self._failure("get_quality_score", e)
        score = self.analyzer.calculate_for_record(record)
        data = score.to_dict()
        data["date"] = record.date
        data["weak_points"] = [asdict(w) for w in self.analyzer.identify_weak_points(score)]
        data["suggestions"] = [asdict(s) for s in self.analyzer.generate_suggestions(score)]
        return ServiceResult.ok(data)

    async def get_timeline(self, date: str) -> ServiceResult:
        """
        Reconstructed timeline and pattern insights for one date.

        Returns:
            ServiceResult whose data holds 'date', 'events' and 'insights'.
        """
        try:
            record = await self.aggregator.fetch_day(date)
            index = await self.aggregator.fetch_video_index()
        except StudyTrackerError as e:
            return self._failure("get_timeline", e)
        events = self.timeline.reconstruct(record, index)
        return ServiceResult.ok(
            {
                "date": record.date,
                "events": [event.to_dict() for event in events],
                "insights": self.timeline.analyze_pattern(events, record),
            }
        )
