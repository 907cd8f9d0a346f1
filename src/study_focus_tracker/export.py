"""
Export orchestration for Study Focus Tracker.

PURPOSE: Run one export request end to end: ask for scope, format and
(optionally) a date, fetch the data, render it, and deliver the artifact.
AI CONTEXT: The dialog, sink and image rasterizer are collaborators behind
protocols. The CLI uses PresetDialog with values from its flags; the web
app validates query parameters and calls build() directly.

PIPELINE (stages awaited in order, never overlapping):
    choose_scope ─► choose_format ─► [choose_date] ─► fetch ─► score
        ─► timeline ─► render ─► deliver

CANCELLATION:
Any None answer from the dialog ends the request before storage is read.

SCOPES:
- today:  the current date's day report
- custom: a day report for a date the user picks
- week / month: period report for the last 7 / 30 days
- raw:    CSV or JSON dump of the last Config.RAW_EXPORT_DAYS days
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from .aggregator import DailyRecordAggregator, validate_date
from .config import Config
from .dateutils import format_date
from .errors import DataUnavailable, NoStudyData, ValidationError
from .filesystem import FileSystem, RealFileSystem
from .reports import ReportGenerator

__all__ = [
    "ArtifactSink",
    "DirectorySink",
    "ExportArtifact",
    "ExportDialog",
    "ExportOrchestrator",
    "ImageCapture",
    "PresetDialog",
    "MEDIA_TYPES",
]

logger = logging.getLogger(__name__)

MEDIA_TYPES: dict[str, str] = {
    "markdown": "text/markdown;charset=utf-8",
    "html": "text/html;charset=utf-8",
    "csv": "text/csv;charset=utf-8",
    "json": "application/json;charset=utf-8",
    "image": "image/png",
}

EXTENSIONS: dict[str, str] = {
    "markdown": "md",
    "html": "html",
    "csv": "csv",
    "json": "json",
    "image": "png",
}

PERIOD_SCOPES: dict[str, tuple[int, str]] = {
    "week": (Config.WEEK_DAYS, "最近7天"),
    "month": (Config.MONTH_DAYS, "最近30天"),
}

NO_CAPTURE_MESSAGE = "未配置图片导出工具，无法导出图片"


@dataclass(frozen=True)
class ExportArtifact:
    """
    A rendered export ready for delivery.

    Attributes:
        filename: Suggested file name, e.g. 'bilibili-study-today-2024-03-10.md'.
        media_type: MIME type including charset for text formats.
        content: Text for document/data formats, bytes for images.
    """

    filename: str
    media_type: str
    content: str | bytes

    def to_bytes(self) -> bytes:
        """
        Encode the artifact for writing or download.

        CSV gets a UTF-8 byte order mark so spreadsheet programs detect
        the encoding; other text formats are plain UTF-8.
        """
        if isinstance(self.content, bytes):
            return self.content
        encoding = "utf-8-sig" if self.media_type.startswith("text/csv") else "utf-8"
        return self.content.encode(encoding)


class ExportDialog(Protocol):
    """
    The user-facing selection steps of an export.

    Every choose_* method returns None when the user cancels.
    """

    def choose_scope(self) -> str | None:
        """Pick one of Config.REPORT_SCOPES."""
        ...

    def choose_format(self, scope: str) -> str | None:
        """Pick one of Config.formats_for_scope(scope)."""
        ...

    def choose_date(self, error: str | None) -> str | None:
        """
        Pick a YYYY-MM-DD date for the custom scope.

        Args:
            error: Validation message for the previous answer, or None on
                the first prompt.
        """
        ...

    def notify(self, message: str) -> None:
        """Show a non-fatal message, such as 'no data for this day'."""
        ...


class ArtifactSink(Protocol):
    """Delivery target for rendered exports."""

    def deliver(self, artifact: ExportArtifact) -> str:
        """
        Store or send the artifact.

        Returns:
            Where the artifact went (a path, URL or description).
        """
        ...


class ImageCapture(Protocol):
    """Rasterizer that turns a standalone HTML page into PNG bytes."""

    def capture(self, html: str) -> bytes: ...


class PresetDialog:
    """
    Dialog with answers fixed up front.

    Used by the CLI and tests. A custom-scope date that fails
    validation is not retried; the second choose_date() call returns None,
    which cancels the export.

    Example:
        >>> dialog = PresetDialog("custom", "markdown", "2024-03-10")
        >>> dialog.choose_scope()
        'custom'
    """

    def __init__(
        self,
        scope: str | None,
        fmt: str | None,
        date: str | None = None,
    ) -> None:
        self.scope = scope
        self.fmt = fmt
        self.date = date
        self.messages: list[str] = []
        self.date_prompts: list[str | None] = []

    def choose_scope(self) -> str | None:
        return self.scope

    def choose_format(self, scope: str) -> str | None:
        return self.fmt

    def choose_date(self, error: str | None) -> str | None:
        self.date_prompts.append(error)
        if error is not None:
            self.messages.append(error)
            return None
        return self.date

    def notify(self, message: str) -> None:
        self.messages.append(message)


class DirectorySink:
    """
    Writes artifacts into a directory through the FileSystem abstraction.

    Business context: The browser extension triggered a download; outside
    the browser the equivalent is a file in the export directory.
    """

    def __init__(
        self,
        export_dir: str | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        """
        Args:
            export_dir: Target directory. Default: Config.get_export_dir()
            filesystem: FileSystem implementation. Default: RealFileSystem
        """
        self.export_dir = export_dir or Config.get_export_dir()
        self._fs = filesystem or RealFileSystem()

    def deliver(self, artifact: ExportArtifact) -> str:
        """Write the artifact and return its path."""
        if not self._fs.exists(self.export_dir):
            self._fs.makedirs(self.export_dir, exist_ok=True)
        path = os.path.join(self.export_dir, artifact.filename)
        self._fs.write_bytes(path, artifact.to_bytes())
        logger.info(f"Exported {artifact.filename} to {self.export_dir}")
        return path


class ExportOrchestrator:
    """
    Runs export requests.

    Business context: One entry point for "export my study data", whether
    the user asked for today's report as an image or thirty days of raw
    data. The orchestrator owns the ordering and naming; the generator
    owns the content.

    ERROR HANDLING:
    - Cancelled selection: returns None, storage untouched
    - DataUnavailable: logged, reported via dialog.notify(), returns None
    - ValidationError for an unknown scope or format: propagates
    - RenderFailure: propagates
    """

    def __init__(
        self,
        aggregator: DailyRecordAggregator,
        sink: ArtifactSink | None = None,
        generator: ReportGenerator | None = None,
        image_capture: ImageCapture | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Args:
            aggregator: Data source.
            sink: Where finished artifacts go. Default: DirectorySink()
            generator: Report renderer. Default: ReportGenerator()
            image_capture: Rasterizer for the image format. Without one,
                image exports are rejected with ValidationError.
            clock: 'now' for file names. Default: the aggregator's clock.
        """
        self.aggregator = aggregator
        self.sink = sink or DirectorySink()
        self.generator = generator or ReportGenerator()
        self.image_capture = image_capture
        self._clock = clock or aggregator.now

    async def run(self, dialog: ExportDialog) -> str | None:
        """
        Ask the dialog for a selection, then export it.

        Args:
            dialog: Source of the scope, format and date answers.

        Returns:
            The sink's location for the artifact, or None when the user
            cancelled or there was nothing to export.

        Raises:
            ValidationError: Unknown scope or format.
            RenderFailure: A renderer crashed.

        Example:
            >>> location = await orchestrator.run(PresetDialog("week", "markdown"))
            >>> location.endswith("bilibili-study-week-2024-03-10.md")
            True
        """
        scope = dialog.choose_scope()
        if scope is None:
            logger.info("Export cancelled at scope selection")
            return None
        self._check_scope(scope)

        fmt = dialog.choose_format(scope)
        if fmt is None:
            logger.info("Export cancelled at format selection")
            return None
        self._check_format(scope, fmt)

        day: str | None = None
        if scope == "custom":
            day = self._ask_date(dialog)
            if day is None:
                logger.info("Export cancelled at date selection")
                return None

        try:
            artifact = await self.build(scope, fmt, day)
        except DataUnavailable as e:
            logger.warning(f"Export {scope}/{fmt} aborted: {e}")
            dialog.notify(str(e))
            return None
        return self.sink.deliver(artifact)

    def _ask_date(self, dialog: ExportDialog) -> str | None:
        error: str | None = None
        while True:
            answer = dialog.choose_date(error)
            if answer is None:
                return None
            try:
                return validate_date(answer)
            except ValidationError as e:
                error = str(e)

    def validate_selection(self, scope: str, fmt: str) -> None:
        """
        Reject a scope/format pair this orchestrator cannot export.

        Raises:
            ValidationError: Unknown scope, a format the scope does not
                offer, or image without an ImageCapture.
        """
        self._check_scope(scope)
        self._check_format(scope, fmt)

    def _check_scope(self, scope: str) -> None:
        if scope not in Config.REPORT_SCOPES:
            raise ValidationError(f"未知的导出范围: {scope}")

    def _check_format(self, scope: str, fmt: str) -> None:
        if fmt not in Config.formats_for_scope(scope):
            raise ValidationError(f"{scope} 不支持导出格式: {fmt}")
        if fmt == "image" and self.image_capture is None:
            raise ValidationError(NO_CAPTURE_MESSAGE)

    async def build(self, scope: str, fmt: str, day: str | None = None) -> ExportArtifact:
        """
        Fetch, render and name one artifact.

        Args:
            scope: One of Config.REPORT_SCOPES.
            fmt: A format valid for the scope.
            day: YYYY-MM-DD for the custom scope.

        Returns:
            The rendered artifact.

        Raises:
            NoStudyData: The day has nothing recorded.
            DataUnavailable: Storage unreadable.
            ValidationError: Invalid selection or day, checked before any
                storage read.
            RenderFailure: A renderer crashed.
        """
        self.validate_selection(scope, fmt)
        stamp = format_date(self._clock())
        if scope in ("today", "custom"):
            return await self._day_artifact(scope, fmt, day or stamp, stamp)
        if scope == "raw":
            return await self._raw_artifact(fmt, stamp)
        return await self._period_artifact(scope, fmt, stamp)

    async def _day_artifact(self, scope: str, fmt: str, day: str, stamp: str) -> ExportArtifact:
        record = await self.aggregator.fetch_day(day)
        if not record.has_data:
            raise NoStudyData(f"{record.date} 暂无学习数据")
        index = await self.aggregator.fetch_video_index()
        pomodoro = await self.aggregator.fetch_pomodoro_summary(record.date)
        score = self.generator.quality.calculate_for_record(record)

        if fmt == "markdown":
            content: str | bytes = self.generator.day_report_markdown(
                record, index, pomodoro, score
            )
        else:
            content = self.generator.day_report_html(record, index, pomodoro, score)
            if fmt == "image":
                content = self._capture(content)

        if scope == "today":
            name = f"{Config.FILE_PREFIX}-today-{record.date}"
        else:
            name = f"{Config.FILE_PREFIX}-{record.date}"
        return ExportArtifact(f"{name}.{EXTENSIONS[fmt]}", MEDIA_TYPES[fmt], content)

    async def _period_artifact(self, scope: str, fmt: str, stamp: str) -> ExportArtifact:
        days, period_name = PERIOD_SCOPES[scope]
        records = await self.aggregator.fetch_last_days(days)
        if fmt == "markdown":
            content: str | bytes = self.generator.period_report_markdown(records, period_name)
        else:
            content = self.generator.period_report_html(records, period_name)
            if fmt == "image":
                content = self._capture(content)
        name = f"{Config.FILE_PREFIX}-{scope}-{stamp}.{EXTENSIONS[fmt]}"
        return ExportArtifact(name, MEDIA_TYPES[fmt], content)

    async def _raw_artifact(self, fmt: str, stamp: str) -> ExportArtifact:
        records = await self.aggregator.fetch_last_days(Config.RAW_EXPORT_DAYS)
        if fmt == "csv":
            content = self.generator.export_csv(records)
        else:
            index = await self.aggregator.fetch_video_index()
            content = self.generator.export_json(records, index)
        name = f"{Config.FILE_PREFIX}-data-{stamp}.{EXTENSIONS[fmt]}"
        return ExportArtifact(name, MEDIA_TYPES[fmt], content)

    def _capture(self, html: str) -> bytes:
        if self.image_capture is None:
            raise ValidationError(NO_CAPTURE_MESSAGE)
        return self.image_capture.capture(html)
