"""
FastAPI routes for the Study Focus Tracker dashboard.

PURPOSE: Thin route handlers that delegate to presenters and services.
AI CONTEXT: Routes should be simple - business logic lives in presenters,
the query service and the export orchestrator.

ROUTE STRUCTURE:
- / : Dashboard page (full HTML)
- /api/* : JSON endpoints returning {"success": ..., "data"|"error": ...}
- /charts/* : Chart images (PNG, or SVG without matplotlib)
- /export : Report and raw-data downloads

STATUS CODES:
- /api/* always answer 200; failures are reported in the body
- Pages, charts and downloads answer 400 for ValidationError and 503
  for DataUnavailable; an export of a day with nothing recorded
  (NoStudyData) answers 404
"""

from __future__ import annotations

import html
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, Response

from ..aggregator import DailyRecordAggregator, validate_date
from ..config import Config
from ..errors import DataUnavailable, NoStudyData, StudyTrackerError, ValidationError
from ..export import ExportOrchestrator
from ..presenters import (
    ChartPresenter,
    DashboardOverview,
    DashboardPresenter,
    DayViewModel,
    QualityViewModel,
)
from ..query_service import StudyQueryService
from ..storage import StorageManager

__all__ = [
    "router",
    "get_storage",
    "get_aggregator",
    "get_query_service",
    "get_dashboard_presenter",
    "get_chart_presenter",
]

router = APIRouter()

_DASHBOARD_CSS = """
:root {
    --bg: #f5f7fa;
    --surface: #ffffff;
    --border: #e5e7eb;
    --text: #1f2937;
    --text-muted: #6b7280;
    --primary: #667eea;
    --success: #10b981;
    --warning: #f59e0b;
    --danger: #ef4444;
}
* { box-sizing: border-box; margin: 0; padding: 0; }
body {
    font-family: -apple-system, BlinkMacSystemFont, "PingFang SC", "Microsoft YaHei", sans-serif;
    background: var(--bg);
    color: var(--text);
    line-height: 1.6;
    padding: 1rem;
}
.container { max-width: 1200px; margin: 0 auto; }
header {
    display: flex;
    justify-content: space-between;
    align-items: center;
    margin-bottom: 1.5rem;
    padding-bottom: 1rem;
    border-bottom: 1px solid var(--border);
}
h1 { font-size: 1.5rem; font-weight: 600; }
nav a { margin-left: 0.75rem; color: var(--primary); text-decoration: none; }
.grid {
    display: grid;
    grid-template-columns: repeat(auto-fit, minmax(280px, 1fr));
    gap: 1rem;
    margin-bottom: 1rem;
}
.panel {
    background: var(--surface);
    border: 1px solid var(--border);
    border-radius: 0.5rem;
    padding: 1rem;
    margin-bottom: 1rem;
}
.panel h2 {
    font-size: 1rem;
    font-weight: 500;
    color: var(--text-muted);
    margin-bottom: 0.75rem;
}
.metric { font-size: 2rem; font-weight: 700; }
.metric-label { font-size: 0.875rem; color: var(--text-muted); }
table { width: 100%; border-collapse: collapse; }
th, td { text-align: left; padding: 0.5rem; border-bottom: 1px solid var(--border); }
th { color: var(--text-muted); font-weight: 500; font-size: 0.875rem; }
.badge {
    display: inline-block;
    padding: 0.125rem 0.5rem;
    border-radius: 9999px;
    font-size: 0.75rem;
    color: white;
}
.badge-excellent { background: var(--success); }
.badge-good { background: var(--warning); }
.badge-weak { background: var(--danger); }
.badge-idle { background: var(--border); color: var(--text-muted); }
.trend { margin-bottom: 0.5rem; }
.chart-container img { max-width: 100%; height: auto; }
.timeline-event { display: flex; gap: 0.75rem; padding: 0.25rem 0; }
.timeline-time { color: var(--text-muted); font-family: monospace; }
.timeline-event.break { color: var(--text-muted); }
.insights { margin-top: 0.75rem; padding-left: 1.25rem; }
footer {
    margin-top: 2rem;
    padding-top: 1rem;
    border-top: 1px solid var(--border);
    color: var(--text-muted);
    font-size: 0.875rem;
    text-align: center;
}
"""

PERIOD_LINKS: tuple[tuple[str, str], ...] = (
    ("week", "最近一周"),
    ("month", "最近一月"),
    ("year", "最近一年"),
    ("all", "全部"),
)

# =============================================================================
# Dependency Factory Functions
# =============================================================================


def get_storage() -> StorageManager:
    """
    Create a StorageManager for the configured storage directory.

    A new instance per request keeps reads fresh: the capture side may
    write records while the dashboard is running.
    """
    return StorageManager()


def get_aggregator(
    storage: Annotated[StorageManager, Depends(get_storage)],
) -> DailyRecordAggregator:
    """Aggregator over the request's storage, using the system clock."""
    return DailyRecordAggregator(storage)


def get_query_service(
    aggregator: Annotated[DailyRecordAggregator, Depends(get_aggregator)],
) -> StudyQueryService:
    return StudyQueryService(aggregator)


def get_dashboard_presenter(
    aggregator: Annotated[DailyRecordAggregator, Depends(get_aggregator)],
) -> DashboardPresenter:
    return DashboardPresenter(aggregator)


def get_chart_presenter(
    aggregator: Annotated[DailyRecordAggregator, Depends(get_aggregator)],
) -> ChartPresenter:
    return ChartPresenter(aggregator)


def _http_error(error: StudyTrackerError) -> HTTPException:
    """Map a pipeline error onto an HTTP status."""
    if isinstance(error, DataUnavailable):
        return HTTPException(status_code=503, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


# ============================================================================
# Page Routes
# ============================================================================


@router.get("/", response_class=HTMLResponse)
async def dashboard_page(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
    period: str = "week",
) -> HTMLResponse:
    """
    Render the dashboard page.

    Business context: One page answers "how did my studying go lately":
    period totals, a per-day table, trend notes, today's quality score
    and today's timeline.

    Args:
        period: 'week', 'month', 'year', 'all' or a day count.

    Returns:
        HTMLResponse with the full page.

    Raises:
        HTTPException: 400 for an unknown period, 503 if storage is
            unreadable.
    """
    try:
        overview = await presenter.get_overview(period)
    except StudyTrackerError as e:
        raise _http_error(e) from e
    html_page = _render_dashboard_html(overview)
    return HTMLResponse(content=html_page, media_type="text/html; charset=utf-8")


# ============================================================================
# JSON API Routes
# ============================================================================


@router.get("/api/stats")
async def api_stats(
    service: Annotated[StudyQueryService, Depends(get_query_service)],
    period: str = "week",
) -> dict[str, object]:
    """
    Daily records for a period.

    Example:
        >>> # GET /api/stats?period=week
        >>> {"success": true, "data": {"period": "week", "records": [...8 items...], ...}}
    """
    result = await service.get_study_stats(period)
    return result.to_dict()


@router.get("/api/history")
async def api_history(
    service: Annotated[StudyQueryService, Depends(get_query_service)],
    limit: int = Config.DEFAULT_HISTORY_LIMIT,
    offset: int = 0,
) -> dict[str, object]:
    """Recent watch segments, newest first."""
    result = await service.get_study_history(limit, offset)
    return result.to_dict()


@router.get("/api/quality")
async def api_quality(
    service: Annotated[StudyQueryService, Depends(get_query_service)],
    aggregator: Annotated[DailyRecordAggregator, Depends(get_aggregator)],
    date: Annotated[str | None, Query()] = None,
) -> dict[str, object]:
    """Quality score for a date (default: today)."""
    result = await service.get_quality_score(date or aggregator.today().isoformat())
    return result.to_dict()


@router.get("/api/timeline")
async def api_timeline(
    service: Annotated[StudyQueryService, Depends(get_query_service)],
    aggregator: Annotated[DailyRecordAggregator, Depends(get_aggregator)],
    date: Annotated[str | None, Query()] = None,
) -> dict[str, object]:
    """Timeline events and insights for a date (default: today)."""
    result = await service.get_timeline(date or aggregator.today().isoformat())
    return result.to_dict()


# ============================================================================
# Chart Routes
# ============================================================================


@router.get("/charts/daily.png")
async def daily_chart(
    presenter: Annotated[ChartPresenter, Depends(get_chart_presenter)],
    period: str = "week",
) -> Response:
    """
    Study minutes per day as an image.

    Returns:
        Response with PNG bytes, or SVG when matplotlib is not installed.
        The media type tells the two apart.
    """
    try:
        content = await presenter.render_daily_chart(period)
    except StudyTrackerError as e:
        raise _http_error(e) from e
    return Response(content=content, media_type=presenter.media_type)


@router.get("/charts/quality.png")
async def quality_chart(
    presenter: Annotated[ChartPresenter, Depends(get_chart_presenter)],
    aggregator: Annotated[DailyRecordAggregator, Depends(get_aggregator)],
    date: Annotated[str | None, Query()] = None,
) -> Response:
    """Quality dimension scores for a date (default: today) as an image."""
    try:
        content = await presenter.render_quality_chart(date or aggregator.today().isoformat())
    except StudyTrackerError as e:
        raise _http_error(e) from e
    return Response(content=content, media_type=presenter.media_type)


# ============================================================================
# Export Route
# ============================================================================


@router.get("/export")
async def export_download(
    aggregator: Annotated[DailyRecordAggregator, Depends(get_aggregator)],
    scope: str = "today",
    fmt: Annotated[str, Query(alias="format")] = "markdown",
    date: Annotated[str | None, Query()] = None,
) -> Response:
    """
    Download a report or raw data export.

    Args:
        scope: today, custom, week, month or raw.
        format: markdown, html, csv or json. Image export needs a
            rasterizer and is rejected here.
        date: YYYY-MM-DD, required for the custom scope.

    Returns:
        Response with the artifact and a Content-Disposition attachment
        header carrying its file name.

    Raises:
        HTTPException: 400 for invalid selections, 404 when the day has
            nothing recorded, 503 when storage cannot be read.
    """
    orchestrator = ExportOrchestrator(aggregator)
    try:
        orchestrator.validate_selection(scope, fmt)
        day = None
        if scope == "custom":
            if not date:
                raise ValidationError("请选择导出日期")
            day = validate_date(date)
        artifact = await orchestrator.build(scope, fmt, day)
    except NoStudyData as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except (ValidationError, DataUnavailable) as e:
        raise _http_error(e) from e

    return Response(
        content=artifact.to_bytes(),
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


# ============================================================================
# Template Rendering Helpers
# ============================================================================


def _render_dashboard_html(overview: DashboardOverview) -> str:
    """
    Render the complete dashboard HTML page from overview data.

    Args:
        overview: DashboardOverview from DashboardPresenter.

    Returns:
        Complete HTML document with embedded CSS.

    Example:
        >>> html = _render_dashboard_html(await presenter.get_overview())
        >>> '<!DOCTYPE html>' in html
        True
    """
    summary = overview.summary
    study_days = f"{summary.study_days}/{summary.days}" if summary else "0/0"
    quality = f"{summary.avg_quality:.1f}%" if summary else "0.0%"
    nav = "".join(f'<a href="/?period={key}">{label}</a>' for key, label in PERIOD_LINKS)
    trends = "".join(
        f'<div class="trend">{note.emoji} <strong>{html.escape(note.title)}</strong>：'
        f"{html.escape(note.content)}</div>"
        for note in overview.trends
    )
    videos = "".join(
        f"<li>{html.escape(v['title'])} ({v['watched_seconds'] // 60}分钟)</li>"
        for v in overview.top_videos
    )
    quality_html = _render_quality_panel(overview.quality) if overview.quality else ""
    period = html.escape(str(overview.period))

    return f"""<!DOCTYPE html>
<html lang="zh-CN">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{Config.APP_NAME} - 学习统计</title>
    <style>
        {_DASHBOARD_CSS}
    </style>
</head>
<body>
    <div class="container">
        <header>
            <h1>📚 {Config.APP_NAME}</h1>
            <nav>{nav}</nav>
        </header>

        <div class="grid">
            <div class="panel">
                <h2>🕐 总学习时长</h2>
                <div class="metric">{overview.total_display}</div>
                <div class="metric-label">学习天数 {study_days}</div>
            </div>
            <div class="panel">
                <h2>📅 日均学习</h2>
                <div class="metric">{overview.average_display}</div>
                <div class="metric-label">有效占比 {quality}</div>
            </div>
            <div class="panel">
                {quality_html}
            </div>
        </div>

        <div class="panel">
            <h2>📈 每日学习时长</h2>
            <div class="chart-container">
                <img src="/charts/daily.png?period={period}" alt="Daily study chart">
            </div>
        </div>

        <div class="grid">
            <div class="panel"><h2>📈 趋势分析</h2>{trends}</div>
            <div class="panel"><h2>🎬 学习最多的视频</h2><ol>{videos}</ol></div>
        </div>

        <div class="panel">
            <h2>⏰ 今日时间线</h2>
            {overview.timeline_html}
        </div>

        <div class="panel">
            <h2>📋 每日明细</h2>
            {_render_days_table(overview.days)}
        </div>

        <footer>
            {Config.APP_NAME} &bull; <a href="/export?scope=today&format=html">导出今日报告</a>
            &bull; <a href="/export?scope=raw&format=csv">导出原始数据</a>
        </footer>
    </div>
</body>
</html>"""


def _render_quality_panel(vm: QualityViewModel) -> str:
    """Render the score, rating and weak points of one day."""
    weak = "、".join(html.escape(name) for name in vm.weak_points)
    weak_html = f'<div class="metric-label">薄弱环节：{weak}</div>' if weak else ""
    return f"""<h2>🎯 今日专注质量</h2>
        <div class="metric" style="color: {vm.color};">{vm.total_score:.1f}</div>
        <div class="metric-label">{vm.icon} {html.escape(vm.label)} {vm.stars_display}</div>
        {weak_html}"""


def _render_days_table(days: list[DayViewModel]) -> str:
    """Render one table row per day, newest first."""
    if not days:
        return "<p>暂无学习记录</p>"
    rows = "".join(
        f"<tr><td>{d.date}</td><td>{d.weekday}</td><td>{d.duration_display}</td>"
        f"<td>{d.video_count}</td>"
        f'<td><span class="badge badge-{d.status_class}">{d.quality:.0f}%</span></td></tr>'
        for d in days
    )
    return (
        "<table><thead><tr><th>日期</th><th>星期</th><th>时长</th><th>视频数</th>"
        f"<th>有效占比</th></tr></thead><tbody>{rows}</tbody></table>"
    )
