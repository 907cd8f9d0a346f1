"""
Report generation for Study Focus Tracker.

PURPOSE: Render a day's or a period's study data into Markdown, HTML, CSV
or JSON text.
AI CONTEXT: Every public method is deterministic and side-effect free. File
names, MIME types and delivery belong to export.ExportOrchestrator.

DAY REPORT SECTIONS (fixed order):
1. 📊 学习概况       - summary metrics
2. 🎯 专注质量评分   - composite score, rating, dimensions, weak points
3. ⏰ 学习时间线     - timeline chart plus pattern insights
4. 🍅 番茄钟         - pomodoro totals and entries
5. 💡 改进建议       - suggestions
6. 🤔 学习反思       - rule-based reflection prompts (days with data only)

PERIOD REPORT: totals, one table row per date (zero-filled), trend notes.

RAW EXPORTS:
- CSV: header '日期,学习时长(分钟),学习视频数', minutes rounded half-up
- JSON: array of DailyRecord dicts with resolved titles; parse_json_export()
  reads it back

ERRORS:
Unexpected exceptions inside a renderer are wrapped in RenderFailure and
propagated. They indicate malformed input or a defect, never bad luck.
"""

from __future__ import annotations

import csv
import functools
import html
import io
import json
import logging
from collections.abc import Callable
from datetime import tzinfo
from typing import Any, TypeVar

from .config import Config
from .dateutils import format_duration, format_hhmm, format_minutes, round_half_up, weekday_name
from .errors import RenderFailure, StudyTrackerError, ValidationError
from .models import DailyRecord, PomodoroEntry, PomodoroSummary
from .quality import QualityAnalyzer, QualityScoreResult
from .reflection import ReflectionAnalyzer
from .statistics import PeriodSummary, StatisticsEngine, TrendNote, daily_quality
from .timeline import TimelineReconstructor

logger = logging.getLogger(__name__)

CSV_HEADER = ("日期", "学习时长(分钟)", "学习视频数")
FOOTER = f"*报告由 {Config.APP_NAME} 自动生成*"

F = TypeVar("F", bound=Callable[..., Any])


def _renderer(name: str) -> Callable[[F], F]:
    """Wrap unexpected renderer exceptions in RenderFailure."""

    def decorate(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except StudyTrackerError:
                raise
            except Exception as e:
                logger.error(f"Renderer {name} failed: {e}")
                raise RenderFailure(name, e) from e

        return wrapper  # type: ignore[return-value]

    return decorate


def _esc(value: Any) -> str:
    return html.escape(str(value))


def _status(record: DailyRecord) -> str:
    """Traffic-light status for one day in a period table."""
    if not record.has_data:
        return "⚪ 未学习"
    quality = int(daily_quality(record))
    if quality >= 80:
        return "🟢 优秀"
    if quality >= 60:
        return "🟡 良好"
    return "🔴 需改进"


DAY_REPORT_CSS = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
    background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
    padding: 40px 20px;
}
.container {
    max-width: 1000px; margin: 0 auto; background: white;
    border-radius: 16px; box-shadow: 0 20px 60px rgba(0, 0, 0, 0.3); overflow: hidden;
}
header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white;
    padding: 40px; text-align: center; }
header h1 { font-size: 32px; margin-bottom: 10px; }
main { padding: 40px; }
section { margin-bottom: 40px; }
section h2 { font-size: 24px; margin-bottom: 20px; padding-bottom: 10px;
    border-bottom: 2px solid #667eea; }
.stats-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 20px; }
.stat-card { background: #f8f9fa; padding: 20px; border-radius: 12px; text-align: center; }
.stat-value { font-size: 26px; font-weight: 700; color: #667eea; margin-bottom: 8px; }
.stat-label { font-size: 14px; color: #6b7280; }
.score-display { padding: 24px; border-radius: 12px; text-align: center; margin-bottom: 20px; }
.score-value { font-size: 48px; font-weight: bold; }
.dimensions { width: 100%; border-collapse: collapse; }
.dimensions th, .dimensions td { padding: 10px; border-bottom: 1px solid #e5e7eb; text-align: left; }
.weak-point { background: #fef3c7; padding: 12px; border-radius: 8px; margin: 8px 0; }
.suggestion { border: 2px solid #e5e7eb; padding: 16px; border-radius: 10px; margin: 10px 0; }
.timeline { position: relative; padding-left: 80px; }
.timeline::before { content: ''; position: absolute; left: 60px; top: 0; bottom: 0; width: 4px;
    background: linear-gradient(to bottom, #667eea, #764ba2); }
.timeline-item { position: relative; margin-bottom: 30px; }
.timeline-time { position: absolute; left: -80px; top: 0; font-weight: 600; color: #667eea; }
.timeline-dot { position: absolute; left: -23px; top: 5px; width: 16px; height: 16px;
    border-radius: 50%; background: #667eea; border: 3px solid white; }
.timeline-dot.break { background: #f59e0b; }
.timeline-content { background: #f8f9fa; padding: 16px; border-radius: 8px; }
.timeline-badge { display: inline-block; padding: 4px 12px; border-radius: 4px; font-size: 12px; }
.timeline-badge.video { background: #dbeafe; color: #1e40af; }
.timeline-badge.break { background: #fef3c7; color: #92400e; }
.timeline-duration { color: #6b7280; font-size: 14px; }
.timeline-insights { background: #f0fdf4; padding: 20px; border-radius: 12px; margin-top: 20px;
    color: #166534; }
.timeline-insights ul { list-style: none; }
.timeline-empty { color: #6b7280; text-align: center; padding: 20px; }
.period-table { width: 100%; border-collapse: collapse; }
.period-table th, .period-table td { padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: center; }
.trend { padding: 16px; border-radius: 10px; margin: 10px 0; border-left: 4px solid #3b82f6;
    background: #dbeafe; }
.trend.warning { background: #fef3c7; border-left-color: #f59e0b; }
.trend.positive { background: #d1fae5; border-left-color: #10b981; }
.reflection-item { background: #f8f9fa; padding: 20px; border-radius: 12px; margin-bottom: 20px;
    border-left: 4px solid #667eea; }
.reflection-item.critical { background: #fee2e2; border-left-color: #dc2626; }
.reflection-item.warning { background: #fef3c7; border-left-color: #f59e0b; }
.reflection-item.notice { background: #dbeafe; border-left-color: #3b82f6; }
.reflection-item.positive { background: #d1fae5; border-left-color: #10b981; }
.reflection-item h3 { margin-bottom: 12px; color: #1f2937; }
.reflection-data { font-weight: 600; margin-bottom: 12px; color: #4b5563; }
.reflection-questions, .reflection-suggestions { margin-top: 12px; }
.reflection-questions ul, .reflection-suggestions ul { margin: 8px 0; padding-left: 20px; }
.reflection-questions li, .reflection-suggestions li { margin: 6px 0; color: #374151; }
footer { text-align: center; color: #9ca3af; padding: 20px; }
"""


def _document(title: str, subtitle: str, body: str) -> str:
    """Wrap report sections in a standalone HTML page."""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="zh-CN">\n<head>\n<meta charset="UTF-8">\n'
        f"<title>{_esc(title)}</title>\n<style>{DAY_REPORT_CSS}</style>\n</head>\n<body>\n"
        '<div class="container">\n'
        f"<header><h1>{_esc(title)}</h1><p>{_esc(subtitle)}</p></header>\n"
        f"<main>\n{body}\n</main>\n"
        f"<footer>报告由 {_esc(Config.APP_NAME)} 自动生成</footer>\n"
        "</div>\n</body>\n</html>\n"
    )


def parse_json_export(text: str) -> list[DailyRecord]:
    """
    Decode a JSON export back into daily records.

    Accepts the array written by ReportGenerator.export_json() and the
    browser extension's wrapped form ({"data": [...], "videoIndex": {...}}).

    Args:
        text: JSON document.

    Returns:
        DailyRecords in document order.

    Raises:
        ValidationError: If the text is not a JSON export.

    Example:
        >>> parse_json_export(generator.export_json(records)) == records
        True
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"无效的JSON导出文件: {e}") from e
    if isinstance(data, dict):
        data = data.get("data")
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValidationError("JSON导出文件应为按日期排列的记录数组")
    try:
        return [DailyRecord.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"JSON导出文件中的记录无效: {e}") from e


class ReportGenerator:
    """
    Renders day reports, period reports and raw exports.

    Business context: The same day can be shared as a Markdown note, a
    styled HTML page (also the input for image export) or raw data for a
    spreadsheet. Every format is built from the same scored and
    reconstructed data so they never disagree.

    Collaborators are injected so a report can be rendered in a fixed
    time zone (tests pass UTC).
    """

    def __init__(
        self,
        quality: QualityAnalyzer | None = None,
        timeline: TimelineReconstructor | None = None,
        statistics: StatisticsEngine | None = None,
        reflection: ReflectionAnalyzer | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.quality = quality or QualityAnalyzer()
        self.timeline = timeline or TimelineReconstructor(tz=tz)
        self.statistics = statistics or StatisticsEngine()
        self.tz = self.timeline.tz
        self.reflection = reflection or ReflectionAnalyzer(tz=self.tz)

    # =========================================================================
    # DAY REPORT - MARKDOWN
    # =========================================================================

    @_renderer("day_markdown")
    def day_report_markdown(
        self,
        record: DailyRecord,
        video_index: dict[str, Any] | None = None,
        pomodoro: PomodoroSummary | None = None,
        score: QualityScoreResult | None = None,
    ) -> str:
        """
        Render one day's report as Markdown.

        Args:
            record: The day's record.
            video_index: Title lookup for segments without a title.
            pomodoro: The day's pomodoro totals, if any.
            score: Precomputed score; computed from record when omitted.

        Returns:
            Markdown document ending with the generator footer.
        """
        score = score or self.quality.calculate_for_record(record)
        events = self.timeline.reconstruct(record, video_index)
        insights = self.timeline.analyze_pattern(events, record)

        md = f"# 📅 学习报告 - {record.date} (周{weekday_name(record.date)})\n\n"
        md += self._summary_markdown(record)
        md += self._quality_markdown(score)
        md += self.timeline.to_markdown(events, insights)
        md += self._pomodoro_markdown(pomodoro)
        md += self._suggestions_markdown(score)
        md += self.reflection.to_markdown(self.reflection.analyze_day(record))
        md += f"---\n\n{FOOTER}\n"
        return md

    def _summary_markdown(self, record: DailyRecord) -> str:
        md = "## 📊 学习概况\n\n"
        md += f"- 🕐 学习时长：{format_duration(record.total_time)}\n"
        md += f"- ✅ 有效时长：{format_duration(record.effective_time)}\n"
        md += f"- 🎯 有效占比：{daily_quality(record):.1f}%\n"
        md += f"- 📚 学习视频：{record.video_count}个\n"
        md += f"- ⏱️ 最长连续：{format_duration(record.longest_session)}\n"
        md += f"- ⏸️ 暂停次数：{record.pause_count}次\n"
        md += f"- 🚪 退出全屏：{record.exit_fullscreen_count}次\n"
        md += f"- 🔄 标签切换：{record.tab_switch_count}次\n\n"
        return md

    def _quality_markdown(self, score: QualityScoreResult) -> str:
        rating = score.rating
        md = "## 🎯 专注质量评分\n\n"
        md += f"**{score.total_score:.1f}分** {rating.icon} {rating.label}\n\n"
        md += f"> {rating.message}\n\n"
        if score.is_empty:
            return md
        md += "| 维度 | 得分 | 等级 | 数值 | 说明 | 权重 |\n"
        md += "|------|------|------|------|------|------|\n"
        for dim in score.dimensions.values():
            md += (
                f"| {dim.name} | {dim.score:.1f} | {dim.level} | {dim.value}{dim.unit} "
                f"| {dim.description} | {dim.weight * 100:.0f}% |\n"
            )
        md += "\n"
        weak = self.quality.identify_weak_points(score)
        if weak:
            md += "### ⚠️ 薄弱环节\n\n"
            for position, point in enumerate(weak, start=1):
                md += (
                    f"{position}. {point.name}：{point.score:.1f}分（{point.level}）"
                    f" - {point.description}\n"
                )
            md += "\n"
        return md

    def _pomodoro_text(self, entry: PomodoroEntry) -> str:
        icon, label = ("🍅", "工作") if entry.type == "work" else ("☕", "休息")
        start = format_hhmm(entry.start_time, self.tz) if entry.start_time else "--:--"
        end = format_hhmm(entry.end_time, self.tz) if entry.end_time else "--:--"
        mode = {"countdown": "倒计时", "countup": "正计时"}.get(entry.mode, "")
        line = f"{icon} {label} {start} - {end} ({format_minutes(entry.elapsed)}"
        if mode:
            line += f"，{mode}"
        line += ")"
        if entry.type == "work":
            line += f" = {entry.units:.2f}个番茄钟"
        return line

    def _pomodoro_markdown(self, pomodoro: PomodoroSummary | None) -> str:
        md = "## 🍅 番茄钟\n\n"
        if pomodoro is None or pomodoro.completed == 0:
            return md + "今日未使用番茄钟\n\n"
        md += (
            f"- ✅ 完成番茄钟：{pomodoro.total_pomodoro_count:.1f}个"
            f"（{pomodoro.completed}次）\n"
        )
        md += f"- ⏱️ 工作时长：{format_duration(pomodoro.total_work_time)}\n"
        md += f"- ☕ 休息时长：{format_duration(pomodoro.total_break_time)}\n"
        if pomodoro.countdown_count or pomodoro.countup_count:
            md += (
                f"- 📊 模式统计：倒计时{pomodoro.countdown_count}次，"
                f"正计时{pomodoro.countup_count}次\n"
            )
        md += f"- {self.statistics.pomodoro_verdict(pomodoro)}\n\n"
        if pomodoro.history:
            md += "### 番茄钟时间线\n\n"
            for position, entry in enumerate(pomodoro.history, start=1):
                md += f"{position}. {self._pomodoro_text(entry)}\n"
            md += "\n"
        return md

    def _suggestions_markdown(self, score: QualityScoreResult) -> str:
        md = "## 💡 改进建议\n\n"
        if score.is_empty:
            return md + "开始学习后即可获得个性化建议\n\n"
        tips = self.quality.generate_suggestions(score)
        if not tips:
            return md + "各项指标良好，继续保持！\n\n"
        for tip in tips:
            md += f"### {tip.icon} {tip.title}\n\n{tip.content}\n\n"
        return md

    # =========================================================================
    # DAY REPORT - HTML
    # =========================================================================

    @_renderer("day_html")
    def day_report_html(
        self,
        record: DailyRecord,
        video_index: dict[str, Any] | None = None,
        pomodoro: PomodoroSummary | None = None,
        score: QualityScoreResult | None = None,
    ) -> str:
        """
        Render one day's report as a standalone HTML page.

        Same sections and order as day_report_markdown(), with embedded CSS
        so the page can be rasterized without network access.
        """
        score = score or self.quality.calculate_for_record(record)
        events = self.timeline.reconstruct(record, video_index)
        insights = self.timeline.analyze_pattern(events, record)

        cards = [
            (format_duration(record.total_time), "学习时长"),
            (format_duration(record.effective_time), "有效时长"),
            (f"{daily_quality(record):.1f}%", "有效占比"),
            (f"{record.video_count}个", "学习视频"),
            (format_duration(record.longest_session), "最长连续"),
            (
                f"{record.pause_count}/{record.exit_fullscreen_count}/{record.tab_switch_count}",
                "暂停/退全屏/切标签",
            ),
        ]
        summary = "".join(
            f'<div class="stat-card"><div class="stat-value">{_esc(value)}</div>'
            f'<div class="stat-label">{label}</div></div>'
            for value, label in cards
        )
        body = [
            f'<section class="summary"><h2>📊 学习概况</h2>'
            f'<div class="stats-grid">{summary}</div></section>',
            self._quality_html(score),
            '<section class="timeline-section"><h2>⏰ 学习时间线</h2>'
            f"{self.timeline.to_html(events, insights)}</section>",
            self._pomodoro_html(pomodoro),
            self._suggestions_html(score),
            self.reflection.to_html(self.reflection.analyze_day(record)),
        ]
        title = f"学习报告 - {record.date}"
        return _document(title, f"周{weekday_name(record.date)}", "\n".join(body))

    def _quality_html(self, score: QualityScoreResult) -> str:
        rating = score.rating
        parts = [
            '<section class="quality"><h2>🎯 专注质量评分</h2>',
            f'<div class="score-display" style="border-left: 4px solid {rating.color};">'
            f'<div class="score-value" style="color: {rating.color};">{score.total_score:.1f}分</div>'
            f'<div class="score-rating">{rating.icon} {_esc(rating.label)}</div>'
            f'<div class="score-message">{_esc(rating.message)}</div></div>',
        ]
        if not score.is_empty:
            rows = "".join(
                f"<tr><td>{_esc(d.name)}</td><td>{d.score:.1f}</td><td>{_esc(d.level)}</td>"
                f"<td>{d.value}{_esc(d.unit)}</td><td>{_esc(d.description)}</td>"
                f"<td>{d.weight * 100:.0f}%</td></tr>"
                for d in score.dimensions.values()
            )
            parts.append(
                '<table class="dimensions"><thead><tr><th>维度</th><th>得分</th><th>等级</th>'
                f"<th>数值</th><th>说明</th><th>权重</th></tr></thead><tbody>{rows}</tbody></table>"
            )
            for position, point in enumerate(self.quality.identify_weak_points(score), start=1):
                parts.append(
                    f'<div class="weak-point"><strong>{position}. {_esc(point.name)}：'
                    f"{point.score:.1f}分（{_esc(point.level)}）</strong> "
                    f"{_esc(point.description)}</div>"
                )
        parts.append("</section>")
        return "".join(parts)

    def _pomodoro_html(self, pomodoro: PomodoroSummary | None) -> str:
        if pomodoro is None or pomodoro.completed == 0:
            return '<section class="pomodoro"><h2>🍅 番茄钟</h2><p>今日未使用番茄钟</p></section>'
        items = [
            f"完成番茄钟：{pomodoro.total_pomodoro_count:.1f}个（{pomodoro.completed}次）",
            f"工作时长：{format_duration(pomodoro.total_work_time)}",
            f"休息时长：{format_duration(pomodoro.total_break_time)}",
            f"模式统计：倒计时{pomodoro.countdown_count}次，正计时{pomodoro.countup_count}次",
            self.statistics.pomodoro_verdict(pomodoro),
        ]
        entries = "".join(
            f"<li>{_esc(self._pomodoro_text(entry))}</li>" for entry in pomodoro.history
        )
        return (
            '<section class="pomodoro"><h2>🍅 番茄钟</h2><ul>'
            + "".join(f"<li>{_esc(item)}</li>" for item in items)
            + f"</ul><ol>{entries}</ol></section>"
        )

    def _suggestions_html(self, score: QualityScoreResult) -> str:
        tips = self.quality.generate_suggestions(score)
        if score.is_empty:
            inner = "<p>开始学习后即可获得个性化建议</p>"
        elif not tips:
            inner = "<p>各项指标良好，继续保持！</p>"
        else:
            inner = "".join(
                f'<div class="suggestion"><h3>{tip.icon} {_esc(tip.title)}</h3>'
                f"<p>{_esc(tip.content)}</p></div>"
                for tip in tips
            )
        return f'<section class="suggestions"><h2>💡 改进建议</h2>{inner}</section>'

    # =========================================================================
    # PERIOD REPORT
    # =========================================================================

    def _summary_lines(self, summary: PeriodSummary) -> list[str]:
        lines = [
            f"📅 学习天数：{summary.study_days}/{summary.days}天 ({summary.study_ratio * 100:.0f}%)",
            f"🕐 累计时长：{format_duration(summary.total_time)}",
            f"✅ 有效时长：{format_duration(summary.effective_time)}",
            f"🎯 平均质量：{summary.avg_quality:.1f}%",
            f"📚 学习视频：{summary.unique_videos}个",
            f"⏱️ 最长连续：{format_duration(summary.longest_session)}",
        ]
        if summary.study_days:
            lines.append(f"📊 日均时长：{format_duration(summary.daily_average)}")
        return lines

    @staticmethod
    def _row_cells(record: DailyRecord) -> list[str]:
        studied = record.has_data
        return [
            record.date,
            f"周{weekday_name(record.date)}",
            format_minutes(record.total_time) if studied else "-",
            format_minutes(record.effective_time) if studied else "-",
            f"{int(daily_quality(record))}%" if studied else "-",
            str(record.video_count),
            _status(record),
        ]

    @_renderer("period_markdown")
    def period_report_markdown(self, records: list[DailyRecord], period_name: str) -> str:
        """
        Render a period report as Markdown.

        Args:
            records: One record per date, ascending and zero-filled.
            period_name: Display name such as '最近7天'.

        Returns:
            Markdown with totals, a per-day table and trend notes.
        """
        summary = self.statistics.summarize_period(records)
        notes = self.statistics.analyze_period_trend(records)

        md = f"# 📊 {period_name}学习报告\n\n"
        md += "## 📈 总体概况\n\n"
        md += "".join(f"- {line}\n" for line in self._summary_lines(summary))
        md += "\n## 📊 每日学习情况\n\n"
        md += "| 日期 | 星期 | 时长 | 有效时长 | 质量 | 视频数 | 状态 |\n"
        md += "|------|------|------|----------|------|--------|------|\n"
        for record in records:
            md += "| " + " | ".join(self._row_cells(record)) + " |\n"
        md += "\n## 📈 趋势分析\n\n"
        for note in notes:
            md += self._trend_markdown(note)
        md += f"---\n\n{FOOTER}\n"
        return md

    @staticmethod
    def _trend_markdown(note: TrendNote) -> str:
        md = f"### {note.emoji} {note.title}\n\n{note.content}\n\n"
        if note.suggestion:
            md += f"**建议**：{note.suggestion}\n\n"
        return md

    @_renderer("period_html")
    def period_report_html(self, records: list[DailyRecord], period_name: str) -> str:
        """Render a period report as a standalone HTML page."""
        summary = self.statistics.summarize_period(records)
        notes = self.statistics.analyze_period_trend(records)

        overview = "".join(f"<li>{_esc(line)}</li>" for line in self._summary_lines(summary))
        headers = ("日期", "星期", "时长", "有效时长", "质量", "视频数", "状态")
        rows = "".join(
            "<tr>" + "".join(f"<td>{_esc(cell)}</td>" for cell in self._row_cells(r)) + "</tr>"
            for r in records
        )
        trends = "".join(
            f'<div class="trend {note.kind}"><h3>{note.emoji} {_esc(note.title)}</h3>'
            f"<p>{_esc(note.content)}</p>"
            + (f"<p><strong>建议</strong>：{_esc(note.suggestion)}</p>" if note.suggestion else "")
            + "</div>"
            for note in notes
        )
        body = (
            f'<section class="summary"><h2>📈 总体概况</h2><ul>{overview}</ul></section>\n'
            '<section class="daily"><h2>📊 每日学习情况</h2><table class="period-table"><thead><tr>'
            + "".join(f"<th>{h}</th>" for h in headers)
            + f"</tr></thead><tbody>{rows}</tbody></table></section>\n"
            f'<section class="trends"><h2>📈 趋势分析</h2>{trends}</section>'
        )
        span = f"{records[0].date} ~ {records[-1].date}" if records else ""
        return _document(f"{period_name}学习报告", span, body)

    # =========================================================================
    # RAW EXPORTS
    # =========================================================================

    @_renderer("csv")
    def export_csv(self, records: list[DailyRecord]) -> str:
        """
        Render one CSV row per date.

        Returns:
            CSV text with header '日期,学习时长(分钟),学习视频数' and
            '\\n' line endings. No byte order mark; the sink adds it.

        Example:
            >>> generator.export_csv([DailyRecord("2024-03-01", total_time=90)])
            '日期,学习时长(分钟),学习视频数\\n2024-03-01,2,0\\n'
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for record in records:
            minutes = int(round_half_up(record.total_time / 60))
            writer.writerow((record.date, minutes, record.video_count))
        return buffer.getvalue()

    @_renderer("json")
    def export_json(
        self,
        records: list[DailyRecord],
        video_index: dict[str, Any] | None = None,
        indent: int | None = 2,
    ) -> str:
        """
        Render records as a JSON array with resolved video titles.

        Args:
            records: Records to export.
            video_index: Title lookup; resolved titles are written into
                each segment so the export is self-contained.
            indent: Pretty-print indent, or None for compact output.

        Returns:
            JSON text readable by parse_json_export().
        """
        payload = [record.to_dict(video_index or {}) for record in records]
        return json.dumps(payload, ensure_ascii=False, indent=indent)
