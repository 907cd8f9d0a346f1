"""
Daily reflection for Study Focus Tracker.

PURPOSE: Turn one day's counters into rule-based reflection prompts, each
with the triggering data, questions to ask oneself and concrete
suggestions. Rendered as the last section of the day reports.
AI CONTEXT: Pure rules over a DailyRecord, no I/O. Thresholds live in
Config under DAILY REFLECTION.

RULES (evaluated in this order, several may fire):
1. Pauses:        > 10 warning, > 5 notice
2. Tab switches:  > 15 warning, > 5 notice
3. Fullscreen exits: > 8 warning
4. Quality (effective share): < 50% warning, < 70% notice
5. A single video watched over an hour: notice
6. Day length: under 30 minutes or over 4 hours: notice
7. More than 5 videos averaging under 5 minutes: fragmented (warning)
8. Weighted interruptions > 30/hour with quality < 50%: critical
9. Over 2 hours at under 40% quality: warning
10. Late-night start (23:00-06:00) with quality < 50%: notice
11. One video for over an hour: positive at >= 70%, warning below 50%
12. 30-60 minutes at >= 85% quality: positive
13. Nothing fired: a positive wrap-up

Days without data produce no reflection.
"""

from __future__ import annotations

import html
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from datetime import tzinfo
from typing import Any, Literal

from .config import Config
from .dateutils import format_duration, parse_iso, to_local
from .models import DailyRecord
from .statistics import daily_quality

ReflectionKind = Literal["critical", "warning", "notice", "positive"]

SECTION_TITLE = "🤔 学习反思"


@dataclass(frozen=True)
class ReflectionItem:
    """One reflection prompt: what happened, what to ask, what to try."""

    kind: ReflectionKind
    issue: str
    data: str
    questions: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    @property
    def emoji(self) -> str:
        return {"critical": "🚨", "warning": "⚠️", "notice": "📌"}.get(self.kind, "✅")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["questions"] = list(self.questions)
        data["suggestions"] = list(self.suggestions)
        return data


class ReflectionAnalyzer:
    """
    Rule-based reflection over a single day.

    Business context: Scores say how a day went; reflection asks why. The
    prompts are meant to be read after the report, so each one quotes the
    number that triggered it.

    Args:
        tz: Zone used to decide whether a video started late at night.
            None means the system local zone.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz

    def analyze_day(self, record: DailyRecord) -> list[ReflectionItem]:
        """
        Evaluate every rule against one day.

        Args:
            record: The day's record.

        Returns:
            Items in rule order. Empty when the day has no data; otherwise
            never empty, since a clean day gets a positive wrap-up.
        """
        if not record.has_data:
            return []
        quality = daily_quality(record)
        items = list(self._rules(record, quality))
        if not items:
            items.append(
                ReflectionItem(
                    "positive",
                    "学习状态优秀",
                    f"专注质量{quality:.1f}%，各项指标良好",
                    (
                        "今天的学习状态很好！有什么经验可以分享？",
                        "是否有特别的学习方法或技巧？",
                    ),
                    (
                        "保持当前的学习节奏和习惯",
                        "可以尝试更有挑战性的学习内容",
                        "记录今天的成功经验，形成最佳实践",
                    ),
                )
            )
        return items

    def _rules(self, record: DailyRecord, quality: float) -> Iterator[ReflectionItem]:
        yield from self._interruption_rules(record)
        yield from self._quality_rules(quality)
        yield from self._duration_rules(record)
        yield from self._pattern_rules(record, quality)

    # =========================================================================
    # INTERRUPTIONS
    # =========================================================================

    def _interruption_rules(self, record: DailyRecord) -> Iterator[ReflectionItem]:
        pause_warning, pause_notice = Config.REFLECTION_PAUSE_LIMITS
        pauses = record.pause_count
        if pauses > pause_warning:
            yield ReflectionItem(
                "warning",
                "频繁暂停",
                f"今天暂停了{pauses}次",
                (
                    "是否因为视频内容难度太大，需要反复暂停思考？",
                    "是否有外界干扰导致频繁暂停？可以考虑选择更安静的学习环境",
                    "是否可以先快速浏览一遍，再精读重点部分？",
                ),
                (
                    '尝试使用"番茄钟"保持25分钟专注',
                    "准备好笔记本，边看边记录疑问",
                    "调整播放速度（0.75x/1.5x）以适应理解节奏",
                ),
            )
        elif pauses > pause_notice:
            yield ReflectionItem(
                "notice",
                "暂停较多",
                f"今天暂停了{pauses}次",
                (
                    "暂停的主要原因是什么？做笔记？思考？还是其他？",
                    "这些暂停是否帮助你更好地理解内容？",
                ),
                ("保持当前节奏，适度暂停有助于深度思考",),
            )

        switch_warning, switch_notice = Config.REFLECTION_SWITCH_LIMITS
        switches = record.tab_switch_count
        if switches > switch_warning:
            yield ReflectionItem(
                "warning",
                "频繁切换标签",
                f"今天切换了{switches}次标签",
                (
                    "切换到其他标签在做什么？查资料？还是分心？",
                    "是否可以提前准备好需要的资料，减少学习中的切换？",
                    "是否有社交软件或娱乐网站的通知在干扰你？",
                ),
                (
                    '使用"专注模式"全屏学习，减少干扰',
                    "关闭无关标签页和通知",
                    "提前准备好学习资料，放在单独窗口",
                ),
            )
        elif switches > switch_notice:
            yield ReflectionItem(
                "notice",
                "标签切换",
                f"今天切换了{switches}次标签",
                (
                    "切换标签是为了查阅资料吗？",
                    "可以考虑使用分屏或双显示器减少切换",
                ),
            )

        exits = record.exit_fullscreen_count
        if exits > Config.REFLECTION_EXIT_LIMIT:
            yield ReflectionItem(
                "warning",
                "频繁退出全屏",
                f"今天退出全屏{exits}次",
                (
                    "为什么频繁退出全屏？是否有紧急事务打断？",
                    "可以设定固定的休息时间，而不是随时中断",
                ),
                (
                    "使用番茄钟：25分钟全屏学习 + 5分钟休息",
                    "在学习前处理完其他事务",
                    "告知他人你的学习时间，减少打扰",
                ),
            )

    # =========================================================================
    # QUALITY AND DURATION
    # =========================================================================

    def _quality_rules(self, quality: float) -> Iterator[ReflectionItem]:
        warning_below, notice_below = Config.REFLECTION_QUALITY_LIMITS
        if quality < warning_below:
            yield ReflectionItem(
                "warning",
                "专注质量较低",
                f"专注质量仅{quality:.1f}%",
                (
                    "今天学习时的状态如何？是否疲劳或注意力不集中？",
                    "学习环境是否有太多干扰？",
                    "是否选择了不适合当前时段的学习内容？",
                ),
                (
                    "调整学习时间到你的最佳状态时段（早上/下午/晚上）",
                    "确保学习环境安静、舒适",
                    "从简单内容开始，逐步进入学习状态",
                    "保证充足睡眠，提高专注力",
                ),
            )
        elif quality < notice_below:
            yield ReflectionItem(
                "notice",
                "专注质量有提升空间",
                f"专注质量{quality:.1f}%",
                (
                    "相比之前的学习，今天有什么不同？",
                    "哪些因素影响了你的专注度？",
                ),
                (
                    "减少学习中的暂停和中断",
                    "尝试深度工作法：长时间专注于单一任务",
                ),
            )

    def _duration_rules(self, record: DailyRecord) -> Iterator[ReflectionItem]:
        long_videos = [
            v for v in record.videos.values() if v.watched_seconds > Config.REFLECTION_LONG_VIDEO
        ]
        if long_videos:
            longest = max(v.watched_seconds for v in long_videos)
            yield ReflectionItem(
                "notice",
                "长时间观看单个视频",
                f"最长视频观看了{longest / 3600:.1f}小时",
                (
                    "长时间观看一个视频，是否感到疲劳？",
                    "是否可以分段学习，每学习1小时休息10分钟？",
                    "学习效果如何？后半段是否注意力下降？",
                ),
                (
                    "将长视频分段学习，每45-60分钟休息一次",
                    "做好笔记，标记难点，便于复习",
                    "适当调整播放速度，提高效率",
                ),
            )

        total = record.total_time
        if total < Config.REFLECTION_SHORT_DAY:
            yield ReflectionItem(
                "notice",
                "学习时长较短",
                f"今天只学习了{format_duration(total)}",
                (
                    "今天是否有特殊情况导致学习时间短？",
                    "可以尝试每天固定学习时段，养成习惯",
                ),
                (
                    "设定每天最少学习时长目标（如30分钟）",
                    "利用碎片时间积累学习时长",
                ),
            )
        elif total > Config.REFLECTION_LONG_DAY:
            yield ReflectionItem(
                "notice",
                "学习时长很长",
                f"今天学习了{format_duration(total)}",
                (
                    "长时间学习，是否感到疲劳？",
                    "是否有充分的休息和放松？",
                    "学习效率如何？是否后期注意力下降？",
                ),
                (
                    "注意劳逸结合，避免过度疲劳",
                    "保证充足的休息和睡眠",
                    "可以尝试番茄工作法：25分钟学习+5分钟休息",
                ),
            )

    # =========================================================================
    # COMBINED PATTERNS
    # =========================================================================

    def interruption_density(self, record: DailyRecord) -> float:
        """Weighted interruptions per hour of study (0 for an idle day)."""
        if record.total_time <= 0:
            return 0.0
        weights = Config.INTERRUPTION_WEIGHTS
        weighted = sum(getattr(record, field) * weight for field, weight in weights.items())
        return weighted / (record.total_time / 3600)

    def studied_late(self, record: DailyRecord) -> bool:
        """True when any video started in the late-night window."""
        late_from, late_until = Config.REFLECTION_LATE_HOURS
        for segment in record.videos.values():
            if not segment.start_timestamp:
                continue
            hour = to_local(parse_iso(segment.start_timestamp), self.tz).hour
            if hour >= late_from or hour < late_until:
                return True
        return False

    def _pattern_rules(self, record: DailyRecord, quality: float) -> Iterator[ReflectionItem]:
        total = record.total_time
        videos = list(record.videos.values())
        low_quality = quality < Config.REFLECTION_QUALITY_LIMITS[0]

        if len(videos) > Config.REFLECTION_FRAGMENT_VIDEOS:
            average = sum(v.watched_seconds for v in videos) / len(videos)
            if average < Config.REFLECTION_FRAGMENT_AVERAGE:
                yield ReflectionItem(
                    "warning",
                    "碎片化学习严重",
                    f"观看了{len(videos)}个视频，平均每个仅{int(average // 60)}分钟",
                    (
                        "是否在寻找合适的学习内容而频繁切换视频？",
                        "是否对学习主题缺乏明确规划？",
                        "碎片化学习是否影响了知识的系统性掌握？",
                    ),
                    (
                        "先制定学习计划：明确今天要学什么",
                        "选定视频后完整观看，不轻易更换",
                        "优先选择系统性教程，而非零散知识点",
                        "使用收藏功能标记优质视频，避免重复筛选",
                    ),
                )

        density = self.interruption_density(record)
        if density > Config.REFLECTION_DISTRACTION_DENSITY and low_quality:
            yield ReflectionItem(
                "critical",
                "严重分心状态",
                f"干扰密度{density:.1f}次/小时，专注质量仅{quality:.1f}%",
                (
                    "今天是否有特殊情况严重影响了学习？",
                    "学习环境是否存在持续的干扰源（如社交软件、游戏、视频通知）？",
                    "是否在学习和其他任务之间反复切换？",
                    "是否因为拖延、焦虑等情绪问题无法专注？",
                ),
                (
                    "🚨 紧急建议：暂停学习，先处理干扰源",
                    "关闭所有社交软件和娱乐网站",
                    '启用系统"勿扰模式"，屏蔽所有通知',
                    "更换学习环境（如图书馆、自习室）",
                    "如果情绪不佳，先休息调整再学习",
                ),
            )

        if total > 2 * 3600 and quality < 40:
            yield ReflectionItem(
                "warning",
                "长时间低效学习（假性学习）",
                f"学习了{format_duration(total)}，但有效时间占比仅{quality:.1f}%",
                (
                    '是否只是"挂着"视频，实际在做其他事情？',
                    "是否因为疲劳导致后期注意力严重下降？",
                    "是否选择了不适合自己水平的学习内容？",
                    "学习过程中是否频繁走神或发呆？",
                ),
                (
                    "采用主动学习法：边学边做笔记、画思维导图",
                    "定期自测：每15-20分钟暂停回顾学到了什么",
                    "使用番茄钟：25分钟专注学习+5分钟休息",
                    "如果内容太难，先学习基础知识再挑战",
                    "保证充足睡眠，避免疲劳学习",
                ),
            )

        if low_quality and self.studied_late(record):
            yield ReflectionItem(
                "notice",
                "深夜学习效率低",
                f"检测到深夜学习（23:00-6:00），专注质量{quality:.1f}%",
                (
                    "是否感到疲劳和困倦影响了学习效果？",
                    "白天的时间是否可以更好地利用？",
                    "是否因为拖延导致深夜才开始学习？",
                ),
                (
                    "调整作息，在精力充沛时段学习（上午/下午）",
                    "如果必须深夜学习，先休息20分钟再开始",
                    "设定每天固定学习时间，避免拖延到深夜",
                    "保证充足睡眠（7-8小时），提高白天效率",
                ),
            )

        if len(videos) == 1 and total > 3600:
            hours = f"{total / 3600:.1f}"
            if quality >= Config.REFLECTION_QUALITY_LIMITS[1]:
                yield ReflectionItem(
                    "positive",
                    "深度学习状态",
                    f"专注学习单个视频{hours}小时，专注质量{quality:.1f}%",
                    (
                        "今天的深度学习效果如何？",
                        "是否完整掌握了视频内容？",
                        "有什么经验可以在以后复制？",
                    ),
                    (
                        "保持这种深度学习的习惯",
                        "做好学习笔记，便于后期复习",
                        "可以尝试输出（写总结、做练习）巩固知识",
                    ),
                )
            elif low_quality:
                yield ReflectionItem(
                    "warning",
                    "长时间学习但效果不佳",
                    f"观看单个视频{hours}小时，但专注质量仅{quality:.1f}%",
                    (
                        "视频内容是否过于冗长或枯燥？",
                        "是否中途频繁走神或做其他事情？",
                        "长时间学习后是否感到疲劳？",
                    ),
                    (
                        "将长视频分段学习，每45-60分钟休息一次",
                        "尝试1.25x或1.5x播放速度，提高信息密度",
                        "考虑更换更精简的学习资源",
                    ),
                )

        if Config.REFLECTION_SHORT_DAY <= total <= 3600 and quality >= 85:
            yield ReflectionItem(
                "positive",
                "高效学习典范",
                f"在{format_duration(total)}内保持了{quality:.1f}%的专注质量",
                (
                    "今天的学习效率很高！是什么因素促成的？",
                    "学习时间、环境、内容选择有什么特别之处？",
                ),
                (
                    "记录今天的学习条件和状态，形成最佳实践",
                    "保持这种高效学习习惯",
                    "可以逐步延长高质量学习时长",
                ),
            )

    # =========================================================================
    # RENDERING
    # =========================================================================

    def to_markdown(self, items: list[ReflectionItem]) -> str:
        """Render items as a Markdown section ('' when there are none)."""
        if not items:
            return ""
        md = f"## {SECTION_TITLE}\n\n"
        for item in items:
            md += f"### {item.emoji} {item.issue}\n\n"
            md += f"**数据**：{item.data}\n\n"
            if item.questions:
                md += "**反思问题**：\n" + "".join(f"- {q}\n" for q in item.questions) + "\n"
            if item.suggestions:
                md += "**改进建议**：\n" + "".join(f"- {s}\n" for s in item.suggestions) + "\n"
        return md

    def to_html(self, items: list[ReflectionItem]) -> str:
        """Render items as an HTML section ('' when there are none)."""
        if not items:
            return ""
        parts = [f'<section class="reflection-section"><h2>{SECTION_TITLE}</h2>']
        for item in items:
            parts.append(
                f'<div class="reflection-item {item.kind}"><h3>{html.escape(item.issue)}</h3>'
                f'<div class="reflection-data">{html.escape(item.data)}</div>'
            )
            if item.questions:
                parts.append(_html_list("reflection-questions", "💭 反思问题：", item.questions))
            if item.suggestions:
                parts.append(
                    _html_list("reflection-suggestions", "💡 改进建议：", item.suggestions)
                )
            parts.append("</div>")
        parts.append("</section>")
        return "".join(parts)


def _html_list(css_class: str, heading: str, lines: tuple[str, ...]) -> str:
    entries = "".join(f"<li>{html.escape(line)}</li>" for line in lines)
    return f'<div class="{css_class}"><strong>{heading}</strong><ul>{entries}</ul></div>'
