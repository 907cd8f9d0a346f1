"""
Focus quality scoring for Study Focus Tracker.

PURPOSE: Turn one day's aggregated metrics into a 0-100 composite focus
score, plus weak points and remediation suggestions.
AI CONTEXT: Pure and deterministic. No I/O, no mutation of inputs.

DIMENSIONS (weights from Config.QUALITY_WEIGHTS):
- time_efficiency (0.35): effective time as a share of total time
- focus_stability (0.30): weighted interruptions per hour, with a decay
  factor that grows with density
- continuous_focus (0.25): longest unbroken session as a share of total time
- completion (0.10): absolute study time

The composite is summed in Decimal and rounded half-up to one decimal, so
dimension scores of 90, 97.5, 100 and 100 land on 95.8 rather than the
95.7 a binary float sum would produce.

USAGE:
    analyzer = QualityAnalyzer()
    result = analyzer.calculate(QualityMetrics.from_record(record))
    weak = analyzer.identify_weak_points(result)
    tips = analyzer.generate_suggestions(result)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any

from .config import Config
from .dateutils import format_precise, round_half_up
from .models import DailyRecord

logger = logging.getLogger(__name__)

DIMENSION_NAMES: dict[str, str] = {
    "time_efficiency": "时间有效率",
    "focus_stability": "专注稳定性",
    "continuous_focus": "持续专注力",
    "completion": "学习完成度",
}

# (min score, tier, label, stars, color, icon, message)
RATING_TIERS: tuple[tuple[float, str, str, int, str, str, str], ...] = (
    (90, "exceptional", "卓越", 5, "#3b82f6", "⭐⭐⭐⭐⭐", "专注力极佳，保持下去！"),
    (80, "excellent", "优秀", 4, "#0ea5e9", "⭐⭐⭐⭐", "学习状态很好，继续努力！"),
    (70, "good", "良好", 3, "#10b981", "⭐⭐⭐", "不错的表现，还有提升空间。"),
    (60, "passing", "及格", 2, "#f59e0b", "⭐⭐", "基本达标，建议改进专注度。"),
    (50, "fair", "一般", 1, "#f97316", "⭐", "专注度不足，需要加强训练。"),
)


@dataclass(frozen=True)
class QualityMetrics:
    """
    Input bundle for scoring: one day's aggregated counters, in seconds.
    """

    total_time: int
    effective_time: int = 0
    pause_count: int = 0
    exit_fullscreen_count: int = 0
    tab_switch_count: int = 0
    longest_session: int = 0

    @classmethod
    def from_record(cls, record: DailyRecord) -> QualityMetrics:
        """Build the metrics bundle from a DailyRecord."""
        return cls(
            total_time=record.total_time,
            effective_time=record.effective_time,
            pause_count=record.pause_count,
            exit_fullscreen_count=record.exit_fullscreen_count,
            tab_switch_count=record.tab_switch_count,
            longest_session=record.longest_session,
        )


@dataclass(frozen=True)
class QualityDimension:
    """One scored axis of the composite."""

    key: str
    name: str
    score: float
    level: str
    value: float
    unit: str
    description: str
    weight: Decimal
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["weight"] = float(self.weight)
        return data


@dataclass(frozen=True)
class QualityRating:
    """Tier derived from the composite score."""

    tier: str
    label: str
    stars: int
    color: str
    icon: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


NO_DATA_RATING = QualityRating(
    tier="no_data",
    label="暂无数据",
    stars=0,
    color="#9ca3af",
    icon="📊",
    message="开始学习后即可查看质量评分",
)


@dataclass(frozen=True)
class QualityScoreResult:
    """
    Composite focus score for one day. Recomputed on every request.

    dimensions is empty for the no-data result and otherwise holds exactly
    the four keys of Config.QUALITY_WEIGHTS in weight order.
    """

    total_score: float
    rating: QualityRating
    dimensions: dict[str, QualityDimension]
    metrics: QualityMetrics | None = None

    @property
    def is_empty(self) -> bool:
        return not self.dimensions

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_score": self.total_score,
            "rating": self.rating.to_dict(),
            "dimensions": {key: dim.to_dict() for key, dim in self.dimensions.items()},
        }


@dataclass(frozen=True)
class WeakPoint:
    """A dimension that scored below Config.WEAK_DIMENSION_SCORE."""

    key: str
    name: str
    score: float
    level: str
    description: str


@dataclass(frozen=True)
class Suggestion:
    """A remediation tip tied to one weak dimension."""

    dimension: str
    icon: str
    title: str
    content: str


class QualityAnalyzer:
    """
    Weighted four-dimension focus scorer.

    Business context: A single number per day lets the user compare study
    sessions at a glance, while the per-dimension breakdown and suggestions
    explain what to change. Weights and tier thresholds live in Config so
    they can be tuned without touching the algorithm.

    The analyzer holds no state and may be shared freely.
    """

    def __init__(self, weights: dict[str, Decimal] | None = None) -> None:
        """
        Args:
            weights: Override for Config.QUALITY_WEIGHTS. Must cover the
                same four keys and sum to exactly 1.

        Raises:
            ValueError: If the weights don't cover the four dimensions or
                don't sum to 1.
        """
        self.weights = dict(weights or Config.QUALITY_WEIGHTS)
        if set(self.weights) != set(DIMENSION_NAMES):
            raise ValueError(f"weights must cover {sorted(DIMENSION_NAMES)}")
        if sum(self.weights.values()) != Decimal("1"):
            raise ValueError("weights must sum to 1")

    def calculate(self, metrics: QualityMetrics) -> QualityScoreResult:
        """
        Score one day's metrics.

        Args:
            metrics: Aggregated counters for the day.

        Returns:
            QualityScoreResult. A day with no study time (total_time <= 0)
            yields the no-data result: score 0, tier 'no_data', no dimensions.

        Example:
            >>> m = QualityMetrics(3600, 3239, 2, 0, 1, 2000)
            >>> QualityAnalyzer().calculate(m).total_score
            95.8
        """
        if metrics.total_time <= 0:
            return self.empty_result()

        dimensions = {
            "time_efficiency": self._time_efficiency(metrics),
            "focus_stability": self._focus_stability(metrics),
            "continuous_focus": self._continuous_focus(metrics),
            "completion": self._completion(metrics),
        }
        weighted = sum(
            (Decimal(str(dim.score)) * dim.weight for dim in dimensions.values()),
            Decimal(0),
        )
        total = float(round_half_up(weighted, 1))
        total = min(100.0, max(0.0, total))
        return QualityScoreResult(
            total_score=total,
            rating=self.rating_for(total),
            dimensions=dimensions,
            metrics=metrics,
        )

    def calculate_for_record(self, record: DailyRecord) -> QualityScoreResult:
        """Convenience wrapper scoring a DailyRecord directly."""
        return self.calculate(QualityMetrics.from_record(record))

    @staticmethod
    def empty_result() -> QualityScoreResult:
        """The no-data result for a day without study time."""
        return QualityScoreResult(total_score=0.0, rating=NO_DATA_RATING, dimensions={})

    @staticmethod
    def rating_for(score: float) -> QualityRating:
        """
        Map a composite score onto its rating tier.

        Args:
            score: Composite score in [0, 100].

        Returns:
            QualityRating; 'needs_improvement' below 50.
        """
        for minimum, tier, label, stars, color, icon, message in RATING_TIERS:
            if score >= minimum:
                return QualityRating(tier, label, stars, color, icon, message)
        return QualityRating(
            "needs_improvement", "需改进", 0, "#ef4444", "⚠️", "学习效率较低，建议使用番茄钟。"
        )

    # =========================================================================
    # DIMENSIONS
    # =========================================================================

    def _dimension(self, key: str, **fields: Any) -> QualityDimension:
        return QualityDimension(
            key=key, name=DIMENSION_NAMES[key], weight=self.weights[key], **fields
        )

    def _time_efficiency(self, m: QualityMetrics) -> QualityDimension:
        efficiency = m.effective_time * 100 / m.total_time
        for minimum, score, level in Config.EFFICIENCY_TIERS:
            if efficiency >= minimum:
                break
        else:
            score, level = max(0.0, efficiency), "需改进"
        percent = int(round_half_up(efficiency))
        return self._dimension(
            "time_efficiency",
            score=float(min(100.0, score)),
            level=level,
            value=percent,
            unit="%",
            description=f"有效学习时间占比{percent}%",
        )

    def _focus_stability(self, m: QualityMetrics) -> QualityDimension:
        w = Config.INTERRUPTION_WEIGHTS
        interruptions = (
            m.pause_count * w["pause_count"]
            + m.exit_fullscreen_count * w["exit_fullscreen_count"]
            + m.tab_switch_count * w["tab_switch_count"]
        )
        density = interruptions / (m.total_time / 3600)
        decay = Config.DENSITY_DECAY_MAX
        for ceiling, factor in Config.DENSITY_DECAY_BANDS:
            if density <= ceiling:
                decay = factor
                break
        score = min(100.0, max(0.0, 100 - density * decay))
        level = "需改进"
        for minimum, name in Config.STABILITY_LEVELS:
            if score >= minimum:
                level = name
                break
        return self._dimension(
            "focus_stability",
            score=score,
            level=level,
            value=float(round_half_up(density, 1)),
            unit="次/小时",
            description=f"平均每小时干扰{int(round_half_up(density))}次",
            details={
                "pause_count": m.pause_count,
                "exit_fullscreen_count": m.exit_fullscreen_count,
                "tab_switch_count": m.tab_switch_count,
                "total_interruptions": int(round_half_up(interruptions)),
            },
        )

    def _continuous_focus(self, m: QualityMetrics) -> QualityDimension:
        ratio = m.longest_session / m.total_time * 100
        score, level = Config.CONTINUITY_FLOOR
        for minimum, tier_score, tier_level in Config.CONTINUITY_TIERS:
            if ratio >= minimum:
                score, level = tier_score, tier_level
                break
        return self._dimension(
            "continuous_focus",
            score=float(score),
            level=level,
            value=int(round_half_up(ratio)),
            unit="%",
            description=f"最长连续专注{format_precise(m.longest_session)}",
            details={"longest_session": m.longest_session},
        )

    def _completion(self, m: QualityMetrics) -> QualityDimension:
        score, level = Config.COMPLETION_FLOOR
        for minimum, tier_score, tier_level in Config.COMPLETION_TIERS:
            if m.total_time >= minimum:
                score, level = tier_score, tier_level
                break
        return self._dimension(
            "completion",
            score=float(score),
            level=level,
            value=int(round_half_up(m.total_time / 60)),
            unit="分钟",
            description=f"学习时长{format_precise(m.total_time)}",
        )

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    def identify_weak_points(self, result: QualityScoreResult) -> list[WeakPoint]:
        """
        List dimensions scoring below Config.WEAK_DIMENSION_SCORE.

        Args:
            result: A scored result.

        Returns:
            WeakPoints ascending by score (stable for ties). Empty for the
            no-data result.
        """
        weak = [
            WeakPoint(dim.key, dim.name, dim.score, dim.level, dim.description)
            for dim in result.dimensions.values()
            if dim.score < Config.WEAK_DIMENSION_SCORE
        ]
        return sorted(weak, key=lambda w: w.score)

    def generate_suggestions(self, result: QualityScoreResult) -> list[Suggestion]:
        """
        Derive remediation tips from weak dimensions.

        Rules are independent and may all fire at once. A weak stability
        dimension yields one tip per interruption source that crossed its
        threshold, and none if no single source did.

        Args:
            result: A scored result.

        Returns:
            Suggestions in dimension order. Empty for the no-data result.
        """
        dims = result.dimensions
        if not dims:
            return []
        weak = {key for key, dim in dims.items() if dim.score < Config.WEAK_DIMENSION_SCORE}
        tips: list[Suggestion] = []

        if "time_efficiency" in weak:
            tips.append(
                Suggestion(
                    "time_efficiency",
                    "⏰",
                    "提升时间利用率",
                    "减少视频暂停时间，保持连续观看。建议提前准备好笔记本和笔。",
                )
            )

        if "focus_stability" in weak:
            details = dims["focus_stability"].details
            switches = details["tab_switch_count"]
            exits = details["exit_fullscreen_count"]
            pauses = details["pause_count"]
            if switches > Config.TAB_SWITCH_SUGGESTION_MIN:
                tips.append(
                    Suggestion(
                        "focus_stability",
                        "🚫",
                        "减少标签切换",
                        f"检测到频繁切换标签({switches}次)。建议关闭无关标签页，专注当前学习内容。",
                    )
                )
            if exits > Config.EXIT_FULLSCREEN_SUGGESTION_MIN:
                tips.append(
                    Suggestion(
                        "focus_stability",
                        "🖥️",
                        "保持全屏学习",
                        f"退出全屏{exits}次。建议使用全屏模式沉浸式学习，减少干扰。",
                    )
                )
            if pauses > Config.PAUSE_SUGGESTION_MIN:
                tips.append(
                    Suggestion(
                        "focus_stability",
                        "▶️",
                        "减少暂停次数",
                        f"暂停{pauses}次。如需记笔记，建议课后整理，或使用0.75x慢速播放。",
                    )
                )

        if "continuous_focus" in weak:
            tips.append(
                Suggestion(
                    "continuous_focus",
                    "🍅",
                    "尝试番茄钟工作法",
                    "最长连续专注时间较短。建议使用番茄钟，25分钟专注 + 5分钟休息。",
                )
            )

        if "completion" in weak:
            tips.append(
                Suggestion(
                    "completion",
                    "🎯",
                    "延长学习时长",
                    "学习时长较短。建议设定明确目标，至少保证30分钟连续学习。",
                )
            )

        logger.debug(f"Generated {len(tips)} suggestions for weak dimensions {sorted(weak)}")
        return tips
