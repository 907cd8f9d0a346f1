"""
Chart rendering for Study Focus Tracker.

PURPOSE: Render daily study time and quality dimensions as images for the
dashboard and exports.
AI CONTEXT: ChartRenderer is a capability with two implementations. Pick
one with select_chart_renderer() rather than testing for matplotlib at
each call site.

IMPLEMENTATIONS:
- MatplotlibChartRenderer: PNG via matplotlib's Agg backend (preferred)
- SvgChartRenderer: Dependency-free SVG bar charts

Chart labels are ASCII so the default matplotlib fonts render them.
"""

from __future__ import annotations

import html
import importlib.util
import io
import logging
from typing import Protocol

logger = logging.getLogger(__name__)

__all__ = [
    "ChartRenderer",
    "MatplotlibChartRenderer",
    "SvgChartRenderer",
    "select_chart_renderer",
]

BAR_COLOR = "#667eea"
EMPTY_COLOR = "#e5e7eb"
DIMENSION_COLORS = ("#10b981", "#f59e0b", "#ef4444")


def _score_color(score: float) -> str:
    if score >= 80:
        return DIMENSION_COLORS[0]
    if score >= 60:
        return DIMENSION_COLORS[1]
    return DIMENSION_COLORS[2]


class ChartRenderer(Protocol):
    """
    Protocol for chart renderers.

    Attributes:
        media_type: MIME type of the bytes returned by render methods.
        extension: File extension without the dot.
    """

    media_type: str
    extension: str

    def render_daily(self, points: list[tuple[str, float]], title: str) -> bytes:
        """
        Render a bar per day.

        Args:
            points: (YYYY-MM-DD, minutes) pairs in display order.
            title: Chart title.

        Returns:
            Encoded image.
        """
        ...

    def render_dimensions(self, scores: list[tuple[str, float]], title: str) -> bytes:
        """
        Render one horizontal bar per quality dimension (0-100).

        Args:
            scores: (label, score) pairs.
            title: Chart title.

        Returns:
            Encoded image.
        """
        ...


class MatplotlibChartRenderer:
    """
    PNG charts via matplotlib.

    matplotlib is imported lazily on first render with the non-interactive
    Agg backend, so constructing the renderer is cheap.
    """

    media_type = "image/png"
    extension = "png"

    def _pyplot(self):  # type: ignore[no-untyped-def]
        import matplotlib

        matplotlib.use("Agg")  # Non-interactive backend
        import matplotlib.pyplot as plt

        return plt

    def _encode(self, plt, fig) -> bytes:  # type: ignore[no-untyped-def]
        buf = io.BytesIO()
        plt.tight_layout()
        plt.savefig(buf, format="png", dpi=100, bbox_inches="tight")
        plt.close(fig)
        buf.seek(0)
        return buf.read()

    def render_daily(self, points: list[tuple[str, float]], title: str) -> bytes:
        """
        Render daily minutes as a vertical bar chart PNG.

        Business context: The daily chart is the dashboard's headline
        view. Zero-filled days are drawn as empty slots so gaps in study
        habits are visible.

        Returns:
            PNG bytes, 800px wide at 100 DPI. A placeholder message is
            drawn when points is empty.
        """
        plt = self._pyplot()
        fig, ax = plt.subplots(figsize=(8, 3))
        if not points:
            ax.text(0.5, 0.5, "No study data yet", ha="center", va="center", fontsize=14)
            ax.axis("off")
            return self._encode(plt, fig)

        labels = [day[5:] for day, _ in points]
        minutes = [value for _, value in points]
        colors = [BAR_COLOR if value > 0 else EMPTY_COLOR for value in minutes]
        ax.bar(range(len(points)), minutes, color=colors)
        ax.set_ylabel("Minutes")
        ax.set_title(title)
        step = max(1, len(points) // 15)
        ax.set_xticks(range(0, len(points), step))
        ax.set_xticklabels(labels[::step], rotation=45, ha="right")
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        return self._encode(plt, fig)

    def render_dimensions(self, scores: list[tuple[str, float]], title: str) -> bytes:
        """Render dimension scores as a horizontal bar chart PNG."""
        plt = self._pyplot()
        fig, ax = plt.subplots(figsize=(6, 3))
        labels = [label for label, _ in scores]
        values = [value for _, value in scores]
        ax.barh(labels, values, color=[_score_color(v) for v in values])
        ax.set_xlim(0, 100)
        ax.set_title(title)
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        return self._encode(plt, fig)


class SvgChartRenderer:
    """Plain SVG bar charts, used when matplotlib is not installed."""

    media_type = "image/svg+xml"
    extension = "svg"

    def __init__(self, width: int = 800, height: int = 300) -> None:
        self.width = width
        self.height = height

    def _svg(self, body: str, title: str) -> bytes:
        svg = (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" '
            f'height="{self.height}" viewBox="0 0 {self.width} {self.height}">'
            '<rect width="100%" height="100%" fill="white"/>'
            f'<text x="{self.width // 2}" y="20" text-anchor="middle" '
            f'font-family="sans-serif" font-size="14">{html.escape(title)}</text>'
            f"{body}</svg>"
        )
        return svg.encode("utf-8")

    def render_daily(self, points: list[tuple[str, float]], title: str) -> bytes:
        """
        Render daily minutes as SVG bars.

        Returns:
            UTF-8 SVG document. Bars are scaled to the largest value.
        """
        if not points:
            body = (
                f'<text x="{self.width // 2}" y="{self.height // 2}" text-anchor="middle" '
                'font-family="sans-serif" fill="#6b7280">No study data yet</text>'
            )
            return self._svg(body, title)

        top, bottom, side = 40, 40, 20
        plot_height = self.height - top - bottom
        slot = (self.width - 2 * side) / len(points)
        peak = max(value for _, value in points) or 1
        bars = []
        for position, (day, value) in enumerate(points):
            bar_height = plot_height * value / peak
            x = side + position * slot
            y = top + plot_height - bar_height
            color = BAR_COLOR if value > 0 else EMPTY_COLOR
            bars.append(
                f'<rect x="{x + slot * 0.1:.1f}" y="{y:.1f}" width="{slot * 0.8:.1f}" '
                f'height="{max(bar_height, 1):.1f}" fill="{color}">'
                f"<title>{day}: {value:.0f} min</title></rect>"
            )
        return self._svg("".join(bars), title)

    def render_dimensions(self, scores: list[tuple[str, float]], title: str) -> bytes:
        """Render dimension scores as SVG horizontal bars (full width = 100)."""
        label_width, top, row = 160, 40, 40
        plot_width = self.width - label_width - 20
        rows = []
        for position, (label, value) in enumerate(scores):
            y = top + position * row
            rows.append(
                f'<text x="10" y="{y + 20}" font-family="sans-serif" font-size="12">'
                f"{html.escape(label)}</text>"
                f'<rect x="{label_width}" y="{y + 6}" width="{plot_width * value / 100:.1f}" '
                f'height="20" fill="{_score_color(value)}"/>'
            )
        return self._svg("".join(rows), title)


def select_chart_renderer() -> ChartRenderer:
    """
    Pick the best available chart renderer.

    Returns:
        MatplotlibChartRenderer when matplotlib is importable, otherwise
        SvgChartRenderer.

    Example:
        >>> renderer = select_chart_renderer()
        >>> renderer.media_type in ("image/png", "image/svg+xml")
        True
    """
    if importlib.util.find_spec("matplotlib") is not None:
        return MatplotlibChartRenderer()
    logger.warning("matplotlib not installed; charts fall back to SVG")
    return SvgChartRenderer()
