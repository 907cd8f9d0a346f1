"""
Study Focus Tracker.

PURPOSE: Turn per-video watch segments into daily statistics, focus-quality
scores, reconstructed timelines and exportable reports.

PACKAGE STRUCTURE:
- config.py: Configuration constants and scoring thresholds
- errors.py: DataUnavailable, ValidationError, RenderFailure
- filesystem.py: Injectable filesystem abstraction
- models.py: Data models (DailyRecord, VideoWatchSegment, PomodoroEntry, events)
- storage.py: JSON file persistence for daily records and pomodoro history
- dateutils.py: Duration formatting and date-range helpers
- aggregator.py: Period resolution and zero-filled daily stats
- statistics.py: Period summaries and trend notes
- quality.py: Four-dimension focus quality score
- timeline.py: Watch/break timeline reconstruction
- reflection.py: Rule-based daily reflection prompts
- reports.py: Markdown, HTML, CSV and JSON report generation
- charts.py: matplotlib and SVG chart renderers
- export.py: Export orchestration (scope -> format -> render -> deliver)
- query_service.py: Study statistics and history query contract
- presenters.py: Dashboard view models
- web/: FastAPI dashboard
- cli.py: Command-line interface

QUICK START:
    # Print today's report
    python -m study_focus_tracker report

    # Export last week's report as HTML
    python -m study_focus_tracker export --scope week --format html

    # Launch dashboard
    python -m study_focus_tracker dashboard
"""

from study_focus_tracker.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __url__,
    __version__,
    __version_date__,
)

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__url__",
    "__author__",
    "__license__",
    "__copyright__",
]
