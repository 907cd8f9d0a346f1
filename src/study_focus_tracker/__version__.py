"""Version information for study-focus-tracker."""

__version__ = "1.0.0"
__version_date__ = "2026-10-19"

__title__ = "study_focus_tracker"
__description__ = "Focus-quality analytics and report export for video study sessions"
__url__ = "https://github.com/study-focus-tracker/study-focus-tracker"

__author__ = "Study Focus Tracker Contributors"

__license__ = "MIT"
__copyright__ = "Copyright 2026 Study Focus Tracker Contributors"

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
