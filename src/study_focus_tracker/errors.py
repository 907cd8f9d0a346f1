"""
Error taxonomy for Study Focus Tracker.

PURPOSE: Named failure conditions shared by the pipeline stages.

ERROR KINDS:
- DataUnavailable: Storage unreadable, or nothing recorded for the request.
  NoStudyData is the "nothing recorded" case on its own.
  Non-fatal - the request is aborted and a message is shown.
- ValidationError: Malformed user selection (date, period, counts, format).
  Raised before any storage access so the caller can re-prompt.
- RenderFailure: A report renderer crashed. Indicates a programming defect
  and is propagated to the caller.
"""

from __future__ import annotations

__all__ = [
    "StudyTrackerError",
    "DataUnavailable",
    "NoStudyData",
    "ValidationError",
    "RenderFailure",
]


class StudyTrackerError(Exception):
    """Base class for all Study Focus Tracker errors."""


class DataUnavailable(StudyTrackerError):
    """Storage read failed or returned nothing for the request."""


class NoStudyData(DataUnavailable):
    """Storage is fine but nothing was recorded for the requested day."""


class ValidationError(StudyTrackerError, ValueError):
    """A user-provided selection or argument is out of range or malformed."""


class RenderFailure(StudyTrackerError):
    """
    A report renderer raised on its input.

    Attributes:
        renderer: Name of the renderer that failed (e.g. 'day_markdown').
    """

    def __init__(self, renderer: str, cause: Exception) -> None:
        super().__init__(f"{renderer} failed: {cause}")
        self.renderer = renderer
        self.__cause__ = cause
