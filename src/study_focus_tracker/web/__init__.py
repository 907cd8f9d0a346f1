"""
Web dashboard module for Study Focus Tracker.

PURPOSE: FastAPI-based dashboard, JSON API and export downloads.
AI CONTEXT: Thin HTTP layer over presenters, the query service and the
export orchestrator. Business logic stays out of the routes.

FEATURES:
- Dashboard page with period table, quality panel and today's timeline
- Server-side chart rendering (matplotlib, SVG fallback)
- JSON query endpoints returning the ServiceResult contract
- Report and raw-data downloads

USAGE:
    # Via CLI
    study-focus-tracker dashboard

    # Programmatically
    from study_focus_tracker.web import create_app
    app = create_app()
    # Run with uvicorn
"""

from .app import create_app, run_dashboard

__all__ = ["create_app", "run_dashboard"]
