"""
CLI entry point for Study Focus Tracker.

PURPOSE: Command-line access to statistics, reports, exports, data import
and the web dashboard.
AI CONTEXT: Main entry points for package execution. Each run_* function
accepts optional collaborators so tests can inject in-memory storage.

USAGE:
    # Print today's report (default)
    python -m study_focus_tracker

    # Or via CLI command (after install)
    study-focus-tracker stats --period month
    study-focus-tracker history --limit 10
    study-focus-tracker report --date 2024-03-10 --format html
    study-focus-tracker export --scope raw --format csv
    study-focus-tracker import bilibili-study-data-2024-03-10.json
    study-focus-tracker dashboard --port 8080

EXIT CODES:
    0  success
    1  request failed (storage unreadable, nothing to export, query rejected)
    2  invalid input to report, export or import (bad date, scope or format)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from functools import lru_cache
from typing import TYPE_CHECKING

from .errors import DataUnavailable, StudyTrackerError, ValidationError

if TYPE_CHECKING:
    from .aggregator import DailyRecordAggregator
    from .filesystem import FileSystem
    from .storage import StorageManager

# Constants
PROG_NAME = "study-focus-tracker"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
EXIT_OK = 0
EXIT_UNAVAILABLE = 1
EXIT_INVALID = 2


@lru_cache(maxsize=1)
def _get_logger() -> logging.Logger:
    """Get module logger (cached for thread safety)."""
    logging.basicConfig(level=logging.INFO)
    return logging.getLogger(__name__)


def _log(message: str, *, emoji: str = "") -> None:
    """Log message with optional emoji prefix for CLI output.

    Args:
        message: The message to log.
        emoji: Optional emoji prefix for visual CLI feedback.
    """
    prefix = f"{emoji} " if emoji else ""
    _get_logger().info(f"{prefix}{message}")


def _exit_code(error: StudyTrackerError) -> int:
    """Log a pipeline error and map it to an exit code."""
    if isinstance(error, ValidationError):
        _log(str(error), emoji="⚠️")
        return EXIT_INVALID
    _log(str(error), emoji="❌")
    return EXIT_UNAVAILABLE


def _aggregator(storage: StorageManager | None) -> DailyRecordAggregator:
    from .aggregator import DailyRecordAggregator as Aggregator
    from .storage import StorageManager as StorageMgr

    return Aggregator(storage or StorageMgr())


def run_dashboard(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> int:
    """
    Launch the web dashboard.

    Args:
        host: Interface to bind. Default '127.0.0.1' (local only).
        port: TCP port. Default 8000.

    Returns:
        EXIT_OK once the server stops (Ctrl+C).

    Example:
        >>> # study-focus-tracker dashboard --port 3000
        >>> run_dashboard(port=3000)
        🚀 Starting dashboard at http://127.0.0.1:3000
    """
    from .web import run_dashboard as start_web

    _log(f"Starting dashboard at http://{host}:{port}", emoji="🚀")
    _log("Press Ctrl+C to stop")
    start_web(host=host, port=port)
    return EXIT_OK


def run_stats(
    period: str = "week",
    *,
    as_json: bool = False,
    storage: StorageManager | None = None,
) -> int:
    """
    Print period statistics to stdout.

    Business context: A quick terminal answer to "how much did I study
    this week", without opening the dashboard.

    Args:
        period: 'week', 'month', 'year', 'all' or a day count.
        as_json: Print the raw query result instead of a table.
        storage: Optional StorageManager for testability.

    Returns:
        Exit code.

    Example:
        >>> run_stats("week")
        日期         时长        视频数
        2024-03-03   0秒         0
        ...
    """
    from .dateutils import format_duration
    from .query_service import StudyQueryService

    service = StudyQueryService(_aggregator(storage))
    result = asyncio.run(service.get_study_stats(period))
    if as_json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return EXIT_OK if result.success else EXIT_UNAVAILABLE
    if not result.success:
        _log(result.error or "", emoji="⚠️")
        return EXIT_UNAVAILABLE

    summary = result.data["summary"]
    # Note: Using print() intentionally for stdout piping support
    print(f"{'日期':<12}{'时长':<12}{'视频数'}")
    for record in result.data["records"]:
        duration = format_duration(record["total_time"])
        print(f"{record['date']:<12}{duration:<12}{record['video_count']}")
    print()
    print(f"学习天数：{summary['study_days']}/{summary['days']}")
    print(f"总时长：{format_duration(summary['total_time'])}")
    print(f"有效占比：{summary['avg_quality']:.1f}%")
    return EXIT_OK


def run_history(
    limit: int = 20,
    offset: int = 0,
    *,
    storage: StorageManager | None = None,
) -> int:
    """
    Print the most recent watch segments, newest first.

    Args:
        limit: Number of entries.
        offset: Entries to skip.
        storage: Optional StorageManager for testability.

    Returns:
        Exit code.
    """
    from .dateutils import format_duration
    from .query_service import StudyQueryService

    service = StudyQueryService(_aggregator(storage))
    result = asyncio.run(service.get_study_history(limit, offset))
    if not result.success:
        _log(result.error or "", emoji="⚠️")
        return EXIT_UNAVAILABLE
    items = result.data["items"]
    if not items:
        print("暂无学习记录")
        return EXIT_OK
    for item in items:
        print(f"{item['date']}  {format_duration(item['watched_seconds']):<12}{item['title']}")
    return EXIT_OK


def run_report(
    date: str | None = None,
    fmt: str = "markdown",
    *,
    storage: StorageManager | None = None,
) -> int:
    """
    Print one day's report to stdout.

    Unlike the export command this prints the report even for a day
    without study data, so the user sees the empty-state sections.

    Args:
        date: YYYY-MM-DD. Default: today.
        fmt: 'markdown' or 'html'.
        storage: Optional StorageManager for testability.

    Returns:
        Exit code.

    Example:
        >>> # study-focus-tracker report > today.md
        >>> run_report()
        # 📅 学习报告 - 2024-03-10 (周日)
        ...
    """
    from .dateutils import format_date
    from .reports import ReportGenerator

    aggregator = _aggregator(storage)
    generator = ReportGenerator()
    day = date or format_date(aggregator.today())

    async def render() -> str:
        record = await aggregator.fetch_day(day)
        index = await aggregator.fetch_video_index()
        pomodoro = await aggregator.fetch_pomodoro_summary(record.date)
        if fmt == "html":
            return generator.day_report_html(record, index, pomodoro)
        return generator.day_report_markdown(record, index, pomodoro)

    try:
        print(asyncio.run(render()))
    except (ValidationError, DataUnavailable) as e:
        return _exit_code(e)
    return EXIT_OK


def run_export(
    scope: str,
    fmt: str,
    date: str | None = None,
    *,
    output_dir: str | None = None,
    storage: StorageManager | None = None,
    filesystem: FileSystem | None = None,
) -> int:
    """
    Export a report or raw data into the export directory.

    Args:
        scope: today, custom, week, month or raw.
        fmt: markdown, html, csv or json.
        date: YYYY-MM-DD for the custom scope.
        output_dir: Target directory. Default: Config.get_export_dir()
        storage: Optional StorageManager for testability.
        filesystem: Optional FileSystem for the written artifact.

    Returns:
        Exit code.

    Example:
        >>> # study-focus-tracker export --scope raw --format csv
        >>> run_export("raw", "csv")
        ✅ Exported to .study_tracker/exports/bilibili-study-data-2024-03-10.csv
    """
    from .export import DirectorySink, ExportOrchestrator, PresetDialog

    aggregator = _aggregator(storage)
    orchestrator = ExportOrchestrator(aggregator, DirectorySink(output_dir, filesystem))
    dialog = PresetDialog(scope, fmt, date)
    try:
        location = asyncio.run(orchestrator.run(dialog))
    except ValidationError as e:
        return _exit_code(e)

    rejected = [error for error in dialog.date_prompts if error is not None]
    if rejected:
        _log(rejected[-1], emoji="⚠️")
        return EXIT_INVALID
    if location is None:
        if scope == "custom" and not date:
            _log("--date is required for --scope custom", emoji="⚠️")
            return EXIT_INVALID
        for message in dialog.messages:
            _log(message, emoji="❌")
        return EXIT_UNAVAILABLE
    _log(f"Exported to {location}", emoji="✅")
    return EXIT_OK


def run_import(
    path: str,
    *,
    overwrite: bool = False,
    storage: StorageManager | None = None,
    filesystem: FileSystem | None = None,
) -> int:
    """
    Load a JSON export back into storage.

    Business context: Moves study history between machines: export raw
    JSON on one, import it on the other. Existing dates are kept unless
    overwrite is set.

    Args:
        path: JSON file written by 'export --scope raw --format json'.
        overwrite: Replace records for dates that already exist.
        storage: Optional StorageManager for testability.
        filesystem: Optional FileSystem for reading path.

    Returns:
        Exit code.
    """
    from .filesystem import RealFileSystem
    from .reports import parse_json_export
    from .storage import StorageManager as StorageMgr

    fs = filesystem or RealFileSystem()
    storage = storage or StorageMgr()
    try:
        text = fs.read_text(path)
    except OSError as e:
        _log(f"Cannot read {path}: {e}", emoji="❌")
        return EXIT_UNAVAILABLE
    try:
        records = parse_json_export(text)
        imported = storage.import_records(records, overwrite=overwrite)
    except (ValidationError, DataUnavailable) as e:
        return _exit_code(e)
    _log(f"Imported {imported} of {len(records)} daily records", emoji="✅")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    from .__version__ import __version__
    from .config import Config

    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description=f"{Config.APP_NAME} - focus statistics and reports for video study",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    stats_parser = subparsers.add_parser("stats", help="Print period statistics")
    stats_parser.add_argument(
        "--period",
        default="week",
        help="week, month, year, all, or a number of days (default: week)",
    )
    stats_parser.add_argument("--json", action="store_true", help="Print JSON")

    history_parser = subparsers.add_parser("history", help="Print recent videos")
    history_parser.add_argument(
        "--limit",
        type=int,
        default=Config.DEFAULT_HISTORY_LIMIT,
        help=f"Number of entries (default: {Config.DEFAULT_HISTORY_LIMIT})",
    )
    history_parser.add_argument("--offset", type=int, default=0, help="Entries to skip")

    report_parser = subparsers.add_parser("report", help="Print a day report to stdout")
    report_parser.add_argument("--date", default=None, help="YYYY-MM-DD (default: today)")
    report_parser.add_argument(
        "--format",
        dest="fmt",
        choices=("markdown", "html"),
        default="markdown",
    )

    export_parser = subparsers.add_parser("export", help="Export a report or raw data")
    export_parser.add_argument(
        "--scope",
        choices=sorted(Config.REPORT_SCOPES),
        default="today",
    )
    export_parser.add_argument(
        "--format",
        dest="fmt",
        choices=sorted(Config.REPORT_FORMATS),
        default="markdown",
    )
    export_parser.add_argument("--date", default=None, help="YYYY-MM-DD for --scope custom")
    export_parser.add_argument(
        "--output",
        default=None,
        help="Output directory (default: <storage>/exports)",
    )

    import_parser = subparsers.add_parser("import", help="Import a JSON export")
    import_parser.add_argument("path", help="JSON file to import")
    import_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace records for dates that already exist",
    )

    dashboard_parser = subparsers.add_parser("dashboard", help="Launch web dashboard")
    dashboard_parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Bind address (default: {DEFAULT_HOST})",
    )
    dashboard_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port number (default: {DEFAULT_PORT})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point for Study Focus Tracker.

    Parses command-line arguments and dispatches to the matching run_*
    handler. Without a subcommand, prints today's report.

    Business context: This is the entry point installed as the
    'study-focus-tracker' console script and run by 'python -m'.

    Args:
        argv: Arguments without the program name. Default: sys.argv[1:]

    Returns:
        Exit code from the handler (see module docstring).

    Raises:
        SystemExit: On --help, --version or argument parsing errors.

    Example:
        >>> # study-focus-tracker stats --period month
        >>> sys.exit(main())
    """
    args = _build_parser().parse_args(argv)

    if args.command == "stats":
        return run_stats(args.period, as_json=args.json)
    if args.command == "history":
        return run_history(args.limit, args.offset)
    if args.command == "report":
        return run_report(args.date, args.fmt)
    if args.command == "export":
        return run_export(args.scope, args.fmt, args.date, output_dir=args.output)
    if args.command == "import":
        return run_import(args.path, overwrite=args.overwrite)
    if args.command == "dashboard":
        return run_dashboard(host=args.host, port=args.port)
    return run_report()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
