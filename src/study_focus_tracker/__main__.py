"""
Package entry point for python -m execution.

USAGE:
    python -m study_focus_tracker                 # Print today's report
    python -m study_focus_tracker stats --period week
    python -m study_focus_tracker export --scope raw --format csv
    python -m study_focus_tracker dashboard       # Launch web dashboard
"""

import sys

from study_focus_tracker.cli import main

if __name__ == "__main__":
    sys.exit(main())
