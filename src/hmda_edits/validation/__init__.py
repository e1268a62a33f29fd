"""Validation system for HMDA Edit Tools.

This module provides the edit run machinery for loan/application register
submissions:

- **Models**: Violation, EditBucket, RunResult - edit result data structures
- **Store**: ErrorStore - run-scoped violation store, sealed after the run
- **Checks**: Individual edit implementations (see validation/checks/)
- **Scheduler**: StageScheduler - runs the six stages, grouped or sequential
- **Report**: render_report() - per-edit CSV blocks with spec labels
- **Registry**: run_validation(), print_report() - end-to-end orchestration

Public API:
    RunOptions: Configuration for one run
    run_validation: Read a submission and run every stage
    print_report: Write the syntactical and validity edit report

Usage:
    >>> from hmda_edits.validation import RunOptions, run_validation, print_report
    >>> run = run_validation("bank.dat", RunOptions(year=2013, api_url="http://localhost:9000"))
    >>> print_report(run)

For implementation details:
    - See validation/checks/__init__.py for check interface conventions
    - See validation/config.py for code sets, thresholds and stage tiers
    - See validation/scheduler.py for scheduling policies
"""

from __future__ import annotations

from hmda_edits.core.enums import SchedulePolicy, Scope, Stage

from .context import RunContext, RunOptions
from .models import EditBucket, RunResult, Violation
from .registry import ValidationRun, print_report, run_validation
from .store import ErrorStore, StoreSnapshot

__all__ = [
    # Data models
    "Violation",
    "EditBucket",
    "RunResult",
    "ErrorStore",
    "StoreSnapshot",
    # Run configuration
    "RunOptions",
    "RunContext",
    "SchedulePolicy",
    "Scope",
    "Stage",
    # Orchestration
    "ValidationRun",
    "run_validation",
    "print_report",
]
