"""Edit check registry and runner.

This module orchestrates a validation run:
- ALL_CHECKS: List of all available edit check instances
- run_validation(): Reads a submission, runs every stage, returns the context
- print_report(): Writes the edit report for a finished run
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Optional, Sequence, Union

from hmda_edits.core.enums import Stage
from hmda_edits.core.schemas import SchemaRegistry
from hmda_edits.ingestion.reader import load_submission
from .checks.activity_year import ActivityYearCheck
from .checks.agency_code import AgencyCodeCheck
from .checks.denial_ratio import DenialRatioCheck
from .checks.detail_presence import DetailPresenceCheck
from .checks.field_values import FieldValuesCheck
from .checks.geography import GeographyCheck
from .checks.income_ratio import IncomeRatioCheck
from .checks.record_identifiers import RecordIdentifierCheck
from .checks.unique_loan_numbers import UniqueLoanNumberCheck
from .config import REPORT_GROUPS
from .context import RunContext, RunOptions
from .engine import EditEngine
from .models import RunResult
from .report import render_report
from .scheduler import StageScheduler

logger = logging.getLogger(__name__)


# Registry of all available edit checks
# Order within a stage is the order edits appear in the report
ALL_CHECKS = [
    # Syntactical
    RecordIdentifierCheck(),
    DetailPresenceCheck(),
    AgencyCodeCheck(),
    UniqueLoanNumberCheck(),
    ActivityYearCheck(),
    # Validity
    FieldValuesCheck(),
    # Quality and macro
    IncomeRatioCheck(),
    DenialRatioCheck(),
    # Special
    GeographyCheck(),
]


@dataclass
class ValidationRun:
    """A finished validation run: its context (sealed store) and result."""

    context: RunContext
    result: RunResult


def run_validation(
    source: Union[str, Path, IO[bytes], IO[str]],
    options: RunOptions,
    registry: Optional[SchemaRegistry] = None,
    engine: Optional[EditEngine] = None,
) -> ValidationRun:
    """Read a submission and run every stage over it.

    Args:
        source: Path or open stream of the pipe-delimited submission.
        options: Run options (year, policy, reference data source, ...).
        registry: Schema registry; defaults to the packaged year specs.
        engine: Edit engine; defaults to one over ALL_CHECKS.

    Returns:
        ValidationRun whose store is sealed and ready for the report.

    Raises:
        IngestionError: If the submission cannot be read.
        SchemaResolutionError: If the year has no spec.
        RunRejectedError: If any stage failed.

    Examples:
        >>> run = run_validation(Path("bank.dat"), RunOptions(year=2013, api_url="http://localhost:9000"))
        >>> print_report(run)
    """
    registry = registry or SchemaRegistry()
    started = time.perf_counter()
    document = load_submission(source, options.year, registry, show_progress=options.debug >= 3)
    logger.info("Loan/application records: %d", document.detail_count)
    logger.info("Time to ingest: %.3fs", time.perf_counter() - started)

    context = RunContext(options=options, document=document, registry=registry)
    scheduler = StageScheduler(engine or EditEngine(), stage_timeout=options.stage_timeout)
    result = asyncio.run(scheduler.run(options.policy, context))
    return ValidationRun(context=context, result=result)


def print_report(
    run: ValidationRun,
    sink: Optional[IO[str]] = None,
    groups: Sequence[Stage] = REPORT_GROUPS,
) -> int:
    """Write the edit report for a finished run.

    Returns:
        Number of violations written.
    """
    snapshot = run.context.store.snapshot()
    return render_report(
        snapshot,
        run.context.registry,
        run.context.year,
        sink=sink if sink is not None else sys.stdout,
        groups=groups,
    )
