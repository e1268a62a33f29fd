import argparse
import logging
import sys
import time
import tracemalloc
from pathlib import Path
from typing import Optional

import colorlog

from hmda_edits import __version__ as _PACKAGE_VERSION
from hmda_edits.core.enums import SchedulePolicy, Stage
from hmda_edits.core.errors import ConfigurationError, EditToolsError


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = (
        "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
    )
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    # Logs go to stderr so the CSV report on stdout stays clean.
    stream_handler = colorlog.StreamHandler(sys.stderr)
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _build_options(args: argparse.Namespace):
    from hmda_edits.validation.context import RunOptions

    overrides = {
        "year": getattr(args, "year", None),
        "api_url": getattr(args, "api_url", None),
        "use_local_db": getattr(args, "use_local_db", None),
        "geography_path": getattr(args, "geography", None),
        "debug": getattr(args, "debug", None),
        "policy": getattr(args, "policy", None),
        "stage_timeout": getattr(args, "stage_timeout", None),
    }
    config_path = getattr(args, "config", None)
    if config_path:
        return RunOptions.from_yaml(Path(config_path), **overrides)
    return RunOptions.from_mapping({}, **overrides)


def cmd_validate(args: argparse.Namespace) -> int:
    """Run every edit stage over one submission and print the edit report.

    The report (syntactical, then validity edits) goes to stdout or to
    ``--output``. Logs go to stderr.

    Returns:
        0 if the report has no violations
        1 if the run failed (unreadable file, stage failure, missing labels)
        2 if violations were reported or the options are invalid
    """
    from hmda_edits.validation.config import ALL_REPORT_GROUPS, REPORT_GROUPS
    from hmda_edits.validation.registry import print_report, run_validation
    from hmda_edits.validation.totals import write_totals_csv

    try:
        options = _build_options(args)
        options.check_reference_source()
    except ConfigurationError as e:
        logging.error("%s", e)
        return 2

    quiet = getattr(args, "warnings_only", False) or getattr(args, "errors_only", False)
    if options.debug >= 1 and not quiet:
        logging.getLogger().setLevel(logging.DEBUG)
    if options.debug >= 2:
        tracemalloc.start()

    source = Path(args.input)
    total_started = time.perf_counter()
    logging.info(
        "Validating %s for %s (%s policy)", source, options.year, options.policy.name.lower()
    )

    try:
        run = run_validation(source, options)
    except EditToolsError as e:
        logging.error("Validation failed for %s: %s", source, e)
        return 1
    finally:
        if options.debug >= 2 and tracemalloc.is_tracing():
            current, peak = tracemalloc.get_traced_memory()
            tracemalloc.stop()
            logging.info("Heap: current %.1f MiB, peak %.1f MiB", current / 2**20, peak / 2**20)

    logging.debug("%s", run.result.summary())
    logging.info("Stage time: %.3fs", run.result.total_duration)
    logging.info("Total time: %.3fs", time.perf_counter() - total_started)

    snapshot = run.context.store.snapshot()
    for stage in ALL_REPORT_GROUPS:
        count = snapshot.violation_count(stage)
        if count:
            logging.info("%s edits: %d violations", stage.value, count)

    groups = ALL_REPORT_GROUPS if getattr(args, "all_groups", False) else REPORT_GROUPS
    output = getattr(args, "output", None)
    try:
        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", encoding="utf-8", newline="") as f:
                written = print_report(run, sink=f, groups=groups)
            logging.info("Edit report saved: %s", output_path)
        else:
            written = print_report(run, sink=sys.stdout, groups=groups)
    except EditToolsError as e:
        logging.error("Failed to write edit report: %s", e)
        return 1

    totals_csv = getattr(args, "totals_csv", None)
    if totals_csv and run.context.totals is not None:
        try:
            write_totals_csv(run.context.totals, Path(totals_csv))
        except OSError as e:
            logging.error("Failed to write totals CSV %s: %s", totals_csv, e)
            return 1

    if written:
        logging.warning("Edit report lists %d violations", written)
        return 2
    logging.info("No syntactical or validity edits failed")
    return 0


def cmd_years(args: argparse.Namespace) -> int:
    """List the submission years with a packaged spec."""
    from hmda_edits.core.schemas import SchemaRegistry

    years = SchemaRegistry().available_years()
    if not years:
        logging.error("No submission specs found")
        return 1
    for year in years:
        print(year)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hmda-edits",
        description=f"HMDA Edit Tools (v{_PACKAGE_VERSION})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="Run all edit stages over a submission")
    p_validate.add_argument("input", help="Path to the pipe-delimited submission file")
    p_validate.add_argument(
        "--year",
        type=int,
        default=None,
        help="Submission year (required unless set in --config)",
    )
    p_validate.add_argument(
        "--api-url",
        default=None,
        help="Geography service base URL (e.g. http://localhost:9000)",
    )
    p_validate.add_argument(
        "--use-local-db",
        action="store_true",
        default=None,
        help="Read geography from --geography instead of the service",
    )
    p_validate.add_argument(
        "--geography",
        default=None,
        help="CSV with state,county,msa columns (used with --use-local-db)",
    )
    p_validate.add_argument(
        "--debug",
        type=int,
        choices=[0, 1, 2, 3],
        default=None,
        help="1: debug logging, 2: also heap usage, 3: also progress bars",
    )
    p_validate.add_argument(
        "--sequential",
        dest="policy",
        action="store_const",
        const=SchedulePolicy.SEQUENTIAL,
        default=None,
        help="Run stages one at a time (lower peak memory, slower)",
    )
    p_validate.add_argument(
        "--stage-timeout",
        type=float,
        default=None,
        help="Seconds each stage may run before the run is rejected",
    )
    p_validate.add_argument(
        "--config",
        default=None,
        help="YAML file with run options; command-line flags override it",
    )
    p_validate.add_argument(
        "--output",
        default=None,
        help="Write the edit report to this file instead of stdout",
    )
    p_validate.add_argument(
        "--totals-csv",
        default=None,
        help="Write loan totals by MSA/MD to this CSV file",
    )
    p_validate.add_argument(
        "--all-groups",
        action="store_true",
        help=f"Also report {', '.join(s.value for s in (Stage.QUALITY, Stage.MACRO, Stage.SPECIAL))} edits",
    )
    p_validate.set_defaults(func=cmd_validate)

    p_years = sub.add_parser("years", help="List supported submission years")
    p_years.set_defaults(func=cmd_years)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
