"""
CLI interface for the schedule engine.

Computes a project schedule from CSV files and prints a critical path report.

Usage:
    python -m schedule_engine.cli --tasks tasks.csv --dependencies dependencies.csv
    python -m schedule_engine.cli --tasks tasks.csv --output schedule.csv --json
    python -m schedule_engine.cli --tasks tasks.csv --impact T3 --delta 5
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from schemas.scheduling import ScheduleRow
from schemas.validator import SchemaValidationError, validated_df_to_csv
from .analysis.critical_path import (
    analyze_critical_path,
    print_critical_path_report,
    schedule_to_dataframe,
)
from .analysis.single_task_impact import analyze_task_impact, print_impact_report
from .config.settings import settings
from .cpm.engine import recompute
from .cpm.errors import SchedulingError
from .data_loader import load_schedule
from .orchestrator import build_schedule_response
from .utils.logger import configure_logging


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    configure_logging('schedule_engine').setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute a CPM schedule from task and dependency CSV files",
    )
    parser.add_argument("--tasks", type=Path, required=True, help="Task CSV file")
    parser.add_argument("--dependencies", type=Path, help="Dependency CSV file")
    parser.add_argument("--project-id", default="default", help="Project id")
    parser.add_argument("--start-date", help="Calendar date of day 0 (YYYY-MM-DD)")
    parser.add_argument("--output", type=Path, help="Write the computed schedule CSV here")
    parser.add_argument("--json", action="store_true", help="Print the schedule as JSON")
    parser.add_argument("--near-critical", type=int, default=None,
                        help="Slack threshold (days) for near-critical tasks")
    parser.add_argument("--impact", metavar="TASK_ID", help="What-if: change this task's duration")
    parser.add_argument("--delta", type=int, default=5, help="Duration change for --impact (days)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    problems = settings.validate_required_settings()
    if problems:
        for problem in problems:
            logger.error(f"Configuration: {problem}")
        return 1

    try:
        network = load_schedule(args.tasks, args.dependencies, args.project_id, args.start_date)
    except (FileNotFoundError, SchemaValidationError, SchedulingError, ValueError) as e:
        logger.error(f"Could not load schedule: {e}")
        return 1

    result = recompute(network)

    if args.json:
        print(json.dumps(build_schedule_response(network, result).model_dump(mode="json", by_alias=True), indent=2))
    else:
        print_critical_path_report(analyze_critical_path(network, args.near_critical))
        for conflict in result.conflicts:
            print(f"  CONFLICT {conflict.task_id}: {conflict.reason}")

    if args.impact:
        try:
            print_impact_report(analyze_task_impact(network, args.impact, args.delta))
        except SchedulingError as e:
            logger.error(str(e))
            return 1

    if args.output:
        validated_df_to_csv(schedule_to_dataframe(result), args.output, schema=ScheduleRow, index=False)
        logger.info(f"Wrote {len(result.tasks)} rows to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
