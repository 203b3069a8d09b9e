"""
Critical Path Analysis.

Identifies critical and near-critical tasks, analyzes slack distribution,
and renders the computed schedule as a table.
"""

from collections import defaultdict
from typing import Optional

import pandas as pd

from ..config.settings import settings
from ..cpm.engine import recompute
from ..cpm.models import CriticalPathResult, RecomputeResult
from ..cpm.network import TaskNetwork

SCHEDULE_COLUMNS = [
    'task_id', 'name', 'duration_days', 'earliest_start', 'earliest_finish',
    'latest_start', 'latest_finish', 'slack_days', 'is_critical', 'scheduling_status',
]


def _slack_bucket(slack: int) -> str:
    if slack <= 0:
        return '0 (critical)'
    elif slack <= 5:
        return '1-5 days'
    elif slack <= 10:
        return '6-10 days'
    elif slack <= 20:
        return '11-20 days'
    return '> 20 days'


def analyze_critical_path(
    network: TaskNetwork,
    near_critical_threshold_days: Optional[int] = None,
) -> CriticalPathResult:
    """
    Analyze critical path and near-critical tasks.

    Args:
        network: Task network to analyze (not modified)
        near_critical_threshold_days: Slack threshold for near-critical
            classification (default: settings.NEAR_CRITICAL_THRESHOLD_DAYS)

    Returns:
        CriticalPathResult with critical path, near-critical tasks, and statistics
    """
    if near_critical_threshold_days is None:
        near_critical_threshold_days = settings.NEAR_CRITICAL_THRESHOLD_DAYS

    result = recompute(network)

    critical = []
    near_critical = []
    slack_buckets = defaultdict(int)

    for task in result.tasks.values():
        slack_buckets[_slack_bucket(task.slack_days)] += 1
        if task.slack_days == 0:
            critical.append(task)
        elif task.slack_days <= near_critical_threshold_days:
            near_critical.append(task)

    critical.sort(key=lambda t: (t.earliest_start, t.earliest_finish))
    near_critical.sort(key=lambda t: (t.slack_days, t.earliest_start))

    return CriticalPathResult(
        critical_path=critical,
        near_critical_tasks=near_critical,
        slack_distribution=dict(slack_buckets),
        project_finish=result.project_finish,
        near_critical_threshold_days=near_critical_threshold_days,
        total_tasks=len(result.tasks),
    )


def schedule_to_dataframe(result: RecomputeResult) -> pd.DataFrame:
    """One row per task in topological order, columns as in schedule.csv."""
    records = [
        {
            'task_id': t.task_id,
            'name': t.name,
            'duration_days': t.get_duration(),
            'earliest_start': t.earliest_start,
            'earliest_finish': t.earliest_finish,
            'latest_start': t.latest_start,
            'latest_finish': t.latest_finish,
            'slack_days': t.slack_days,
            'is_critical': t.is_critical,
            'scheduling_status': t.scheduling_status.value,
        }
        for t in result.tasks.values()
    ]
    return pd.DataFrame(records, columns=SCHEDULE_COLUMNS)


def print_critical_path_report(result: CriticalPathResult) -> None:
    """Print a formatted critical path report."""
    print("=" * 80)
    print("CRITICAL PATH ANALYSIS REPORT")
    print("=" * 80)

    print(f"\nProject Finish: day {result.project_finish}")
    print(f"Total Tasks: {result.total_tasks}")
    print(f"Critical Tasks: {len(result.critical_path)}")
    print(f"Near-Critical Tasks (<= {result.near_critical_threshold_days} days slack): "
          f"{len(result.near_critical_tasks)}")

    print("\n--- Slack Distribution ---")
    for bucket, count in sorted(result.slack_distribution.items()):
        pct = count / max(1, result.total_tasks) * 100
        bar = '#' * int(pct / 2)
        print(f"  {bucket:15s}: {count:5d} ({pct:5.1f}%) {bar}")

    print("\n--- Critical Path (first 20 tasks) ---")
    for i, task in enumerate(result.critical_path[:20]):
        print(f"  {i+1:3d}. {task.task_id:20s} | {task.name[:40]:40s} | "
              f"day {task.earliest_start}-{task.earliest_finish}")

    if result.near_critical_tasks:
        print("\n--- Near-Critical (first 10 tasks) ---")
        for task in result.near_critical_tasks[:10]:
            print(f"  {task.task_id:20s} | {task.name[:40]:40s} | {task.slack_days}d slack")
