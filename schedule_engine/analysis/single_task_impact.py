"""
What-if analysis for one task at a time.

Lengthens or shortens a task on a cloned network and compares the project
finish and critical path before and after. Nothing is persisted.
"""

import logging
from typing import Optional

from ..cpm.engine import CPMEngine
from ..cpm.errors import SchedulingError, UnknownTaskError
from ..cpm.models import TaskImpactResult
from ..cpm.network import TaskNetwork

logger = logging.getLogger(__name__)


def analyze_task_impact(
    network: TaskNetwork,
    task_id: str,
    duration_delta_days: int,
) -> TaskImpactResult:
    """
    Recompute a copy of the network with one duration changed.

    Args:
        network: Source network (left untouched)
        task_id: Task whose duration changes
        duration_delta_days: Change in duration (positive = increase)

    Returns:
        TaskImpactResult with original vs new finish and affected tasks
    """
    if task_id not in network:
        raise UnknownTaskError(task_id, network.project_id)

    task = network.tasks[task_id]

    baseline_network = network.clone()
    baseline_result = CPMEngine(baseline_network).run()

    modified_network = network.clone()
    modified_task = modified_network.tasks[task_id]
    if not modified_task.is_milestone:
        # A working task keeps at least one day
        modified_task.planned_duration_days = max(1, task.planned_duration_days + duration_delta_days)
    modified_result = CPMEngine(modified_network).run()

    affected = [
        tid for tid, t in modified_result.tasks.items()
        if t.earliest_finish != baseline_result.tasks[tid].earliest_finish
    ]

    return TaskImpactResult(
        task_id=task_id,
        task_name=task.name,
        duration_delta_days=duration_delta_days,
        original_finish=baseline_result.project_finish,
        new_finish=modified_result.project_finish,
        slip_days=modified_result.project_finish - baseline_result.project_finish,
        affected_task_ids=affected,
        original_critical_path=baseline_result.critical_path,
        new_critical_path=modified_result.critical_path,
        critical_path_changed=set(baseline_result.critical_path) != set(modified_result.critical_path),
    )


def analyze_task_sensitivity(
    network: TaskNetwork,
    task_ids: Optional[list[str]] = None,
    duration_delta_days: int = 5,
) -> list[TaskImpactResult]:
    """
    Rank tasks by how far the same duration increase moves the finish.

    Args:
        network: Source network
        task_ids: Task IDs to analyze (default: all non-milestone tasks)
        duration_delta_days: Duration increase to test

    Returns:
        List of TaskImpactResult sorted by slip_days (descending)
    """
    if task_ids is None:
        task_ids = [t.task_id for t in network.tasks.values() if not t.is_milestone]

    results = []
    for task_id in task_ids:
        try:
            results.append(analyze_task_impact(network, task_id, duration_delta_days))
        except SchedulingError as e:
            logger.warning(f"Skipping {task_id}: {e}")

    results.sort(key=lambda r: r.slip_days, reverse=True)
    return results


def print_impact_report(result: TaskImpactResult) -> None:
    """Print an impact summary to stdout."""
    print("=" * 70)
    print("TASK IMPACT ANALYSIS (what-if)")
    print("=" * 70)

    print(f"\nTask: {result.task_id}")
    print(f"Task name: {result.task_name}")
    print(f"Duration Change: {result.duration_delta_days:+d} days")

    print(f"\nProject Finish:")
    print(f"  Original: day {result.original_finish}")
    print(f"  New:      day {result.new_finish}")
    print(f"  Impact:   {result.get_slip_summary()}")

    print(f"\nAffected tasks: {len(result.affected_task_ids)}")
    if result.critical_path_changed:
        print("Critical path changed")
