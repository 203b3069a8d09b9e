"""
Gantt chart data export.

Flattens the WBS hierarchy depth-first (siblings by sort order) into rows
carrying level, computed dates and incoming dependencies.
"""

from typing import Any, Optional

from ..cpm.dates import day_to_date
from ..cpm.models import RecomputeResult, Task
from ..cpm.network import TaskNetwork


def _iso(start_date: Optional[str], day: Optional[int]) -> Optional[str]:
    value = day_to_date(start_date, day)
    return value.isoformat() if value else None


def _row(network: TaskNetwork, task: Task, level: int) -> dict[str, Any]:
    return {
        'id': task.task_id,
        'name': task.name,
        'start': task.earliest_start,
        'end': task.earliest_finish,
        'startDate': _iso(network.start_date, task.earliest_start),
        'endDate': _iso(network.start_date, task.earliest_finish),
        'duration': task.get_duration(),
        'progress': task.progress_percent,
        'dependencies': [
            {'id': dep.predecessor_id, 'type': dep.dep_type.value, 'lag': dep.lag_days}
            for dep in network.incoming(task.task_id)
        ],
        'isMilestone': task.is_milestone,
        'isCritical': task.is_critical,
        'slack': task.slack_days,
        'status': task.scheduling_status.value,
        'level': level,
        'parentId': task.parent_id,
    }


def build_gantt_data(network: TaskNetwork, result: RecomputeResult) -> dict[str, Any]:
    """
    Build chart rows for a project.

    Args:
        network: Project network (hierarchy and dependencies)
        result: Computed schedule for the same network

    Returns:
        Dict with ``project`` summary and ordered ``tasks`` rows
    """
    rows: list[dict[str, Any]] = []
    stack = [(child, 0) for child in reversed(network.get_children(None))]
    while stack:
        task, level = stack.pop()
        rows.append(_row(network, result.tasks[task.task_id], level))
        for child in reversed(network.get_children(task.task_id)):
            stack.append((child, level + 1))

    return {
        'project': {
            'id': network.project_id,
            'startDate': network.start_date,
            'finish': result.project_finish,
            'endDate': _iso(network.start_date, result.project_finish),
        },
        'tasks': rows,
    }
