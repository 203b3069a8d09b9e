"""
Baseline variance.

Compares each task's current earliest dates with the snapshot taken by the
last baseline. Positive variance means the task now runs late.
"""

from typing import Optional

from ..cpm.models import RecomputeResult
from schemas.scheduling import TaskVariance


def _diff(current: Optional[int], baseline: Optional[int]) -> Optional[int]:
    if current is None or baseline is None:
        return None
    return current - baseline


def compute_variance(result: RecomputeResult) -> list[TaskVariance]:
    """
    Per-task start/finish variance against the baseline.

    Tasks created after the baseline have no baseline dates and report
    ``None`` variances.
    """
    rows = []
    for task in result.tasks.values():
        start_var = _diff(task.earliest_start, task.baseline_start)
        finish_var = _diff(task.earliest_finish, task.baseline_finish)
        rows.append(TaskVariance(
            id=task.task_id,
            name=task.name,
            baseline_start=task.baseline_start,
            baseline_finish=task.baseline_finish,
            earliest_start=task.earliest_start,
            earliest_finish=task.earliest_finish,
            start_variance=start_var,
            finish_variance=finish_var,
            is_delayed=(start_var or 0) > 0 or (finish_var or 0) > 0,
        ))
    return rows
