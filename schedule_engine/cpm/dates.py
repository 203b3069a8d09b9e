"""
Date arithmetic for dependency constraints.

Each dependency type maps to one forward function (bound on the successor's
earliest start) and one backward function (bound on the predecessor's latest
finish). Dates are integer day offsets; no working calendar is applied.
"""

from datetime import date, timedelta
from typing import Callable, Optional

from .models import Dependency, DependencyType, Task


def finish_from_start(start: int, task: Task) -> int:
    """Finish day for a task starting on ``start`` (milestones finish on start)."""
    return start + task.get_duration()


def start_from_finish(finish: int, task: Task) -> int:
    return finish - task.get_duration()


# Forward: (pred, succ, lag) -> minimum earliest start for succ

def _fs_forward(pred: Task, succ: Task, lag: int) -> int:
    return pred.earliest_finish + lag


def _ss_forward(pred: Task, succ: Task, lag: int) -> int:
    return pred.earliest_start + lag


def _ff_forward(pred: Task, succ: Task, lag: int) -> int:
    # succ.EF >= pred.EF + lag
    return start_from_finish(pred.earliest_finish + lag, succ)


def _sf_forward(pred: Task, succ: Task, lag: int) -> int:
    # succ.EF >= pred.ES + lag
    return start_from_finish(pred.earliest_start + lag, succ)


# Backward: (pred, succ, lag) -> maximum latest finish for pred

def _fs_backward(pred: Task, succ: Task, lag: int) -> int:
    return succ.latest_start - lag


def _ss_backward(pred: Task, succ: Task, lag: int) -> int:
    # pred.LS <= succ.LS - lag
    return finish_from_start(succ.latest_start - lag, pred)


def _ff_backward(pred: Task, succ: Task, lag: int) -> int:
    return succ.latest_finish - lag


def _sf_backward(pred: Task, succ: Task, lag: int) -> int:
    # pred.LS <= succ.LF - lag
    return finish_from_start(succ.latest_finish - lag, pred)


ConstraintFn = Callable[[Task, Task, int], int]

FORWARD_CONSTRAINTS: dict[DependencyType, ConstraintFn] = {
    DependencyType.FS: _fs_forward,
    DependencyType.SS: _ss_forward,
    DependencyType.FF: _ff_forward,
    DependencyType.SF: _sf_forward,
}

BACKWARD_CONSTRAINTS: dict[DependencyType, ConstraintFn] = {
    DependencyType.FS: _fs_backward,
    DependencyType.SS: _ss_backward,
    DependencyType.FF: _ff_backward,
    DependencyType.SF: _sf_backward,
}


def driven_earliest_start(dep: Dependency, pred: Task, succ: Task) -> Optional[int]:
    """
    Earliest start imposed on ``succ`` by ``dep``.

    Returns None while the predecessor has no early dates yet.
    """
    if pred.earliest_start is None or pred.earliest_finish is None:
        return None
    return FORWARD_CONSTRAINTS[dep.dep_type](pred, succ, dep.lag_days)


def driven_latest_finish(dep: Dependency, pred: Task, succ: Task) -> Optional[int]:
    """
    Latest finish imposed on ``pred`` by ``dep``.

    This is the reverse of driven_earliest_start.
    """
    if succ.latest_start is None or succ.latest_finish is None:
        return None
    return BACKWARD_CONSTRAINTS[dep.dep_type](pred, succ, dep.lag_days)


def day_to_date(start_date: Optional[str], day: Optional[int]) -> Optional[date]:
    """Convert a day offset to a calendar date given the project's ISO start date."""
    if start_date is None or day is None:
        return None
    return date.fromisoformat(start_date) + timedelta(days=day)


def date_to_day(start_date: str, value: date) -> int:
    """Convert a calendar date to a day offset from the project start."""
    return (value - date.fromisoformat(start_date)).days
