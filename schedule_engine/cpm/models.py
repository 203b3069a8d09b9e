"""
Data models for CPM calculations.

Defines dataclasses for tasks, dependencies, conflicts and recompute results.
All dates are integer day offsets from the project start (day 0).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class DependencyType(str, Enum):
    """Dependency relationship between a predecessor and a successor."""

    FS = 'FS'   # successor starts after predecessor finishes
    SS = 'SS'   # successor starts after predecessor starts
    FF = 'FF'   # successor finishes after predecessor finishes
    SF = 'SF'   # successor finishes after predecessor starts

    @classmethod
    def parse(cls, value) -> 'DependencyType':
        """Accept an enum member, a short code or a long name like 'finish_to_start'."""
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        if key.upper() in cls.__members__:
            return cls[key.upper()]
        if key.lower() in _LONG_NAMES:
            return _LONG_NAMES[key.lower()]
        raise ValueError(f"Unknown dependency type: {value!r}")

    @property
    def long_name(self) -> str:
        return {v: k for k, v in _LONG_NAMES.items()}[self]


_LONG_NAMES = {
    'finish_to_start': DependencyType.FS,
    'start_to_start': DependencyType.SS,
    'finish_to_finish': DependencyType.FF,
    'start_to_finish': DependencyType.SF,
}


class SchedulingStatus(str, Enum):
    """Per-task scheduling state after a recompute."""

    UNSCHEDULED = 'unscheduled'
    SCHEDULED = 'scheduled'
    LOCKED = 'locked'
    CONFLICTED = 'conflicted'


@dataclass
class Task:
    """Represents a schedule task/activity."""

    task_id: str
    project_id: str
    name: str
    planned_duration_days: int
    is_milestone: bool = False
    parent_id: Optional[str] = None
    level: int = 0                          # derived from parent chain depth
    progress_percent: int = 0
    sort_order: int = 0

    # Pinned start day (set by move_task)
    manual_constraint: Optional[int] = None

    # Baseline snapshot (set by set_baseline)
    baseline_start: Optional[int] = None
    baseline_finish: Optional[int] = None
    baseline_duration: Optional[int] = None

    # CPM Results (calculated by engine)
    earliest_start: Optional[int] = None
    earliest_finish: Optional[int] = None
    latest_start: Optional[int] = None
    latest_finish: Optional[int] = None
    slack_days: Optional[int] = None
    is_critical: bool = False
    scheduling_status: SchedulingStatus = SchedulingStatus.UNSCHEDULED

    def get_duration(self) -> int:
        """Duration used by the solver (always zero for milestones)."""
        return 0 if self.is_milestone else self.planned_duration_days

    def is_pinned(self) -> bool:
        return self.manual_constraint is not None

    def is_scheduled(self) -> bool:
        return self.scheduling_status != SchedulingStatus.UNSCHEDULED

    def clear_schedule(self) -> None:
        """Reset computed fields before a recompute."""
        self.earliest_start = None
        self.earliest_finish = None
        self.latest_start = None
        self.latest_finish = None
        self.slack_days = None
        self.is_critical = False
        self.scheduling_status = SchedulingStatus.UNSCHEDULED


@dataclass
class Dependency:
    """Represents a predecessor-successor relationship."""

    dependency_id: str
    project_id: str
    predecessor_id: str
    successor_id: str
    dep_type: DependencyType = DependencyType.FS
    lag_days: int = 0       # positive = delay, negative = lead

    def key(self) -> tuple[str, str]:
        """Ordered pair identifying the edge."""
        return (self.predecessor_id, self.successor_id)


@dataclass(frozen=True)
class ConstraintViolation:
    """A pinned start that conflicts with a predecessor-derived minimum."""

    task_id: str
    reason: str
    pinned_start: int
    required_start: int


@dataclass
class RecomputeResult:
    """Results from a CPM recompute."""

    project_id: str
    tasks: dict[str, Task]
    dependencies: list[Dependency]
    critical_path: list[str]       # task_ids in topological order
    project_finish: int
    conflicts: list[ConstraintViolation] = field(default_factory=list)
    version: Optional[int] = None  # store version once committed

    def get_critical_tasks(self) -> list[Task]:
        """Get Task objects on the critical path."""
        return [self.tasks[tid] for tid in self.critical_path if tid in self.tasks]

    def get_tasks_by_slack(self, max_slack_days: Optional[int] = None) -> list[Task]:
        """Get tasks sorted by slack (ascending)."""
        tasks = [t for t in self.tasks.values() if t.slack_days is not None]
        if max_slack_days is not None:
            tasks = [t for t in tasks if t.slack_days <= max_slack_days]
        return sorted(tasks, key=lambda t: (t.slack_days, t.earliest_start))

    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def get_conflict(self, task_id: str) -> Optional[ConstraintViolation]:
        for conflict in self.conflicts:
            if conflict.task_id == task_id:
                return conflict
        return None


@dataclass
class TaskImpactResult:
    """Results from a speculative single-change analysis."""

    task_id: str
    task_name: str
    duration_delta_days: int
    original_finish: int
    new_finish: int
    slip_days: int
    affected_task_ids: list[str]
    original_critical_path: list[str]
    new_critical_path: list[str]
    critical_path_changed: bool

    def get_slip_summary(self) -> str:
        """Get human-readable slip summary."""
        if self.slip_days <= 0:
            return "No impact on project finish"
        return f"{self.slip_days} days slip"


@dataclass
class CriticalPathResult:
    """Results from critical path analysis."""

    critical_path: list[Task]
    near_critical_tasks: list[Task]
    slack_distribution: dict[str, int]  # slack_bucket -> count
    project_finish: int
    near_critical_threshold_days: int
    total_tasks: int

    def get_critical_path_length(self) -> int:
        """Number of tasks on critical path."""
        return len(self.critical_path)

    def get_risk_summary(self) -> str:
        """Get summary of schedule risk."""
        critical = len(self.critical_path)
        near_critical = len(self.near_critical_tasks)
        return (f"{critical} critical tasks, {near_critical} near-critical "
                f"(<= {self.near_critical_threshold_days} days slack)")
