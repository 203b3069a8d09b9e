"""
CPM (Critical Path Method) Engine.

Implements forward and backward pass calculations over a project's task
network, slack calculation, critical path identification and the per-task
scheduling status.
"""

import logging

from .dates import driven_earliest_start, driven_latest_finish, finish_from_start, start_from_finish
from .models import ConstraintViolation, RecomputeResult, SchedulingStatus, Task
from .network import TaskNetwork

logger = logging.getLogger(__name__)

PROJECT_START_DAY = 0


class CPMEngine:
    """
    CPM calculation engine.

    Performs forward pass (early dates), backward pass (late dates),
    slack calculation, and critical path identification. Computed fields of
    the network's tasks are overwritten in place; use ``recompute`` for a
    side-effect free run.
    """

    def __init__(self, network: TaskNetwork):
        """
        Initialize CPM engine.

        Args:
            network: Task network to calculate
        """
        self.network = network
        self.conflicts: list[ConstraintViolation] = []

    def forward_pass(self, order: list[str]) -> None:
        """
        Calculate earliest start and earliest finish for all tasks.

        Processes tasks in topological order. A task's derived minimum start
        is the latest of the project start and every incoming dependency's
        constraint. A pinned start at or after that minimum is kept (Locked);
        an earlier pin is recorded as a conflict and the minimum wins.
        """
        self.conflicts = []

        for task_id in order:
            task = self.network.tasks[task_id]

            required = PROJECT_START_DAY
            driver = None
            for dep in self.network.incoming(task_id):
                pred = self.network.tasks[dep.predecessor_id]
                driven = driven_earliest_start(dep, pred, task)
                if driven is not None and driven > required:
                    required = driven
                    driver = dep

            if not task.is_pinned():
                task.earliest_start = required
                task.scheduling_status = SchedulingStatus.SCHEDULED
            elif task.manual_constraint >= required:
                task.earliest_start = task.manual_constraint
                task.scheduling_status = SchedulingStatus.LOCKED
            else:
                task.earliest_start = required
                task.scheduling_status = SchedulingStatus.CONFLICTED
                self.conflicts.append(self._conflict(task, required, driver))

            task.earliest_finish = finish_from_start(task.earliest_start, task)

    def _conflict(self, task: Task, required: int, driver) -> ConstraintViolation:
        if driver is None:
            reason = (f"Pinned start day {task.manual_constraint} is before "
                      f"the project start (day {required})")
        else:
            reason = (f"Pinned start day {task.manual_constraint} is before day {required} "
                      f"required by {driver.dep_type.value} dependency "
                      f"{driver.dependency_id} from {driver.predecessor_id} "
                      f"(lag {driver.lag_days})")
        logger.debug(f"Conflict on {task.task_id}: {reason}")
        return ConstraintViolation(
            task_id=task.task_id,
            reason=reason,
            pinned_start=task.manual_constraint,
            required_start=required,
        )

    def backward_pass(self, order: list[str]) -> int:
        """
        Calculate latest start and latest finish for all tasks.

        Processes tasks in reverse topological order, seeded from the latest
        earliest finish among sink tasks.

        Returns:
            The project finish day.
        """
        sinks = self.network.get_end_tasks()
        project_finish = max(
            (self.network.tasks[tid].earliest_finish for tid in sinks),
            default=PROJECT_START_DAY,
        )

        for task_id in reversed(order):
            task = self.network.tasks[task_id]
            successors = self.network.outgoing(task_id)

            if not successors:
                late_finish = project_finish
            else:
                late_finish = None
                for dep in successors:
                    succ = self.network.tasks[dep.successor_id]
                    driven = driven_latest_finish(dep, task, succ)
                    if late_finish is None or driven < late_finish:
                        late_finish = driven

            task.latest_finish = late_finish
            task.latest_start = start_from_finish(late_finish, task)

        return project_finish

    def calculate_slack(self) -> None:
        """
        Calculate total slack for all tasks.

        Slack = Latest Start - Earliest Start; zero-slack tasks are critical.
        Every zero-slack task is flagged, so parallel critical chains all show.
        """
        for task in self.network.tasks.values():
            task.slack_days = task.latest_start - task.earliest_start
            task.is_critical = task.slack_days == 0

    def get_critical_path(self, order: list[str]) -> list[str]:
        """Return critical task IDs in execution order."""
        return [tid for tid in order if self.network.tasks[tid].is_critical]

    def run(self) -> RecomputeResult:
        """
        Execute full CPM calculation.

        Returns:
            RecomputeResult holding copies of the computed tasks
        """
        for task in self.network.tasks.values():
            task.clear_schedule()

        order = self.network.topological_order()
        self.forward_pass(order)
        project_finish = self.backward_pass(order)
        self.calculate_slack()
        critical_path = self.get_critical_path(order)

        logger.debug(
            f"Recomputed {self.network.project_id}: {len(order)} tasks, "
            f"finish day {project_finish}, {len(critical_path)} critical, "
            f"{len(self.conflicts)} conflicts"
        )

        snapshot = self.network.clone()
        return RecomputeResult(
            project_id=self.network.project_id,
            tasks={tid: snapshot.tasks[tid] for tid in order},
            dependencies=list(snapshot.dependencies.values()),
            critical_path=critical_path,
            project_finish=project_finish,
            conflicts=list(self.conflicts),
        )


def recompute(network: TaskNetwork) -> RecomputeResult:
    """Compute a schedule without touching ``network`` (speculative preview)."""
    return CPMEngine(network.clone()).run()
