"""
Schedule recalculation orchestrator.

Public entry point of the engine. Every mutation runs under a per-project
lock as load -> validate -> mutate -> recompute, then persists the result with
an optimistic version check and publishes it. A version conflict re-runs the
whole sequence from fresh state, up to ``settings.SCHEDULE_MAX_RETRIES`` times.
Saves and publishes for one project are serialized, so subscribers see
events in version order.
"""

import logging
import threading
import uuid
from datetime import date, datetime
from typing import Any, Callable, Optional, TypeVar, Union

from pydantic import ValidationError

from schedule_engine.analysis.baseline import compute_variance
from schedule_engine.analysis.critical_path import analyze_critical_path
from schedule_engine.analysis.gantt import build_gantt_data
from schedule_engine.analysis.single_task_impact import analyze_task_impact
from schedule_engine.config.settings import settings
from schedule_engine.cpm.dates import date_to_day
from schedule_engine.cpm.engine import CPMEngine, recompute
from schedule_engine.cpm.errors import (
    ConcurrentModificationError,
    InvalidTaskError,
    UnknownDependencyError,
    UnknownTaskError,
)
from schedule_engine.cpm.models import (
    CriticalPathResult,
    Dependency,
    DependencyType,
    RecomputeResult,
    Task,
    TaskImpactResult,
)
from schedule_engine.cpm.network import TaskNetwork
from schedule_engine.cpm.validator import validate_dependency
from schedule_engine.events import EventPublisher, NullPublisher
from schedule_engine.stores.base_store import ScheduleStore
from schedule_engine.stores.memory_store import InMemoryScheduleStore
from schemas.scheduling import (
    ConflictOut,
    DependencyOut,
    ScheduleResponse,
    TaskCreate,
    TaskSchedule,
    TaskVariance,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

StartDay = Union[int, date, str, None]


class ScheduleOrchestrator:
    """
    Serialize schedule edits per project and keep computed dates current.

    Args:
        store: Persistence collaborator (default: in-memory store)
        publisher: Event collaborator notified after each committed recompute
        max_retries: Attempts before a version conflict is surfaced
        id_factory: Callable producing new task/dependency ids
    """

    def __init__(
        self,
        store: Optional[ScheduleStore] = None,
        publisher: Optional[EventPublisher] = None,
        max_retries: Optional[int] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.store = store or InMemoryScheduleStore()
        self.publisher = publisher or NullPublisher()
        self.max_retries = settings.SCHEDULE_MAX_RETRIES if max_retries is None else max_retries
        if self.max_retries < 1:
            raise ValueError(f'max_retries must be at least 1, got {self.max_retries}')
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._locks: dict[str, threading.Lock] = {}
        self._commit_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Critical section
    # ------------------------------------------------------------------

    def _lock_in(self, locks: dict[str, threading.Lock], project_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = locks.get(project_id)
            if lock is None:
                lock = locks[project_id] = threading.Lock()
            return lock

    def _project_lock(self, project_id: str) -> threading.Lock:
        """Guards load, mutate and recompute."""
        return self._lock_in(self._locks, project_id)

    def _commit_lock(self, project_id: str) -> threading.Lock:
        """Guards save and publish, so events go out in version order."""
        return self._lock_in(self._commit_locks, project_id)

    def _execute(
        self,
        project_id: str,
        operation: str,
        mutate: Callable[[TaskNetwork], T],
    ) -> tuple[T, RecomputeResult]:
        """
        Run ``mutate`` against fresh state, recompute, persist and publish.

        ``mutate`` must validate before changing the network; any exception
        it raises aborts the attempt with nothing persisted.
        """
        for attempt in range(1, self.max_retries + 1):
            with self._project_lock(project_id):
                network, version = self.store.load(project_id)
                value = mutate(network)
                result = CPMEngine(network).run()

            with self._commit_lock(project_id):
                try:
                    result.version = self.store.save(project_id, network, version)
                except ConcurrentModificationError:
                    if attempt == self.max_retries:
                        logger.error(
                            f'{operation} on {project_id} gave up after {attempt} attempts'
                        )
                        raise
                    logger.warning(
                        f'{operation} on {project_id} hit a version conflict '
                        f'(attempt {attempt}/{self.max_retries}), retrying'
                    )
                    continue

                logger.info(
                    f'{operation} on {project_id} (v{result.version}): {len(result.tasks)} tasks, '
                    f'finish day {result.project_finish}, {len(result.conflicts)} conflicts'
                )
                self.publisher.publish(project_id, result)
            return value, result

        raise ConcurrentModificationError(project_id, -1)

    def _project_for_task(self, task_id: str) -> str:
        project_id = self.store.find_project_for_task(task_id)
        if project_id is None:
            raise UnknownTaskError(task_id)
        return project_id

    def _project_for_dependency(self, dependency_id: str) -> str:
        project_id = self.store.find_project_for_dependency(dependency_id)
        if project_id is None:
            raise UnknownDependencyError(dependency_id)
        return project_id

    # ------------------------------------------------------------------
    # Structural operations
    # ------------------------------------------------------------------

    def create_task(self, project_id: str, data: Union[TaskCreate, dict]) -> Task:
        """
        Create a task and recompute the project.

        Args:
            project_id: Owning project
            data: TaskCreate payload or an equivalent dict (snake_case or camelCase keys)

        Returns:
            The new task with its computed dates
        """
        try:
            payload = data if isinstance(data, TaskCreate) else TaskCreate.model_validate(data)
        except ValidationError as e:
            raise InvalidTaskError(f'Invalid task payload: {e}') from e

        task_id = payload.task_id or self._new_id()

        def mutate(network: TaskNetwork) -> str:
            if task_id in network or self.store.find_project_for_task(task_id) not in (None, project_id):
                raise InvalidTaskError(f'Task {task_id} already exists')
            if payload.parent_id is not None and payload.parent_id not in network:
                raise UnknownTaskError(payload.parent_id, project_id)
            network.add_task(Task(
                task_id=task_id,
                project_id=project_id,
                name=payload.name,
                planned_duration_days=payload.planned_duration_days,
                is_milestone=payload.is_milestone,
                parent_id=payload.parent_id,
                progress_percent=payload.progress_percent,
                sort_order=payload.sort_order,
            ))
            return task_id

        _, result = self._execute(project_id, 'create_task', mutate)
        return result.tasks[task_id]

    def delete_task(self, task_id: str) -> None:
        """Delete a task and every dependency referencing it."""
        project_id = self._project_for_task(task_id)

        def mutate(network: TaskNetwork) -> list[Dependency]:
            network.get_task(task_id)
            return network.remove_task(task_id)

        removed, _ = self._execute(project_id, 'delete_task', mutate)
        logger.debug(f'Deleted {task_id} with {len(removed)} dependencies')

    def create_dependency(
        self,
        project_id: str,
        predecessor_id: str,
        successor_id: str,
        dep_type: Union[DependencyType, str] = DependencyType.FS,
        lag_days: int = 0,
    ) -> Dependency:
        """
        Link two tasks and recompute the project.

        Raises:
            UnknownTaskError, SelfLinkError, DuplicateDependencyError, CycleError
        """
        dependency = Dependency(
            dependency_id=self._new_id(),
            project_id=project_id,
            predecessor_id=predecessor_id,
            successor_id=successor_id,
            dep_type=DependencyType.parse(dep_type),
            lag_days=_check_lag(lag_days),
        )

        def mutate(network: TaskNetwork) -> Dependency:
            validate_dependency(network, predecessor_id, successor_id)
            network.add_dependency(dependency)
            return dependency

        created, _ = self._execute(project_id, 'create_dependency', mutate)
        return created

    def delete_dependency(self, dependency_id: str) -> None:
        """Remove a dependency and recompute the project."""
        project_id = self._project_for_dependency(dependency_id)
        self._execute(project_id, 'delete_dependency',
                      lambda network: network.remove_dependency(dependency_id))

    # ------------------------------------------------------------------
    # Constraint operations
    # ------------------------------------------------------------------

    def move_task(self, task_id: str, new_start: StartDay) -> RecomputeResult:
        """
        Pin a task's start. ``None`` removes the pin.

        Args:
            task_id: Task to pin
            new_start: Day offset, or a calendar date when the project has a start date

        Returns:
            RecomputeResult; a pin earlier than the predecessor-driven minimum
            is accepted and reported in ``conflicts``.
        """
        project_id = self._project_for_task(task_id)

        def mutate(network: TaskNetwork) -> None:
            task = network.get_task(task_id)
            task.manual_constraint = _to_day(network, new_start)

        _, result = self._execute(project_id, 'move_task', mutate)
        return result

    def set_duration(self, task_id: str, days: int) -> RecomputeResult:
        """Change a task's planned duration and recompute."""
        project_id = self._project_for_task(task_id)

        def mutate(network: TaskNetwork) -> None:
            task = network.get_task(task_id)
            _check_duration(task, days)
            task.planned_duration_days = days

        _, result = self._execute(project_id, 'set_duration', mutate)
        return result

    def update_progress(self, task_id: str, percent: int) -> Task:
        """Record percent complete. Progress does not move dates."""
        if not isinstance(percent, int) or not 0 <= percent <= 100:
            raise InvalidTaskError(f'Progress must be an integer from 0 to 100, got {percent!r}')
        project_id = self._project_for_task(task_id)

        def mutate(network: TaskNetwork) -> None:
            network.get_task(task_id).progress_percent = percent

        _, result = self._execute(project_id, 'update_progress', mutate)
        return result.tasks[task_id]

    def set_project_start(self, project_id: str, start_date: Union[date, str, None]) -> RecomputeResult:
        """Set the calendar date that day 0 maps to."""
        if isinstance(start_date, str):
            start_date = date.fromisoformat(start_date)

        def mutate(network: TaskNetwork) -> None:
            network.start_date = start_date.isoformat() if start_date else None

        _, result = self._execute(project_id, 'set_project_start', mutate)
        return result

    def set_baseline(self, project_id: str) -> int:
        """
        Snapshot current earliest dates and durations as the baseline.

        Returns:
            Number of tasks updated
        """
        def mutate(network: TaskNetwork) -> int:
            for task in network.tasks.values():
                task.baseline_start = task.earliest_start
                task.baseline_finish = task.earliest_finish
                task.baseline_duration = task.get_duration()
            return len(network.tasks)

        count, _ = self._execute(project_id, 'set_baseline', mutate)
        return count

    # ------------------------------------------------------------------
    # Read-only / speculative operations
    # ------------------------------------------------------------------

    def _load_computed(self, project_id: str) -> tuple[TaskNetwork, RecomputeResult]:
        network, _ = self.store.load(project_id)
        return network, recompute(network)

    def get_schedule(self, project_id: str) -> ScheduleResponse:
        """Current computed schedule with dependencies and conflicts."""
        network, result = self._load_computed(project_id)
        return build_schedule_response(network, result)

    def preview_dependency(
        self,
        project_id: str,
        predecessor_id: str,
        successor_id: str,
        dep_type: Union[DependencyType, str] = DependencyType.FS,
        lag_days: int = 0,
    ) -> RecomputeResult:
        """
        Compute the effect of a dependency without committing it.

        Raises the same validation errors as create_dependency.
        """
        network, _ = self.store.load(project_id)
        validate_dependency(network, predecessor_id, successor_id)
        network.add_dependency(Dependency(
            dependency_id=f'preview-{self._new_id()}',
            project_id=project_id,
            predecessor_id=predecessor_id,
            successor_id=successor_id,
            dep_type=DependencyType.parse(dep_type),
            lag_days=_check_lag(lag_days),
        ))
        return CPMEngine(network).run()

    def get_critical_path(self, project_id: str) -> list[Task]:
        """Critical tasks ordered by earliest start."""
        _, result = self._load_computed(project_id)
        return sorted(result.get_critical_tasks(),
                      key=lambda t: (t.earliest_start, t.earliest_finish))

    def analyze_critical_path(self, project_id: str,
                              near_critical_threshold_days: Optional[int] = None) -> CriticalPathResult:
        network, _ = self.store.load(project_id)
        return analyze_critical_path(network, near_critical_threshold_days)

    def analyze_task_impact(self, task_id: str, duration_delta_days: int) -> TaskImpactResult:
        """What-if: effect of changing one task's duration, never persisted."""
        network, _ = self.store.load(self._project_for_task(task_id))
        return analyze_task_impact(network, task_id, duration_delta_days)

    def get_schedule_variance(self, project_id: str) -> list[TaskVariance]:
        """Per-task variance against the last baseline."""
        _, result = self._load_computed(project_id)
        return compute_variance(result)

    def get_gantt_data(self, project_id: str) -> dict[str, Any]:
        """WBS-ordered rows for chart rendering."""
        network, result = self._load_computed(project_id)
        return build_gantt_data(network, result)

    def delete_project(self, project_id: str) -> bool:
        with self._project_lock(project_id):
            return self.store.delete_project(project_id)


def _check_duration(task: Task, days: Any) -> None:
    if not isinstance(days, int) or isinstance(days, bool) or days < 0:
        raise InvalidTaskError(f'Duration must be a non-negative integer, got {days!r}')
    if task.is_milestone and days != 0:
        raise InvalidTaskError(f'Milestone {task.task_id} must keep a duration of 0 days')
    if not task.is_milestone and days == 0:
        raise InvalidTaskError(f'Only milestones may have a duration of 0 days ({task.task_id})')


def _check_lag(lag_days: Any) -> int:
    if not isinstance(lag_days, int) or isinstance(lag_days, bool):
        raise InvalidTaskError(f'Lag must be a whole number of days, got {lag_days!r}')
    return lag_days


def _to_day(network: TaskNetwork, value: StartDay) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value)
        except ValueError as e:
            raise InvalidTaskError(f'Invalid start date {value!r}: {e}') from e
    # datetime is a date subclass but cannot be subtracted from one
    if not isinstance(value, date) or isinstance(value, datetime):
        raise InvalidTaskError(f'Invalid start: {value!r}')
    if network.start_date is None:
        raise InvalidTaskError(
            f'Project {network.project_id} has no start date; pin with a day offset'
        )
    return date_to_day(network.start_date, value)


def build_schedule_response(network: TaskNetwork, result: RecomputeResult) -> ScheduleResponse:
    return ScheduleResponse(
        project_id=network.project_id,
        start_date=network.start_date,
        project_finish=result.project_finish,
        tasks=[
            TaskSchedule(
                id=t.task_id,
                name=t.name,
                parent_id=t.parent_id,
                level=t.level,
                is_milestone=t.is_milestone,
                planned_duration_days=t.planned_duration_days,
                progress_percent=t.progress_percent,
                manual_constraint=t.manual_constraint,
                earliest_start=t.earliest_start,
                earliest_finish=t.earliest_finish,
                latest_start=t.latest_start,
                latest_finish=t.latest_finish,
                slack_days=t.slack_days,
                is_critical=t.is_critical,
                scheduling_status=t.scheduling_status.value,
            )
            for t in result.tasks.values()
        ],
        dependencies=[
            DependencyOut(
                id=d.dependency_id,
                predecessor_id=d.predecessor_id,
                successor_id=d.successor_id,
                type=d.dep_type.value,
                lag_days=d.lag_days,
            )
            for d in result.dependencies
        ],
        conflicts=[ConflictOut(task_id=c.task_id, reason=c.reason) for c in result.conflicts],
        critical_path=list(result.critical_path),
    )
