"""Pytest configuration and fixtures."""
import itertools

import pytest
from unittest.mock import MagicMock

from schedule_engine.cpm.models import Dependency, DependencyType, Task
from schedule_engine.cpm.network import TaskNetwork
from schedule_engine.events import InMemoryPublisher
from schedule_engine.orchestrator import ScheduleOrchestrator
from schedule_engine.stores.memory_store import InMemoryScheduleStore


def make_task(task_id, duration=1, project_id='p1', **kwargs) -> Task:
    """Build a Task with short defaults."""
    return Task(
        task_id=task_id,
        project_id=project_id,
        name=kwargs.pop('name', f'Task {task_id}'),
        planned_duration_days=duration,
        **kwargs,
    )


def make_dependency(dep_id, pred, succ, dep_type='FS', lag=0, project_id='p1') -> Dependency:
    """Build a Dependency with short defaults."""
    return Dependency(
        dependency_id=dep_id,
        project_id=project_id,
        predecessor_id=pred,
        successor_id=succ,
        dep_type=DependencyType.parse(dep_type),
        lag_days=lag,
    )


@pytest.fixture
def empty_network() -> TaskNetwork:
    return TaskNetwork('p1')


@pytest.fixture
def sample_network() -> TaskNetwork:
    """
    Small project with one critical chain and one slack branch.

        A(3) -FS-> B(2) -FS-> D(1)
        A(3) -FS-> C(1) -FS-> D(1)
    """
    network = TaskNetwork('p1', start_date='2025-01-06')
    network.add_task(make_task('A', 3))
    network.add_task(make_task('B', 2))
    network.add_task(make_task('C', 1))
    network.add_task(make_task('D', 1))
    network.add_dependency(make_dependency('d1', 'A', 'B'))
    network.add_dependency(make_dependency('d2', 'A', 'C'))
    network.add_dependency(make_dependency('d3', 'B', 'D'))
    network.add_dependency(make_dependency('d4', 'C', 'D'))
    return network


@pytest.fixture
def store() -> InMemoryScheduleStore:
    return InMemoryScheduleStore()


@pytest.fixture
def publisher() -> InMemoryPublisher:
    return InMemoryPublisher()


@pytest.fixture
def orchestrator(store, publisher) -> ScheduleOrchestrator:
    """Orchestrator over an in-memory store with predictable ids."""
    counter = itertools.count(1)
    return ScheduleOrchestrator(
        store=store,
        publisher=publisher,
        id_factory=lambda: f'id{next(counter)}',
    )


@pytest.fixture
def mock_database_connection():
    """Mock database connection."""
    conn = MagicMock()
    conn.cursor.return_value = MagicMock()
    conn.commit.return_value = None
    conn.rollback.return_value = None
    conn.close.return_value = None
    return conn
