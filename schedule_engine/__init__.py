"""
Project schedule engine.

Dependency-aware critical path scheduling for project tasks:

    from schedule_engine import ScheduleOrchestrator

    engine = ScheduleOrchestrator()
    a = engine.create_task('p1', {'name': 'Framing', 'planned_duration_days': 3})
    b = engine.create_task('p1', {'name': 'Drywall', 'planned_duration_days': 2})
    engine.create_dependency('p1', a.task_id, b.task_id, 'FS', 0)
    engine.get_schedule('p1')
"""

from .cpm import (
    Task,
    Dependency,
    DependencyType,
    SchedulingStatus,
    ConstraintViolation,
    RecomputeResult,
    TaskNetwork,
    CPMEngine,
    recompute,
    SchedulingError,
    UnknownTaskError,
    UnknownDependencyError,
    DuplicateIdError,
    InvalidTaskError,
    SelfLinkError,
    DuplicateDependencyError,
    CycleError,
    CycleDetectedError,
    ConcurrentModificationError,
)
from .orchestrator import ScheduleOrchestrator

__version__ = '0.1.0'

__all__ = [
    'Task',
    'Dependency',
    'DependencyType',
    'SchedulingStatus',
    'ConstraintViolation',
    'RecomputeResult',
    'TaskNetwork',
    'CPMEngine',
    'recompute',
    'SchedulingError',
    'UnknownTaskError',
    'UnknownDependencyError',
    'DuplicateIdError',
    'InvalidTaskError',
    'SelfLinkError',
    'DuplicateDependencyError',
    'CycleError',
    'CycleDetectedError',
    'ConcurrentModificationError',
    'ScheduleOrchestrator',
]
