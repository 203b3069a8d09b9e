"""
CPM (Critical Path Method) scheduling core.

This module provides:
- Task network storage with dependency handling
- Dependency validation (self-links, duplicates, cycles)
- Per-type dependency date arithmetic
- Forward/backward pass CPM calculations
- Slack and critical path identification
"""

from .models import (
    Task,
    Dependency,
    DependencyType,
    SchedulingStatus,
    ConstraintViolation,
    RecomputeResult,
    TaskImpactResult,
    CriticalPathResult,
)
from .errors import (
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
from .network import TaskNetwork
from .validator import validate_dependency
from .engine import CPMEngine, recompute

__all__ = [
    'Task',
    'Dependency',
    'DependencyType',
    'SchedulingStatus',
    'ConstraintViolation',
    'RecomputeResult',
    'TaskImpactResult',
    'CriticalPathResult',
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
    'TaskNetwork',
    'validate_dependency',
    'CPMEngine',
    'recompute',
]
