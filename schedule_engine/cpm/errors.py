"""
Exceptions raised by the scheduling engine.

Structural errors are raised before any mutation so the task network is left
unchanged. Constraint conflicts are not exceptions; they are reported as
``ConstraintViolation`` records in the recompute result.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""
    pass


class UnknownTaskError(SchedulingError, KeyError):
    """Raised when a task id does not exist in the project."""

    def __init__(self, task_id: str, project_id: Optional[str] = None):
        where = f" in project {project_id}" if project_id else ""
        super().__init__(f"Task {task_id} not found{where}")
        self.task_id = task_id
        self.project_id = project_id

    def __str__(self) -> str:
        return self.args[0]


class UnknownDependencyError(SchedulingError, KeyError):
    """Raised when a dependency id does not exist."""

    def __init__(self, dependency_id: str):
        super().__init__(f"Dependency {dependency_id} not found")
        self.dependency_id = dependency_id

    def __str__(self) -> str:
        return self.args[0]


class InvalidTaskError(SchedulingError, ValueError):
    """Raised when task fields violate duration, progress or hierarchy rules."""
    pass


class SelfLinkError(SchedulingError):
    """Raised when a dependency links a task to itself."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} cannot depend on itself")
        self.task_id = task_id


class DuplicateDependencyError(SchedulingError):
    """Raised when the ordered predecessor/successor pair is already linked."""

    def __init__(self, predecessor_id: str, successor_id: str, existing_id: str):
        super().__init__(
            f"Dependency {predecessor_id} -> {successor_id} already exists ({existing_id})"
        )
        self.predecessor_id = predecessor_id
        self.successor_id = successor_id
        self.existing_id = existing_id


class CycleError(SchedulingError):
    """Raised when a new dependency would close a cycle."""

    def __init__(self, predecessor_id: str, successor_id: str, path: list[str]):
        super().__init__(
            f"Cannot create circular dependency {predecessor_id} -> {successor_id}: "
            f"{' -> '.join(path)} already exists"
        )
        self.predecessor_id = predecessor_id
        self.successor_id = successor_id
        self.path = path


class CycleDetectedError(SchedulingError):
    """
    Raised when topological ordering finds a cycle in a stored network.

    Edges are validated before insertion, so this signals a defect rather
    than a user error.
    """

    def __init__(self, task_ids: list[str]):
        super().__init__(
            f"Circular dependency detected involving {len(task_ids)} tasks: "
            f"{task_ids[:5]}"
        )
        self.task_ids = task_ids


class ConcurrentModificationError(SchedulingError):
    """Raised when the stored schedule version moved under a write."""

    def __init__(self, project_id: str, expected_version: int, actual_version: Optional[int] = None):
        msg = f"Schedule for project {project_id} was modified concurrently (expected version {expected_version}"
        if actual_version is not None:
            msg += f", found {actual_version}"
        super().__init__(msg + ")")
        self.project_id = project_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class DuplicateIdError(InvalidTaskError):
    """Raised when a task or dependency id is already present in the network."""

    def __init__(self, kind: str, record_id: str, project_id: Optional[str] = None):
        where = f" in project {project_id}" if project_id else ""
        super().__init__(f"{kind.capitalize()} id {record_id} already exists{where}")
        self.kind = kind
        self.record_id = record_id
        self.project_id = project_id
