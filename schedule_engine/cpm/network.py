"""
Task Network for CPM calculations.

Manages tasks and dependencies of one project with support for topological
sorting and network traversal. The graph is an arena of tasks keyed by id
plus id-keyed adjacency lists, so it can be cloned and serialized as plain data.
"""

import heapq
import logging
from collections import defaultdict
from copy import copy
from typing import Any, Optional

from .errors import (
    CycleDetectedError,
    DuplicateIdError,
    InvalidTaskError,
    UnknownDependencyError,
    UnknownTaskError,
)
from .models import Dependency, DependencyType, SchedulingStatus, Task

logger = logging.getLogger(__name__)


class TaskNetwork:
    """
    Task dependency network for CPM calculations.

    Maintains tasks and their predecessor/successor relationships
    with efficient lookups and topological sorting.
    """

    def __init__(self, project_id: str, start_date: Optional[str] = None):
        self.project_id = project_id
        self.start_date = start_date      # ISO date of day 0, optional
        self.tasks: dict[str, Task] = {}
        self.dependencies: dict[str, Dependency] = {}
        self._outgoing: dict[str, list[Dependency]] = defaultdict(list)
        self._incoming: dict[str, list[Dependency]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_task(self, task: Task) -> None:
        """Add a task to the network and derive its WBS level."""
        if task.task_id in self.tasks:
            raise DuplicateIdError('task', task.task_id, self.project_id)
        if task.parent_id is not None and task.parent_id not in self.tasks:
            raise UnknownTaskError(task.parent_id, self.project_id)
        self.tasks[task.task_id] = task
        task.level = self.get_level(task.task_id)

    def remove_task(self, task_id: str) -> list[Dependency]:
        """
        Remove a task and every dependency referencing it.

        WBS children are re-parented to the removed task's parent.

        Returns:
            The removed dependencies.
        """
        task = self.get_task(task_id)
        removed = [self.dependencies[d.dependency_id]
                   for d in self.outgoing(task_id) + self.incoming(task_id)]
        for dep in removed:
            self.remove_dependency(dep.dependency_id)

        del self.tasks[task_id]
        self._outgoing.pop(task_id, None)
        self._incoming.pop(task_id, None)

        for child in self.tasks.values():
            if child.parent_id == task_id:
                child.parent_id = task.parent_id
        self.refresh_levels()
        return removed

    def add_dependency(self, dep: Dependency) -> None:
        """
        Add a dependency to the network.

        Both predecessor and successor tasks must exist in the network.
        Self-link, duplicate pair and cycle checks belong to the validator.
        """
        if dep.dependency_id in self.dependencies:
            raise DuplicateIdError('dependency', dep.dependency_id, self.project_id)
        if dep.predecessor_id not in self.tasks:
            raise UnknownTaskError(dep.predecessor_id, self.project_id)
        if dep.successor_id not in self.tasks:
            raise UnknownTaskError(dep.successor_id, self.project_id)

        self.dependencies[dep.dependency_id] = dep
        self._outgoing[dep.predecessor_id].append(dep)
        self._incoming[dep.successor_id].append(dep)

    def remove_dependency(self, dependency_id: str) -> Dependency:
        """Remove a dependency by id and return it."""
        dep = self.dependencies.pop(dependency_id, None)
        if dep is None:
            raise UnknownDependencyError(dependency_id)
        self._outgoing[dep.predecessor_id].remove(dep)
        self._incoming[dep.successor_id].remove(dep)
        return dep

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_task(self, task_id: str) -> Task:
        """Get a task by ID, raising UnknownTaskError if missing."""
        task = self.tasks.get(task_id)
        if task is None:
            raise UnknownTaskError(task_id, self.project_id)
        return task

    def outgoing(self, task_id: str) -> list[Dependency]:
        """Get dependencies where task_id is the predecessor."""
        return list(self._outgoing.get(task_id, []))

    def incoming(self, task_id: str) -> list[Dependency]:
        """Get dependencies where task_id is the successor."""
        return list(self._incoming.get(task_id, []))

    def find_dependency(self, predecessor_id: str, successor_id: str) -> Optional[Dependency]:
        """Return the edge for an ordered pair, if present."""
        for dep in self._outgoing.get(predecessor_id, []):
            if dep.successor_id == successor_id:
                return dep
        return None

    def get_start_tasks(self) -> list[str]:
        """Get task IDs with no predecessors."""
        return [tid for tid in self.tasks if not self._incoming.get(tid)]

    def get_end_tasks(self) -> list[str]:
        """Get task IDs with no successors."""
        return [tid for tid in self.tasks if not self._outgoing.get(tid)]

    def get_children(self, task_id: Optional[str]) -> list[Task]:
        """Get WBS children of a task (or root tasks for None), in display order."""
        children = [t for t in self.tasks.values() if t.parent_id == task_id]
        return sorted(children, key=lambda t: t.sort_order)

    def get_level(self, task_id: str) -> int:
        """Depth of a task in the WBS parent chain (roots are level 0)."""
        level = 0
        current = self.get_task(task_id)
        while current.parent_id is not None and current.parent_id in self.tasks:
            level += 1
            if level > len(self.tasks):
                raise InvalidTaskError(f"Task {task_id} has a circular parent chain")
            current = self.tasks[current.parent_id]
        return level

    def refresh_levels(self) -> None:
        for tid, task in self.tasks.items():
            task.level = self.get_level(tid)

    def find_path(self, source_id: str, target_id: str) -> Optional[list[str]]:
        """
        Find a directed path source -> ... -> target.

        Iterative depth-first search; each edge is examined at most once.

        Returns:
            Task IDs along the path, or None if target is unreachable.
        """
        if source_id == target_id:
            return [source_id]
        parents: dict[str, str] = {}
        visited = {source_id}
        stack = [source_id]

        while stack:
            current = stack.pop()
            for dep in self._outgoing.get(current, []):
                nxt = dep.successor_id
                if nxt in visited:
                    continue
                parents[nxt] = current
                if nxt == target_id:
                    path = [nxt]
                    while path[-1] != source_id:
                        path.append(parents[path[-1]])
                    return list(reversed(path))
                visited.add(nxt)
                stack.append(nxt)
        return None

    def has_path(self, source_id: str, target_id: str) -> bool:
        return self.find_path(source_id, target_id) is not None

    def topological_order(self) -> list[str]:
        """
        Return task IDs in topological order (predecessors before successors).

        Uses Kahn's algorithm. Ready tasks are taken by (sort_order, insertion
        position) so the order is deterministic. Raises CycleDetectedError if
        a circular dependency is found.
        """
        position = {tid: i for i, tid in enumerate(self.tasks)}
        in_degree = {tid: len(self._incoming.get(tid, [])) for tid in self.tasks}

        ready = [(self.tasks[tid].sort_order, position[tid], tid)
                 for tid, deg in in_degree.items() if deg == 0]
        heapq.heapify(ready)
        result = []

        while ready:
            _, _, task_id = heapq.heappop(ready)
            result.append(task_id)

            for dep in self._outgoing.get(task_id, []):
                in_degree[dep.successor_id] -= 1
                if in_degree[dep.successor_id] == 0:
                    succ = self.tasks[dep.successor_id]
                    heapq.heappush(ready, (succ.sort_order, position[succ.task_id], succ.task_id))

        if len(result) != len(self.tasks):
            ordered = set(result)
            remaining = [tid for tid in self.tasks if tid not in ordered]
            logger.error(f"Cycle found in stored network {self.project_id}: {remaining[:5]}")
            raise CycleDetectedError(remaining)

        return result

    def reverse_topological_order(self) -> list[str]:
        """Return task IDs in reverse topological order (successors before predecessors)."""
        return list(reversed(self.topological_order()))

    # ------------------------------------------------------------------
    # Copy / serialization
    # ------------------------------------------------------------------

    def clone(self) -> 'TaskNetwork':
        """
        Create a copy of the network for speculative recomputes.

        Tasks and dependencies are shallow-copied so modifications don't
        affect the original.
        """
        new_network = TaskNetwork(self.project_id, self.start_date)
        for tid, task in self.tasks.items():
            new_network.tasks[tid] = copy(task)
        for dep in self.dependencies.values():
            new_network.add_dependency(copy(dep))
        return new_network

    def to_dict(self) -> dict[str, Any]:
        """Plain-data snapshot. Lists keep insertion order through JSON stores."""
        return {
            'project_id': self.project_id,
            'start_date': self.start_date,
            'tasks': [_task_to_dict(t) for t in self.tasks.values()],
            'dependencies': [_dependency_to_dict(d) for d in self.dependencies.values()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'TaskNetwork':
        """Rebuild a network from ``to_dict`` output."""
        network = cls(data['project_id'], data.get('start_date'))
        for row in data.get('tasks', []):
            row = dict(row)
            row['scheduling_status'] = SchedulingStatus(
                row.get('scheduling_status', SchedulingStatus.UNSCHEDULED.value)
            )
            network.tasks[row['task_id']] = Task(**row)
        network.refresh_levels()
        for row in data.get('dependencies', []):
            row = dict(row)
            row['dep_type'] = DependencyType.parse(row.get('dep_type', 'FS'))
            network.add_dependency(Dependency(**row))
        return network

    def get_statistics(self) -> dict:
        """Get network statistics."""
        dep_types = defaultdict(int)
        statuses = defaultdict(int)

        for dep in self.dependencies.values():
            dep_types[dep.dep_type.value] += 1
        for task in self.tasks.values():
            statuses[task.scheduling_status.value] += 1

        return {
            'total_tasks': len(self.tasks),
            'total_dependencies': len(self.dependencies),
            'milestones': sum(1 for t in self.tasks.values() if t.is_milestone),
            'start_tasks': len(self.get_start_tasks()),
            'end_tasks': len(self.get_end_tasks()),
            'dependency_types': dict(dep_types),
            'statuses': dict(statuses),
        }

    def __len__(self) -> int:
        return len(self.tasks)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self.tasks

    def __repr__(self) -> str:
        return (f"TaskNetwork({self.project_id}: {len(self.tasks)} tasks, "
                f"{len(self.dependencies)} dependencies)")


def _task_to_dict(task: Task) -> dict[str, Any]:
    row = dict(task.__dict__)
    row['scheduling_status'] = task.scheduling_status.value
    return row


def _dependency_to_dict(dep: Dependency) -> dict[str, Any]:
    row = dict(dep.__dict__)
    row['dep_type'] = dep.dep_type.value
    return row
