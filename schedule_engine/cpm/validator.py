"""
Dependency validation.

Checks a proposed edge against a read-only view of the network. Nothing is
mutated here; callers insert the edge only after ``validate_dependency``
returns.
"""

import logging

from .errors import CycleError, DuplicateDependencyError, SelfLinkError, UnknownTaskError
from .network import TaskNetwork

logger = logging.getLogger(__name__)


def validate_dependency(network: TaskNetwork, predecessor_id: str, successor_id: str) -> None:
    """
    Validate that predecessor -> successor can be added.

    Args:
        network: Current project network (not modified)
        predecessor_id: Task that drives the successor
        successor_id: Task driven by the predecessor

    Raises:
        UnknownTaskError: Either task is not in the project
        SelfLinkError: predecessor_id == successor_id
        DuplicateDependencyError: The ordered pair is already linked
        CycleError: successor already reaches predecessor
    """
    for task_id in (predecessor_id, successor_id):
        if task_id not in network:
            raise UnknownTaskError(task_id, network.project_id)

    if predecessor_id == successor_id:
        raise SelfLinkError(predecessor_id)

    existing = network.find_dependency(predecessor_id, successor_id)
    if existing is not None:
        raise DuplicateDependencyError(predecessor_id, successor_id, existing.dependency_id)

    # Adding P -> S closes a cycle iff S already reaches P
    path = network.find_path(successor_id, predecessor_id)
    if path is not None:
        logger.info(f"Rejected dependency {predecessor_id} -> {successor_id}: cycle via {path}")
        raise CycleError(predecessor_id, successor_id, path)
