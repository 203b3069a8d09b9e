"""Base store class for persisting project task networks."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple
import logging

from schedule_engine.cpm.network import TaskNetwork

logger = logging.getLogger(__name__)


class ScheduleStore(ABC):
    """
    Abstract base class for schedule persistence.

    Each project is stored as one task network document with an integer
    version token. A write succeeds only if the caller's expected version is
    still current; otherwise ConcurrentModificationError is raised.
    """

    def __init__(self, name: str):
        """
        Initialize the store.

        Args:
            name: Name of the store (for logging)
        """
        self.name = name
        self.logger = logging.getLogger(f'{__name__}.{name}')
        self.write_count = 0
        self.conflict_count = 0

    @abstractmethod
    def load(self, project_id: str) -> Tuple[TaskNetwork, int]:
        """
        Load a project's network.

        Args:
            project_id: Project to load

        Returns:
            Tuple of (network, version). Unknown projects load as an empty
            network at version 0.
        """
        pass

    @abstractmethod
    def save(self, project_id: str, network: TaskNetwork, expected_version: int) -> int:
        """
        Persist a project's network if the stored version is still expected_version.

        Args:
            project_id: Project to write
            network: Network with computed fields
            expected_version: Version returned by the load this write is based on

        Returns:
            The new version

        Raises:
            ConcurrentModificationError: The stored version moved on
        """
        pass

    @abstractmethod
    def find_project_for_task(self, task_id: str) -> Optional[str]:
        """Return the project owning task_id, or None."""
        pass

    @abstractmethod
    def find_project_for_dependency(self, dependency_id: str) -> Optional[str]:
        """Return the project owning dependency_id, or None."""
        pass

    @abstractmethod
    def delete_project(self, project_id: str) -> bool:
        """Delete a project's network. Returns True if something was deleted."""
        pass

    def get_store_stats(self) -> Dict[str, Any]:
        """Get statistics about store operations."""
        return {
            'store': self.name,
            'writes': self.write_count,
            'conflicts': self.conflict_count,
        }
