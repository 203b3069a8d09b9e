"""In-process schedule store."""
import copy
import threading
from typing import Any, Dict, Optional, Tuple

from schedule_engine.cpm.errors import ConcurrentModificationError
from schedule_engine.cpm.network import TaskNetwork
from schedule_engine.stores.base_store import ScheduleStore


class InMemoryScheduleStore(ScheduleStore):
    """
    Keep project networks as plain-data snapshots in memory.

    Snapshots are copied on the way in and out, so callers never share
    mutable state with the store.
    """

    def __init__(self):
        super().__init__('memory')
        self._lock = threading.Lock()
        self._documents: Dict[str, Tuple[Dict[str, Any], int]] = {}
        self._task_index: Dict[str, str] = {}
        self._dependency_index: Dict[str, str] = {}

    def load(self, project_id: str) -> Tuple[TaskNetwork, int]:
        with self._lock:
            document = self._documents.get(project_id)
            if document is None:
                return TaskNetwork(project_id), 0
            data, version = document
            data = copy.deepcopy(data)
        return TaskNetwork.from_dict(data), version

    def save(self, project_id: str, network: TaskNetwork, expected_version: int) -> int:
        data = network.to_dict()
        with self._lock:
            current = self._documents.get(project_id)
            current_version = current[1] if current else 0
            if current_version != expected_version:
                self.conflict_count += 1
                self.logger.warning(
                    f'Version conflict on {project_id}: expected {expected_version}, '
                    f'found {current_version}'
                )
                raise ConcurrentModificationError(project_id, expected_version, current_version)

            if current:
                self._drop_index(project_id, current[0])
            new_version = current_version + 1
            self._documents[project_id] = (data, new_version)
            for row in data['tasks']:
                self._task_index[row['task_id']] = project_id
            for row in data['dependencies']:
                self._dependency_index[row['dependency_id']] = project_id
            self.write_count += 1

        self.logger.debug(f'Saved {project_id} at version {new_version}')
        return new_version

    def _drop_index(self, project_id: str, data: Dict[str, Any]) -> None:
        for row in data['tasks']:
            if self._task_index.get(row['task_id']) == project_id:
                del self._task_index[row['task_id']]
        for row in data['dependencies']:
            if self._dependency_index.get(row['dependency_id']) == project_id:
                del self._dependency_index[row['dependency_id']]

    def find_project_for_task(self, task_id: str) -> Optional[str]:
        with self._lock:
            return self._task_index.get(task_id)

    def find_project_for_dependency(self, dependency_id: str) -> Optional[str]:
        with self._lock:
            return self._dependency_index.get(dependency_id)

    def delete_project(self, project_id: str) -> bool:
        with self._lock:
            document = self._documents.pop(project_id, None)
            if document is None:
                return False
            self._drop_index(project_id, document[0])
        return True

    def get_version(self, project_id: str) -> int:
        with self._lock:
            document = self._documents.get(project_id)
            return document[1] if document else 0

    def __contains__(self, project_id: str) -> bool:
        return project_id in self._documents
