"""Schedule store backed by PostgreSQL."""
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Tuple
import json
import threading

import psycopg2
from psycopg2 import sql
from psycopg2.extras import Json

from schedule_engine.config.settings import settings
from schedule_engine.cpm.errors import ConcurrentModificationError
from schedule_engine.cpm.network import TaskNetwork
from schedule_engine.stores.base_store import ScheduleStore

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    project_id TEXT PRIMARY KEY,
    version INTEGER NOT NULL,
    graph JSONB NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""


def _default_connection():
    return psycopg2.connect(settings.get_database_url())


class PostgresScheduleStore(ScheduleStore):
    """
    Store each project's network as one JSONB document with a version column.

    Writes use ``UPDATE ... WHERE version = expected`` (or an insert guarded by
    ``ON CONFLICT DO NOTHING`` for new projects); zero affected rows means
    another writer got there first.

    Every call opens its own connection, so one store instance can be shared
    by threads working on different projects.
    """

    def __init__(
        self,
        table_name: Optional[str] = None,
        connection_factory: Optional[Callable[[], Any]] = None,
    ):
        """
        Initialize database store.

        Args:
            table_name: Target table (default: settings.SCHEDULE_TABLE)
            connection_factory: Zero-arg callable returning a DB-API connection
        """
        super().__init__('database')
        self.table_name = table_name or settings.SCHEDULE_TABLE
        self._connection_factory = connection_factory or _default_connection
        self._stats_lock = threading.Lock()

    @contextmanager
    def _connection(self) -> Iterator[Tuple[Any, Any]]:
        """Yield a fresh (connection, cursor) pair and close both afterwards."""
        try:
            conn = self._connection_factory()
        except psycopg2.Error as e:
            self.logger.error(f'Database connection failed: {str(e)}')
            raise

        cursor = None
        try:
            cursor = conn.cursor()
            yield conn, cursor
        finally:
            if cursor is not None:
                cursor.close()
            conn.close()

    def _query(self, template: str) -> sql.Composed:
        return sql.SQL(template).format(table=sql.Identifier(self.table_name))

    def create_table(self) -> None:
        """Create the schedule table if missing."""
        with self._connection() as (conn, cursor):
            cursor.execute(self._query(CREATE_TABLE))
            conn.commit()
        self.logger.info(f'Ensured table {self.table_name}')

    def load(self, project_id: str) -> Tuple[TaskNetwork, int]:
        with self._connection() as (_, cursor):
            cursor.execute(
                self._query('SELECT version, graph FROM {table} WHERE project_id = %s'),
                (project_id,),
            )
            row = cursor.fetchone()

        if row is None:
            return TaskNetwork(project_id), 0
        version, graph = row
        if isinstance(graph, str):
            graph = json.loads(graph)
        return TaskNetwork.from_dict(graph), version

    def save(self, project_id: str, network: TaskNetwork, expected_version: int) -> int:
        document = Json(network.to_dict())
        with self._connection() as (conn, cursor):
            try:
                if expected_version == 0:
                    cursor.execute(
                        self._query(
                            'INSERT INTO {table} (project_id, version, graph) '
                            'VALUES (%s, 1, %s) ON CONFLICT (project_id) DO NOTHING'
                        ),
                        (project_id, document),
                    )
                else:
                    cursor.execute(
                        self._query(
                            'UPDATE {table} SET graph = %s, version = version + 1, '
                            'updated_at = now() WHERE project_id = %s AND version = %s'
                        ),
                        (document, project_id, expected_version),
                    )
                updated = cursor.rowcount

                if updated == 0:
                    conn.rollback()
                else:
                    conn.commit()
            except psycopg2.Error as e:
                conn.rollback()
                self.logger.error(f'Save failed for {project_id}: {str(e)}')
                raise

        if updated == 0:
            with self._stats_lock:
                self.conflict_count += 1
            self.logger.warning(f'Version conflict on {project_id}: expected {expected_version}')
            raise ConcurrentModificationError(project_id, expected_version)

        with self._stats_lock:
            self.write_count += 1
        return expected_version + 1

    def _find_project(self, collection: str, key: str, value: str) -> Optional[str]:
        needle = json.dumps({collection: [{key: value}]})
        with self._connection() as (_, cursor):
            cursor.execute(
                self._query('SELECT project_id FROM {table} WHERE graph @> %s::jsonb LIMIT 1'),
                (needle,),
            )
            row = cursor.fetchone()
        return row[0] if row else None

    def find_project_for_task(self, task_id: str) -> Optional[str]:
        return self._find_project('tasks', 'task_id', task_id)

    def find_project_for_dependency(self, dependency_id: str) -> Optional[str]:
        return self._find_project('dependencies', 'dependency_id', dependency_id)

    def delete_project(self, project_id: str) -> bool:
        with self._connection() as (conn, cursor):
            cursor.execute(
                self._query('DELETE FROM {table} WHERE project_id = %s'),
                (project_id,),
            )
            deleted = cursor.rowcount > 0
            conn.commit()
        return deleted
