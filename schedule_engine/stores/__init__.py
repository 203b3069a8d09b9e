"""Persistence collaborators for project task networks."""

from .base_store import ScheduleStore
from .memory_store import InMemoryScheduleStore
from .db_store import PostgresScheduleStore

__all__ = [
    'ScheduleStore',
    'InMemoryScheduleStore',
    'PostgresScheduleStore',
]
