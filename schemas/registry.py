"""File-name lookup for the CSV schemas used by the schedule CLI."""

from pathlib import Path
from typing import Dict, Optional, Type

from pydantic import BaseModel

from .scheduling import DependencyInputRow, ScheduleRow, TaskInputRow

# Bare file name -> row schema
SCHEMA_REGISTRY: Dict[str, Type[BaseModel]] = {
    'tasks.csv': TaskInputRow,
    'dependencies.csv': DependencyInputRow,
    'schedule.csv': ScheduleRow,
}


def get_schema_for_file(file_path: str) -> Optional[Type[BaseModel]]:
    """Schema for a path or file name, or None when unregistered."""
    return SCHEMA_REGISTRY.get(Path(file_path).name)


def list_registered_files() -> list:
    return sorted(SCHEMA_REGISTRY)
