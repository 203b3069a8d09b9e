"""
Payload and file schemas for the schedule engine.

This module defines Pydantic models for the API payloads exchanged with the
application layer and for the CSV files used by the command line tool.

Usage:
    from schemas import ScheduleResponse, TaskCreate
    from schemas import validate_input_file

    df = validate_input_file('tasks.csv')
"""

from .scheduling import (
    TaskCreate,
    DependencyCreate,
    TaskSchedule,
    DependencyOut,
    ConflictOut,
    ScheduleResponse,
    TaskVariance,
    TaskInputRow,
    DependencyInputRow,
    ScheduleRow,
)
from .validator import (
    validate_dataframe,
    validate_input_file,
    validated_df_to_csv,
    SchemaValidationError,
)
from .registry import SCHEMA_REGISTRY, get_schema_for_file

__all__ = [
    'TaskCreate',
    'DependencyCreate',
    'TaskSchedule',
    'DependencyOut',
    'ConflictOut',
    'ScheduleResponse',
    'TaskVariance',
    'TaskInputRow',
    'DependencyInputRow',
    'ScheduleRow',
    'validate_dataframe',
    'validate_input_file',
    'validated_df_to_csv',
    'SchemaValidationError',
    'SCHEMA_REGISTRY',
    'get_schema_for_file',
]
