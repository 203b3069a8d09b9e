"""
Unit tests for schema definitions.

Tests payload models and CSV schema validation without requiring data files.
"""

import pandas as pd
import pytest
from pydantic import BaseModel, ValidationError

from schemas.registry import SCHEMA_REGISTRY, get_schema_for_file, list_registered_files
from schemas.scheduling import (
    DependencyCreate,
    DependencyInputRow,
    ScheduleResponse,
    ScheduleRow,
    TaskCreate,
    TaskInputRow,
)
from schemas.validator import (
    SchemaValidationError,
    pandas_dtype_to_python_type,
    types_compatible,
    validate_dataframe,
    validate_input_file,
    validated_df_to_csv,
)


class TestTaskCreate:
    """Inbound task payload rules."""

    def test_defaults(self):
        payload = TaskCreate(name='Pour slab')
        assert payload.planned_duration_days == 1
        assert payload.progress_percent == 0
        assert payload.task_id is None

    def test_camel_case_keys(self):
        payload = TaskCreate.model_validate({'name': 'Pour slab', 'plannedDurationDays': 4, 'parentId': 'P'})
        assert payload.planned_duration_days == 4
        assert payload.parent_id == 'P'

    def test_milestone_defaults_to_zero_duration(self):
        assert TaskCreate(name='Handover', is_milestone=True).planned_duration_days == 0

    def test_milestone_with_explicit_duration(self):
        with pytest.raises(ValidationError):
            TaskCreate(name='Handover', is_milestone=True, planned_duration_days=2)

    def test_zero_duration_requires_milestone(self):
        with pytest.raises(ValidationError):
            TaskCreate(name='Pour slab', planned_duration_days=0)

    @pytest.mark.parametrize("field,value", [
        ('name', ''),
        ('planned_duration_days', -1),
        ('progress_percent', 101),
    ])
    def test_field_bounds(self, field, value):
        data = {'name': 'Pour slab', field: value}
        with pytest.raises(ValidationError):
            TaskCreate(**data)


class TestDependencyCreate:
    """Inbound dependency payload."""

    def test_defaults_and_aliases(self):
        payload = DependencyCreate.model_validate({'predecessorId': 'A', 'successorId': 'B', 'lagDays': -2})
        assert payload.type == 'FS'
        assert payload.lag_days == -2

    def test_requires_both_ends(self):
        with pytest.raises(ValidationError):
            DependencyCreate(predecessor_id='A')


class TestScheduleResponse:
    """Outbound payloads serialize with camelCase keys."""

    def test_dump_by_alias(self):
        response = ScheduleResponse(project_id='p1', start_date='2025-01-06', project_finish=6)
        data = response.model_dump(mode='json', by_alias=True)
        assert data['projectId'] == 'p1'
        assert data['startDate'] == '2025-01-06'
        assert data['criticalPath'] == []


class TestSchemaRegistry:
    """Test schema registry functionality."""

    def test_all_registered_schemas_are_valid(self):
        for filename, schema in SCHEMA_REGISTRY.items():
            assert issubclass(schema, BaseModel), f"Schema for {filename} is not a Pydantic model"

    def test_get_schema_for_file_with_path(self):
        assert get_schema_for_file('/some/path/to/tasks.csv') == TaskInputRow
        assert get_schema_for_file('dependencies.csv') == DependencyInputRow

    def test_get_schema_for_unknown_file(self):
        assert get_schema_for_file('unknown.csv') is None

    def test_list_registered_files(self):
        assert list_registered_files() == ['dependencies.csv', 'schedule.csv', 'tasks.csv']


class TestValidator:
    """Column and type checks for CSV files."""

    def test_valid_dataframe(self):
        df = pd.DataFrame({'task_id': ['A'], 'name': ['Pour'], 'duration_days': [3]})
        assert validate_dataframe(df, TaskInputRow) == []

    def test_missing_column(self):
        df = pd.DataFrame({'task_id': ['A'], 'name': ['Pour']})
        errors = validate_dataframe(df, TaskInputRow)
        assert len(errors) == 1
        assert 'duration_days' in errors[0]

    def test_type_mismatch(self):
        df = pd.DataFrame({'task_id': ['A'], 'name': ['Pour'], 'duration_days': ['three']})
        errors = validate_dataframe(df, TaskInputRow)
        assert 'duration_days' in errors[0]

    def test_extra_columns_only_fail_in_strict_mode(self):
        df = pd.DataFrame({'task_id': ['A'], 'name': ['Pour'], 'duration_days': [3], 'notes': ['x']})
        assert validate_dataframe(df, TaskInputRow) == []
        assert len(validate_dataframe(df, TaskInputRow, strict=True)) == 1

    def test_dtype_mapping(self):
        assert pandas_dtype_to_python_type(pd.Series([1]).dtype) == 'int'
        assert pandas_dtype_to_python_type(pd.Series([1.5]).dtype) == 'float'
        assert pandas_dtype_to_python_type(pd.Series(['a']).dtype) == 'str'

    @pytest.mark.parametrize("pandas_type,pydantic_type,expected", [
        ('int', 'int', True),
        ('float', 'int', True),
        ('int', 'str', True),
        ('str', 'int', False),
        ('bool', 'int', False),
    ])
    def test_types_compatible(self, pandas_type, pydantic_type, expected):
        assert types_compatible(pandas_type, pydantic_type) is expected

    def test_validate_input_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            validate_input_file(tmp_path / 'tasks.csv')

    def test_validate_input_file_uses_registry(self, tmp_path):
        path = tmp_path / 'dependencies.csv'
        path.write_text('predecessor_id,lag_days\nA,1\n')

        with pytest.raises(SchemaValidationError) as exc_info:
            validate_input_file(path)
        assert exc_info.value.missing_columns == ['successor_id']

    def test_validated_write(self, tmp_path):
        df = pd.DataFrame([{
            'task_id': 'A', 'name': 'Pour', 'duration_days': 3,
            'earliest_start': 0, 'earliest_finish': 3, 'latest_start': 0,
            'latest_finish': 3, 'slack_days': 0, 'is_critical': True,
            'scheduling_status': 'scheduled',
        }])
        path = tmp_path / 'out.csv'
        validated_df_to_csv(df, path, schema=ScheduleRow, index=False)
        assert pd.read_csv(path).loc[0, 'task_id'] == 'A'

    def test_validated_write_needs_schema(self, tmp_path):
        with pytest.raises(KeyError):
            validated_df_to_csv(pd.DataFrame(), tmp_path / 'unknown.csv')

    def test_validated_write_rejects_bad_frame(self, tmp_path):
        with pytest.raises(SchemaValidationError):
            validated_df_to_csv(pd.DataFrame({'task_id': ['A']}), tmp_path / 'schedule.csv')
