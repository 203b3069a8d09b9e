"""
Data Loader for schedule CSV files.

Loads task and dependency tables and constructs a TaskNetwork for CPM
analysis. Every dependency goes through the same validation as the
orchestrator, so a file with a cycle is rejected with CycleError.

tasks.csv columns:
    task_id, name, duration_days [, is_milestone, parent_id, manual_start,
    progress_percent, sort_order]
dependencies.csv columns:
    predecessor_id, successor_id [, type, lag_days, dependency_id]
"""

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from schemas.scheduling import DependencyInputRow, TaskInputRow
from schemas.validator import validate_input_file
from .cpm.errors import InvalidTaskError, UnknownTaskError
from .cpm.models import Dependency, DependencyType, Task
from .cpm.network import TaskNetwork
from .cpm.validator import validate_dependency

logger = logging.getLogger(__name__)


def _key(val) -> str:
    # Numeric id columns with blanks are read as float
    if isinstance(val, float) and val.is_integer():
        val = int(val)
    return str(val).strip()


def _opt_str(row: pd.Series, col: str) -> Optional[str]:
    val = row.get(col)
    if val is None or pd.isna(val) or str(val).strip() == '':
        return None
    return _key(val)


def _opt_int(row: pd.Series, col: str) -> Optional[int]:
    val = row.get(col)
    if val is None or pd.isna(val) or str(val).strip() == '':
        return None
    return int(float(val))


def _bool(row: pd.Series, col: str) -> bool:
    val = row.get(col)
    if val is None or pd.isna(val):
        return False
    if isinstance(val, str):
        return val.strip().lower() in ('1', 'true', 'yes', 'y')
    return bool(val)


def tasks_from_dataframe(df: pd.DataFrame, project_id: str) -> list[Task]:
    """
    Convert task rows to Task objects.

    Args:
        df: Task table
        project_id: Project the tasks belong to

    Returns:
        List of Task objects in file order
    """
    tasks = []
    for idx, row in df.iterrows():
        is_milestone = _bool(row, 'is_milestone')
        duration = _opt_int(row, 'duration_days') or 0
        if duration < 0:
            raise InvalidTaskError(f"Row {idx}: negative duration for {row['task_id']}")
        if is_milestone:
            duration = 0
        elif duration == 0:
            # Zero-duration rows are treated as milestones
            is_milestone = True

        tasks.append(Task(
            task_id=_key(row['task_id']),
            project_id=project_id,
            name=str(row['name']) if pd.notna(row['name']) else '',
            planned_duration_days=duration,
            is_milestone=is_milestone,
            parent_id=_opt_str(row, 'parent_id'),
            progress_percent=_opt_int(row, 'progress_percent') or 0,
            sort_order=_opt_int(row, 'sort_order') or 0,
            manual_constraint=_opt_int(row, 'manual_start'),
        ))
    return tasks


def dependencies_from_dataframe(df: pd.DataFrame, project_id: str) -> list[Dependency]:
    """Convert dependency rows to Dependency objects."""
    dependencies = []
    for idx, row in df.iterrows():
        dependencies.append(Dependency(
            dependency_id=_opt_str(row, 'dependency_id') or f'D{idx + 1}',
            project_id=project_id,
            predecessor_id=_key(row['predecessor_id']),
            successor_id=_key(row['successor_id']),
            dep_type=DependencyType.parse(_opt_str(row, 'type') or 'FS'),
            lag_days=_opt_int(row, 'lag_days') or 0,
        ))
    return dependencies


def build_network(
    tasks: list[Task],
    dependencies: list[Dependency],
    project_id: str,
    start_date: Optional[str] = None,
) -> TaskNetwork:
    """
    Construct a validated TaskNetwork.

    Tasks may list their WBS parent after themselves; insertion is repeated
    until every parent is present.
    """
    network = TaskNetwork(project_id, start_date)

    pending = list(tasks)
    while pending:
        ready = [t for t in pending if t.parent_id is None or t.parent_id in network]
        remaining = [t for t in pending if not (t.parent_id is None or t.parent_id in network)]
        if not ready:
            raise UnknownTaskError(remaining[0].parent_id, project_id)
        for task in ready:
            network.add_task(task)
        pending = remaining

    for dep in dependencies:
        validate_dependency(network, dep.predecessor_id, dep.successor_id)
        network.add_dependency(dep)

    logger.info(f"Loaded {network}")
    return network


def load_schedule(
    tasks_path: Path,
    dependencies_path: Optional[Path] = None,
    project_id: str = 'default',
    start_date: Optional[str] = None,
) -> TaskNetwork:
    """
    Load a project network from CSV files.

    Args:
        tasks_path: Task table (see module docstring for columns)
        dependencies_path: Dependency table (optional)
        project_id: Project id assigned to every record
        start_date: ISO date of day 0

    Returns:
        Validated TaskNetwork
    """
    tasks_df = validate_input_file(Path(tasks_path), TaskInputRow)
    tasks = tasks_from_dataframe(tasks_df, project_id)

    dependencies = []
    if dependencies_path is not None:
        deps_df = validate_input_file(Path(dependencies_path), DependencyInputRow)
        dependencies = dependencies_from_dataframe(deps_df, project_id)

    return build_network(tasks, dependencies, project_id, start_date)
