"""
Schedule engine payload schemas.

Inbound payloads (task/dependency creation) and outbound payloads (schedule,
variance) exchanged with the application layer, plus the CSV row schemas used
by the command line tool.

Outbound models serialize with camelCase keys (``model_dump(by_alias=True)``).
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for API payloads: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Inbound
# ============================================================================

class TaskCreate(ApiModel):
    """Fields accepted when creating a task."""
    name: str = Field(min_length=1, description="Task name")
    planned_duration_days: int = Field(default=1, ge=0, description="Planned duration in calendar days")
    is_milestone: bool = Field(default=False, description="Zero-duration marker task")
    parent_id: Optional[str] = Field(default=None, description="WBS parent task id")
    progress_percent: int = Field(default=0, ge=0, le=100, description="Percent complete")
    sort_order: int = Field(default=0, description="Display order among siblings")
    task_id: Optional[str] = Field(default=None, description="Explicit id (generated when omitted)")

    @model_validator(mode='after')
    def check_milestone_duration(self) -> 'TaskCreate':
        if self.is_milestone and self.planned_duration_days != 0:
            if 'planned_duration_days' in self.model_fields_set:
                raise ValueError("Milestones must have a planned duration of 0 days")
            self.planned_duration_days = 0
        if not self.is_milestone and self.planned_duration_days == 0:
            raise ValueError("Only milestones may have a planned duration of 0 days")
        return self


class DependencyCreate(ApiModel):
    """Fields accepted when creating a dependency."""
    predecessor_id: str = Field(description="Driving task id")
    successor_id: str = Field(description="Driven task id")
    type: str = Field(default='FS', description="FS, SS, FF, SF or the long form (finish_to_start, ...)")
    lag_days: int = Field(default=0, description="Signed lag; negative values are leads")


# ============================================================================
# Outbound
# ============================================================================

class TaskSchedule(ApiModel):
    """Computed dates for one task."""
    id: str = Field(description="Task id")
    name: str = Field(description="Task name")
    parent_id: Optional[str] = Field(default=None, description="WBS parent task id")
    level: int = Field(default=0, description="WBS depth")
    is_milestone: bool = Field(default=False, description="Zero-duration marker task")
    planned_duration_days: int = Field(description="Planned duration in days")
    progress_percent: int = Field(default=0, description="Percent complete")
    manual_constraint: Optional[int] = Field(default=None, description="Pinned start day")
    earliest_start: Optional[int] = Field(default=None, description="Earliest start day")
    earliest_finish: Optional[int] = Field(default=None, description="Earliest finish day")
    latest_start: Optional[int] = Field(default=None, description="Latest start day")
    latest_finish: Optional[int] = Field(default=None, description="Latest finish day")
    slack_days: Optional[int] = Field(default=None, description="Total slack in days")
    is_critical: bool = Field(default=False, description="Zero slack")
    scheduling_status: str = Field(description="unscheduled, scheduled, locked or conflicted")


class DependencyOut(ApiModel):
    """A stored dependency."""
    id: str = Field(description="Dependency id")
    predecessor_id: str = Field(description="Driving task id")
    successor_id: str = Field(description="Driven task id")
    type: str = Field(description="FS, SS, FF or SF")
    lag_days: int = Field(description="Signed lag in days")


class ConflictOut(ApiModel):
    """A pinned start that violates a predecessor-derived minimum."""
    task_id: str = Field(description="Conflicted task id")
    reason: str = Field(description="Human-readable explanation")


class ScheduleResponse(ApiModel):
    """Full project schedule."""
    project_id: str = Field(description="Project id")
    start_date: Optional[date] = Field(default=None, description="Calendar date of day 0")
    project_finish: int = Field(default=0, description="Project finish day")
    tasks: list[TaskSchedule] = Field(default_factory=list)
    dependencies: list[DependencyOut] = Field(default_factory=list)
    conflicts: list[ConflictOut] = Field(default_factory=list)
    critical_path: list[str] = Field(default_factory=list, description="Critical task ids in order")


class TaskVariance(ApiModel):
    """Difference between current earliest dates and the baseline snapshot."""
    id: str = Field(description="Task id")
    name: str = Field(description="Task name")
    baseline_start: Optional[int] = Field(default=None, description="Baseline start day")
    baseline_finish: Optional[int] = Field(default=None, description="Baseline finish day")
    earliest_start: Optional[int] = Field(default=None, description="Current earliest start day")
    earliest_finish: Optional[int] = Field(default=None, description="Current earliest finish day")
    start_variance: Optional[int] = Field(default=None, description="Positive = late, negative = early")
    finish_variance: Optional[int] = Field(default=None, description="Positive = late, negative = early")
    is_delayed: bool = Field(default=False, description="Either variance is positive")


# ============================================================================
# CSV rows (command line tool)
# ============================================================================

class TaskInputRow(BaseModel):
    """
    Task input row.

    File: tasks.csv
    """
    task_id: str = Field(description="Unique task identifier")
    name: str = Field(description="Task name")
    duration_days: int = Field(description="Planned duration in days")


class DependencyInputRow(BaseModel):
    """
    Dependency input row.

    File: dependencies.csv
    """
    predecessor_id: str = Field(description="Driving task id")
    successor_id: str = Field(description="Driven task id")


class ScheduleRow(BaseModel):
    """
    Computed schedule row.

    File: schedule.csv
    """
    task_id: str = Field(description="Task id")
    name: str = Field(description="Task name")
    duration_days: int = Field(description="Planned duration in days")
    earliest_start: int = Field(description="Earliest start day")
    earliest_finish: int = Field(description="Earliest finish day")
    latest_start: int = Field(description="Latest start day")
    latest_finish: int = Field(description="Latest finish day")
    slack_days: int = Field(description="Total slack in days")
    is_critical: bool = Field(description="Zero slack")
    scheduling_status: str = Field(description="Scheduling status")
