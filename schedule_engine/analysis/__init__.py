"""
Analysis modules for schedule reporting and what-if scenarios.
"""

from .critical_path import analyze_critical_path, schedule_to_dataframe
from .single_task_impact import analyze_task_impact, analyze_task_sensitivity
from .baseline import compute_variance
from .gantt import build_gantt_data

__all__ = [
    'analyze_critical_path',
    'schedule_to_dataframe',
    'analyze_task_impact',
    'analyze_task_sensitivity',
    'compute_variance',
    'build_gantt_data',
]
