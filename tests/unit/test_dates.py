"""Unit tests for dependency date arithmetic."""

from datetime import date

import pytest

from conftest import make_dependency, make_task
from schedule_engine.cpm.dates import (
    date_to_day,
    day_to_date,
    driven_earliest_start,
    driven_latest_finish,
    finish_from_start,
)


@pytest.fixture
def pred():
    task = make_task('A', 4)
    task.earliest_start, task.earliest_finish = 2, 6
    return task


@pytest.fixture
def succ():
    task = make_task('B', 3)
    task.latest_start, task.latest_finish = 10, 13
    return task


class TestForwardConstraints:
    """Earliest start imposed on the successor."""

    @pytest.mark.parametrize("dep_type,lag,expected", [
        ('FS', 0, 6),
        ('FS', 2, 8),
        ('SS', 1, 3),
        ('FF', 0, 3),     # succ must finish by >= 6, duration 3
        ('SF', 0, -1),    # succ must finish by >= 2
    ])
    def test_driven_earliest_start(self, pred, succ, dep_type, lag, expected):
        dep = make_dependency('d1', 'A', 'B', dep_type, lag)
        assert driven_earliest_start(dep, pred, succ) == expected

    def test_unscheduled_predecessor(self, succ):
        dep = make_dependency('d1', 'A', 'B')
        assert driven_earliest_start(dep, make_task('A', 4), succ) is None


class TestBackwardConstraints:
    """Latest finish imposed on the predecessor."""

    @pytest.mark.parametrize("dep_type,lag,expected", [
        ('FS', 0, 10),
        ('FS', -2, 12),
        ('SS', 0, 14),    # pred may start as late as 10, duration 4
        ('FF', 1, 12),
        ('SF', 0, 17),
    ])
    def test_driven_latest_finish(self, pred, succ, dep_type, lag, expected):
        dep = make_dependency('d1', 'A', 'B', dep_type, lag)
        assert driven_latest_finish(dep, pred, succ) == expected


class TestCalendarConversion:
    """Day offsets and calendar dates."""

    def test_milestone_finishes_on_start(self):
        assert finish_from_start(5, make_task('M', 3, is_milestone=True)) == 5

    def test_day_to_date(self):
        assert day_to_date('2025-01-06', 7) == date(2025, 1, 13)
        assert day_to_date(None, 7) is None
        assert day_to_date('2025-01-06', None) is None

    def test_date_to_day(self):
        assert date_to_day('2025-01-06', date(2025, 2, 5)) == 30
        assert date_to_day('2025-01-06', date(2025, 1, 1)) == -5
