"""
Unit tests for the CPM engine.

Covers forward/backward passes for each dependency type, slack and critical
path identification, and the scheduling status of pinned tasks.
"""

import random

import pytest

from conftest import make_dependency, make_task
from schedule_engine.cpm.dates import driven_earliest_start
from schedule_engine.cpm.engine import CPMEngine, recompute
from schedule_engine.cpm.errors import CycleDetectedError
from schedule_engine.cpm.models import SchedulingStatus
from schedule_engine.cpm.network import TaskNetwork


def two_task_network(dep_type='FS', lag=0, pred_duration=3, succ_duration=2) -> TaskNetwork:
    network = TaskNetwork('p1')
    network.add_task(make_task('A', pred_duration))
    network.add_task(make_task('B', succ_duration))
    network.add_dependency(make_dependency('d1', 'A', 'B', dep_type, lag))
    return network


def random_network(seed: int) -> TaskNetwork:
    """Acyclic network with mixed dependency types, signed lags, milestones and pins."""
    rng = random.Random(seed)
    network = TaskNetwork('p1')
    ids = [f'T{i}' for i in range(rng.randint(2, 25))]

    for tid in ids:
        if rng.random() < 0.15:
            task = make_task(tid, 0, is_milestone=True)
        else:
            task = make_task(tid, rng.randint(1, 10))
        if rng.random() < 0.2:
            task.manual_constraint = rng.randint(-2, 30)
        network.add_task(task)

    # Edges only point forward in id order
    for i, pred in enumerate(ids):
        for succ in ids[i + 1:]:
            if rng.random() < 0.2:
                network.add_dependency(make_dependency(
                    f'd{len(network.dependencies) + 1}', pred, succ,
                    rng.choice(['FS', 'SS', 'FF', 'SF']), rng.randint(-4, 6),
                ))
    return network


class TestForwardPass:
    """Earliest dates per dependency type."""

    def test_finish_to_start(self):
        """B starts when A finishes."""
        result = CPMEngine(two_task_network('FS')).run()
        a, b = result.tasks['A'], result.tasks['B']
        assert (a.earliest_start, a.earliest_finish) == (0, 3)
        assert (b.earliest_start, b.earliest_finish) == (3, 5)
        assert result.project_finish == 5

    def test_start_to_start_with_lag(self):
        """B starts one day after A starts."""
        result = CPMEngine(two_task_network('SS', lag=1)).run()
        assert result.tasks['B'].earliest_start == 1
        assert result.tasks['B'].earliest_finish == 3

    def test_finish_to_finish_with_lag(self):
        """B finishes two days after A finishes."""
        result = CPMEngine(two_task_network('FF', lag=2, succ_duration=4)).run()
        assert result.tasks['B'].earliest_finish == 5
        assert result.tasks['B'].earliest_start == 1

    def test_start_to_finish(self):
        """B finishes no earlier than two days after A starts."""
        result = CPMEngine(two_task_network('SF', lag=2, succ_duration=1)).run()
        assert result.tasks['B'].earliest_finish == 2
        assert result.tasks['B'].earliest_start == 1

    def test_negative_lag_is_a_lead(self):
        result = CPMEngine(two_task_network('FS', lag=-1)).run()
        assert result.tasks['B'].earliest_start == 2

    def test_lead_never_starts_before_project_start(self):
        result = CPMEngine(two_task_network('FS', lag=-5, pred_duration=1)).run()
        assert result.tasks['B'].earliest_start == 0

    def test_latest_driver_wins(self):
        """With several predecessors the latest constraint drives the start."""
        network = TaskNetwork('p1')
        network.add_task(make_task('A', 2))
        network.add_task(make_task('B', 6))
        network.add_task(make_task('C', 1))
        network.add_dependency(make_dependency('d1', 'A', 'C'))
        network.add_dependency(make_dependency('d2', 'B', 'C'))

        result = CPMEngine(network).run()
        assert result.tasks['C'].earliest_start == 6

    def test_milestone_has_zero_duration(self):
        network = TaskNetwork('p1')
        network.add_task(make_task('A', 3))
        network.add_task(make_task('M', 5, is_milestone=True))
        network.add_dependency(make_dependency('d1', 'A', 'M'))

        result = CPMEngine(network).run()
        milestone = result.tasks['M']
        assert milestone.earliest_start == milestone.earliest_finish == 3
        assert result.project_finish == 3


class TestBackwardPassAndSlack:
    """Latest dates, slack and criticality."""

    def test_sample_network_dates(self, sample_network):
        result = CPMEngine(sample_network).run()

        assert result.project_finish == 6
        assert result.tasks['C'].latest_start == 4
        assert result.tasks['C'].slack_days == 1
        assert result.tasks['A'].latest_finish == 3
        assert result.critical_path == ['A', 'B', 'D']

    def test_slack_is_consistent(self, sample_network):
        """LS - ES equals LF - EF for every task."""
        result = CPMEngine(sample_network).run()
        for task in result.tasks.values():
            assert task.latest_start - task.earliest_start == task.slack_days
            assert task.latest_finish - task.earliest_finish == task.slack_days

    def test_at_least_one_critical_task(self, sample_network):
        result = CPMEngine(sample_network).run()
        assert len(result.get_critical_tasks()) >= 1

    def test_parallel_critical_chains(self):
        """Equal-length branches are both critical."""
        network = TaskNetwork('p1')
        for tid, duration in (('A', 2), ('B', 2), ('C', 1)):
            network.add_task(make_task(tid, duration))
        network.add_dependency(make_dependency('d1', 'A', 'C'))
        network.add_dependency(make_dependency('d2', 'B', 'C'))

        result = CPMEngine(network).run()
        assert set(result.critical_path) == {'A', 'B', 'C'}

    def test_unlinked_tasks_share_project_finish(self):
        network = TaskNetwork('p1')
        network.add_task(make_task('A', 3))
        network.add_task(make_task('B', 5))

        result = CPMEngine(network).run()
        assert result.project_finish == 5
        assert result.tasks['A'].slack_days == 2
        assert result.tasks['B'].is_critical

    def test_start_to_start_branch_slack(self):
        """A drives B (FS) and C (SS+1); the shorter SS branch floats."""
        network = TaskNetwork('p1')
        network.add_task(make_task('A', 3))
        network.add_task(make_task('B', 2))
        network.add_task(make_task('C', 2))
        network.add_dependency(make_dependency('d1', 'A', 'B'))
        network.add_dependency(make_dependency('d2', 'A', 'C', 'SS', 1))

        result = CPMEngine(network).run()
        assert result.tasks['C'].earliest_start == 1
        assert result.tasks['C'].slack_days == 2
        assert result.tasks['A'].is_critical

    def test_get_tasks_by_slack(self, sample_network):
        result = CPMEngine(sample_network).run()
        ordered = result.get_tasks_by_slack()
        assert ordered[-1].task_id == 'C'
        assert [t.task_id for t in result.get_tasks_by_slack(0)] == ['A', 'B', 'D']


class TestSchedulingStatus:
    """Pinned starts and conflicts."""

    def test_unpinned_tasks_are_scheduled(self, sample_network):
        result = CPMEngine(sample_network).run()
        assert all(t.scheduling_status == SchedulingStatus.SCHEDULED
                   for t in result.tasks.values())
        assert not result.has_conflicts()

    def test_later_pin_is_locked(self):
        network = two_task_network('FS')
        network.tasks['B'].manual_constraint = 5

        result = CPMEngine(network).run()
        b = result.tasks['B']
        assert b.scheduling_status == SchedulingStatus.LOCKED
        assert (b.earliest_start, b.earliest_finish) == (5, 7)
        assert result.tasks['A'].slack_days == 2
        assert b.is_critical

    def test_earlier_pin_is_conflicted(self):
        """The derived minimum wins and the conflict is reported as data."""
        network = two_task_network('FS')
        network.tasks['B'].manual_constraint = 1

        result = CPMEngine(network).run()
        b = result.tasks['B']
        assert b.scheduling_status == SchedulingStatus.CONFLICTED
        assert b.earliest_start == 3

        conflict = result.get_conflict('B')
        assert conflict.pinned_start == 1
        assert conflict.required_start == 3
        assert 'd1' in conflict.reason

    def test_pin_before_project_start_is_conflicted(self):
        network = TaskNetwork('p1')
        network.add_task(make_task('A', 2, manual_constraint=-2))

        result = CPMEngine(network).run()
        assert result.tasks['A'].scheduling_status == SchedulingStatus.CONFLICTED
        assert result.tasks['A'].earliest_start == 0
        assert 'project start' in result.conflicts[0].reason

    def test_conflict_does_not_block_rest_of_graph(self):
        network = two_task_network('FS')
        network.add_task(make_task('C', 1))
        network.add_dependency(make_dependency('d2', 'B', 'C'))
        network.tasks['B'].manual_constraint = 0

        result = CPMEngine(network).run()
        assert result.tasks['C'].earliest_start == 5
        assert result.tasks['C'].scheduling_status == SchedulingStatus.SCHEDULED


class TestRun:
    """Whole-run behaviour."""

    def test_recompute_is_idempotent(self, sample_network):
        first = CPMEngine(sample_network).run()
        second = CPMEngine(sample_network).run()
        assert first.tasks == second.tasks
        assert first.critical_path == second.critical_path

    def test_recompute_leaves_network_untouched(self, sample_network):
        result = recompute(sample_network)
        assert result.tasks['D'].earliest_start == 5
        assert sample_network.tasks['D'].earliest_start is None

    def test_result_tasks_are_copies(self, sample_network):
        result = CPMEngine(sample_network).run()
        result.tasks['A'].earliest_start = 99
        assert sample_network.tasks['A'].earliest_start == 0

    def test_empty_network(self, empty_network):
        result = CPMEngine(empty_network).run()
        assert result.project_finish == 0
        assert result.tasks == {}
        assert result.critical_path == []

    def test_stored_cycle_raises(self):
        """A cycle that bypassed validation is reported, not looped on."""
        network = two_task_network('FS')
        network.add_dependency(make_dependency('d2', 'B', 'A'))

        with pytest.raises(CycleDetectedError) as exc_info:
            CPMEngine(network).run()
        assert set(exc_info.value.task_ids) == {'A', 'B'}


class TestRandomNetworks:
    """Properties that hold for every acyclic network."""

    @pytest.mark.parametrize('seed', range(60))
    def test_schedule_invariants(self, seed):
        network = random_network(seed)
        result = CPMEngine(network).run()
        tasks = result.tasks

        assert len(tasks) == len(network)
        for t in tasks.values():
            assert t.earliest_start >= 0
            assert t.earliest_start <= t.earliest_finish
            assert t.latest_start <= t.latest_finish
            assert t.earliest_start <= t.latest_start
            assert t.latest_start - t.earliest_start == t.latest_finish - t.earliest_finish
            assert t.is_critical == (t.slack_days == 0)

        assert any(t.slack_days == 0 for t in tasks.values())
        assert result.critical_path == [tid for tid in tasks if tasks[tid].is_critical]

        for dep in result.dependencies:
            required = driven_earliest_start(dep, tasks[dep.predecessor_id], tasks[dep.successor_id])
            assert tasks[dep.successor_id].earliest_start >= required

        conflicted = {c.task_id for c in result.conflicts}
        for t in tasks.values():
            if t.scheduling_status == SchedulingStatus.LOCKED:
                assert t.earliest_start == t.manual_constraint
            elif t.scheduling_status == SchedulingStatus.CONFLICTED:
                assert t.earliest_start > t.manual_constraint
            else:
                assert t.manual_constraint is None
            assert (t.task_id in conflicted) == (t.scheduling_status == SchedulingStatus.CONFLICTED)

    @pytest.mark.parametrize('seed', range(0, 60, 6))
    def test_run_is_idempotent(self, seed):
        network = random_network(seed)
        first = CPMEngine(network).run()
        second = CPMEngine(network).run()

        assert first.tasks == second.tasks
        assert first.critical_path == second.critical_path
        assert first.project_finish == second.project_finish
        assert first.conflicts == second.conflicts
        assert recompute(network).tasks == first.tasks
