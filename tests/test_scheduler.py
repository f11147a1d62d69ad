"""Tests for the priority scheduler."""

from typing import List

import pytest

from coresim.simulator.process import ProcessState
from coresim.simulator.scheduler import ConfigurationError, Scheduler


def partition_size(scheduler: Scheduler) -> int:
    busy = sum(1 for core in scheduler.cores if not core.is_free())
    return len(scheduler.ready) + len(scheduler.blocked) + len(scheduler.finished) + busy


def assert_partitioned(scheduler: Scheduler) -> None:
    """Every process lives in exactly one container."""
    assert partition_size(scheduler) == len(scheduler.processes)
    owned: List[int] = [p.process_id for p in scheduler.ready]
    owned += [p.process_id for p in scheduler.blocked]
    owned += [p.process_id for p in scheduler.finished]
    owned += [p.process_id for p in scheduler.running()]
    assert sorted(owned) == sorted(p.process_id for p in scheduler.processes)


class TestSchedulerCreation:
    def test_cores_created_in_order(self) -> None:
        scheduler = Scheduler(3)
        assert [c.core_id for c in scheduler.cores] == [0, 1, 2]
        assert all(c.is_free() for c in scheduler.cores)

    @pytest.mark.parametrize("num_cores", [0, -1, 1.5, True])
    def test_invalid_core_count_raises(self, num_cores: object) -> None:
        with pytest.raises(ConfigurationError):
            Scheduler(num_cores)  # type: ignore[arg-type]

    def test_configuration_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Scheduler(0)


class TestCreateProcess:
    def test_ids_are_sequential_from_one(self) -> None:
        scheduler = Scheduler(1)
        ids = [scheduler.create_process(1, 1, 1.0).process_id for _ in range(3)]
        assert ids == [1, 2, 3]

    def test_created_process_is_ready_and_queued(self) -> None:
        scheduler = Scheduler(1)
        process = scheduler.create_process(2, 3, 1.5)
        assert process.state is ProcessState.READY
        assert scheduler.ready == (process,)

    def test_block_duration_override(self) -> None:
        scheduler = Scheduler(1)
        process = scheduler.create_process(1, 2, 1.0, block_duration=0.5)
        assert process.block_duration == pytest.approx(0.5)

    def test_invalid_time_per_cycle_raises(self) -> None:
        scheduler = Scheduler(1)
        with pytest.raises(ValueError):
            scheduler.create_process(1, 1, 0.0)
        assert scheduler.processes == ()


class TestDispatch:
    def test_lowest_priority_value_first(self) -> None:
        """Priorities [3, 1, 2] with one core dispatch priority 1."""
        scheduler = Scheduler(1)
        scheduler.create_process(3, 1, 1.0)
        p1 = scheduler.create_process(1, 1, 1.0)
        scheduler.create_process(2, 1, 1.0)
        assert scheduler.dispatch() == [p1]
        assert scheduler.cores[0].current_process is p1
        assert [p.priority for p in scheduler.ready] == [2, 3]

    def test_equal_priorities_keep_creation_order(self) -> None:
        scheduler = Scheduler(1)
        first = scheduler.create_process(1, 1, 1.0)
        scheduler.create_process(1, 1, 1.0)
        assert scheduler.dispatch() == [first]

    def test_fills_multiple_free_cores_in_core_order(self) -> None:
        scheduler = Scheduler(3)
        a = scheduler.create_process(2, 1, 1.0)
        b = scheduler.create_process(1, 1, 1.0)
        dispatched = scheduler.dispatch()
        assert dispatched == [b, a]
        assert b.assigned_core_id == 0
        assert a.assigned_core_id == 1
        assert scheduler.cores[2].is_free()

    def test_never_assigns_busy_core(self) -> None:
        scheduler = Scheduler(2)
        running = [scheduler.create_process(1, 1, 5.0) for _ in range(2)]
        scheduler.dispatch()
        waiting = scheduler.create_process(0, 1, 1.0)
        assert scheduler.dispatch() == []
        assert [c.current_process for c in scheduler.cores] == running
        assert scheduler.ready == (waiting,)

    def test_empty_ready_queue(self) -> None:
        assert Scheduler(2).dispatch() == []


class TestUpdate:
    def test_end_to_end_single_core(self) -> None:
        """B only starts once A has freed the core and dispatch runs again."""
        scheduler = Scheduler(1)
        a = scheduler.create_process(1, 1, 2.0)
        b = scheduler.create_process(2, 1, 2.0)

        report = scheduler.update(1.0)
        assert report.dispatched == (a,)
        assert a.state is ProcessState.RUNNING
        assert b.state is ProcessState.READY

        report = scheduler.update(1.0)
        assert report.finished == (a,)
        assert scheduler.finished == (a,)
        assert b.state is ProcessState.READY
        assert scheduler.cores[0].is_free()

        report = scheduler.update(1.0)
        assert report.dispatched == (b,)
        assert b.state is ProcessState.RUNNING
        assert b.remaining_time_in_cycle == pytest.approx(1.0)

    def test_cycle_block_round_trip(self) -> None:
        """Blocked after tick 4, back on the core at tick 7, finished at tick 10."""
        scheduler = Scheduler(1)
        process = scheduler.create_process(1, 2, 4.0, block_duration=3.0)

        for _ in range(4):
            scheduler.update(1.0)
        assert process.state is ProcessState.BLOCKED
        assert scheduler.blocked == (process,)
        assert process.remaining_block_time == pytest.approx(3.0)

        scheduler.update(1.0)
        scheduler.update(1.0)
        assert process.state is ProcessState.BLOCKED

        report = scheduler.update(1.0)
        # Unblocked and dispatched in the same tick.
        assert report.unblocked == (process,)
        assert report.dispatched == (process,)
        assert process.state is ProcessState.RUNNING
        assert process.remaining_time_in_cycle == pytest.approx(3.0)

        for _ in range(2):
            scheduler.update(1.0)
        assert process.state is ProcessState.RUNNING
        report = scheduler.update(1.0)
        assert report.finished == (process,)
        assert process.remaining_cpu_time == 0.0

    def test_blocked_processes_all_advance(self) -> None:
        """Removing from the blocked queue never skips a neighbour."""
        scheduler = Scheduler(3)
        procs = [scheduler.create_process(i, 2, 1.0, block_duration=1.0) for i in range(3)]
        scheduler.update(1.0)
        assert set(scheduler.blocked) == set(procs)

        report = scheduler.update(1.0)
        assert set(report.unblocked) == set(procs)
        assert scheduler.blocked == ()
        assert all(p.state is ProcessState.FINISHED for p in procs)

    def test_unblocked_process_competes_by_priority(self) -> None:
        scheduler = Scheduler(1)
        urgent = scheduler.create_process(0, 2, 1.0, block_duration=2.0)
        background = scheduler.create_process(5, 1, 10.0)
        scheduler.update(1.0)
        assert urgent.state is ProcessState.BLOCKED

        # Background takes the core while the urgent process waits.
        scheduler.update(1.0)
        assert background.state is ProcessState.RUNNING
        assert urgent.state is ProcessState.BLOCKED

        # No preemption: the unblocked process waits for a free core.
        scheduler.update(1.0)
        assert background.state is ProcessState.RUNNING
        assert urgent.state is ProcessState.READY
        assert scheduler.ready == (urgent,)

    def test_report_counts_busy_cores(self) -> None:
        scheduler = Scheduler(3)
        scheduler.create_process(1, 1, 5.0)
        scheduler.create_process(1, 1, 5.0)
        assert scheduler.update(1.0).busy_cores == 2

    def test_partition_invariant_every_tick(self) -> None:
        scheduler = Scheduler(2)
        for prio, cycles, tpc, block in [(1, 2, 6.0, 2.0), (2, 4, 4.0, 3.0), (3, 3, 10.0, 5.0), (1, 5, 3.0, 1.5)]:
            scheduler.create_process(prio, cycles, tpc, block_duration=block)

        last_cpu = {p.process_id: p.remaining_cpu_time for p in scheduler.processes}
        for _ in range(400):
            states = {p.process_id: p.state for p in scheduler.processes}
            scheduler.update(0.5)
            assert_partitioned(scheduler)
            cores_in_use = [c.current_process.process_id for c in scheduler.cores if c.current_process]
            assert len(cores_in_use) == len(set(cores_in_use))
            for p in scheduler.processes:
                if states[p.process_id] in (ProcessState.READY, ProcessState.BLOCKED) and p.state is not ProcessState.RUNNING:
                    assert p.remaining_cpu_time == last_cpu[p.process_id]
                assert p.remaining_cpu_time <= last_cpu[p.process_id]
                last_cpu[p.process_id] = p.remaining_cpu_time
            if scheduler.all_finished():
                break
        assert scheduler.all_finished()
        assert all(p.remaining_cpu_time == 0.0 for p in scheduler.finished)


class TestSnapshot:
    def test_snapshot_in_id_order(self) -> None:
        scheduler = Scheduler(1)
        scheduler.create_process(5, 1, 1.0)
        scheduler.create_process(1, 1, 1.0)
        scheduler.update(0.5)
        snaps = scheduler.snapshot()
        assert [s.process_id for s in snaps] == [1, 2]
        assert snaps[1].state is ProcessState.RUNNING
        assert snaps[1].assigned_core_id == 0
        assert snaps[0].state is ProcessState.READY
