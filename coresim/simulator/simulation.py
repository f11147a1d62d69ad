"""Fixed-step host driver for the scheduler.

This module contains no scheduling logic.  It owns the clock, admits
processes when they arrive, calls ``Scheduler.update`` once per tick and
keeps per-process bookkeeping for the metrics module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from coresim.simulator.process import ProcessSnapshot, ProcessSpec, ProcessState
from coresim.simulator.scheduler import Scheduler, TickReport

logger = logging.getLogger(__name__)

# Arrivals within this fraction of a tick of the clock count as reached.
ARRIVAL_TOLERANCE = 1e-9


@dataclass
class ProcessRecord:
    """Lifetime bookkeeping for one simulated process."""

    process_id: int
    priority: int
    total_cycles: int
    time_per_cycle: float
    block_duration: float
    arrival_time: float
    first_run_time: Optional[float] = None
    finish_time: Optional[float] = None
    ready_wait: float = 0.0

    @property
    def total_cpu_time(self) -> float:
        return self.total_cycles * self.time_per_cycle

    @property
    def turnaround_time(self) -> Optional[float]:
        """Time from arrival to completion, or None if not yet finished."""
        if self.finish_time is None:
            return None
        return self.finish_time - self.arrival_time

    @property
    def response_time(self) -> Optional[float]:
        """Time from arrival to first dispatch, or None if never run."""
        if self.first_run_time is None:
            return None
        return self.first_run_time - self.arrival_time


class Simulation:
    """Deterministic, fixed-step driver around a :class:`Scheduler`.

    Each tick the driver:
      1. Creates processes whose arrival_time has been reached.
      2. Calls ``Scheduler.update(dt)``.
      3. Records first-run and finish times, ready waiting and busy core time.
      4. Optionally appends a snapshot of every process to ``trace``.

    Args:
        num_cores: Number of cores to simulate.
        workload: Processes to create (need not be sorted).
        dt: Simulated time per tick.
        max_ticks: Safety limit on the number of ticks run().
        record_trace: Keep a per-tick snapshot history for observers.
    """

    def __init__(
        self,
        num_cores: int,
        workload: Sequence[ProcessSpec],
        dt: float = 1.0,
        max_ticks: int = 100_000,
        record_trace: bool = False,
    ) -> None:
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        if max_ticks <= 0:
            raise ValueError(f"max_ticks must be positive, got {max_ticks}")

        self.scheduler: Scheduler = Scheduler(num_cores)
        self.dt: float = dt
        self.max_ticks: int = max_ticks
        self.record_trace: bool = record_trace

        self._workload: List[ProcessSpec] = sorted(workload, key=lambda s: s.arrival_time)
        self._cursor: int = 0
        self._records: Dict[int, ProcessRecord] = {}
        self.clock: float = 0.0
        self.ticks: int = 0
        self.busy_time: float = 0.0
        self.trace: List[Tuple[float, Tuple[ProcessSnapshot, ...]]] = []

    @property
    def num_cores(self) -> int:
        return len(self.scheduler.cores)

    @property
    def done(self) -> bool:
        """True once every process has arrived and finished."""
        return self._cursor >= len(self._workload) and self.scheduler.all_finished()

    @property
    def records(self) -> List[ProcessRecord]:
        return [self._records[pid] for pid in sorted(self._records)]

    def _admit(self) -> None:
        while (
            self._cursor < len(self._workload)
            and self._workload[self._cursor].arrival_time
            <= self.clock + ARRIVAL_TOLERANCE * self.dt
        ):
            spec = self._workload[self._cursor]
            process = self.scheduler.create_process(
                spec.priority,
                spec.total_cycles,
                spec.time_per_cycle,
                block_duration=spec.block_duration,
            )
            self._records[process.process_id] = ProcessRecord(
                process_id=process.process_id,
                priority=process.priority,
                total_cycles=process.total_cycles,
                time_per_cycle=process.time_per_cycle,
                block_duration=process.block_duration,
                arrival_time=spec.arrival_time,
            )
            self._cursor += 1

    def step(self) -> TickReport:
        """Run a single tick and return the scheduler's report."""
        self._admit()

        tick_start = self.clock
        report = self.scheduler.update(self.dt)
        self.ticks += 1
        # Derived from the tick count so repeated float additions cannot drift.
        self.clock = self.ticks * self.dt
        self.busy_time += report.busy_cores * self.dt

        for process in report.dispatched:
            record = self._records[process.process_id]
            if record.first_run_time is None:
                record.first_run_time = tick_start
        for process in report.finished:
            self._records[process.process_id].finish_time = self.clock
        for process in self.scheduler.ready:
            self._records[process.process_id].ready_wait += self.dt

        if self.record_trace:
            self.trace.append((self.clock, self.scheduler.snapshot()))

        return report

    def run(self) -> List[ProcessRecord]:
        """Step until every process has finished or max_ticks is reached.

        Returns:
            One ProcessRecord per created process, ordered by id.  Records
            of unfinished processes have finish_time None.
        """
        while not self.done:
            if self.ticks >= self.max_ticks:
                unfinished = sum(
                    1 for p in self.scheduler.processes if p.state is not ProcessState.FINISHED
                )
                logger.warning(
                    "Stopped after %d ticks (t=%.2f) with %d unfinished and %d pending processes",
                    self.ticks,
                    self.clock,
                    unfinished,
                    len(self._workload) - self._cursor,
                )
                break
            self.step()
        return self.records
