"""Priority scheduler that owns the process queues and the core pool.

The scheduler is advanced exclusively through :meth:`Scheduler.update`,
called once per tick by a host (see ``simulation.py``).  It is not
thread-safe; a multi-threaded host must serialize every call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from coresim.simulator.core import CoreWorker
from coresim.simulator.process import Process, ProcessSnapshot, ProcessState

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when the scheduler is constructed with invalid parameters."""


@dataclass(frozen=True)
class TickReport:
    """What happened during one call to :meth:`Scheduler.update`."""

    unblocked: Tuple[Process, ...] = ()
    dispatched: Tuple[Process, ...] = ()
    blocked: Tuple[Process, ...] = ()
    finished: Tuple[Process, ...] = ()
    busy_cores: int = 0


class Scheduler:
    """Non-preemptive priority scheduler over a fixed pool of cores.

    Every live process is in exactly one of: the ready queue, the blocked
    queue, the finished queue, or a core.  Ready processes are served by
    ascending priority, ties broken by the order they became ready.

    Args:
        num_cores: Number of cores; fixed for the lifetime of the scheduler.

    Raises:
        ConfigurationError: If num_cores is not a positive integer.
    """

    def __init__(self, num_cores: int) -> None:
        if isinstance(num_cores, bool) or not isinstance(num_cores, int) or num_cores <= 0:
            raise ConfigurationError(f"num_cores must be a positive integer, got {num_cores!r}")

        self._cores: Tuple[CoreWorker, ...] = tuple(CoreWorker(i) for i in range(num_cores))
        self._ready: List[Process] = []
        self._blocked: List[Process] = []
        self._finished: List[Process] = []
        self._processes: List[Process] = []
        self._next_process_id: int = 1

    @property
    def cores(self) -> Tuple[CoreWorker, ...]:
        return self._cores

    @property
    def ready(self) -> Tuple[Process, ...]:
        return tuple(self._ready)

    @property
    def blocked(self) -> Tuple[Process, ...]:
        return tuple(self._blocked)

    @property
    def finished(self) -> Tuple[Process, ...]:
        return tuple(self._finished)

    @property
    def processes(self) -> Tuple[Process, ...]:
        """Every process ever created, in creation order."""
        return tuple(self._processes)

    def running(self) -> List[Process]:
        """Processes currently owned by a core, in core order."""
        return [c.current_process for c in self._cores if c.current_process is not None]

    def create_process(
        self,
        priority: int,
        total_cycles: int,
        time_per_cycle: float,
        block_duration: Optional[float] = None,
    ) -> Process:
        """Create a process and place it in the ready queue.

        Args:
            priority: Lower values are dispatched first.
            total_cycles: CPU cycles required; values below 1 become 1.
            time_per_cycle: CPU time per cycle; must be positive.
            block_duration: Optional override of the wait between cycles.

        Returns:
            The new Process, already READY.
        """
        process = Process(self._next_process_id, priority, total_cycles, time_per_cycle)
        self._next_process_id += 1
        if block_duration is not None:
            process.block_duration = block_duration

        process.set_ready()
        self._ready.append(process)
        self._processes.append(process)

        logger.info(
            "P%d created: prio=%d cycles=%d time/cycle=%.1f cpu_total=%.1f block=%.1f",
            process.process_id,
            process.priority,
            process.total_cycles,
            process.time_per_cycle,
            process.total_cpu_time,
            process.block_duration,
        )
        return process

    def dispatch(self) -> List[Process]:
        """Fill free cores from the head of the priority-sorted ready queue.

        Returns:
            The processes assigned during this call, in core order.
        """
        # list.sort is stable: equal priorities keep their queue order.
        self._ready.sort(key=lambda p: p.priority)

        dispatched: List[Process] = []
        for core in self._cores:
            if not self._ready:
                break
            if core.is_free():
                process = self._ready.pop(0)
                core.assign_process(process)
                dispatched.append(process)
                logger.debug(
                    "P%d -> core %d (cycle %d/%d)",
                    process.process_id,
                    core.core_id,
                    process.current_cycle,
                    process.total_cycles,
                )
        return dispatched

    def update(self, dt: float) -> TickReport:
        """Advance the whole system by one tick of *dt* time units.

        Each tick:
          1. Advances blocked timers; expired processes rejoin the ready queue.
          2. Dispatches ready processes to free cores, so a process that just
             unblocked can run in the same tick.
          3. Advances every busy core and files processes that finished or
             blocked into the matching queue.

        Returns:
            A TickReport describing the transitions of this tick.
        """
        unblocked: List[Process] = []
        # Reverse index order so removals do not shift unvisited entries.
        for i in range(len(self._blocked) - 1, -1, -1):
            process = self._blocked[i]
            process.advance_blocked(dt)
            if process.state is ProcessState.READY:
                del self._blocked[i]
                self._ready.append(process)
                unblocked.append(process)
                logger.debug(
                    "P%d unblocked, cpu remaining %.1f",
                    process.process_id,
                    process.remaining_cpu_time,
                )

        dispatched = self.dispatch()

        blocked: List[Process] = []
        finished: List[Process] = []
        busy_cores = 0
        for core in self._cores:
            if core.is_free():
                continue
            busy_cores += 1
            process, fully_finished = core.advance(dt)
            if process is None:
                continue
            if fully_finished:
                self._finished.append(process)
                finished.append(process)
                logger.info("P%d finished, cpu used %.1f", process.process_id, process.total_cpu_time)
            elif process.state is ProcessState.BLOCKED:
                self._blocked.append(process)
                blocked.append(process)
                logger.debug(
                    "P%d blocked after cycle, now at %d/%d, cpu remaining %.1f",
                    process.process_id,
                    process.current_cycle,
                    process.total_cycles,
                    process.remaining_cpu_time,
                )

        return TickReport(
            unblocked=tuple(unblocked),
            dispatched=tuple(dispatched),
            blocked=tuple(blocked),
            finished=tuple(finished),
            busy_cores=busy_cores,
        )

    def all_finished(self) -> bool:
        """Return True if every created process has finished."""
        return len(self._finished) == len(self._processes)

    def snapshot(self) -> Tuple[ProcessSnapshot, ...]:
        """Immutable views of every created process, in id order."""
        return tuple(p.snapshot() for p in self._processes)

    def __repr__(self) -> str:
        return (
            f"Scheduler(cores={len(self._cores)}, ready={len(self._ready)}, "
            f"blocked={len(self._blocked)}, running={len(self.running())}, "
            f"finished={len(self._finished)})"
        )
