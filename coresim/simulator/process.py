"""Process model for the cooperative multicore scheduling simulator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, FrozenSet

DEFAULT_BLOCK_DURATION = 2.0
NO_CORE = -1


class ProcessState(Enum):
    """Lifecycle state of a process."""

    NEW = auto()
    READY = auto()
    RUNNING = auto()
    BLOCKED = auto()
    FINISHED = auto()


# Operation name -> states it may be applied from. Anything else is a no-op.
_TRANSITIONS: Dict[str, FrozenSet[ProcessState]] = {
    "set_ready": frozenset({ProcessState.NEW}),
    "start_running": frozenset({ProcessState.NEW, ProcessState.READY}),
    "block": frozenset({ProcessState.RUNNING, ProcessState.READY}),
    "unblock": frozenset({ProcessState.BLOCKED}),
}


@dataclass(frozen=True)
class ProcessSpec:
    """Static description of a process to be created by a host.

    Defaults reproduce a process created with no overrides, admitted at
    the start of the run.
    """

    priority: int
    total_cycles: int
    time_per_cycle: float
    block_duration: float = DEFAULT_BLOCK_DURATION
    arrival_time: float = 0.0


@dataclass(frozen=True)
class ProcessSnapshot:
    """Immutable view of a process, taken between ticks for observers."""

    process_id: int
    priority: int
    state: ProcessState
    current_cycle: int
    total_cycles: int
    remaining_time_in_cycle: float
    time_per_cycle: float
    remaining_cpu_time: float
    total_cpu_time: float
    assigned_core_id: int
    block_duration: float
    remaining_block_time: float

    @property
    def cycle_progress(self) -> float:
        """Fraction of the current cycle already executed, in [0, 1]."""
        if self.state is ProcessState.FINISHED:
            return 1.0
        done = self.time_per_cycle - self.remaining_time_in_cycle
        return min(1.0, max(0.0, done / self.time_per_cycle))


class Process:
    """A schedulable unit that needs several CPU cycles separated by waits.

    A process runs one cycle at a time on a core.  When a cycle ends and
    more remain, the process blocks for ``block_duration`` time units
    (modelling I/O wait) before becoming ready again.  After the last
    cycle it finishes for good.

    Illegal transitions (e.g. blocking a finished process) are silently
    ignored rather than rejected.

    Args:
        process_id: Unique identifier, assigned by the scheduler.
        priority: Scheduling priority; lower values are served first.
        total_cycles: Number of CPU cycles required; clamped to at least 1.
        time_per_cycle: CPU time needed by each cycle.

    Raises:
        ValueError: If time_per_cycle is not positive.
    """

    __slots__ = (
        "process_id",
        "priority",
        "total_cycles",
        "current_cycle",
        "time_per_cycle",
        "remaining_time_in_cycle",
        "remaining_cpu_time",
        "block_duration",
        "remaining_block_time",
        "state",
        "assigned_core_id",
    )

    def __init__(
        self,
        process_id: int,
        priority: int,
        total_cycles: int,
        time_per_cycle: float,
    ) -> None:
        if time_per_cycle <= 0:
            raise ValueError(f"time_per_cycle must be positive, got {time_per_cycle}")

        self.process_id: int = process_id
        self.priority: int = priority
        self.total_cycles: int = max(1, total_cycles)
        self.time_per_cycle: float = time_per_cycle

        self.current_cycle: int = 1
        self.remaining_time_in_cycle: float = time_per_cycle
        self.remaining_cpu_time: float = self.total_cpu_time

        self.block_duration: float = DEFAULT_BLOCK_DURATION
        self.remaining_block_time: float = 0.0

        self.state: ProcessState = ProcessState.NEW
        self.assigned_core_id: int = NO_CORE

    @property
    def total_cpu_time(self) -> float:
        """Total CPU time needed over the whole lifetime."""
        return self.total_cycles * self.time_per_cycle

    def _transition(self, operation: str, target: ProcessState) -> bool:
        if self.state not in _TRANSITIONS[operation]:
            return False
        self.state = target
        return True

    def set_ready(self) -> bool:
        """Admit a new process.  Returns True if the state changed."""
        return self._transition("set_ready", ProcessState.READY)

    def start_running(self, core_id: int) -> bool:
        """Mark the process as running on *core_id*.

        The core id is recorded even when the state does not change.

        Returns:
            True if the process moved to RUNNING.
        """
        self.assigned_core_id = core_id
        return self._transition("start_running", ProcessState.RUNNING)

    def advance_execution(self, dt: float) -> bool:
        """Execute the current cycle for *dt* time units.

        Overshoot past the end of a cycle is dropped; the next cycle
        always starts with a full ``time_per_cycle``.

        Args:
            dt: Elapsed simulated time.

        Returns:
            True only when the last cycle completed and the process is
            now FINISHED.  An intermediate cycle completing blocks the
            process and returns False.
        """
        if self.state is not ProcessState.RUNNING:
            return False

        self.remaining_time_in_cycle -= dt
        self.remaining_cpu_time -= dt

        if self.remaining_time_in_cycle > 0:
            return False

        if self.current_cycle >= self.total_cycles:
            self.finish()
            return True

        self.current_cycle += 1
        self.remaining_time_in_cycle = self.time_per_cycle
        self.block()
        return False

    def block(self) -> bool:
        """Enter the wait between two cycles."""
        if not self._transition("block", ProcessState.BLOCKED):
            return False
        self.assigned_core_id = NO_CORE
        self.remaining_block_time = self.block_duration
        return True

    def advance_blocked(self, dt: float) -> None:
        """Count down the block timer; unblock when it expires."""
        if self.state is not ProcessState.BLOCKED:
            return

        self.remaining_block_time -= dt
        if self.remaining_block_time <= 0:
            self.remaining_block_time = 0.0
            self.unblock()

    def unblock(self) -> bool:
        return self._transition("unblock", ProcessState.READY)

    def finish(self) -> None:
        """Terminate the process.  FINISHED has no outgoing transitions."""
        self.state = ProcessState.FINISHED
        self.assigned_core_id = NO_CORE
        self.remaining_time_in_cycle = 0.0
        self.remaining_cpu_time = 0.0

    def is_finished(self) -> bool:
        return self.state is ProcessState.FINISHED

    def snapshot(self) -> ProcessSnapshot:
        """Return an immutable copy of the observable fields."""
        return ProcessSnapshot(
            process_id=self.process_id,
            priority=self.priority,
            state=self.state,
            current_cycle=self.current_cycle,
            total_cycles=self.total_cycles,
            remaining_time_in_cycle=self.remaining_time_in_cycle,
            time_per_cycle=self.time_per_cycle,
            remaining_cpu_time=self.remaining_cpu_time,
            total_cpu_time=self.total_cpu_time,
            assigned_core_id=self.assigned_core_id,
            block_duration=self.block_duration,
            remaining_block_time=self.remaining_block_time,
        )

    def __repr__(self) -> str:
        return (
            f"Process(id={self.process_id}, prio={self.priority}, "
            f"state={self.state.name}, cycle={self.current_cycle}/{self.total_cycles}, "
            f"remaining_cpu={self.remaining_cpu_time:.2f}, core={self.assigned_core_id})"
        )
