"""CPU core model for the scheduling simulator."""

from __future__ import annotations

from typing import Optional, Tuple

from coresim.simulator.process import NO_CORE, Process, ProcessState


class CoreWorker:
    """A single CPU core that executes at most one process at a time.

    The core does not decide what to run; the scheduler hands it a
    process and collects it back once a cycle boundary is crossed.

    Args:
        core_id: Unique identifier for this core.
    """

    __slots__ = ("core_id", "current_process")

    def __init__(self, core_id: int) -> None:
        self.core_id: int = core_id
        self.current_process: Optional[Process] = None

    def is_free(self) -> bool:
        """Return True if no process is currently owned."""
        return self.current_process is None

    def assign_process(self, process: Optional[Process]) -> None:
        """Take ownership of *process* and start running it.

        Assigning None is a no-op.  The caller must make sure the core is
        free; an owned process would be silently replaced.
        """
        if process is None:
            return
        self.current_process = process
        process.start_running(self.core_id)

    def release_process(self) -> Optional[Process]:
        """Evict the owned process without changing its state.

        Returns:
            The released Process, or None if the core was free.
        """
        process = self.current_process
        if process is None:
            return None
        process.assigned_core_id = NO_CORE
        self.current_process = None
        return process

    def advance(self, dt: float) -> Tuple[Optional[Process], bool]:
        """Run the owned process for *dt* time units.

        A cycle boundary is detected by comparing the process state
        before and after execution, so the state must be captured first.

        Returns:
            (changed_process, fully_finished).  changed_process is the
            process that just finished or blocked, now released from this
            core; it is None when the process keeps running or the core
            is free.
        """
        process = self.current_process
        if process is None:
            return None, False

        previous_state = process.state
        finished = process.advance_execution(dt)

        if finished:
            self.current_process = None
            return process, True

        if previous_state is ProcessState.RUNNING and process.state is ProcessState.BLOCKED:
            self.current_process = None
            return process, False

        return None, False

    def __repr__(self) -> str:
        process_info = self.current_process.process_id if self.current_process else "free"
        return f"CoreWorker(id={self.core_id}, process={process_info})"
