"""Performance metrics over finished simulation records."""

from __future__ import annotations

from typing import Dict, List

import numpy as np

from coresim.simulator.simulation import ProcessRecord


def compute_metrics(records: List[ProcessRecord]) -> Dict[str, float]:
    finished = [r for r in records if r.finish_time is not None]
    if not finished:
        return {
            "avg_turnaround": 0.0,
            "max_turnaround": 0.0,
            "p99_turnaround": 0.0,
            "avg_response": 0.0,
            "avg_ready_wait": 0.0,
            "makespan": 0.0,
            "throughput": 0.0,
        }

    turnarounds = np.array([r.turnaround_time for r in finished], dtype=float)
    responses = np.array(
        [r.response_time for r in finished if r.response_time is not None], dtype=float
    )
    ready_waits = np.array([r.ready_wait for r in finished], dtype=float)

    makespan = max(r.finish_time for r in finished)
    # Throughput as finished processes per 100 time units.
    throughput = (100.0 * len(finished)) / makespan if makespan > 0 else 0.0

    return {
        "avg_turnaround": float(turnarounds.mean()),
        "max_turnaround": float(turnarounds.max()),
        "p99_turnaround": float(np.percentile(turnarounds, 99)),
        "avg_response": float(responses.mean()) if responses.size else 0.0,
        "avg_ready_wait": float(ready_waits.mean()),
        "makespan": float(makespan),
        "throughput": throughput,
    }


def core_utilization(busy_time: float, num_cores: int, elapsed: float) -> float:
    """Fraction of available core time spent executing, in [0, 1]."""
    if elapsed <= 0 or num_cores <= 0:
        return 0.0
    return min(1.0, busy_time / (num_cores * elapsed))
