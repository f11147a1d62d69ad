"""Workload generation for the scheduling simulator."""

from __future__ import annotations

import random
from typing import List, Tuple

from coresim.simulator.process import ProcessSpec


def demo_workload() -> List[ProcessSpec]:
    """Return the four-process showcase workload.

    Mixes a quick high-priority process, several medium cycles, long
    cycles with long waits, and many short cycles sharing top priority.
    """
    return [
        ProcessSpec(priority=1, total_cycles=2, time_per_cycle=6.0, block_duration=2.0),
        ProcessSpec(priority=2, total_cycles=4, time_per_cycle=4.0, block_duration=3.0),
        ProcessSpec(priority=3, total_cycles=3, time_per_cycle=10.0, block_duration=5.0),
        ProcessSpec(priority=1, total_cycles=5, time_per_cycle=3.0, block_duration=1.5),
    ]


def generate_workload(
    num_processes: int,
    seed: int = 42,
    priority_range: Tuple[int, int] = (1, 5),
    cycles_range: Tuple[int, int] = (1, 5),
    time_per_cycle_range: Tuple[float, float] = (1.0, 10.0),
    block_duration_range: Tuple[float, float] = (0.5, 5.0),
    arrival_span: float = 0.0,
) -> List[ProcessSpec]:
    """Generate a reproducible list of process specs with random parameters.

    Uses a local Random instance seeded with *seed* so that results are
    fully deterministic regardless of external random state.  Float
    parameters are rounded to one decimal.

    Args:
        num_processes: Number of processes to generate.
        seed: RNG seed for reproducibility.
        priority_range: Inclusive (min, max) range for priorities.
        cycles_range: Inclusive (min, max) range for cycle counts.
        time_per_cycle_range: (min, max) range for the CPU time per cycle.
        block_duration_range: (min, max) range for the wait between cycles.
        arrival_span: Arrivals are spread uniformly over [0, arrival_span].

    Returns:
        A list of ProcessSpec sorted by arrival_time.

    Raises:
        ValueError: If num_processes is negative or a range is invalid.
    """
    if num_processes < 0:
        raise ValueError(f"num_processes must be non-negative, got {num_processes}")
    if arrival_span < 0:
        raise ValueError(f"arrival_span must be non-negative, got {arrival_span}")
    for name, (low, high) in (
        ("priority_range", priority_range),
        ("cycles_range", cycles_range),
        ("time_per_cycle_range", time_per_cycle_range),
        ("block_duration_range", block_duration_range),
    ):
        if low > high:
            raise ValueError(f"{name} must be (min, max), got ({low}, {high})")
    if time_per_cycle_range[0] <= 0:
        raise ValueError("time_per_cycle_range must be strictly positive")

    rng = random.Random(seed)
    specs: List[ProcessSpec] = []

    for _ in range(num_processes):
        arrival = round(rng.uniform(0.0, arrival_span), 1) if arrival_span else 0.0
        specs.append(
            ProcessSpec(
                priority=rng.randint(*priority_range),
                total_cycles=rng.randint(*cycles_range),
                time_per_cycle=max(
                    time_per_cycle_range[0], round(rng.uniform(*time_per_cycle_range), 1)
                ),
                block_duration=round(rng.uniform(*block_duration_range), 1),
                arrival_time=arrival,
            )
        )

    specs.sort(key=lambda s: s.arrival_time)
    return specs
