"""Comparative analysis: the same workload across several core counts."""

from __future__ import annotations

from typing import Dict, Iterable, Sequence

from coresim.metrics.performance import compute_metrics, core_utilization
from coresim.simulator.process import ProcessSpec
from coresim.simulator.simulation import Simulation


def run_comparison(
    workload: Sequence[ProcessSpec],
    core_counts: Iterable[int],
    dt: float = 0.5,
    max_ticks: int = 100_000,
) -> Dict[int, Dict[str, float]]:
    """Run *workload* once per core count and collect metrics.

    Returns:
        Mapping of core count to its metrics dict, which also carries
        ``core_utilization`` and ``completed``.
    """
    results: Dict[int, Dict[str, float]] = {}
    for num_cores in core_counts:
        sim = Simulation(
            num_cores=num_cores,
            workload=workload,
            dt=dt,
            max_ticks=max_ticks,
        )
        records = sim.run()
        metrics = compute_metrics(records)
        metrics["core_utilization"] = core_utilization(sim.busy_time, num_cores, sim.clock)
        metrics["completed"] = float(sum(1 for r in records if r.finish_time is not None))
        results[num_cores] = metrics
    return results


def print_comparison(results: Dict[int, Dict[str, float]]) -> None:
    """Print metrics side by side, one column per core count."""
    keys = [
        "avg_turnaround",
        "max_turnaround",
        "p99_turnaround",
        "avg_response",
        "avg_ready_wait",
        "makespan",
        "throughput",
        "core_utilization",
        "completed",
    ]
    columns = sorted(results)

    print("\n=== Comparative Analysis: core counts ===\n")
    header = f"  {'Metric':<18}" + "".join(f"  {str(c) + ' core(s)':>12}" for c in columns)
    print(header)
    print("  " + "-" * (len(header) - 2))
    for key in keys:
        row = f"  {key:<18}" + "".join(f"  {results[c][key]:>12.2f}" for c in columns)
        print(row)
    print()
