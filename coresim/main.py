"""CLI entry point for the cooperative multicore scheduling simulator."""

from __future__ import annotations

import argparse
import logging
from typing import List, Tuple

from coresim.metrics.compare import print_comparison, run_comparison
from coresim.metrics.performance import compute_metrics, core_utilization
from coresim.simulator.process import ProcessSnapshot, ProcessSpec
from coresim.simulator.simulation import ProcessRecord, Simulation
from coresim.workload.generator import demo_workload, generate_workload


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Cooperative Multicore Scheduling Simulator",
    )
    parser.add_argument(
        "--cores",
        type=int,
        default=2,
        help="Number of cores (default: 2)",
    )
    parser.add_argument(
        "--workload-type",
        type=str,
        choices=["demo", "random"],
        default="demo",
        help="Workload: the fixed four-process demo or a random one (default: demo)",
    )
    parser.add_argument(
        "--processes",
        type=int,
        default=10,
        help="Number of processes for the random workload (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for workload generation (default: 42)",
    )
    parser.add_argument(
        "--arrival-span",
        type=float,
        default=0.0,
        help="Spread random arrivals over [0, span] (default: 0, all at start)",
    )
    parser.add_argument(
        "--dt",
        type=float,
        default=0.5,
        help="Simulated time per tick (default: 0.5)",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=100_000,
        help="Stop after this many ticks (default: 100000)",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print the state of every process after each tick",
    )
    parser.add_argument(
        "--compare",
        type=str,
        default=None,
        metavar="N,N,...",
        help="Run the same workload on each listed core count and compare",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log scheduler events",
    )
    return parser


def parse_core_counts(value: str) -> List[int]:
    """Parse a comma-separated list of positive core counts."""
    counts = [int(part) for part in value.split(",") if part.strip()]
    if not counts or any(c <= 0 for c in counts):
        raise ValueError(f"core counts must be positive integers, got {value!r}")
    return counts


def make_workload(args: argparse.Namespace) -> List[ProcessSpec]:
    if args.workload_type == "random":
        return generate_workload(
            num_processes=args.processes, seed=args.seed, arrival_span=args.arrival_span
        )
    return demo_workload()


def format_tick(clock: float, snapshots: Tuple[ProcessSnapshot, ...]) -> str:
    """One trace line: every process as id:state@core cycle progress."""
    parts = []
    for s in snapshots:
        where = f"@{s.assigned_core_id}" if s.assigned_core_id >= 0 else ""
        parts.append(
            f"P{s.process_id}:{s.state.name[:3]}{where} "
            f"{s.current_cycle}/{s.total_cycles} {s.cycle_progress:>4.0%}"
        )
    return f"t={clock:>7.2f} | " + " | ".join(parts)


def print_results(
    records: List[ProcessRecord],
    num_cores: int,
    dt: float,
    busy_time: float,
    elapsed: float,
) -> None:
    """Print per-process results and summary statistics to stdout."""
    header = (
        f"{'ID':>4}  {'Prio':>4}  {'Cycles':>6}  {'T/Cycle':>7}  {'Block':>5}  "
        f"{'Arrival':>7}  {'Start':>6}  {'End':>7}  {'Turnaround':>10}  {'Ready':>6}"
    )
    separator = "-" * len(header)

    print(f"\n=== Simulation Results: {num_cores} core(s), dt={dt} ===\n")
    print(header)
    print(separator)

    for r in records:
        start = f"{r.first_run_time:.1f}" if r.first_run_time is not None else "-"
        end = f"{r.finish_time:.1f}" if r.finish_time is not None else "-"
        turnaround = f"{r.turnaround_time:.1f}" if r.turnaround_time is not None else "-"
        print(
            f"{r.process_id:>4}  {r.priority:>4}  {r.total_cycles:>6}  {r.time_per_cycle:>7.1f}  "
            f"{r.block_duration:>5.1f}  {r.arrival_time:>7.1f}  {start:>6}  {end:>7}  "
            f"{turnaround:>10}  {r.ready_wait:>6.1f}"
        )

    metrics = compute_metrics(records)
    print(separator)
    print(f"  Avg Turnaround:   {metrics['avg_turnaround']:.2f}")
    print(f"  Avg Response:     {metrics['avg_response']:.2f}")
    print(f"  Avg Ready Wait:   {metrics['avg_ready_wait']:.2f}")
    print(f"  Makespan:         {metrics['makespan']:.2f}")
    print(f"  Core Utilization: {core_utilization(busy_time, num_cores, elapsed):.1%}")
    print()


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, run simulation, print results."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cores <= 0:
        parser.error("--cores must be positive")
    if args.dt <= 0:
        parser.error("--dt must be positive")
    if args.arrival_span < 0:
        parser.error("--arrival-span must be non-negative")

    workload = make_workload(args)

    if args.compare:
        try:
            core_counts = parse_core_counts(args.compare)
        except ValueError as e:
            parser.error(str(e))
        results = run_comparison(workload, core_counts, dt=args.dt, max_ticks=args.max_ticks)
        print_comparison(results)
        return

    sim = Simulation(
        num_cores=args.cores,
        workload=workload,
        dt=args.dt,
        max_ticks=args.max_ticks,
        record_trace=args.trace,
    )
    records = sim.run()

    for clock, snapshots in sim.trace:
        print(format_tick(clock, snapshots))

    print_results(records, sim.num_cores, args.dt, sim.busy_time, sim.clock)


if __name__ == "__main__":
    main()
