#!/usr/bin/env python3

# Runs level generation over many seeds and reports validity, timing and layout quality.

from __future__ import annotations

import argparse
from collections import Counter
import datetime
from dataclasses import dataclass
import json
import math
import os
import random
import statistics
import time
from typing import Any, Callable, Dict, List, Optional

from layout_analysis import summarize_connectivity
from level_config import GeneratorConfig
from level_errors import RetryBudgetExceeded
from level_generator import LevelGenerator
from level_geometry import GridAlignment
from room_catalog import TemplateCatalog
from room_templates import prototype_room_templates

DEFAULT_CONFIG_KWARGS = dict(
    grid_width=20,
    grid_height=20,
    min_level_size=15,
    max_level_size=40,
    level_density=50,
    forced_level_generation=True,
    max_generation_attempts=50,
    collect_metrics=True,
)

PERCENTILES = [5.0, 25.0, 50.0, 75.0, 95.0]


@dataclass
class BenchmarkRun:
    seed: int
    duration: float
    valid: bool
    attempts: int
    room_count: int
    target_room_count: int
    corridor_proportion: float
    placement_gaps: int
    component_count: int
    largest_component_fraction: float
    cycle_count: int
    graph_diameter: int
    template_counts: Counter[str]
    phase_metrics: Dict[str, Dict[str, float | int]]


def gini_coefficient(counts: List[int]) -> float:
    """Gini coefficient of non-negative counts; 0 means templates are used evenly."""
    data = sorted(value for value in counts if value > 0)
    if not data:
        return 0.0
    total = sum(data)
    n = len(data)
    weighted_sum = sum(index * value for index, value in enumerate(data, start=1))
    return (2.0 * weighted_sum) / (n * total) - (n + 1) / n


def percentile(values: List[float], pct: float) -> float:
    if not values:
        return float("nan")
    ordered = sorted(values)
    rank = (len(ordered) - 1) * (pct / 100.0)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    return ordered[lower] + (ordered[upper] - ordered[lower]) * (rank - lower)


def format_seconds(value: float) -> str:
    if value >= 1.0:
        return f"{value:.3f}s"
    return f"{value * 1000:.1f}ms"


def json_safe_number(value: float | int | None) -> float | int | None:
    if value is None:
        return None
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    return value


def summarize_values(values: List[float]) -> Dict[str, Any]:
    if not values:
        return {"count": 0}
    summary: Dict[str, Any] = {
        "count": len(values),
        "mean": statistics.mean(values),
        "median": statistics.median(values),
        "min": min(values),
        "max": max(values),
        "stdev": statistics.stdev(values) if len(values) > 1 else float("nan"),
    }
    for pct in PERCENTILES:
        summary[f"p{int(pct)}"] = percentile(values, pct)
    return {key: json_safe_number(value) for key, value in summary.items()}


def report_values(name: str, values: List[float], formatter: Callable[[float], str]) -> None:
    print(name + ":")
    if not values:
        print("  (no data)")
        return
    summary = summarize_values(values)
    print(
        "  mean {mean}, median {median}, min {min}, max {max}".format(
            mean=formatter(summary["mean"]),
            median=formatter(summary["median"]),
            min=formatter(summary["min"]),
            max=formatter(summary["max"]),
        )
    )
    print("  " + ", ".join(f"p{int(pct)}={formatter(summary[f'p{int(pct)}'])}" for pct in PERCENTILES))


def run_single_generation(config: GeneratorConfig, catalog: TemplateCatalog, seed: int) -> BenchmarkRun:
    generator = LevelGenerator(config, catalog)

    start = time.perf_counter()
    try:
        result = generator.generate(seed=seed)
        layout = result.layout
        valid = result.is_valid
        attempts = result.attempts
    except RetryBudgetExceeded as exc:
        layout = exc.last_layout
        valid = False
        attempts = exc.attempts
    duration = time.perf_counter() - start

    connectivity = summarize_connectivity(layout)
    metrics = generator.metrics.snapshot() if generator.metrics else {}
    return BenchmarkRun(
        seed=seed,
        duration=duration,
        valid=valid,
        attempts=attempts,
        room_count=layout.room_count,
        target_room_count=layout.target_room_count,
        corridor_proportion=layout.corridor_proportion,
        placement_gaps=len(layout.placement_gaps),
        component_count=connectivity.component_count,
        largest_component_fraction=connectivity.largest_component_fraction,
        cycle_count=connectivity.cycle_count,
        graph_diameter=connectivity.graph_diameter,
        template_counts=layout.template_counts(),
        phase_metrics=metrics.get("phases", {}),
    )


def run_benchmark(
    config: GeneratorConfig, catalog: TemplateCatalog, num_runs: int, seed: Optional[int]
) -> List[BenchmarkRun]:
    rng = random.Random(seed)
    return [run_single_generation(config, catalog, rng.randint(0, 1_000_000)) for _ in range(num_runs)]


def aggregate_phase_metrics(results: List[BenchmarkRun]) -> Dict[str, Dict[str, float]]:
    totals: Dict[str, Dict[str, float]] = {}
    for result in results:
        for name, metrics in result.phase_metrics.items():
            aggregate = totals.setdefault(name, {"invocations": 0.0, "total_time": 0.0, "total_rooms_added": 0.0})
            aggregate["invocations"] += float(metrics.get("invocations", 0))
            aggregate["total_time"] += float(metrics.get("total_time", 0.0))
            aggregate["total_rooms_added"] += float(metrics.get("total_rooms_added", 0))
    for aggregate in totals.values():
        invocations = aggregate["invocations"]
        aggregate["average_time"] = aggregate["total_time"] / invocations if invocations else 0.0
        aggregate["average_rooms_added"] = aggregate["total_rooms_added"] / invocations if invocations else 0.0
    return totals


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run the level generator over many seeds and report timing and quality statistics."
    )
    parser.add_argument("-n", "--runs", type=int, default=50, help="Number of generations (default: 50)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the harness RNG that picks run seeds")
    parser.add_argument("--width", type=int, default=DEFAULT_CONFIG_KWARGS["grid_width"])
    parser.add_argument("--height", type=int, default=DEFAULT_CONFIG_KWARGS["grid_height"])
    parser.add_argument("--min-rooms", type=int, default=DEFAULT_CONFIG_KWARGS["min_level_size"])
    parser.add_argument("--max-rooms", type=int, default=DEFAULT_CONFIG_KWARGS["max_level_size"])
    parser.add_argument("--density", type=int, default=DEFAULT_CONFIG_KWARGS["level_density"])
    parser.add_argument(
        "--alignment",
        choices=[alignment.value for alignment in GridAlignment],
        default=GridAlignment.HORIZONTAL.value,
    )
    parser.add_argument("--unforced", action="store_true", help="Accept the first attempt of every run")
    parser.add_argument("--no-save", action="store_true", help="Skip writing the JSON report")
    args = parser.parse_args()

    if args.runs <= 0:
        raise SystemExit("Number of runs must be a positive integer")

    kwargs = dict(DEFAULT_CONFIG_KWARGS)
    kwargs.update(
        grid_width=args.width,
        grid_height=args.height,
        min_level_size=args.min_rooms,
        max_level_size=args.max_rooms,
        level_density=args.density,
        grid_alignment=GridAlignment.from_value(args.alignment),
        forced_level_generation=not args.unforced,
    )
    try:
        config = GeneratorConfig(**kwargs)  # type: ignore[arg-type]
    except ValueError as exc:
        raise SystemExit(f"ERROR: {exc}")
    catalog = TemplateCatalog(prototype_room_templates)

    results = run_benchmark(config, catalog, args.runs, args.seed)

    for idx, result in enumerate(results, start=1):
        print(
            "Run {idx:02d}: {time} (seed {seed}) | {status} after {attempts} attempt(s) | rooms {rooms}/{target}"
            " | corridors {corridors:.0%} | components {components} | cycles {cycles}".format(
                idx=idx,
                time=format_seconds(result.duration),
                seed=result.seed,
                status="valid" if result.valid else "INVALID",
                attempts=result.attempts,
                rooms=result.room_count,
                target=result.target_room_count,
                corridors=result.corridor_proportion,
                components=result.component_count,
                cycles=result.cycle_count,
            )
        )

    durations = [result.duration for result in results]
    worst_index = durations.index(max(durations))
    valid_share = sum(1 for result in results if result.valid) / len(results)

    metrics = {
        "generation_time": ([float(value) for value in durations], format_seconds),
        "attempts": ([float(result.attempts) for result in results], lambda value: f"{value:.1f}"),
        "room_count": ([float(result.room_count) for result in results], lambda value: f"{value:.1f}"),
        "corridor_proportion": ([result.corridor_proportion for result in results], lambda value: f"{value:.1%}"),
        "largest_component_fraction": (
            [result.largest_component_fraction for result in results],
            lambda value: f"{value:.1%}",
        ),
        "graph_diameter": ([float(result.graph_diameter) for result in results], lambda value: f"{value:.1f}"),
        "cycle_count": ([float(result.cycle_count) for result in results], lambda value: f"{value:.1f}"),
    }

    print()
    print(f"Runs: {len(results)}, valid: {valid_share:.1%}")
    print(f"Worst-case generation time: {format_seconds(durations[worst_index])} (seed {results[worst_index].seed})")
    for name, (values, formatter) in metrics.items():
        print()
        report_values(name.replace("_", " ").capitalize(), values, formatter)

    total_template_counts: Counter[str] = Counter()
    for result in results:
        total_template_counts.update(result.template_counts)
    total_rooms = sum(total_template_counts.values())
    diversity = 1.0 - gini_coefficient(list(total_template_counts.values()))
    if total_rooms:
        print()
        print(f"Room template distribution (diversity {diversity:.3f}):")
        for template_name, count in total_template_counts.most_common():
            print(f"  {template_name}: {count} rooms ({count / total_rooms:.1%})")

    phase_totals = aggregate_phase_metrics(results)
    if phase_totals:
        print()
        print("Placement phase summary:")
        for name, phase in sorted(phase_totals.items(), key=lambda item: item[1]["total_time"], reverse=True):
            print(
                "  {name}: invocations={invocations}, total_time={total}, avg_time={avg}, avg_rooms={rooms:.2f}".format(
                    name=name,
                    invocations=int(phase["invocations"]),
                    total=format_seconds(phase["total_time"]),
                    avg=format_seconds(phase["average_time"]),
                    rooms=phase["average_rooms_added"],
                )
            )

    if args.no_save:
        return

    timestamp = datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
    script_dir = os.path.dirname(os.path.abspath(__file__))
    benchmarks_dir = os.path.abspath(os.path.join(script_dir, "..", "benchmarks"))
    os.makedirs(benchmarks_dir, exist_ok=True)
    output_path = os.path.join(benchmarks_dir, f"benchmark-{timestamp.strftime('%Y%m%dT%H%M%SZ')}.json")

    benchmark_data = {
        "benchmark_run_info": {
            "timestamp": timestamp.isoformat(),
            "num_iterations": args.runs,
            "seed": args.seed,
            "config": config.to_dict(),
        },
        "aggregated_results": {
            "valid_share": valid_share,
            "template_diversity": diversity,
            **{name: summarize_values(values) for name, (values, _) in metrics.items()},
        },
        "results": [
            {
                "seed": result.seed,
                "valid": result.valid,
                "attempts": result.attempts,
                "duration_seconds": result.duration,
                "room_count": result.room_count,
                "target_room_count": result.target_room_count,
                "placement_gaps": result.placement_gaps,
                "corridor_proportion": result.corridor_proportion,
                "component_count": result.component_count,
                "cycle_count": result.cycle_count,
                "graph_diameter": result.graph_diameter,
            }
            for result in results
        ],
        "phase_summary": phase_totals,
    }
    with open(output_path, "w", encoding="utf-8") as handle:
        json.dump(benchmark_data, handle, indent=2)
    print()
    print(f"Saved benchmark report to {output_path}")


if __name__ == "__main__":
    main()
