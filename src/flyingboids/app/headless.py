from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.arena import Arena
from ..sim.core.clock import ControlPanel, SimulationClock
from ..sim.core.config import SimulationConfig
from .log import setup_logging

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "population",
    "alert",
    "wall_collisions",
    "obstacle_collisions",
    "speed",
    "tick_ms",
]


def _format_row(metrics: object, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.alert,
        metrics.wall_collisions,
        metrics.obstacle_collisions,
        f"{metrics.speed:.3f}",
        f"{tick_ms:.3f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p95": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p95": _percentile(sorted_values, 0.95),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    speed: Optional[float] = None,
    add_batches: int = 0,
    deterministic_log: bool = False,
    summary_path: Optional[Path] = None,
    config: Optional[SimulationConfig] = None,
    log_every: int = 0,
) -> None:
    if steps < 0:
        raise ValueError(f"steps must be non-negative, got {steps}")
    config = config if config is not None else SimulationConfig()
    if seed is not None:
        config.seed = seed
    arena = Arena(config)
    controls = ControlPanel(
        speed=config.default_speed if speed is None else speed,
        batch_size=config.spawn_batch_size,
        max_speed=config.max_speed,
    )
    for _ in range(add_batches):
        controls.on_add_requested()
    clock = SimulationClock(arena, None, controls.speed_provider, controls)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    tick_ms_series: list[float] = []
    wall_total = 0
    obstacle_total = 0
    alert_series: list[float] = []
    logger.info("Running %d headless ticks (seed=%d)", steps, config.seed)
    try:
        for _ in range(steps):
            metrics = clock.tick()
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            tick_ms_series.append(tick_ms)
            alert_series.append(float(metrics.alert))
            wall_total += metrics.wall_collisions
            obstacle_total += metrics.obstacle_collisions
            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
            if log_every > 0 and metrics.tick % log_every == 0:
                logger.info("tick %d population=%d alert=%d", metrics.tick, metrics.population, metrics.alert)
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "speed": controls.speed_provider(),
            "population": len(arena.agents),
            "deterministic_log": deterministic_log,
            "collisions": {"wall": wall_total, "obstacle": obstacle_total},
            "alert": _summary_stats(alert_series),
            "tick_ms": _summary_stats(tick_ms_series),
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless boid arena simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--speed", type=float, default=None, help="Boid speed per tick (defaults to config)")
    parser.add_argument("--add", type=int, default=0, help="Number of random batches to add before the first tick")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON file to write summary stats.")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    args = parser.parse_args()
    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    setup_logging(config.logging.level, config.logging.log_file)
    run_headless(
        args.steps,
        args.seed,
        args.log,
        speed=args.speed,
        add_batches=args.add,
        deterministic_log=args.deterministic_log,
        summary_path=args.summary,
        config=config,
        log_every=config.logging.log_every,
    )


if __name__ == "__main__":
    main()
