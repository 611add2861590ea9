from __future__ import annotations

from typing import Iterable

from ..core.agent import Boid
from ..types.metrics import TickMetrics


def count_alert(boids: Iterable[Boid]) -> int:
    return sum(1 for boid in boids if boid.cooldown > 0)


def create_metrics(
    tick: int,
    boids: list[Boid],
    wall_collisions: int,
    obstacle_collisions: int,
    speed: float,
    duration_ms: float,
) -> TickMetrics:
    return TickMetrics(
        tick=tick,
        population=len(boids),
        alert=count_alert(boids),
        wall_collisions=wall_collisions,
        obstacle_collisions=obstacle_collisions,
        speed=speed,
        tick_duration_ms=duration_ms,
    )
