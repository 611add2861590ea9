from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    alert: int
    wall_collisions: int
    obstacle_collisions: int
    speed: float
    tick_duration_ms: float = 0.0
