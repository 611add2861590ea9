from __future__ import annotations

import logging
import math
from time import perf_counter
from typing import Any, Dict, List

from .agent import Boid, BoidVariant
from .config import SimulationConfig
from .obstacle import Obstacle
from .rng import DeterministicRng
from ..systems import collisions, metrics as metrics_system
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import heading_angle

logger = logging.getLogger(__name__)


class Arena:
    """Bounded rectangle holding the obstacles and the boid population.

    Population changes (``add_random_boids``, ``clear``) must not run while a
    ``step`` is iterating; callers serialize them with ticks.
    """

    def __init__(self, config: SimulationConfig, rng: DeterministicRng | None = None):
        self._config = config
        self._rng = rng if rng is not None else DeterministicRng(config.seed)
        self._obstacles: tuple[Obstacle, ...] = tuple(config.build_obstacles())
        self._boids: List[Boid] = []
        self._steer_angle = math.radians(config.steer_angle_degrees)
        self._next_id = 0
        self._tick = 0
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def width(self) -> float:
        return self._config.width

    @property
    def height(self) -> float:
        return self._config.height

    @property
    def agents(self) -> List[Boid]:
        return self._boids

    @property
    def obstacles(self) -> tuple[Obstacle, ...]:
        return self._obstacles

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._boids.clear()
        self._rng.reset()
        self._next_id = 0
        self._tick = 0
        self._metrics = None
        self._bootstrap_population()

    def step(self, speed: float) -> TickMetrics:
        start = perf_counter()
        config = self._config
        half_size = config.boid_half_size
        duration = config.collision_cooldown_frames
        boids = self._boids

        for boid in boids:
            boid.steer(self._steer_angle)
        for boid in boids:
            boid.integrate(speed)

        wall_hits = 0
        obstacle_hits = 0
        for boid in boids:
            boid.tick_cooldown()
            # Walls first: a wall hit sets the cooldown and skips obstacles.
            if collisions.resolve_walls(boid, config.width, config.height, half_size, duration, self._rng):
                wall_hits += 1
            if collisions.resolve_obstacles(boid, self._obstacles, half_size, duration, self._rng):
                obstacle_hits += 1

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(self._tick, boids, wall_hits, obstacle_hits, speed, elapsed_ms)
        self._metrics = metrics
        self._tick += 1
        return metrics

    def add_random_boids(self, count: int, bounds: tuple[float, float] | None = None) -> List[Boid]:
        width, height = bounds if bounds is not None else (self._config.width, self._config.height)
        added: List[Boid] = []
        for _ in range(count):
            x = self._rng.next_range(0.0, width)
            y = self._rng.next_range(0.0, height)
            boid = Boid.spawn(
                self._allocate_id(),
                x,
                y,
                self._rng.next_sign(),
                self._rng.next_sign(),
                rng=self._rng,
            )
            self._boids.append(boid)
            added.append(boid)
        logger.info("Added %d boids (population %d)", count, len(self._boids))
        return added

    def add_boid(
        self,
        x: float,
        y: float,
        vx: float = 1.0,
        vy: float = 0.0,
        variant: BoidVariant = BoidVariant.STANDARD,
        random_heading: bool = False,
    ) -> Boid:
        boid = Boid.spawn(
            self._allocate_id(), x, y, vx, vy, variant=variant, random_heading=random_heading, rng=self._rng
        )
        self._boids.append(boid)
        return boid

    def clear(self) -> None:
        removed = len(self._boids)
        self._boids.clear()
        logger.info("Cleared %d boids", removed)

    def snapshot(self) -> Snapshot:
        metrics = self._metrics if self._metrics is not None else self._snapshot_metrics_from_state()
        metadata = SnapshotMetadata(
            boid_half_size=self._config.boid_half_size,
            collision_cooldown_frames=self._config.collision_cooldown_frames,
            frame_rate=self._config.frame_rate,
            seed=self._rng.seed,
            config_version=self._config.config_version,
        )
        return Snapshot(
            tick=self._tick,
            metrics=metrics,
            agents=[self._agent_snapshot(boid) for boid in self._boids],
            obstacles=[self._obstacle_snapshot(obstacle) for obstacle in self._obstacles],
            world=SnapshotWorld(width=self._config.width, height=self._config.height),
            metadata=metadata,
        )

    def _bootstrap_population(self) -> None:
        for seed in self._config.initial_boids:
            self.add_boid(
                seed.position[0],
                seed.position[1],
                seed.heading[0],
                seed.heading[1],
                variant=BoidVariant(seed.variant),
            )

    def _allocate_id(self) -> int:
        boid_id = self._next_id
        self._next_id += 1
        return boid_id

    @staticmethod
    def _agent_snapshot(boid: Boid) -> Dict[str, Any]:
        return {
            "id": boid.id,
            "x": boid.position.x,
            "y": boid.position.y,
            "vx": boid.heading.x,
            "vy": boid.heading.y,
            "heading": heading_angle(boid.heading.x, boid.heading.y),
            "cooldown": boid.cooldown,
            "display_mode": boid.display_mode.value,
            "variant": boid.variant.value,
        }

    @staticmethod
    def _obstacle_snapshot(obstacle: Obstacle) -> Dict[str, Any]:
        return {
            "x": obstacle.x,
            "y": obstacle.y,
            "radius": obstacle.radius,
            "shape": obstacle.shape.value,
        }

    def _snapshot_metrics_from_state(self) -> TickMetrics:
        return metrics_system.create_metrics(self._tick, self._boids, 0, 0, 0.0, 0.0)
