from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import yaml

from .agent import BoidVariant
from .obstacle import Obstacle, ObstacleShape


@dataclass
class ObstacleConfig:
    position: tuple[float, float] = (0.0, 0.0)
    radius: float = 40.0
    shape: str = "circle"

    def build(self) -> Obstacle:
        return Obstacle(
            x=float(self.position[0]),
            y=float(self.position[1]),
            radius=float(self.radius),
            shape=ObstacleShape(self.shape),
        )


@dataclass
class BoidSeedConfig:
    position: tuple[float, float] = (0.0, 0.0)
    heading: tuple[float, float] = (1.0, 0.0)
    variant: str = "standard"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_file: Optional[str] = None
    log_every: int = 300


def _default_boids() -> List[BoidSeedConfig]:
    return [
        BoidSeedConfig(position=(100.0, 100.0)),
        BoidSeedConfig(position=(200.0, 200.0), heading=(-1.0, 0.0)),
        BoidSeedConfig(position=(300.0, 300.0), heading=(0.0, -1.0)),
        BoidSeedConfig(position=(400.0, 400.0), heading=(0.0, 1.0)),
    ]


def _default_obstacles() -> List[ObstacleConfig]:
    return [
        ObstacleConfig(position=(200.0, 400.0), radius=40.0, shape="circle"),
        ObstacleConfig(position=(150.0, 150.0), radius=40.0, shape="square"),
        ObstacleConfig(position=(400.0, 200.0), radius=40.0, shape="circle"),
    ]


@dataclass
class SimulationConfig:
    width: float = 600.0
    height: float = 600.0
    boid_half_size: float = 5.0
    collision_cooldown_frames: int = 10
    steer_angle_degrees: float = 2.0
    default_speed: float = 2.0
    max_speed: float = 10.0
    spawn_batch_size: int = 10
    frame_rate: int = 60
    seed: int = 42
    config_version: str = "v1"
    initial_boids: List[BoidSeedConfig] = field(default_factory=_default_boids)
    obstacles: List[ObstacleConfig] = field(default_factory=_default_obstacles)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def build_obstacles(self) -> List[Obstacle]:
        return [obstacle.build() for obstacle in self.obstacles]


def _pair(value: tuple[float, float] | list[float] | None, default: tuple[float, float]) -> tuple[float, float]:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    return default


def _parse_obstacle(raw: dict) -> ObstacleConfig:
    shape = str(raw.get("shape", "circle")).lower()
    if shape not in {s.value for s in ObstacleShape}:
        raise ValueError(f"Unknown obstacle shape: {shape}")
    radius = float(raw.get("radius", 40.0))
    if radius <= 0:
        raise ValueError(f"Obstacle radius must be positive, got {radius}")
    return ObstacleConfig(position=_pair(raw.get("position"), (0.0, 0.0)), radius=radius, shape=shape)


def _parse_boid(raw: dict) -> BoidSeedConfig:
    variant = str(raw.get("variant", "standard")).lower()
    if variant not in {v.value for v in BoidVariant}:
        raise ValueError(f"Unknown boid variant: {variant}")
    return BoidSeedConfig(
        position=_pair(raw.get("position"), (0.0, 0.0)),
        heading=_pair(raw.get("heading"), (1.0, 0.0)),
        variant=variant,
    )


_KNOWN_KEYS = {f.name for f in fields(SimulationConfig)}
_KNOWN_LOGGING_KEYS = {f.name for f in fields(LoggingConfig)}


def load_config(raw: dict) -> SimulationConfig:
    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
    logging_raw = raw.get("logging") or {}
    unknown_logging = sorted(set(logging_raw) - _KNOWN_LOGGING_KEYS)
    if unknown_logging:
        raise ValueError(f"Unknown logging keys: {', '.join(unknown_logging)}")
    sim_values = {k: v for k, v in raw.items() if k not in {"initial_boids", "obstacles", "logging"}}
    extra: dict = {}
    if "obstacles" in raw:
        extra["obstacles"] = [_parse_obstacle(item) for item in raw.get("obstacles") or []]
    if "initial_boids" in raw:
        extra["initial_boids"] = [_parse_boid(item) for item in raw.get("initial_boids") or []]
    config = SimulationConfig(logging=LoggingConfig(**logging_raw), **sim_values, **extra)

    if config.width <= 0 or config.height <= 0:
        raise ValueError(f"Arena bounds must be positive, got {config.width}x{config.height}")
    if config.collision_cooldown_frames < 0:
        raise ValueError("collision_cooldown_frames must be non-negative")
    if config.boid_half_size < 0:
        raise ValueError("boid_half_size must be non-negative")
    return config
