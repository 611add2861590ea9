from __future__ import annotations

from pathlib import Path

import pytest

from flyingboids.sim.core.config import SimulationConfig, load_config
from flyingboids.sim.core.obstacle import Obstacle, ObstacleShape

ROOT = Path(__file__).resolve().parents[2]


def test_defaults_match_demo_layout():
    config = SimulationConfig()
    obstacles = config.build_obstacles()
    assert obstacles == [
        Obstacle(200.0, 400.0, 40.0, ObstacleShape.CIRCLE),
        Obstacle(150.0, 150.0, 40.0, ObstacleShape.SQUARE),
        Obstacle(400.0, 200.0, 40.0, ObstacleShape.CIRCLE),
    ]
    assert [seed.position for seed in config.initial_boids] == [
        (100.0, 100.0),
        (200.0, 200.0),
        (300.0, 300.0),
        (400.0, 400.0),
    ]
    assert config.collision_cooldown_frames == 10
    assert config.boid_half_size == 5.0


def test_load_config_overrides_and_nested_sections():
    config = load_config(
        {
            "width": 320,
            "height": 240,
            "seed": 5,
            "obstacles": [{"position": [10, 20], "radius": 4, "shape": "SQUARE"}],
            "initial_boids": [{"position": [1, 2], "heading": [0, 1], "variant": "green"}],
            "logging": {"level": "DEBUG", "log_every": 10},
        }
    )
    assert (config.width, config.height, config.seed) == (320, 240, 5)
    assert config.build_obstacles() == [Obstacle(10.0, 20.0, 4.0, ObstacleShape.SQUARE)]
    assert config.initial_boids[0].heading == (0.0, 1.0)
    assert config.initial_boids[0].variant == "green"
    assert config.logging.level == "DEBUG"
    assert config.logging.log_every == 10


def test_load_config_keeps_defaults_for_missing_sections():
    config = load_config({"width": 800})
    assert len(config.obstacles) == 3
    assert len(config.initial_boids) == 4
    assert config.height == 600.0


@pytest.mark.parametrize(
    "raw",
    [
        {"obstacles": [{"shape": "triangle"}]},
        {"obstacles": [{"radius": 0}]},
        {"initial_boids": [{"variant": "purple"}]},
        {"width": 0},
        {"collision_cooldown_frames": -1},
        {"colision_cooldown_frames": 3},
        {"logging": {"verbosity": "high"}},
    ],
)
def test_load_config_rejects_invalid_values(raw):
    with pytest.raises(ValueError):
        load_config(raw)


def test_from_yaml_round_trip(tmp_path):
    path = tmp_path / "arena.yaml"
    path.write_text("width: 250\nobstacles: []\ninitial_boids:\n  - {position: [5, 6]}\n")
    config = SimulationConfig.from_yaml(path)
    assert config.width == 250
    assert config.obstacles == []
    assert config.initial_boids[0].position == (5.0, 6.0)


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert SimulationConfig.from_yaml(path) == SimulationConfig()


@pytest.mark.config_change
def test_shipped_default_yaml_matches_builtin_layout():
    config = SimulationConfig.from_yaml(ROOT / "configs" / "default.yaml")
    defaults = SimulationConfig()
    assert config.build_obstacles() == defaults.build_obstacles()
    assert [seed.position for seed in config.initial_boids] == [seed.position for seed in defaults.initial_boids]
    assert config.collision_cooldown_frames == defaults.collision_cooldown_frames


def test_empty_logging_section_uses_defaults(tmp_path):
    path = tmp_path / "arena.yaml"
    path.write_text("width: 300\nlogging:\n")
    config = SimulationConfig.from_yaml(path)
    assert config.width == 300
    assert config.logging == SimulationConfig().logging
