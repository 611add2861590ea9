from __future__ import annotations

import argparse
import logging
import math
from pathlib import Path
from typing import List, Sequence, Tuple

import pygame
from pygame.math import Vector2

from ..sim.core.agent import Boid, BoidVariant, DisplayMode
from ..sim.core.arena import Arena
from ..sim.core.clock import ControlPanel, SimulationClock
from ..sim.core.config import SimulationConfig
from ..sim.core.obstacle import Obstacle, ObstacleShape
from .log import setup_logging

logger = logging.getLogger(__name__)

BACKGROUND_COLOR = (255, 255, 255)
OBSTACLE_COLOR = (0, 0, 255)
BOID_COLOR = (0, 0, 0)
ALERT_COLOR = (255, 0, 0)
GREEN_COLOR = (0, 128, 0)
HUD_COLOR = (60, 60, 60)
SPEED_STEP = 0.5


def boid_color(boid: Boid) -> Tuple[int, int, int]:
    if boid.display_mode is DisplayMode.ALERT:
        return ALERT_COLOR
    if boid.variant is BoidVariant.GREEN:
        return GREEN_COLOR
    return BOID_COLOR


def triangle_points(boid: Boid, size: float) -> List[Tuple[float, float]]:
    """Triangle pointing along the heading, nose at ``size`` ahead of the centre."""
    angle = math.atan2(boid.heading.y, boid.heading.x)
    c = math.cos(angle)
    s = math.sin(angle)
    points = []
    for lx, ly in ((size, 0.0), (-size, size), (-size, -size)):
        points.append((boid.position.x + lx * c - ly * s, boid.position.y + lx * s + ly * c))
    return points


class PygameRenderer:
    def __init__(self, surface: pygame.Surface, boid_size: float = 5.0):
        self.surface = surface
        self.boid_size = boid_size

    def render(self, obstacles: Sequence[Obstacle], agents: Sequence[Boid]) -> None:
        self.surface.fill(BACKGROUND_COLOR)
        for obstacle in obstacles:
            center = Vector2(obstacle.x, obstacle.y)
            if obstacle.shape is ObstacleShape.CIRCLE:
                pygame.draw.circle(self.surface, OBSTACLE_COLOR, center, obstacle.radius)
            else:
                side = obstacle.radius * 2
                rect = pygame.Rect(0, 0, side, side)
                rect.center = (round(obstacle.x), round(obstacle.y))
                pygame.draw.rect(self.surface, OBSTACLE_COLOR, rect)
        for boid in agents:
            pygame.draw.polygon(self.surface, boid_color(boid), triangle_points(boid, self.boid_size))


def handle_event(event: pygame.event.Event, controls: ControlPanel) -> bool:
    """Map keys onto the control panel. Returns False when the window should close."""
    if event.type == pygame.QUIT:
        return False
    if event.type != pygame.KEYDOWN:
        return True
    if event.key == pygame.K_ESCAPE:
        return False
    if event.key == pygame.K_a:
        controls.on_add_requested()
    elif event.key == pygame.K_c:
        controls.on_clear_requested()
    elif event.key in (pygame.K_UP, pygame.K_RIGHT):
        controls.set_speed(controls.speed_provider() + SPEED_STEP)
    elif event.key in (pygame.K_DOWN, pygame.K_LEFT):
        controls.set_speed(controls.speed_provider() - SPEED_STEP)
    return True


def run_viewer(config: SimulationConfig) -> None:
    pygame.init()
    screen = pygame.display.set_mode((int(config.width), int(config.height)))
    pygame.display.set_caption("Flying Boids")
    font = pygame.font.SysFont(None, 20)
    frame_clock = pygame.time.Clock()

    arena = Arena(config)
    controls = ControlPanel(
        speed=config.default_speed,
        batch_size=config.spawn_batch_size,
        max_speed=config.max_speed,
    )
    renderer = PygameRenderer(screen, config.boid_half_size)
    clock = SimulationClock(arena, renderer, controls.speed_provider, controls)

    def wait() -> None:
        hud = font.render(
            f"boids {len(arena.agents)}  speed {controls.speed_provider():.1f}  [A]dd [C]lear [Up/Down] speed",
            True,
            HUD_COLOR,
        )
        screen.blit(hud, (8, 8))
        pygame.display.flip()
        frame_clock.tick(config.frame_rate)
        for event in pygame.event.get():
            if not handle_event(event, controls):
                clock.stop()

    logger.info("Viewer started (%dx%d)", int(config.width), int(config.height))
    try:
        clock.run(wait=wait, log_every=config.logging.log_every)
    finally:
        pygame.quit()
    logger.info("Viewer closed after %d frames", clock.frames)


def main() -> None:
    parser = argparse.ArgumentParser(description="Flying boids pygame viewer")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()
    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    if args.seed is not None:
        config.seed = args.seed
    setup_logging(config.logging.level, config.logging.log_file)
    run_viewer(config)


if __name__ == "__main__":
    main()
