from __future__ import annotations

from typing import Sequence

from pygame.math import Vector2

from ..core.agent import Boid
from ..core.obstacle import Obstacle, ObstacleShape
from ..core.rng import DeterministicRng
from ..utils.math2d import sign


def resolve_walls(
    boid: Boid,
    width: float,
    height: float,
    half_size: float,
    duration: int,
    rng: DeterministicRng | None = None,
) -> bool:
    """Bounce ``boid`` off the arena edges.

    Only boids with no cooldown left respond. Each axis is tested on its own,
    so a corner hit flips both components in the same tick.
    """
    if boid.cooldown != 0:
        return False
    x, y = boid.position.x, boid.position.y
    vx, vy = boid.heading.x, boid.heading.y
    hit = False
    if (x <= half_size and vx < 0) or (x >= width - half_size and vx > 0):
        vx = -vx
        hit = True
    if (y <= half_size and vy < 0) or (y >= height - half_size and vy > 0):
        vy = -vy
        hit = True
    if hit:
        boid.trigger_collision(Vector2(vx, vy), duration, rng)
    return hit


def deflect(boid: Boid, obstacle: Obstacle) -> Vector2:
    dx = boid.position.x - obstacle.x
    dy = boid.position.y - obstacle.y
    if obstacle.shape is ObstacleShape.CIRCLE:
        return Vector2(dx, dy)
    vx, vy = boid.heading.x, boid.heading.y
    if abs(dy) <= abs(dx):
        # Beside the square: push out horizontally.
        vx = sign(dx) * abs(vx)
    else:
        vy = sign(dy) * abs(vy)
    return Vector2(vx, vy)


def resolve_obstacles(
    boid: Boid,
    obstacles: Sequence[Obstacle],
    half_size: float,
    duration: int,
    rng: DeterministicRng | None = None,
) -> bool:
    """Deflect ``boid`` off the first obstacle it overlaps, in arena order."""
    if boid.cooldown != 0:
        return False
    for obstacle in obstacles:
        if obstacle.contains(boid.position.x, boid.position.y, half_size):
            boid.trigger_collision(deflect(boid, obstacle), duration, rng)
            return True
    return False
