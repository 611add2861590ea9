from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING

from pygame.math import Vector2

if TYPE_CHECKING:
    from ..core.rng import DeterministicRng

ZERO = Vector2()


def _random_direction(rng: DeterministicRng | None) -> Vector2:
    if rng is not None:
        return rng.next_unit_circle()
    angle = random.uniform(0.0, 2.0 * math.pi)
    return Vector2(math.cos(angle), math.sin(angle))


def normalize_xy(x: float, y: float, magnitude: float = 1.0, rng: DeterministicRng | None = None) -> Vector2:
    """Scale ``(x, y)`` to ``magnitude``.

    A zero-length input has no direction, so a uniformly random one is used
    instead of dividing by zero.
    """
    magnitude_sq = x * x + y * y
    if magnitude_sq < 1e-18 or not math.isfinite(magnitude_sq):
        direction = _random_direction(rng)
        return Vector2(direction.x * magnitude, direction.y * magnitude)
    inv = magnitude / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def normalize(vector: Vector2, magnitude: float = 1.0, rng: DeterministicRng | None = None) -> Vector2:
    return normalize_xy(vector.x, vector.y, magnitude, rng)


def rotate_xy(x: float, y: float, angle_radians: float) -> Vector2:
    # Screen space (y down): positive angles turn clockwise on screen.
    s = math.sin(angle_radians)
    c = math.cos(angle_radians)
    return Vector2(x * c + y * s, -x * s + y * c)


def heading_angle(x: float, y: float) -> float:
    if x * x + y * y < 1e-12:
        return 0.0
    return math.atan2(y, x)


def sign(value: float) -> float:
    if value > 0.0:
        return 1.0
    if value < 0.0:
        return -1.0
    return 0.0
