from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector2

from .rng import DeterministicRng
from ..utils.math2d import normalize_xy, rotate_xy

STEER_ANGLE = math.radians(2.0)


class BoidVariant(str, Enum):
    STANDARD = "standard"
    GREEN = "green"


class DisplayMode(str, Enum):
    NORMAL = "Normal"
    ALERT = "Alert"


@dataclass(slots=True)
class Boid:
    """A point particle with a unit heading.

    ``heading`` is kept at length 1 after every mutation. ``cooldown`` counts
    the frames left during which collisions are ignored and the boid is drawn
    in the alert colour.
    """

    id: int
    position: Vector2
    heading: Vector2 = field(default_factory=lambda: Vector2(1.0, 0.0))
    cooldown: int = 0
    variant: BoidVariant = BoidVariant.STANDARD

    def __post_init__(self) -> None:
        self.heading = normalize_xy(self.heading.x, self.heading.y)

    @classmethod
    def spawn(
        cls,
        boid_id: int,
        x: float,
        y: float,
        vx: float = 1.0,
        vy: float = 0.0,
        variant: BoidVariant = BoidVariant.STANDARD,
        random_heading: bool = False,
        rng: DeterministicRng | None = None,
    ) -> "Boid":
        if random_heading:
            heading = normalize_xy(0.0, 0.0, rng=rng)
        else:
            heading = normalize_xy(vx, vy, rng=rng)
        return cls(id=boid_id, position=Vector2(x, y), heading=heading, variant=variant)

    @property
    def display_mode(self) -> DisplayMode:
        return DisplayMode.ALERT if self.cooldown > 0 else DisplayMode.NORMAL

    def steer(self, angle_radians: float = STEER_ANGLE) -> None:
        rotated = rotate_xy(self.heading.x, self.heading.y, angle_radians)
        # Rotation preserves length; renormalize to absorb float drift.
        self.heading = normalize_xy(rotated.x, rotated.y)

    def integrate(self, speed: float) -> None:
        self.position.x += self.heading.x * speed
        self.position.y += self.heading.y * speed

    def tick_cooldown(self) -> None:
        self.cooldown = max(self.cooldown - 1, 0)

    def trigger_collision(self, new_heading: Vector2, duration: int, rng: DeterministicRng | None = None) -> None:
        self.heading = normalize_xy(new_heading.x, new_heading.y, rng=rng)
        self.cooldown = duration
