from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class ObstacleShape(str, Enum):
    CIRCLE = "circle"
    SQUARE = "square"


@dataclass(frozen=True, slots=True)
class Obstacle:
    """Static arena geometry.

    For squares ``radius`` is the half side length; squares are axis aligned.
    """

    x: float
    y: float
    radius: float
    shape: ObstacleShape = ObstacleShape.CIRCLE

    def contains(self, x: float, y: float, padding: float = 0.0) -> bool:
        reach = self.radius + padding
        if self.shape is ObstacleShape.CIRCLE:
            return math.hypot(x - self.x, y - self.y) <= reach
        # Inclusive on both axes.
        return abs(x - self.x) <= reach and abs(y - self.y) <= reach
