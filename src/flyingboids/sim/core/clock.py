from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

from .agent import Boid
from .arena import Arena
from .obstacle import Obstacle
from ..types.metrics import TickMetrics

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    def render(self, obstacles: Sequence[Obstacle], agents: Sequence[Boid]) -> None: ...


class ControlCommand(str, Enum):
    ADD = "add"
    CLEAR = "clear"


class ControlPanel:
    """UI-side state: the add/clear buttons and the speed slider.

    Button presses are queued and only applied by :meth:`apply` between
    ticks, so the population never changes while a tick iterates.
    """

    def __init__(self, speed: float = 2.0, batch_size: int = 10, min_speed: float = 0.0, max_speed: float = 10.0):
        self.min_speed = min_speed
        self.max_speed = max(min_speed, max_speed)
        self.batch_size = batch_size
        self._speed = self._clamp(speed)
        self._pending: deque[ControlCommand] = deque()

    @property
    def pending(self) -> list[ControlCommand]:
        return list(self._pending)

    def on_add_requested(self) -> None:
        self._pending.append(ControlCommand.ADD)

    def on_clear_requested(self) -> None:
        self._pending.append(ControlCommand.CLEAR)

    def discard_pending(self) -> int:
        dropped = len(self._pending)
        self._pending.clear()
        return dropped

    def set_speed(self, value: float) -> float:
        self._speed = self._clamp(value)
        return self._speed

    def speed_provider(self) -> float:
        return self._speed

    def apply(self, arena: Arena) -> int:
        applied = 0
        while self._pending:
            command = self._pending.popleft()
            if command is ControlCommand.ADD:
                arena.add_random_boids(self.batch_size, (arena.width, arena.height))
            else:
                arena.clear()
            applied += 1
        return applied

    def _clamp(self, value: float) -> float:
        return max(self.min_speed, min(self.max_speed, float(value)))


class SimulationClock:
    """Runs one arena tick and one render per frame.

    Timing belongs to the host: ``run`` calls ``wait`` between frames (a
    pygame clock tick, a timer, ...) and never sleeps on its own.
    """

    def __init__(
        self,
        arena: Arena,
        renderer: Optional[Renderer],
        speed_provider: Callable[[], float],
        controls: Optional[ControlPanel] = None,
    ):
        self.arena = arena
        self.renderer = renderer
        self.speed_provider = speed_provider
        self.controls = controls
        self.frames = 0
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def tick(self) -> TickMetrics:
        if self.controls is not None:
            self.controls.apply(self.arena)
        metrics = self.arena.step(self.speed_provider())
        if self.renderer is not None:
            self.renderer.render(self.arena.obstacles, self.arena.agents)
        self.frames += 1
        return metrics

    def run(
        self,
        frames: Optional[int] = None,
        wait: Optional[Callable[[], object]] = None,
        log_every: int = 0,
    ) -> Optional[TickMetrics]:
        self._running = True
        metrics: Optional[TickMetrics] = None
        done = 0
        while self._running and (frames is None or done < frames):
            metrics = self.tick()
            done += 1
            if log_every > 0 and metrics.tick % log_every == 0:
                logger.info(
                    "tick %d population=%d alert=%d speed=%.2f",
                    metrics.tick,
                    metrics.population,
                    metrics.alert,
                    metrics.speed,
                )
            if wait is not None and self._running:
                wait()
        self._running = False
        return metrics

    def stop(self) -> None:
        self._running = False
