from __future__ import annotations

from typing import List

from pytest import approx

from flyingboids.sim.core.arena import Arena
from flyingboids.sim.core.clock import ControlCommand, ControlPanel, SimulationClock
from flyingboids.sim.core.config import SimulationConfig


class RecordingRenderer:
    def __init__(self) -> None:
        self.frames: List[tuple[int, int, int]] = []

    def render(self, obstacles, agents) -> None:
        self.frames.append((len(obstacles), len(agents), agents[0].cooldown if agents else -1))


def _arena() -> Arena:
    return Arena(SimulationConfig(width=100.0, height=100.0, initial_boids=[], obstacles=[]))


def test_tick_steps_then_renders():
    arena = _arena()
    arena.add_boid(5.0, 50.0, -1.0, 0.0)
    renderer = RecordingRenderer()
    clock = SimulationClock(arena, renderer, lambda: 1.0)

    metrics = clock.tick()

    assert metrics.tick == 0
    # The render sees the post-collision state.
    assert renderer.frames == [(0, 1, 10)]
    assert clock.frames == 1


def test_speed_is_read_fresh_every_tick():
    arena = _arena()
    boid = arena.add_boid(10.0, 50.0, 0.0, 1.0)
    speeds = iter([0.0, 3.0, 0.0])
    clock = SimulationClock(arena, None, lambda: next(speeds))

    clock.tick()
    assert boid.position.y == approx(50.0)
    clock.tick()
    moved = boid.position.y
    assert moved > 52.0
    clock.tick()
    assert boid.position.y == approx(moved)


def test_control_requests_apply_before_next_tick():
    arena = _arena()
    controls = ControlPanel(speed=1.0, batch_size=10)
    renderer = RecordingRenderer()
    clock = SimulationClock(arena, renderer, controls.speed_provider, controls)

    controls.on_add_requested()
    assert len(arena.agents) == 0
    assert controls.pending == [ControlCommand.ADD]

    clock.tick()
    assert renderer.frames[-1][1] == 10
    assert controls.pending == []

    controls.on_add_requested()
    controls.on_clear_requested()
    clock.tick()
    assert len(arena.agents) == 0
    assert len(arena.obstacles) == 0

    controls.on_clear_requested()
    controls.on_add_requested()
    clock.tick()
    assert len(arena.agents) == 10


def test_discard_pending_drops_queued_commands():
    controls = ControlPanel()
    controls.on_add_requested()
    controls.on_clear_requested()

    assert controls.discard_pending() == 2
    assert controls.pending == []
    assert controls.apply(_arena()) == 0


def test_control_panel_clamps_speed():
    controls = ControlPanel(speed=50.0, min_speed=0.0, max_speed=10.0)
    assert controls.speed_provider() == 10.0
    assert controls.set_speed(-3.0) == 0.0
    assert controls.set_speed(4.5) == 4.5
    assert controls.speed_provider() == 4.5


def test_run_stops_after_frames_and_calls_wait_between_frames():
    arena = _arena()
    waits = []
    clock = SimulationClock(arena, RecordingRenderer(), lambda: 1.0)

    metrics = clock.run(frames=5, wait=lambda: waits.append(clock.frames))

    assert clock.frames == 5
    assert waits == [1, 2, 3, 4, 5]
    assert metrics is not None and metrics.tick == 4
    assert not clock.running


def test_stop_from_host_ends_loop():
    arena = _arena()
    clock = SimulationClock(arena, None, lambda: 1.0)

    def wait() -> None:
        if clock.frames == 3:
            clock.stop()

    clock.run(wait=wait)

    assert clock.frames == 3
    assert arena.tick == 3
