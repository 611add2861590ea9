from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from ..sim.core.arena import Arena
from ..sim.core.clock import ControlPanel, SimulationClock
from ..sim.core.config import SimulationConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    """Drives the arena on the event loop and fans snapshots out to clients.

    Control requests go through the ``ControlPanel`` queue and are applied
    under ``_lock``, so they never interleave with a running tick.
    """

    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, max_queued_snapshots: int = 120):
        self.config = config
        self.arena = Arena(config)
        self.controls = ControlPanel(
            speed=config.default_speed,
            batch_size=config.spawn_batch_size,
            max_speed=config.max_speed,
        )
        self.clock = SimulationClock(self.arena, None, self.controls.speed_provider, self.controls)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque(maxlen=max(1, max_queued_snapshots))
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self.arena.tick

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
        self.running = True
        logger.info("Simulation started")

    async def stop(self) -> None:
        self.running = False
        logger.info("Simulation stopped")

    async def reset(self) -> None:
        async with self._lock:
            self.controls.discard_pending()
            self.arena.reset()
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def request_add(self) -> None:
        async with self._lock:
            self.controls.on_add_requested()

    async def request_clear(self) -> None:
        async with self._lock:
            self.controls.on_clear_requested()

    async def step_once(self) -> bool:
        """Advance one frame, or only apply pending controls while paused."""
        async with self._lock:
            if self.running:
                self.clock.tick()
                return self.tick % self.broadcast_interval == 0
            return self.controls.apply(self.arena) > 0

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(1.0 / max(1, self.config.frame_rate))
            if await self.step_once():
                await self._broadcast_snapshot()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.arena.snapshot()
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "agents": snapshot.agents,
                "obstacles": snapshot.obstacles,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            if self._snapshot_queue and self._snapshot_queue[-1].tick == queued.tick:
                self._snapshot_queue[-1] = queued
            else:
                self._snapshot_queue.append(queued)
        # Paused edits keep the same tick; resend them.
        for client in self._client_last_sent:
            if self._client_last_sent[client] >= queued.tick:
                self._client_last_sent[client] = queued.tick - 1
        stale: Set[WebSocket] = set()
        for client in list(self.clients):
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


app = FastAPI(title="Flying Boids")
controller = SimulationController(SimulationConfig())
static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=static_dir), name="static")


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/")
async def index() -> FileResponse:
    return FileResponse(static_dir / "index.html")


@app.get("/api/status")
async def status() -> JSONResponse:
    snapshot = controller.arena.snapshot()
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "population": len(controller.arena.agents),
            "speed": controller.controls.speed_provider(),
            "metrics": asdict(snapshot.metrics),
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/add")
async def add_boids() -> JSONResponse:
    await controller.request_add()
    return JSONResponse({"queued": [command.value for command in controller.controls.pending]})


@app.post("/api/control/clear")
async def clear_boids() -> JSONResponse:
    await controller.request_clear()
    return JSONResponse({"queued": [command.value for command in controller.controls.pending]})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    try:
        value = float(payload.get("speed", controller.config.default_speed))
    except (TypeError, ValueError):
        return JSONResponse({"error": "speed must be a number"}, status_code=400)
    speed = controller.controls.set_speed(value)
    return JSONResponse({"speed": speed})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if not isinstance(payload, dict):
                continue
            if payload.get("type") == "ack":
                tick = payload.get("tick")
                if isinstance(tick, int):
                    await controller.acknowledge(tick)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


__all__ = ["app", "controller"]
