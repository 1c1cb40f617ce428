"""Debug REST API - FastAPI application exposing spawner state.

Read-only snapshots plus the spawn gate, so a running loop can be
inspected and paused without restarting it.

Usage::

    from timedspawner.debug.rest_api import create_app

    app = create_app(loop)
    # Start with uvicorn as an asyncio task alongside the spawn loop
"""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from fastapi import FastAPI, HTTPException

from timedspawner.debug.monitor import collect_snapshot, scheduler_info
from timedspawner.debug.rest_models import (
    SchedulerView,
    SpawnGateRequest,
    SpawnGateResponse,
)

if TYPE_CHECKING:
    from timedspawner.engine.spawn_loop import SpawnLoop
    from timedspawner.engine.spawn_scheduler import SpawnScheduler

log = logging.getLogger(__name__)


def create_app(loop: SpawnLoop) -> FastAPI:
    """Build the debug API bound to a SpawnLoop."""
    app = FastAPI(title="timedspawner debug")

    def _find(name: str) -> SpawnScheduler:
        for s in loop.schedulers:
            if s.name == name:
                return s
        raise HTTPException(status_code=404, detail=f"Unknown spawner: {name}")

    @app.get("/api/snapshot")
    async def snapshot() -> dict[str, Any]:
        return collect_snapshot(loop)

    @app.get("/api/schedulers", response_model=list[SchedulerView])
    async def list_schedulers() -> list[dict[str, Any]]:
        return [scheduler_info(s) for s in loop.schedulers]

    @app.get("/api/schedulers/{name}", response_model=SchedulerView)
    async def get_scheduler(name: str) -> dict[str, Any]:
        return scheduler_info(_find(name))

    @app.put("/api/schedulers/{name}/spawning", response_model=SpawnGateResponse)
    async def set_spawning(name: str, body: SpawnGateRequest) -> SpawnGateResponse:
        scheduler = _find(name)
        scheduler.set_spawning_enabled(body.enabled)
        log.info("[debug] Spawning on %s set to %s", name, body.enabled)
        return SpawnGateResponse(name=name, spawning_enabled=scheduler.spawning_enabled)

    @app.post("/api/schedulers/{name}/toggle", response_model=SpawnGateResponse)
    async def toggle_spawning(name: str) -> SpawnGateResponse:
        scheduler = _find(name)
        scheduler.toggle_spawning()
        log.info("[debug] Spawning on %s toggled to %s", name, scheduler.spawning_enabled)
        return SpawnGateResponse(name=name, spawning_enabled=scheduler.spawning_enabled)

    return app
