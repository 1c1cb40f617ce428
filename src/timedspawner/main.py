"""Spawner entry point.

Initializes all components and runs the asyncio event loop:
1. Load configuration (config/spawner.yaml)
2. Build the object pool
3. Create and bind the spawn scheduler
4. Create event bus and wire up observers
5. Start the debug REST API (optional)
6. Start the spawn loop

Usage:
    python -m timedspawner.main [--config PATH] [--duration SECONDS] [--debug-port PORT]
    # or via entry point:
    timedspawner
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import signal
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from timedspawner.debug.monitor import collect_snapshot
from timedspawner.engine.spawn_loop import SpawnLoop
from timedspawner.engine.spawn_scheduler import SpawnScheduler
from timedspawner.loaders.spawner_config_loader import (
    DEFAULT_SPAWNER_CONFIG_PATH,
    PoolConfig,
    SpawnerConfig,
    load_spawner_config,
)
from timedspawner.models.pool import MultipleObjectPool, PoolEntry
from timedspawner.util.events import (
    EntitySpawned,
    EventBus,
    FrequencyDecayed,
    MilestoneReached,
    SpawnerDisabled,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Container for all runtime objects (makes passing around easier)
# ---------------------------------------------------------------------------


@dataclass
class Services:
    """Holds references to everything the runner creates."""

    config: SpawnerConfig = field(default_factory=SpawnerConfig)
    event_bus: Optional[EventBus] = None
    pool: Optional[MultipleObjectPool] = None
    scheduler: Optional[SpawnScheduler] = None
    spawn_loop: Optional[SpawnLoop] = None
    spawned_by_tier: Counter = field(default_factory=Counter)


# ===================================================================
# 1. Build pool
# ===================================================================


def build_pool(pool_cfg: PoolConfig, rng: random.Random | None = None) -> MultipleObjectPool:
    """Create a MultipleObjectPool from the pool section of the config.

    Tiers start in the state given by their ``enabled`` flag; milestone
    tiers normally start disabled and are unlocked by the scheduler.
    """
    entries = [
        PoolEntry(tier=t.name, size=t.size, enabled=t.enabled, can_expand=t.can_expand)
        for t in pool_cfg.tiers
    ]
    pool = MultipleObjectPool(entries, strategy=pool_cfg.strategy, rng=rng)
    log.info("  pool:         %d tiers (%s), strategy=%s",
             len(entries), ", ".join(pool.tiers), pool.strategy)
    return pool


# ===================================================================
# 2. Create services
# ===================================================================


def create_services(cfg: SpawnerConfig, duration: float | None = None) -> Services:
    """Instantiate pool, scheduler and loop with proper dependency injection."""
    log.info("Creating services …")
    rng = random.Random(cfg.seed) if cfg.seed is not None else random.Random()

    event_bus = EventBus()
    pool = build_pool(cfg.pool, rng=rng)
    scheduler = SpawnScheduler.from_config(cfg, rng=rng, event_bus=event_bus)
    scheduler.initialize(pool)
    spawn_loop = SpawnLoop([scheduler], step_interval=cfg.step_interval_s, duration=duration)

    log.info("  all services created")
    return Services(
        config=cfg,
        event_bus=event_bus,
        pool=pool,
        scheduler=scheduler,
        spawn_loop=spawn_loop,
    )


# ===================================================================
# 3. Wire up event handlers
# ===================================================================


def wire_events(services: Services) -> None:
    """Register observers on the event bus."""
    log.info("Wiring event handlers …")
    bus = services.event_bus

    bus.on(MilestoneReached, lambda evt: log.info(
        "Tier %s unlocked by %s at %.1fs", evt.tier, evt.spawner, evt.elapsed_time))
    bus.on(FrequencyDecayed, lambda evt: log.info(
        "%s now spawns every %.2f-%.2fs", evt.spawner, evt.min_frequency, evt.max_frequency))
    bus.on(SpawnerDisabled, lambda evt: log.warning(
        "%s disabled: %s", evt.spawner, evt.reason))

    # Released entities are recycled on the next event loop iteration, or
    # straight away when the spawn loop is stepped without a running loop
    def _on_spawned(evt: EntitySpawned) -> None:
        services.spawned_by_tier[getattr(evt.entity, "tier", "?")] += 1
        deactivate = getattr(evt.entity, "deactivate", None)
        if not callable(deactivate):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            deactivate()
        else:
            loop.call_soon(deactivate)

    bus.on(EntitySpawned, _on_spawned)
    log.info("  event handlers registered")


# ===================================================================
# 4. Debug API
# ===================================================================


async def start_debug_api(services: Services, port: int) -> uvicorn.Server:
    """Serve the debug REST API on ``port`` as a background task."""
    from timedspawner.debug.rest_api import create_app
    import uvicorn

    app = create_app(services.spawn_loop)
    config = uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning", access_log=False)
    server = uvicorn.Server(config)
    asyncio.create_task(server.serve())
    log.info("  debug API listening on http://127.0.0.1:%d", port)
    return server


# ===================================================================
# 5. Run loop
# ===================================================================


async def run_spawn_loop(services: Services) -> None:
    """Run the spawn loop until a shutdown signal or its duration ends."""
    log.info("Starting spawn loop …")
    loop = asyncio.get_running_loop()

    def _request_shutdown() -> None:
        log.info("Shutdown signal received, stopping …")
        services.spawn_loop.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_shutdown)
        except NotImplementedError:
            log.debug("Signal handlers not supported on this platform")

    await services.spawn_loop.run()

    log.info("Shutting down …")
    snap = collect_snapshot(services.spawn_loop)
    log.info("  ticks=%d spawned=%d sim_time=%.1fs",
             snap["loop"]["tick_count"], snap["loop"]["total_spawned"], snap["loop"]["sim_time_s"])
    for tier, count in sorted(services.spawned_by_tier.items()):
        log.info("  %-16s %d", tier, count)
    services.scheduler.shutdown()
    log.info("  goodbye")


# ===================================================================
# Entry points
# ===================================================================


async def _start(config_path: str, duration: float | None, debug_port: int | None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== Timed spawner starting ===")

    cfg = load_spawner_config(config_path)
    services = create_services(cfg, duration=duration)
    wire_events(services)

    debug_server = None
    if debug_port is not None:
        debug_server = await start_debug_api(services, debug_port)

    await run_spawn_loop(services)

    if debug_server is not None:
        debug_server.should_exit = True
        log.info("  debug API stopped")


def main() -> None:
    """Entry point for the spawner runner."""
    parser = argparse.ArgumentParser(description="Timed spawn scheduler runner")
    parser.add_argument(
        "--config",
        type=str,
        default=DEFAULT_SPAWNER_CONFIG_PATH,
        help=f"Spawner YAML config (default: {DEFAULT_SPAWNER_CONFIG_PATH})",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many simulated seconds (default: run until Ctrl+C)",
    )
    parser.add_argument(
        "--debug-port",
        type=int,
        default=None,
        help="Serve the debug REST API on this port",
    )
    args = parser.parse_args()

    asyncio.run(_start(args.config, args.duration, args.debug_port))


if __name__ == "__main__":
    main()
