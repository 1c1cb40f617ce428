"""State snapshot collector - gathers spawner state for logging.

Pulls data from the loop, its schedulers and their pools into a plain
dict that can be serialised to JSON or YAML.
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from timedspawner.engine.spawn_loop import SpawnLoop
    from timedspawner.engine.spawn_scheduler import SpawnScheduler


def collect_snapshot(loop: SpawnLoop) -> dict[str, Any]:
    """Build a JSON-serialisable snapshot of the whole spawn setup.

    Args:
        loop: The running (or idle) SpawnLoop.

    Returns:
        Nested dict with loop counters and one entry per scheduler.
    """
    return {
        "loop": _loop_info(loop),
        "schedulers": [scheduler_info(s) for s in loop.schedulers],
    }


def _loop_info(loop: SpawnLoop) -> dict[str, Any]:
    return {
        "running": loop.is_running,
        "tick_count": loop.tick_count,
        "sim_time_s": round(loop.now, 3),
        "uptime_fmt": _fmt_duration(loop.uptime_seconds),
        "total_spawned": loop.total_spawned,
        "last_tick_duration_ms": round(loop.last_tick_duration_ms, 3),
        "avg_tick_duration_ms": round(loop.avg_tick_duration_ms, 3),
    }


def scheduler_info(scheduler: SpawnScheduler) -> dict[str, Any]:
    info: dict[str, Any] = {
        "name": scheduler.name,
        "active": scheduler.is_active,
        "init_error": scheduler.init_error.value if scheduler.init_error else None,
        "spawning_enabled": scheduler.spawning_enabled,
        "elapsed_time": round(scheduler.elapsed_time, 3),
        "escalation_complete": scheduler.escalation_complete,
        "min_frequency": round(scheduler.min_frequency, 4),
        "max_frequency": round(scheduler.max_frequency, 4),
        "next_interval": round(scheduler.next_interval, 4),
        "last_spawn_timestamp": round(scheduler.last_spawn_timestamp, 3),
        "milestones": [
            {"threshold": m.threshold, "tier": m.tier, "fired": m.fired}
            for m in scheduler.milestones
        ],
    }
    pool = scheduler.pool
    if pool is not None and hasattr(pool, "available"):
        info["pool_available"] = pool.available()
    return info


def _fmt_duration(seconds: float) -> str:
    """Format seconds into a human-readable time string."""
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return f"{hours}h {minutes}m"
