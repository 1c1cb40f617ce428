"""Spawn loop - asyncio-based driver for one or more schedulers.

Responsibilities:
- Measure wall time with a monotonic clock
- Tick every registered scheduler with (now, dt)
- Keep debug counters (tick count, uptime, tick duration)

The loop owns no spawn logic; it only turns elapsed wall time into
explicit ``tick`` calls, so the schedulers stay deterministic.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Iterable

from timedspawner.util.constants import DEFAULT_STEP_INTERVAL_S

if TYPE_CHECKING:
    from timedspawner.engine.spawn_scheduler import SpawnScheduler
    from timedspawner.models.milestone import SpawnOutcome


class SpawnLoop:
    """The step loop that drives spawn schedulers.

    Args:
        schedulers: Schedulers ticked on every step, in order.
        step_interval: Seconds to sleep between steps.
        duration: Stop automatically after this many seconds (None = forever).
    """

    def __init__(
        self,
        schedulers: Iterable[SpawnScheduler] = (),
        step_interval: float = DEFAULT_STEP_INTERVAL_S,
        duration: float | None = None,
    ) -> None:
        self._schedulers: list[SpawnScheduler] = list(schedulers)
        self._step_interval = step_interval
        self._duration = duration
        self._running = False

        # Simulation clock, advanced only by step()
        self.now: float = 0.0

        # --- Debug / monitoring counters ---
        self.tick_count: int = 0
        self.total_spawned: int = 0
        self.started_at: float = 0.0
        self.last_tick_dt: float = 0.0
        self.last_tick_duration_ms: float = 0.0
        self.avg_tick_duration_ms: float = 0.0
        self._tick_duration_sum: float = 0.0

    def add(self, scheduler: SpawnScheduler) -> None:
        self._schedulers.append(scheduler)

    def remove(self, scheduler: SpawnScheduler) -> None:
        """Stop ticking a scheduler and shut it down."""
        if scheduler in self._schedulers:
            self._schedulers.remove(scheduler)
            scheduler.shutdown()

    @property
    def schedulers(self) -> list[SpawnScheduler]:
        return list(self._schedulers)

    async def run(self) -> None:
        """Start the loop. Runs until stop() is called or the duration passes."""
        self._running = True
        self.started_at = time.monotonic()
        last = self.started_at
        while self._running:
            now = time.monotonic()
            dt = now - last
            last = now

            t0 = time.monotonic()
            self.step(dt)
            elapsed_ms = (time.monotonic() - t0) * 1000

            self.last_tick_duration_ms = elapsed_ms
            self._tick_duration_sum += elapsed_ms
            self.avg_tick_duration_ms = self._tick_duration_sum / self.tick_count

            if self._duration is not None and self.now >= self._duration:
                self._running = False
                break

            await asyncio.sleep(self._step_interval)

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the loop started."""
        if self.started_at == 0.0:
            return 0.0
        return time.monotonic() - self.started_at

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Signal the loop to stop after the current step."""
        self._running = False

    def step(self, dt: float) -> list[SpawnOutcome]:
        """Advance the simulation clock by ``dt`` and tick every scheduler."""
        self.now += dt
        self.tick_count += 1
        self.last_tick_dt = dt
        outcomes = [s.tick(self.now, dt) for s in self._schedulers]
        self.total_spawned += sum(o.spawn_count for o in outcomes)
        return outcomes
