"""Spawn scheduler - timed release of pooled entities with tier escalation.

Driven by an explicit clock: the owner calls ``tick(now, dt)`` once per
simulation step.

Tick order (must be preserved):
1. accumulate elapsed time (frozen once the last milestone fired)
2. fire every crossed milestone in ascending order
   - enable its tier on the pool
   - decay the interval bounds (all milestones except the first)
3. spawn a batch if spawning is enabled and the interval has passed

The scheduler never creates entities. It draws them from an ObjectPool,
activates them and places them at its anchor. Pool exhaustion is expected
under load and only drops the affected slot.

Provides a deterministic tick function for testing (explicit now/dt and an
injectable ``random.Random``).
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Union

from timedspawner.engine.frequency import decay_bounds, sample_interval
from timedspawner.models.entity import is_poolable, revive_handle
from timedspawner.models.milestone import Milestone, SpawnOutcome, build_milestones
from timedspawner.util.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DECAY_FACTOR,
    DEFAULT_MAX_FREQUENCY,
    DEFAULT_MILESTONES,
    DEFAULT_MIN_FREQUENCY,
)
from timedspawner.util.events import (
    EntitySpawned,
    FrequencyDecayed,
    MilestoneReached,
    SpawnBatchCompleted,
    SpawnerDisabled,
)

if TYPE_CHECKING:
    from timedspawner.loaders.spawner_config_loader import SpawnerConfig
    from timedspawner.models.pool import ObjectPool
    from timedspawner.util.events import EventBus

log = logging.getLogger(__name__)

Anchor = tuple[float, float]
Placement = Callable[[Any, Anchor], None]


class InitError(Enum):
    """Why a scheduler could not bind its pool."""

    NO_POOL_BOUND = "no_pool_bound"
    NOT_POOLABLE = "not_poolable"


def place_at_anchor(entity: Any, anchor: Anchor) -> None:
    """Put the entity exactly on the spawner's anchor."""
    entity.position = anchor


class SpawnScheduler:
    """Decides when and how many pooled entities to release.

    Args:
        name: Label used in logs and events.
        min_frequency: Lower bound of the spawn interval in seconds.
        max_frequency: Upper bound of the spawn interval in seconds.
        batch_size: Entities requested per spawn event.
        spawning_enabled: Initial state of the spawn gate.
        milestones: ``(threshold, tier)`` pairs or Milestone objects.
        decay_factor: Multiplier applied to both bounds per qualifying milestone.
        anchor: Position every spawned entity is placed at.
        rng: Random source for interval sampling.
        event_bus: Optional bus receiving spawner events.
        placement: Replaces the default anchor placement.
    """

    def __init__(
        self,
        name: str = "spawner",
        min_frequency: float = DEFAULT_MIN_FREQUENCY,
        max_frequency: float = DEFAULT_MAX_FREQUENCY,
        batch_size: int = DEFAULT_BATCH_SIZE,
        spawning_enabled: bool = True,
        milestones: Iterable[Union[Milestone, tuple[float, str]]] = DEFAULT_MILESTONES,
        decay_factor: float = DEFAULT_DECAY_FACTOR,
        anchor: Anchor = (0.0, 0.0),
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
        placement: Placement | None = None,
    ) -> None:
        if min_frequency < 0 or max_frequency < 0:
            raise ValueError("Spawn frequencies must be non-negative")
        if min_frequency > max_frequency:
            raise ValueError(
                f"min_frequency ({min_frequency}) exceeds max_frequency ({max_frequency})"
            )
        if batch_size < 0:
            raise ValueError(f"batch_size must be >= 0, got {batch_size}")
        if not 0 < decay_factor <= 1:
            raise ValueError(f"decay_factor must be in (0, 1], got {decay_factor}")

        self.name = name
        self.min_frequency = float(min_frequency)
        self.max_frequency = float(max_frequency)
        self.batch_size = batch_size
        self.spawning_enabled = spawning_enabled
        self.decay_factor = decay_factor
        self.anchor = anchor
        self.milestones: list[Milestone] = build_milestones(
            (m.threshold, m.tier) if isinstance(m, Milestone) else m
            for m in milestones
        )

        self.elapsed_time: float = 0.0
        self.last_spawn_timestamp: float = 0.0
        self.next_interval: float = 0.0
        self.init_error: Optional[InitError] = None

        self._rng = rng or random.Random()
        self._events = event_bus
        self._placement = placement or place_at_anchor
        self._pool: Optional[ObjectPool] = None

    @classmethod
    def from_config(
        cls,
        cfg: SpawnerConfig,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
        name: str = "spawner",
    ) -> SpawnScheduler:
        """Build a scheduler from a loaded SpawnerConfig."""
        if rng is None and cfg.seed is not None:
            rng = random.Random(cfg.seed)
        return cls(
            name=name,
            min_frequency=cfg.min_frequency,
            max_frequency=cfg.max_frequency,
            batch_size=cfg.batch_size,
            spawning_enabled=cfg.spawning_enabled,
            milestones=cfg.milestones,
            decay_factor=cfg.decay_factor,
            anchor=cfg.anchor,
            rng=rng,
            event_bus=event_bus,
        )

    # ── Lifecycle ──────────────────────────────────────────────

    def initialize(self, pool: ObjectPool | None) -> bool:
        """Bind the pool and sample the first interval.

        Every instance the pool already holds is checked for the activation
        capability here, so a misconfigured pool is rejected up front
        instead of on the first spawn.

        Returns:
            True on success. On failure ``init_error`` is set and the
            scheduler stays inert; nothing is raised.
        """
        if pool is None:
            self._disable_inert(
                InitError.NO_POOL_BOUND,
                "no object pool bound, it won't be able to spawn anything",
            )
            return False

        bad = [obj for obj in pool.instances() if not is_poolable(obj)]
        if bad:
            self._disable_inert(
                InitError.NOT_POOLABLE,
                f"pool holds {len(bad)} instance(s) without activate/notify_spawn_complete "
                f"(first: {type(bad[0]).__name__})",
            )
            return False

        self._pool = pool
        self.init_error = None
        self.next_interval = sample_interval(self._rng, self.min_frequency, self.max_frequency)
        log.info("[%s] Bound to %s (batch=%d, interval=%.2fs, milestones=%d)",
                 self.name, type(pool).__name__, self.batch_size,
                 self.next_interval, len(self.milestones))
        return True

    def _disable_inert(self, error: InitError, reason: str) -> None:
        self._pool = None
        self.init_error = error
        if error is InitError.NO_POOL_BOUND:
            log.warning("[%s] %s", self.name, reason)
        else:
            log.error("[%s] %s", self.name, reason)
        if self._events is not None:
            self._events.emit(SpawnerDisabled(spawner=self.name, reason=error.value))

    def shutdown(self) -> None:
        """Unbind the pool; later ticks are no-ops."""
        if self._pool is not None:
            log.info("[%s] Shut down after %.1fs", self.name, self.elapsed_time)
        self._pool = None

    @property
    def is_active(self) -> bool:
        """True while a pool is bound."""
        return self._pool is not None

    @property
    def pool(self) -> Optional[ObjectPool]:
        return self._pool

    @property
    def escalation_complete(self) -> bool:
        """True once the final milestone has fired."""
        return bool(self.milestones) and self.milestones[-1].fired

    # ── Deterministic tick ─────────────────────────────────────

    def tick(self, now: float, dt: float) -> SpawnOutcome:
        """Execute one scheduler step.

        Args:
            now: Current simulation time in seconds.
            dt: Seconds since the previous tick.

        Returns:
            SpawnOutcome describing this step (for observers and tests).
        """
        outcome = SpawnOutcome()
        if self._pool is None:
            return outcome

        if not self.escalation_complete and dt > 0:
            self.elapsed_time += dt

        outcome.fired_tiers = self._step_milestones()

        if self.spawning_enabled and now - self.last_spawn_timestamp > self.next_interval:
            outcome.spawned = True
            outcome.requested = self.batch_size
            outcome.spawn_count = self.spawn_batch(now)

        return outcome

    # -- Milestones ------------------------------------------------------

    def _step_milestones(self) -> list[str]:
        """Fire every unfired milestone whose threshold has been passed.

        The pool is read once so a handler that shuts the scheduler down
        mid-step still sees the remaining due milestones unlocked.
        """
        pool = self._pool
        fired: list[str] = []
        if pool is None:
            return fired
        for index, milestone in enumerate(self.milestones):
            if milestone.fired:
                continue
            if not milestone.is_due(self.elapsed_time):
                break  # sorted ascending: nothing further can be due

            milestone.fired = True
            pool.enable_tier(milestone.tier, True)
            fired.append(milestone.tier)
            log.info("[%s] Milestone %.1fs reached at %.2fs, tier %s enabled",
                     self.name, milestone.threshold, self.elapsed_time, milestone.tier)

            if self._events is not None:
                self._events.emit(MilestoneReached(
                    spawner=self.name,
                    tier=milestone.tier,
                    threshold=milestone.threshold,
                    elapsed_time=self.elapsed_time,
                ))

            # The first unlock leaves the cadence alone
            if index > 0:
                self.apply_decay()

        if fired and self.escalation_complete:
            log.info("[%s] Escalation complete, elapsed time frozen at %.2fs",
                     self.name, self.elapsed_time)
        return fired

    def apply_decay(self) -> None:
        """Shorten both interval bounds by the decay factor."""
        self.min_frequency, self.max_frequency = decay_bounds(
            self.min_frequency, self.max_frequency, self.decay_factor,
        )
        log.info("[%s] Spawn interval decayed to [%.3f, %.3f]s",
                 self.name, self.min_frequency, self.max_frequency)
        if self._events is not None:
            self._events.emit(FrequencyDecayed(
                spawner=self.name,
                min_frequency=self.min_frequency,
                max_frequency=self.max_frequency,
            ))

    # -- Spawning --------------------------------------------------------

    def spawn_batch(self, now: float) -> int:
        """Release up to ``batch_size`` entities from the pool.

        Empty slots (pool exhausted) are skipped silently. The spawn
        timestamp and next interval are updated regardless of how many
        slots succeeded.

        Returns:
            Number of entities actually released.
        """
        pool = self._pool
        if pool is None:
            log.debug("[%s] spawn_batch ignored, no pool bound", self.name)
            return 0

        spawned = 0
        for _ in range(self.batch_size):
            obj = pool.get_instance()
            if obj is None:
                continue
            if not is_poolable(obj):
                log.error("[%s] Pool yielded %s without activation capability, slot dropped",
                          self.name, type(obj).__name__)
                continue

            obj.activate()
            obj.notify_spawn_complete()
            health = revive_handle(obj)
            if health is not None:
                health.revive()
            self._placement(obj, self.anchor)
            spawned += 1

            if self._events is not None:
                self._events.emit(EntitySpawned(spawner=self.name, entity=obj))

        self.last_spawn_timestamp = now
        self.next_interval = sample_interval(self._rng, self.min_frequency, self.max_frequency)

        log.debug("[%s] Spawned %d/%d at t=%.2f, next in %.2fs",
                  self.name, spawned, self.batch_size, now, self.next_interval)
        if self._events is not None:
            self._events.emit(SpawnBatchCompleted(
                spawner=self.name,
                requested=self.batch_size,
                spawned=spawned,
                timestamp=now,
                next_interval=self.next_interval,
            ))
        return spawned

    # -- Spawn gate ------------------------------------------------------

    def set_spawning_enabled(self, enabled: bool) -> None:
        self.spawning_enabled = enabled

    def enable(self) -> None:
        self.spawning_enabled = True

    def disable(self) -> None:
        self.spawning_enabled = False

    def toggle_spawning(self) -> None:
        self.spawning_enabled = not self.spawning_enabled
