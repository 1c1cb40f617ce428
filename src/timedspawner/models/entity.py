"""Pooled entity model - a reusable unit released by a spawner.

Entities live in a pool while inactive. A spawner activates them, tells
them spawning is complete, revives them if they carry Health, and places
them at its anchor. Whatever kills or despawns them later calls
``deactivate()`` to hand them back to the pool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol


class Poolable(Protocol):
    """Activation capability every pooled instance must expose."""

    def activate(self) -> None: ...

    def notify_spawn_complete(self) -> None: ...


class Revivable(Protocol):
    """Optional capability of entities carrying depletable health."""

    def revive(self) -> None: ...


def is_poolable(obj: Any) -> bool:
    """True when ``obj`` exposes the activation capability."""
    return (
        callable(getattr(obj, "activate", None))
        and callable(getattr(obj, "notify_spawn_complete", None))
    )


def revive_handle(obj: Any) -> Optional[Revivable]:
    """Return the entity's health component if it can be revived, else None."""
    health = getattr(obj, "health", None)
    if health is not None and callable(getattr(health, "revive", None)):
        return health
    return None


@dataclass
class Health:
    """Depletable hit points.

    Attributes:
        maximum: Hit points restored by ``revive()``.
        current: Current hit points.
        revive_count: How many times this component was revived.
    """

    maximum: float = 10.0
    current: float = 10.0
    revive_count: int = 0

    @property
    def is_alive(self) -> bool:
        return self.current > 0

    def damage(self, amount: float) -> None:
        self.current = max(0.0, self.current - amount)

    def revive(self) -> None:
        self.current = self.maximum
        self.revive_count += 1


@dataclass
class PooledEntity:
    """A single reusable entity owned by a pool.

    Attributes:
        eid: Unique instance ID within its pool.
        tier: Tier name the entity belongs to.
        active: True while released into the simulation.
        position: Last placement, set by the spawner.
        health: Optional Health component.
        spawn_count: Times this instance was released.
        spawn_complete: Set by ``notify_spawn_complete()``, cleared on deactivation.
    """

    eid: int
    tier: str
    active: bool = False
    position: tuple[float, float] = (0.0, 0.0)
    health: Optional[Health] = None
    spawn_count: int = 0
    spawn_complete: bool = False
    tags: dict[str, Any] = field(default_factory=dict)

    def activate(self) -> None:
        self.active = True
        self.spawn_count += 1

    def notify_spawn_complete(self) -> None:
        self.spawn_complete = True

    def deactivate(self) -> None:
        """Return the instance to its pool."""
        self.active = False
        self.spawn_complete = False
