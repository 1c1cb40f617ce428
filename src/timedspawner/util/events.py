"""Typed event bus - decoupled notification of spawner activity.

Schedulers publish what they did; logging, statistics or a game layer
subscribe without the scheduler knowing about them.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, TypeVar, Type

T = TypeVar("T")


# -- Escalation events ---------------------------------------------------

@dataclass(frozen=True)
class MilestoneReached:
    """A milestone fired and its tier was enabled on the pool."""
    spawner: str
    tier: str
    threshold: float
    elapsed_time: float


@dataclass(frozen=True)
class FrequencyDecayed:
    """Spawn interval bounds were shortened."""
    spawner: str
    min_frequency: float
    max_frequency: float


# -- Spawn events --------------------------------------------------------

@dataclass(frozen=True)
class EntitySpawned:
    """One pooled entity was released at the spawner's anchor."""
    spawner: str
    entity: Any


@dataclass(frozen=True)
class SpawnBatchCompleted:
    """A spawn event finished (some slots may have come back empty)."""
    spawner: str
    requested: int
    spawned: int
    timestamp: float
    next_interval: float


# -- Lifecycle events ----------------------------------------------------

@dataclass(frozen=True)
class SpawnerDisabled:
    """A spawner could not bind its pool and went inert."""
    spawner: str
    reason: str


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Dispatches spawner events to observers keyed by event class.

    A scheduler emits while it is inside ``tick``, so handlers run
    synchronously before the tick returns and see the scheduler in the
    state that produced the event. Handlers may unsubscribe themselves or
    shut the scheduler down; the current emit still reaches every handler
    registered when it started.

    Usage:
        bus = EventBus()
        scheduler = SpawnScheduler(name="north", event_bus=bus)
        bus.on(MilestoneReached, lambda e: log.info("%s unlocked", e.tier))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in list(self._handlers.get(type(event), [])):
            handler(event)

    def handler_count(self, event_type: type | None = None) -> int:
        """Number of handlers for one event type, or for all of them."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(h) for h in self._handlers.values())

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
