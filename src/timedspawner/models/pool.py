"""Object pools - the collaborator a spawner draws entities from.

A spawner only relies on the ``ObjectPool`` protocol. Two reference pools
are provided:

- ``SimpleObjectPool``: one prototype, one tier.
- ``MultipleObjectPool``: several named tiers, each enabled independently,
  picked in round-robin or random order.

Pools never raise on exhaustion; ``get_instance()`` returns None instead.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Optional, Protocol

from timedspawner.models.entity import Health, PooledEntity
from timedspawner.util.constants import DEFAULT_TIER

log = logging.getLogger(__name__)

EntityFactory = Callable[[int, str], Any]
"""Builds a fresh inactive instance from (eid, tier)."""


class PoolStrategy:
    """Tier selection strategies for MultipleObjectPool."""

    ORIGINAL_ORDER = "original_order"
    RANDOM = "random"

    ALL = (ORIGINAL_ORDER, RANDOM)


class ObjectPool(Protocol):
    """Contract between a spawner and whatever supplies its entities."""

    def get_instance(self) -> Optional[Any]: ...

    def enable_tier(self, name: str, enabled: bool) -> None: ...

    def instances(self) -> Iterable[Any]: ...


def default_factory(eid: int, tier: str) -> PooledEntity:
    """Build a PooledEntity with a full Health component."""
    return PooledEntity(eid=eid, tier=tier, health=Health())


def _is_available(obj: Any) -> bool:
    return not getattr(obj, "active", False)


@dataclass
class PoolEntry:
    """One tier of a MultipleObjectPool.

    Attributes:
        tier: Tier name used by ``enable_tier``.
        size: Instances preallocated at construction.
        enabled: Disabled tiers never hand out instances.
        can_expand: Create a new instance when all are active.
        factory: Instance builder for this tier.
    """

    tier: str
    size: int = 5
    enabled: bool = True
    can_expand: bool = False
    factory: EntityFactory = default_factory
    objects: list[Any] = field(default_factory=list)

    def find_available(self) -> Optional[Any]:
        for obj in self.objects:
            if _is_available(obj):
                return obj
        return None

    @property
    def available_count(self) -> int:
        return sum(1 for obj in self.objects if _is_available(obj))


class SimpleObjectPool:
    """Pool of identical instances belonging to a single tier."""

    def __init__(
        self,
        factory: EntityFactory = default_factory,
        size: int = 10,
        can_expand: bool = False,
        tier: str = DEFAULT_TIER,
    ) -> None:
        self._next_eid = 1
        self._entry = PoolEntry(tier=tier, size=size, can_expand=can_expand, factory=factory)
        for _ in range(size):
            self._entry.objects.append(self._create())

    def _create(self) -> Any:
        obj = self._entry.factory(self._next_eid, self._entry.tier)
        self._next_eid += 1
        return obj

    @property
    def tier(self) -> str:
        return self._entry.tier

    @property
    def enabled(self) -> bool:
        return self._entry.enabled

    def get_instance(self) -> Optional[Any]:
        if not self._entry.enabled:
            return None
        obj = self._entry.find_available()
        if obj is None and self._entry.can_expand:
            obj = self._create()
            self._entry.objects.append(obj)
            log.debug("[pool] Expanded tier %s to %d instances", self.tier, len(self._entry.objects))
        return obj

    def enable_tier(self, name: str, enabled: bool) -> None:
        if name != self._entry.tier:
            log.debug("[pool] Ignoring tier %r on single-tier pool %r", name, self._entry.tier)
            return
        self._entry.enabled = enabled

    def instances(self) -> Iterator[Any]:
        return iter(list(self._entry.objects))

    def available(self, tier: str | None = None) -> int:
        if tier is not None and tier != self._entry.tier:
            return 0
        return self._entry.available_count


class MultipleObjectPool:
    """Pool made of several independently enabled tiers.

    Args:
        entries: Tier definitions, in the order used by ``original_order``.
        strategy: One of ``PoolStrategy.ALL``.
        rng: Random source for the ``random`` strategy.
    """

    def __init__(
        self,
        entries: Iterable[PoolEntry],
        strategy: str = PoolStrategy.ORIGINAL_ORDER,
        rng: random.Random | None = None,
    ) -> None:
        if strategy not in PoolStrategy.ALL:
            raise ValueError(f"Unknown pool strategy: {strategy!r}")
        self._strategy = strategy
        self._rng = rng or random.Random()
        self._entries: list[PoolEntry] = []
        self._by_tier: dict[str, PoolEntry] = {}
        self._next_eid = 1
        self._cursor = 0

        for entry in entries:
            if entry.tier in self._by_tier:
                raise ValueError(f"Duplicate pool tier: {entry.tier!r}")
            for _ in range(entry.size):
                entry.objects.append(self._create(entry))
            self._entries.append(entry)
            self._by_tier[entry.tier] = entry

    def _create(self, entry: PoolEntry) -> Any:
        obj = entry.factory(self._next_eid, entry.tier)
        self._next_eid += 1
        return obj

    @property
    def strategy(self) -> str:
        return self._strategy

    @property
    def tiers(self) -> list[str]:
        return [e.tier for e in self._entries]

    def is_tier_enabled(self, name: str) -> bool:
        entry = self._by_tier.get(name)
        return entry is not None and entry.enabled

    def enable_tier(self, name: str, enabled: bool) -> None:
        entry = self._by_tier.get(name)
        if entry is None:
            log.warning("[pool] Unknown tier %r (known: %s)", name, ", ".join(self.tiers))
            return
        entry.enabled = enabled
        log.debug("[pool] Tier %s %s", name, "enabled" if enabled else "disabled")

    def get_instance(self) -> Optional[Any]:
        if self._strategy == PoolStrategy.RANDOM:
            return self._get_random()
        return self._get_in_order()

    def _take(self, entry: PoolEntry) -> Optional[Any]:
        obj = entry.find_available()
        if obj is None and entry.can_expand:
            obj = self._create(entry)
            entry.objects.append(obj)
            log.debug("[pool] Expanded tier %s to %d instances", entry.tier, len(entry.objects))
        return obj

    def _get_in_order(self) -> Optional[Any]:
        n = len(self._entries)
        for offset in range(n):
            idx = (self._cursor + offset) % n
            entry = self._entries[idx]
            if not entry.enabled:
                continue
            obj = self._take(entry)
            if obj is not None:
                self._cursor = (idx + 1) % n
                return obj
        return None

    def _get_random(self) -> Optional[Any]:
        candidates = [
            e for e in self._entries
            if e.enabled and (e.can_expand or e.available_count > 0)
        ]
        if not candidates:
            return None
        return self._take(self._rng.choice(candidates))

    def instances(self) -> Iterator[Any]:
        for entry in self._entries:
            yield from list(entry.objects)

    def available(self, tier: str | None = None) -> int:
        if tier is not None:
            entry = self._by_tier.get(tier)
            return entry.available_count if entry else 0
        return sum(e.available_count for e in self._entries)
