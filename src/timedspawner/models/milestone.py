"""Milestone and SpawnOutcome models.

A spawner escalates by walking an ordered list of Milestones. Each one
unlocks a tier on the pool once the spawner's elapsed time passes its
threshold.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass
class Milestone:
    """A one-shot tier unlock at a fixed elapsed time.

    Attributes:
        threshold: Elapsed seconds that must be strictly exceeded.
        tier: Pool tier enabled when the milestone fires.
        fired: Set once, never reset.
    """

    threshold: float
    tier: str
    fired: bool = False

    def is_due(self, elapsed_time: float) -> bool:
        return not self.fired and elapsed_time > self.threshold


def build_milestones(pairs: Iterable[tuple[float, str]]) -> list[Milestone]:
    """Create unfired milestones sorted by ascending threshold.

    The sort is stable, so pairs sharing a threshold keep their given order.
    """
    return sorted(
        (Milestone(threshold=float(t), tier=tier) for t, tier in pairs),
        key=lambda m: m.threshold,
    )


@dataclass
class SpawnOutcome:
    """What a single scheduler tick did.

    Attributes:
        fired_tiers: Tiers unlocked this tick, in firing order.
        spawned: True when a spawn event ran (even if the pool was empty).
        spawn_count: Entities actually activated.
        requested: Slots attempted (the batch size when spawned).
    """

    fired_tiers: list[str] = field(default_factory=list)
    spawned: bool = False
    spawn_count: int = 0
    requested: int = 0

    @property
    def idle(self) -> bool:
        """True when nothing happened this tick."""
        return not self.fired_tiers and not self.spawned
