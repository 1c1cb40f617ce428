"""Tests for pooled entities and the reference object pools."""

import logging
import random

import pytest

from timedspawner.models.entity import (
    Health,
    PooledEntity,
    is_poolable,
    revive_handle,
)
from timedspawner.models.pool import (
    MultipleObjectPool,
    PoolEntry,
    PoolStrategy,
    SimpleObjectPool,
)


def _multi(*tiers, strategy=PoolStrategy.ORIGINAL_ORDER, rng=None, size=2):
    return MultipleObjectPool(
        [PoolEntry(tier=t, size=size) for t in tiers],
        strategy=strategy, rng=rng,
    )


class TestEntity:
    def test_activate_counts_spawns(self):
        e = PooledEntity(eid=1, tier="a")
        e.activate()
        e.deactivate()
        e.activate()
        assert e.active
        assert e.spawn_count == 2

    def test_deactivate_clears_spawn_complete(self):
        e = PooledEntity(eid=1, tier="a")
        e.activate()
        e.notify_spawn_complete()
        e.deactivate()
        assert not e.active
        assert not e.spawn_complete

    def test_health_revive(self):
        h = Health(maximum=5.0, current=5.0)
        h.damage(7.0)
        assert not h.is_alive
        h.revive()
        assert h.current == 5.0
        assert h.is_alive

    def test_is_poolable(self):
        assert is_poolable(PooledEntity(eid=1, tier="a"))
        assert not is_poolable(object())

    def test_revive_handle(self):
        with_health = PooledEntity(eid=1, tier="a", health=Health())
        assert revive_handle(with_health) is with_health.health
        assert revive_handle(PooledEntity(eid=2, tier="a")) is None
        assert revive_handle(object()) is None


class TestSimpleObjectPool:
    def test_preallocates(self):
        pool = SimpleObjectPool(size=3)
        assert len(list(pool.instances())) == 3
        assert pool.available() == 3

    def test_returns_inactive_instances(self):
        pool = SimpleObjectPool(size=2)
        a = pool.get_instance()
        a.activate()
        b = pool.get_instance()
        assert b is not a

    def test_exhaustion_returns_none(self):
        pool = SimpleObjectPool(size=1)
        pool.get_instance().activate()
        assert pool.get_instance() is None

    def test_deactivated_instance_is_reused(self):
        pool = SimpleObjectPool(size=1)
        e = pool.get_instance()
        e.activate()
        e.deactivate()
        assert pool.get_instance() is e

    def test_can_expand(self):
        pool = SimpleObjectPool(size=1, can_expand=True)
        pool.get_instance().activate()
        extra = pool.get_instance()
        assert extra is not None
        assert extra.eid == 2
        assert len(list(pool.instances())) == 2

    def test_disabled_tier_yields_nothing(self):
        pool = SimpleObjectPool(size=2, tier="only")
        pool.enable_tier("only", False)
        assert pool.get_instance() is None
        pool.enable_tier("only", True)
        assert pool.get_instance() is not None

    def test_other_tier_names_ignored(self):
        pool = SimpleObjectPool(size=2, tier="only")
        pool.enable_tier("other", False)
        assert pool.enabled

    def test_custom_factory(self):
        pool = SimpleObjectPool(factory=lambda eid, tier: PooledEntity(eid=eid * 10, tier=tier), size=2)
        assert sorted(e.eid for e in pool.instances()) == [10, 20]


class TestMultipleObjectPoolOrder:
    def test_round_robin_over_enabled_tiers(self):
        pool = _multi("a", "b", size=3)
        tiers = []
        for _ in range(4):
            e = pool.get_instance()
            e.activate()
            tiers.append(e.tier)
        assert tiers == ["a", "b", "a", "b"]

    def test_disabled_tiers_skipped(self):
        pool = _multi("a", "b", "c")
        pool.enable_tier("b", False)
        seen = set()
        for _ in range(4):
            e = pool.get_instance()
            e.activate()
            seen.add(e.tier)
        assert seen == {"a", "c"}

    def test_falls_through_exhausted_tier(self):
        pool = _multi("a", "b", size=1)
        pool.get_instance().activate()  # a
        pool.get_instance().activate()  # b
        assert pool.get_instance() is None

    def test_all_disabled_yields_none(self):
        pool = MultipleObjectPool([PoolEntry(tier="a", enabled=False)])
        assert pool.get_instance() is None

    def test_enable_tier_unlocks(self):
        pool = MultipleObjectPool([PoolEntry(tier="a", enabled=False)])
        pool.enable_tier("a", True)
        assert pool.is_tier_enabled("a")
        assert pool.get_instance().tier == "a"

    def test_unknown_tier_warns(self, caplog):
        pool = _multi("a")
        with caplog.at_level(logging.WARNING):
            pool.enable_tier("zzz", True)
        assert "Unknown tier" in caplog.text

    def test_expanding_tier(self):
        pool = MultipleObjectPool([PoolEntry(tier="a", size=0, can_expand=True)])
        e = pool.get_instance()
        assert e is not None and e.tier == "a"

    def test_available_counts(self):
        pool = _multi("a", "b", size=2)
        pool.get_instance().activate()
        assert pool.available() == 3
        assert pool.available("a") == 1
        assert pool.available("b") == 2
        assert pool.available("missing") == 0

    def test_unique_eids_across_tiers(self):
        pool = _multi("a", "b", size=3)
        eids = [e.eid for e in pool.instances()]
        assert len(eids) == len(set(eids)) == 6


class TestMultipleObjectPoolRandom:
    def test_only_enabled_tiers_picked(self):
        pool = _multi("a", "b", "c", strategy=PoolStrategy.RANDOM, rng=random.Random(3), size=50)
        pool.enable_tier("c", False)
        tiers = set()
        for _ in range(40):
            e = pool.get_instance()
            e.activate()
            tiers.add(e.tier)
        assert tiers == {"a", "b"}

    def test_skips_exhausted_tier(self):
        pool = MultipleObjectPool(
            [PoolEntry(tier="a", size=1), PoolEntry(tier="b", size=5)],
            strategy=PoolStrategy.RANDOM, rng=random.Random(0),
        )
        got = []
        for _ in range(6):
            e = pool.get_instance()
            e.activate()
            got.append(e.tier)
        assert got.count("a") == 1
        assert got.count("b") == 5
        assert pool.get_instance() is None


class TestMultipleObjectPoolValidation:
    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            MultipleObjectPool([PoolEntry(tier="a")], strategy="nope")

    def test_duplicate_tier(self):
        with pytest.raises(ValueError):
            MultipleObjectPool([PoolEntry(tier="a"), PoolEntry(tier="a")])
