"""Tests for runner wiring - pool building, service creation, event wiring."""

from __future__ import annotations

import asyncio

import pytest

from timedspawner.loaders.spawner_config_loader import PoolConfig, SpawnerConfig, TierConfig
from timedspawner.main import build_pool, create_services, run_spawn_loop, wire_events
from timedspawner.models.pool import PoolStrategy


def _config(**overrides) -> SpawnerConfig:
    defaults = dict(
        seed=3,
        milestones=[(1.0, "A"), (2.0, "B")],
        pool=PoolConfig(tiers=[
            TierConfig(name="A", size=3),
            TierConfig(name="B", size=3),
        ]),
        step_interval_s=0.001,
    )
    defaults.update(overrides)
    return SpawnerConfig(**defaults)


class TestBuildPool:
    def test_tiers_follow_config(self):
        pool = build_pool(PoolConfig(
            strategy=PoolStrategy.RANDOM,
            tiers=[TierConfig(name="A", size=2, enabled=True), TierConfig(name="B", size=1)],
        ))
        assert pool.tiers == ["A", "B"]
        assert pool.strategy == PoolStrategy.RANDOM
        assert pool.is_tier_enabled("A")
        assert not pool.is_tier_enabled("B")
        assert pool.available() == 3

    def test_default_pool_matches_default_milestones(self):
        pool = build_pool(SpawnerConfig().pool)
        assert pool.tiers == ["Enemy_Grunt", "Enemy_Soldier", "Enemy_Overwatch"]
        assert pool.get_instance() is None  # everything locked until milestones fire


class TestCreateServices:
    def test_scheduler_bound(self):
        services = create_services(_config())
        assert services.scheduler.is_active
        assert services.scheduler.pool is services.pool
        assert services.spawn_loop.schedulers == [services.scheduler]

    def test_milestones_unlock_pool_tiers(self):
        services = create_services(_config())
        for _ in range(5):
            services.spawn_loop.step(0.5)
        assert services.pool.is_tier_enabled("A")
        assert services.pool.is_tier_enabled("B")


class TestWireEvents:
    @pytest.mark.asyncio
    async def test_spawned_entities_counted_and_recycled(self):
        services = create_services(_config())
        wire_events(services)
        for _ in range(8):
            services.spawn_loop.step(0.5)
        await asyncio.sleep(0)
        assert sum(services.spawned_by_tier.values()) > 0
        assert set(services.spawned_by_tier) <= {"A", "B"}
        assert services.pool.available() == 6

    def test_stepping_without_running_loop_recycles_immediately(self):
        services = create_services(_config())
        wire_events(services)
        for _ in range(8):
            services.spawn_loop.step(0.5)
        assert sum(services.spawned_by_tier.values()) > 0
        assert services.pool.available() == 6

    @pytest.mark.asyncio
    async def test_run_until_duration(self):
        services = create_services(_config(), duration=0.02)
        wire_events(services)
        await asyncio.wait_for(run_spawn_loop(services), timeout=5.0)
        assert not services.scheduler.is_active
        assert services.spawn_loop.tick_count > 0
