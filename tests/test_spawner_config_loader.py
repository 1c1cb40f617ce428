"""Tests for spawner_config_loader - YAML parsing and validation."""

import logging
from pathlib import Path

import pytest

from timedspawner.loaders.spawner_config_loader import (
    ConfigError,
    SpawnerConfig,
    load_spawner_config,
    validate_spawner_config,
)
from timedspawner.models.pool import PoolStrategy

# Path to the real config directory
CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class TestDefaults:
    def test_missing_file_returns_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            cfg = load_spawner_config(tmp_path / "nope.yaml")
        assert cfg == SpawnerConfig()
        assert "not found" in caplog.text

    def test_default_milestones(self):
        cfg = SpawnerConfig()
        assert cfg.milestones == [
            (3.0, "Enemy_Grunt"), (30.0, "Enemy_Soldier"), (60.0, "Enemy_Overwatch"),
        ]
        assert [t.name for t in cfg.pool.tiers] == ["Enemy_Grunt", "Enemy_Soldier", "Enemy_Overwatch"]

    def test_empty_file(self, tmp_path):
        f = tmp_path / "spawner.yaml"
        f.write_text("")
        assert load_spawner_config(f) == SpawnerConfig()


class TestShippedConfig:
    def test_loads(self):
        cfg = load_spawner_config(CONFIG_DIR / "spawner.yaml")
        assert cfg.min_frequency == 1.0
        assert cfg.decay_factor == pytest.approx(1 / 1.3)
        assert [tier for _, tier in cfg.milestones] == ["Enemy_Grunt", "Enemy_Soldier", "Enemy_Overwatch"]
        assert all(not t.enabled for t in cfg.pool.tiers)


class TestParsing:
    def test_full_file(self, tmp_path):
        f = tmp_path / "spawner.yaml"
        f.write_text(
            "min_frequency: 0.5\n"
            "max_frequency: 2.0\n"
            "batch_size: 3\n"
            "spawning_enabled: false\n"
            "anchor: [4, -1.5]\n"
            "seed: 11\n"
            "milestones:\n"
            "  - {threshold: 20, tier: B}\n"
            "  - {threshold: 5, tier: A}\n"
            "pool:\n"
            "  strategy: random\n"
            "  tiers:\n"
            "    - {name: A, size: 4, enabled: true}\n"
            "    - {name: B, can_expand: true}\n"
        )
        cfg = load_spawner_config(f)
        assert cfg.min_frequency == 0.5
        assert cfg.max_frequency == 2.0
        assert cfg.batch_size == 3
        assert cfg.spawning_enabled is False
        assert cfg.anchor == (4.0, -1.5)
        assert cfg.seed == 11
        assert cfg.milestones == [(5.0, "A"), (20.0, "B")]
        assert cfg.pool.strategy == PoolStrategy.RANDOM
        assert cfg.pool.tiers[0].size == 4 and cfg.pool.tiers[0].enabled
        assert cfg.pool.tiers[1].can_expand and not cfg.pool.tiers[1].enabled

    def test_pair_milestones(self, tmp_path):
        f = tmp_path / "spawner.yaml"
        f.write_text("milestones:\n  - [10, X]\n  - [1, Y]\n")
        assert load_spawner_config(f).milestones == [(1.0, "Y"), (10.0, "X")]

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        f = tmp_path / "spawner.yaml"
        f.write_text("batch_size: 2\nspawn_radius: 3\n")
        with caplog.at_level(logging.WARNING):
            cfg = load_spawner_config(f)
        assert cfg.batch_size == 2
        assert "spawn_radius" in caplog.text

    def test_pool_without_tiers_keeps_defaults(self, tmp_path):
        f = tmp_path / "spawner.yaml"
        f.write_text("pool:\n  strategy: random\n")
        cfg = load_spawner_config(f)
        assert cfg.pool.strategy == PoolStrategy.RANDOM
        assert len(cfg.pool.tiers) == 3


class TestErrors:
    @pytest.mark.parametrize("body", [
        "min_frequency: 3\nmax_frequency: 1\n",
        "min_frequency: -1\n",
        "batch_size: -2\n",
        "decay_factor: 0\n",
        "decay_factor: 2\n",
        "step_interval_s: 0\n",
        "milestones:\n  - {threshold: -1, tier: A}\n",
        "milestones:\n  - {tier: A}\n",
        "milestones: 5\n",
        "milestones:\n  - [1, 2, 3]\n",
        "anchor: 5\n",
        "pool:\n  strategy: nope\n",
        "pool:\n  tiers:\n    - {size: 3}\n",
        "pool:\n  tiers:\n    - {name: A}\n    - {name: A}\n",
        "pool: []\n",
        "- just\n- a list\n",
    ])
    def test_invalid_config_raises(self, tmp_path, body):
        f = tmp_path / "spawner.yaml"
        f.write_text(body)
        with pytest.raises(ConfigError):
            load_spawner_config(f)

    @pytest.mark.parametrize("body", [
        "min_frequency: fast\n",
        "max_frequency: [1]\n",
        "decay_factor: half\n",
        "step_interval_s: quick\n",
        "batch_size: many\n",
        "batch_size: 1.5\n",
        "batch_size: true\n",
        "seed: abc\n",
        "spawning_enabled: sometimes\n",
        "milestones:\n  - {threshold: soon, tier: A}\n",
        "milestones:\n  - [later, A]\n",
        "anchor: [a, b]\n",
        "pool:\n  tiers:\n    - {name: A, size: lots}\n",
        "pool:\n  tiers: A\n",
    ])
    def test_wrong_type_raises_config_error(self, tmp_path, body):
        f = tmp_path / "spawner.yaml"
        f.write_text(body)
        with pytest.raises(ConfigError):
            load_spawner_config(f)

    def test_integral_float_batch_size_accepted(self, tmp_path):
        f = tmp_path / "spawner.yaml"
        f.write_text("batch_size: 2.0\nmin_frequency: 1\nmax_frequency: 2\n")
        cfg = load_spawner_config(f)
        assert cfg.batch_size == 2 and isinstance(cfg.batch_size, int)
        assert cfg.min_frequency == 1.0 and isinstance(cfg.min_frequency, float)

    def test_unparseable_yaml(self, tmp_path):
        f = tmp_path / "spawner.yaml"
        f.write_text("min_frequency: [1,\n")
        with pytest.raises(ConfigError):
            load_spawner_config(f)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_spawner_config(SpawnerConfig(min_frequency=5.0, max_frequency=1.0))
