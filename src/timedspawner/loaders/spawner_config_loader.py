"""Spawner configuration - loads tunable constants from config/spawner.yaml.

Provides a single ``SpawnerConfig`` dataclass that is loaded once at
startup and then handed to the scheduler, the pool and the loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

import yaml

from timedspawner.models.pool import PoolStrategy
from timedspawner.util.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DECAY_FACTOR,
    DEFAULT_MAX_FREQUENCY,
    DEFAULT_MILESTONES,
    DEFAULT_MIN_FREQUENCY,
    DEFAULT_STEP_INTERVAL_S,
)

log = logging.getLogger(__name__)

DEFAULT_SPAWNER_CONFIG_PATH = "config/spawner.yaml"


class ConfigError(ValueError):
    """Raised when a spawner configuration is malformed."""


@dataclass
class TierConfig:
    """One pool tier."""
    name: str
    size: int = 5
    enabled: bool = False
    can_expand: bool = False


@dataclass
class PoolConfig:
    """Object pool layout."""
    strategy: str = PoolStrategy.ORIGINAL_ORDER
    tiers: List[TierConfig] = field(default_factory=lambda: [
        TierConfig(name=tier) for _, tier in DEFAULT_MILESTONES
    ])


@dataclass
class SpawnerConfig:
    """All tunable spawner constants.

    Loaded from ``config/spawner.yaml``.  Every field has a sensible default
    so the spawner can start even without the file.
    """

    # -- Cadence -----------------------------------------------------
    min_frequency: float = DEFAULT_MIN_FREQUENCY
    max_frequency: float = DEFAULT_MAX_FREQUENCY
    decay_factor: float = DEFAULT_DECAY_FACTOR

    # -- Spawning ----------------------------------------------------
    batch_size: int = DEFAULT_BATCH_SIZE
    spawning_enabled: bool = True
    anchor: Tuple[float, float] = (0.0, 0.0)

    # -- Escalation --------------------------------------------------
    milestones: List[Tuple[float, str]] = field(
        default_factory=lambda: list(DEFAULT_MILESTONES)
    )

    # -- Driver ------------------------------------------------------
    step_interval_s: float = DEFAULT_STEP_INTERVAL_S
    seed: Optional[int] = None

    # -- Pool --------------------------------------------------------
    pool: PoolConfig = field(default_factory=PoolConfig)


_FLOAT_KEYS = ("min_frequency", "max_frequency", "decay_factor", "step_interval_s")
_INT_KEYS = ("batch_size",)


def _as_float(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{what} must be a number, got {value!r}")
    return float(value)


def _as_int(value: Any, what: str) -> int:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{what} must be an integer, got {value!r}")
    return value


def _parse_milestones(raw: Any) -> list[tuple[float, str]]:
    if not isinstance(raw, list):
        raise ConfigError(f"milestones must be a list, got {type(raw).__name__}")
    pairs: list[tuple[float, str]] = []
    for entry in raw:
        if isinstance(entry, dict):
            try:
                threshold, tier = entry["threshold"], entry["tier"]
            except KeyError as e:
                raise ConfigError(f"milestone {entry!r} is missing {e}") from e
            pairs.append((_as_float(threshold, "milestone threshold"), str(tier)))
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            pairs.append((_as_float(entry[0], "milestone threshold"), str(entry[1])))
        else:
            raise ConfigError(f"Invalid milestone entry: {entry!r}")
    return sorted(pairs, key=lambda p: p[0])


def _parse_pool(raw: Any) -> PoolConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"pool must be a mapping, got {type(raw).__name__}")
    tiers_raw = raw.get("tiers")
    if tiers_raw is None:
        return PoolConfig(strategy=raw.get("strategy", PoolStrategy.ORIGINAL_ORDER))
    if not isinstance(tiers_raw, list):
        raise ConfigError(f"pool tiers must be a list, got {type(tiers_raw).__name__}")
    tiers = []
    for t in tiers_raw:
        if not isinstance(t, dict) or "name" not in t:
            raise ConfigError(f"Invalid pool tier: {t!r}")
        tier = TierConfig(**{
            k: v for k, v in t.items() if k in TierConfig.__dataclass_fields__
        })
        tier.size = _as_int(tier.size, f"pool tier {tier.name!r} size")
        if tier.size < 0:
            raise ConfigError(f"pool tier {tier.name!r} has negative size {tier.size}")
        tiers.append(tier)
    return PoolConfig(strategy=raw.get("strategy", PoolStrategy.ORIGINAL_ORDER), tiers=tiers)


def validate_spawner_config(cfg: SpawnerConfig) -> SpawnerConfig:
    """Reject values the scheduler cannot run with.

    Raises:
        ConfigError: On the first invalid value found.
    """
    if cfg.min_frequency < 0 or cfg.max_frequency < 0:
        raise ConfigError("min_frequency and max_frequency must be non-negative")
    if cfg.min_frequency > cfg.max_frequency:
        raise ConfigError(
            f"min_frequency ({cfg.min_frequency}) exceeds max_frequency ({cfg.max_frequency})"
        )
    if cfg.batch_size < 0:
        raise ConfigError(f"batch_size must be >= 0, got {cfg.batch_size}")
    if not 0 < cfg.decay_factor <= 1:
        raise ConfigError(f"decay_factor must be in (0, 1], got {cfg.decay_factor}")
    for threshold, tier in cfg.milestones:
        if threshold < 0:
            raise ConfigError(f"milestone {tier!r} has negative threshold {threshold}")
    if cfg.step_interval_s <= 0:
        raise ConfigError(f"step_interval_s must be positive, got {cfg.step_interval_s}")
    if cfg.pool.strategy not in PoolStrategy.ALL:
        raise ConfigError(f"Unknown pool strategy: {cfg.pool.strategy!r}")
    names = [t.name for t in cfg.pool.tiers]
    if len(names) != len(set(names)):
        raise ConfigError(f"Duplicate pool tier names: {names}")
    return cfg


def load_spawner_config(path: str | Path = DEFAULT_SPAWNER_CONFIG_PATH) -> SpawnerConfig:
    """Load spawner configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.

    Raises:
        ConfigError: If the file content is malformed or fails validation.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Spawner config not found at %s, using defaults", p)
        return SpawnerConfig()

    with p.open() as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {p}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{p} must contain a mapping at top level")

    log.info("Loaded spawner config from %s (%d keys)", p, len(raw))

    # Nested / structured keys
    extra: dict[str, Any] = {}
    if "milestones" in raw:
        extra["milestones"] = _parse_milestones(raw.pop("milestones"))
    if "pool" in raw:
        extra["pool"] = _parse_pool(raw.pop("pool"))
    if "anchor" in raw:
        anchor = raw.pop("anchor")
        if not isinstance(anchor, (list, tuple)) or len(anchor) != 2:
            raise ConfigError(f"anchor must be [x, y], got {anchor!r}")
        extra["anchor"] = (_as_float(anchor[0], "anchor x"), _as_float(anchor[1], "anchor y"))

    for key in _FLOAT_KEYS:
        if key in raw:
            raw[key] = _as_float(raw[key], key)
    for key in _INT_KEYS:
        if key in raw:
            raw[key] = _as_int(raw[key], key)
    if raw.get("seed") is not None:
        raw["seed"] = _as_int(raw["seed"], "seed")
    if not isinstance(raw.get("spawning_enabled", True), bool):
        raise ConfigError(f"spawning_enabled must be true or false, got {raw['spawning_enabled']!r}")

    unknown = sorted(k for k in raw if k not in SpawnerConfig.__dataclass_fields__)
    if unknown:
        log.warning("Ignoring unknown spawner config keys: %s", ", ".join(unknown))

    cfg = SpawnerConfig(**extra, **{
        k: v for k, v in raw.items()
        if k in SpawnerConfig.__dataclass_fields__
    })
    return validate_spawner_config(cfg)
