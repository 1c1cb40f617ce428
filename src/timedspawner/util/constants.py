"""Spawner constants - timing, decay, default tier schedule.

All magic numbers of the timed spawner, centralized here.
"""

# -- Timing --------------------------------------------------------------

DEFAULT_MIN_FREQUENCY: float = 1.0
"""Lower bound of the initial spawn interval in seconds."""

DEFAULT_MAX_FREQUENCY: float = 1.0
"""Upper bound of the initial spawn interval in seconds."""

DEFAULT_STEP_INTERVAL_S: float = 0.015
"""Sleep between two driver loop steps in seconds."""

# -- Spawning ------------------------------------------------------------

DEFAULT_BATCH_SIZE: int = 1
"""Entities requested from the pool per spawn event."""

DECAY_DIVISOR: float = 1.3
"""Interval bounds are divided by this on every qualifying milestone."""

DEFAULT_DECAY_FACTOR: float = 1.0 / DECAY_DIVISOR
"""Multiplier applied to both interval bounds per qualifying milestone."""

# -- Tiers ---------------------------------------------------------------

DEFAULT_MILESTONES: tuple[tuple[float, str], ...] = (
    (3.0, "Enemy_Grunt"),
    (30.0, "Enemy_Soldier"),
    (60.0, "Enemy_Overwatch"),
)
"""(threshold seconds, tier name) pairs unlocked in ascending order."""

DEFAULT_TIER: str = "default"
"""Tier name used by single-prototype pools."""
