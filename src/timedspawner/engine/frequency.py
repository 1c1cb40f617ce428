"""Spawn cadence helpers - interval sampling and bound decay.

Pure functions of the current bounds plus a supplied random source, so the
scheduler can be driven by a seeded ``random.Random`` in tests.
"""

from __future__ import annotations

import random

from timedspawner.util.constants import DEFAULT_DECAY_FACTOR


def sample_interval(rng: random.Random, min_frequency: float, max_frequency: float) -> float:
    """Draw the next spawn interval uniformly from ``[min_frequency, max_frequency]``."""
    if min_frequency == max_frequency:
        return min_frequency
    value = rng.uniform(min_frequency, max_frequency)
    # uniform() may round past the upper bound for some float pairs
    return min(max(value, min_frequency), max_frequency)


def decay_bounds(
    min_frequency: float,
    max_frequency: float,
    factor: float = DEFAULT_DECAY_FACTOR,
) -> tuple[float, float]:
    """Shrink both interval bounds by ``factor``.

    Args:
        min_frequency: Current lower bound in seconds.
        max_frequency: Current upper bound in seconds.
        factor: Multiplier in ``(0, 1]``; the default shortens the
                interval by roughly 23%.

    Returns:
        Tuple ``(new_min, new_max)``, never larger than the inputs.
    """
    return min_frequency * factor, max_frequency * factor
