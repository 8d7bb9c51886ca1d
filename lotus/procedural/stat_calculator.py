# lotus/procedural/stat_calculator.py

"""
Scales authored stat profiles to the player's tier and the situation's severity.
"""

import random
from typing import Dict, Mapping

from .library import Severity

TIER_FACTOR = 1.5
VARIANCE_RANGE = (0.8, 1.2)

SEVERITY_MULTIPLIERS = {
    Severity.LOW: 0.5,
    Severity.MEDIUM: 1.0,
    Severity.HIGH: 2.0,
}


def tier_multiplier(player_tier: int) -> float:
    return (player_tier + 1) * TIER_FACTOR


def draw_variance(rng: random.Random) -> float:
    """One draw per choice; every stat of that choice shares it."""
    return rng.uniform(*VARIANCE_RANGE)


def apply_multipliers(base_profile: Mapping[str, float], player_tier: int,
                      severity: Severity, variance: float) -> Dict[str, int]:
    multiplier = tier_multiplier(player_tier) * SEVERITY_MULTIPLIERS[Severity(severity)] * variance
    return {stat: round(value * multiplier) for stat, value in base_profile.items()}


def compute_stats(base_profile: Mapping[str, float], player_tier: int,
                  severity: Severity, rng: random.Random) -> Dict[str, int]:
    return apply_multipliers(base_profile, player_tier, severity, draw_variance(rng))
