# lotus/procedural/risk_calculator.py

from typing import Mapping

from .player import PlayerState

MIN_RISK = 0
MAX_RISK = 95
GAP_PENALTY = 5


def requirement_gap(requirements: Mapping[str, int], player_state: PlayerState) -> int:
    """Total shortfall between the player's stats and the thresholds."""
    return sum(max(0, threshold - player_state.stat(stat))
               for stat, threshold in requirements.items())


def compute_risk(base_risk: int, requirements: Mapping[str, int],
                 player_state: PlayerState, archetype_modifier: int) -> int:
    """Failure chance in percent, clamped to [0, 95]."""
    risk = base_risk + requirement_gap(requirements, player_state) * GAP_PENALTY + archetype_modifier
    return max(MIN_RISK, min(MAX_RISK, risk))
