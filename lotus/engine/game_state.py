# lotus/engine/game_state.py

import copy

from lotus.procedural import ContextTracker, PlayerState


class GameState:
    """Manages the core game state and state transitions."""

    def __init__(self, db):
        self.db = db
        self.config = db.get('config', {})
        self.reset()

    def reset(self):
        """Reset to initial state."""
        start = self.config.get('starting_player', {})
        self.state = {
            "tier": start.get('tier', 2),
            "petal": start.get('petal', 1),
            "life_stage": start.get('life_stage', 1),
            "stats": copy.deepcopy(start.get('stats', {})),
            "log": ["The board is set. Your life begins..."],
            "current_event": None,
            "events_resolved": 0
        }
        # Anti-repetition memory for procedural events
        self.context = ContextTracker()

    def get_state(self):
        """Return the current state."""
        return self.state

    def snapshot(self):
        """Read-only player snapshot for the generator."""
        return PlayerState(
            tier=self.state['tier'],
            life_stage=self.state['life_stage'],
            stats=self.state['stats']
        )

    def update_stat(self, stat_name, delta):
        """Apply a delta. Guanxi and career never drop below zero."""
        current = self.state['stats'].get(stat_name, 0)
        new_value = current + delta
        if stat_name.startswith('guanxi_') or stat_name == 'career_level':
            new_value = max(0, new_value)
        self.state['stats'][stat_name] = new_value

    def add_log_entry(self, entry):
        """Add an entry to the game log."""
        self.state['log'].append(entry)
        if len(self.state['log']) > 50:
            self.state['log'].pop(0)

    def set_tier(self, tier):
        num_tiers = self.config.get('num_tiers', 5)
        self.state['tier'] = max(0, min(num_tiers - 1, tier))

    def advance_life_stage(self):
        max_stage = self.config.get('max_life_stage', 5)
        if self.state['life_stage'] < max_stage:
            self.state['life_stage'] += 1
            return True
        return False
