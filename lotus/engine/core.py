# lotus/engine/core.py

import logging
import random

from .game_state import GameState
from .event_manager import EventManager

logger = logging.getLogger(__name__)

TIER_NAMES = ["D (Blacklisted)", "C (Warning)", "B (Standard)", "A (Trusted)", "A+ (Exemplary)"]


class GameEngine:
    """Main game engine coordinating all subsystems."""

    def __init__(self, db, director, rng=None):
        self.db = db
        self.config = db.get('config', {})
        self.director = director
        self.rng = rng or random.Random(self.config.get('seed'))

        # Initialize subsystems
        self.game_state = GameState(db)
        self.event_manager = EventManager(self.game_state, self.rng)

    def get_view_data(self):
        """Return game state formatted for UI."""
        state = self.game_state.get_state()

        # Prepare event options if needed
        if state['current_event']:
            self.event_manager.prepare_event_options(state['current_event'])

        return {
            "tier": state['tier'],
            "tier_name": TIER_NAMES[state['tier']] if 0 <= state['tier'] < len(TIER_NAMES) else "?",
            "petal": state['petal'],
            "life_stage": state['life_stage'],
            "stats": state['stats'].copy(),
            "log": state['log'].copy(),
            "current_event": state['current_event'],
            "on_review_space": state['petal'] == 0,
            "recent_domains": self.game_state.context.recent_domains()
        }

    def move(self, direction=1):
        """Move the token one petal (1 = clockwise, -1 = counter-clockwise)."""
        state = self.game_state.get_state()

        if state['current_event']:
            return {"status": "error", "msg": "Resolve the current event first"}
        if direction not in (1, -1):
            return {"status": "error", "msg": "Direction must be 1 or -1"}

        petals = self.config.get('num_petals_per_tier', 13)
        new_petal = (state['petal'] + direction) % petals

        # A clockwise pass through the review space completes a lap
        if direction == 1 and new_petal == 0:
            if self.game_state.advance_life_stage():
                self.game_state.add_log_entry(f"--- Life stage {state['life_stage']} ---")

        state['petal'] = new_petal

        if new_petal == 0:
            self.game_state.add_log_entry("SCS Review: your standing is re-evaluated.")
            return {"status": "review"}

        event = self.director.choose_event(self.game_state.snapshot(), self.game_state.context, self.rng)
        state['current_event'] = event
        if event is None:
            return {"status": "quiet"}
        return {"status": "ok"}

    def review(self, direction):
        """Tier change on the review space."""
        state = self.game_state.get_state()

        if state['petal'] != 0:
            return {"status": "error", "msg": "Not on a review space"}
        if direction not in (1, -1):
            return {"status": "error", "msg": "Direction must be 1 or -1"}

        old_tier = state['tier']
        self.game_state.set_tier(old_tier + direction)
        if state['tier'] != old_tier:
            self.game_state.add_log_entry(f"SCS review moved you from tier {old_tier} to {state['tier']}.")
        return {"status": "ok", "tier": state['tier']}

    def resolve_event(self, option_id):
        """Public method to resolve an event choice."""
        return self.event_manager.resolve_event(option_id)
