# lotus/engine/event_manager.py

import logging

logger = logging.getLogger(__name__)


class EventManager:
    """Manages event resolution and option validation."""

    def __init__(self, game_state, rng):
        self.game_state = game_state
        self.rng = rng

    def validate_option_requirements(self, option):
        """Check if the player qualifies for an option."""
        stats = self.game_state.get_state()['stats']

        for stat, needed in option.get('requirements', {}).items():
            if stats.get(stat, 0) < needed:
                return False, f"Requires {stat.replace('_', ' ').title()} {needed}"

        return True, ""

    def prepare_event_options(self, event):
        """Mark options the player cannot pick right now."""
        if not event:
            return

        for option in event['options']:
            valid, reason = self.validate_option_requirements(option)
            option['blocked'] = not valid
            option['block_reason'] = reason

    def resolve_event(self, option_id):
        """Resolve a player's event choice."""
        state = self.game_state.get_state()
        ev = state['current_event']

        if not ev:
            return {"status": "error", "msg": "No event to resolve"}

        # Find option
        op = next((o for o in ev['options'] if str(o['id']) == str(option_id)), None)
        if not op:
            return {"status": "error", "msg": "Option not found"}

        # Double-check requirements
        valid, reason = self.validate_option_requirements(op)
        if not valid:
            return {"status": "error", "msg": reason}

        # Risk roll
        failed = self.rng.randrange(100) < op.get('risk', 0)
        effects = op['failure'] if failed else op['success']
        result_text = op['failure_result'] if failed else op['success_result']

        for stat, delta in effects.items():
            self.game_state.update_stat(stat, delta)

        # Procedural events feed the anti-repetition memory, once, after the outcome
        if ev.get('source') == 'procedural':
            self.game_state.context.record(ev['domain'], ev['situation_id'])

        state['events_resolved'] += 1
        self.game_state.add_log_entry(f"Decision: {op['text']}")
        if result_text:
            self.game_state.add_log_entry(result_text)

        logger.info(f"Resolved '{ev['title']}' option {op['id']} "
                    f"({'failure' if failed else 'success'}): {effects}")

        # Clear current event
        state['current_event'] = None

        return {"status": "ok", "outcome": "failure" if failed else "success",
                "effects": effects, "result": result_text}
