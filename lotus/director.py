"""
Event Director for Lotus.
Procedural events first, the static catalog second.
"""

import logging
import random
import threading
from typing import Dict, List, Optional

from lotus.procedural import ContextTracker, PlayerState, ProceduralGenerator
from lotus.rules import StaticEventRules

logger = logging.getLogger(__name__)

STATIC_REPEAT_WINDOW = 2


class EventDirector:
    """
    Chooses the next event for the board.

    The procedural generator is asked first; when it returns None (or is
    skipped by the dynamic probability roll) a static event is drawn by
    tier/life-stage lookup.
    """

    def __init__(self, static_events: List[Dict], generator: Optional[ProceduralGenerator] = None,
                 dynamic_probability: float = 1.0):
        """
        Args:
            static_events: Static catalog (events.json produced by the converter)
            generator: Initialized ProceduralGenerator (optional)
            dynamic_probability: Chance of trying procedural generation first
        """
        self.all_events = static_events
        self.generator = generator
        self.dynamic_probability = dynamic_probability

        # Statistics tracking
        self.static_events_selected = 0
        self.dynamic_events_selected = 0
        self.dynamic_generation_failures = 0
        self.last_10_choices = []
        self.recent_static_ids = []
        # Shared by every session of the host
        self._lock = threading.Lock()

        logger.info(f"EventDirector initialized: {len(self.all_events)} static events, "
                    f"generator {'attached' if generator else 'detached'}")

    def choose_event(self, player_state: PlayerState, context: ContextTracker,
                     rng: random.Random) -> Optional[Dict]:
        """
        Main event selection method.

        Returns:
            Event view dict, or None only if both sources are empty.
        """
        with self._lock:
            return self._choose_event(player_state, context, rng)

    def _choose_event(self, player_state: PlayerState, context: ContextTracker,
                      rng: random.Random) -> Optional[Dict]:
        if self.generator and rng.random() < self.dynamic_probability:
            event = self.generator.generate_event(player_state, context, rng)
            if event:
                self.dynamic_events_selected += 1
                self._remember(('dynamic', event.situation_id))
                logger.info(f"DYNAMIC EVENT: {event.title} (situation: {event.situation_id})")
                return event.to_dict()

            self.dynamic_generation_failures += 1
            logger.warning("Procedural generation returned nothing, using static catalog")

        static_event = self._choose_static_event(player_state, rng)
        if static_event is None:
            logger.error("No event available: static catalog is empty")
            return None

        self.static_events_selected += 1
        self._remember(('static', static_event.get('id')))
        self.recent_static_ids = (self.recent_static_ids + [str(static_event.get('id'))])[-STATIC_REPEAT_WINDOW:]
        logger.info(f"STATIC EVENT: {static_event.get('title', 'Untitled')}")
        return StaticEventRules.to_view(static_event)

    def _choose_static_event(self, player_state: PlayerState, rng: random.Random) -> Optional[Dict]:
        """Tier/life-stage lookup in the static catalog."""
        if not self.all_events:
            return None

        candidates = StaticEventRules.filter_viable(self.all_events, player_state, self.recent_static_ids)
        logger.debug(f"[Static Selection] {len(candidates)} viable events after rules")

        if not candidates:
            logger.warning("[Static Selection] No viable events after rules, picking random")
            return rng.choice(self.all_events)

        return rng.choice(candidates)

    def _remember(self, choice):
        self.last_10_choices = (self.last_10_choices + [choice])[-10:]

    def get_stats(self) -> Dict:
        """Get comprehensive director statistics."""
        with self._lock:
            return self._collect_stats()

    def _collect_stats(self) -> Dict:
        total_events = self.static_events_selected + self.dynamic_events_selected
        total_attempts = self.dynamic_events_selected + self.dynamic_generation_failures

        stats = {
            "static_events_selected": self.static_events_selected,
            "dynamic_events_selected": self.dynamic_events_selected,
            "dynamic_generation_failures": self.dynamic_generation_failures,
            "total_events_selected": total_events,
            "dynamic_success_rate": (
                self.dynamic_events_selected / total_attempts
                if total_attempts > 0 else 0
            ),
            "dynamic_ratio": (
                self.dynamic_events_selected / total_events
                if total_events > 0 else 0
            ),
            "dynamic_probability": self.dynamic_probability,
            "recent_choices": list(self.last_10_choices)
        }
        if self.generator:
            stats["generator"] = self.generator.get_stats()
        return stats
