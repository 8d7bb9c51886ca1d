# lotus/procedural/context.py

"""
Anti-repetition memory for procedural events.
"""

import logging
from collections import deque
from typing import Dict, List

logger = logging.getLogger(__name__)

DOMAIN_MEMORY = 15
ENCOUNTER_WINDOW = 30


class ContextTracker:
    """
    Bounded record of what the player has recently seen.

    - recent domains: ring buffer of the last DOMAIN_MEMORY domains
    - encounters: situation id -> counter value when it was recorded,
      evicted once older than ENCOUNTER_WINDOW events
    - counter: number of events recorded so far

    Owned by the host; only record() mutates it.
    """

    def __init__(self, domain_memory: int = DOMAIN_MEMORY,
                 encounter_window: int = ENCOUNTER_WINDOW):
        self.encounter_window = encounter_window
        self._domains = deque(maxlen=domain_memory)
        self._encounters: Dict[str, int] = {}
        self._counter = 0

    @property
    def counter(self) -> int:
        return self._counter

    def record(self, domain: str, situation_id: str) -> None:
        """Register a resolved event. Call once per event, after its outcome."""
        self._domains.append(domain)
        self._encounters[situation_id] = self._counter
        self._counter += 1
        self._evict()
        logger.debug(f"Context recorded {situation_id} ({domain}), counter={self._counter}")

    def _evict(self) -> None:
        expired = [sid for sid, seen_at in self._encounters.items()
                   if self._counter - seen_at > self.encounter_window]
        for sid in expired:
            del self._encounters[sid]

    def is_domain_recent(self, domain: str, window: int) -> bool:
        if window <= 0:
            return False
        return domain in list(self._domains)[-window:]

    def is_encountered(self, situation_id: str) -> bool:
        seen_at = self._encounters.get(situation_id)
        if seen_at is None:
            return False
        return self._counter - seen_at <= self.encounter_window

    def recent_domains(self, window: int = DOMAIN_MEMORY) -> List[str]:
        """Most recent last."""
        if window <= 0:
            return []
        return list(self._domains)[-window:]

    def encountered_ids(self) -> List[str]:
        return [sid for sid in self._encounters if self.is_encountered(sid)]

    def __repr__(self):
        return (f"ContextTracker(counter={self._counter}, "
                f"domains={list(self._domains)}, encounters={len(self._encounters)})")
