# lotus/procedural/player.py

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class PlayerState:
    """
    Read-only snapshot of the player handed to the generator.
    Stats missing from the snapshot count as 0.
    """
    tier: int
    life_stage: int
    stats: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        object.__setattr__(self, "stats", MappingProxyType(dict(self.stats)))

    def stat(self, name: str) -> int:
        return self.stats.get(name, 0)

    def meets(self, requirements: Mapping[str, int]) -> bool:
        """True when every threshold is reached. Empty requirements always pass."""
        return all(self.stat(stat) >= threshold for stat, threshold in requirements.items())
