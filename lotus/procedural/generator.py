# lotus/procedural/generator.py

"""
Procedural Generator for Lotus.
Builds complete events from situation templates: selection, choice
filtering, madlibs text and scaled outcomes. Returns None when it cannot,
so the caller can fall back to the static catalog.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .choices import assemble_choices
from .context import ContextTracker
from .errors import GenerationError, SelectionExhausted
from .library import ChoiceArchetype, SituationTemplate, TemplateLibrary
from .player import PlayerState
from .risk_calculator import compute_risk
from .selector import WILDCARD_PROBABILITY, select_situation
from .stat_calculator import apply_multipliers, draw_variance
from .text_assembly import assemble_choice_text, assemble_description, substitute_placeholders

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


@dataclass
class GeneratedChoice:
    archetype: str
    text: str
    success_delta: Dict[str, int]
    failure_delta: Dict[str, int]
    risk: int
    requirements: Dict[str, int] = field(default_factory=dict)
    success_result: str = ""
    failure_result: str = ""

    def to_dict(self, index: int) -> Dict:
        return {
            "id": index,
            "archetype": self.archetype,
            "text": self.text,
            "requirements": dict(self.requirements),
            "risk": self.risk,
            "success": dict(self.success_delta),
            "failure": dict(self.failure_delta),
            "success_result": self.success_result,
            "failure_result": self.failure_result,
        }


@dataclass
class GeneratedEvent:
    domain: str
    situation_id: str
    title: str
    description: str
    choices: List[GeneratedChoice]
    wildcard: bool = False

    def to_dict(self) -> Dict:
        """Event view shared with static events (see lotus.rules)."""
        return {
            "id": f"proc:{self.situation_id}",
            "source": "procedural",
            "title": self.title,
            "text": self.description,
            "domain": self.domain,
            "situation_id": self.situation_id,
            "wildcard": self.wildcard,
            "options": [c.to_dict(i) for i, c in enumerate(self.choices)],
        }


class ProceduralGenerator:
    """
    Generation orchestrator.
    Holds the shared library plus counters; context and player state are
    passed in on every call and never stored.
    """

    def __init__(self, library: TemplateLibrary, max_attempts: int = MAX_ATTEMPTS,
                 wildcard_probability: float = WILDCARD_PROBABILITY):
        self.library = library
        self.max_attempts = max(1, max_attempts)
        self.wildcard_probability = wildcard_probability

        self.generation_stats = {
            "total_requests": 0,
            "successful_generations": 0,
            "failed_attempts": 0,
            "exhausted": 0,
            "wildcards": 0,
        }

        logger.info(f"ProceduralGenerator initialized with {len(library)} situations")

    def generate_event(self, player_state: PlayerState, context: ContextTracker,
                       rng: random.Random) -> Optional[GeneratedEvent]:
        """
        Try up to max_attempts fresh selections.

        Returns:
            GeneratedEvent, or None when every attempt failed (static fallback).
        """
        self.generation_stats["total_requests"] += 1
        logger.info("=== PROCEDURAL EVENT GENERATION ===")

        for attempt in range(1, self.max_attempts + 1):
            try:
                event = self._attempt(player_state, context, rng)
            except GenerationError as e:
                self.generation_stats["failed_attempts"] += 1
                logger.warning(f"Attempt {attempt}/{self.max_attempts} failed: {e}")
                continue

            self.generation_stats["successful_generations"] += 1
            if event.wildcard:
                self.generation_stats["wildcards"] += 1
            logger.info(f"Generated '{event.title}' from situation '{event.situation_id}' "
                        f"with {len(event.choices)} options")
            return event

        self.generation_stats["exhausted"] += 1
        logger.warning(f"Procedural generation exhausted after {self.max_attempts} attempts, "
                       f"falling back to static events")
        return None

    def _attempt(self, player_state: PlayerState, context: ContextTracker,
                 rng: random.Random) -> GeneratedEvent:
        template, wildcard = select_situation(
            self.library, player_state, context, rng, self.wildcard_probability
        )
        if template is None:
            raise SelectionExhausted("no situation survived filtering")

        archetypes = assemble_choices(template, player_state)
        description = assemble_description(
            template, self.library.variables, player_state.tier, rng
        )
        choices = [self._build_choice(template, archetype, player_state, rng)
                   for archetype in archetypes]

        return GeneratedEvent(
            domain=template.domain,
            situation_id=template.id,
            title=f"{template.domain.capitalize()} - {template.severity.value.capitalize()} Severity",
            description=description,
            choices=choices,
            wildcard=wildcard,
        )

    def _build_choice(self, template: SituationTemplate, archetype: ChoiceArchetype,
                      player_state: PlayerState, rng: random.Random) -> GeneratedChoice:
        text = substitute_placeholders(
            assemble_choice_text(archetype, rng), self.library.variables, player_state.tier, rng
        )

        variance = draw_variance(rng)
        success = apply_multipliers(archetype.base_stats, player_state.tier,
                                    template.severity, variance)
        failure = apply_multipliers(archetype.failure_stats, player_state.tier,
                                    template.severity, variance)

        risk = compute_risk(template.base_risk, archetype.requirements,
                            player_state, archetype.risk_modifier)

        name = archetype.archetype.value
        outcome_line = "Things went well." if success.get("scs", 0) > 0 else "There were consequences."

        return GeneratedChoice(
            archetype=name,
            text=text,
            success_delta=success,
            failure_delta=failure,
            risk=risk,
            requirements=dict(archetype.requirements),
            success_result=f"You chose to {name}. {outcome_line}",
            failure_result=f"You chose to {name}, but it backfired. Things didn't go as planned.",
        )

    def get_stats(self) -> Dict:
        """Get generation statistics."""
        return self.generation_stats.copy()


def generate(player_state: PlayerState, library: TemplateLibrary, context: ContextTracker,
             rng: random.Random, max_attempts: int = MAX_ATTEMPTS) -> Optional[GeneratedEvent]:
    """One-shot generation without keeping statistics around."""
    return ProceduralGenerator(library, max_attempts=max_attempts).generate_event(
        player_state, context, rng
    )
