# lotus/procedural/selector.py

"""
Situation selection: hard filters, anti-repetition, then a weighted draw
that favours exact tier/life-stage matches.
"""

import logging
import random
from typing import List, Optional, Tuple

from .context import ContextTracker
from .library import SituationTemplate, TemplateLibrary
from .player import PlayerState

logger = logging.getLogger(__name__)

WILDCARD_PROBABILITY = 0.1
RECENT_DOMAIN_WINDOW = 2


def is_in_reach(template: SituationTemplate, player_state: PlayerState) -> bool:
    """Tier range meets [tier-1, tier+1] and stage range meets [stage-1, stage]."""
    tier = player_state.tier
    stage = player_state.life_stage
    tier_ok = template.tier_min <= tier + 1 and template.tier_max >= tier - 1
    stage_ok = template.life_stage_min <= stage and template.life_stage_max >= stage - 1
    return tier_ok and stage_ok


def match_score(template: SituationTemplate, player_state: PlayerState) -> int:
    score = 2 if template.covers_tier(player_state.tier) else 1
    score += 2 if template.covers_life_stage(player_state.life_stage) else 1
    return score


def filter_candidates(library: TemplateLibrary, player_state: PlayerState,
                      context: ContextTracker, allow_wildcard: bool) -> List[SituationTemplate]:
    """
    Every template the player may face right now.
    The wildcard only lifts the recent-domain rule, never the encounter rule.
    """
    counts = {"reach": 0, "encountered": 0, "domain": 0}
    candidates = []

    for domain, templates in library.by_domain.items():
        domain_recent = context.is_domain_recent(domain, RECENT_DOMAIN_WINDOW)
        for template in templates:
            if not is_in_reach(template, player_state):
                counts["reach"] += 1
                continue
            if context.is_encountered(template.id):
                logger.debug(f"  FILTERED (already encountered): {template.id}")
                counts["encountered"] += 1
                continue
            if domain_recent and not allow_wildcard:
                logger.debug(f"  FILTERED (recent domain): {template.id} - {domain}")
                counts["domain"] += 1
                continue
            candidates.append(template)

    logger.debug(f"Filtering for tier={player_state.tier}, stage={player_state.life_stage}: "
                 f"{len(candidates)} candidates (out of reach: {counts['reach']}, "
                 f"encountered: {counts['encountered']}, recent domain: {counts['domain']})")
    return candidates


def select_situation(library: TemplateLibrary, player_state: PlayerState,
                     context: ContextTracker, rng: random.Random,
                     wildcard_probability: float = WILDCARD_PROBABILITY
                     ) -> Tuple[Optional[SituationTemplate], bool]:
    """
    Pick one situation for the player.

    Returns:
        (template, wildcard_fired). template is None when nothing survives
        the filters.
    """
    allow_wildcard = rng.random() < wildcard_probability
    if allow_wildcard:
        logger.info("WILDCARD roll - ignoring recent domain filter")

    candidates = filter_candidates(library, player_state, context, allow_wildcard)
    if not candidates:
        logger.warning("No candidate situations after filtering")
        return None, allow_wildcard

    weights = [match_score(t, player_state) for t in candidates]
    selected = rng.choices(candidates, weights=weights, k=1)[0]

    logger.info(f"Selected situation '{selected.id}' (domain={selected.domain}, "
                f"tier={selected.tier_min}-{selected.tier_max}, "
                f"stage={selected.life_stage_min}-{selected.life_stage_max})")
    return selected, allow_wildcard
