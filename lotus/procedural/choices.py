# lotus/procedural/choices.py

import logging
from typing import List

from .errors import ChoiceSetInvalid
from .library import ChoiceArchetype, SituationTemplate
from .player import PlayerState

logger = logging.getLogger(__name__)

MIN_CHOICES = 2
MAX_CHOICES = 4


def assemble_choices(template: SituationTemplate, player_state: PlayerState) -> List[ChoiceArchetype]:
    """
    Archetypes the player qualifies for, in authored order.
    Authors order choices by priority, so extras beyond MAX_CHOICES are cut
    from the end.

    Raises:
        ChoiceSetInvalid: fewer than MIN_CHOICES remain.
    """
    eligible = []
    for choice in template.choices:
        if player_state.meets(choice.requirements):
            eligible.append(choice)
        else:
            logger.debug(f"  Choice '{choice.archetype.value}' filtered - "
                         f"requirements not met: {dict(choice.requirements)}")

    logger.debug(f"Available choices for {template.id}: {len(eligible)}/{len(template.choices)}")

    if len(eligible) < MIN_CHOICES:
        raise ChoiceSetInvalid(
            f"{template.id}: only {len(eligible)} eligible choice(s), need {MIN_CHOICES}"
        )
    return eligible[:MAX_CHOICES]
