# lotus/procedural/text_assembly.py

"""
Madlibs text assembly: pick fragments, then fill their {placeholders}.
"""

import random
import re
from typing import Dict

from .errors import UnresolvedPlaceholder
from .library import ChoiceArchetype, SituationTemplate, VariableLibraries

PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")
# Any braced run, well-formed or not
ANY_TOKEN = re.compile(r"\{([^{}]*)\}")


def find_placeholders(text: str):
    """Token names in order of first appearance."""
    return list(dict.fromkeys(PLACEHOLDER.findall(text)))


def substitute_placeholders(text: str, variables: VariableLibraries,
                            player_tier: int, rng: random.Random) -> str:
    """
    Replace every {name} token. A name is bound once, so repeated tokens read
    the same.

    Raises:
        UnresolvedPlaceholder: a token has no pool, or a malformed {...} survives
            substitution.
    """
    bindings: Dict[str, str] = {}
    for name in find_placeholders(text):
        pool = variables.pool_for(name, player_tier)
        if pool:
            bindings[name] = rng.choice(pool)

    result = PLACEHOLDER.sub(lambda m: bindings.get(m.group(1), m.group(0)), text)

    leftover = list(dict.fromkeys(ANY_TOKEN.findall(result)))
    if leftover:
        raise UnresolvedPlaceholder(leftover)
    return result


def assemble_description(template: SituationTemplate, variables: VariableLibraries,
                         player_tier: int, rng: random.Random) -> str:
    fragments = template.fragments
    opening = rng.choice(fragments.openings)
    conflict = rng.choice(fragments.conflicts)
    stakes = rng.choice(fragments.stakes)
    text = " ".join((opening, conflict, stakes))
    return substitute_placeholders(text, variables, player_tier, rng)


def assemble_choice_text(archetype: ChoiceArchetype, rng: random.Random) -> str:
    return rng.choice(archetype.text_fragments)
