# lotus/conftest.py
"""
Shared builders for the test suite.
Situations are written as raw dicts, the same shape the data files use, and
go through load_library so the tests exercise the real parsing path.
"""

import json
import random
from pathlib import Path

import pytest

from lotus.procedural import ContextTracker, PlayerState, load_library

DATA_DIR = Path(__file__).resolve().parent.parent / 'data'

BASE_VARIABLES = {
    "colleague_descriptor": {
        "0": ["a disgraced colleague"],
        "2": ["a colleague from your department"],
        "4": ["a deputy director"]
    },
    "public_place": ["the subway platform", "the market square"],
    "stranger_type": ["an elderly man"]
}


def make_choice(archetype="conform", text="Go along with it.", base=None, modifier=0,
                requirements=None, failure=None):
    choice = {
        "archetype": archetype,
        "text_fragments": [text] if isinstance(text, str) else list(text),
        "base_stats": base if base is not None else {"scs": 10},
        "risk_modifier": modifier,
        "requirements": requirements or {}
    }
    if failure is not None:
        choice["failure_stats"] = failure
    return choice


def make_situation(situation_id, domain="work", tier=(0, 4), stage=(0, 5), severity="medium",
                   base_risk=20, choices=None, fragments=None):
    return {
        "id": situation_id,
        "domain": domain,
        "tier_min": tier[0], "tier_max": tier[1],
        "life_stage_min": stage[0], "life_stage_max": stage[1],
        "severity": severity,
        "base_risk": base_risk,
        "fragments": fragments or {
            "openings": ["Opening."],
            "conflicts": ["Conflict."],
            "stakes": ["Stakes."]
        },
        "choices": choices if choices is not None else [
            make_choice("conform", "Conform."),
            make_choice("resist", "Resist.", base={"scs": -10})
        ]
    }


def build_library(situations, variables=None):
    sources = {}
    for entry in situations:
        sources.setdefault(f"{entry['domain']}_events.json", []).append(entry)
    raw_sources = {name: json.dumps({"situations": entries}) for name, entries in sources.items()}
    raw_variables = json.dumps(BASE_VARIABLES if variables is None else variables)
    return load_library(raw_sources, ("variables.json", raw_variables))


@pytest.fixture
def situation():
    return make_situation


@pytest.fixture
def choice():
    return make_choice


@pytest.fixture
def library_from():
    return build_library


@pytest.fixture
def player():
    def _player(tier=2, life_stage=2, **stats):
        base = {"scs": 550, "finances": 1000, "career_level": 1,
                "guanxi_family": 1, "guanxi_network": 1, "guanxi_party": 0}
        base.update(stats)
        return PlayerState(tier=tier, life_stage=life_stage, stats=base)
    return _player


@pytest.fixture
def context():
    return ContextTracker()


@pytest.fixture
def rng():
    return random.Random(1234)
