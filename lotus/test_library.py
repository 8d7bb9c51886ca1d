"""
Tests for the situation library loader: validation, skip-and-warn, indexing.
"""

import json

import pytest

from lotus.procedural import (
    ChoiceType,
    LibraryEmptyError,
    Severity,
    VariableLibraries,
    load_library,
)

TOML_SOURCE = """
[[situations]]
id = "party_toml"
tier_min = 0
tier_max = 4
life_stage_min = 0
life_stage_max = 5
severity = "low"
base_risk = 10

[situations.fragments]
openings = ["A meeting is called."]
conflicts = ["Attendance is mandatory."]
stakes = ["Absence is noted."]

[[situations.choices]]
archetype = "conform"
text_fragments = ["Attend."]
scs_change = 5

[[situations.choices]]
archetype = "ignore"
text_fragments = ["Stay home."]
scs_change = -5
"""


def _sources(*entries, name="work_events.json"):
    return {name: json.dumps({"situations": list(entries)})}


class TestLoading:
    def test_indexes_by_domain_and_id(self, situation, library_from):
        library = library_from([
            situation("w1", "work"), situation("w2", "work"), situation("f1", "family")
        ])
        assert len(library) == 3
        assert sorted(library.domains()) == ["family", "work"]
        assert [t.id for t in library.templates_for("work")] == ["w1", "w2"]
        assert library.get("f1").domain == "family"
        assert "w2" in library
        assert library.templates_for("party") == ()
        assert library.warnings == ()

    def test_parsed_types(self, situation, library_from):
        template = library_from([situation("w1", severity="high", base_risk=40)]).get("w1")
        assert template.severity is Severity.HIGH
        assert template.base_risk == 40
        assert template.choices[0].archetype is ChoiceType.CONFORM
        assert template.fragments.openings == ("Opening.",)

    def test_domain_taken_from_source_name(self, situation):
        entry = situation("p1")
        del entry["domain"]
        library = load_library(_sources(entry, name="party_events.json"))
        assert library.get("p1").domain == "party"

    def test_toml_source(self):
        library = load_library({"party_events.toml": TOML_SOURCE})
        template = library.get("party_toml")
        assert template.domain == "party"
        assert dict(template.choices[0].base_stats) == {"scs": 5}
        assert dict(template.choices[1].failure_stats) == {"scs": 8}

    def test_failure_profile_defaults_to_amplified_inverse(self, situation, choice):
        entry = situation("w1", choices=[
            choice("conform", base={"scs": 10, "finances": -20}),
            choice("resist", base={"scs": -4}, failure={"scs": -30}),
        ])
        template = load_library(_sources(entry)).get("w1")
        assert dict(template.choices[0].failure_stats) == {"scs": -15, "finances": 30}
        assert dict(template.choices[1].failure_stats) == {"scs": -30}

    def test_change_suffix_is_stripped(self, situation):
        entry = situation("w1")
        entry["choices"][0] = {"archetype": "conform", "text_fragments": ["Fine."],
                               "scs_change": 5, "guanxi_party_change": 1}
        template = load_library(_sources(entry)).get("w1")
        assert dict(template.choices[0].base_stats) == {"scs": 5, "guanxi_party": 1}


class TestMalformedEntries:
    @pytest.mark.parametrize("breakage", [
        lambda e: e.update(tier_min=3, tier_max=1),
        lambda e: e.update(life_stage_min=4, life_stage_max=2),
        lambda e: e.update(severity="apocalyptic"),
        lambda e: e.update(base_risk=96),
        lambda e: e.update(base_risk="high"),
        lambda e: e.pop("fragments"),
        lambda e: e["fragments"].update(stakes=[]),
        lambda e: e.update(choices=[]),
        lambda e: e["choices"][0].update(archetype="bribe"),
        lambda e: e["choices"][0].update(requirements={"guanxi_party": -1}),
        lambda e: e["choices"][0].update(base_stats={"scs": "lots"}),
        lambda e: e.update(id=""),
        lambda e: e["choices"][0].update(base_stats={"scs": float("nan")}),
        lambda e: e["choices"][0].update(base_stats={"scs": float("inf")}),
        lambda e: e["choices"][0].update(failure_stats={"scs": float("-inf")}),
        lambda e: e["choices"][0].update(base_stats={"scs": 10 ** 400}),
    ])
    def test_bad_entry_is_skipped_with_warning(self, situation, breakage):
        bad = situation("bad")
        breakage(bad)
        library = load_library(_sources(situation("good"), bad))
        assert "good" in library
        assert "bad" not in library
        assert len(library.warnings) == 1

    def test_non_finite_toml_value_is_skipped(self, situation):
        sources = _sources(situation("good"))
        sources["party_events.toml"] = TOML_SOURCE.replace("scs_change = 5", "scs_change = nan")
        library = load_library(sources)
        assert "good" in library
        assert "party_toml" not in library
        assert "finite" in library.warnings[0]

    def test_duplicate_id_keeps_first(self, situation):
        first = situation("dup", base_risk=10)
        second = situation("dup", base_risk=50)
        library = load_library(_sources(first, second))
        assert library.get("dup").base_risk == 10
        assert "duplicate" in library.warnings[0]

    def test_unparseable_source_does_not_block_others(self, situation):
        sources = _sources(situation("w1"))
        sources["family_events.json"] = "{not json"
        library = load_library(sources)
        assert len(library) == 1
        assert "family_events.json" in library.warnings[0]

    def test_no_templates_is_fatal(self, situation):
        bad = situation("bad", base_risk=200)
        with pytest.raises(LibraryEmptyError):
            load_library(_sources(bad))

    def test_empty_sources_is_fatal(self):
        with pytest.raises(LibraryEmptyError):
            load_library({})


class TestImmutability:
    def test_library_mappings_are_read_only(self, situation, library_from):
        library = library_from([situation("w1")])
        with pytest.raises(TypeError):
            library.by_domain["party"] = ()
        with pytest.raises(TypeError):
            library.get("w1").choices[0].requirements["scs"] = 1

    def test_templates_are_frozen(self, situation, library_from):
        template = library_from([situation("w1")]).get("w1")
        with pytest.raises(AttributeError):
            template.base_risk = 0


class TestVariables:
    def test_tier_pool_prefers_exact_then_lower(self, situation, library_from):
        variables = library_from([situation("w1")]).variables
        assert variables.pool_for("colleague_descriptor", 2) == ("a colleague from your department",)
        assert variables.pool_for("colleague_descriptor", 3) == ("a colleague from your department",)
        assert variables.pool_for("colleague_descriptor", 1) == ("a disgraced colleague",)

    def test_no_lower_tier_falls_through_to_flat(self):
        from types import MappingProxyType
        variables = VariableLibraries(
            tiered=MappingProxyType({"official": MappingProxyType({2: ("a cadre",)})}),
            flat=MappingProxyType({"official": ("a clerk",)}),
        )
        assert variables.pool_for("official", 1) == ("a clerk",)
        assert variables.pool_for("missing", 1) is None

    def test_bad_variable_category_is_skipped(self, situation, library_from):
        library = library_from([situation("w1")], variables={
            "public_place": ["the square"],
            "broken": 12,
            "bad_tier": {"high": ["x"]},
        })
        assert library.variables.pool_for("public_place", 0) == ("the square",)
        assert library.variables.pool_for("broken", 0) is None
        assert len(library.warnings) == 2
