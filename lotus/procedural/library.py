# lotus/procedural/library.py

"""
Situation library for procedural events.
Loads situation templates and madlibs variable pools from raw JSON/TOML text
and freezes them into an immutable, domain-indexed catalog.
"""

import json
import logging
import math
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import ConfigParseError, LibraryEmptyError

logger = logging.getLogger(__name__)

# Stats a profile or requirement can reference.
TRACKED_STATS = (
    "scs",
    "finances",
    "career_level",
    "guanxi_family",
    "guanxi_network",
    "guanxi_party",
)

MAX_BASE_RISK = 95
FAILURE_AMPLIFICATION = 1.5
MAX_PROFILE_VALUE = 1_000_000


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ChoiceType(str, Enum):
    CONFORM = "conform"
    RESIST = "resist"
    MANIPULATE = "manipulate"
    IGNORE = "ignore"


@dataclass(frozen=True)
class NarrativeFragments:
    openings: Tuple[str, ...]
    conflicts: Tuple[str, ...]
    stakes: Tuple[str, ...]


@dataclass(frozen=True)
class ChoiceArchetype:
    archetype: ChoiceType
    text_fragments: Tuple[str, ...]
    base_stats: Mapping[str, float]
    failure_stats: Mapping[str, float]
    risk_modifier: int = 0
    requirements: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class SituationTemplate:
    id: str
    domain: str
    tier_min: int
    tier_max: int
    life_stage_min: int
    life_stage_max: int
    severity: Severity
    base_risk: int
    fragments: NarrativeFragments
    choices: Tuple[ChoiceArchetype, ...]

    def covers_tier(self, tier: int) -> bool:
        return self.tier_min <= tier <= self.tier_max

    def covers_life_stage(self, life_stage: int) -> bool:
        return self.life_stage_min <= life_stage <= self.life_stage_max


@dataclass(frozen=True)
class VariableLibraries:
    """
    Madlibs pools.

    tiered: category -> tier index -> pool (e.g. colleague descriptors that
            change with the player's standing)
    flat:   category -> pool, independent of tier
    """
    tiered: Mapping[str, Mapping[int, Tuple[str, ...]]] = field(
        default_factory=lambda: MappingProxyType({}))
    flat: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({}))

    def pool_for(self, category: str, tier: int) -> Optional[Tuple[str, ...]]:
        """
        Pool for a placeholder category.
        Exact tier first, then the nearest lower tier, then the flat pool.
        """
        by_tier = self.tiered.get(category)
        if by_tier:
            if tier in by_tier:
                return by_tier[tier]
            lower = [t for t in by_tier if t < tier]
            if lower:
                return by_tier[max(lower)]
        return self.flat.get(category)


class TemplateLibrary:
    """
    Read-only catalog of situation templates, indexed by domain and by id.
    Built once at startup and shared by reference.
    """

    def __init__(self, by_domain: Dict[str, List[SituationTemplate]],
                 variables: VariableLibraries, warnings: Optional[List[str]] = None):
        self._by_domain = MappingProxyType(
            {domain: tuple(templates) for domain, templates in by_domain.items() if templates}
        )
        self._by_id = MappingProxyType(
            {t.id: t for templates in self._by_domain.values() for t in templates}
        )
        self._variables = variables
        self._warnings = tuple(warnings or ())

    @property
    def by_domain(self) -> Mapping[str, Tuple[SituationTemplate, ...]]:
        return self._by_domain

    @property
    def variables(self) -> VariableLibraries:
        return self._variables

    @property
    def warnings(self) -> Tuple[str, ...]:
        return self._warnings

    def domains(self) -> List[str]:
        return list(self._by_domain)

    def templates_for(self, domain: str) -> Tuple[SituationTemplate, ...]:
        return self._by_domain.get(domain, ())

    def all_templates(self) -> List[SituationTemplate]:
        return [t for templates in self._by_domain.values() for t in templates]

    def get(self, situation_id: str) -> Optional[SituationTemplate]:
        return self._by_id.get(situation_id)

    def __len__(self):
        return len(self._by_id)

    def __contains__(self, situation_id):
        return situation_id in self._by_id


# --- Parsing helpers ---

def _parse_raw(name: str, raw: str) -> Dict:
    """Parse a raw source. TOML when the name says so, JSON otherwise."""
    try:
        if name.endswith(".toml"):
            data = tomllib.loads(raw)
        else:
            data = json.loads(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigParseError(name, f"cannot parse source: {e}")

    if not isinstance(data, dict):
        raise ConfigParseError(name, "top level must be a table/object")
    return data


def _domain_from_source(name: str) -> str:
    """'work_events.toml' -> 'work'."""
    stem = name.rsplit("/", 1)[-1].split(".", 1)[0]
    if stem.endswith("_events"):
        stem = stem[: -len("_events")]
    return stem.lower()


def _stat_key(key: str) -> str:
    return key[: -len("_change")] if key.endswith("_change") else key


def _require(entry: Dict, key: str, source: str, index: int):
    if key not in entry:
        raise ConfigParseError(source, f"missing field '{key}'", index)
    return entry[key]


def _as_int(value, what: str, source: str, index: int, minimum: Optional[int] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigParseError(source, f"{what} must be an integer, got {value!r}", index)
    if minimum is not None and value < minimum:
        raise ConfigParseError(source, f"{what} must be >= {minimum}, got {value}", index)
    return value


def _as_strings(value, what: str, source: str, index: int) -> Tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise ConfigParseError(source, f"{what} must be a non-empty list", index)
    if not all(isinstance(v, str) and v.strip() for v in value):
        raise ConfigParseError(source, f"{what} must only contain non-empty strings", index)
    return tuple(value)


def _as_profile(value, what: str, source: str, index: int) -> Dict[str, float]:
    if not isinstance(value, dict):
        raise ConfigParseError(source, f"{what} must be a mapping", index)
    profile = {}
    for key, amount in value.items():
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise ConfigParseError(source, f"{what}.{key} must be numeric", index)
        if isinstance(amount, float) and not math.isfinite(amount):
            raise ConfigParseError(source, f"{what}.{key} must be finite, got {amount!r}", index)
        if abs(amount) > MAX_PROFILE_VALUE:
            raise ConfigParseError(source, f"{what}.{key} is out of range: {amount}", index)
        profile[_stat_key(key)] = amount
    return profile


def _parse_choice(raw: Dict, source: str, index: int) -> ChoiceArchetype:
    if not isinstance(raw, dict):
        raise ConfigParseError(source, "choice must be a table/object", index)

    category = _require(raw, "archetype", source, index)
    try:
        archetype = ChoiceType(str(category).lower())
    except ValueError:
        raise ConfigParseError(source, f"unknown choice archetype '{category}'", index)

    texts = _as_strings(_require(raw, "text_fragments", source, index),
                        "text_fragments", source, index)

    # Either a nested profile or the flattened '<stat>_change' keys
    if "base_stats" in raw:
        base = _as_profile(raw["base_stats"], "base_stats", source, index)
    else:
        base = _as_profile({k: v for k, v in raw.items() if k.endswith("_change")},
                           "base_stats", source, index)

    if "failure_stats" in raw:
        failure = _as_profile(raw["failure_stats"], "failure_stats", source, index)
    else:
        failure = {k: -round(v * FAILURE_AMPLIFICATION) for k, v in base.items()}

    modifier = _as_int(raw.get("risk_modifier", 0), "risk_modifier", source, index)

    requirements = raw.get("requirements", {})
    if not isinstance(requirements, dict):
        raise ConfigParseError(source, "requirements must be a mapping", index)
    reqs = {
        stat: _as_int(threshold, f"requirements.{stat}", source, index, minimum=0)
        for stat, threshold in requirements.items()
    }

    return ChoiceArchetype(
        archetype=archetype,
        text_fragments=texts,
        base_stats=MappingProxyType(base),
        failure_stats=MappingProxyType(failure),
        risk_modifier=modifier,
        requirements=MappingProxyType(reqs),
    )


def parse_situation(raw: Dict, source: str, index: int,
                    default_domain: Optional[str] = None) -> SituationTemplate:
    """Validate one raw situation entry. Raises ConfigParseError."""
    if not isinstance(raw, dict):
        raise ConfigParseError(source, "situation must be a table/object", index)

    situation_id = _require(raw, "id", source, index)
    if not isinstance(situation_id, str) or not situation_id.strip():
        raise ConfigParseError(source, "id must be a non-empty string", index)

    domain = raw.get("domain", default_domain)
    if not isinstance(domain, str) or not domain.strip():
        raise ConfigParseError(source, "situation has no domain", index)

    tier_min = _as_int(_require(raw, "tier_min", source, index), "tier_min", source, index, 0)
    tier_max = _as_int(_require(raw, "tier_max", source, index), "tier_max", source, index, 0)
    if tier_min > tier_max:
        raise ConfigParseError(source, f"tier range {tier_min}-{tier_max} is inverted", index)

    stage_min = _as_int(_require(raw, "life_stage_min", source, index),
                        "life_stage_min", source, index, 0)
    stage_max = _as_int(_require(raw, "life_stage_max", source, index),
                        "life_stage_max", source, index, 0)
    if stage_min > stage_max:
        raise ConfigParseError(source, f"life stage range {stage_min}-{stage_max} is inverted", index)

    severity_raw = _require(raw, "severity", source, index)
    try:
        severity = Severity(str(severity_raw).lower())
    except ValueError:
        raise ConfigParseError(source, f"unknown severity '{severity_raw}'", index)

    base_risk = _as_int(_require(raw, "base_risk", source, index), "base_risk", source, index, 0)
    if base_risk > MAX_BASE_RISK:
        raise ConfigParseError(source, f"base_risk {base_risk} exceeds {MAX_BASE_RISK}", index)

    fragments_raw = _require(raw, "fragments", source, index)
    if not isinstance(fragments_raw, dict):
        raise ConfigParseError(source, "fragments must be a table/object", index)
    fragments = NarrativeFragments(
        openings=_as_strings(fragments_raw.get("openings"), "fragments.openings", source, index),
        conflicts=_as_strings(fragments_raw.get("conflicts"), "fragments.conflicts", source, index),
        stakes=_as_strings(fragments_raw.get("stakes"), "fragments.stakes", source, index),
    )

    choices_raw = _require(raw, "choices", source, index)
    if not isinstance(choices_raw, list) or not choices_raw:
        raise ConfigParseError(source, "choices must be a non-empty list", index)
    choices = tuple(_parse_choice(c, source, index) for c in choices_raw)

    return SituationTemplate(
        id=situation_id,
        domain=domain.lower(),
        tier_min=tier_min,
        tier_max=tier_max,
        life_stage_min=stage_min,
        life_stage_max=stage_max,
        severity=severity,
        base_risk=base_risk,
        fragments=fragments,
        choices=choices,
    )


def parse_variables(name: str, raw: str, warnings: List[str]) -> VariableLibraries:
    """
    Build the madlibs pools. Lists are flat pools, tables keyed by tier are
    tiered pools. A malformed category is skipped with a warning.
    """
    data = _parse_raw(name, raw)
    tiered = {}
    flat = {}

    for category, value in data.items():
        try:
            if isinstance(value, list):
                flat[category] = _as_strings(value, category, name, None)
            elif isinstance(value, dict):
                pools = {}
                for tier_key, pool in value.items():
                    try:
                        tier = int(tier_key)
                    except (TypeError, ValueError):
                        raise ConfigParseError(name, f"{category}: tier key '{tier_key}' is not an integer")
                    pools[tier] = _as_strings(pool, f"{category}.{tier_key}", name, None)
                if not pools:
                    raise ConfigParseError(name, f"{category}: no tier pools")
                tiered[category] = MappingProxyType(pools)
            else:
                raise ConfigParseError(name, f"{category}: expected a list or a table of tiers")
        except ConfigParseError as e:
            logger.warning(f"Skipping variable category: {e}")
            warnings.append(str(e))

    return VariableLibraries(tiered=MappingProxyType(tiered), flat=MappingProxyType(flat))


def load_library(template_sources: Mapping[str, str],
                 variable_source: Optional[Tuple[str, str]] = None) -> TemplateLibrary:
    """
    Build the TemplateLibrary.

    Args:
        template_sources: source name -> raw text. The name (e.g.
            'work_events.json') gives the default domain of its entries.
        variable_source: (name, raw text) of the variable pools, optional.

    Raises:
        LibraryEmptyError: no template could be loaded from any source.
    """
    warnings = []
    by_domain = {}
    seen_ids = set()

    for name, raw in template_sources.items():
        try:
            data = _parse_raw(name, raw)
        except ConfigParseError as e:
            logger.warning(f"Skipping template source: {e}")
            warnings.append(str(e))
            continue

        entries = data.get("situations", [])
        if not isinstance(entries, list):
            err = ConfigParseError(name, "'situations' must be a list")
            logger.warning(f"Skipping template source: {err}")
            warnings.append(str(err))
            continue

        default_domain = _domain_from_source(name)
        loaded = 0
        for index, entry in enumerate(entries):
            try:
                template = parse_situation(entry, name, index, default_domain)
                if template.id in seen_ids:
                    raise ConfigParseError(name, f"duplicate situation id '{template.id}'", index)
            except ConfigParseError as e:
                logger.warning(f"Skipping situation: {e}")
                warnings.append(str(e))
                continue

            seen_ids.add(template.id)
            by_domain.setdefault(template.domain, []).append(template)
            loaded += 1

        logger.info(f"Loaded {loaded}/{len(entries)} situations from {name}")

    if variable_source is not None:
        var_name, var_raw = variable_source
        try:
            variables = parse_variables(var_name, var_raw, warnings)
        except ConfigParseError as e:
            logger.warning(f"Variable pools unavailable: {e}")
            warnings.append(str(e))
            variables = VariableLibraries()
    else:
        variables = VariableLibraries()

    if not seen_ids:
        raise LibraryEmptyError(
            f"No situation templates loaded from {len(template_sources)} source(s)"
        )

    library = TemplateLibrary(by_domain, variables, warnings)
    logger.info(f"TemplateLibrary ready: {len(library)} situations in "
                f"{len(library.by_domain)} domains ({len(warnings)} warnings)")
    return library
