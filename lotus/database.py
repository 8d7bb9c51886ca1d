# lotus/database.py
import glob
import json
import logging
import os

from lotus.procedural import load_library

logger = logging.getLogger(__name__)

DEFAULT_RULES = {
    "num_tiers": 5,
    "num_petals_per_tier": 13,
    "max_life_stage": 5,
    "starting_player": {
        "tier": 2,
        "petal": 1,
        "life_stage": 1,
        "stats": {
            "scs": 550, "finances": 1000, "career_level": 1,
            "guanxi_family": 1, "guanxi_network": 1, "guanxi_party": 0
        }
    },
    "generator": {"max_attempts": 3, "wildcard_probability": 0.1},
    "director": {"dynamic_probability": 1.0},
    "seed": None
}


def _merge(defaults, overrides):
    merged = dict(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def read_procedural_sources(base_path='data'):
    """
    Collects the raw procedural sources from data/procedural.
    Returns (template_sources, variable_source); parsing happens in the library.
    """
    folder = os.path.join(base_path, 'procedural')
    template_sources = {}
    variable_source = None

    paths = sorted(glob.glob(os.path.join(folder, '*.json')) + glob.glob(os.path.join(folder, '*.toml')))
    for path in paths:
        name = os.path.basename(path)
        with open(path, 'r', encoding='utf-8') as f:
            raw = f.read()
        if name.split('.', 1)[0] == 'variables':
            variable_source = (name, raw)
        else:
            template_sources[name] = raw

    if not template_sources:
        logger.warning(f"No procedural sources found in {folder}")
    return template_sources, variable_source


def load_data(base_path='data'):
    """
    Reads the files from the 'data' folder and combines them into a single dictionary.
    Raises LibraryEmptyError when no situation template can be loaded.
    """

    def read(filename, default):
        path = os.path.join(base_path, filename)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            logger.warning(f"File not found: {path}")
            return default
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {path}: {e}")
            return default

    config = read('config.json', {})
    template_sources, variable_source = read_procedural_sources(base_path)

    # Assembles the unified structure
    db = {
        "config": _merge(DEFAULT_RULES, config.get('rules', {})),
        "events": read('events.json', []),
        "library": load_library(template_sources, variable_source)
    }

    # Simple validation
    if not db['events']:
        logger.warning("No static events loaded, fallback catalog is empty.")

    return db
