# lotus/converter.py

"""
Builds the static fallback catalog (events.json) from the authored CSV sheets.
"""

import csv
import json
import logging

logger = logging.getLogger(__name__)

# --- Configuration ---
EVENTS_CSV_PATH = 'data/events.csv'
OPTIONS_CSV_PATH = 'data/event_options.csv'
JSON_OUTPUT_PATH = 'data/events.json'
# ---------------------

OUTCOME_FIELDS = [
    'scs_change', 'finance_change', 'career_level_change',
    'guanxi_family_change', 'guanxi_network_change', 'guanxi_party_change'
]
REQUIREMENT_FIELDS = ['guanxi_family', 'guanxi_network', 'guanxi_party']

# CSV column -> stat name used by the game state
STAT_NAMES = {'finance_change': 'finances_change'}


def _int(row, key):
    value = (row.get(key) or '').strip()
    return int(value) if value else 0


def _bool(row, key):
    return (row.get(key) or '').strip().lower() in ('1', 'true', 'yes')


def create_event_from_row(row):
    """Helper to build an event from an events.csv row."""
    return {
        "id": row['event_id'],
        "title": row['title'],
        "description": row['description'],
        "min_tier": _int(row, 'min_tier'),
        "max_tier": _int(row, 'max_tier'),
        "is_generic": _bool(row, 'is_generic'),
        "life_stage": _int(row, 'life_stage'),
        "options": []  # Will be populated from the other file
    }


def create_option_from_row(row):
    """Helper to build an option from an event_options.csv row."""
    success = {STAT_NAMES.get(f, f): _int(row, f) for f in OUTCOME_FIELDS}

    requirements = {}
    for stat in REQUIREMENT_FIELDS:
        needed = _int(row, f'req_{stat}')
        if needed > 0:
            requirements[stat] = needed

    risk = _int(row, 'risk_chance')
    failure_text = (row.get('failure_result_text') or '').strip()

    failure = None
    if risk > 0:
        outcome = {STAT_NAMES.get(f, f): _int(row, f'fail_{f}') for f in OUTCOME_FIELDS}
        # Only keep the failure outcome if it actually differs from success
        if outcome != success or failure_text:
            failure = outcome

    return {
        "text": row['text'],
        "requirements": requirements,
        "risk_chance": risk,
        "success_outcome": success,
        "success_result": (row.get('success_result_text') or '').strip(),
        "failure_outcome": failure,
        "failure_result": failure_text
    }


def run_converter(events_csv=EVENTS_CSV_PATH, options_csv=OPTIONS_CSV_PATH,
                  output_json=JSON_OUTPUT_PATH):
    """Main converter function. Returns the number of events written."""
    events = {}

    # 1. Read all events
    with open(events_csv, newline='', encoding='utf-8') as f:
        for row in csv.DictReader(f):
            events[row['event_id']] = create_event_from_row(row)

    # 2. Read all options and attach them to their events
    with open(options_csv, newline='', encoding='utf-8') as f:
        for row in csv.DictReader(f):
            event = events.get(row['event_id'])
            if event is None:
                logger.warning(f"Option found for non-existent event_id {row['event_id']}")
                continue
            event['options'].append(create_option_from_row(row))

    # 3. Write the final JSON file
    final_event_list = list(events.values())
    with open(output_json, 'w', encoding='utf-8') as f:
        json.dump(final_event_list, f, indent=2, ensure_ascii=False)

    logger.info(f"Wrote {len(final_event_list)} events to {output_json}")
    return len(final_event_list)
