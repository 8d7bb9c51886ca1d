# lotus/rules.py

def _strip_change(outcome):
    """{'scs_change': 5} -> {'scs': 5}"""
    if not outcome:
        return {}
    return {(k[:-len('_change')] if k.endswith('_change') else k): v for k, v in outcome.items()}


class StaticEventRules:
    """
    Deterministic filters for the static (hand-authored) catalog.
    Used when procedural generation comes back empty.
    """

    @staticmethod
    def filter_viable(event_list, player_state, recent_ids=()):
        tier = player_state.tier
        stage = player_state.life_stage
        viable = []

        for ev in event_list:
            # 1. TIER RULE
            if not (ev.get('min_tier', 0) <= tier <= ev.get('max_tier', tier)):
                continue

            # 2. LIFE STAGE RULE
            # Generic events and stage 0 events fit every stage
            ev_stage = ev.get('life_stage', 0)
            if not ev.get('is_generic', False) and ev_stage not in (0, stage):
                continue

            viable.append(ev)

        # 3. ANTI-REPETITION
        # Only applied when something else is left to show
        fresh = [ev for ev in viable if str(ev.get('id')) not in recent_ids]
        return fresh or viable

    @staticmethod
    def to_view(ev):
        """Static event -> the event view the host renders (same shape as procedural)."""
        options = []
        for i, op in enumerate(ev.get('options', [])):
            failure = op.get('failure_outcome')
            options.append({
                "id": i,
                "archetype": None,
                "text": op.get('text', ''),
                "requirements": dict(op.get('requirements') or {}),
                "risk": int(op.get('risk_chance', 0)) if failure is not None else 0,
                "success": _strip_change(op.get('success_outcome')),
                "failure": _strip_change(failure),
                "success_result": op.get('success_result', ''),
                "failure_result": op.get('failure_result', ''),
            })

        return {
            "id": f"static:{ev.get('id')}",
            "source": "static",
            "title": ev.get('title', 'Untitled'),
            "text": ev.get('description', ''),
            "domain": None,
            "situation_id": None,
            "wildcard": False,
            "options": options,
        }
