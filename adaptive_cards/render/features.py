"""Read-only feature analysis of a rendered card."""
from __future__ import annotations

from typing import Any, Dict, Set

from adaptive_cards.invocation.models import FeatureSummary


def analyze_features(card: Any) -> FeatureSummary:
    version = card.get("version") if isinstance(card, dict) else None
    summary = FeatureSummary(version=version if isinstance(version, str) else None)
    used_elements: Set[str] = set()
    used_actions: Set[str] = set()
    requires: Dict[str, Any] = {}

    def walk(value: Any) -> None:
        if isinstance(value, dict):
            kind = value.get("type")
            if isinstance(kind, str):
                if kind.startswith("Action."):
                    used_actions.add(kind)
                    if kind == "Action.ShowCard":
                        summary.uses_show_card = True
                    elif kind == "Action.ToggleVisibility":
                        summary.uses_toggle_visibility = True
                else:
                    used_elements.add(kind)
                    if kind == "Media":
                        summary.uses_media = True
            if "authentication" in value:
                summary.uses_auth = True
            req = value.get("requires")
            if isinstance(req, dict):
                for key, item in req.items():
                    requires.setdefault(key, item)
            for item in value.values():
                walk(item)
        elif isinstance(value, list):
            for item in value:
                walk(item)

    walk(card)
    summary.used_elements = sorted(used_elements)
    summary.used_actions = sorted(used_actions)
    summary.requires_features = requires
    return summary
