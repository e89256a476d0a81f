"""Interaction handling: one event in, update intents and an action event out.

The handler is a one-shot state machine: validate identity, normalise the raw
inputs, then map the interaction type to state/session update intents. It
never touches storage; the caller applies and persists the intents.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from adaptive_cards.common.errors import InteractionInvalidError
from adaptive_cards.invocation.models import (
    ActionEvent,
    CardInteraction,
    CardInteractionType,
    MergeOp,
    SetOp,
    SetRoute,
)

FORM_DATA_PATH = "form_data"
SHOW_CARD_PATH = "ui.active_show_card"
VISIBILITY_PATH = "ui.visibility"


@dataclass
class InteractionOutcome:
    event: ActionEvent
    state_updates: List[Any] = field(default_factory=list)
    session_updates: List[Any] = field(default_factory=list)


def normalize_inputs(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if raw is None:
        return {}
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {"value": raw}
        return parsed if isinstance(parsed, dict) else {"value": parsed}
    return {"value": raw}


def require_identity(interaction: CardInteraction) -> None:
    if not interaction.action_id.strip():
        raise InteractionInvalidError("interaction.action_id is required", field="action_id")
    if not interaction.card_instance_id.strip():
        raise InteractionInvalidError("interaction.card_instance_id is required", field="card_instance_id")


def _metadata_str(metadata: Dict[str, Any], key: str) -> Optional[str]:
    value = metadata.get(key)
    return value if isinstance(value, str) else None


def handle_interaction(interaction: CardInteraction) -> InteractionOutcome:
    require_identity(interaction)
    metadata = interaction.metadata or {}
    inputs = normalize_inputs(interaction.raw_inputs)
    route = _metadata_str(metadata, "route")
    subcard_id = _metadata_str(metadata, "subcardId")
    state_updates: List[Any] = []
    session_updates: List[Any] = []

    kind = interaction.interaction_type
    if kind in (CardInteractionType.submit, CardInteractionType.execute):
        state_updates.append(MergeOp(path=FORM_DATA_PATH, value=inputs))
        if route is not None:
            session_updates.append(SetRoute(route=route))
    elif kind == CardInteractionType.show_card:
        subcard_id = subcard_id or interaction.action_id
        state_updates.append(SetOp(path=f"{SHOW_CARD_PATH}.{interaction.card_instance_id}", value=subcard_id))
    elif kind == CardInteractionType.toggle_visibility:
        visible = metadata.get("visible")
        state_updates.append(
            SetOp(
                path=f"{VISIBILITY_PATH}.{interaction.action_id}",
                value=visible if isinstance(visible, bool) else True,
            )
        )
    # OpenUrl: no state mutation.

    event = ActionEvent(
        action_type=kind,
        action_id=interaction.action_id,
        verb=interaction.verb,
        route=route,
        inputs=inputs,
        card_id=_metadata_str(metadata, "cardId") or interaction.card_instance_id,
        card_instance_id=interaction.card_instance_id,
        subcard_id=subcard_id,
        metadata=metadata,
    )
    return InteractionOutcome(event=event, state_updates=state_updates, session_updates=session_updates)
