"""Trace telemetry for card invocations.

Events are only built when tracing is enabled (``ADAPTIVE_CARD_TRACE=1`` or
``ADAPTIVE_CARD_TRACE_OUT``). The sink receiving them is swappable.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

from adaptive_cards.config import runtime_config
from adaptive_cards.invocation.models import (
    AssetResolution,
    BindingSummary,
    CardInteraction,
    CardInvocation,
    TelemetryEvent,
)

logger = logging.getLogger(__name__)

TRACE_EVENT_NAME = "adaptive_card.trace"

TraceSink = Callable[[TelemetryEvent], None]


def build_trace_event(
    invocation: CardInvocation,
    asset_resolution: Optional[AssetResolution],
    binding_summary: Optional[BindingSummary],
    interaction: Optional[CardInteraction] = None,
    state_key: Optional[str] = None,
    state_read_hash: Optional[str] = None,
    state_write_hash: Optional[str] = None,
) -> TelemetryEvent:
    resolution = asset_resolution or AssetResolution(mode=invocation.card_source.value)
    bindings = binding_summary or BindingSummary()
    properties: Dict[str, Any] = {
        "card_source": invocation.card_source.value,
        "asset_resolution": {
            "mode": resolution.mode,
            "resolved": resolution.resolved,
            "asset_hash": resolution.hash,
        },
        "bindings_summary": bindings.model_dump(),
        "state_summary": {
            "state_key": state_key,
            "state_read_hash": state_read_hash,
            "state_write_hash": state_write_hash,
        },
    }
    if interaction is not None:
        properties["interaction_summary"] = {
            "type": interaction.interaction_type.value,
            "action_id": interaction.action_id,
            "card_instance_id": interaction.card_instance_id,
            "route": (interaction.metadata or {}).get("route"),
        }
    if runtime_config.trace_capture_inputs():
        properties["inputs"] = {
            "payload": invocation.payload,
            "session": invocation.session,
            "state": invocation.state,
            "interaction_raw_inputs": interaction.raw_inputs if interaction is not None else None,
        }
    return TelemetryEvent(name=TRACE_EVENT_NAME, properties=properties)


def default_trace_sink(event: TelemetryEvent) -> None:
    line = json.dumps(event.model_dump(), default=str)
    out = runtime_config.get_trace_out()
    if not out:
        logger.info("%s", line)
        return
    try:
        with open(out, "a", encoding="utf-8") as handle:
            handle.write(line + "\n")
    except OSError as exc:
        logger.warning("Failed to write trace event to %s: %s", out, exc)


_trace_sink: TraceSink = default_trace_sink


def set_trace_sink(sink: Optional[TraceSink]) -> None:
    global _trace_sink
    _trace_sink = sink or default_trace_sink


def emit_trace_event(event: TelemetryEvent) -> None:
    try:
        _trace_sink(event)
    except Exception as exc:
        logger.warning("trace sink failed: %s", exc)
