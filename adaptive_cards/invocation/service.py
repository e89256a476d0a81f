"""Invocation orchestrator: resolve → render → validate → interact → persist."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from adaptive_cards.assets.locator import AssetLocator
from adaptive_cards.binding.expression import ExpressionEngine
from adaptive_cards.common.error_envelope import envelope_for
from adaptive_cards.common.errors import CardError, CardValidationError
from adaptive_cards.common.hashing import hash_value
from adaptive_cards.config import runtime_config
from adaptive_cards.interaction.service import handle_interaction, require_identity
from adaptive_cards.invocation.envelope import parse_invocation
from adaptive_cards.invocation.models import (
    CardInvocation,
    CardResult,
    InvocationMode,
    ValidationMode,
)
from adaptive_cards.render.features import analyze_features
from adaptive_cards.render.pipeline import TemplatePipeline
from adaptive_cards.state_store.service import (
    StateStoreService,
    apply_updates,
    get_state_store_service,
    state_key_for,
)
from adaptive_cards.trace.service import build_trace_event, emit_trace_event
from adaptive_cards.validation.rules import CardValidator, get_card_validator

logger = logging.getLogger(__name__)


class CardEngineService:
    def __init__(
        self,
        locator: Optional[AssetLocator] = None,
        state_store: Optional[StateStoreService] = None,
        validator: Optional[CardValidator] = None,
        expression_engine: Optional[ExpressionEngine] = None,
    ) -> None:
        self.locator = locator or AssetLocator()
        self._state_store = state_store
        self._validator = validator
        self.expression_engine = expression_engine

    @property
    def state_store(self) -> StateStoreService:
        return self._state_store or get_state_store_service()

    @property
    def validator(self) -> CardValidator:
        return self._validator or get_card_validator()

    def handle(self, invocation: CardInvocation) -> CardResult:
        interaction = invocation.interaction
        if interaction is not None and interaction.enabled is False:
            interaction = None
            invocation = invocation.model_copy(update={"interaction": None})
        if interaction is not None:
            require_identity(interaction)

        state_key = state_key_for(invocation, interaction)
        loaded = self.state_store.load_state_if_missing(invocation, interaction)
        if loaded is not None:
            invocation = invocation.model_copy(update={"state": loaded})

        located = self.locator.locate(invocation.card_source, invocation.card_spec)
        pipeline = TemplatePipeline.for_invocation(invocation, engine=self.expression_engine)
        card = pipeline.render(located.card)
        features = analyze_features(card)

        issues = []
        if invocation.mode != InvocationMode.render and invocation.validation_mode != ValidationMode.off:
            issues = self.validator.validate(card)
            if issues and invocation.validation_mode == ValidationMode.error:
                raise CardValidationError(issues)
            if issues:
                logger.debug("card rendered with %d validation issue(s)", len(issues))

        result = CardResult(
            rendered_card=None if invocation.mode == InvocationMode.validate else card,
            card_features=features,
            validation_issues=issues,
        )

        write_hash: Optional[str] = None
        if interaction is not None:
            outcome = handle_interaction(interaction)
            new_state = apply_updates(invocation.state, outcome.state_updates)
            write_hash = hash_value(new_state)
            self.state_store.persist_state(state_key, new_state)
            result.event = outcome.event
            result.state_updates = outcome.state_updates
            result.session_updates = outcome.session_updates

        if runtime_config.trace_enabled():
            event = build_trace_event(
                invocation,
                located.resolution,
                pipeline.summary,
                interaction=interaction,
                state_key=state_key,
                state_read_hash=hash_value(loaded),
                state_write_hash=write_hash,
            )
            result.telemetry_events.append(event)
            emit_trace_event(event)
        return result

    def handle_raw(self, raw: Union[str, bytes, Dict[str, Any]], operation: Optional[str] = None) -> CardResult:
        return self.handle(parse_invocation(raw, operation=operation))


def handle_message(operation: str, payload: Union[str, bytes, Dict[str, Any]]) -> Dict[str, Any]:
    """Message-level boundary: always returns a JSON-ready dict."""
    try:
        result = get_card_engine_service().handle_raw(payload, operation=operation)
    except CardError as exc:
        return envelope_for(exc).model_dump()
    return result.model_dump(mode="json")


_default_service: Optional[CardEngineService] = None


def get_card_engine_service() -> CardEngineService:
    global _default_service
    if _default_service is None:
        _default_service = CardEngineService()
    return _default_service


def set_card_engine_service(service: Optional[CardEngineService]) -> None:
    global _default_service
    _default_service = service
