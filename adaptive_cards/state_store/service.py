"""Card state persistence.

The state document for a card is read at most once per invocation, mutated in
memory by a batch of update operations and written back as a single unit.
Concurrent invocations against one key are not fenced: the last write wins.
"""
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from adaptive_cards.common.errors import SerializationError, StateStoreError
from adaptive_cards.invocation.models import CardInteraction, CardInvocation, DeleteOp, MergeOp, SetOp
from adaptive_cards.state_store.repository import StateBackend, state_backend_from_env

logger = logging.getLogger(__name__)

KEY_PREFIX = "adaptive-card"
DEFAULT_STATE_KEY = f"{KEY_PREFIX}:default"


def state_key_for(invocation: CardInvocation, interaction: Optional[CardInteraction] = None) -> str:
    if invocation.node_id:
        return f"{KEY_PREFIX}:node:{invocation.node_id}"
    if interaction is not None:
        return f"{KEY_PREFIX}:card:{interaction.card_instance_id}"
    return DEFAULT_STATE_KEY


def _split(path: str) -> List[str]:
    return path.split(".")


def _descend(state: Dict[str, Any], parts: List[str]) -> Dict[str, Any]:
    """Walk to the parent of the final segment, creating objects as needed.

    A non-object found mid-path is replaced by an empty object.
    """
    current = state
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    return current


def set_path(state: Dict[str, Any], path: str, value: Any) -> None:
    parts = _split(path)
    _descend(state, parts)[parts[-1]] = copy.deepcopy(value)


def merge_path(state: Dict[str, Any], path: str, value: Any) -> None:
    parts = _split(path)
    parent = _descend(state, parts)
    existing = parent.get(parts[-1])
    if isinstance(existing, dict) and isinstance(value, dict):
        existing.update(copy.deepcopy(value))
    else:
        parent[parts[-1]] = copy.deepcopy(value)


def delete_path(state: Dict[str, Any], path: str) -> None:
    parts = _split(path)
    current: Any = state
    for part in parts[:-1]:
        if not isinstance(current, dict) or not isinstance(current.get(part), dict):
            return
        current = current[part]
    current.pop(parts[-1], None)


def apply_updates(state: Optional[Dict[str, Any]], updates: Iterable[Any]) -> Dict[str, Any]:
    """Return a new state document with `updates` applied in order."""
    result: Dict[str, Any] = copy.deepcopy(state) if isinstance(state, dict) else {}
    for update in updates:
        if isinstance(update, SetOp):
            set_path(result, update.path, update.value)
        elif isinstance(update, MergeOp):
            merge_path(result, update.path, update.value)
        elif isinstance(update, DeleteOp):
            delete_path(result, update.path)
        else:
            raise TypeError(f"unsupported state update {update!r}")
    return result


class StateStoreService:
    def __init__(self, backend: Optional[StateBackend] = None) -> None:
        self.backend = backend or state_backend_from_env()

    def read_state(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            data = self.backend.read(key)
        except StateStoreError:
            raise
        except Exception as exc:
            raise StateStoreError(f"read failed: {exc}", key=key) from exc
        if not data:
            return None
        try:
            value = json.loads(data)
        except ValueError as exc:
            raise SerializationError(f"stored state for {key} is not valid JSON: {exc}", details={"key": key}) from exc
        if value is None:
            return None
        if not isinstance(value, dict):
            raise StateStoreError("stored state is not a JSON object", key=key)
        return value

    def load_state_if_missing(
        self,
        invocation: CardInvocation,
        interaction: Optional[CardInteraction] = None,
    ) -> Optional[Dict[str, Any]]:
        """Read stored state only when the invocation carries none."""
        if invocation.state is not None:
            return None
        key = state_key_for(invocation, interaction)
        loaded = self.read_state(key)
        logger.debug("card state %s %s", key, "loaded" if loaded is not None else "absent")
        return loaded

    def persist_state(self, key: str, state: Optional[Dict[str, Any]]) -> None:
        try:
            if state is None:
                self.backend.delete(key)
                return
            try:
                data = json.dumps(state, separators=(",", ":")).encode("utf-8")
            except (TypeError, ValueError) as exc:
                raise SerializationError(f"state for {key} is not JSON serializable: {exc}", details={"key": key}) from exc
            self.backend.write(key, data)
        except (StateStoreError, SerializationError):
            raise
        except Exception as exc:
            raise StateStoreError(f"persist failed: {exc}", key=key) from exc


_default_service: Optional[StateStoreService] = None


def get_state_store_service() -> StateStoreService:
    global _default_service
    if _default_service is None:
        _default_service = StateStoreService()
    return _default_service


def set_state_store_service(service: Optional[StateStoreService]) -> None:
    global _default_service
    _default_service = service
