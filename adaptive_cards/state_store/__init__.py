"""Card state persistence package."""

from adaptive_cards.state_store.repository import (
    FileSystemStateBackend,
    InMemoryStateBackend,
    StateBackend,
)
from adaptive_cards.state_store.service import (
    StateStoreService,
    apply_updates,
    state_key_for,
)

__all__ = [
    "StateBackend",
    "InMemoryStateBackend",
    "FileSystemStateBackend",
    "StateStoreService",
    "apply_updates",
    "state_key_for",
]
