import sys
from pathlib import Path

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adaptive_cards.assets.provider import set_default_asset_provider  # noqa: E402
from adaptive_cards.invocation.service import set_card_engine_service  # noqa: E402
from adaptive_cards.state_store.repository import InMemoryStateBackend  # noqa: E402
from adaptive_cards.state_store.service import StateStoreService, set_state_store_service  # noqa: E402
from adaptive_cards.trace.service import set_trace_sink  # noqa: E402
from adaptive_cards.validation.rules import set_card_validator  # noqa: E402

_ENV_VARS = (
    "ADAPTIVE_CARD_ASSET_BASE",
    "ADAPTIVE_CARD_ASSET_REGISTRY",
    "ADAPTIVE_CARD_CATALOG_FILE",
    "ADAPTIVE_CARD_TRACE",
    "ADAPTIVE_CARD_TRACE_OUT",
    "ADAPTIVE_CARD_TRACE_CAPTURE_INPUTS",
    "ADAPTIVE_CARD_LENIENT_BINDINGS",
    "ADAPTIVE_CARD_STATE_BACKEND",
    "ADAPTIVE_CARD_STATE_DIR",
)

@pytest.fixture(autouse=True)
def isolated_engine(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    backend = InMemoryStateBackend()
    set_state_store_service(StateStoreService(backend))
    set_default_asset_provider(None)
    set_card_engine_service(None)
    set_card_validator(None)
    set_trace_sink(None)
    yield backend
    set_state_store_service(None)
    set_default_asset_provider(None)
    set_card_engine_service(None)
    set_trace_sink(None)
