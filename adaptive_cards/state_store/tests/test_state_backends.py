import pytest

from adaptive_cards.common.errors import StateStoreError
from adaptive_cards.state_store.repository import (
    FileSystemStateBackend,
    FirestoreStateBackend,
    InMemoryStateBackend,
    state_backend_from_env,
)


def test_filesystem_backend_roundtrip(tmp_path) -> None:
    backend = FileSystemStateBackend(tmp_path)
    assert backend.read("adaptive-card:node:n1") is None
    backend.write("adaptive-card:node:n1", b'{"a":1}')
    assert backend.read("adaptive-card:node:n1") == b'{"a":1}'
    files = list(tmp_path.rglob("*.json"))
    assert len(files) == 1
    assert not list(tmp_path.rglob("*.tmp"))
    backend.delete("adaptive-card:node:n1")
    backend.delete("adaptive-card:node:n1")
    assert backend.read("adaptive-card:node:n1") is None


def test_filesystem_backend_write_failure(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    backend = FileSystemStateBackend(blocker)
    with pytest.raises(StateStoreError):
        backend.write("k", b"{}")


def test_backend_from_env(monkeypatch, tmp_path) -> None:
    assert isinstance(state_backend_from_env(), InMemoryStateBackend)
    monkeypatch.setenv("ADAPTIVE_CARD_STATE_BACKEND", "filesystem")
    monkeypatch.setenv("ADAPTIVE_CARD_STATE_DIR", str(tmp_path))
    backend = state_backend_from_env()
    assert isinstance(backend, FileSystemStateBackend)
    backend.write("k", b"{}")
    assert list(tmp_path.rglob("*.json"))


class _Snapshot:
    def __init__(self, data):
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return self._data


class _Doc:
    def __init__(self, store, doc_id):
        self._store = store
        self._id = doc_id

    def get(self):
        return _Snapshot(self._store.get(self._id))

    def set(self, data):
        self._store[self._id] = data

    def delete(self):
        self._store.pop(self._id, None)


class _Collection:
    def __init__(self, store):
        self._store = store

    def document(self, doc_id):
        return _Doc(self._store, doc_id)


class _FakeFirestore:
    def __init__(self):
        self.docs = {}

    def collection(self, name):
        return _Collection(self.docs.setdefault(name, {}))


def test_firestore_backend_with_client() -> None:
    client = _FakeFirestore()
    backend = FirestoreStateBackend(client=client)
    assert backend.read("k") is None
    backend.write("k", b'{"a":1}')
    assert backend.read("k") == b'{"a":1}'
    stored = list(client.docs["adaptive_card_state"].values())
    assert stored == [{"key": "k", "data": '{"a":1}'}]
    backend.delete("k")
    assert backend.read("k") is None
