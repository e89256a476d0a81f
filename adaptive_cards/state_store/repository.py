"""Byte-level state backends keyed by derived state key.

A backend reports "key absent" by returning ``None`` from ``read``; every
other failure is raised as ``StateStoreError``.
"""
from __future__ import annotations

import hashlib
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from adaptive_cards.common.errors import StateStoreError
from adaptive_cards.config import runtime_config

logger = logging.getLogger(__name__)


class StateBackend(Protocol):
    def read(self, key: str) -> Optional[bytes]: ...
    def write(self, key: str, data: bytes) -> None: ...
    def delete(self, key: str) -> None: ...


class InMemoryStateBackend:
    def __init__(self) -> None:
        self._items: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._items.get(key)

    def write(self, key: str, data: bytes) -> None:
        with self._lock:
            self._items[key] = bytes(data)

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._items)


class FileSystemStateBackend:
    """One JSON file per key under a base directory.

    Path structure:
      {base_dir}/{sha256(key)[:2]}/{sha256(key)}.json
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base_dir = Path(base_dir or runtime_config.get_state_dir())

    def _file(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._base_dir / digest[:2] / f"{digest}.json"

    def read(self, key: str) -> Optional[bytes]:
        target = self._file(key)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StateStoreError(f"read failed: {exc}", key=key) from exc

    def write(self, key: str, data: bytes) -> None:
        target = self._file(key)
        tmp = target.with_suffix(".tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except OSError as exc:
            logger.error("Failed to write card state %s: %s", target, exc)
            raise StateStoreError(f"write failed: {exc}", key=key) from exc

    def delete(self, key: str) -> None:
        try:
            self._file(key).unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StateStoreError(f"delete failed: {exc}", key=key) from exc


class FirestoreStateBackend:
    """Firestore implementation; documents hold the serialized state blob."""

    def __init__(self, client: Optional[object] = None, collection: str = "adaptive_card_state") -> None:  # pragma: no cover - optional dep
        if client is None:
            try:
                from google.cloud import firestore  # type: ignore
            except Exception as exc:
                raise RuntimeError("google-cloud-firestore not installed") from exc
            project = runtime_config.get_firestore_project()
            if not project:
                raise RuntimeError("GCP project is required for Firestore card state backend")
            client = firestore.Client(project=project)  # type: ignore[arg-type]
        self._client = client
        self._collection = collection

    def _doc(self, key: str):
        doc_id = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._client.collection(self._collection).document(doc_id)

    def read(self, key: str) -> Optional[bytes]:
        try:
            snap = self._doc(key).get()
        except Exception as exc:
            raise StateStoreError(f"read failed: {exc}", key=key) from exc
        if not snap or not snap.exists:
            return None
        data = (snap.to_dict() or {}).get("data")
        return data.encode("utf-8") if isinstance(data, str) else None

    def write(self, key: str, data: bytes) -> None:
        try:
            self._doc(key).set({"key": key, "data": data.decode("utf-8")})
        except Exception as exc:
            raise StateStoreError(f"write failed: {exc}", key=key) from exc

    def delete(self, key: str) -> None:
        try:
            self._doc(key).delete()
        except Exception as exc:
            raise StateStoreError(f"delete failed: {exc}", key=key) from exc


def state_backend_from_env() -> StateBackend:
    backend = runtime_config.get_state_backend()
    if backend == "filesystem":
        return FileSystemStateBackend()
    if backend == "firestore":
        try:
            return FirestoreStateBackend()
        except RuntimeError as exc:
            raise StateStoreError(f"firestore state backend unavailable: {exc}") from exc
    return InMemoryStateBackend()
