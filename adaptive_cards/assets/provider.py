"""Asset providers consulted after local card candidates are exhausted."""
from __future__ import annotations

from typing import Callable, Dict, Optional, Protocol


class AssetProvider(Protocol):
    def resolve(self, name: str) -> Optional[str]: ...


class NullAssetProvider:
    """Resolves nothing; the default until a host installs a provider."""

    def resolve(self, name: str) -> Optional[str]:
        return None


class MappingAssetProvider:
    """Static logical-name → path map supplied by the host."""

    def __init__(self, mapping: Optional[Dict[str, str]] = None) -> None:
        self._mapping: Dict[str, str] = dict(mapping or {})

    def register(self, name: str, path: str) -> None:
        self._mapping[name] = path

    def resolve(self, name: str) -> Optional[str]:
        return self._mapping.get(name)


class CallbackAssetProvider:
    """Wraps a host callback `name -> Optional[path]`."""

    def __init__(self, callback: Callable[[str], Optional[str]]) -> None:
        self._callback = callback

    def resolve(self, name: str) -> Optional[str]:
        return self._callback(name)


_default_provider: AssetProvider = NullAssetProvider()


def get_default_asset_provider() -> AssetProvider:
    return _default_provider


def set_default_asset_provider(provider: Optional[AssetProvider]) -> None:
    """Install the process-wide provider; call before serving invocations."""
    global _default_provider
    _default_provider = provider or NullAssetProvider()
