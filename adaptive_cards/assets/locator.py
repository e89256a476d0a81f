"""Asset locator: resolves a card source descriptor to a card document.

Inline documents are returned verbatim. Asset and catalog names expand into an
ordered, de-duplicated candidate list (explicit registry, registry/catalog
files, literal path, base-directory guess); the first candidate that exists
and parses wins. Only when every candidate fails is the asset provider asked,
once, for a path.
"""
from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from adaptive_cards.assets.provider import AssetProvider, get_default_asset_provider
from adaptive_cards.common.errors import (
    AssetError,
    AssetNotFoundError,
    AssetParseError,
    InvalidInputError,
)
from adaptive_cards.common.hashing import canonical_json, hash_bytes
from adaptive_cards.config import runtime_config
from adaptive_cards.invocation.models import AssetResolution, CardSource, CardSpec

logger = logging.getLogger(__name__)


@dataclass
class LocatedCard:
    card: Any
    resolution: AssetResolution


def load_mapping_file(path: Optional[str]) -> Dict[str, str]:
    """Read a JSON object file of name → path; unusable files are skipped."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        logger.warning("Skipping card mapping file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Skipping card mapping file %s: expected a JSON object", path)
        return {}
    return {str(k): str(v) for k, v in data.items() if isinstance(v, str)}


def _looks_like_path(name: str) -> bool:
    return os.path.isabs(name) or name.startswith("./") or name.startswith("../") or "/" in name


class _CandidateList:
    def __init__(self) -> None:
        self.items: List[str] = []

    def push(self, value: Optional[str]) -> None:
        if value and value not in self.items:
            self.items.append(value)


class AssetLocator:
    def __init__(self, provider: Optional[AssetProvider] = None, base_dir: Optional[str] = None) -> None:
        self._provider = provider
        self._base_dir = base_dir

    @property
    def provider(self) -> AssetProvider:
        return self._provider or get_default_asset_provider()

    @property
    def base_dir(self) -> str:
        return self._base_dir or runtime_config.get_asset_base()

    def locate(self, source: CardSource, spec: CardSpec) -> LocatedCard:
        if source == CardSource.inline:
            if spec.inline_json is None:
                raise InvalidInputError("inline_json is required", details={"field": "card_spec.inline_json"})
            card = copy.deepcopy(spec.inline_json)
            return LocatedCard(
                card=card,
                resolution=AssetResolution(mode="inline", resolved=None, hash=hash_bytes(canonical_json(card))),
            )
        if source == CardSource.asset:
            if not spec.asset_path:
                raise InvalidInputError("asset_path is required", details={"field": "card_spec.asset_path"})
            candidates = self.asset_candidates(spec.asset_path, spec.asset_registry)
            return self._load_with_candidates(spec.asset_path, candidates, mode="asset")
        if not spec.catalog_name:
            raise InvalidInputError("catalog_name is required", details={"field": "card_spec.catalog_name"})
        name = spec.catalog_name.lstrip("/")
        candidates = self.catalog_candidates(name, spec.asset_registry)
        return self._load_with_candidates(name, candidates, mode="catalog")

    def asset_candidates(self, path: str, registry: Optional[Dict[str, str]] = None) -> List[str]:
        candidates = _CandidateList()
        if registry:
            candidates.push(registry.get(path))
        candidates.push(load_mapping_file(runtime_config.get_asset_registry_file()).get(path))
        if _looks_like_path(path):
            candidates.push(path)
        else:
            candidates.push(str(Path(self.base_dir) / path))
            candidates.push(path)
        return candidates.items

    def catalog_candidates(self, name: str, registry: Optional[Dict[str, str]] = None) -> List[str]:
        candidates = _CandidateList()
        candidates.push(self._catalog_mapping(name, registry))
        candidates.push(f"{self.base_dir}/{name}.json")
        if os.path.isabs(name) or "/" in name or name.endswith(".json"):
            candidates.push(name)
        return candidates.items

    def _catalog_mapping(self, name: str, registry: Optional[Dict[str, str]]) -> Optional[str]:
        if registry and name in registry:
            return registry[name]
        env_registry = load_mapping_file(runtime_config.get_asset_registry_file())
        if name in env_registry:
            return env_registry[name]
        return load_mapping_file(runtime_config.get_catalog_file()).get(name)

    def _load_with_candidates(self, lookup_key: str, candidates: List[str], mode: str) -> LocatedCard:
        parse_error: Optional[AssetParseError] = None
        for candidate in candidates:
            try:
                return self._load(candidate, mode)
            except FileNotFoundError:
                logger.debug("card candidate %s does not exist", candidate)
            except AssetParseError as exc:
                logger.debug("card candidate %s did not parse: %s", candidate, exc)
                parse_error = exc

        try:
            resolved = self.provider.resolve(lookup_key)
        except Exception as exc:
            raise AssetError(
                f"asset provider failed for {lookup_key}: {exc}",
                details={"name": lookup_key},
            ) from exc
        if resolved:
            try:
                return self._load(resolved, "provider")
            except FileNotFoundError as exc:
                raise AssetNotFoundError(lookup_key, candidates + [resolved]) from exc

        if parse_error is not None:
            raise parse_error
        raise AssetNotFoundError(lookup_key, candidates)

    def _load(self, path: str, mode: str) -> LocatedCard:
        target = Path(path)
        if not target.is_file():
            raise FileNotFoundError(path)
        try:
            raw = target.read_bytes()
        except OSError as exc:
            raise AssetError(f"unable to read card asset {path}: {exc}", details={"path": path}) from exc
        try:
            card = json.loads(raw)
        except ValueError as exc:
            raise AssetParseError(path, str(exc)) from exc
        logger.debug("resolved card via %s: %s", mode, path)
        return LocatedCard(card=card, resolution=AssetResolution(mode=mode, resolved=path, hash=hash_bytes(raw)))
