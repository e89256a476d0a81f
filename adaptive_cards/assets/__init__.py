"""Card asset resolution package."""

from adaptive_cards.assets.locator import AssetLocator, LocatedCard
from adaptive_cards.assets.provider import (
    AssetProvider,
    CallbackAssetProvider,
    MappingAssetProvider,
    NullAssetProvider,
    get_default_asset_provider,
    set_default_asset_provider,
)

__all__ = [
    "AssetLocator",
    "LocatedCard",
    "AssetProvider",
    "CallbackAssetProvider",
    "MappingAssetProvider",
    "NullAssetProvider",
    "get_default_asset_provider",
    "set_default_asset_provider",
]
