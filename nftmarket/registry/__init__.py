# nftmarket/registry/__init__.py
"""
Marketplace asset registry.

The registry is the foundational data structure of the ledger: it maps
asset ids to their current owner and immutable metadata URI.

Example:
    registry = AssetRegistry()
    asset = registry.mint("ipfs://cat.json", owner=alice.id)
    registry.owner_of(asset.asset_id)   # alice.id
"""

from .registry import AssetRegistry, Asset

__all__ = ["AssetRegistry", "Asset"]
