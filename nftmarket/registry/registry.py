# nftmarket/registry/registry.py
"""
Asset registry for the marketplace ledger.

The registry owns every minted asset:
- Identifier allocation (strictly increasing, never reused)
- Current owner (a user, or the escrow custodian while listed)
- Immutable metadata URI

Assets are never removed. The registry holds state only; persistence
and atomicity are handled by the Marketplace that owns it.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List

from ..errors import NotFound

FIRST_ASSET_ID = 1


@dataclass(frozen=True)
class Asset:
    """
    A minted asset.

    Attributes:
        asset_id: Unique identifier assigned at creation
        owner: Identity currently holding the asset
        uri: Metadata URI, set once at creation
        created_at: Timestamp of creation
    """
    asset_id: int
    owner: str
    uri: str
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "owner": self.owner,
            "uri": self.uri,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Asset":
        return cls(
            asset_id=data["asset_id"],
            owner=data["owner"],
            uri=data["uri"],
            created_at=data.get("created_at", time.time()),
        )


class AssetRegistry:
    """Identity, ownership and URI of each asset."""

    def __init__(self):
        self._assets: Dict[int, Asset] = {}
        self._next_id = FIRST_ASSET_ID

    def mint(self, uri: str, owner: str) -> Asset:
        """
        Create a new asset owned by ``owner``.

        Args:
            uri: Metadata URI (stored as given)
            owner: Identity of the creator

        Returns:
            The created Asset
        """
        asset = Asset(asset_id=self._next_id, owner=owner, uri=uri)
        self._assets[asset.asset_id] = asset
        self._next_id += 1
        return asset

    def get(self, asset_id: int) -> Asset:
        """Get an asset by id, raising NotFound if it was never minted."""
        asset = self._assets.get(asset_id)
        if asset is None:
            raise NotFound(f"Asset {asset_id} does not exist")
        return asset

    def owner_of(self, asset_id: int) -> str:
        return self.get(asset_id).owner

    def uri_of(self, asset_id: int) -> str:
        return self.get(asset_id).uri

    def set_owner(self, asset_id: int, owner: str) -> Asset:
        """Move an asset to a new owner. Authorization is the caller's job."""
        asset = replace(self.get(asset_id), owner=owner)
        self._assets[asset_id] = asset
        return asset

    def balance_of(self, owner: str) -> int:
        """Number of assets held by an identity."""
        return sum(1 for a in self._assets.values() if a.owner == owner)

    def assets_of(self, owner: str) -> List[Asset]:
        """Assets held by an identity, ordered by id."""
        return [a for a in self if a.owner == owner]

    @property
    def next_id(self) -> int:
        return self._next_id

    def snapshot(self) -> tuple[Dict[int, Asset], int]:
        # Assets are frozen, so a shallow copy is enough.
        return dict(self._assets), self._next_id

    def restore(self, snapshot: tuple[Dict[int, Asset], int]) -> None:
        assets, next_id = snapshot
        self._assets = dict(assets)
        self._next_id = next_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "next_id": self._next_id,
            "assets": [a.to_dict() for a in self],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetRegistry":
        registry = cls()
        for asset_data in data.get("assets", []):
            asset = Asset.from_dict(asset_data)
            registry._assets[asset.asset_id] = asset
        highest = max(registry._assets, default=FIRST_ASSET_ID - 1)
        # Never hand out an id at or below one already used.
        registry._next_id = max(data.get("next_id", FIRST_ASSET_ID), highest + 1)
        return registry

    def __contains__(self, asset_id: int) -> bool:
        return asset_id in self._assets

    def __len__(self) -> int:
        return len(self._assets)

    def __iter__(self) -> Iterator[Asset]:
        return iter(sorted(self._assets.values(), key=lambda a: a.asset_id))
