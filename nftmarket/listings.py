# nftmarket/listings.py
"""
Listing lifecycle: which assets are for sale, and who holds them meanwhile.

A Listing exists for an asset exactly while the EscrowCustodian owns it.
ListingLedger and EscrowCustodian only record state; the Marketplace
checks preconditions and keeps the two in step.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from .errors import NotFound
from .registry import AssetRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Listing:
    """An offer to sell one asset at a fixed price."""
    asset_id: int
    seller: str
    price: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "seller": self.seller,
            "price": self.price,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Listing":
        return cls(
            asset_id=data["asset_id"],
            seller=data["seller"],
            price=data["price"],
        )


class ListingLedger:
    """Active listings keyed by asset id."""

    def __init__(self):
        self._listings: Dict[int, Listing] = {}

    def add(self, listing: Listing) -> None:
        if listing.price <= 0:
            raise ValueError(f"Listing price must be positive, got {listing.price}")
        if listing.asset_id in self._listings:
            raise ValueError(f"Asset {listing.asset_id} is already listed")
        self._listings[listing.asset_id] = listing

    def get(self, asset_id: int) -> Listing:
        """Get the active listing for an asset, raising NotFound if none."""
        listing = self._listings.get(asset_id)
        if listing is None:
            raise NotFound(f"Asset {asset_id} is not listed")
        return listing

    def remove(self, asset_id: int) -> Listing:
        listing = self.get(asset_id)
        del self._listings[asset_id]
        return listing

    def list(self) -> List[Listing]:
        """All active listings, ordered by asset id."""
        return [self._listings[k] for k in sorted(self._listings)]

    def snapshot(self) -> Dict[int, Listing]:
        return dict(self._listings)

    def restore(self, snapshot: Dict[int, Listing]) -> None:
        self._listings = dict(snapshot)

    def to_dict(self) -> Dict[str, Any]:
        return {"listings": [l.to_dict() for l in self.list()]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ListingLedger":
        ledger = cls()
        for listing_data in data.get("listings", []):
            ledger.add(Listing.from_dict(listing_data))
        return ledger

    def __contains__(self, asset_id: int) -> bool:
        return asset_id in self._listings

    def __len__(self) -> int:
        return len(self._listings)


class EscrowCustodian:
    """
    Holds custody of listed assets.

    The custodian is an identity like any other (the ledger's own
    address); holding an asset means being its owner in the registry.
    """

    def __init__(self, address: str, registry: AssetRegistry):
        self.address = address
        self.registry = registry

    def take_custody(self, asset_id: int) -> None:
        """Move an asset from its owner into escrow."""
        previous = self.registry.owner_of(asset_id)
        self.registry.set_owner(asset_id, self.address)
        logger.debug(f"Escrow took asset {asset_id} from {previous}")

    def release(self, asset_id: int, to: str) -> None:
        """Hand an escrowed asset to ``to`` (buyer, or seller on cancel)."""
        if not self.holds(asset_id):
            raise ValueError(f"Asset {asset_id} is not held in escrow")
        self.registry.set_owner(asset_id, to)
        logger.debug(f"Escrow released asset {asset_id} to {to}")

    def holds(self, asset_id: int) -> bool:
        return asset_id in self.registry and self.registry.owner_of(asset_id) == self.address

    def held(self) -> List[int]:
        return [a.asset_id for a in self.registry.assets_of(self.address)]
