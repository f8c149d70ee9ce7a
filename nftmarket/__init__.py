# nftmarket - Marketplace ledger for non-fungible digital assets
#
# Mint assets, list them for sale, buy them with an automatic protocol
# fee, cancel listings, and let the administrator withdraw collected fees.
# Every operation is all-or-nothing, and payments go out only after the
# ledger's own state is final.
#
# Core concepts:
# - AssetRegistry: Who owns each asset, and its metadata URI
# - ListingLedger / EscrowCustodian: Assets for sale, held in escrow
# - FeeAccount: The protocol's cut of each sale
# - TransitionLog: Signed, append-only record of every state change
# - Marketplace: The exposed operations over all of the above

from .config import MarketConfig
from .errors import (
    ErrorKind,
    MarketError,
    NullPrice,
    NotFound,
    IncorrectPrice,
    NotAssetOwner,
    Unauthorized,
    NoFundsToWithdraw,
)
from .identity import Actor, ActorStore
from .registry import AssetRegistry, Asset
from .listings import Listing, ListingLedger, EscrowCustodian
from .fees import FeeAccount
from .funds import FundsGateway
from .transitions import TransitionLog, TransitionRecord
from .market import Marketplace

__all__ = [
    # Core
    "Marketplace",
    "MarketConfig",
    "AssetRegistry",
    "Asset",
    "Listing",
    "ListingLedger",
    "EscrowCustodian",
    "FeeAccount",
    "FundsGateway",
    "TransitionLog",
    "TransitionRecord",
    # Identity
    "Actor",
    "ActorStore",
    # Errors
    "ErrorKind",
    "MarketError",
    "NullPrice",
    "NotFound",
    "IncorrectPrice",
    "NotAssetOwner",
    "Unauthorized",
    "NoFundsToWithdraw",
]

__version__ = "0.1.0"
