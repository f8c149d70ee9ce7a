# nftmarket/market.py
"""
The marketplace ledger.

Ties the asset registry, listing ledger, escrow custodian, fee account
and transition log together behind the exposed operations:

    create          mint an asset owned by the caller
    list            put an owned asset up for sale (custody -> escrow)
    buy             pay the exact price (custody -> buyer, 95/5 split)
    cancel_listing  withdraw a listing (custody -> seller)
    withdraw_funds  administrator drains the fee account

Every operation runs inside an atomic scope: all preconditions are
checked before anything is mutated, and if anything raises (including a
payment receiver further down) the ledger is restored to its state at
the start of the scope. Outbound payments are always the last step, so
a receiver that calls back in sees the finished state.
"""

import json
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import MarketConfig
from .errors import (
    IncorrectPrice,
    NoFundsToWithdraw,
    NotAssetOwner,
    NullPrice,
    Unauthorized,
)
from .fees import FeeAccount
from .funds import FundsGateway
from .identity import Actor
from .listings import EscrowCustodian, Listing, ListingLedger
from .registry import Asset, AssetRegistry
from .transitions import TransitionLog

logger = logging.getLogger(__name__)

LEDGER_ACTOR_NAME = "market"


def _require_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {value!r}")


def _write_all(files: List[Tuple[Path, Dict[str, Any]]]) -> None:
    """
    Write several JSON files so a failure leaves the old ones in place.

    Every payload is written to a temporary file first; the files are
    only swapped in, in order, once all of them were written.
    """
    staged = []
    try:
        for path, data in files:
            tmp_path = path.with_name(path.name + ".tmp")
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
            staged.append((tmp_path, path))
        for tmp_path, path in staged:
            os.replace(tmp_path, path)
    finally:
        for tmp_path, _ in staged:
            if tmp_path.exists():
                tmp_path.unlink()


class Marketplace:
    """
    Marketplace ledger for non-fungible assets.

    Structure (when persisted):
        state_dir/
            config.yaml        # Optional settings
            ledger.json        # Administrator, ledger identity, assets, listings,
                               # fees, paid-out balances, committed log length
            transitions.json   # Append-only transition log

    Usage:
        market = Marketplace(administrator=admin.id, state_dir="/tmp/market")
        asset_id = market.create("ipfs://cat.json", caller=alice.id)
        market.list(asset_id, 100, caller=alice.id)
        market.buy(asset_id, caller=bob.id, payment=100)
    """

    def __init__(
        self,
        administrator: str = None,
        state_dir: Path | str = None,
        config: MarketConfig = None,
        ledger_actor: Actor = None,
    ):
        """
        Open the ledger in ``state_dir``, or create it there.

        Args:
            administrator: Identity allowed to withdraw fees. Required when
                creating a ledger; must match when opening an existing one.
            state_dir: Directory to persist state in (in-memory if None)
            config: Settings; loaded from state_dir/config.yaml if omitted
            ledger_actor: The ledger's own identity (escrow custodian and
                log signer). Generated if omitted.
        """
        if state_dir is None and config is not None:
            state_dir = config.state_dir
        self.state_dir = Path(state_dir) if state_dir else None
        if self.state_dir:
            self.state_dir.mkdir(parents=True, exist_ok=True)

        if config is None:
            config_path = self.state_dir / "config.yaml" if self.state_dir else None
            if config_path and config_path.exists():
                config = MarketConfig.from_file(config_path)
            else:
                config = MarketConfig()
        self.config = config

        self._lock = threading.RLock()
        self._depth = 0

        data = self._load()
        if data is not None:
            stored_admin = data["administrator"]
            if administrator is not None and administrator != stored_admin:
                raise ValueError(
                    f"Ledger in {self.state_dir} is administered by {stored_admin}, not {administrator}"
                )
            self.administrator = stored_admin
            self.ledger_actor = Actor.from_dict(data["ledger_actor"])
            self.registry = AssetRegistry.from_dict(data.get("registry", {}))
            self.listings = ListingLedger.from_dict(data.get("listings", {}))
            self.fees = FeeAccount.from_dict(data.get("fees", {}))
            self.funds = FundsGateway.from_dict(data.get("funds", {}))
        else:
            if not administrator:
                raise ValueError("An administrator identity is required to create a ledger")
            self.administrator = administrator
            self.ledger_actor = ledger_actor or Actor.create(
                LEDGER_ACTOR_NAME, "Marketplace ledger", domain=self.config.domain
            )
            if administrator == self.ledger_actor.id:
                raise ValueError("The administrator cannot be the ledger's own identity")
            self.registry = AssetRegistry()
            self.listings = ListingLedger()
            self.fees = FeeAccount()
            self.funds = FundsGateway()

        self.escrow = EscrowCustodian(self.ledger_actor.id, self.registry)
        self.log = TransitionLog(self.state_dir, signer=self.ledger_actor)
        if data is not None:
            self._trim_uncommitted_log(data.get("log_length"))
        else:
            self._save()
            logger.info(
                f"Created ledger {self.address} administered by {self.administrator}"
            )

    @property
    def address(self) -> str:
        """The ledger's own identity, which is also the escrow custodian."""
        return self.ledger_actor.id

    # -- persistence ------------------------------------------------------

    def _ledger_path(self) -> Path:
        return self.state_dir / "ledger.json"

    def _load(self) -> Optional[Dict[str, Any]]:
        """Read ledger.json, or None if there is no ledger yet."""
        if not self.state_dir or not self._ledger_path().exists():
            return None
        with open(self._ledger_path()) as f:
            data = json.load(f)
        if "administrator" not in data or "ledger_actor" not in data:
            raise ValueError(f"Corrupt ledger state in {self._ledger_path()}")
        return data

    def _save(self):
        if not self.state_dir:
            return
        data = {
            "version": "1.0",
            "administrator": self.administrator,
            "ledger_actor": self.ledger_actor.to_dict(),
            "registry": self.registry.to_dict(),
            "listings": self.listings.to_dict(),
            "fees": self.fees.to_dict(),
            "funds": self.funds.to_dict(),
            "log_length": len(self.log),
        }
        # ledger.json goes last: it is what marks the operation committed.
        _write_all([
            (self.log.path, self.log.to_dict()),
            (self._ledger_path(), data),
        ])

    def _trim_uncommitted_log(self, log_length: Optional[int]):
        """Drop log records written by a commit that never reached ledger.json."""
        if log_length is not None and len(self.log) > log_length:
            logger.warning(
                f"Discarding {len(self.log) - log_length} uncommitted transition records"
            )
            self.log.restore(log_length)

    # -- atomicity --------------------------------------------------------

    def _snapshot(self) -> Dict[str, Any]:
        return {
            "registry": self.registry.snapshot(),
            "listings": self.listings.snapshot(),
            "fees": self.fees.snapshot(),
            "log": self.log.snapshot(),
            "funds": self.funds.snapshot(),
        }

    def _restore(self, snapshot: Dict[str, Any]):
        self.registry.restore(snapshot["registry"])
        self.listings.restore(snapshot["listings"])
        self.fees.restore(snapshot["fees"])
        self.log.restore(snapshot["log"])
        self.funds.restore(snapshot["funds"])

    @contextmanager
    def _atomic(self, operation: str):
        """
        Run a block as one all-or-nothing operation.

        Scopes nest when a payment receiver calls back in: an inner
        failure undoes only the inner call, an outer failure undoes
        everything. State is written to disk when the outermost scope
        completes.
        """
        with self._lock:
            snapshot = self._snapshot()
            self._depth += 1
            try:
                yield
                if self._depth == 1:
                    self._save()
            except BaseException as e:
                self._restore(snapshot)
                logger.debug(f"{operation} rolled back: {e!r}")
                raise
            finally:
                self._depth -= 1

    # -- operations -------------------------------------------------------

    def _check_caller(self, caller: str) -> None:
        """Escrow is moved only by the ledger itself, never by a caller."""
        if caller == self.escrow.address:
            raise NotAssetOwner("The escrow custodian cannot act as a caller")

    def create(self, uri: str, caller: str) -> int:
        """
        Mint a new asset owned by the caller.

        Returns:
            The new asset id
        """
        if not isinstance(uri, str):
            raise TypeError(f"uri must be a string, got {uri!r}")

        with self._atomic("create"):
            self._check_caller(caller)
            asset = self.registry.mint(uri, caller)
            self.log.append(
                asset.asset_id, caller, uri=uri, price=0,
                previous_owner=None, operation="create",
            )

        logger.info(f"Minted asset {asset.asset_id} for {caller}")
        return asset.asset_id

    def list(self, asset_id: int, price: int, caller: str) -> Listing:
        """
        List an owned asset for sale; custody moves to escrow.

        Raises:
            NullPrice: price is zero or negative
            NotFound: unknown asset
            NotAssetOwner: caller does not own the asset, or is the escrow
                custodian
        """
        _require_int("price", price)

        with self._atomic("list"):
            self._check_caller(caller)
            if price <= 0:
                raise NullPrice(f"Price must be greater than 0, got {price}")
            asset = self.registry.get(asset_id)
            if asset.owner != caller:
                raise NotAssetOwner(f"{caller} does not own asset {asset_id}")
            if asset_id in self.listings:
                raise NotAssetOwner(f"Asset {asset_id} is already listed")

            self.escrow.take_custody(asset_id)
            listing = Listing(asset_id=asset_id, seller=caller, price=price)
            self.listings.add(listing)
            self.log.append(
                asset_id, self.escrow.address, uri="", price=price,
                previous_owner=caller, operation="list",
            )

        logger.info(f"Listed asset {asset_id} by {caller} at {price}")
        return listing

    def buy(self, asset_id: int, caller: str, payment: int) -> Listing:
        """
        Buy a listed asset, paying exactly the listing price.

        The seller receives the price less the fee (rounded down); the
        fee account receives the rest. The seller is paid last.

        Raises:
            NotFound: asset is not listed
            IncorrectPrice: payment differs from the price
            NotAssetOwner: caller is the escrow custodian
        """
        _require_int("payment", payment)

        with self._atomic("buy"):
            self._check_caller(caller)
            listing = self.listings.get(asset_id)
            if payment != listing.price:
                raise IncorrectPrice(
                    f"Asset {asset_id} costs {listing.price}, got {payment}"
                )
            seller_share, fee = self.config.split(listing.price)

            self.listings.remove(asset_id)
            self.escrow.release(asset_id, caller)
            self.fees.credit(fee)
            self.log.append(
                asset_id, caller, uri="", price=0,
                previous_owner=self.escrow.address, operation="buy",
            )

            if seller_share > 0:
                self.funds.transfer(listing.seller, seller_share)

        logger.info(
            f"Sold asset {asset_id} from {listing.seller} to {caller} "
            f"for {listing.price} (fee {fee})"
        )
        return listing

    def cancel_listing(self, asset_id: int, caller: str) -> Listing:
        """
        Cancel a listing; custody returns to the seller.

        Raises:
            NotFound: asset is not listed
            NotAssetOwner: caller is not the seller
        """
        with self._atomic("cancel_listing"):
            self._check_caller(caller)
            listing = self.listings.get(asset_id)
            if listing.seller != caller:
                raise NotAssetOwner(f"{caller} did not list asset {asset_id}")

            self.listings.remove(asset_id)
            self.escrow.release(asset_id, listing.seller)
            self.log.append(
                asset_id, listing.seller, uri="", price=0,
                previous_owner=self.escrow.address, operation="cancel",
            )

        logger.info(f"Cancelled listing of asset {asset_id} by {caller}")
        return listing

    def withdraw_funds(self, caller: str) -> int:
        """
        Send the whole fee balance to the administrator.

        Returns:
            The amount withdrawn

        Raises:
            Unauthorized: caller is not the administrator
            NoFundsToWithdraw: fee balance is zero
        """
        with self._atomic("withdraw_funds"):
            if caller != self.administrator:
                raise Unauthorized(f"{caller} is not the administrator")
            if self.fees.balance == 0:
                raise NoFundsToWithdraw("Fee balance is zero")

            amount = self.fees.drain()
            self.funds.transfer(self.administrator, amount)

        logger.info(f"Withdrew {amount} in fees to {self.administrator}")
        return amount

    def transfer(self, asset_id: int, to: str, caller: str) -> Asset:
        """
        Give an owned, unlisted asset directly to another identity.

        Raises:
            NotFound: unknown asset
            NotAssetOwner: caller does not own the asset, or ``to`` is
                the escrow custodian (escrow is entered only by listing)
        """
        with self._atomic("transfer"):
            self._check_caller(caller)
            asset = self.registry.get(asset_id)
            if asset.owner != caller:
                raise NotAssetOwner(f"{caller} does not own asset {asset_id}")
            if to == self.escrow.address:
                raise NotAssetOwner("Assets enter escrow only by being listed")

            asset = self.registry.set_owner(asset_id, to)
            self.log.append(
                asset_id, to, uri="", price=0,
                previous_owner=caller, operation="transfer",
            )

        logger.info(f"Transferred asset {asset_id} from {caller} to {to}")
        return asset

    # -- queries ----------------------------------------------------------

    def owner_of(self, asset_id: int) -> str:
        with self._lock:
            return self.registry.owner_of(asset_id)

    def uri_of(self, asset_id: int) -> str:
        with self._lock:
            return self.registry.uri_of(asset_id)

    def balance_of(self, identity: str) -> int:
        """Number of assets an identity holds."""
        with self._lock:
            return self.registry.balance_of(identity)

    def assets_of(self, identity: str) -> List[Asset]:
        with self._lock:
            return self.registry.assets_of(identity)

    def total_supply(self) -> int:
        with self._lock:
            return len(self.registry)

    def get_listing(self, asset_id: int) -> Listing:
        with self._lock:
            return self.listings.get(asset_id)

    def active_listings(self) -> List[Listing]:
        with self._lock:
            return self.listings.list()

    def fee_balance(self) -> int:
        with self._lock:
            return self.fees.balance

    def funds_of(self, identity: str) -> int:
        """Total paid out to an identity by this ledger."""
        with self._lock:
            return self.funds.balance_of(identity)
