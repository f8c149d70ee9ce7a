# tests/test_registry.py
"""Tests for the registry, listing ledger, escrow and fee account."""

import pytest

from nftmarket import (
    AssetRegistry,
    EscrowCustodian,
    FeeAccount,
    Listing,
    ListingLedger,
    NotFound,
)


@pytest.fixture
def registry():
    return AssetRegistry()


class TestAssetRegistry:
    """Tests for AssetRegistry."""

    def test_mint_assigns_sequential_ids(self, registry):
        a = registry.mint("u1", "0xalice")
        b = registry.mint("u2", "0xbob")

        assert (a.asset_id, b.asset_id) == (1, 2)
        assert registry.next_id == 3
        assert len(registry) == 2

    def test_set_owner_keeps_uri(self, registry):
        asset = registry.mint("u1", "0xalice")
        registry.set_owner(asset.asset_id, "0xbob")

        assert registry.owner_of(asset.asset_id) == "0xbob"
        assert registry.uri_of(asset.asset_id) == "u1"

    def test_unknown_id(self, registry):
        with pytest.raises(NotFound):
            registry.get(1)
        with pytest.raises(NotFound):
            registry.set_owner(1, "0xbob")
        assert 1 not in registry

    def test_snapshot_restore(self, registry):
        registry.mint("u1", "0xalice")
        snapshot = registry.snapshot()
        registry.mint("u2", "0xalice")
        registry.set_owner(1, "0xbob")

        registry.restore(snapshot)

        assert len(registry) == 1
        assert registry.owner_of(1) == "0xalice"
        assert registry.next_id == 2

    def test_serialization(self, registry):
        registry.mint("u1", "0xalice")
        registry.mint("u2", "0xbob")

        restored = AssetRegistry.from_dict(registry.to_dict())

        assert [a.to_dict() for a in restored] == [a.to_dict() for a in registry]
        assert restored.next_id == 3

    def test_next_id_never_below_existing(self):
        data = {
            "next_id": 1,
            "assets": [{"asset_id": 4, "owner": "0xalice", "uri": "u"}],
        }
        assert AssetRegistry.from_dict(data).next_id == 5


class TestListingLedger:
    """Tests for ListingLedger."""

    def test_add_get_remove(self):
        ledger = ListingLedger()
        ledger.add(Listing(asset_id=1, seller="0xalice", price=10))

        assert ledger.get(1).price == 10
        assert 1 in ledger
        assert ledger.remove(1).seller == "0xalice"
        assert 1 not in ledger

    def test_missing_listing(self):
        ledger = ListingLedger()
        with pytest.raises(NotFound):
            ledger.get(1)
        with pytest.raises(NotFound):
            ledger.remove(1)

    def test_rejects_non_positive_price(self):
        with pytest.raises(ValueError):
            ListingLedger().add(Listing(asset_id=1, seller="0xalice", price=0))

    def test_rejects_duplicate(self):
        ledger = ListingLedger()
        ledger.add(Listing(asset_id=1, seller="0xalice", price=10))
        with pytest.raises(ValueError):
            ledger.add(Listing(asset_id=1, seller="0xalice", price=20))

    def test_list_is_ordered(self):
        ledger = ListingLedger()
        for asset_id in (3, 1, 2):
            ledger.add(Listing(asset_id=asset_id, seller="0xalice", price=asset_id))
        assert [l.asset_id for l in ledger.list()] == [1, 2, 3]

    def test_serialization(self):
        ledger = ListingLedger()
        ledger.add(Listing(asset_id=2, seller="0xbob", price=7))
        restored = ListingLedger.from_dict(ledger.to_dict())
        assert restored.list() == ledger.list()


class TestEscrowCustodian:
    """Tests for EscrowCustodian."""

    def test_custody_cycle(self, registry):
        escrow = EscrowCustodian("0xescrow", registry)
        asset = registry.mint("u1", "0xalice")

        escrow.take_custody(asset.asset_id)
        assert escrow.holds(asset.asset_id)
        assert escrow.held() == [asset.asset_id]

        escrow.release(asset.asset_id, "0xbob")
        assert registry.owner_of(asset.asset_id) == "0xbob"
        assert not escrow.holds(asset.asset_id)

    def test_cannot_release_unheld(self, registry):
        escrow = EscrowCustodian("0xescrow", registry)
        asset = registry.mint("u1", "0xalice")
        with pytest.raises(ValueError):
            escrow.release(asset.asset_id, "0xbob")


class TestFeeAccount:
    """Tests for FeeAccount."""

    def test_credit_and_drain(self):
        fees = FeeAccount()
        fees.credit(5)
        fees.credit(3)

        assert fees.drain() == 8
        assert fees.balance == 0

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            FeeAccount().credit(-1)
        with pytest.raises(ValueError):
            FeeAccount(balance=-1)
