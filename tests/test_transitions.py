# tests/test_transitions.py
"""Tests for the transition log and record signatures."""

import tempfile
from dataclasses import replace
from pathlib import Path

import pytest

from nftmarket import Actor, Marketplace, TransitionLog, TransitionRecord
from nftmarket.identity import address_from_public_key


@pytest.fixture(scope="module")
def signer():
    return Actor.create("market")


@pytest.fixture(scope="module")
def other():
    return Actor.create("mallory")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestTransitionRecord:
    """Tests for TransitionRecord."""

    def test_serialization(self):
        record = TransitionRecord(
            sequence=3, asset_id=1, new_owner="0xbob", uri="", price=0,
            previous_owner="0xalice", operation="transfer",
        )
        restored = TransitionRecord.from_dict(record.to_dict())
        assert restored == record

    def test_unsigned_record_does_not_verify(self, signer):
        record = TransitionRecord(sequence=0, asset_id=1, new_owner="0xa", uri="u", price=0)
        assert not record.verify(signer.public_key)


class TestTransitionLog:
    """Tests for TransitionLog."""

    def test_append_assigns_sequence(self):
        log = TransitionLog()
        first = log.append(1, "0xalice", uri="u1", operation="create")
        second = log.append(2, "0xbob", uri="u2", operation="create")

        assert (first.sequence, second.sequence) == (0, 1)
        assert len(log) == 2

    def test_find_by_asset(self):
        log = TransitionLog()
        log.append(1, "0xalice", uri="u1")
        log.append(2, "0xbob", uri="u2")
        log.append(1, "0xescrow", price=10)

        assert [r.sequence for r in log.find_by_asset(1)] == [0, 2]

    def test_list_is_a_copy(self):
        log = TransitionLog()
        log.append(1, "0xalice")
        records = log.list()
        records.clear()
        assert len(log) == 1

    def test_signed_records_verify(self, signer, other):
        log = TransitionLog(signer=signer)
        record = log.append(1, "0xalice", uri="ipfs://x", operation="create")

        assert record.signature["creator"] == signer.id
        assert record.verify(signer.public_key)
        assert not record.verify(other.public_key)

    def test_tampered_record_fails_verification(self, signer):
        log = TransitionLog(signer=signer)
        record = log.append(1, "0xalice", price=100, operation="list")

        forged = replace(record, price=1)
        assert not forged.verify(signer.public_key)

    def test_persists(self, temp_dir, signer):
        log = TransitionLog(temp_dir, signer=signer)
        log.append(1, "0xalice", uri="ipfs://x", operation="create")
        log.save()

        reloaded = TransitionLog(temp_dir)
        records = reloaded.list()
        assert len(records) == 1
        assert records[0].as_tuple() == (1, "0xalice", "ipfs://x", 0)
        assert records[0].verify(signer.public_key)


class TestMarketLog:
    """The marketplace writes one signed record per state change."""

    def test_full_lifecycle(self, signer):
        market = Marketplace(administrator="0xadmin", ledger_actor=signer)
        asset_id = market.create("ipfs://a", caller="0xalice")
        market.list(asset_id, 100, caller="0xalice")
        market.cancel_listing(asset_id, caller="0xalice")
        market.list(asset_id, 100, caller="0xalice")
        market.buy(asset_id, caller="0xbob", payment=100)
        market.withdraw_funds(caller="0xadmin")

        records = market.log.find_by_asset(asset_id)
        assert [r.operation for r in records] == ["create", "list", "cancel", "list", "buy"]
        assert [r.new_owner for r in records] == [
            "0xalice", market.address, "0xalice", market.address, "0xbob",
        ]
        assert all(r.verify(market.ledger_actor.public_key) for r in records)
        assert len(market.log) == 5


class TestIdentity:
    """Tests for actor identities."""

    def test_address_is_stable(self, signer):
        assert signer.id == address_from_public_key(signer.public_key)
        assert signer.id.startswith("0x")
        assert len(signer.id) == 42

    def test_distinct_actors_distinct_addresses(self, signer, other):
        assert signer.id != other.id

    def test_actor_serialization(self, signer):
        restored = Actor.from_dict(signer.to_dict())
        assert restored.id == signer.id
        assert restored.username == signer.username
