# nftmarket/transitions.py
"""
Append-only log of ledger state transitions.

Each state-changing call appends one TransitionRecord describing where
an asset went: (asset_id, new_owner, uri, price). Records are signed by
the ledger's own identity so external indexers can check them with the
ledger's public key. The ledger itself never reads the log back.
"""

import json
import logging
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .identity import Actor, sign_payload, verify_payload

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass(frozen=True)
class TransitionRecord:
    """
    One completed state change.

    Attributes:
        sequence: Position in the log, starting at 0
        asset_id: Asset affected
        new_owner: Owner (or escrow custodian) after the change
        uri: Metadata URI on creation, empty otherwise
        price: Listing price on list, 0 otherwise
        previous_owner: Owner before the change (None on creation)
        operation: Name of the operation (create, list, buy, cancel, transfer)
        published: ISO timestamp
        signature: Signature block from the ledger identity
    """
    sequence: int
    asset_id: int
    new_owner: str
    uri: str
    price: int
    previous_owner: Optional[str] = None
    operation: str = ""
    published: str = field(default_factory=_timestamp)
    signature: Optional[Dict[str, Any]] = None

    def as_tuple(self) -> tuple[int, str, str, int]:
        """The (asset_id, new_owner, uri, price) tuple indexers consume."""
        return self.asset_id, self.new_owner, self.uri, self.price

    def payload(self) -> Dict[str, Any]:
        """Record contents without the signature (what gets signed)."""
        return {
            "sequence": self.sequence,
            "asset_id": self.asset_id,
            "new_owner": self.new_owner,
            "uri": self.uri,
            "price": self.price,
            "previous_owner": self.previous_owner,
            "operation": self.operation,
            "published": self.published,
        }

    def verify(self, public_key_pem: bytes) -> bool:
        return verify_payload(self.payload(), self.signature, public_key_pem)

    def to_dict(self) -> Dict[str, Any]:
        data = self.payload()
        data["signature"] = self.signature
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransitionRecord":
        return cls(
            sequence=data["sequence"],
            asset_id=data["asset_id"],
            new_owner=data["new_owner"],
            uri=data.get("uri", ""),
            price=data.get("price", 0),
            previous_owner=data.get("previous_owner"),
            operation=data.get("operation", ""),
            published=data.get("published", ""),
            signature=data.get("signature"),
        )


class TransitionLog:
    """
    Ordered, append-only sequence of TransitionRecords.

    Structure (when persisted):
        store_dir/
            transitions.json
    """

    def __init__(self, store_dir: Path | str = None, signer: Actor = None):
        self.store_dir = Path(store_dir) if store_dir else None
        self.signer = signer
        self._records: List[TransitionRecord] = []
        if self.store_dir:
            self.store_dir.mkdir(parents=True, exist_ok=True)
            self._load()

    @property
    def path(self) -> Path:
        return self.store_dir / "transitions.json"

    def _load(self):
        """Load records from disk."""
        log_path = self.path
        if log_path.exists():
            with open(log_path) as f:
                data = json.load(f)
            self._records = [
                TransitionRecord.from_dict(r) for r in data.get("transitions", [])
            ]

    def save(self):
        """Save records to disk (no-op for an in-memory log)."""
        if not self.store_dir:
            return
        with open(self.path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": "1.0",
            "transitions": [r.to_dict() for r in self._records],
        }

    def append(
        self,
        asset_id: int,
        new_owner: str,
        uri: str = "",
        price: int = 0,
        previous_owner: str = None,
        operation: str = "",
    ) -> TransitionRecord:
        """Append a record, signing it if the log has a signer."""
        record = TransitionRecord(
            sequence=len(self._records),
            asset_id=asset_id,
            new_owner=new_owner,
            uri=uri,
            price=price,
            previous_owner=previous_owner,
            operation=operation,
        )
        if self.signer:
            record = replace(record, signature=sign_payload(record.payload(), self.signer))
        self._records.append(record)
        return record

    def list(self) -> List[TransitionRecord]:
        """All records, oldest first."""
        return list(self._records)

    def find_by_asset(self, asset_id: int) -> List[TransitionRecord]:
        return [r for r in self._records if r.asset_id == asset_id]

    def snapshot(self) -> int:
        return len(self._records)

    def restore(self, snapshot: int) -> None:
        """
        Discard records appended after ``snapshot``.

        Only used to drop the records of an operation that failed before
        committing; committed records are never removed.
        """
        del self._records[snapshot:]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(list(self._records))
