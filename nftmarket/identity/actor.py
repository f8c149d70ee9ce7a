# nftmarket/identity/actor.py
"""
Ledger identities.

An Actor is an identity with:
- Username and display name
- RSA key pair for signing
- An address derived from the public key, used as the ledger identity
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..config import DEFAULT_DOMAIN

logger = logging.getLogger(__name__)


def _generate_keypair() -> tuple[bytes, bytes]:
    """Generate RSA key pair for signing."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


def address_from_public_key(public_pem: bytes) -> str:
    """
    Derive a ledger address from a PEM public key.

    SHA-3-256 of the DER-encoded key, last 20 bytes, hex with 0x prefix.
    """
    public_key = serialization.load_pem_public_key(public_pem)
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return "0x" + hashlib.sha3_256(der).hexdigest()[-40:]


@dataclass
class Actor:
    """
    A ledger identity.

    Attributes:
        username: Unique username (e.g., "alice")
        display_name: Human-readable name
        public_key: PEM-encoded public key
        private_key: PEM-encoded private key (kept secret)
        created_at: Timestamp of creation
    """
    username: str
    display_name: str
    public_key: bytes
    private_key: bytes
    created_at: float = field(default_factory=time.time)
    domain: str = DEFAULT_DOMAIN

    @property
    def id(self) -> str:
        """Ledger address; this is the calling identity."""
        return address_from_public_key(self.public_key)

    @property
    def handle(self) -> str:
        return f"@{self.username}@{self.domain}"

    @property
    def key_id(self) -> str:
        """Key ID recorded in signatures."""
        return f"{self.handle}#main-key"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for storage."""
        return {
            "username": self.username,
            "display_name": self.display_name,
            "public_key": self.public_key.decode("utf-8"),
            "private_key": self.private_key.decode("utf-8"),
            "created_at": self.created_at,
            "domain": self.domain,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Actor":
        """Deserialize from storage."""
        return cls(
            username=data["username"],
            display_name=data["display_name"],
            public_key=data["public_key"].encode("utf-8"),
            private_key=data["private_key"].encode("utf-8"),
            created_at=data.get("created_at", time.time()),
            domain=data.get("domain", DEFAULT_DOMAIN),
        )

    @classmethod
    def create(cls, username: str, display_name: str = None, domain: str = DEFAULT_DOMAIN) -> "Actor":
        """Create a new actor with generated keys."""
        private_pem, public_pem = _generate_keypair()
        return cls(
            username=username,
            display_name=display_name or username,
            public_key=public_pem,
            private_key=private_pem,
            domain=domain,
        )


class ActorStore:
    """
    Persistent storage for actors.

    Structure:
        store_dir/
            actors.json       # All actors, keyed by username
    """

    def __init__(self, store_dir: Path | str, domain: str = DEFAULT_DOMAIN):
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self.domain = domain
        self._actors: Dict[str, Actor] = {}
        self._load()

    def _index_path(self) -> Path:
        return self.store_dir / "actors.json"

    def _load(self):
        """Load actors from disk."""
        index_path = self._index_path()
        if index_path.exists():
            try:
                with open(index_path) as f:
                    data = json.load(f)
                self._actors = {
                    username: Actor.from_dict(actor_data)
                    for username, actor_data in data.get("actors", {}).items()
                }
            except (json.JSONDecodeError, KeyError) as e:
                logger.warning(f"Failed to load actors: {e}")
                self._actors = {}

    def _save(self):
        """Save actors to disk."""
        data = {
            "version": "1.0",
            "domain": self.domain,
            "actors": {
                username: actor.to_dict()
                for username, actor in self._actors.items()
            },
        }
        with open(self._index_path(), "w") as f:
            json.dump(data, f, indent=2)

    def create(self, username: str, display_name: str = None) -> Actor:
        """Create and store a new actor."""
        if username in self._actors:
            raise ValueError(f"Actor {username} already exists")

        actor = Actor.create(username, display_name, domain=self.domain)
        self._actors[username] = actor
        self._save()
        logger.info(f"Created actor {actor.handle} ({actor.id})")
        return actor

    def get(self, username: str) -> Optional[Actor]:
        """Get an actor by username."""
        return self._actors.get(username)

    def find_by_address(self, address: str) -> Optional[Actor]:
        """Get an actor by ledger address."""
        for actor in self._actors.values():
            if actor.id == address:
                return actor
        return None

    def list(self) -> list[Actor]:
        """List all actors."""
        return list(self._actors.values())

    def __contains__(self, username: str) -> bool:
        return username in self._actors

    def __len__(self) -> int:
        return len(self._actors)
