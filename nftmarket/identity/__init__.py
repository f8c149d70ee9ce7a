# nftmarket/identity/__init__.py
"""
Identities for the marketplace ledger.

Core concepts:
- Actor: A user identity with an RSA key pair; its address is the
  calling identity passed to ledger operations
- ActorStore: Persistent actor storage
- Signatures: Proof that a record was issued by a given actor
"""

from .actor import Actor, ActorStore, address_from_public_key
from .signatures import sign_payload, verify_payload

__all__ = [
    "Actor",
    "ActorStore",
    "address_from_public_key",
    "sign_payload",
    "verify_payload",
]
