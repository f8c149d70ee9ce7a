# nftmarket/identity/signatures.py
"""
Signatures over ledger records.

Uses RSA-SHA256 (PKCS#1 v1.5) over a canonical JSON encoding, so any
observer holding the signer's public key can check a record.
"""

import base64
import json
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from .actor import Actor

SIGNATURE_TYPE = "RsaSignature2017"


def _canonicalize(data: Dict[str, Any]) -> bytes:
    """Sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode()


def sign_payload(payload: Dict[str, Any], actor: Actor) -> Dict[str, Any]:
    """
    Sign a JSON-serializable payload with the actor's private key.

    Args:
        payload: Data to sign (must not contain the signature itself)
        actor: The signing actor

    Returns:
        Signature block: type, creator, signatureValue
    """
    private_key = serialization.load_pem_private_key(
        actor.private_key,
        password=None,
    )
    signature_bytes = private_key.sign(
        _canonicalize(payload),
        padding.PKCS1v15(),
        hashes.SHA256(),
    )
    return {
        "type": SIGNATURE_TYPE,
        "creator": actor.id,
        "signatureValue": base64.b64encode(signature_bytes).decode("utf-8"),
    }


def verify_payload(
    payload: Dict[str, Any],
    signature: Optional[Dict[str, Any]],
    public_key_pem: bytes,
) -> bool:
    """
    Verify a signature block against a payload.

    Returns:
        True if the signature is valid for this key
    """
    if not signature:
        return False

    try:
        public_key = serialization.load_pem_public_key(public_key_pem)
        signature_bytes = base64.b64decode(signature["signatureValue"])
        public_key.verify(
            signature_bytes,
            _canonicalize(payload),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return True

    except (InvalidSignature, KeyError, ValueError):
        return False
