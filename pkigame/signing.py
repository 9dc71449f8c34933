"""
pkigame Report Signing

Ed25519 (RFC 8032) signatures over canonical verification reports, so a
stored report can later be checked for tampering against a known public
key.
"""

import base64
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .canonicalization import canonicalize


@dataclass
class KeyPair:
    """Ed25519 key pair."""
    key_id: str
    signing_key: bytes
    verify_key: bytes
    created_at: datetime
    algorithm: str = "Ed25519"

    def public_entry(self) -> Dict[str, Any]:
        """Public half, safe to publish."""
        return {
            "key_id": self.key_id,
            "algorithm": self.algorithm,
            "public_key": base64.b64encode(self.verify_key).decode('utf-8'),
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
        }

    def to_dict(self) -> Dict[str, Any]:
        d = self.public_entry()
        d["signing_key"] = base64.b64encode(self.signing_key).decode('utf-8')
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KeyPair':
        signing_key = base64.b64decode(data["signing_key"])
        return cls(
            key_id=data["key_id"],
            signing_key=signing_key,
            verify_key=bytes(SigningKey(signing_key).verify_key),
            created_at=datetime.fromisoformat(data["created_at"].replace("Z", "+00:00")),
            algorithm=data.get("algorithm", "Ed25519"),
        )


class SigningService:
    """Holds signing keys and signs report bodies."""

    def __init__(self):
        self._keys: Dict[str, KeyPair] = {}
        self._active_key_id: Optional[str] = None

    def generate_key_pair(self, key_id: str) -> KeyPair:
        """Generate a new Ed25519 key pair and make it active if none is."""
        signing_key = SigningKey.generate()
        key_pair = KeyPair(
            key_id=key_id,
            signing_key=bytes(signing_key),
            verify_key=bytes(signing_key.verify_key),
            created_at=datetime.now(timezone.utc),
        )
        self.add_key_pair(key_pair)
        return key_pair

    def add_key_pair(self, key_pair: KeyPair) -> None:
        self._keys[key_pair.key_id] = key_pair
        if self._active_key_id is None:
            self._active_key_id = key_pair.key_id

    def sign(self, data: bytes, key_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Sign data with Ed25519.

        Returns:
            Signature dict with key_id, algorithm, and base64 signature
        """
        key_id = key_id or self._active_key_id
        if not key_id:
            raise ValueError("No signing key available")

        key_pair = self._keys.get(key_id)
        if not key_pair:
            raise ValueError(f"Key not found: {key_id}")

        signed = SigningKey(key_pair.signing_key).sign(data)
        return {
            "key_id": key_id,
            "algorithm": key_pair.algorithm,
            "sig": base64.b64encode(signed.signature).decode('utf-8'),
        }


def verify_signature(data: bytes, signature_b64: str, verify_key_b64: str) -> bool:
    """Verify an Ed25519 signature; False on any mismatch."""
    try:
        signature = base64.b64decode(signature_b64)
        VerifyKey(base64.b64decode(verify_key_b64)).verify(data, signature)
        return True
    except (BadSignatureError, ValueError):
        return False


def verify_report_signature(report: Dict[str, Any], public_key: Dict[str, Any]) -> bool:
    """
    Check that a serialized report carries a valid signature by public_key.

    The signed body is the report without report_hash and signatures.
    """
    body = {k: v for k, v in report.items() if k not in ("report_hash", "signatures")}
    data = canonicalize(body)

    for signature in report.get("signatures", []):
        if not isinstance(signature, dict):
            continue
        if signature.get("key_id") != public_key.get("key_id"):
            continue
        if signature.get("algorithm") != public_key.get("algorithm", "Ed25519"):
            return False
        sig = signature.get("sig")
        verify_key = public_key.get("public_key")
        if not isinstance(sig, str) or not isinstance(verify_key, str):
            return False
        return verify_signature(data, sig, verify_key)
    return False


def load_key_pair(path: str) -> KeyPair:
    """Load a key pair written by `pkigame keygen`."""
    with open(path, 'r', encoding='utf-8') as f:
        return KeyPair.from_dict(json.load(f))
