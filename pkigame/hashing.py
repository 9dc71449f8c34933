"""
pkigame Hashing

All hashes use SHA-256 over canonical JSON, with lowercase hexadecimal
output prefixed by the algorithm name.
"""

import hashlib
from typing import Any, Dict, Union

from .canonicalization import canonicalize


def sha256_hash(data: Union[bytes, str]) -> str:
    """
    Compute SHA-256 hash.

    Returns:
        Hash string in format "sha256:abcdef..."
    """
    if isinstance(data, str):
        data = data.encode('utf-8')

    digest = hashlib.sha256(data).hexdigest().lower()
    return f"sha256:{digest}"


def parameters_hash(parameters: Dict[str, Any]) -> str:
    """parameters_hash = SHA-256(CJE(parameters))"""
    return sha256_hash(canonicalize(parameters))


def report_hash(report: Dict[str, Any]) -> str:
    """
    Compute the hash of a verification report.

    The report_hash and signatures fields are excluded, so the hash can be
    recomputed from a stored (and possibly signed) report.
    """
    body = {k: v for k, v in report.items() if k not in ("report_hash", "signatures")}
    return sha256_hash(canonicalize(body))


def verify_hash(declared_hash: str, data: Union[bytes, str]) -> bool:
    """Verify that data matches a declared hash."""
    if not declared_hash.startswith("sha256:"):
        return False
    return sha256_hash(data) == declared_hash
