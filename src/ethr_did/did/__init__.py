"""ethr_did.did: identifier normalization and key type tags.

Submodules
----------
normalize
    normalize_known_did, ethr_address, is_ethr_identity, is_mnid.
key_types
    PublicKeyType and DEFAULT_DELEGATE_TYPE.
"""
from __future__ import annotations

from ethr_did.did.key_types import DEFAULT_DELEGATE_TYPE, PublicKeyType
from ethr_did.did.normalize import (
    ethr_address,
    is_ethr_identity,
    is_mnid,
    normalize_known_did,
)

__all__ = [
    "DEFAULT_DELEGATE_TYPE",
    "PublicKeyType",
    "ethr_address",
    "is_ethr_identity",
    "is_mnid",
    "normalize_known_did",
]
