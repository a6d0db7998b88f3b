"""Recoverable secp256k1 signatures for ES256K / ES256K-R tokens.

Encoding
--------
``ES256K``
    64 bytes: ``r (32) || s (32)``. The recovery id is not transmitted and
    must be found by trying both candidates.
``ES256K-R``
    65 bytes: ``r (32) || s (32) || recovery_id (1)``.

The message digest for both algorithms is SHA-256 of the signing input.
Addresses are derived the Ethereum way: the last 20 bytes of the keccak-256
hash of the 64-byte uncompressed public key.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import TYPE_CHECKING

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak

from ethr_did.errors import (
    InvalidSignatureError,
    MalformedSignatureError,
    SigningError,
)

if TYPE_CHECKING:
    from ethr_did.signer import Signer

ES256K: str = "ES256K"
ES256K_R: str = "ES256K-R"

SUPPORTED_ALGORITHMS: frozenset[str] = frozenset({ES256K, ES256K_R})

_SIGNATURE_SIZES: dict[str, int] = {ES256K: 64, ES256K_R: 65}
_RECOVERY_IDS: tuple[int, int] = (0, 1)
_ETHEREUM_V_OFFSET: int = 27
_MAX_256: int = 2**256


@dataclass(frozen=True)
class Signature:
    """An ECDSA signature with an optional recovery id.

    Parameters
    ----------
    r:
        The ``r`` component as an unsigned 256-bit integer.
    s:
        The ``s`` component as an unsigned 256-bit integer.
    recovery_id:
        ``0`` or ``1``; ``None`` when unknown (plain ES256K encoding).
    """

    r: int
    s: int
    recovery_id: int | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.r < _MAX_256:
            raise ValueError("Signature.r must fit in 32 bytes.")
        if not 0 <= self.s < _MAX_256:
            raise ValueError("Signature.s must fit in 32 bytes.")
        if self.recovery_id not in (None, *_RECOVERY_IDS):
            raise ValueError(f"Signature.recovery_id must be 0 or 1, got {self.recovery_id!r}")


def message_hash(message: bytes) -> bytes:
    """Return the ES256K digest (SHA-256) of *message*."""
    return hashlib.sha256(message).digest()


def public_key_to_address(public_key: bytes) -> str:
    """Derive the lowercase ``0x`` address of a 64-byte uncompressed public key."""
    if len(public_key) != 64:
        raise ValueError(f"Expected a 64-byte public key, got {len(public_key)} bytes")
    return "0x" + keccak(public_key)[-20:].hex()


# ---------------------------------------------------------------------------
# Sign
# ---------------------------------------------------------------------------


def sign(signer: Signer, message: bytes) -> Signature:
    """Sign *message* with the external signing capability.

    Parameters
    ----------
    signer:
        Any object implementing :class:`~ethr_did.signer.Signer`.
    message:
        The raw bytes to sign; hashed with SHA-256 before signing.

    Returns
    -------
    Signature
        Signature including the recovery id.

    Raises
    ------
    SigningError
        If the capability fails.
    """
    try:
        return signer.sign_message_hash(message_hash(message))
    except SigningError:
        raise
    except Exception as exc:
        raise SigningError(f"Signing capability failed: {exc}") from exc


# ---------------------------------------------------------------------------
# Recover
# ---------------------------------------------------------------------------


def _recover(digest: bytes, signature: Signature, recovery_id: int) -> bytes | None:
    """Recover and re-verify one candidate; ``None`` when the id yields no key."""
    try:
        eth_sig = keys.Signature(vrs=(recovery_id, signature.r, signature.s))
        candidate = eth_sig.recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError):
        return None
    if not candidate.verify_msg_hash(digest, eth_sig):
        return None
    return candidate.to_bytes()


def recovery_candidates(message: bytes, signature: Signature) -> list[bytes]:
    """Return every public key recoverable from *signature* over *message*.

    With a recovery id only that id is tried; without one both ids in
    ``{0, 1}`` are enumerated. Each candidate is validated by verifying the
    signature against the recovered key.

    Returns
    -------
    list[bytes]
        Distinct 64-byte public keys, in recovery id order. Empty when no id
        recovers a valid key.
    """
    digest = message_hash(message)
    ids = _RECOVERY_IDS if signature.recovery_id is None else (signature.recovery_id,)
    candidates: list[bytes] = []
    for recovery_id in ids:
        public_key = _recover(digest, signature, recovery_id)
        if public_key is not None and public_key not in candidates:
            candidates.append(public_key)
    return candidates


def recover_public_key(message: bytes, signature: Signature) -> bytes:
    """Recover the signer's 64-byte public key.

    Raises
    ------
    InvalidSignatureError
        If recovery yields no valid key, or, when the recovery id is absent,
        if both ids yield a valid key.
    """
    candidates = recovery_candidates(message, signature)
    if not candidates:
        raise InvalidSignatureError("no recovery id yields a valid public key")
    if len(candidates) > 1:
        raise InvalidSignatureError(
            f"recovery is ambiguous: {len(candidates)} candidate public keys"
        )
    return candidates[0]


# ---------------------------------------------------------------------------
# Byte encoding
# ---------------------------------------------------------------------------


def _expected_size(alg: str) -> int:
    try:
        return _SIGNATURE_SIZES[alg]
    except KeyError:
        raise ValueError(
            f"Unsupported algorithm {alg!r}. Supported: {sorted(SUPPORTED_ALGORITHMS)}"
        ) from None


def encode_signature(signature: Signature, alg: str) -> bytes:
    """Encode *signature* to its fixed-width byte form for *alg*.

    Raises
    ------
    ValueError
        If *alg* is ``ES256K-R`` and the signature has no recovery id.
    """
    _expected_size(alg)
    body = signature.r.to_bytes(32, "big") + signature.s.to_bytes(32, "big")
    if alg == ES256K:
        return body
    if signature.recovery_id is None:
        raise ValueError("ES256K-R encoding requires a recovery id")
    return body + bytes([signature.recovery_id])


def decode_signature(data: bytes, alg: str) -> Signature:
    """Decode fixed-width signature bytes produced for *alg*.

    A trailing recovery byte of 27 or 28 (Ethereum ``v``) is accepted and
    normalized to 0 or 1.

    Raises
    ------
    MalformedSignatureError
        If the size does not match *alg* or the recovery byte is invalid.
    """
    expected = _expected_size(alg)
    if len(data) != expected:
        raise MalformedSignatureError(alg, expected, len(data))

    r = int.from_bytes(data[:32], "big")
    s = int.from_bytes(data[32:64], "big")
    if alg == ES256K:
        return Signature(r=r, s=s)

    v = data[64]
    if v >= _ETHEREUM_V_OFFSET:
        v -= _ETHEREUM_V_OFFSET
    if v not in _RECOVERY_IDS:
        raise MalformedSignatureError(
            alg, expected, len(data), reason=f"invalid recovery byte {data[64]}"
        )
    return Signature(r=r, s=s, recovery_id=v)


__all__ = [
    "ES256K",
    "ES256K_R",
    "SUPPORTED_ALGORITHMS",
    "Signature",
    "decode_signature",
    "encode_signature",
    "message_hash",
    "public_key_to_address",
    "recover_public_key",
    "recovery_candidates",
    "sign",
]
