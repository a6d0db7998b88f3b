"""Exception taxonomy for ethr-did.

Every failure raised by this package derives from :class:`EthrDIDError` and
carries the context it was raised with (phase, lengths, identity, addresses)
so callers can log without re-deriving state.

Hierarchy
---------
::

    EthrDIDError
    ├── TokenError
    │   ├── MalformedTokenError
    │   ├── UnauthorizedSignerError
    │   └── ExpiredTokenError
    ├── SignatureError
    │   ├── InvalidSignatureError
    │   ├── MalformedSignatureError
    │   └── SigningError
    └── RegistryCallError
"""
from __future__ import annotations

from typing import Sequence


class EthrDIDError(Exception):
    """Base class for all ethr-did errors."""


# ---------------------------------------------------------------------------
# Token errors
# ---------------------------------------------------------------------------


class TokenError(EthrDIDError):
    """Base class for all token-related errors."""


class MalformedTokenError(TokenError):
    """Raised when a token has bad framing or encoding."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Malformed token: {reason}")


class UnauthorizedSignerError(TokenError):
    """Raised when the recovered signer is not authorized for the identity."""

    def __init__(self, identity: str, addresses: Sequence[str]) -> None:
        self.identity = identity
        self.addresses = tuple(addresses)
        super().__init__(
            f"Signer {', '.join(self.addresses) or '(none)'} is not authorized "
            f"to sign for {identity!r}"
        )


class ExpiredTokenError(TokenError):
    """Raised when the token's ``exp`` claim has elapsed."""

    def __init__(self, identity: str, expired_at: int | float) -> None:
        self.identity = identity
        self.expired_at = expired_at
        super().__init__(f"Token issued by {identity!r} expired at {expired_at}")


# ---------------------------------------------------------------------------
# Signature errors
# ---------------------------------------------------------------------------


class SignatureError(EthrDIDError):
    """Base class for signature encoding, recovery and signing errors."""


class InvalidSignatureError(SignatureError):
    """Raised when public key recovery fails or is ambiguous."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid signature: {reason}")


class MalformedSignatureError(SignatureError):
    """Raised when signature bytes do not match the size required by ``alg``."""

    def __init__(self, alg: str, expected: int, actual: int, reason: str = "") -> None:
        self.alg = alg
        self.expected = expected
        self.actual = actual
        detail = reason or f"expected {expected} bytes, got {actual}"
        super().__init__(f"Malformed {alg} signature: {detail}")


class SigningError(SignatureError):
    """Raised when the local signing capability fails."""


# ---------------------------------------------------------------------------
# Registry errors
# ---------------------------------------------------------------------------


class RegistryCallError(EthrDIDError):
    """Raised when any JSON-RPC interaction with the registry fails.

    Parameters
    ----------
    phase:
        ``"read"`` for owner lookups, ``"write"`` for nonce / gas price
        fetches and transaction broadcast.
    cause:
        The underlying transport or node error.
    method:
        The RPC capability that failed (e.g. ``"eth_call"``).
    """

    def __init__(self, phase: str, cause: BaseException, method: str = "") -> None:
        self.phase = phase
        self.cause = cause
        self.method = method
        where = f" ({method})" if method else ""
        super().__init__(f"Registry {phase} call failed{where}: {cause}")


__all__ = [
    "EthrDIDError",
    "ExpiredTokenError",
    "InvalidSignatureError",
    "MalformedSignatureError",
    "MalformedTokenError",
    "RegistryCallError",
    "SignatureError",
    "SigningError",
    "TokenError",
    "UnauthorizedSignerError",
]
