"""Identifier normalization: map free-form identity strings onto DIDs.

Accepted inputs
---------------
- A DID of any method (``did:<method>:...``) is returned unchanged.
- A 40 hex digit Ethereum address, bare or ``0x``/``0X`` prefixed, becomes
  ``did:ethr:0x<digits>``. Digit case is preserved; only the prefix is
  lowercased.
- A legacy MNID (base58 network-qualified address) becomes
  ``did:uport:<mnid>``.

Anything else passes through untouched. :func:`normalize_known_did` never
raises.
"""
from __future__ import annotations

import re

_DID_PATTERN = re.compile(r"^did:\w+:.+", re.DOTALL)
_ETH_ADDRESS_PATTERN = re.compile(r"(?:0[xX])?(?P<digits>[0-9a-fA-F]{40})")
_ETHR_DID_PATTERN = re.compile(r"did:ethr:(?P<address>0x[0-9a-fA-F]{40})(?:[#?/].*)?", re.DOTALL)

_BASE58_ALPHABET: str = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_PATTERN = re.compile(rf"[{_BASE58_ALPHABET}]+")

# MNID layout: version (1) + network id (1..5) + address (20) + checksum (4)
_MNID_VERSION: int = 0x01
_MNID_MIN_BYTES: int = 26
_MNID_MAX_BYTES: int = 30


def _base58_to_int(encoded: str) -> int:
    n = 0
    for char in encoded:
        n = n * 58 + _BASE58_ALPHABET.index(char)
    return n


def is_mnid(value: str) -> bool:
    """Return ``True`` if *value* looks like a legacy uPort MNID.

    Parameters
    ----------
    value:
        Candidate string.

    Returns
    -------
    bool
        ``True`` when *value* uses only base58 characters and decodes to a
        version-1 MNID payload of plausible length. The checksum is not
        validated.
    """
    if not _BASE58_PATTERN.fullmatch(value) or value.startswith("1"):
        return False
    n = _base58_to_int(value)
    size = (n.bit_length() + 7) // 8
    if not _MNID_MIN_BYTES <= size <= _MNID_MAX_BYTES:
        return False
    return n >> (8 * (size - 1)) == _MNID_VERSION


def normalize_known_did(value: str) -> str:
    """Normalize a known identifier format to its DID form.

    Parameters
    ----------
    value:
        A DID, an Ethereum address, an MNID, or anything else.

    Returns
    -------
    str
        The canonical DID, or *value* unchanged when no rule matches.

    Examples
    --------
    >>> normalize_known_did("0XF3BEAC30c498d9e26865f34fcaa57dbb935b0d74")
    'did:ethr:0xF3BEAC30c498d9e26865f34fcaa57dbb935b0d74'
    >>> normalize_known_did("0x1234")
    '0x1234'
    """
    if _DID_PATTERN.match(value):
        return value

    match = _ETH_ADDRESS_PATTERN.fullmatch(value)
    if match:
        return f"did:ethr:0x{match.group('digits')}"

    if is_mnid(value):
        return f"did:uport:{value}"

    return value


def ethr_address(identity: str) -> str:
    """Return the ``0x`` address behind a ``did:ethr`` identity.

    Fragments, queries and paths after the address are ignored, so
    ``did:ethr:0xabc...#owner`` resolves to the bare address.

    Parameters
    ----------
    identity:
        An address or ``did:ethr`` DID in any accepted input format.

    Returns
    -------
    str
        The ``0x``-prefixed 40 hex digit address, digit case preserved.

    Raises
    ------
    ValueError
        If *identity* does not normalize to a ``did:ethr`` DID.
    """
    did = normalize_known_did(identity)
    match = _ETHR_DID_PATTERN.fullmatch(did)
    if not match:
        raise ValueError(
            f"{identity!r} is not an ethr identity. "
            "Expected a did:ethr DID or a 40 hex digit address."
        )
    return match.group("address")


def is_ethr_identity(identity: str) -> bool:
    """Return ``True`` if *identity* normalizes to a ``did:ethr`` DID."""
    return _ETHR_DID_PATTERN.fullmatch(normalize_known_did(identity)) is not None


__all__ = ["ethr_address", "is_ethr_identity", "is_mnid", "normalize_known_did"]
