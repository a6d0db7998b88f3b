"""Call data encoding for the EIP-1056 ``EthereumDIDRegistry`` contract.

Only the methods this package uses are encoded::

    identityOwner(address) -> address
    changeOwner(address identity, address newOwner)
    addDelegate(address identity, bytes32 delegateType, address delegate, uint256 validity)
    revokeDelegate(address identity, bytes32 delegateType, address delegate)
    setAttribute(address identity, bytes32 name, bytes value, uint256 validity)

``bytes32`` arguments are the UTF-8 bytes of a tag string, right-padded with
zeros to 32 bytes.
"""
from __future__ import annotations

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_canonical_address

IDENTITY_OWNER = "identityOwner(address)"
CHANGE_OWNER = "changeOwner(address,address)"
ADD_DELEGATE = "addDelegate(address,bytes32,address,uint256)"
REVOKE_DELEGATE = "revokeDelegate(address,bytes32,address)"
SET_ATTRIBUTE = "setAttribute(address,bytes32,bytes,uint256)"

_ZERO_ADDRESS_HEX: str = "0" * 40


def _encode_call(signature: str, values: list[object]) -> bytes:
    arg_types = signature[signature.index("(") + 1 : -1].split(",")
    return function_signature_to_4byte_selector(signature) + encode(arg_types, values)


def _address(value: str) -> bytes:
    return to_canonical_address(value.lower())


def bytes32_tag(tag: str) -> bytes:
    """Return *tag* as UTF-8 bytes right-padded to 32 bytes.

    Raises
    ------
    ValueError
        If the UTF-8 encoding of *tag* is longer than 32 bytes.
    """
    raw = tag.encode("utf-8")
    if len(raw) > 32:
        raise ValueError(f"Tag {tag!r} is {len(raw)} bytes; bytes32 holds at most 32")
    return raw.ljust(32, b"\x00")


def encode_identity_owner(identity: str) -> bytes:
    return _encode_call(IDENTITY_OWNER, [_address(identity)])


def encode_change_owner(identity: str, new_owner: str) -> bytes:
    return _encode_call(CHANGE_OWNER, [_address(identity), _address(new_owner)])


def encode_add_delegate(identity: str, delegate_type: str, delegate: str, validity: int) -> bytes:
    return _encode_call(
        ADD_DELEGATE,
        [_address(identity), bytes32_tag(delegate_type), _address(delegate), validity],
    )


def encode_revoke_delegate(identity: str, delegate_type: str, delegate: str) -> bytes:
    return _encode_call(
        REVOKE_DELEGATE,
        [_address(identity), bytes32_tag(delegate_type), _address(delegate)],
    )


def encode_set_attribute(identity: str, key: str, value: bytes, validity: int) -> bytes:
    return _encode_call(
        SET_ATTRIBUTE,
        [_address(identity), bytes32_tag(key), value, validity],
    )


def decode_address_result(result: str | bytes) -> str | None:
    """Extract an address from the last 20 bytes of an ``eth_call`` result.

    Returns
    -------
    str | None
        Lowercase ``0x`` address, or ``None`` when the result is shorter than
        an address or is the zero address.
    """
    hex_result = result.hex() if isinstance(result, (bytes, bytearray)) else result
    if hex_result[:2] in ("0x", "0X"):
        hex_result = hex_result[2:]
    if len(hex_result) < 40:
        return None
    digits = hex_result[-40:].lower()
    if digits == _ZERO_ADDRESS_HEX:
        return None
    return "0x" + digits


__all__ = [
    "ADD_DELEGATE",
    "CHANGE_OWNER",
    "IDENTITY_OWNER",
    "REVOKE_DELEGATE",
    "SET_ATTRIBUTE",
    "bytes32_tag",
    "decode_address_result",
    "encode_add_delegate",
    "encode_change_owner",
    "encode_identity_owner",
    "encode_revoke_delegate",
    "encode_set_attribute",
]
