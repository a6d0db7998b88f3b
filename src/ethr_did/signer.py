"""Signing capabilities: the key-holding side of tokens and registry writes.

Two operations are needed by the rest of the package:

- ``sign_message_hash`` produces a recoverable secp256k1 signature over a
  32-byte digest (used for ES256K / ES256K-R tokens).
- ``sign_transaction`` turns an :class:`UnsignedTransaction` into raw signed
  transaction bytes ready for ``eth_sendRawTransaction``.

:class:`Signer` is the protocol; :class:`KeyPairSigner` is the in-process
implementation backed by ``eth_keys`` and ``eth_account``. Hardware wallets or
remote signers only need to implement the protocol.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from eth_account import Account
from eth_keys import keys
from eth_keys.exceptions import ValidationError
from eth_utils import to_checksum_address

from ethr_did.did.normalize import normalize_known_did
from ethr_did.errors import SigningError
from ethr_did.jwt.signature import Signature


@dataclass(frozen=True)
class UnsignedTransaction:
    """A legacy (gas price) transaction awaiting signature.

    Parameters
    ----------
    sender:
        The ``from`` address; must be the signer's own address.
    to:
        Destination contract address.
    nonce:
        Sender account nonce.
    gas_price:
        Gas price in wei.
    gas_limit:
        Gas limit.
    data:
        ABI-encoded call data.
    value:
        Wei transferred with the call.
    chain_id:
        EIP-155 chain id; ``None`` signs without replay protection.
    """

    sender: str
    to: str
    nonce: int
    gas_price: int
    gas_limit: int
    data: bytes
    value: int = 0
    chain_id: int | None = None

    def to_dict(self) -> dict[str, object]:
        """Return the transaction fields in ``eth_account`` format (no ``from``)."""
        tx: dict[str, object] = {
            "nonce": self.nonce,
            "gasPrice": self.gas_price,
            "gas": self.gas_limit,
            "to": to_checksum_address(self.to),
            "value": self.value,
            "data": "0x" + self.data.hex(),
        }
        if self.chain_id is not None:
            tx["chainId"] = self.chain_id
        return tx


@runtime_checkable
class Signer(Protocol):
    """Capability that signs digests and transactions for one address."""

    @property
    def address(self) -> str:
        """The ``0x`` address controlled by this signer."""
        ...

    def sign_message_hash(self, message_hash: bytes) -> Signature:
        """Sign a 32-byte digest, returning a signature with recovery id."""
        ...

    def sign_transaction(self, transaction: UnsignedTransaction) -> bytes:
        """Sign *transaction* and return the raw encoded bytes."""
        ...


def _private_key_bytes(private_key: str | bytes) -> bytes:
    if isinstance(private_key, str):
        hex_digits = private_key[2:] if private_key[:2] in ("0x", "0X") else private_key
        try:
            private_key = bytes.fromhex(hex_digits)
        except ValueError as exc:
            raise ValueError("Private key must be hex encoded") from exc
    if len(private_key) != 32:
        raise ValueError(f"Private key must be 32 bytes, got {len(private_key)}")
    return private_key


class KeyPairSigner:
    """In-process signer holding a raw secp256k1 private key.

    Parameters
    ----------
    private_key:
        32-byte private key as bytes or hex string (``0x`` optional).

    Example
    -------
    ::

        signer = KeyPairSigner("0x" + "11" * 32)
        print(signer.did)  # did:ethr:0x...
    """

    def __init__(self, private_key: str | bytes) -> None:
        key_bytes = _private_key_bytes(private_key)
        try:
            self._private_key = keys.PrivateKey(key_bytes)
        except ValidationError as exc:
            raise ValueError(f"Invalid secp256k1 private key: {exc}") from exc
        self._account = Account.from_key(key_bytes)

    @property
    def address(self) -> str:
        """Checksummed address of this key."""
        return self._account.address

    @property
    def did(self) -> str:
        """``did:ethr`` identity of this key."""
        return normalize_known_did(self.address)

    @property
    def public_key(self) -> bytes:
        """64-byte uncompressed public key (no ``0x04`` prefix)."""
        return self._private_key.public_key.to_bytes()

    def sign_message_hash(self, message_hash: bytes) -> Signature:
        try:
            signed = self._private_key.sign_msg_hash(message_hash)
        except ValidationError as exc:
            raise SigningError(f"Cannot sign digest: {exc}") from exc
        return Signature(r=signed.r, s=signed.s, recovery_id=signed.v)

    def sign_transaction(self, transaction: UnsignedTransaction) -> bytes:
        if transaction.sender.lower() != self.address.lower():
            raise SigningError(
                f"Signer {self.address} cannot sign a transaction from {transaction.sender}"
            )
        try:
            signed = self._account.sign_transaction(transaction.to_dict())
        except (TypeError, ValueError) as exc:
            raise SigningError(f"Cannot sign transaction: {exc}") from exc
        return bytes(signed.raw_transaction)

    def __repr__(self) -> str:
        return f"KeyPairSigner(address={self.address!r})"


__all__ = ["KeyPairSigner", "Signer", "UnsignedTransaction"]
