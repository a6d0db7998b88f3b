"""Shared fixtures and in-memory fakes for ethr-did tests."""
from __future__ import annotations

import datetime
import hashlib

import pytest

from ethr_did.signer import KeyPairSigner

REGISTRY_ADDRESS = "0xdca7ef03e98e0dc2b855be647c39abe984fcf21b"


def private_key_for(index: int) -> str:
    """Deterministic test private key number *index*."""
    return hashlib.sha256(f"super secret {index}".encode("utf-8")).hexdigest()


class FakeRpc:
    """In-memory JsonRpc that answers like an EIP-1056 registry node.

    ``owners`` maps lowercase identity addresses to owner addresses; any
    other identity owns itself, as the real contract reports.
    """

    def __init__(
        self,
        owners: dict[str, str] | None = None,
        nonce: int = 7,
        gas_price: int = 20_000_000_000,
        empty_owner_result: bool = False,
    ) -> None:
        self.owners = {k.lower(): v for k, v in (owners or {}).items()}
        self.nonce = nonce
        self.gas_price = gas_price
        self.empty_owner_result = empty_owner_result
        self.failures: dict[str, Exception] = {}
        self.requests: list[tuple[str, tuple[object, ...]]] = []
        self.sent: list[str] = []

    def _record(self, method: str, *args: object) -> None:
        self.requests.append((method, args))
        if method in self.failures:
            raise self.failures[method]

    async def call(self, to: str, data: str) -> str:
        self._record("eth_call", to, data)
        if self.empty_owner_result:
            return "0x"
        identity = "0x" + data[-40:]
        owner = self.owners.get(identity.lower(), identity)
        return "0x" + "0" * 24 + owner[2:].lower()

    async def get_transaction_count(self, address: str) -> int:
        self._record("eth_getTransactionCount", address)
        return self.nonce

    async def get_gas_price(self) -> int:
        self._record("eth_gasPrice")
        return self.gas_price

    async def send_raw_transaction(self, raw_transaction: str) -> str:
        self._record("eth_sendRawTransaction", raw_transaction)
        self.sent.append(raw_transaction)
        return "0x" + hashlib.sha256(raw_transaction.encode("ascii")).hexdigest()

    def methods(self) -> list[str]:
        return [method for method, _ in self.requests]


class StaticResolver:
    """SignerAuthority that authorizes a fixed owner per identity."""

    def __init__(self, owners: dict[str, str]) -> None:
        self.owners = {k: v.lower() for k, v in owners.items()}
        self.queries: list[tuple[str, str, datetime.datetime | None]] = []

    async def is_authorized_signer(
        self,
        identity: str,
        candidate_address: str,
        at_time: datetime.datetime | None = None,
    ) -> bool:
        self.queries.append((identity, candidate_address, at_time))
        return self.owners.get(identity) == candidate_address.lower()


@pytest.fixture()
def make_private_key():
    """Return the deterministic key factory, for tests that need many keys."""
    return private_key_for


@pytest.fixture()
def private_key() -> str:
    return "0x" + private_key_for(0)


@pytest.fixture()
def signer(private_key: str) -> KeyPairSigner:
    return KeyPairSigner(private_key)


@pytest.fixture()
def other_signer() -> KeyPairSigner:
    return KeyPairSigner(private_key_for(1))


@pytest.fixture()
def fake_rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture()
def make_rpc() -> type[FakeRpc]:
    return FakeRpc


@pytest.fixture()
def make_resolver() -> type[StaticResolver]:
    return StaticResolver
