"""Tests for RegistryClient owner lookups and signed registry writes."""
from __future__ import annotations

import asyncio

import pytest
from eth_account import Account

from ethr_did.errors import RegistryCallError, SigningError
from ethr_did.registry import abi
from ethr_did.registry.client import DelegateOptions, RegistryClient
from ethr_did.signer import KeyPairSigner, UnsignedTransaction

REGISTRY = "0xdca7ef03e98e0dc2b855be647c39abe984fcf21b"
DELEGATE = "0x45c4ebd7ffb86891ba6f9f68452f9f0815aacd8b"


def sent_transaction(raw_transaction: str) -> tuple[str, bytes]:
    """Return ``(sender, raw bytes)`` of a broadcast raw transaction."""
    sender = Account.recover_transaction(raw_transaction)
    return sender, bytes.fromhex(raw_transaction[2:])


class RecordingSigner:
    """Signer wrapper that keeps every transaction it is asked to sign."""

    def __init__(self, inner: KeyPairSigner) -> None:
        self.inner = inner
        self.transactions: list[UnsignedTransaction] = []

    @property
    def address(self) -> str:
        return self.inner.address

    def sign_message_hash(self, message_hash: bytes):
        return self.inner.sign_message_hash(message_hash)

    def sign_transaction(self, transaction: UnsignedTransaction) -> bytes:
        self.transactions.append(transaction)
        return self.inner.sign_transaction(transaction)


# ---------------------------------------------------------------------------
# lookup_owner()
# ---------------------------------------------------------------------------


class TestLookupOwner:
    @pytest.mark.asyncio
    async def test_identity_owns_itself(self, signer: KeyPairSigner, fake_rpc) -> None:
        client = RegistryClient(fake_rpc)
        assert await client.lookup_owner(signer.did) == signer.address

    @pytest.mark.asyncio
    async def test_changed_owner(self, signer: KeyPairSigner, other_signer: KeyPairSigner, make_rpc) -> None:
        rpc = make_rpc(owners={signer.address: other_signer.address})
        client = RegistryClient(rpc)
        assert await client.lookup_owner(signer.did) == other_signer.address.lower()

    @pytest.mark.asyncio
    async def test_empty_result_means_identity(self, signer: KeyPairSigner, make_rpc) -> None:
        client = RegistryClient(make_rpc(empty_owner_result=True))
        assert await client.lookup_owner(signer.did) == signer.address

    @pytest.mark.asyncio
    async def test_zero_address_means_identity(self, signer: KeyPairSigner, make_rpc) -> None:
        rpc = make_rpc(owners={signer.address: "0x" + "00" * 20})
        assert await RegistryClient(rpc).lookup_owner(signer.address) == signer.address

    @pytest.mark.asyncio
    async def test_calls_registry_with_identity_owner(self, signer: KeyPairSigner, fake_rpc) -> None:
        client = RegistryClient(fake_rpc)
        await client.lookup_owner(signer.did)
        method, (to, data) = fake_rpc.requests[0]
        assert method == "eth_call"
        assert to == REGISTRY
        assert data == "0x" + abi.encode_identity_owner(signer.address).hex()

    @pytest.mark.asyncio
    async def test_custom_registry_address(self, signer: KeyPairSigner, fake_rpc) -> None:
        custom = "0x" + "ab" * 20
        await RegistryClient(fake_rpc, registry_address=custom).lookup_owner(signer.did)
        assert fake_rpc.requests[0][1][0] == custom

    @pytest.mark.asyncio
    async def test_read_failure(self, signer: KeyPairSigner, fake_rpc) -> None:
        fake_rpc.failures["eth_call"] = ConnectionError("node down")
        with pytest.raises(RegistryCallError) as exc_info:
            await RegistryClient(fake_rpc).lookup_owner(signer.did)
        assert exc_info.value.phase == "read"
        assert exc_info.value.method == "eth_call"
        assert isinstance(exc_info.value.cause, ConnectionError)

    @pytest.mark.asyncio
    async def test_non_ethr_identity(self, fake_rpc) -> None:
        with pytest.raises(ValueError):
            await RegistryClient(fake_rpc).lookup_owner("did:web:example.com")
        assert fake_rpc.requests == []


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


class TestWrites:
    @pytest.mark.asyncio
    async def test_add_delegate(self, signer: KeyPairSigner, fake_rpc) -> None:
        client = RegistryClient(fake_rpc, signer=signer)
        tx_hash = await client.add_delegate(signer.did, DELEGATE)
        assert tx_hash.startswith("0x") and len(tx_hash) == 66
        assert fake_rpc.methods() == [
            "eth_call",
            "eth_getTransactionCount",
            "eth_gasPrice",
            "eth_sendRawTransaction",
        ]
        sender, raw = sent_transaction(fake_rpc.sent[0])
        assert sender == signer.address
        expected = abi.encode_add_delegate(
            signer.address, "Secp256k1VerificationKey2018", DELEGATE, 86400
        )
        assert expected in raw

    @pytest.mark.asyncio
    async def test_add_delegate_options(self, signer: KeyPairSigner, fake_rpc) -> None:
        client = RegistryClient(fake_rpc, signer=signer)
        options = DelegateOptions(delegate_type="sigAuth", expires_in=60)
        await client.add_delegate(signer.did, DELEGATE, options)
        _, raw = sent_transaction(fake_rpc.sent[0])
        assert abi.encode_add_delegate(signer.address, "sigAuth", DELEGATE, 60) in raw

    @pytest.mark.asyncio
    async def test_change_owner(self, signer: KeyPairSigner, other_signer: KeyPairSigner, fake_rpc) -> None:
        client = RegistryClient(fake_rpc, signer=signer)
        await client.change_owner(signer.did, other_signer.did)
        _, raw = sent_transaction(fake_rpc.sent[0])
        assert abi.encode_change_owner(signer.address, other_signer.address) in raw

    @pytest.mark.asyncio
    async def test_revoke_delegate(self, signer: KeyPairSigner, fake_rpc) -> None:
        client = RegistryClient(fake_rpc, signer=signer)
        await client.revoke_delegate(signer.did, DELEGATE)
        _, raw = sent_transaction(fake_rpc.sent[0])
        expected = abi.encode_revoke_delegate(
            signer.address, "Secp256k1VerificationKey2018", DELEGATE
        )
        assert expected in raw

    @pytest.mark.asyncio
    async def test_set_attribute_string_value(self, signer: KeyPairSigner, fake_rpc) -> None:
        client = RegistryClient(fake_rpc, signer=signer)
        await client.set_attribute(signer.did, "did/svc/HubService", "https://hub.example", 120)
        _, raw = sent_transaction(fake_rpc.sent[0])
        expected = abi.encode_set_attribute(
            signer.address, "did/svc/HubService", b"https://hub.example", 120
        )
        assert expected in raw

    @pytest.mark.asyncio
    async def test_owner_signs_for_transferred_identity(
        self, signer: KeyPairSigner, other_signer: KeyPairSigner, make_rpc
    ) -> None:
        rpc = make_rpc(owners={signer.address: other_signer.address})
        client = RegistryClient(rpc, signer=other_signer)
        await client.add_delegate(signer.did, DELEGATE)
        sender, raw = sent_transaction(rpc.sent[0])
        assert sender == other_signer.address
        assert rpc.requests[1] == ("eth_getTransactionCount", (other_signer.address.lower(),))

    @pytest.mark.asyncio
    async def test_transaction_fields(self, signer: KeyPairSigner, make_rpc) -> None:
        rpc = make_rpc(nonce=42, gas_price=3)
        recording = RecordingSigner(signer)
        client = RegistryClient(rpc, signer=recording, gas_limit=90000, chain_id=1337)
        await client.add_delegate(signer.did, DELEGATE)
        (transaction,) = recording.transactions
        assert transaction == UnsignedTransaction(
            sender=signer.address,
            to=REGISTRY,
            nonce=42,
            gas_price=3,
            gas_limit=90000,
            data=abi.encode_add_delegate(
                signer.address, "Secp256k1VerificationKey2018", DELEGATE, 86400
            ),
            value=0,
            chain_id=1337,
        )
        sender, raw = sent_transaction(rpc.sent[0])
        assert sender == signer.address
        assert bytes.fromhex(REGISTRY[2:]) in raw


# ---------------------------------------------------------------------------
# Write failures
# ---------------------------------------------------------------------------


class TestWriteFailures:
    @pytest.mark.asyncio
    async def test_no_signer(self, signer: KeyPairSigner, fake_rpc) -> None:
        with pytest.raises(SigningError, match="No signer"):
            await RegistryClient(fake_rpc).add_delegate(signer.did, DELEGATE)
        assert fake_rpc.methods() == ["eth_call"]

    @pytest.mark.asyncio
    async def test_signer_not_owner(
        self, signer: KeyPairSigner, other_signer: KeyPairSigner, fake_rpc
    ) -> None:
        client = RegistryClient(fake_rpc, signer=other_signer)
        with pytest.raises(SigningError, match="not the current owner"):
            await client.add_delegate(signer.did, DELEGATE)
        assert fake_rpc.sent == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["eth_getTransactionCount", "eth_gasPrice"])
    async def test_nonce_or_gas_price_failure(
        self, signer: KeyPairSigner, fake_rpc, method: str
    ) -> None:
        fake_rpc.failures[method] = TimeoutError("slow node")
        with pytest.raises(RegistryCallError) as exc_info:
            await RegistryClient(fake_rpc, signer=signer).change_owner(signer.did, DELEGATE)
        assert exc_info.value.phase == "write"
        assert fake_rpc.sent == []

    @pytest.mark.asyncio
    async def test_pending_read_cancelled_when_sibling_fails(
        self, signer: KeyPairSigner, make_rpc
    ) -> None:
        cancelled = asyncio.Event()

        class StalledNonceRpc(make_rpc):
            async def get_transaction_count(self, address: str) -> int:
                try:
                    await asyncio.sleep(3600)
                except asyncio.CancelledError:
                    cancelled.set()
                    raise
                return self.nonce

        rpc = StalledNonceRpc()
        rpc.failures["eth_gasPrice"] = TimeoutError("slow node")
        with pytest.raises(RegistryCallError) as exc_info:
            await RegistryClient(rpc, signer=signer).add_delegate(signer.did, DELEGATE)
        assert isinstance(exc_info.value.cause, TimeoutError)
        await asyncio.wait_for(cancelled.wait(), timeout=1)
        assert rpc.sent == []

    @pytest.mark.asyncio
    async def test_broadcast_failure(self, signer: KeyPairSigner, fake_rpc) -> None:
        fake_rpc.failures["eth_sendRawTransaction"] = ValueError("nonce too low")
        with pytest.raises(RegistryCallError) as exc_info:
            await RegistryClient(fake_rpc, signer=signer).revoke_delegate(signer.did, DELEGATE)
        assert exc_info.value.phase == "write"
        assert exc_info.value.method == "eth_sendRawTransaction"

    @pytest.mark.asyncio
    async def test_owner_lookup_failure_is_read_phase(self, signer: KeyPairSigner, fake_rpc) -> None:
        fake_rpc.failures["eth_call"] = ConnectionError("refused")
        with pytest.raises(RegistryCallError) as exc_info:
            await RegistryClient(fake_rpc, signer=signer).set_attribute(signer.did, "k", "v")
        assert exc_info.value.phase == "read"

    @pytest.mark.asyncio
    async def test_attribute_name_too_long(self, signer: KeyPairSigner, fake_rpc) -> None:
        with pytest.raises(ValueError):
            await RegistryClient(fake_rpc, signer=signer).set_attribute(signer.did, "k" * 33, "v")
        assert fake_rpc.sent == []
