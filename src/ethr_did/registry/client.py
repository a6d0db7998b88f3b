"""RegistryClient: reads and writes ethr identity records on EIP-1056.

See https://github.com/uport-project/ethr-did-registry for the contract.

Every write is a two-phase protocol:

1. **read**: ``identityOwner(identity)`` via ``eth_call`` to find who may
   change the record. The contract answers with the identity itself when no
   owner change was ever made.
2. **write**: fetch nonce and gas price concurrently, build a legacy
   transaction to the registry with a fixed gas limit, sign it locally with
   the owner's signer and broadcast it.

Nothing is cached between calls and nothing is retried: each operation does
its own fresh owner lookup, and transport failures surface as
:class:`~ethr_did.errors.RegistryCallError` tagged with the phase.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ethr_did.config import DEFAULT_GAS_LIMIT, DEFAULT_REGISTRY_ADDRESS, RegistrySettings, get_settings
from ethr_did.did.key_types import DEFAULT_DELEGATE_TYPE
from ethr_did.did.normalize import ethr_address
from ethr_did.errors import RegistryCallError, SigningError
from ethr_did.registry import abi
from ethr_did.registry.rpc import JsonRpc, Web3JsonRpc
from ethr_did.signer import Signer, UnsignedTransaction

logger = logging.getLogger(__name__)

DEFAULT_VALIDITY_SECONDS: int = 86400


@dataclass(frozen=True)
class DelegateOptions:
    """Options for :meth:`RegistryClient.add_delegate`.

    Parameters
    ----------
    delegate_type:
        Key type tag stored as the delegate's ``bytes32`` type.
    expires_in:
        Validity of the delegation in seconds.
    """

    delegate_type: str = DEFAULT_DELEGATE_TYPE
    expires_in: int = DEFAULT_VALIDITY_SECONDS


class RegistryClient:
    """Asynchronous client for the EIP-1056 ``EthereumDIDRegistry``.

    Parameters
    ----------
    rpc:
        JSON-RPC capability, e.g. :class:`~ethr_did.registry.rpc.Web3JsonRpc`.
    registry_address:
        Address of the registry contract.
    signer:
        Signer of the identity's current owner. Only needed for writes.
    gas_limit:
        Fixed gas limit for every registry transaction.
    chain_id:
        EIP-155 chain id for transaction signing.

    Example
    -------
    ::

        client = RegistryClient(Web3JsonRpc(url), signer=KeyPairSigner(key))
        owner = await client.lookup_owner("did:ethr:0xf3be...0d74")
        tx_hash = await client.add_delegate(owner, delegate_address)
    """

    def __init__(
        self,
        rpc: JsonRpc,
        registry_address: str = DEFAULT_REGISTRY_ADDRESS,
        signer: Signer | None = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        chain_id: int | None = None,
    ) -> None:
        self._rpc = rpc
        self.registry_address = registry_address
        self._signer = signer
        self.gas_limit = gas_limit
        self.chain_id = chain_id

    @classmethod
    def from_settings(
        cls,
        settings: RegistrySettings | None = None,
        signer: Signer | None = None,
    ) -> "RegistryClient":
        """Build a client over :class:`Web3JsonRpc` from *settings*."""
        settings = settings or get_settings()
        return cls(
            Web3JsonRpc(settings.rpc_url, request_timeout=settings.request_timeout),
            registry_address=settings.registry_address,
            signer=signer,
            gas_limit=settings.gas_limit,
            chain_id=settings.chain_id,
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def lookup_owner(self, identity: str) -> str:
        """Return the current owner address of *identity*.

        Parameters
        ----------
        identity:
            ``did:ethr`` DID or address.

        Returns
        -------
        str
            The owner as a ``0x`` address. When the registry holds no owner
            record the identity's own address is returned as given.

        Raises
        ------
        ValueError
            If *identity* is not an ethr identity.
        RegistryCallError
            With ``phase="read"`` when the ``eth_call`` fails.
        """
        address = ethr_address(identity)
        call_data = "0x" + abi.encode_identity_owner(address).hex()
        try:
            result = await self._rpc.call(self.registry_address, call_data)
        except Exception as exc:
            raise RegistryCallError("read", exc, method="eth_call") from exc

        owner = abi.decode_address_result(result)
        if owner is None or owner == address.lower():
            return address
        return owner

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def change_owner(self, identity: str, new_owner: str) -> str:
        """Transfer ownership of *identity* to *new_owner*; returns the tx hash."""
        address = ethr_address(identity)
        owner = await self.lookup_owner(address)
        call_data = abi.encode_change_owner(address, ethr_address(new_owner))
        return await self._sign_and_send(owner, call_data)

    async def add_delegate(
        self,
        identity: str,
        delegate: str,
        options: DelegateOptions = DelegateOptions(),
    ) -> str:
        """Add *delegate* for ``options.expires_in`` seconds; returns the tx hash."""
        address = ethr_address(identity)
        owner = await self.lookup_owner(address)
        call_data = abi.encode_add_delegate(
            address, options.delegate_type, ethr_address(delegate), options.expires_in
        )
        return await self._sign_and_send(owner, call_data)

    async def revoke_delegate(
        self,
        identity: str,
        delegate: str,
        delegate_type: str = DEFAULT_DELEGATE_TYPE,
    ) -> str:
        """Revoke *delegate* of *delegate_type*; returns the tx hash."""
        address = ethr_address(identity)
        owner = await self.lookup_owner(address)
        call_data = abi.encode_revoke_delegate(address, delegate_type, ethr_address(delegate))
        return await self._sign_and_send(owner, call_data)

    async def set_attribute(
        self,
        identity: str,
        key: str,
        value: str | bytes,
        expires_in: int = DEFAULT_VALIDITY_SECONDS,
    ) -> str:
        """Set attribute *key* to *value* for *expires_in* seconds; returns the tx hash.

        String values are stored as their UTF-8 bytes.
        """
        address = ethr_address(identity)
        owner = await self.lookup_owner(address)
        raw_value = value.encode("utf-8") if isinstance(value, str) else value
        call_data = abi.encode_set_attribute(address, key, raw_value, expires_in)
        return await self._sign_and_send(owner, call_data)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _signer_for(self, owner: str) -> Signer:
        if self._signer is None:
            raise SigningError("No signer configured; registry writes need the owner's signer")
        if self._signer.address.lower() != owner.lower():
            raise SigningError(
                f"Signer {self._signer.address} is not the current owner {owner}"
            )
        return self._signer

    async def _sign_and_send(self, owner: str, call_data: bytes) -> str:
        signer = self._signer_for(owner)

        reads = (
            asyncio.ensure_future(self._rpc.get_transaction_count(owner)),
            asyncio.ensure_future(self._rpc.get_gas_price()),
        )
        try:
            nonce, gas_price = await asyncio.gather(*reads)
        except Exception as exc:
            for read in reads:
                read.cancel()
            raise RegistryCallError(
                "write", exc, method="eth_getTransactionCount/eth_gasPrice"
            ) from exc

        transaction = UnsignedTransaction(
            sender=owner,
            to=self.registry_address,
            nonce=nonce,
            gas_price=gas_price,
            gas_limit=self.gas_limit,
            data=call_data,
            value=0,
            chain_id=self.chain_id,
        )
        try:
            raw_transaction = signer.sign_transaction(transaction)
        except SigningError:
            raise
        except Exception as exc:
            raise SigningError(f"Signer failed to sign registry transaction: {exc}") from exc

        try:
            tx_hash = await self._rpc.send_raw_transaction("0x" + raw_transaction.hex())
        except Exception as exc:
            raise RegistryCallError("write", exc, method="eth_sendRawTransaction") from exc

        logger.info(
            "Registry transaction %s sent by %s (nonce=%d, gas_price=%d)",
            tx_hash,
            owner,
            nonce,
            gas_price,
        )
        return tx_hash


__all__ = ["DEFAULT_VALIDITY_SECONDS", "DelegateOptions", "RegistryClient"]
