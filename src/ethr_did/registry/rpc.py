"""JSON-RPC capability consumed by the registry client.

The registry client needs exactly four node methods (``eth_call``,
``eth_getTransactionCount``, ``eth_gasPrice``, ``eth_sendRawTransaction``).
:class:`JsonRpc` is that surface; :class:`Web3JsonRpc` implements it over
``web3.py``'s asynchronous HTTP provider. Timeouts and connection handling
belong to the transport; failures propagate as whatever the transport raises.
"""
from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.providers.async_base import AsyncBaseProvider

logger = logging.getLogger(__name__)


@runtime_checkable
class JsonRpc(Protocol):
    """Asynchronous subset of the Ethereum JSON-RPC API."""

    async def call(self, to: str, data: str) -> str:
        """``eth_call`` against the latest block; returns ``0x`` hex."""
        ...

    async def get_transaction_count(self, address: str) -> int:
        """``eth_getTransactionCount`` including pending transactions."""
        ...

    async def get_gas_price(self) -> int:
        """``eth_gasPrice`` in wei."""
        ...

    async def send_raw_transaction(self, raw_transaction: str) -> str:
        """``eth_sendRawTransaction``; returns the ``0x`` transaction hash."""
        ...


class Web3JsonRpc:
    """:class:`JsonRpc` over ``web3.AsyncWeb3``.

    Parameters
    ----------
    rpc_url:
        HTTP(S) endpoint of an Ethereum node.
    request_timeout:
        Per-request timeout in seconds.
    provider:
        Ready-made async provider to use instead of an HTTP provider for
        *rpc_url*, for example a websocket provider.
    """

    def __init__(
        self,
        rpc_url: str,
        request_timeout: float = 30.0,
        provider: AsyncBaseProvider | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        if provider is None:
            provider = AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout})
        self._w3 = AsyncWeb3(provider)

    async def call(self, to: str, data: str) -> str:
        logger.debug("eth_call to=%s", to)
        result = await self._w3.eth.call(
            {"to": Web3.to_checksum_address(to), "data": data}
        )
        return Web3.to_hex(result)

    async def get_transaction_count(self, address: str) -> int:
        return await self._w3.eth.get_transaction_count(
            Web3.to_checksum_address(address), "pending"
        )

    async def get_gas_price(self) -> int:
        return await self._w3.eth.gas_price

    async def send_raw_transaction(self, raw_transaction: str) -> str:
        tx_hash = await self._w3.eth.send_raw_transaction(raw_transaction)
        return Web3.to_hex(tx_hash)

    def __repr__(self) -> str:
        return f"Web3JsonRpc(rpc_url={self.rpc_url!r})"


__all__ = ["JsonRpc", "Web3JsonRpc"]
