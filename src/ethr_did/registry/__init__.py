"""ethr_did.registry: EIP-1056 registry access and signer resolution.

Submodules
----------
abi
    Call data encoding for the registry methods.
rpc
    JsonRpc capability and the web3-backed Web3JsonRpc.
client
    RegistryClient and DelegateOptions.
resolver
    IdentityResolver, the signer authority used by token verification.
"""
from __future__ import annotations

from ethr_did.registry.client import DEFAULT_VALIDITY_SECONDS, DelegateOptions, RegistryClient
from ethr_did.registry.resolver import DelegateCheck, IdentityResolver
from ethr_did.registry.rpc import JsonRpc, Web3JsonRpc

__all__ = [
    "DEFAULT_VALIDITY_SECONDS",
    "DelegateCheck",
    "DelegateOptions",
    "IdentityResolver",
    "JsonRpc",
    "RegistryClient",
    "Web3JsonRpc",
]
