"""ethr-did: ethr DID tokens with signer recovery and EIP-1056 registry access.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import ethr_did
>>> ethr_did.__version__
'0.1.0'

Quick start
-----------
::

    from ethr_did import (
        # Identifiers
        normalize_known_did,
        # Tokens
        KeyPairSigner, create_token, verify_token,
        # Registry
        RegistryClient, IdentityResolver, Web3JsonRpc,
    )

    signer = KeyPairSigner(private_key_hex)
    token = create_token({"claim": "value"}, issuer=signer.did, signer=signer)

    registry = RegistryClient(Web3JsonRpc(rpc_url))
    payload = await verify_token(token, IdentityResolver(registry))
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from ethr_did.errors import (
    EthrDIDError,
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedSignatureError,
    MalformedTokenError,
    RegistryCallError,
    SignatureError,
    SigningError,
    TokenError,
    UnauthorizedSignerError,
)

# ------------------------------------------------------------------
# Identifiers
# ------------------------------------------------------------------
from ethr_did.did import DEFAULT_DELEGATE_TYPE, PublicKeyType, ethr_address, normalize_known_did

# ------------------------------------------------------------------
# Tokens and signatures
# ------------------------------------------------------------------
from ethr_did.jwt import (
    ES256K,
    ES256K_R,
    DecodedToken,
    JwtHeader,
    Signature,
    build_token,
    create_token,
    decode_signature,
    encode_signature,
    parse_token,
    recover_public_key,
    verify_token,
)
from ethr_did.signer import KeyPairSigner, Signer, UnsignedTransaction

# ------------------------------------------------------------------
# Registry
# ------------------------------------------------------------------
from ethr_did.config import RegistrySettings, get_settings
from ethr_did.registry import (
    DelegateOptions,
    IdentityResolver,
    JsonRpc,
    RegistryClient,
    Web3JsonRpc,
)

__all__ = [
    # version
    "__version__",
    # errors
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
    # identifiers
    "DEFAULT_DELEGATE_TYPE",
    "PublicKeyType",
    "ethr_address",
    "normalize_known_did",
    # tokens
    "DecodedToken",
    "ES256K",
    "ES256K_R",
    "JwtHeader",
    "KeyPairSigner",
    "Signature",
    "Signer",
    "UnsignedTransaction",
    "build_token",
    "create_token",
    "decode_signature",
    "encode_signature",
    "parse_token",
    "recover_public_key",
    "verify_token",
    # registry
    "DelegateOptions",
    "IdentityResolver",
    "JsonRpc",
    "RegistryClient",
    "RegistrySettings",
    "Web3JsonRpc",
    "get_settings",
]
