"""ethr_did.jwt: signer-recovering ES256K / ES256K-R tokens.

Submodules
----------
signature
    Signature, sign, recover_public_key, encode/decode_signature.
header
    JwtHeader.
values
    JsonValue model and compact JSON encoding.
token
    build_token, create_token, parse_token, verify_token.

Quick start
-----------
::

    from ethr_did.jwt import create_token, verify_token
    from ethr_did.signer import KeyPairSigner

    signer = KeyPairSigner(private_key_hex)
    token = create_token({"claim": "value"}, issuer=signer.did, signer=signer)
    payload = await verify_token(token, resolver)
"""
from __future__ import annotations

from ethr_did.jwt.header import JwtHeader
from ethr_did.jwt.signature import (
    ES256K,
    ES256K_R,
    Signature,
    decode_signature,
    encode_signature,
    public_key_to_address,
    recover_public_key,
    recovery_candidates,
    sign,
)
from ethr_did.jwt.token import (
    DecodedToken,
    SignerAuthority,
    build_token,
    create_token,
    parse_token,
    verify_token,
)
from ethr_did.jwt.values import JsonObject, JsonValue, decode_json, encode_json

__all__ = [
    "ES256K",
    "ES256K_R",
    "DecodedToken",
    "JsonObject",
    "JsonValue",
    "JwtHeader",
    "Signature",
    "SignerAuthority",
    "build_token",
    "create_token",
    "decode_json",
    "decode_signature",
    "encode_json",
    "encode_signature",
    "parse_token",
    "public_key_to_address",
    "recover_public_key",
    "recovery_candidates",
    "sign",
    "verify_token",
]
