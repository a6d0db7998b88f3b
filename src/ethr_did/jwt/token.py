"""Signed identity tokens with signer recovery (ES256K / ES256K-R).

Token format
------------
The token is a dot-separated string:
    base64url(header).base64url(payload).base64url(signature)

- header: ``{"typ": "JWT", "alg": "ES256K-R"}`` (or ``"ES256K"``)
- payload: compact JSON object; the ``iss`` claim names the signing identity
- signature: secp256k1 signature over SHA-256(header.payload), see
  :mod:`ethr_did.jwt.signature`

Base64url segments carry no ``=`` padding; padded segments are rejected.

Unlike a classic JWT there is no key id: verification recovers the signer's
public key from the signature, derives its address and asks a resolver
whether that address may sign for the ``iss`` identity.
"""
from __future__ import annotations

import base64
import binascii
import datetime
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Protocol

from pydantic import ValidationError

from ethr_did.did.normalize import normalize_known_did
from ethr_did.errors import (
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedSignatureError,
    MalformedTokenError,
    UnauthorizedSignerError,
)
from ethr_did.jwt.header import JwtHeader
from ethr_did.jwt.signature import (
    ES256K_R,
    Signature,
    decode_signature,
    encode_signature,
    public_key_to_address,
    recover_public_key,
    recovery_candidates,
    sign,
)
from ethr_did.jwt.values import JsonObject, decode_json, encode_json, to_json_value

if TYPE_CHECKING:
    from ethr_did.signer import Signer

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN: int = 300

_B64URL_PATTERN = re.compile(r"[A-Za-z0-9_-]*")


class SignerAuthority(Protocol):
    """Anything that can decide whether an address may sign for an identity.

    :class:`~ethr_did.registry.resolver.IdentityResolver` is the registry
    backed implementation.
    """

    async def is_authorized_signer(
        self,
        identity: str,
        candidate_address: str,
        at_time: datetime.datetime | None = None,
    ) -> bool:
        ...


@dataclass(frozen=True)
class DecodedToken:
    """The parsed parts of a token.

    Parameters
    ----------
    header:
        The validated header.
    payload:
        The decoded payload object.
    signature:
        The decoded signature.
    signing_input:
        ASCII bytes of ``header.payload`` exactly as they appeared in the token.
    """

    header: JwtHeader
    payload: JsonObject
    signature: Signature
    signing_input: bytes


# ---------------------------------------------------------------------------
# base64url
# ---------------------------------------------------------------------------


def b64url_encode(data: bytes) -> str:
    """Base64url-encode *data* without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str, part: str = "segment") -> bytes:
    """Decode an unpadded base64url *segment*.

    Raises
    ------
    MalformedTokenError
        If *segment* contains padding, characters outside the base64url
        alphabet, has an impossible length, or is not the canonical
        encoding of its bytes.
    """
    if "=" in segment:
        raise MalformedTokenError(f"{part} contains base64 padding")
    if not _B64URL_PATTERN.fullmatch(segment):
        raise MalformedTokenError(f"{part} contains non-base64url characters")
    try:
        data = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError) as exc:
        raise MalformedTokenError(f"{part} is not valid base64url: {exc}") from exc
    # unused trailing bits must be zero
    if b64url_encode(data) != segment:
        raise MalformedTokenError(f"{part} is not canonical base64url")
    return data


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


def build_token(payload: Mapping[str, Any], signer: Signer, alg: str = ES256K_R) -> str:
    """Build and sign a token for *payload*.

    Parameters
    ----------
    payload:
        JSON-representable mapping. Claims are encoded as given; use
        :func:`create_token` to add ``iss``/``iat``/``exp``.
    signer:
        Signing capability for the issuing key.
    alg:
        ``"ES256K-R"`` (default) or ``"ES256K"``.

    Returns
    -------
    str
        The ``header.payload.signature`` token string.

    Raises
    ------
    TypeError
        If *payload* is not a JSON object.
    SigningError
        If the signer fails.
    """
    header = JwtHeader(alg=alg)
    claims = to_json_value(payload)
    if not isinstance(claims, dict):
        raise TypeError(f"Token payload must be a JSON object, got {type(payload).__name__}")

    signing_input = f"{b64url_encode(encode_json(header.to_dict()))}.{b64url_encode(encode_json(claims))}"
    signature = sign(signer, signing_input.encode("ascii"))
    return f"{signing_input}.{b64url_encode(encode_signature(signature, alg))}"


def create_token(
    payload: Mapping[str, Any],
    issuer: str,
    signer: Signer,
    expires_in: int | None = DEFAULT_EXPIRES_IN,
    alg: str = ES256K_R,
    now: datetime.datetime | None = None,
) -> str:
    """Build a token with standard ``iat``, ``exp`` and ``iss`` claims.

    Parameters
    ----------
    payload:
        Application claims. An ``iss`` claim in *payload* is overridden.
    issuer:
        Issuing identity; normalized with
        :func:`~ethr_did.did.normalize.normalize_known_did`.
    signer:
        Signing capability for the issuer's key.
    expires_in:
        Lifetime in seconds; ``None`` omits ``exp``.
    alg:
        Signature algorithm.
    now:
        Issue time; defaults to the current UTC time.

    Returns
    -------
    str
        The signed token.
    """
    issued_at = int((now or datetime.datetime.now(datetime.timezone.utc)).timestamp())
    claims: dict[str, Any] = {"iat": issued_at}
    if expires_in is not None:
        claims["exp"] = issued_at + expires_in
    claims.update(payload)
    claims["iss"] = normalize_known_did(issuer)
    return build_token(claims, signer, alg=alg)


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------


def _decode_object(segment: str, part: str) -> JsonObject:
    raw = b64url_decode(segment, part)
    try:
        value = decode_json(raw)
    except ValueError as exc:
        raise MalformedTokenError(f"{part} is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise MalformedTokenError(f"{part} must be a JSON object")
    return value


def parse_token(token: str) -> DecodedToken:
    """Split and decode *token* without verifying it.

    Raises
    ------
    MalformedTokenError
        On a segment count other than 3, bad base64url or JSON, an
        unsupported ``alg``, or a signature of the wrong size.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedTokenError(f"Expected 3 dot-separated parts, got {len(parts)}")

    header_b64, payload_b64, signature_b64 = parts
    header_dict = _decode_object(header_b64, "header")
    try:
        header = JwtHeader.model_validate(header_dict)
    except ValidationError as exc:
        raise MalformedTokenError(f"invalid header: {exc.errors()[0]['msg']}") from exc

    payload = _decode_object(payload_b64, "payload")
    try:
        signature = decode_signature(b64url_decode(signature_b64, "signature"), header.alg)
    except MalformedSignatureError as exc:
        raise MalformedTokenError(str(exc)) from exc

    return DecodedToken(
        header=header,
        payload=payload,
        signature=signature,
        signing_input=f"{header_b64}.{payload_b64}".encode("ascii"),
    )


# ---------------------------------------------------------------------------
# Verify
# ---------------------------------------------------------------------------


def recover_signer_addresses(decoded: DecodedToken) -> list[str]:
    """Return the candidate signer addresses of a decoded token.

    ES256K-R tokens yield exactly one address. ES256K tokens carry no
    recovery id and usually yield two; the resolver picks between them.

    Raises
    ------
    InvalidSignatureError
        If no public key can be recovered.
    """
    if decoded.signature.recovery_id is not None:
        keys = [recover_public_key(decoded.signing_input, decoded.signature)]
    else:
        keys = recovery_candidates(decoded.signing_input, decoded.signature)
        if not keys:
            raise InvalidSignatureError("no recovery id yields a valid public key")
    return [public_key_to_address(key) for key in keys]


async def verify_token(
    token: str,
    resolver: SignerAuthority,
    now: datetime.datetime | None = None,
) -> JsonObject:
    """Verify *token* and return its payload.

    Parameters
    ----------
    token:
        Token string as produced by :func:`build_token`.
    resolver:
        Decides whether a recovered address may sign for the ``iss`` identity.
    now:
        Verification time; defaults to the current UTC time.

    Returns
    -------
    dict
        The token payload.

    Raises
    ------
    MalformedTokenError
        When the token cannot be parsed or has no usable ``iss``/``exp``.
    InvalidSignatureError
        When no signer can be recovered.
    UnauthorizedSignerError
        When no recovered address is authorized for the issuer.
    ExpiredTokenError
        When the ``exp`` claim is at or before *now*.
    """
    decoded = parse_token(token)
    issuer = decoded.payload.get("iss")
    if not isinstance(issuer, str) or not issuer:
        raise MalformedTokenError("payload has no 'iss' claim")
    identity = normalize_known_did(issuer)
    at_time = now or datetime.datetime.now(datetime.timezone.utc)

    addresses = recover_signer_addresses(decoded)
    for address in addresses:
        if await resolver.is_authorized_signer(identity, address, at_time):
            logger.debug("Token signer %s authorized for %s", address, identity)
            break
    else:
        logger.info("Rejected token for %s: signer %s not authorized", identity, addresses)
        raise UnauthorizedSignerError(identity, addresses)

    expiry = decoded.payload.get("exp")
    if expiry is not None:
        if isinstance(expiry, bool) or not isinstance(expiry, (int, float)):
            raise MalformedTokenError("'exp' claim must be a number")
        if expiry <= at_time.timestamp():
            raise ExpiredTokenError(identity, expiry)

    return decoded.payload


__all__ = [
    "DEFAULT_EXPIRES_IN",
    "DecodedToken",
    "SignerAuthority",
    "b64url_decode",
    "b64url_encode",
    "build_token",
    "create_token",
    "parse_token",
    "recover_signer_addresses",
    "verify_token",
]
