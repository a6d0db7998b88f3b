"""Known public key type tags used by ethr DIDs.

The registry stores delegate types as ``bytes32`` tags; these are the tag
strings in use. See https://github.com/uport-project/specs/blob/develop/pki/diddocument.md
"""
from __future__ import annotations

from enum import Enum


class PublicKeyType(str, Enum):
    """Public key / delegate type tags."""

    #: Default JWT signing key type; the default delegate type.
    SECP256K1_VERIFICATION_KEY_2018 = "Secp256k1VerificationKey2018"
    #: References a Secp256k1VerificationKey2018 in an authentication entry.
    SECP256K1_SIGNATURE_AUTHENTICATION_2018 = "Secp256k1SignatureAuthentication2018"
    #: Treated as Secp256k1VerificationKey2018.
    SECP256K1_SIGNATURE_VERIFICATION_KEY_2018 = "Secp256k1SignatureVerificationKey2018"
    #: Treated as Secp256k1VerificationKey2018.
    ECDSA_PUBLIC_KEY_SECP256K1 = "EcdsaPublicKeySecp256k1"
    #: Encryption key.
    CURVE25519_ENCRYPTION_PUBLIC_KEY = "Curve25519EncryptionPublicKey"


DEFAULT_DELEGATE_TYPE: str = PublicKeyType.SECP256K1_VERIFICATION_KEY_2018.value

__all__ = ["DEFAULT_DELEGATE_TYPE", "PublicKeyType"]
