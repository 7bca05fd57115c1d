"""RSA key generation, loading, public-key derivation, and JWK conversion."""

import base64
import hashlib
import json
import logging

import uuid_utils
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from jwt.algorithms import RSAAlgorithm

from jwt_service.core.errors import ConfigError
from jwt_service.core.settings import ServiceSettings
from jwt_service.crypto.types import (
    JWKEntry,
    JWKSResponse,
    SigningIdentity,
    SigningKeyData,
)

logger = logging.getLogger(__name__)

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537
FINGERPRINT_LENGTH = 16
PRIVATE_JWK_MEMBERS = ("d", "p", "q", "dp", "dq", "qi", "oth")


def generate_private_key(key_size: int = RSA_KEY_SIZE) -> RSAPrivateKey:
    """Generate a new RSA private key."""
    return rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=key_size,
    )


def generate_rsa_keypair(key_size: int = RSA_KEY_SIZE) -> SigningKeyData:
    """Generate a new RSA keypair for JWT signing."""
    private_key = generate_private_key(key_size)
    kid = str(uuid_utils.uuid7())
    return SigningKeyData(
        kid=kid,
        private_key_pem=private_key_to_pem(private_key),
        public_key_pem=public_key_to_pem(private_key.public_key()),
    )


def private_key_to_pem(private_key: RSAPrivateKey) -> str:
    """Serialize a private key as unencrypted PKCS#8 PEM."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def public_key_to_pem(public_key: RSAPublicKey) -> str:
    """Serialize a public key as SPKI PEM."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


def load_private_key(pem: str) -> RSAPrivateKey:
    """Parse a PEM private key, rejecting anything that is not RSA."""
    try:
        loaded = serialization.load_pem_private_key(pem.encode(), password=None)
    except (ValueError, TypeError) as exc:
        raise ConfigError("private key could not be parsed") from exc
    if not isinstance(loaded, RSAPrivateKey):
        raise ConfigError("private key must be an RSA key")
    return loaded


def load_public_key(pem: str) -> RSAPublicKey:
    """Parse a PEM public key, rejecting anything that is not RSA."""
    try:
        loaded = serialization.load_pem_public_key(pem.encode())
    except (ValueError, TypeError) as exc:
        raise ConfigError("public key could not be parsed") from exc
    if not isinstance(loaded, RSAPublicKey):
        raise ConfigError("public key must be an RSA key")
    return loaded


def derive_public_key(private_key: RSAPrivateKey) -> RSAPublicKey:
    """Export the private key as a JWK, drop private members, re-import."""
    jwk = RSAAlgorithm.to_jwk(private_key, as_dict=True)
    for member in PRIVATE_JWK_MEMBERS:
        jwk.pop(member, None)
    public_key = RSAAlgorithm.from_jwk(jwk)
    if not isinstance(public_key, RSAPublicKey):
        raise ConfigError("derived key is not a public key")
    return public_key


def jwk_thumbprint(public_key: RSAPublicKey) -> str:
    """RFC 7638 SHA-256 thumbprint, base64url without padding."""
    numbers = public_key.public_numbers()
    canonical = json.dumps(
        {"e": _int_to_base64url(numbers.e), "kty": "RSA", "n": _int_to_base64url(numbers.n)},
        separators=(",", ":"),
        sort_keys=True,
    )
    digest = hashlib.sha256(canonical.encode()).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode()


def public_key_fingerprint(public_key: RSAPublicKey) -> str:
    """Truncated SHA-256 hex of the SPKI DER encoding, for diagnostics."""
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return hashlib.sha256(der).hexdigest()[:FINGERPRINT_LENGTH]


def _public_keys_match(left: RSAPublicKey, right: RSAPublicKey) -> bool:
    return left.public_numbers() == right.public_numbers()


def _resolve_verify_only(settings: ServiceSettings) -> SigningIdentity:
    if settings.public_key is not None:
        public_key = load_public_key(settings.public_key)
    elif settings.private_key is not None:
        # A private key left in the environment is only used to recover its public half.
        public_key = derive_public_key(load_private_key(settings.private_key))
    else:
        raise ConfigError("verify-only mode requires PUBLIC_KEY")
    return SigningIdentity(
        key_id=settings.key_id or jwk_thumbprint(public_key),
        public_key=public_key,
        source="verify-only",
    )


def _resolve_configured(settings: ServiceSettings, private_pem: str) -> SigningIdentity:
    private_key = load_private_key(private_pem)
    derived = derive_public_key(private_key)
    if settings.public_key is not None:
        public_key = load_public_key(settings.public_key)
        if not _public_keys_match(public_key, derived):
            raise ConfigError("PUBLIC_KEY does not match PRIVATE_KEY")
    else:
        public_key = derived
    return SigningIdentity(
        key_id=settings.key_id or jwk_thumbprint(public_key),
        private_key=private_key,
        public_key=public_key,
        source="configured",
    )


def _resolve_ephemeral(settings: ServiceSettings) -> SigningIdentity:
    if settings.public_key is not None:
        raise ConfigError(
            "PUBLIC_KEY is set without PRIVATE_KEY; set VERIFY_ONLY or add PRIVATE_KEY"
        )
    private_key = generate_private_key()
    logger.warning(
        "PRIVATE_KEY not set; generated an ephemeral signing key. "
        "Tokens will not verify after a restart. Use only for local development."
    )
    return SigningIdentity(
        key_id=settings.key_id or str(uuid_utils.uuid7()),
        private_key=private_key,
        public_key=derive_public_key(private_key),
        source="ephemeral",
    )


def resolve_signing_identity(settings: ServiceSettings) -> SigningIdentity:
    """Load or generate the signing identity described by settings.

    Raises ConfigError for unparsable or inconsistent key material.
    """
    if settings.verify_only:
        identity = _resolve_verify_only(settings)
    elif settings.private_key is not None:
        identity = _resolve_configured(settings, settings.private_key)
    else:
        identity = _resolve_ephemeral(settings)
    logger.info(
        "Signing identity resolved: kid=%s source=%s fingerprint=%s can_sign=%s",
        identity.key_id,
        identity.source,
        public_key_fingerprint(identity.public_key),
        identity.can_sign,
    )
    return identity


def _int_to_base64url(value: int) -> str:
    """Encode an integer as base64url without padding."""
    byte_length = (value.bit_length() + 7) // 8
    raw = value.to_bytes(byte_length, byteorder="big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def public_key_to_jwk_entry(public_key: RSAPublicKey, kid: str) -> JWKEntry:
    """Convert a public key to JWK format."""
    numbers = public_key.public_numbers()
    return JWKEntry(
        kid=kid,
        n=_int_to_base64url(numbers.n),
        e=_int_to_base64url(numbers.e),
    )


def signing_identity_to_jwks(identity: SigningIdentity) -> JWKSResponse:
    """Publish the identity's public key as a single-entry key set."""
    return JWKSResponse(
        keys=[public_key_to_jwk_entry(identity.public_key, identity.key_id)]
    )
