"""Type definitions for signing identities and JWKS publication."""

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from pydantic import BaseModel, ConfigDict

SIGNING_ALGORITHM = "RS256"


class SigningKeyData(BaseModel):
    """An RSA keypair in PEM form."""

    kid: str
    private_key_pem: str
    public_key_pem: str


class SigningIdentity(BaseModel):
    """Key id plus the loaded key objects used to sign and verify.

    ``private_key`` is None in verify-only mode; issuance is then disabled.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    key_id: str
    private_key: RSAPrivateKey | None = None
    public_key: RSAPublicKey
    source: str = "configured"

    @property
    def can_sign(self) -> bool:
        return self.private_key is not None


class JWKEntry(BaseModel):
    """Single JWK entry in a JWKS response."""

    kty: str = "RSA"
    use: str = "sig"
    alg: str = SIGNING_ALGORITHM
    kid: str
    n: str
    e: str


class JWKSResponse(BaseModel):
    """JSON Web Key Set response."""

    keys: list[JWKEntry]
