"""Multi-stage token verification: signature and claims, binding, replay."""

import hashlib
import logging
import secrets
from typing import Any

import jwt
from jwt.types import Options

from jwt_service.core.clock import Clock, system_clock
from jwt_service.core.errors import VerificationError
from jwt_service.core.settings import ServiceSettings
from jwt_service.crypto.types import SIGNING_ALGORITHM, SigningIdentity
from jwt_service.tokens.claims import VerificationContext, VerificationResult
from jwt_service.tokens.replay import ReplayCache

logger = logging.getLogger(__name__)

SIGNATURE_INVALID = "signature/claims invalid"
REPLAY_DETECTED = "replay detected"
JTI_REQUIRED = "jti required"


def hash_body(body: str | bytes) -> str:
    """SHA-256 hex digest of a request body."""
    raw = body.encode() if isinstance(body, str) else body
    return hashlib.sha256(raw).hexdigest()


def _same(left: str, right: str) -> bool:
    return secrets.compare_digest(left.encode(), right.encode())


class TokenVerifier:
    """Verifies tokens against the service public key.

    Each stage short-circuits: a token that fails the signature/claims
    stage never reaches binding or replay, and a binding failure never
    consumes the token's jti.
    """

    def __init__(
        self,
        identity: SigningIdentity,
        settings: ServiceSettings,
        replay_cache: ReplayCache | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self._identity = identity
        self._settings = settings
        self._replay_cache = replay_cache
        self._clock = clock

    def verify(
        self,
        token: str,
        context: VerificationContext | None = None,
        now: float | None = None,
    ) -> VerificationResult:
        """Run every stage and return accept/reject; never raises for bad tokens."""
        current = self._clock() if now is None else now
        try:
            claims = self._check_signature_and_claims(token, current)
            if self._settings.enforce_binding:
                self._check_binding(claims, context)
            if self._replay_cache is not None:
                self._check_replay(claims, current)
        except VerificationError as exc:
            logger.info("Token rejected: %s", exc.reason)
            return VerificationResult.reject(exc.reason)
        return VerificationResult.accept(claims)

    def _check_signature_and_claims(self, token: str, now: float) -> dict[str, Any]:
        audience = self._settings.audience
        # Time bounds are checked below against the injected clock.
        opts: Options = {
            "verify_exp": False,
            "verify_nbf": False,
            "verify_iat": False,
            "verify_aud": audience is not None,
        }
        try:
            claims = jwt.decode(
                token,
                self._identity.public_key,
                algorithms=[SIGNING_ALGORITHM],
                issuer=self._settings.issuer,
                audience=audience,
                options=opts,
            )
        except jwt.PyJWTError as exc:
            logger.debug("Signature stage failed: %s", exc)
            raise VerificationError(SIGNATURE_INVALID) from exc

        exp = claims.get("exp")
        if exp is not None and (not _is_number(exp) or exp <= now):
            raise VerificationError(SIGNATURE_INVALID)
        nbf = claims.get("nbf")
        if nbf is not None and (not _is_number(nbf) or nbf > now):
            raise VerificationError(SIGNATURE_INVALID)
        return claims

    def _check_binding(
        self, claims: dict[str, Any], context: VerificationContext | None
    ) -> None:
        ctx = context or VerificationContext()

        bound_method = claims.get("method")
        if bound_method is not None:
            if ctx.method is None or not _same(str(bound_method), ctx.method):
                raise VerificationError("method mismatch")

        bound_url = claims.get("url")
        if bound_url is not None:
            if ctx.url is None or not _same(str(bound_url), ctx.url):
                raise VerificationError("url mismatch")

        bound_body = claims.get("body_sha256")
        if bound_body is not None:
            if ctx.body_sha256 is not None:
                actual = ctx.body_sha256
            elif ctx.body_raw is not None:
                actual = hash_body(ctx.body_raw)
            else:
                raise VerificationError("body_sha256 mismatch")
            if not _same(str(bound_body), actual):
                raise VerificationError("body_sha256 mismatch")

    def _check_replay(self, claims: dict[str, Any], now: float) -> None:
        cache = self._replay_cache
        if cache is None:
            return
        jti = claims.get("jti")
        if not isinstance(jti, str) or not jti:
            if self._settings.effective_require_jti:
                raise VerificationError(JTI_REQUIRED)
            return
        exp = claims.get("exp")
        expires_at = cache.expiry_for(exp if _is_number(exp) else None, now)
        if not cache.check_and_put(jti, expires_at, now):
            raise VerificationError(REPLAY_DETECTED)


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)
