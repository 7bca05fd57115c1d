"""Claim construction and RS256 signing."""

import logging
import math
from typing import Any

import jwt
import uuid_utils
from pydantic import ValidationError

from jwt_service.core.clock import Clock, system_clock
from jwt_service.core.errors import ClaimsValidationError, SigningError
from jwt_service.core.settings import ServiceSettings
from jwt_service.crypto.types import SIGNING_ALGORITHM, SigningIdentity
from jwt_service.tokens.claims import ClaimsInput
from jwt_service.tokens.durations import is_numeric, parse_duration

logger = logging.getLogger(__name__)


def generate_jti() -> str:
    """Fresh unique token identifier."""
    return str(uuid_utils.uuid7())


def resolve_time_claim(value: int | float | str, now: int, name: str) -> int:
    """Numbers are absolute epoch seconds; strings are durations from now."""
    if isinstance(value, bool):
        raise ClaimsValidationError(f"{name} must be a number or duration")
    if isinstance(value, int | float):
        if not math.isfinite(value):
            raise ClaimsValidationError(f"{name} must be a finite number")
        return int(value)
    try:
        return now + parse_duration(value)
    except ValueError as exc:
        raise ClaimsValidationError(f"{name} is not a valid duration") from exc


def resolve_default_exp(default_exp: str, now: int) -> int:
    """Numeric defaults are seconds from now; anything else is a duration.

    ServiceSettings has already rejected values neither form accepts.
    """
    if is_numeric(default_exp):
        return now + int(default_exp)
    return now + parse_duration(default_exp)


class TokenIssuer:
    """Builds claim sets and signs them with the service key."""

    def __init__(
        self,
        identity: SigningIdentity,
        settings: ServiceSettings,
        clock: Clock = system_clock,
    ) -> None:
        self._identity = identity
        self._settings = settings
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._identity.can_sign

    def build_claims(self, claims_input: ClaimsInput, now: int) -> dict[str, Any]:
        """Assemble the claim set that will be signed."""
        payload: dict[str, Any] = dict(claims_input.extension_claims())
        payload["sub"] = claims_input.sub
        payload["iat"] = now

        if claims_input.exp is not None:
            payload["exp"] = resolve_time_claim(claims_input.exp, now, "exp")
        else:
            payload["exp"] = resolve_default_exp(self._settings.default_exp, now)

        if claims_input.nbf is not None:
            payload["nbf"] = resolve_time_claim(claims_input.nbf, now, "nbf")

        payload.update(claims_input.binding_claims())

        issuer = claims_input.iss or self._settings.issuer
        if issuer:
            payload["iss"] = issuer
        audience = claims_input.aud or self._settings.audience
        if audience:
            payload["aud"] = audience

        payload["jti"] = claims_input.jti or generate_jti()
        return payload

    def issue(self, claims_input: ClaimsInput, now: float | None = None) -> str:
        """Sign a new token. Does not touch the replay cache."""
        private_key = self._identity.private_key
        if private_key is None:
            raise SigningError("issuance disabled: no private key (verify-only mode)")
        issued_at = int(self._clock() if now is None else now)
        payload = self.build_claims(claims_input, issued_at)
        try:
            return jwt.encode(
                payload,
                private_key,
                algorithm=SIGNING_ALGORITHM,
                headers={"kid": self._identity.key_id},
            )
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise SigningError(f"signing failed: {exc}") from exc

    def issue_from_mapping(
        self, raw: dict[str, Any], now: float | None = None
    ) -> str:
        """Validate untyped input (e.g. a JSON body) and issue."""
        if not isinstance(raw, dict):
            raise ClaimsValidationError("claims must be a JSON object")
        try:
            claims_input = ClaimsInput.model_validate(raw)
        except ValidationError as exc:
            raise ClaimsValidationError(_first_error(exc)) from exc
        return self.issue(claims_input, now=now)


def _first_error(exc: ValidationError) -> str:
    details = exc.errors()
    if not details:
        return "invalid claims"
    loc = ".".join(str(p) for p in details[0]["loc"])
    return f"invalid claim {loc}: {details[0]['msg']}"
