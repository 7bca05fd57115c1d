"""Typed claim input, request-binding context, and verification results."""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

RESERVED_CLAIMS = frozenset({"iat", "exp", "nbf", "jti"})
BINDING_CLAIMS = ("method", "url", "body_sha256")
KNOWN_CLAIMS = frozenset({"sub", "iss", "aud", *RESERVED_CLAIMS, *BINDING_CLAIMS})


class ClaimsInput(BaseModel):
    """Caller-supplied claims for issuance.

    Known fields are typed; anything else lands in ``model_extra`` and is
    signed as an extension claim. Reserved claims never pass through as
    extensions: ``iat`` is always server-set, and ``exp``/``nbf``/``jti``
    are re-derived from the typed fields below.
    """

    model_config = ConfigDict(extra="allow")

    sub: str
    exp: int | float | str | None = None
    nbf: int | float | str | None = None
    jti: str | None = None
    iss: str | None = None
    aud: str | list[str] | None = None
    method: str | None = None
    url: str | None = None
    body_sha256: str | None = None

    @field_validator("sub")
    @classmethod
    def _sub_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("sub must not be empty")
        return value

    @field_validator("exp", "nbf", mode="before")
    @classmethod
    def _time_claim_type(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("must be a number or duration string")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value

    @field_validator("jti")
    @classmethod
    def _jti_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    def extension_claims(self) -> dict[str, Any]:
        """Extra caller claims with every reserved or known name removed."""
        extra = self.model_extra or {}
        return {k: v for k, v in extra.items() if k not in KNOWN_CLAIMS}

    def binding_claims(self) -> dict[str, str]:
        bound: dict[str, str] = {}
        if self.method is not None:
            bound["method"] = self.method
        if self.url is not None:
            bound["url"] = self.url
        if self.body_sha256 is not None:
            bound["body_sha256"] = self.body_sha256
        return bound


class VerificationContext(BaseModel):
    """The actual request a bound token is being presented with."""

    method: str | None = None
    url: str | None = None
    body_sha256: str | None = None
    body_raw: str | bytes | None = None


class VerificationResult(BaseModel):
    """Accept with the verified claims, or reject with a reason."""

    valid: bool
    payload: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def accept(cls, payload: dict[str, Any]) -> "VerificationResult":
        return cls(valid=True, payload=payload)

    @classmethod
    def reject(cls, reason: str) -> "VerificationResult":
        return cls(valid=False, error=reason)
