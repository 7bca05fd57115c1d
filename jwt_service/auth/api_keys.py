"""Rotation-aware API key authentication for the issue endpoint."""

import logging
import secrets
from enum import StrEnum

from pydantic import BaseModel, field_validator

from jwt_service.core.errors import AuthError, ConfigError
from jwt_service.core.settings import PREVIOUS_KEY_SENTINEL, ServiceSettings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthRejection(StrEnum):
    """Why an API key was refused. All map to 401 externally."""

    MISSING_HEADER = "missing authorization header"
    MALFORMED_HEADER = "malformed authorization header"
    UNKNOWN_KEY = "api key not recognized"


class ApiKeySet(BaseModel):
    """Current key plus an optional previous key accepted during rotation."""

    current: str
    previous: str | None = None

    @field_validator("current")
    @classmethod
    def _current_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("current API key must not be empty")
        return value

    @field_validator("previous")
    @classmethod
    def _sentinel_is_absent(cls, value: str | None) -> str | None:
        if not value or value == PREVIOUS_KEY_SENTINEL:
            return None
        return value

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "ApiKeySet":
        if not settings.api_key:
            raise ConfigError("API_KEY is required unless VERIFY_ONLY is set")
        return cls(current=settings.api_key, previous=settings.previous_api_key)

    def accepted(self) -> tuple[str, ...]:
        if self.previous is None:
            return (self.current,)
        return (self.current, self.previous)


class AuthResult(BaseModel):
    """Outcome of an authentication attempt."""

    accepted: bool
    rejection: AuthRejection | None = None


def extract_bearer(header: str | None) -> str | AuthRejection:
    """Return the credential after ``Bearer `` or the reason it is unusable."""
    if not header:
        return AuthRejection.MISSING_HEADER
    if not header.startswith(BEARER_PREFIX):
        return AuthRejection.MALFORMED_HEADER
    credential = header[len(BEARER_PREFIX) :]
    if not credential:
        return AuthRejection.MALFORMED_HEADER
    return credential


class ApiKeyAuthenticator:
    """Stateless check of a presented key against the accepted set."""

    def __init__(self, keys: ApiKeySet) -> None:
        self._keys = keys

    def authenticate(self, provided_key: str) -> AuthResult:
        """Exact match against current or previous key."""
        matched = False
        # Compare against every key so timing does not reveal which one matched.
        for candidate in self._keys.accepted():
            if secrets.compare_digest(provided_key.encode(), candidate.encode()):
                matched = True
        if matched:
            return AuthResult(accepted=True)
        return AuthResult(accepted=False, rejection=AuthRejection.UNKNOWN_KEY)

    def authenticate_header(self, header: str | None) -> AuthResult:
        """Parse an Authorization header and authenticate its Bearer key."""
        credential = extract_bearer(header)
        if isinstance(credential, AuthRejection):
            return AuthResult(accepted=False, rejection=credential)
        return self.authenticate(credential)

    def require(self, header: str | None) -> None:
        """Raise AuthError unless the header carries an accepted key."""
        result = self.authenticate_header(header)
        if not result.accepted:
            reason = result.rejection or AuthRejection.UNKNOWN_KEY
            logger.warning("API key rejected: %s", reason.value)
            raise AuthError(reason.value)
