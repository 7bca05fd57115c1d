"""Error taxonomy shared by issuance, verification, and startup."""

HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_SERVER_ERROR = 500


class TokenServiceError(Exception):
    """Base error carrying an HTTP-equivalent status and a public reason."""

    status_code = HTTP_SERVER_ERROR

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ConfigError(TokenServiceError):
    """Invalid or missing configuration; fatal at startup."""


class AuthError(TokenServiceError):
    """Missing, malformed, or unrecognized API key."""

    status_code = HTTP_UNAUTHORIZED


class ClaimsValidationError(TokenServiceError):
    """Malformed issuance input."""

    status_code = HTTP_BAD_REQUEST


class SigningError(TokenServiceError):
    """Issuance disabled or the signing key is unusable."""

    public_reason = "token signing unavailable"


class VerificationError(TokenServiceError):
    """Token rejected by one of the verification stages."""

    status_code = HTTP_UNAUTHORIZED
