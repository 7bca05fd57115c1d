"""Request and response bodies for the HTTP endpoints."""

from typing import Any

from pydantic import BaseModel

from jwt_service.tokens.claims import VerificationContext


class IssueResponse(BaseModel):
    """Response for POST /issue."""

    token: str


class VerifyPayload(BaseModel):
    """Request body for POST /verify."""

    token: str
    context: VerificationContext | None = None


class VerifyResponse(BaseModel):
    """Response for POST /verify."""

    valid: bool
    payload: dict[str, Any] | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str = "ok"
