"""Token issuance endpoint."""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from starlette.responses import JSONResponse

from jwt_service.api.deps import get_components
from jwt_service.api.schemas import IssueResponse
from jwt_service.core.errors import (
    HTTP_BAD_REQUEST,
    ClaimsValidationError,
    SigningError,
    TokenServiceError,
)
from jwt_service.core.state import ServiceComponents

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(exc: TokenServiceError) -> JSONResponse:
    return JSONResponse({"error": exc.reason}, status_code=exc.status_code)


@router.post("/issue", response_model=None)
async def issue(
    request: Request,
    components: Annotated[ServiceComponents, Depends(get_components)],
) -> IssueResponse | JSONResponse:
    """POST /issue -- sign a token for an API-key-authenticated caller."""
    issuer = components.issuer
    authenticator = components.authenticator
    if authenticator is None:
        logger.error("Issue requested in verify-only mode without API keys")
        return JSONResponse(
            {"error": SigningError.public_reason},
            status_code=SigningError.status_code,
        )

    try:
        authenticator.require(request.headers.get("Authorization"))
    except TokenServiceError as exc:
        return _error(exc)

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(
            {"error": "request body must be JSON"}, status_code=HTTP_BAD_REQUEST
        )

    try:
        token = issuer.issue_from_mapping(body)
    except SigningError as exc:
        logger.error("Token signing failed: %s", exc.reason, exc_info=exc)
        return JSONResponse(
            {"error": SigningError.public_reason}, status_code=exc.status_code
        )
    except ClaimsValidationError as exc:
        return _error(exc)

    return IssueResponse(token=token)
