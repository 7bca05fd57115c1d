"""Token verification endpoint."""

import json
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.responses import JSONResponse

from jwt_service.api.deps import get_components
from jwt_service.api.schemas import VerifyPayload, VerifyResponse
from jwt_service.core.errors import HTTP_BAD_REQUEST, HTTP_UNAUTHORIZED
from jwt_service.core.state import ServiceComponents

router = APIRouter()


@router.post("/verify", response_model=None)
async def verify(
    request: Request,
    components: Annotated[ServiceComponents, Depends(get_components)],
) -> VerifyResponse | JSONResponse:
    """POST /verify -- check a token and optional request binding."""
    try:
        body = await request.json()
        payload = VerifyPayload.model_validate(body)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError):
        return JSONResponse(
            {"valid": False, "error": "invalid request"},
            status_code=HTTP_BAD_REQUEST,
        )

    result = components.verifier.verify(payload.token, payload.context)
    if not result.valid:
        return JSONResponse(
            {"valid": False, "error": result.error},
            status_code=HTTP_UNAUTHORIZED,
        )
    return VerifyResponse(valid=True, payload=result.payload)
