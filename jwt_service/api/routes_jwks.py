"""Public key publication endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from jwt_service.api.deps import get_components
from jwt_service.core.state import ServiceComponents
from jwt_service.crypto.keys import signing_identity_to_jwks
from jwt_service.crypto.types import JWKSResponse

router = APIRouter()

JWKS_CACHE_CONTROL = "public, max-age=3600"


@router.get("/.well-known/jwks.json")
async def jwks(
    response: Response,
    components: Annotated[ServiceComponents, Depends(get_components)],
) -> JWKSResponse:
    """JSON Web Key Set endpoint."""
    response.headers["Cache-Control"] = JWKS_CACHE_CONTROL
    return signing_identity_to_jwks(components.identity)
