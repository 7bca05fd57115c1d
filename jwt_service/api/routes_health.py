"""Liveness probe."""

from fastapi import APIRouter

from jwt_service.api.schemas import HealthResponse

router = APIRouter()


@router.get("/health")
async def health() -> HealthResponse:
    """GET /health -- always ok while the process responds."""
    return HealthResponse()
