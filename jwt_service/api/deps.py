"""FastAPI dependencies exposing the startup-built components."""

from fastapi import Request

from jwt_service.core.state import ServiceComponents


def get_components(request: Request) -> ServiceComponents:
    """Components attached to the app by create_app."""
    return request.app.state.components
