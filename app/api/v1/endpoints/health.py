"""Health check endpoints."""

from fastapi import APIRouter, Request, status
from pydantic import BaseModel

from app.config import settings
from app.core.firebase import is_firebase_initialized

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response model."""

    status: str
    version: str
    environment: str
    firebase: str
    auth_session: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Detailed health check",
)
async def detailed_health_check(request: Request) -> DetailedHealthResponse:
    """
    Detailed health check with Firebase and auth session status.

    Returns:
        Detailed health status including dependencies
    """
    firebase_healthy = is_firebase_initialized()
    publisher = getattr(request.app.state, "auth_publisher", None)
    session_healthy = publisher is not None and publisher.is_started and not publisher.is_closed

    return DetailedHealthResponse(
        status="healthy" if firebase_healthy and session_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        firebase="healthy" if firebase_healthy else "unhealthy",
        auth_session="healthy" if session_healthy else "unhealthy",
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """
    Simple ping endpoint.

    Returns:
        Pong response
    """
    return {"message": "pong"}
