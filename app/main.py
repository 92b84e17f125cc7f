"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.router import api_router
from app.config import settings
from app.core.exceptions import AppException
from app.core.firebase import close_firestore_client, get_firestore_client, initialize_firebase
from app.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.middleware.logging import LoggingMiddleware, configure_logging
from app.services.auth_state import AuthStatePublisher
from app.services.identity_provider import FirebaseIdentityProvider
from app.services.profile_store import FirestoreProfileStore

# Configure logging
configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Composes the auth session (identity provider, profile store, publisher)
    on startup and tears it down on shutdown.
    """
    logger.info("application_startup", environment=settings.environment)

    app.state.auth_publisher = None
    app.state.identity_provider = None
    app.state.profile_store = None
    app.state.firestore_client = None
    firestore_client = None

    try:
        initialize_firebase(
            settings.firebase_credentials_path,
            settings.firebase_config_json,
            settings.firebase_project_id,
        )
        firestore_client = get_firestore_client()
        logger.info("firebase_initialized")
    except Exception as e:
        logger.warning(
            "firebase_initialization_failed",
            error=str(e),
            note="Auth routes will answer 503. Set FIREBASE_CREDENTIALS_PATH env var.",
        )

    if firestore_client is not None:
        identity_provider = FirebaseIdentityProvider()
        profile_store = FirestoreProfileStore(firestore_client)
        publisher = AuthStatePublisher(identity_provider, profile_store)
        await publisher.start()

        app.state.identity_provider = identity_provider
        app.state.profile_store = profile_store
        app.state.auth_publisher = publisher
        app.state.firestore_client = firestore_client

    yield

    logger.info("application_shutdown")

    if app.state.auth_publisher is not None:
        app.state.auth_publisher.close()

    if app.state.firestore_client is not None:
        await close_firestore_client(app.state.firestore_client)


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Authentication session and profile API for appointment booking",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Add exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, general_exception_handler)  # type: ignore[arg-type]

# Include API router
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """
    Root endpoint.

    Returns:
        Welcome message
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
