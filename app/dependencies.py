"""FastAPI dependencies.

The auth session components are built once in the application lifespan and
stored on ``app.state``; routes receive them through these dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.exceptions import (
    AuthSessionClosedException,
    ServiceUnavailableException,
    UnauthorizedException,
)
from app.schemas.auth import Identity
from app.services.auth_state import AuthStatePublisher
from app.services.identity_provider import FirebaseIdentityProvider
from app.services.profile_store import FirestoreProfileStore

# Security
security = HTTPBearer(auto_error=False)


def get_auth_publisher(request: Request) -> AuthStatePublisher:
    """
    Get the process-wide auth state publisher.

    Raises:
        ServiceUnavailableException: If the auth session was not composed
        AuthSessionClosedException: If the publisher has been torn down
    """
    publisher = getattr(request.app.state, "auth_publisher", None)

    if publisher is None:
        raise ServiceUnavailableException("Auth session is not available")

    if publisher.is_closed:
        raise AuthSessionClosedException()

    return publisher


def get_identity_provider(request: Request) -> FirebaseIdentityProvider:
    """Get the identity provider the publisher is subscribed to."""
    provider = getattr(request.app.state, "identity_provider", None)

    if provider is None:
        raise ServiceUnavailableException("Identity provider is not available")

    return provider


def get_profile_store(request: Request) -> FirestoreProfileStore:
    """Get the Firestore profile store."""
    store = getattr(request.app.state, "profile_store", None)

    if store is None:
        raise ServiceUnavailableException("Profile store is not available")

    return store


# Type aliases for dependency injection
AuthPublisher = Annotated[AuthStatePublisher, Depends(get_auth_publisher)]
IdentityProviderDep = Annotated[FirebaseIdentityProvider, Depends(get_identity_provider)]
ProfileStoreDep = Annotated[FirestoreProfileStore, Depends(get_profile_store)]


async def get_session_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    publisher: AuthPublisher,
    identity_provider: IdentityProviderDep,
) -> Identity | None:
    """
    Check the caller's Firebase ID token against the session.

    Every session route requires a bearer token. When a user is signed in,
    the token must belong to that user.

    Returns:
        The signed-in identity, or None if nobody is signed in

    Raises:
        UnauthorizedException: If the token is missing, invalid or belongs
        to another user
    """
    if credentials is None:
        raise UnauthorizedException("Missing bearer token")

    caller = await identity_provider.verify_id_token(credentials.credentials)

    identity = publisher.state.identity
    if identity is not None and identity.uid != caller.uid:
        raise UnauthorizedException("Token does not belong to the signed-in user")

    return identity


SessionIdentity = Annotated[Identity | None, Depends(get_session_identity)]
