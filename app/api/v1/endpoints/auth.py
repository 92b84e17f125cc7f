"""Authentication session endpoints."""

from fastapi import APIRouter, status

from app.core.exceptions import BadRequestException, UnauthorizedException
from app.dependencies import AuthPublisher, IdentityProviderDep, ProfileStoreDep, SessionIdentity
from app.schemas.auth import AuthStateResponse, SignInRequest
from app.schemas.users import UserProfileUpdate

router = APIRouter()


@router.get(
    "/state",
    response_model=AuthStateResponse,
    status_code=status.HTTP_200_OK,
    summary="Current auth state",
)
async def get_auth_state(publisher: AuthPublisher, _: SessionIdentity) -> AuthStateResponse:
    """Return the latest published auth state. Requires the caller's bearer token."""
    return AuthStateResponse.from_state(publisher.state)


@router.post(
    "/sign-in",
    response_model=AuthStateResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign in with a Firebase ID token",
)
async def sign_in(
    request: SignInRequest,
    publisher: AuthPublisher,
    identity_provider: IdentityProviderDep,
) -> AuthStateResponse:
    """
    Verify a Firebase ID token and make it the signed-in identity.

    On the first sign-in of a user their profile document is provisioned.
    The response reflects the state after the profile has been loaded.

    Raises:
        UnauthorizedException: If the token is invalid or expired
    """
    await identity_provider.sign_in_with_id_token(request.id_token)
    return AuthStateResponse.from_state(publisher.state)


@router.post(
    "/sign-out",
    response_model=AuthStateResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign out",
)
async def sign_out(
    publisher: AuthPublisher,
    identity_provider: IdentityProviderDep,
    _: SessionIdentity,
) -> AuthStateResponse:
    """Sign out the current identity and clear its profile."""
    await identity_provider.sign_out()
    return AuthStateResponse.from_state(publisher.state)


@router.post(
    "/refresh",
    response_model=AuthStateResponse,
    status_code=status.HTTP_200_OK,
    summary="Reload the current user's profile",
)
async def refresh_profile(publisher: AuthPublisher, _: SessionIdentity) -> AuthStateResponse:
    """Re-fetch the profile of the signed-in user. No-op when signed out."""
    state = await publisher.refresh()
    return AuthStateResponse.from_state(state)


@router.patch(
    "/profile",
    response_model=AuthStateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update the current user's profile",
)
async def update_profile(
    profile_data: UserProfileUpdate,
    publisher: AuthPublisher,
    profile_store: ProfileStoreDep,
    identity: SessionIdentity,
) -> AuthStateResponse:
    """
    Update the signed-in user's profile and republish it.

    Raises:
        UnauthorizedException: If nobody is signed in or the token is not theirs
        BadRequestException: If no fields were given
        NotFoundException: If the user has no profile document
    """
    if identity is None:
        raise UnauthorizedException("No user is signed in")

    if not profile_data.model_fields_set:
        raise BadRequestException("No profile fields to update")

    await profile_store.update(identity.uid, profile_data)
    state = await publisher.refresh()
    return AuthStateResponse.from_state(state)
