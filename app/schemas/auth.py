"""Authentication state schemas."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from app.schemas.users import UserProfile


class Identity(BaseModel):
    """A signed-in principal as reported by Firebase Authentication."""

    uid: str = Field(..., min_length=1, description="Firebase user ID")
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    phone_number: str | None = None
    email_verified: bool = False
    provider_id: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_token_claims(cls, claims: dict[str, Any]) -> "Identity":
        """Build an identity from decoded Firebase ID token claims."""
        firebase_claims = claims.get("firebase") or {}
        return cls(
            uid=claims["uid"],
            email=claims.get("email"),
            display_name=claims.get("name"),
            photo_url=claims.get("picture"),
            phone_number=claims.get("phone_number"),
            email_verified=claims.get("email_verified", False),
            provider_id=firebase_claims.get("sign_in_provider"),
        )


class ProfileStatus(str, Enum):
    """Outcome of the most recent profile load."""

    NONE = "none"
    LOADING = "loading"
    LOADED = "loaded"
    NOT_FOUND = "not_found"
    ERROR = "error"


class AuthPhase(str, Enum):
    """Auth state machine phases."""

    INITIALIZING = "initializing"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_LOADING_PROFILE = "authenticated_loading_profile"
    AUTHENTICATED = "authenticated"


class ProfileResult(BaseModel):
    """Result of provisioning and/or fetching a profile."""

    status: ProfileStatus
    profile: UserProfile | None = None
    error: str | None = None

    model_config = {"frozen": True}


class AuthState(BaseModel):
    """
    Published auth state.

    ``loading`` is true only until the first identity callback resolves.
    ``profile`` is always absent when ``identity`` is absent.
    """

    identity: Identity | None = None
    profile: UserProfile | None = None
    profile_status: ProfileStatus = ProfileStatus.NONE
    profile_error: str | None = None
    loading: bool = True

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_profile_requires_identity(self) -> "AuthState":
        """Reject a profile without an identity."""
        if self.identity is None and self.profile is not None:
            raise ValueError("profile cannot be set without an identity")
        return self

    @property
    def phase(self) -> AuthPhase:
        """Current state machine phase."""
        if self.identity is None:
            return AuthPhase.INITIALIZING if self.loading else AuthPhase.UNAUTHENTICATED
        if self.profile_status == ProfileStatus.LOADING:
            return AuthPhase.AUTHENTICATED_LOADING_PROFILE
        return AuthPhase.AUTHENTICATED

    def with_profile(self, result: ProfileResult, loading: bool | None = None) -> "AuthState":
        """Return a copy carrying a profile result."""
        return AuthState(
            identity=self.identity,
            profile=result.profile,
            profile_status=result.status,
            profile_error=result.error,
            loading=self.loading if loading is None else loading,
        )


class SignInRequest(BaseModel):
    """Firebase ID token sign-in request."""

    id_token: str = Field(..., min_length=1, description="Firebase ID token from the client")


class AuthStateResponse(BaseModel):
    """Published auth state as returned by the API."""

    phase: AuthPhase
    loading: bool
    identity: Identity | None = None
    profile: UserProfile | None = None
    profile_status: ProfileStatus
    profile_error: str | None = None

    @classmethod
    def from_state(cls, state: AuthState) -> "AuthStateResponse":
        """Build a response from a published state."""
        return cls(
            phase=state.phase,
            loading=state.loading,
            identity=state.identity,
            profile=state.profile,
            profile_status=state.profile_status,
            profile_error=state.profile_error,
        )
