import asyncio
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.exceptions import NotFoundException
from app.dependencies import get_auth_publisher, get_identity_provider, get_profile_store
from app.main import app
from app.schemas.auth import Identity
from app.schemas.users import UserProfile, UserProfileUpdate
from app.services.auth_state import AuthStatePublisher
from app.services.identity_provider import FirebaseIdentityProvider

# Decoded claims returned by the fake token verifier, keyed by ID token
TOKEN_CLAIMS = {
    "token-u1": {
        "uid": "u1",
        "email": "jane@example.com",
        "name": "Jane Patient",
        "picture": "https://example.com/jane.png",
        "email_verified": True,
        "firebase": {"sign_in_provider": "google.com"},
    },
    "token-u2": {
        "uid": "u2",
        "email": "sam@example.com",
        "name": "Sam Patient",
        "email_verified": False,
        "firebase": {"sign_in_provider": "google.com"},
    },
}


async def fake_verify_token(id_token: str) -> dict:
    """Stand-in for verify_firebase_token with fixed claims."""
    if id_token not in TOKEN_CLAIMS:
        raise ValueError("Invalid Firebase ID token: unknown token")
    return TOKEN_CLAIMS[id_token]


class InMemoryProfileStore:
    """Profile store keeping documents in a dict, with failure and delay hooks."""

    def __init__(self):
        self.profiles: dict[str, UserProfile] = {}
        self.provision_calls: list[str] = []
        self.read_calls: list[str] = []
        self.read_error: Exception | None = None
        self.provision_error: Exception | None = None
        # uid -> event a read for that uid waits on
        self.read_gates: dict[str, asyncio.Event] = {}

    async def read(self, uid: str) -> UserProfile | None:
        self.read_calls.append(uid)
        gate = self.read_gates.get(uid)
        if gate is not None:
            await gate.wait()
        if self.read_error is not None:
            raise self.read_error
        return self.profiles.get(uid)

    async def provision(self, identity: Identity) -> bool:
        self.provision_calls.append(identity.uid)
        if self.provision_error is not None:
            raise self.provision_error
        if identity.uid in self.profiles:
            return False
        self.profiles[identity.uid] = UserProfile(
            uid=identity.uid,
            email=identity.email,
            display_name=identity.display_name,
            photo_url=identity.photo_url,
        )
        return True

    async def update(self, uid: str, profile_data: UserProfileUpdate) -> None:
        if uid not in self.profiles:
            raise NotFoundException(f"Profile not found for user {uid}")
        self.profiles[uid] = self.profiles[uid].model_copy(
            update=profile_data.model_dump(exclude_unset=True)
        )


class ManualIdentityProvider:
    """Identity provider driven directly by the test, without serialization."""

    def __init__(self, initial: Identity | None = None):
        self.current = initial
        self.callbacks: list = []
        self.unsubscribe_calls = 0

    async def subscribe(self, callback):
        self.callbacks.append(callback)
        await callback(self.current)

        def unsubscribe() -> None:
            self.unsubscribe_calls += 1
            if callback in self.callbacks:
                self.callbacks.remove(callback)

        return unsubscribe

    async def emit(self, identity: Identity | None) -> None:
        self.current = identity
        for callback in list(self.callbacks):
            await callback(identity)


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    """Empty in-memory profile store."""
    return InMemoryProfileStore()


@pytest.fixture
def identity_provider() -> FirebaseIdentityProvider:
    """Firebase identity provider using the fake token verifier."""
    return FirebaseIdentityProvider(verify_token=fake_verify_token)


@pytest.fixture
def manual_provider() -> ManualIdentityProvider:
    """Identity provider the test drives by hand."""
    return ManualIdentityProvider()


@pytest.fixture
def jane() -> Identity:
    """Identity for uid u1."""
    return Identity(uid="u1", email="jane@example.com", display_name="Jane Patient")


@pytest.fixture
def sam() -> Identity:
    """Identity for uid u2."""
    return Identity(uid="u2", email="sam@example.com", display_name="Sam Patient")


@pytest_asyncio.fixture
async def publisher(
    identity_provider: FirebaseIdentityProvider, profile_store: InMemoryProfileStore
) -> AsyncGenerator[AuthStatePublisher, None]:
    """Started publisher over the Firebase identity provider."""
    publisher = AuthStatePublisher(identity_provider, profile_store)
    await publisher.start()
    yield publisher
    publisher.close()


@pytest_asyncio.fixture
async def client(
    publisher: AuthStatePublisher,
    identity_provider: FirebaseIdentityProvider,
    profile_store: InMemoryProfileStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client wired to the in-memory auth session."""
    app.dependency_overrides[get_auth_publisher] = lambda: publisher
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_profile_store] = lambda: profile_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def bare_client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with no auth session composed (Firebase unavailable)."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
