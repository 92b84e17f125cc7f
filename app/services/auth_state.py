"""Auth state publisher.

Keeps the single source of truth for who is signed in and what their
profile is, and broadcasts every change to registered listeners.

Each identity transition bumps a generation counter. Provisioning, fetch
and refresh results are only published if no newer transition arrived
while they were pending, so the last transition always wins.
"""

from collections.abc import Callable

import structlog

from app.core.exceptions import AuthSessionClosedException
from app.schemas.auth import AuthState, Identity, ProfileResult, ProfileStatus
from app.services.identity_provider import IdentityProvider, Unsubscribe
from app.services.profile_store import ProfileStore

logger = structlog.get_logger(__name__)

StateListener = Callable[[AuthState], None]


class AuthStatePublisher:
    """Publishes the combined identity/profile/loading state."""

    def __init__(self, identity_provider: IdentityProvider, profile_store: ProfileStore):
        """Initialize publisher with its identity provider and profile store."""
        self._identity_provider = identity_provider
        self._profile_store = profile_store
        self._state = AuthState()
        self._listeners: dict[int, StateListener] = {}
        self._next_listener_key = 0
        self._unsubscribe: Unsubscribe | None = None
        self._generation = 0
        self._first_callback_resolved = False
        self._closed = False

    @property
    def state(self) -> AuthState:
        """Latest published state."""
        return self._state

    @property
    def is_started(self) -> bool:
        """Whether the identity provider subscription is active."""
        return self._unsubscribe is not None

    @property
    def is_closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called synchronously with every published state.

        Returns:
            Function that removes the listener
        """
        key = self._next_listener_key
        self._next_listener_key += 1
        self._listeners[key] = listener

        def unsubscribe() -> None:
            self._listeners.pop(key, None)

        return unsubscribe

    async def start(self) -> None:
        """
        Subscribe to the identity provider.

        Returns once the provider has delivered the current identity and it
        has been handled.

        Raises:
            AuthSessionClosedException: If the publisher was closed
        """
        if self._closed:
            raise AuthSessionClosedException()
        if self._unsubscribe is not None:
            return

        unsubscribe = await self._identity_provider.subscribe(self._on_identity_changed)

        if self._closed:
            # closed while the initial delivery was in flight
            unsubscribe()
            return

        self._unsubscribe = unsubscribe
        logger.info("auth_state_publisher_started")

    async def refresh(self) -> AuthState:
        """
        Re-fetch the profile of the current identity.

        No-op when nobody is signed in.

        Returns:
            The state after the refresh
        """
        identity = self._state.identity
        if self._closed or identity is None:
            return self._state

        generation = self._generation
        result = await self._fetch_profile(identity.uid)

        if self._is_stale(generation):
            logger.info("stale_profile_refresh_discarded", uid=identity.uid)
            return self._state

        self._publish(self._state.with_profile(result))
        return self._state

    def close(self) -> None:
        """Unsubscribe from the identity provider and stop publishing."""
        if self._closed:
            return

        self._closed = True
        self._generation += 1

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        self._listeners.clear()
        logger.info("auth_state_publisher_closed")

    async def _on_identity_changed(self, identity: Identity | None) -> None:
        if self._closed:
            return

        self._generation += 1
        generation = self._generation

        if identity is None:
            self._first_callback_resolved = True
            self._publish(AuthState(loading=False))
            return

        self._publish(
            AuthState(
                identity=identity,
                profile_status=ProfileStatus.LOADING,
                loading=not self._first_callback_resolved,
            )
        )

        result = await self._load_profile(identity)
        self._first_callback_resolved = True

        if self._is_stale(generation):
            logger.info("stale_profile_result_discarded", uid=identity.uid)
            # the superseded callback still ends initialization
            if self._state.loading:
                self._publish(self._state.model_copy(update={"loading": False}))
            return

        self._publish(self._state.with_profile(result, loading=False))

    async def _load_profile(self, identity: Identity) -> ProfileResult:
        provisioning_error = None
        try:
            await self._profile_store.provision(identity)
        except Exception as e:
            logger.error("user_profile_provisioning_failed", uid=identity.uid, error=str(e))
            provisioning_error = str(e)

        result = await self._fetch_profile(identity.uid)

        if result.status == ProfileStatus.NOT_FOUND and provisioning_error is not None:
            return ProfileResult(status=ProfileStatus.ERROR, error=provisioning_error)
        return result

    async def _fetch_profile(self, uid: str) -> ProfileResult:
        try:
            profile = await self._profile_store.read(uid)
        except Exception as e:
            logger.error("user_profile_fetch_failed", uid=uid, error=str(e))
            return ProfileResult(status=ProfileStatus.ERROR, error=str(e))

        if profile is None:
            logger.warning("user_profile_not_found", uid=uid)
            return ProfileResult(status=ProfileStatus.NOT_FOUND)

        return ProfileResult(status=ProfileStatus.LOADED, profile=profile)

    def _is_stale(self, generation: int) -> bool:
        return self._closed or generation != self._generation

    def _publish(self, state: AuthState) -> None:
        if self._closed:
            return

        self._state = state
        logger.debug(
            "auth_state_published",
            phase=state.phase.value,
            uid=state.identity.uid if state.identity else None,
            profile_status=state.profile_status.value,
        )

        for listener in list(self._listeners.values()):
            try:
                listener(state)
            except Exception as e:
                logger.error("auth_state_listener_failed", error=str(e))
