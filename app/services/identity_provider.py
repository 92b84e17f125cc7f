"""Identity provider adapter over Firebase Authentication."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

import structlog

from app.core.exceptions import UnauthorizedException
from app.core.firebase import verify_firebase_token
from app.schemas.auth import Identity

logger = structlog.get_logger(__name__)

IdentityCallback = Callable[[Identity | None], Awaitable[None]]
Unsubscribe = Callable[[], None]
TokenVerifier = Callable[[str], Awaitable[dict]]


@runtime_checkable
class IdentityProvider(Protocol):
    """Source of sign-in state changes."""

    async def subscribe(self, callback: IdentityCallback) -> Unsubscribe:
        """
        Register a callback for identity changes.

        The callback is awaited once with the current identity (or None)
        before this returns, then again on every sign-in/sign-out.

        Returns:
            Handle that removes the callback; safe to call more than once
        """
        ...


class FirebaseIdentityProvider:
    """
    Tracks the signed-in Firebase user for this process.

    Callers sign in by presenting a Firebase ID token, which is verified with
    the Admin SDK. Subscribers are notified only when the signed-in uid
    changes, one notification at a time and in order.

    Notifications are delivered under a lock and each subscriber callback is
    awaited to completion, including the publisher's profile provisioning
    and fetch. A sign-in or sign-out therefore returns only after the new
    state is published, and a slow Firestore call delays any other
    sign-in or sign-out queued behind it. There is no timeout; a stalled
    callback holds the lock until the underlying Firestore call fails.
    """

    def __init__(self, verify_token: TokenVerifier = verify_firebase_token):
        """Initialize provider with a token verifier."""
        self._verify_token = verify_token
        self._current: Identity | None = None
        self._callbacks: dict[int, IdentityCallback] = {}
        self._next_key = 0
        self._lock = asyncio.Lock()

    @property
    def current_identity(self) -> Identity | None:
        """Currently signed-in identity, if any."""
        return self._current

    async def subscribe(self, callback: IdentityCallback) -> Unsubscribe:
        """Register a callback and deliver the current identity to it."""
        key = self._next_key
        self._next_key += 1

        async with self._lock:
            self._callbacks[key] = callback
            await self._deliver(callback, self._current)

        def unsubscribe() -> None:
            self._callbacks.pop(key, None)

        return unsubscribe

    async def verify_id_token(self, id_token: str) -> Identity:
        """
        Verify a Firebase ID token without changing the signed-in identity.

        Raises:
            UnauthorizedException: If the token cannot be verified
        """
        try:
            claims = await self._verify_token(id_token)
        except ValueError as e:
            raise UnauthorizedException(str(e))

        return Identity.from_token_claims(claims)

    async def sign_in_with_id_token(self, id_token: str) -> Identity:
        """
        Sign in with a Firebase ID token.

        Args:
            id_token: Firebase ID token from the client

        Returns:
            The verified identity

        Raises:
            UnauthorizedException: If the token cannot be verified
        """
        identity = await self.verify_id_token(id_token)
        await self._set_identity(identity)
        return identity

    async def sign_out(self) -> None:
        """Sign out the current identity."""
        await self._set_identity(None)

    async def _set_identity(self, identity: Identity | None) -> None:
        async with self._lock:
            previous_uid = self._current.uid if self._current else None
            new_uid = identity.uid if identity else None
            self._current = identity

            if previous_uid == new_uid:
                return

            logger.info("identity_changed", previous_uid=previous_uid, uid=new_uid)
            for callback in list(self._callbacks.values()):
                await self._deliver(callback, identity)

    @staticmethod
    async def _deliver(callback: IdentityCallback, identity: Identity | None) -> None:
        try:
            await callback(identity)
        except Exception as e:
            logger.error(
                "identity_callback_failed",
                uid=identity.uid if identity else None,
                error=str(e),
            )
