"""Profile store adapter over Cloud Firestore."""

from typing import Protocol, runtime_checkable

import structlog
from google.api_core.exceptions import AlreadyExists
from google.api_core.exceptions import NotFound as FirestoreNotFound
from google.cloud import firestore

from app.config import settings
from app.core.exceptions import NotFoundException
from app.schemas.auth import Identity
from app.schemas.users import UserProfile, UserProfileUpdate

logger = structlog.get_logger(__name__)


@runtime_checkable
class ProfileStore(Protocol):
    """Per-user profile documents keyed by uid."""

    async def read(self, uid: str) -> UserProfile | None:
        """
        Read a profile.

        Returns:
            The profile, or None if no document exists for the uid
        """
        ...

    async def provision(self, identity: Identity) -> bool:
        """
        Create a default profile for the identity if none exists.

        Returns:
            True if a document was created, False if one already existed
        """
        ...


class FirestoreProfileStore:
    """Profile store backed by the Firestore ``users`` collection."""

    def __init__(self, client: firestore.AsyncClient, collection: str | None = None):
        """Initialize store with an async Firestore client."""
        self.client = client
        self.collection = collection or settings.firestore_users_collection

    def _document(self, uid: str) -> firestore.AsyncDocumentReference:
        return self.client.collection(self.collection).document(uid)

    async def read(self, uid: str) -> UserProfile | None:
        """Read the profile document for a uid."""
        snapshot = await self._document(uid).get()

        if not snapshot.exists:
            return None

        return UserProfile.from_document(uid, snapshot.to_dict() or {})

    async def provision(self, identity: Identity) -> bool:
        """Create the profile document on first sign-in."""
        document = {
            "uid": identity.uid,
            "email": identity.email,
            "displayName": identity.display_name,
            "photoURL": identity.photo_url,
            "phone": identity.phone_number,
            "createdAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }

        try:
            # create() fails if the document exists, so concurrent first sign-ins
            # cannot overwrite each other
            await self._document(identity.uid).create(document)
        except AlreadyExists:
            logger.debug("user_profile_exists", uid=identity.uid)
            return False

        logger.info("user_profile_provisioned", uid=identity.uid, email=identity.email)
        return True

    async def update(self, uid: str, profile_data: UserProfileUpdate) -> None:
        """
        Update the fields set on ``profile_data``.

        Raises:
            NotFoundException: If the uid has no profile document
        """
        updates = profile_data.to_document()
        updates["updatedAt"] = firestore.SERVER_TIMESTAMP

        try:
            await self._document(uid).update(updates)
        except FirestoreNotFound:
            raise NotFoundException(f"Profile not found for user {uid}")

        logger.info("user_profile_updated", uid=uid, fields=sorted(updates))
