"""Firebase Admin SDK initialization and utilities."""

import json
import os

import firebase_admin
from firebase_admin import auth, credentials, firestore_async
from google.cloud.firestore import AsyncClient
from structlog import get_logger

logger = get_logger(__name__)

_firebase_app: firebase_admin.App | None = None


def initialize_firebase(
    firebase_credentials_path: str | None = None,
    firebase_config_json: str | None = None,
    project_id: str | None = None,
) -> firebase_admin.App:
    """
    Initialize Firebase Admin SDK.

    Args:
        firebase_credentials_path: Optional path to service account JSON file.
        firebase_config_json: Optional raw JSON string of service account.
        project_id: Optional project ID passed to the SDK as ``projectId``.

    Looks for Firebase credentials in order:
    1. firebase_config_json parameter
    2. firebase_credentials_path parameter (if the file exists)
    3. Default application credentials

    Missing credentials are not checked here; the SDK raises on first use.

    Returns:
        The initialized Firebase app
    """
    global _firebase_app

    if _firebase_app is not None:
        logger.info("Firebase already initialized")
        return _firebase_app

    options = {"projectId": project_id} if project_id else None

    try:
        cred = None

        # 1. Raw JSON string (hosted deployments)
        if firebase_config_json:
            logger.info("Initializing Firebase with JSON string from environment")
            cred_dict = json.loads(firebase_config_json)
            cred = credentials.Certificate(cred_dict)

        # 2. Service account file (local dev)
        elif firebase_credentials_path and os.path.exists(firebase_credentials_path):
            logger.info("Initializing Firebase with JSON file", path=firebase_credentials_path)
            cred = credentials.Certificate(firebase_credentials_path)

        if cred:
            _firebase_app = firebase_admin.initialize_app(cred, options)
        else:
            # Last resort: Application Default Credentials
            _firebase_app = firebase_admin.initialize_app(options=options)
            logger.info("Firebase initialized with default credentials")

    except Exception as e:
        logger.error("Failed to initialize Firebase", error=str(e))
        raise

    return _firebase_app


def get_firebase_app() -> firebase_admin.App:
    """
    Get the Firebase app instance.

    Returns:
        Firebase app instance

    Raises:
        RuntimeError: If Firebase is not initialized
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase not initialized. Call initialize_firebase() first.")
    return _firebase_app


def is_firebase_initialized() -> bool:
    """Check whether initialize_firebase() has completed."""
    return _firebase_app is not None


def get_firestore_client() -> AsyncClient:
    """
    Get an async Firestore client bound to the initialized Firebase app.

    Returns:
        google.cloud.firestore.AsyncClient

    Raises:
        RuntimeError: If Firebase is not initialized
    """
    return firestore_async.client(app=get_firebase_app())


async def verify_firebase_token(id_token: str) -> dict:
    """
    Verify a Firebase ID token.

    Args:
        id_token: Firebase ID token from the client

    Returns:
        Decoded token containing user information

    Raises:
        ValueError: If token is invalid, expired or cannot be verified
    """
    try:
        # clock_skew_seconds=10 tolerates small clock differences with the issuer
        decoded_token = auth.verify_id_token(id_token, app=_firebase_app, clock_skew_seconds=10)

        logger.info(
            "Firebase token verified",
            uid=decoded_token.get("uid"),
            email=decoded_token.get("email"),
        )

        return decoded_token

    except auth.InvalidIdTokenError as e:
        logger.warning("Invalid or expired Firebase ID token", error=str(e))
        raise ValueError(f"Invalid Firebase ID token: {e!s}")
    except Exception as e:
        logger.error("Firebase token verification failed", error=str(e))
        raise ValueError(f"Token verification failed: {e!s}")


def list_auth_users() -> list[dict[str, str | None]]:
    """
    List every user registered in Firebase Authentication.

    Returns:
        One dict per user with ``uid``, ``email`` and ``display_name``
    """
    users = []
    for user in auth.list_users(app=_firebase_app).iterate_all():
        users.append(
            {
                "uid": user.uid,
                "email": user.email,
                "display_name": user.display_name,
            }
        )

    logger.info("Firebase auth users listed", count=len(users))
    return users


async def close_firestore_client(client: AsyncClient) -> None:
    """
    Close the gRPC channel behind an async Firestore client.

    ``AsyncClient`` has no public close; the channel lives on the lazily
    created GAPIC client, which is only closed if it was ever opened.
    """
    api = client._firestore_api_internal
    if api is None:
        return

    await api.transport.close()
    logger.info("Firestore client closed")
