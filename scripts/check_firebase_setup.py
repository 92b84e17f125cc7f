#!/usr/bin/env python3
"""
Firebase setup helper.

Prints the steps needed to connect the backend to a Firebase project and
checks that the local environment is ready.
"""

import os
import sys
from importlib import metadata
from pathlib import Path

from dotenv import dotenv_values

project_root = Path(__file__).parent.parent

ENV_TEMPLATE = """FIREBASE_PROJECT_ID=your_project_id
FIREBASE_CREDENTIALS_PATH=secrets/firebase-service-account.json
# or, instead of the file path:
# FIREBASE_CONFIG_JSON={"type": "service_account", ...}
FIRESTORE_USERS_COLLECTION=users
FIRESTORE_APPOINTMENTS_COLLECTION=appointments"""

CREDENTIAL_KEYS = ("FIREBASE_CREDENTIALS_PATH", "FIREBASE_CONFIG_JSON")


def print_instructions() -> None:
    """Print the setup walkthrough."""
    print("🔥 Firebase Setup Helper")
    print("========================\n")

    print("1. 📦 Install the backend:")
    print('   pip install -e ".[dev]"\n')

    print("2. 🌐 Create Firebase Project:")
    print("   - Go to https://console.firebase.google.com/")
    print("   - Create a new project or select existing")
    print("   - Enable Google Authentication in Authentication > Sign-in method")
    print("   - Create a Firestore database\n")

    print("3. 🔧 Get a service account:")
    print("   - Go to Project Settings > Service accounts")
    print("   - Click 'Generate new private key'")
    print("   - Save the JSON file outside version control\n")

    print("4. 📝 Create .env file:")
    print("   Create a .env file in the project root with:\n")
    print(ENV_TEMPLATE)

    print("\n5. 🚀 Test:")
    print("   python scripts/setup_appointments.py --list-users")
    print("   uvicorn app.main:app --reload")
    print("   - Sign in from the web app")
    print("   - GET /api/v1/auth/state should show your profile\n")


def check_environment() -> list[str]:
    """
    Check the local environment.

    Returns:
        Error messages; empty when everything required is in place
    """
    errors = []

    env_path = project_root / ".env"
    env_values = dotenv_values(env_path) if env_path.exists() else {}
    if env_path.exists():
        print("✅ .env file found!")
    else:
        print("⚠️  .env file not found. Please create it with your Firebase config.")

    def lookup(key: str) -> str | None:
        return os.getenv(key) or env_values.get(key)

    if any(lookup(key) for key in CREDENTIAL_KEYS):
        print("✅ Firebase credentials configured!")
    else:
        print("⚠️  No Firebase credentials set; Application Default Credentials will be used.")

    credentials_path = lookup("FIREBASE_CREDENTIALS_PATH")
    if credentials_path and not (
        Path(credentials_path).exists() or (project_root / credentials_path).exists()
    ):
        errors.append(f"❌ FIREBASE_CREDENTIALS_PATH points to a missing file: {credentials_path}")

    try:
        version = metadata.version("firebase-admin")
        print(f"✅ firebase-admin {version} installed!")
    except metadata.PackageNotFoundError:
        errors.append('❌ firebase-admin not installed. Run: pip install -e ".[dev]"')

    return errors


def main() -> int:
    """Print instructions and run the environment checks."""
    print_instructions()
    errors = check_environment()

    if errors:
        print()
        for error in errors:
            print(error)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
