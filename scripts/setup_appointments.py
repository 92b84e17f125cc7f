#!/usr/bin/env python3
"""
Create the Firestore ``appointments`` collection with sample data.

Usage:
    python scripts/setup_appointments.py
    python scripts/setup_appointments.py --user-id <firebase_uid>
    python scripts/setup_appointments.py --list-users

Environment Variables:
    FIREBASE_CREDENTIALS_PATH: Path to the service account JSON file
    FIREBASE_CONFIG_JSON: Raw service account JSON (alternative to the path)
    FIREBASE_PROJECT_ID: Firebase project ID
    FIRESTORE_APPOINTMENTS_COLLECTION: Target collection (default: appointments)
"""

import argparse
import asyncio
import sys
from pathlib import Path

import dotenv

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

dotenv.load_dotenv()

from app.config import get_settings  # noqa: E402
from app.core.firebase import (  # noqa: E402
    close_firestore_client,
    get_firestore_client,
    initialize_firebase,
    list_auth_users,
)
from app.middleware.logging import configure_logging  # noqa: E402
from app.schemas.appointments import SeedResult  # noqa: E402
from app.seeds.appointments import build_sample_appointments  # noqa: E402
from app.services.appointment_service import AppointmentService  # noqa: E402


async def create_appointments_collection(user_id: str | None = None) -> SeedResult:
    """Insert the sample appointments, continuing past failed records."""
    client = get_firestore_client()
    try:
        service = AppointmentService(client)
        return await service.seed_appointments(build_sample_appointments(user_id))
    finally:
        await close_firestore_client(client)


def print_auth_users() -> None:
    """Print the uids registered in Firebase Authentication."""
    users = list_auth_users()

    if not users:
        print("No users found in Firebase Authentication.")
        print("Sign in to the app once, then run this again.")
        return

    print(f"👥 {len(users)} user(s) in Firebase Authentication:\n")
    for user in users:
        print(f"   {user['uid']}  {user['email'] or '-'}  {user['display_name'] or ''}")
    print("\nRe-run with --user-id <uid> to create appointments for a real user.")


def print_next_steps(collection: str) -> None:
    """Print what to do after seeding."""
    print("\n📋 Next steps:")
    print("1. Go to Firebase Console → Firestore Database")
    print(f'2. Navigate to the "{collection}" collection')
    print("3. Verify that the documents were created with the correct structure")
    print("4. Run with --list-users to find the uids of real users")
    print("5. Run again with --user-id <uid> to create appointments for a real user")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed the Firestore appointments collection with sample data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sample data with placeholder user IDs
  python scripts/setup_appointments.py

  # Assign every sample appointment to a real user
  python scripts/setup_appointments.py --user-id 0aBcD1eFgH2iJkL3mNoP4qRsT5u1

  # Show the uids of users in Firebase Authentication
  python scripts/setup_appointments.py --list-users
        """,
    )

    parser.add_argument(
        "--user-id",
        type=str,
        help="Firebase uid that owns every sample appointment (default: placeholders)",
    )
    parser.add_argument(
        "--list-users",
        action="store_true",
        help="List Firebase Authentication users and exit",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    args = parser.parse_args()

    configure_logging(log_format=args.log_format)
    settings = get_settings()

    initialize_firebase(
        settings.firebase_credentials_path,
        settings.firebase_config_json,
        settings.firebase_project_id,
    )

    if args.list_users:
        print_auth_users()
        return 0

    print("🚀 Starting appointments collection setup...\n")
    result = asyncio.run(create_appointments_collection(args.user_id))

    print(f"\n✅ Created {result.created_count} appointment(s)")
    for appointment_id in result.created_ids:
        print(f"   {appointment_id}")

    if result.failures:
        print(f"❌ {result.failure_count} appointment(s) failed:")
        for failure in result.failures:
            print(f"   #{failure.index} {failure.doctor}: {failure.error}")

    print_next_steps(settings.firestore_appointments_collection)
    return 0 if result.created_count else 1


if __name__ == "__main__":
    sys.exit(main())
