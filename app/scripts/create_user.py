"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD NAME [role]
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password "Site Admin" admin
"""
import argparse
import sys

from dotenv import load_dotenv
from google.api_core.exceptions import GoogleAPICallError

from app.core.config import get_settings
from app.core.database import create_firestore_client
from app.core.firebase import FirebaseConfigError, init_firebase_app
from app.schemas.user import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.services import users
from app.services.identity import IdentityProviderError, build_identity_provider


def main() -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Create a marketplace user with a profile document.")
    parser.add_argument("email", help="Sign-in email")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("name", help="Display name")
    parser.add_argument("role", nargs="?", default="regular", choices=["regular", "admin"])
    args = parser.parse_args()

    email = args.email.strip()
    name = args.name.strip()
    if "@" not in email:
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not name:
        print("Name must not be empty.", file=sys.stderr)
        return 1
    if not PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    try:
        firebase_app = init_firebase_app(settings)
    except FirebaseConfigError as e:
        print(e.message, file=sys.stderr)
        return 1
    identity = build_identity_provider(firebase_app, settings)
    db = create_firestore_client(firebase_app)

    try:
        uid = identity.create_account(email, args.password, name)
    except IdentityProviderError as e:
        print(f"Could not create account: {e.message}", file=sys.stderr)
        return 1
    try:
        users.create_user(db, uid, name, email, role=args.role)
    except GoogleAPICallError as e:
        identity.delete_account(uid)
        print(f"Could not write profile, account removed: {e}", file=sys.stderr)
        return 1

    print(f"Created user '{email}' ({uid}) with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
